"""
Stage A: Detect

Responsibilities:
    - Identify the input container/codec from its leading bytes

Invariants:
    - Only a bounded prefix of the input is inspected
    - Raw bytes are left in place for the decoder
"""

from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract
from soundpress.formats import detect


CONTRACT = StageContract(
    name=Stage.DETECT,
    requires=frozenset({"raw"}),
    produces=frozenset({"format_tag"}),
)


def should_run(config: PipelineConfig) -> bool:
    return True


def run(ctx: RunContext) -> RunContext:
    """
    Fill ctx.format_tag.

    Raises:
        TruncatedInputError: Input shorter than any signature
        UnrecognizedFormatError: No signature matched
    """
    return ctx.advance(format_tag=detect(ctx.raw))
