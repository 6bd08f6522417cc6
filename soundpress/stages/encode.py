"""
Stage F: Encode

Responsibilities:
    - Hand the buffer and the opaque encoder_params to the encode adapter

Invariants:
    - encoder_params is not interpreted here
    - Releases the buffer; encoded bytes are never empty
"""

from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract
from soundpress.errors import EncodeError
from soundpress.stages.base import call_adapter


CONTRACT = StageContract(
    name=Stage.ENCODE,
    requires=frozenset({"buffer"}),
    produces=frozenset({"encoded"}),
    consumes=frozenset({"buffer"}),
)


def should_run(config: PipelineConfig) -> bool:
    return True


def run(ctx: RunContext) -> RunContext:
    """
    Fill ctx.encoded.

    Raises:
        EncodeError: Adapter failure or empty output.
    """
    encoded = call_adapter(
        EncodeError,
        "encode",
        ctx.adapters.encoder.encode,
        ctx.buffer,
        ctx.config.encoder_params,
    )
    if not encoded:
        raise EncodeError("Encoder produced no output")
    return ctx.advance(encoded=bytes(encoded))
