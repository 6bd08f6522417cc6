"""
Stage 0: Configure

Responsibilities:
    - Validate the run configuration before any input byte is inspected

Invariants:
    - Invalid windows fail here, never after decoding
"""

from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract


CONTRACT = StageContract(
    name=Stage.CONFIGURE,
    requires=frozenset({"raw"}),
    produces=frozenset(),
)


def should_run(config: PipelineConfig) -> bool:
    return True


def run(ctx: RunContext) -> RunContext:
    """
    Validate ctx.config.

    Raises:
        ConfigError: If any option is out of range.
    """
    ctx.config.validate()
    return ctx
