"""
Stage G: Optimize (optional)

Responsibilities:
    - Replace the encoded bytes with the optimize adapter's output

Policy:
    - "strict": an optimizer failure fails the run
    - "best_effort": the failure is logged and the un-optimized bytes kept
"""

import logging

from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract
from soundpress.errors import OptimizeError
from soundpress.stages.base import call_adapter

logger = logging.getLogger(__name__)


CONTRACT = StageContract(
    name=Stage.OPTIMIZE,
    requires=frozenset({"encoded"}),
    produces=frozenset({"encoded"}),
    optional=True,
)


def should_run(config: PipelineConfig) -> bool:
    return config.optimize_output


def run(ctx: RunContext) -> RunContext:
    """
    Optimize ctx.encoded.

    Raises:
        OptimizeError: Under the strict policy, on adapter failure or
            empty output.
    """
    try:
        optimized = call_adapter(
            OptimizeError, "optimize", ctx.adapters.optimizer.optimize, ctx.encoded
        )
        if not optimized:
            raise OptimizeError("Optimizer produced no output")
    except OptimizeError as e:
        if ctx.config.optimize_policy != "best_effort":
            raise
        logger.warning("Optimize failed, keeping un-optimized output: %s", e)
        return ctx

    logger.debug("Optimized %d -> %d bytes", len(ctx.encoded), len(optimized))
    return ctx.advance(encoded=bytes(optimized))
