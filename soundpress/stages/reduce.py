"""
Stage D: Reduce (optional)

Responsibilities:
    - Downmix the buffer to mono by per-frame mean

Invariants:
    - Frame count and sample rate are preserved
"""

from soundpress.audio import reduce_to_mono
from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract


CONTRACT = StageContract(
    name=Stage.REDUCE,
    requires=frozenset({"buffer"}),
    produces=frozenset({"buffer"}),
    optional=True,
)


def should_run(config: PipelineConfig) -> bool:
    return config.target_channels == 1


def run(ctx: RunContext) -> RunContext:
    return ctx.advance(buffer=reduce_to_mono(ctx.buffer))
