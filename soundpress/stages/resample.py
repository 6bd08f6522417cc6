"""
Stage E: Resample (optional)

Responsibilities:
    - Convert the buffer to the configured target sample rate
"""

from soundpress.audio import resample
from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract


CONTRACT = StageContract(
    name=Stage.RESAMPLE,
    requires=frozenset({"buffer"}),
    produces=frozenset({"buffer"}),
    optional=True,
)


def should_run(config: PipelineConfig) -> bool:
    return config.target_sample_rate is not None


def run(ctx: RunContext) -> RunContext:
    return ctx.advance(buffer=resample(ctx.buffer, ctx.config.target_sample_rate))
