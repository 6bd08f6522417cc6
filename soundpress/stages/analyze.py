"""
Stage C: Analyze (optional)

Responsibilities:
    - Run YIN over the decoded audio
    - Summarize voiced estimates within the configured frequency range

Invariants:
    - Runs before channel reduction, on a mean-downmixed mono view
    - The decoded buffer in the context is left untouched
"""

from soundpress.audio import reduce_to_mono
from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract
from soundpress.pitch import analyze, summarize


CONTRACT = StageContract(
    name=Stage.ANALYZE,
    requires=frozenset({"buffer"}),
    produces=frozenset({"pitch"}),
    optional=True,
)


def should_run(config: PipelineConfig) -> bool:
    return config.analyze_pitch


def run(ctx: RunContext) -> RunContext:
    """
    Fill ctx.pitch and ctx.pitch_report.

    Raises:
        InvalidWindowError: Window shorter than two periods of min_frequency
            at the decoded sample rate.
    """
    config = ctx.config
    estimate = analyze(
        reduce_to_mono(ctx.buffer),
        window_size=config.window_size,
        hop_size=config.hop_size,
        threshold=config.threshold,
        voicing_threshold=config.voicing_threshold,
        min_frequency=config.min_frequency,
    )
    report = summarize(estimate, config.min_frequency, config.max_frequency)
    return ctx.advance(pitch=estimate, pitch_report=report)
