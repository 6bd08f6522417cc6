"""
SoundPress v1 Pipeline Orchestrator

PIPELINE STAGES (FIXED ORDER — DO NOT MODIFY):

    0. Configure               → soundpress.stages.configure
    A. Detect                  → soundpress.stages.detect
    B. Decode                  → soundpress.stages.decode
    C. Analyze    (optional)   → soundpress.stages.analyze
    D. Reduce     (optional)   → soundpress.stages.reduce
    E. Resample   (optional)   → soundpress.stages.resample
    F. Encode                  → soundpress.stages.encode
    G. Optimize   (optional)   → soundpress.stages.optimize

INVARIANTS:
    - Stages execute in order; a stage starts only after the previous one
      fully materialized its output
    - Stages never call each other (only the orchestrator sequences)
    - Each stage exposes exactly one entrypoint: run(ctx) -> ctx
    - Pipeline stops on first stage failure; no retries
    - A failure names its stage and carries the cause; partial output is
      never returned
    - Pitch analysis sees the decoded (pre-reduction) audio
"""

import importlib
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from soundpress.adapters import Adapters
from soundpress.config import DEFAULT_CONFIG, PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageValidator
from soundpress.errors import PipelineError, SoundPressError
from soundpress.formats import FormatTag
from soundpress.pitch import PitchEstimate, PitchReport

logger = logging.getLogger(__name__)


# Stage registry: (stage, module_path)
# Uses dynamic imports so stages stay decoupled from the orchestrator
# FROZEN: DO NOT MODIFY ORDER
STAGE_ORDER = [
    (Stage.CONFIGURE, "soundpress.stages.configure"),
    (Stage.DETECT, "soundpress.stages.detect"),
    (Stage.DECODE, "soundpress.stages.decode"),
    (Stage.ANALYZE, "soundpress.stages.analyze"),
    (Stage.REDUCE, "soundpress.stages.reduce"),
    (Stage.RESAMPLE, "soundpress.stages.resample"),
    (Stage.ENCODE, "soundpress.stages.encode"),
    (Stage.OPTIMIZE, "soundpress.stages.optimize"),
]


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class Success:
    """
    A completed run.

    Attributes:
        output_bytes: Encoded (and possibly optimized) audio
        pitch: Pitch estimates, when analysis was requested
        pitch_report: Trimmed summary of pitch, None when nothing voiced
            fell in range or analysis was skipped
        format_tag: Detected input format
        source_sample_rate: Decoded sample rate
        source_channels: Decoded channel count
        stages: Stages that ran, in order
    """

    output_bytes: bytes
    pitch: PitchEstimate | None
    pitch_report: PitchReport | None
    format_tag: FormatTag
    source_sample_rate: int
    source_channels: int
    stages: tuple[Stage, ...]

    ok = True

    def raise_for_failure(self) -> "Success":
        return self

    def to_dict(self) -> dict:
        return {
            "success": True,
            "format": self.format_tag.value,
            "source_sample_rate": self.source_sample_rate,
            "source_channels": self.source_channels,
            "output_size": len(self.output_bytes),
            "stages": [s.value for s in self.stages],
            "pitch": None if self.pitch is None else self.pitch.to_dict(),
            "pitch_report": None if self.pitch_report is None else self.pitch_report.to_dict(),
            "errors": [],
        }


@dataclass(frozen=True)
class Failure:
    """
    A run that stopped at `stage` because of `cause`.

    Attributes:
        stage: The stage that failed
        cause: The underlying error
        stages: Stages that completed before the failure
    """

    stage: Stage
    cause: SoundPressError
    stages: tuple[Stage, ...] = ()

    ok = False

    def raise_for_failure(self) -> "Success":
        """Raise PipelineError chained to the cause."""
        raise PipelineError(self.stage.value, self.cause) from self.cause

    def to_dict(self) -> dict:
        return {
            "success": False,
            "failed_stage": self.stage.value,
            "stages": [s.value for s in self.stages],
            "errors": [self.cause.to_dict(stage=self.stage.value)],
        }


PipelineResult = Success | Failure


# =============================================================================
# Orchestration
# =============================================================================


def run(
    raw_bytes: bytes,
    config: PipelineConfig = DEFAULT_CONFIG,
    adapters: Adapters | None = None,
    label: str = "run",
) -> PipelineResult:
    """
    Convert raw audio bytes, stage by stage.

    Args:
        raw_bytes: Complete input file contents
        config: Run options (validated in the configure stage)
        adapters: Codec collaborators (default: soundfile/ffmpeg)
        label: Prefix for log lines, e.g. the input file name

    Returns:
        Success, or Failure naming the stage that failed.

    Note:
        Only SoundPressError is turned into a Failure; anything else is a
        bug and propagates.
    """
    ctx = RunContext(
        config=config,
        adapters=adapters if adapters is not None else Adapters(),
        raw=bytes(raw_bytes),
    )
    validator = StageValidator()
    completed: list[Stage] = []

    for stage, module_path in STAGE_ORDER:
        module = importlib.import_module(module_path)
        if not module.should_run(config):
            logger.debug("[%s] Skipping %s", label, stage)
            continue

        logger.debug("[%s] Starting %s", label, stage)
        try:
            validator.validate(module.CONTRACT, ctx)
            ctx = module.run(ctx)
            ctx = ctx.advance(**{slot: None for slot in module.CONTRACT.consumes})
            validator.check_output(module.CONTRACT, ctx)
        except SoundPressError as e:
            logger.info("[%s] Failed at %s: %s", label, stage, e)
            return Failure(stage=stage, cause=e, stages=tuple(completed))
        completed.append(stage)
        logger.debug("[%s] Finished %s", label, stage)

    logger.info(
        "[%s] Converted %s (%d Hz, %d ch) to %d bytes",
        label,
        ctx.format_tag.value,
        ctx.source_sample_rate,
        ctx.source_channels,
        len(ctx.encoded),
    )
    return Success(
        output_bytes=ctx.encoded,
        pitch=ctx.pitch,
        pitch_report=ctx.pitch_report,
        format_tag=ctx.format_tag,
        source_sample_rate=ctx.source_sample_rate,
        source_channels=ctx.source_channels,
        stages=tuple(completed),
    )


def run_many(
    inputs: Iterable[bytes],
    config: PipelineConfig = DEFAULT_CONFIG,
    adapters: Adapters | None = None,
    max_workers: int | None = None,
    labels: Iterable[str] | None = None,
) -> list[PipelineResult]:
    """
    Run independent conversions concurrently.

    Args:
        inputs: Raw input bytes, one item per conversion
        config: Shared run options (immutable)
        adapters: Shared adapters (stateless)
        max_workers: Thread pool size (default: executor's choice)
        labels: Optional log labels, parallel to inputs

    Returns:
        Results in input order. A failing input does not affect the others.
    """
    items = list(inputs)
    names = list(labels) if labels is not None else [f"run-{i}" for i in range(len(items))]
    if len(names) != len(items):
        raise ValueError(f"got {len(names)} labels for {len(items)} inputs")

    shared = adapters if adapters is not None else Adapters()
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda args: run(args[0], config, shared, args[1]), zip(items, names)))
