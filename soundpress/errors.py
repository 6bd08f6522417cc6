"""
SoundPress v1 Errors.

Responsibilities:
- Exception hierarchy for every failure the pipeline can report
- Structured error objects (code, message, stage, detail)

Invariants:
- Every error carries a stable machine-readable code
- Adapter failures are chained to the underlying library exception
"""

from typing import Any


def build_error(
    code: str,
    message: str,
    stage: str | None = None,
    detail: dict | None = None,
) -> dict:
    """
    Build structured error object.

    Args:
        code: Error code (e.g., "DETECT_TRUNCATED")
        message: Human-readable error message
        stage: Stage name where error occurred, if known
        detail: Optional additional details

    Returns:
        Structured error dictionary.
    """
    error: dict = {
        "code": code,
        "message": message,
    }
    if stage is not None:
        error["stage"] = stage
    if detail is not None:
        error["detail"] = detail
    return error


class SoundPressError(Exception):
    """Base class for all SoundPress failures."""

    code = "SOUNDPRESS_ERROR"

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_dict(self, stage: str | None = None) -> dict:
        """Serialize to a structured error object."""
        return build_error(self.code, self.message, stage=stage, detail=self.detail)


# =============================================================================
# Detection
# =============================================================================


class DetectError(SoundPressError):
    """Input bytes could not be matched to a supported format."""

    code = "DETECT_FAILED"


class UnrecognizedFormatError(DetectError):
    """No known container/codec signature matched."""

    code = "DETECT_UNRECOGNIZED"


class TruncatedInputError(DetectError):
    """Too few bytes to evaluate the signatures."""

    code = "DETECT_TRUNCATED"


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(SoundPressError):
    """Invalid run configuration or violated precondition."""

    code = "CONFIG_INVALID"


class InvalidWindowError(ConfigError):
    code = "CONFIG_INVALID_WINDOW"


class InvalidChannelCountError(ConfigError):
    code = "CONFIG_INVALID_CHANNEL_COUNT"


# =============================================================================
# Adapter Failures (opaque causes)
# =============================================================================


class DecodeError(SoundPressError):
    code = "DECODE_FAILED"


class EncodeError(SoundPressError):
    code = "ENCODE_FAILED"


class OptimizeError(SoundPressError):
    code = "OPTIMIZE_FAILED"


# =============================================================================
# Pipeline
# =============================================================================


class PipelineError(SoundPressError):
    """
    A stage failure, carrying the stage name and the underlying cause.

    Raised by `Failure.raise_for_failure()` for callers that prefer
    exceptions over inspecting a PipelineResult.
    """

    code = "PIPELINE_STAGE_FAILED"

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Stage '{stage}' failed: {cause}",
            detail={"cause": type(cause).__name__},
        )
