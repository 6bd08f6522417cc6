"""
SoundPress v1 Pipeline Configuration.

Responsibilities:
- Hold every option recognized by a pipeline run
- Validate options before any input byte is inspected

Invariants:
- Immutable (frozen dataclass); a run never sees a config change
- encoder_params is passed to the encoder untouched
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from soundpress import pitch
from soundpress.errors import ConfigError, InvalidChannelCountError


OPTIMIZE_POLICIES = frozenset({"strict", "best_effort"})


@dataclass(frozen=True)
class PipelineConfig:
    """
    Options for one pipeline run.

    Attributes:
        target_channels: 1 to downmix to mono, None to keep source channels
        analyze_pitch: Run YIN before reduction
        optimize_output: Pass encoded bytes through the optimizer
        encoder_params: Opaque mapping handed to the encoder
        window_size: YIN window in frames (even, >= 2)
        hop_size: YIN hop in frames
        threshold: YIN absolute threshold
        voicing_threshold: Minimum confidence for a voiced estimate
        min_frequency: Report range lower bound (Hz); the window must span
            two periods of it
        max_frequency: Report range upper bound (Hz)
        optimize_policy: "strict" fails the run when optimizing fails,
            "best_effort" keeps the un-optimized bytes
        target_sample_rate: Resample before encoding, None to keep

    Example:
        >>> config = PipelineConfig(analyze_pitch=False, encoder_params={"quality": 0.2})
        >>> result = run(data, config)
    """

    target_channels: int | None = 1
    analyze_pitch: bool = True
    optimize_output: bool = False
    encoder_params: Mapping[str, Any] = field(default_factory=dict)
    window_size: int = pitch.DEFAULT_WINDOW_SIZE
    hop_size: int = pitch.DEFAULT_HOP_SIZE
    threshold: float = pitch.DEFAULT_THRESHOLD
    voicing_threshold: float = pitch.DEFAULT_VOICING_THRESHOLD
    min_frequency: float = pitch.DEFAULT_MIN_FREQUENCY
    max_frequency: float = pitch.DEFAULT_MAX_FREQUENCY
    optimize_policy: str = "strict"
    target_sample_rate: int | None = None

    def __post_init__(self) -> None:
        # Freeze the caller's mapping so the run cannot observe later edits
        object.__setattr__(
            self, "encoder_params", MappingProxyType(dict(self.encoder_params))
        )

    def validate(self) -> None:
        """
        Check option ranges.

        Raises:
            InvalidWindowError: Bad window/hop
            InvalidChannelCountError: target_channels other than 1 or None
            ConfigError: Any other out-of-range option

        Note:
            Sample-rate dependent checks (window vs. min_frequency) need the
            decoded buffer and run in the analyze stage.
        """
        # bool is an int subclass and 1.0 == 1; both are rejected
        if self.target_channels is not None and (
            type(self.target_channels) is not int or self.target_channels != 1
        ):
            raise InvalidChannelCountError(
                f"target_channels must be 1 or None (keep), got {self.target_channels!r}",
                detail={"target_channels": self.target_channels},
            )

        pitch.validate_window(self.window_size, self.hop_size)

        if self.analyze_pitch:
            for name in ("threshold", "voicing_threshold"):
                value = getattr(self, name)
                if not 0.0 <= value <= 1.0:
                    raise ConfigError(
                        f"{name} must be within [0, 1], got {value}",
                        detail={name: value},
                    )
            if not 0.0 < self.min_frequency < self.max_frequency:
                raise ConfigError(
                    "frequency range must satisfy 0 < min_frequency < max_frequency, "
                    f"got ({self.min_frequency}, {self.max_frequency})",
                    detail={
                        "min_frequency": self.min_frequency,
                        "max_frequency": self.max_frequency,
                    },
                )

        if self.optimize_policy not in OPTIMIZE_POLICIES:
            raise ConfigError(
                f"optimize_policy must be one of {sorted(OPTIMIZE_POLICIES)}, "
                f"got {self.optimize_policy!r}",
                detail={"optimize_policy": self.optimize_policy},
            )

        if self.target_sample_rate is not None and self.target_sample_rate < 1:
            raise ConfigError(
                f"target_sample_rate must be >= 1, got {self.target_sample_rate}",
                detail={"target_sample_rate": self.target_sample_rate},
            )

    def with_options(self, **changes: Any) -> "PipelineConfig":
        """Return a copy with some options replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "target_channels": self.target_channels,
            "analyze_pitch": self.analyze_pitch,
            "optimize_output": self.optimize_output,
            "encoder_params": dict(self.encoder_params),
            "window_size": self.window_size,
            "hop_size": self.hop_size,
            "threshold": self.threshold,
            "voicing_threshold": self.voicing_threshold,
            "min_frequency": self.min_frequency,
            "max_frequency": self.max_frequency,
            "optimize_policy": self.optimize_policy,
            "target_sample_rate": self.target_sample_rate,
        }


DEFAULT_CONFIG = PipelineConfig()
"""Mono Ogg Vorbis with pitch analysis, no optimization."""
