"""
SoundPress v1 RunContext - Pipeline execution context.

Responsibilities:
- Hold configuration, adapters, and the per-stage data slots of one run

Invariants:
- Immutable; stages return a replaced copy
- A buffer lives in exactly one context slot; encode releases it
"""

from dataclasses import dataclass, fields, replace
from typing import Any

from soundpress.adapters import Adapters
from soundpress.buffer import SampleBuffer
from soundpress.config import PipelineConfig
from soundpress.contracts import SLOTS
from soundpress.formats import FormatTag
from soundpress.pitch import PitchEstimate, PitchReport


@dataclass(frozen=True)
class RunContext:
    """Context passed through all pipeline stages."""

    config: PipelineConfig
    adapters: Adapters
    raw: bytes | None = None
    format_tag: FormatTag | None = None
    buffer: SampleBuffer | None = None
    pitch: PitchEstimate | None = None
    pitch_report: PitchReport | None = None
    encoded: bytes | None = None
    source_channels: int | None = None
    source_sample_rate: int | None = None

    def filled_slots(self) -> set[str]:
        """Names of data slots currently holding a value."""
        return {f.name for f in fields(self) if f.name in SLOTS and getattr(self, f.name) is not None}

    def advance(self, **changes: Any) -> "RunContext":
        """Return the next context with some slots replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for debugging/logging (no sample data)."""
        return {
            "config": self.config.to_dict(),
            "raw_bytes": None if self.raw is None else len(self.raw),
            "format_tag": None if self.format_tag is None else self.format_tag.value,
            "buffer": None if self.buffer is None else repr(self.buffer),
            "pitch_points": None if self.pitch is None else len(self.pitch),
            "encoded_bytes": None if self.encoded is None else len(self.encoded),
            "source_channels": self.source_channels,
            "source_sample_rate": self.source_sample_rate,
        }
