"""
SoundPress v1 SampleBuffer - Decoded PCM container.

Responsibilities:
- Hold interleaved float32 samples with sample rate and channel count
- Provide frame-oriented views for DSP code

Invariants:
- len(samples) == frames * channels
- channels >= 1, sample_rate >= 1
- Samples are read-only; transforms build new buffers
"""

from dataclasses import dataclass

import numpy as np

from soundpress.errors import ConfigError, InvalidChannelCountError


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    Interleaved PCM audio, normalized to [-1, 1].

    Attributes:
        samples: 1D float32 array, interleaved (L R L R ... for stereo)
        sample_rate: Sample rate in Hz
        channels: Channel count

    Note:
        The stored array is a read-only view. A buffer moves from stage
        to stage; nothing writes into it after construction.
    """

    samples: np.ndarray
    sample_rate: int
    channels: int

    def __post_init__(self) -> None:
        if self.channels < 1:
            raise InvalidChannelCountError(
                f"channels must be >= 1, got {self.channels}",
                detail={"channels": self.channels},
            )
        if self.sample_rate < 1:
            raise ConfigError(
                f"sample_rate must be >= 1, got {self.sample_rate}",
                detail={"sample_rate": self.sample_rate},
            )

        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim != 1:
            raise InvalidChannelCountError(
                f"samples must be 1D interleaved, got shape {samples.shape}",
                detail={"shape": list(samples.shape)},
            )
        if len(samples) % self.channels != 0:
            raise InvalidChannelCountError(
                f"{len(samples)} samples do not split into {self.channels} channels",
                detail={"num_samples": len(samples), "channels": self.channels},
            )

        view = samples.view()
        view.flags.writeable = False
        object.__setattr__(self, "samples", view)

    @classmethod
    def from_frames(cls, data: np.ndarray, sample_rate: int) -> "SampleBuffer":
        """
        Build a buffer from a frame-major array.

        Args:
            data: Shape (frames, channels), or (frames,) for mono
            sample_rate: Sample rate in Hz

        Returns:
            SampleBuffer with interleaved samples.
        """
        data = np.asarray(data, dtype=np.float32)
        if data.ndim == 1:
            return cls(data, sample_rate, 1)
        if data.ndim != 2:
            raise InvalidChannelCountError(
                f"expected (frames, channels) array, got shape {data.shape}",
                detail={"shape": list(data.shape)},
            )
        return cls(np.ascontiguousarray(data).reshape(-1), sample_rate, data.shape[1])

    @property
    def frames(self) -> int:
        return len(self.samples) // self.channels

    @property
    def duration_sec(self) -> float:
        return float(self.frames / self.sample_rate)

    def as_frames(self) -> np.ndarray:
        """Return a read-only (frames, channels) view."""
        return self.samples.reshape(self.frames, self.channels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SampleBuffer):
            return NotImplemented
        return (
            self.sample_rate == other.sample_rate
            and self.channels == other.channels
            and np.array_equal(self.samples, other.samples)
        )

    def __repr__(self) -> str:
        return (
            f"SampleBuffer(frames={self.frames}, channels={self.channels}, "
            f"sample_rate={self.sample_rate})"
        )
