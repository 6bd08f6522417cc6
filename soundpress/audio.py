"""
SoundPress v1 Audio Utilities

Deterministic, CPU-only transforms over SampleBuffer.

Library Stack:
    - numpy: Array operations
    - scipy.signal.resample_poly: Deterministic resampling

INVARIANTS:
    - All operations are deterministic
    - Transforms never write into their input buffer
    - Frame count is preserved by downmix
    - Same input → identical output

ALLOWED PRIMITIVES:
    - Mono downmix (mean)
    - Resampling (scipy.signal.resample_poly, integer factors)
    - Framing (fixed window/hop, tail dropped)
    - Block iteration for encoders
    - Hard clipping to [-1, 1]
"""

from collections.abc import Iterator
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from soundpress.buffer import SampleBuffer
from soundpress.errors import ConfigError, InvalidChannelCountError


# =============================================================================
# Constants (FROZEN)
# =============================================================================

ENCODE_BLOCK_FRAMES = 512


# =============================================================================
# Channel Reduction
# =============================================================================


def reduce_to_mono(buf: SampleBuffer) -> SampleBuffer:
    """
    Downmix an N-channel buffer to mono.

    Args:
        buf: Input buffer (any channel count >= 1)

    Returns:
        Mono buffer with the same frame count and sample rate.

    Note:
        - Each output sample is the arithmetic mean of its frame's channels
        - Mono input is returned as-is
        - Mean is accumulated in float64 and stored as float32
    """
    if buf.channels < 1:
        raise InvalidChannelCountError(
            f"Cannot downmix buffer with {buf.channels} channels",
            detail={"channels": buf.channels},
        )
    if buf.channels == 1:
        return buf

    mono = np.mean(buf.as_frames(), axis=1, dtype=np.float64).astype(np.float32)
    return SampleBuffer(mono, buf.sample_rate, 1)


# =============================================================================
# Resampling
# =============================================================================


def resample(buf: SampleBuffer, target_rate: int) -> SampleBuffer:
    """
    Resample every channel of a buffer to `target_rate`.

    Args:
        buf: Input buffer
        target_rate: Output sample rate in Hz

    Returns:
        Resampled buffer (same channel count).

    Raises:
        ConfigError: If target_rate is not positive.
    """
    if target_rate < 1:
        raise ConfigError(
            f"target sample rate must be >= 1, got {target_rate}",
            detail={"target_sample_rate": target_rate},
        )
    if target_rate == buf.sample_rate or buf.frames == 0:
        return SampleBuffer(buf.samples, target_rate, buf.channels)

    resampled = _resample_deterministic(buf.as_frames(), buf.sample_rate, target_rate)
    return SampleBuffer.from_frames(resampled, target_rate)


def _resample_deterministic(frames: np.ndarray, sr_from: int, sr_to: int) -> np.ndarray:
    """
    Resample using scipy.signal.resample_poly with fixed integer factors.

    Args:
        frames: (frames, channels) samples
        sr_from: Source sample rate
        sr_to: Target sample rate

    Returns:
        Resampled (frames', channels) float32 array
    """
    g = gcd(sr_from, sr_to)
    up = sr_to // g
    down = sr_from // g

    return resample_poly(frames, up, down, axis=0).astype(np.float32)


# =============================================================================
# Framing
# =============================================================================


def window_offsets(num_frames: int, window_size: int, hop_size: int) -> range:
    """
    Start offsets of every full analysis window.

    Args:
        num_frames: Signal length in frames
        window_size: Window length in frames
        hop_size: Distance between window starts

    Returns:
        Range of start offsets. Windows that would run past the end of the
        signal are dropped, so an input shorter than one window yields none.
    """
    if num_frames < window_size:
        return range(0)
    n_windows = (num_frames - window_size) // hop_size + 1
    return range(0, n_windows * hop_size, hop_size)


def iter_blocks(buf: SampleBuffer, block_frames: int = ENCODE_BLOCK_FRAMES) -> Iterator[np.ndarray]:
    """
    Yield consecutive (frames, channels) blocks, hard-clipped to [-1, 1].

    The last block may be shorter than block_frames.
    """
    frames = buf.as_frames()
    for start in range(0, buf.frames, block_frames):
        yield np.clip(frames[start:start + block_frames], -1.0, 1.0)
