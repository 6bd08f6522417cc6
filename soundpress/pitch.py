"""
SoundPress v1 Pitch Analysis — YIN

Fundamental frequency estimation over fixed windows of mono audio.

Algorithm (per window of W frames, lags τ = 1..W/2):
    1. Difference function
           d(τ) = Σ_{j=0}^{W-τ-1} (x[j] - x[j+τ])²
    2. Cumulative mean normalized difference (CMNDF)
           d'(0) = 1
           d'(τ) = d(τ) / ((1/τ) Σ_{k=1}^{τ} d(k))
       The inner sum is a running accumulator local to one window.
       A zero accumulator (silence) yields d'(τ) = 1.
    3. Absolute threshold: first τ with d'(τ) < threshold, advanced to the
       bottom of its dip. Otherwise the global minimum over 1..W/2.
    4. Parabolic interpolation around τ using its neighbours.
    5. frequency = sample_rate / τ_refined, confidence = 1 - d'(τ_refined).
       Windows with confidence < voicing_threshold are unvoiced.

INVARIANTS:
    - Input must be mono (run reduce_to_mono first)
    - One estimate per full window; the tail shorter than W is dropped
    - Never divides by zero; silence is reported unvoiced
    - The analyzed buffer is never modified
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
from scipy.signal import fftconvolve

from soundpress.audio import window_offsets
from soundpress.buffer import SampleBuffer
from soundpress.errors import InvalidChannelCountError, InvalidWindowError


# =============================================================================
# Constants (FROZEN)
# =============================================================================

DEFAULT_WINDOW_SIZE = 2048
DEFAULT_HOP_SIZE = 1024
DEFAULT_THRESHOLD = 0.1
DEFAULT_VOICING_THRESHOLD = 0.1

# Report defaults, tuned for the human vocal range
DEFAULT_MIN_FREQUENCY = 50.0
DEFAULT_MAX_FREQUENCY = 600.0
TRIM_FRACTION = 0.10

# Relative to window energy; below it d(τ) is rounding noise
RESIDUE_TOLERANCE = 1e-12


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class PitchPoint:
    """
    One window's estimate.

    Attributes:
        frame_offset: First frame of the window
        frequency_hz: Estimated f0, or None when unvoiced
        confidence: 1 - d'(τ) at the chosen lag, in [0, 1]
    """

    frame_offset: int
    frequency_hz: float | None
    confidence: float

    @property
    def voiced(self) -> bool:
        return self.frequency_hz is not None


@dataclass(frozen=True)
class PitchEstimate:
    """Ordered per-window pitch estimates for one buffer."""

    points: tuple[PitchPoint, ...]
    sample_rate: int
    window_size: int
    hop_size: int

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PitchPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> PitchPoint:
        return self.points[index]

    def voiced(self) -> tuple[PitchPoint, ...]:
        return tuple(p for p in self.points if p.voiced)

    def frequencies(self) -> np.ndarray:
        """Frequencies as float64 array, NaN where unvoiced."""
        return np.array(
            [np.nan if p.frequency_hz is None else p.frequency_hz for p in self.points],
            dtype=np.float64,
        )

    def times(self) -> np.ndarray:
        """Window start times in seconds."""
        return np.array([p.frame_offset for p in self.points], dtype=np.float64) / self.sample_rate

    def to_dict(self) -> dict:
        return {
            "sample_rate": self.sample_rate,
            "window_size": self.window_size,
            "hop_size": self.hop_size,
            "points": [
                {
                    "frame_offset": p.frame_offset,
                    "frequency_hz": p.frequency_hz,
                    "confidence": p.confidence,
                }
                for p in self.points
            ],
        }


@dataclass(frozen=True)
class PitchReport:
    """
    Summary of the voiced estimates within a frequency range.

    Attributes:
        points_used: Percentage (0-100) of all windows that survived
            range clamping and outlier trimming
        mean: Mean frequency of the kept estimates (Hz)
        median: Median frequency of the kept estimates (Hz)
        lowest: Lowest kept frequency (Hz)
        highest: Highest kept frequency (Hz)
    """

    points_used: float
    mean: float
    median: float
    lowest: float
    highest: float

    def to_dict(self) -> dict:
        return {
            "points_used": self.points_used,
            "mean": self.mean,
            "median": self.median,
            "lowest": self.lowest,
            "highest": self.highest,
        }


# =============================================================================
# Validation
# =============================================================================


def validate_window(
    window_size: int,
    hop_size: int,
    sample_rate: int | None = None,
    min_frequency: float | None = None,
) -> None:
    """
    Check analysis window parameters.

    Args:
        window_size: Window length in frames (even, >= 2)
        hop_size: Hop in frames (>= 1)
        sample_rate: Needed only for the min_frequency check
        min_frequency: Lowest frequency the window must resolve

    Raises:
        InvalidWindowError: On any violation.

    Note:
        Lags only go up to W/2, so resolving a period P needs W >= 2P.
    """
    detail = {"window_size": window_size, "hop_size": hop_size}
    if window_size < 2 or window_size % 2 != 0:
        raise InvalidWindowError(
            f"window_size must be even and >= 2, got {window_size}",
            detail=detail,
        )
    if hop_size < 1:
        raise InvalidWindowError(f"hop_size must be >= 1, got {hop_size}", detail=detail)

    if sample_rate is not None and min_frequency is not None:
        if min_frequency <= 0:
            raise InvalidWindowError(
                f"min_frequency must be > 0, got {min_frequency}",
                detail={**detail, "min_frequency": min_frequency},
            )
        longest_period = math.ceil(sample_rate / min_frequency)
        if window_size < 2 * longest_period:
            raise InvalidWindowError(
                f"window_size {window_size} is shorter than two periods of "
                f"{min_frequency} Hz at {sample_rate} Hz ({2 * longest_period} frames)",
                detail={**detail, "min_frequency": min_frequency, "sample_rate": sample_rate},
            )


# =============================================================================
# YIN Steps
# =============================================================================


def difference_function(x: np.ndarray, tau_max: int) -> np.ndarray:
    """
    Compute d(τ) for τ = 0..tau_max over one window.

    Args:
        x: Window samples (length W)
        tau_max: Largest lag (<= W - 1)

    Returns:
        float64 array of length tau_max + 1, d[0] == 0.

    Note:
        Expands (a - b)² into energy terms and an FFT autocorrelation.
        Rounding leaves residue of order 1e-13 where d(τ) is exactly zero
        (e.g. a constant window). Values below RESIDUE_TOLERANCE times the
        window energy are snapped to zero.
    """
    x = np.asarray(x, dtype=np.float64)
    w = len(x)

    energy = np.concatenate(([0.0], np.cumsum(x * x)))
    autocorr = fftconvolve(x, x[::-1], mode="full")[w - 1:w + tau_max]

    taus = np.arange(tau_max + 1)
    head = energy[w - taus]               # Σ_{j<W-τ} x[j]²
    tail = energy[w] - energy[taus]       # Σ_{j>=τ} x[j]²
    d = head + tail - 2.0 * autocorr

    d[0] = 0.0
    d[d < RESIDUE_TOLERANCE * energy[w]] = 0.0
    return d


def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """
    Normalize d(τ) by its running mean.

    Args:
        d: Difference function, d[0] unused

    Returns:
        d' with d'[0] = 1.
    """
    cmndf = np.ones(len(d), dtype=np.float64)
    running_sum = 0.0
    for tau, value in enumerate(d.tolist()[1:], start=1):
        running_sum += value
        if running_sum > 0.0:
            cmndf[tau] = value * tau / running_sum
    return cmndf


def absolute_threshold(cmndf: np.ndarray, threshold: float) -> int:
    """
    Pick the candidate lag.

    Returns the first τ >= 1 where d'(τ) drops below threshold, moved to
    the local minimum of that dip. Falls back to the global minimum.
    """
    tau_max = len(cmndf) - 1
    tau = 1
    while tau <= tau_max:
        if cmndf[tau] < threshold:
            while tau + 1 <= tau_max and cmndf[tau + 1] < cmndf[tau]:
                tau += 1
            return tau
        tau += 1
    return 1 + int(np.argmin(cmndf[1:]))


def parabolic_interpolation(cmndf: np.ndarray, tau: int) -> tuple[float, float]:
    """
    Refine a lag to sub-sample precision.

    Args:
        cmndf: d' values (d'[0] = 1)
        tau: Candidate lag

    Returns:
        (refined_tau, d' at refined_tau)

    Note:
        The last lag has no right neighbour and is returned unrefined,
        as is any flat or non-convex neighbourhood.
    """
    if tau < 1 or tau >= len(cmndf) - 1:
        return float(tau), float(cmndf[tau])

    s0, s1, s2 = float(cmndf[tau - 1]), float(cmndf[tau]), float(cmndf[tau + 1])
    denom = s0 - 2.0 * s1 + s2
    if denom <= 0.0:
        return float(tau), s1

    shift = 0.5 * (s0 - s2) / denom
    if abs(shift) >= 1.0:
        return float(tau), s1
    return tau + shift, s1 - 0.25 * (s0 - s2) * shift


def estimate_window(
    x: np.ndarray,
    sample_rate: int,
    threshold: float = DEFAULT_THRESHOLD,
    voicing_threshold: float = DEFAULT_VOICING_THRESHOLD,
) -> tuple[float | None, float]:
    """
    Run YIN on a single window.

    Returns:
        (frequency_hz or None when unvoiced, confidence)
    """
    tau_max = len(x) // 2
    d = difference_function(x, tau_max)
    cmndf = cumulative_mean_normalized_difference(d)
    tau = absolute_threshold(cmndf, threshold)
    refined_tau, value = parabolic_interpolation(cmndf, tau)

    confidence = min(1.0, max(0.0, 1.0 - value))
    if confidence < voicing_threshold or refined_tau <= 0.0:
        return None, confidence
    return float(sample_rate / refined_tau), confidence


# =============================================================================
# Public API
# =============================================================================


def analyze(
    buf: SampleBuffer,
    window_size: int = DEFAULT_WINDOW_SIZE,
    hop_size: int = DEFAULT_HOP_SIZE,
    threshold: float = DEFAULT_THRESHOLD,
    voicing_threshold: float = DEFAULT_VOICING_THRESHOLD,
    min_frequency: float | None = None,
) -> PitchEstimate:
    """
    Estimate pitch over sliding windows of a mono buffer.

    Args:
        buf: Mono SampleBuffer
        window_size: Window length in frames (even, >= 2)
        hop_size: Frames between window starts
        threshold: CMNDF absolute threshold
        voicing_threshold: Minimum confidence for a voiced estimate
        min_frequency: If set, window_size must span two of its periods

    Returns:
        PitchEstimate with one point per full window.

    Raises:
        InvalidChannelCountError: If buf is not mono
        InvalidWindowError: If window parameters are invalid
    """
    if buf.channels != 1:
        raise InvalidChannelCountError(
            f"Pitch analysis requires mono input, got {buf.channels} channels",
            detail={"channels": buf.channels},
        )
    validate_window(window_size, hop_size, buf.sample_rate, min_frequency)

    samples = buf.samples
    points = []
    for offset in window_offsets(buf.frames, window_size, hop_size):
        frequency, confidence = estimate_window(
            samples[offset:offset + window_size],
            buf.sample_rate,
            threshold=threshold,
            voicing_threshold=voicing_threshold,
        )
        points.append(PitchPoint(offset, frequency, confidence))

    return PitchEstimate(
        points=tuple(points),
        sample_rate=buf.sample_rate,
        window_size=window_size,
        hop_size=hop_size,
    )


def summarize(
    estimate: PitchEstimate,
    min_frequency: float = DEFAULT_MIN_FREQUENCY,
    max_frequency: float = DEFAULT_MAX_FREQUENCY,
) -> PitchReport | None:
    """
    Summarize voiced estimates inside (min_frequency, max_frequency).

    Estimates outside the open range are discarded, the rest are sorted and
    the lowest and highest TRIM_FRACTION of them dropped as outliers.

    Returns:
        PitchReport, or None when nothing survives.
    """
    if len(estimate) == 0:
        return None

    in_range = sorted(
        p.frequency_hz
        for p in estimate.voiced()
        if min_frequency < p.frequency_hz < max_frequency
    )
    # Round half up, so 5 estimates trim 1 from each end
    trim = int(math.floor(len(in_range) * TRIM_FRACTION + 0.5))
    kept = in_range[trim:len(in_range) - trim]
    if not kept:
        return None

    return PitchReport(
        points_used=len(kept) / len(estimate) * 100.0,
        mean=float(np.mean(kept)),
        median=float(np.median(kept)),
        lowest=float(kept[0]),
        highest=float(kept[-1]),
    )
