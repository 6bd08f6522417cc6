"""
SoundPress v1 Test Configuration

Provides helpers and fixtures for synthesizing audio inputs in memory.
"""

import io
import shutil
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

from soundpress.buffer import SampleBuffer
from soundpress.errors import OptimizeError


REPO_ROOT = Path(__file__).parent.parent
TEST_SAMPLE_RATE = 16000

requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)


def run_cli(*args: str) -> subprocess.CompletedProcess:
    """Run soundpress CLI as subprocess."""
    return subprocess.run(
        [sys.executable, "-m", "soundpress", *args],
        capture_output=True,
        text=True,
        cwd=str(REPO_ROOT),
    )


def sine(
    frequency: float,
    duration_sec: float = 0.5,
    sr: int = TEST_SAMPLE_RATE,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Deterministic float32 sine wave."""
    t = np.arange(int(sr * duration_sec)) / sr
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


def encode_bytes(
    frames: np.ndarray,
    sr: int = TEST_SAMPLE_RATE,
    fmt: str = "WAV",
    subtype: str = "PCM_16",
) -> bytes:
    """
    Encode (frames,) or (frames, channels) samples to an in-memory file.

    Args:
        frames: Audio samples in [-1, 1]
        sr: Sample rate
        fmt: libsndfile major format (WAV, FLAC, OGG, ...)
        subtype: libsndfile subtype
    """
    out = io.BytesIO()
    sf.write(out, frames, sr, format=fmt, subtype=subtype)
    return out.getvalue()


def stereo_frames(duration_sec: float = 0.5, sr: int = TEST_SAMPLE_RATE) -> np.ndarray:
    """Left: 220 Hz sine, right: same sine at lower level (same pitch)."""
    left = sine(220.0, duration_sec, sr, amplitude=0.5)
    right = sine(220.0, duration_sec, sr, amplitude=0.3)
    return np.stack([left, right], axis=1)


@pytest.fixture
def stereo_wav_bytes() -> bytes:
    return encode_bytes(stereo_frames())


@pytest.fixture
def mono_wav_bytes() -> bytes:
    return encode_bytes(sine(220.0))


@pytest.fixture
def stereo_wav_path(tmp_path, stereo_wav_bytes) -> Path:
    path = tmp_path / "stereo.wav"
    path.write_bytes(stereo_wav_bytes)
    return path


# =============================================================================
# Adapter Doubles
# =============================================================================


class RecordingEncoder:
    """Encoder double: returns a fixed header plus the frame count."""

    def __init__(self):
        self.calls = []

    def encode(self, buf: SampleBuffer, params) -> bytes:
        self.calls.append((buf, dict(params)))
        return b"ENC:" + str(buf.frames).encode() + b":" + str(buf.channels).encode()


class ShrinkingOptimizer:
    """Optimizer double: drops the last byte."""

    def optimize(self, data: bytes) -> bytes:
        return data[:-1]


class FailingOptimizer:
    def optimize(self, data: bytes) -> bytes:
        raise OptimizeError("optimizer exploded")


class CrashingDecoder:
    """Decoder double raising a foreign exception type."""

    def decode(self, data: bytes, tag) -> SampleBuffer:
        raise RuntimeError("decoder crashed")


class ConstantDecoder:
    """Decoder double returning a fixed buffer and counting calls."""

    def __init__(self, buf: SampleBuffer):
        self.buf = buf
        self.calls = 0

    def decode(self, data: bytes, tag) -> SampleBuffer:
        self.calls += 1
        return self.buf
