"""
SoundPress v1 Codec Adapters.

Responsibilities:
- Define the decode / encode / optimize contracts the pipeline depends on
- Provide default implementations backed by soundfile (libsndfile) and
  the ffmpeg command-line tools

Library Stack:
    - soundfile: decode of libsndfile-native formats, Ogg Vorbis encode
    - ffmpeg / ffprobe (subprocess): decode of MP4/AAC/Matroska, Ogg remux

Invariants:
- The pipeline only sees the Decoder/Encoder/Optimizer protocols
- Every adapter failure is raised as DecodeError/EncodeError/OptimizeError,
  chained to the underlying exception
- Adapters hold no per-run state and may be shared across threads
"""

import io
import json
import logging
import shutil
import subprocess
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import soundfile as sf

from soundpress.audio import ENCODE_BLOCK_FRAMES, iter_blocks
from soundpress.buffer import SampleBuffer
from soundpress.errors import DecodeError, EncodeError, OptimizeError
from soundpress.formats import FormatTag

logger = logging.getLogger(__name__)


# =============================================================================
# Contracts
# =============================================================================


class Decoder(Protocol):
    def decode(self, data: bytes, tag: FormatTag) -> SampleBuffer:
        """Decode raw bytes of the given kind. Raises DecodeError."""
        ...


class Encoder(Protocol):
    def encode(self, buf: SampleBuffer, params: Mapping[str, Any]) -> bytes:
        """Encode a buffer. Raises EncodeError."""
        ...


class Optimizer(Protocol):
    def optimize(self, data: bytes) -> bytes:
        """Rewrite encoded bytes. Raises OptimizeError."""
        ...


# =============================================================================
# Decoding
# =============================================================================


class SoundfileDecoder:
    """Decode any libsndfile-native format from memory."""

    def decode(self, data: bytes, tag: FormatTag) -> SampleBuffer:
        try:
            frames, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (sf.SoundFileError, RuntimeError) as e:
            raise DecodeError(
                f"Failed to decode {tag.value} input: {e}",
                detail={"format": tag.value, "decoder": "soundfile", "error": str(e)},
            ) from e
        return SampleBuffer.from_frames(frames, int(sr))


class FfmpegDecoder:
    """
    Decode through the ffmpeg CLI into float32 PCM.

    Probes sample rate and channels with ffprobe, then decodes to raw
    f32le on stdout. Input is staged in a temporary file because several
    containers (MP4 with a trailing moov atom) need a seekable source.
    """

    def __init__(self, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe"):
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    def decode(self, data: bytes, tag: FormatTag) -> SampleBuffer:
        for tool in (self.ffmpeg, self.ffprobe):
            if shutil.which(tool) is None:
                raise DecodeError(
                    f"{tool} not found in PATH; it is required to decode {tag.value}",
                    detail={"format": tag.value, "decoder": "ffmpeg"},
                )

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / f"input.{tag.value}"
            path.write_bytes(data)
            try:
                sr, channels = self._probe(path)
                samples = self._decode_f32(path, sr, channels)
            except (subprocess.CalledProcessError, ValueError, KeyError) as e:
                raise DecodeError(
                    f"Failed to decode {tag.value} input via ffmpeg: {e}",
                    detail={"format": tag.value, "decoder": "ffmpeg", "error": str(e)},
                ) from e

        return SampleBuffer(samples, sr, channels)

    def _probe(self, path: Path) -> tuple[int, int]:
        """Return (sample_rate, channels) of the first audio stream."""
        cmd = [
            self.ffprobe,
            "-v", "error",
            "-select_streams", "a:0",
            "-show_entries", "stream=sample_rate,channels",
            "-of", "json",
            str(path),
        ]
        res = subprocess.run(cmd, capture_output=True, text=True, check=True)
        streams = json.loads(res.stdout).get("streams", [])
        if not streams:
            raise ValueError("no audio stream found")
        stream = streams[0]
        return int(stream["sample_rate"]), int(stream["channels"])

    def _decode_f32(self, path: Path, sr: int, channels: int) -> np.ndarray:
        cmd = [
            self.ffmpeg,
            "-v", "error",
            "-i", str(path),
            "-map", "0:a:0",
            "-f", "f32le",
            "-acodec", "pcm_f32le",
            "-ac", str(channels),
            "-ar", str(sr),
            "pipe:1",
        ]
        res = subprocess.run(cmd, capture_output=True, check=True)
        if not res.stdout:
            raise ValueError("ffmpeg returned no audio data")
        return np.frombuffer(res.stdout, dtype=np.float32)


class DefaultDecoder:
    """Route libsndfile-native formats to soundfile, the rest to ffmpeg."""

    def __init__(self, native: Decoder | None = None, fallback: Decoder | None = None):
        self.native = native or SoundfileDecoder()
        self.fallback = fallback or FfmpegDecoder()

    def decode(self, data: bytes, tag: FormatTag) -> SampleBuffer:
        decoder = self.native if tag.libsndfile_native else self.fallback
        logger.debug("Decoding %s with %s", tag.value, type(decoder).__name__)
        return decoder.decode(data, tag)


# =============================================================================
# Encoding
# =============================================================================


class VorbisEncoder:
    """
    Encode to Ogg Vorbis with libsndfile.

    Recognized params:
        quality: float in [0, 1], higher is better and larger (default 0.4)
    """

    PARAM_KEYS = frozenset({"quality"})

    def __init__(self, default_quality: float = 0.4, block_frames: int = ENCODE_BLOCK_FRAMES):
        self.default_quality = default_quality
        self.block_frames = block_frames

    def encode(self, buf: SampleBuffer, params: Mapping[str, Any]) -> bytes:
        unknown = set(params) - self.PARAM_KEYS
        if unknown:
            raise EncodeError(
                f"Unknown encoder params: {sorted(unknown)}",
                detail={"unknown": sorted(unknown), "accepted": sorted(self.PARAM_KEYS)},
            )
        quality = float(params.get("quality", self.default_quality))
        if not 0.0 <= quality <= 1.0:
            raise EncodeError(
                f"quality must be within [0, 1], got {quality}",
                detail={"quality": quality},
            )

        out = io.BytesIO()
        try:
            with sf.SoundFile(
                out,
                mode="w",
                samplerate=buf.sample_rate,
                channels=buf.channels,
                format="OGG",
                subtype="VORBIS",
                compression_level=1.0 - quality,
            ) as f:
                # libsndfile's Vorbis writer is fed in small blocks
                for block in iter_blocks(buf, self.block_frames):
                    f.write(block)
        except (sf.SoundFileError, RuntimeError, ValueError) as e:
            raise EncodeError(
                f"Failed to encode Ogg Vorbis: {e}",
                detail={"encoder": "soundfile", "error": str(e)},
            ) from e

        return out.getvalue()


# =============================================================================
# Optimizing
# =============================================================================


class FfmpegRemuxOptimizer:
    """
    Stream-copy remux of an Ogg file through ffmpeg.

    Rewrites the page layout and drops container metadata without touching
    the Vorbis packets. The remuxed bytes are kept only when smaller.
    """

    def __init__(self, ffmpeg: str = "ffmpeg", timeout: float | None = 120.0):
        self.ffmpeg = ffmpeg
        self.timeout = timeout

    def optimize(self, data: bytes) -> bytes:
        if shutil.which(self.ffmpeg) is None:
            raise OptimizeError(
                f"{self.ffmpeg} not found in PATH",
                detail={"optimizer": "ffmpeg"},
            )

        cmd = [
            self.ffmpeg,
            "-v", "error",
            "-f", "ogg",
            "-i", "pipe:0",
            "-map", "0:a",
            "-map_metadata", "-1",
            "-c", "copy",
            "-f", "ogg",
            "pipe:1",
        ]
        try:
            res = subprocess.run(cmd, input=data, capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise OptimizeError(
                f"ffmpeg remux timed out after {self.timeout}s",
                detail={"optimizer": "ffmpeg"},
            ) from e

        if res.returncode != 0 or not res.stdout:
            stderr = res.stderr.decode("utf-8", errors="replace").strip()
            raise OptimizeError(
                f"ffmpeg remux failed (exit {res.returncode}): {stderr}",
                detail={"optimizer": "ffmpeg", "returncode": res.returncode},
            )

        if len(res.stdout) >= len(data):
            logger.debug("Remux saved nothing (%d >= %d bytes)", len(res.stdout), len(data))
            return data
        return res.stdout


# =============================================================================
# Bundle
# =============================================================================


@dataclass(frozen=True)
class Adapters:
    """The three collaborators a pipeline run uses."""

    decoder: Decoder = field(default_factory=DefaultDecoder)
    encoder: Encoder = field(default_factory=VorbisEncoder)
    optimizer: Optimizer = field(default_factory=FfmpegRemuxOptimizer)
