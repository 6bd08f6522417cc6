"""
SoundPress v1 — Audio Compression Pipeline for Mass Storage

Converts arbitrary input audio into compact Ogg Vorbis, optionally
extracting a YIN pitch track along the way.

Pipeline Stages (fixed order):
    0. Configure  (validate run configuration)
    A. Detect     (container/codec sniffing)
    B. Decode     (adapter → SampleBuffer)
    C. Analyze    (optional, YIN pitch)
    D. Reduce     (optional, mean downmix to mono)
    E. Resample   (optional)
    F. Encode     (adapter → Ogg Vorbis bytes)
    G. Optimize   (optional, adapter remux)

Invariants:
    - Stages execute in order; optional stages are skipped, never reordered
    - A failed run names the failing stage and never returns partial output
    - Pitch analysis never mutates the decoded buffer
"""

from soundpress.audio import reduce_to_mono, resample
from soundpress.buffer import SampleBuffer
from soundpress.config import PipelineConfig
from soundpress.formats import FormatTag, detect
from soundpress.pipeline import Failure, PipelineResult, Stage, Success, run, run_many
from soundpress.pitch import PitchEstimate, PitchPoint, PitchReport, analyze, summarize

__version__ = "1.0.0"

__all__ = [
    "FormatTag",
    "Failure",
    "PipelineConfig",
    "PipelineResult",
    "PitchEstimate",
    "PitchPoint",
    "PitchReport",
    "SampleBuffer",
    "Stage",
    "Success",
    "analyze",
    "detect",
    "reduce_to_mono",
    "resample",
    "run",
    "run_many",
    "summarize",
]
