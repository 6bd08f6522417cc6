"""
Stage B: Decode

Responsibilities:
    - Hand raw bytes and their FormatTag to the decode adapter
    - Reject empty or non-finite audio
    - Record the source sample rate and channel count

Invariants:
    - Produces exactly one SampleBuffer
    - Releases the raw input bytes
"""

import numpy as np

from soundpress.config import PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import Stage, StageContract
from soundpress.errors import DecodeError
from soundpress.stages.base import call_adapter


CONTRACT = StageContract(
    name=Stage.DECODE,
    requires=frozenset({"raw", "format_tag"}),
    produces=frozenset({"buffer"}),
    consumes=frozenset({"raw"}),
)


def should_run(config: PipelineConfig) -> bool:
    return True


def run(ctx: RunContext) -> RunContext:
    """
    Decode ctx.raw into ctx.buffer.

    Raises:
        DecodeError: Adapter failure, empty audio, or NaN/Inf samples.
    """
    buf = call_adapter(DecodeError, "decode", ctx.adapters.decoder.decode, ctx.raw, ctx.format_tag)

    if buf.frames == 0:
        raise DecodeError(
            "Decoded audio is empty",
            detail={"format": ctx.format_tag.value},
        )
    if not np.all(np.isfinite(buf.samples)):
        raise DecodeError(
            "Decoded audio contains non-finite values (NaN or Inf)",
            detail={"format": ctx.format_tag.value},
        )

    return ctx.advance(
        buffer=buf,
        source_channels=buf.channels,
        source_sample_rate=buf.sample_rate,
    )
