"""
SoundPress v1 Format Detection.

Responsibilities:
- Enumerate supported container/codec kinds (FormatTag)
- Sniff the leading bytes of an input and pick its FormatTag

Invariants:
- At most PROBE_SIZE leading bytes are inspected
- Signatures are checked in a fixed priority order; first match wins
- Signatures are pairwise disjoint
- Detection never mutates its input
"""

from collections.abc import Callable
from enum import Enum

from soundpress.errors import TruncatedInputError, UnrecognizedFormatError


# =============================================================================
# Constants (FROZEN)
# =============================================================================

PROBE_SIZE = 64
MIN_SIGNATURE_SIZE = 4  # shortest signature: 4-byte magic or MPEG frame header

_OGG_PAGE_HEADER_SIZE = 27


# =============================================================================
# FormatTag
# =============================================================================


class FormatTag(Enum):
    """Supported input kinds."""

    WAV = "wav"
    RF64 = "rf64"
    AIFF = "aiff"
    CAF = "caf"
    FLAC = "flac"
    OGG_VORBIS = "ogg_vorbis"
    OGG_OPUS = "ogg_opus"
    OGG_FLAC = "ogg_flac"
    MP3 = "mp3"
    AAC = "aac"
    MP4 = "mp4"
    MATROSKA = "matroska"

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def libsndfile_native(self) -> bool:
        """Whether libsndfile (via soundfile) can decode this kind itself."""
        return self not in _FFMPEG_ONLY


_MIME_TYPES = {
    FormatTag.WAV: "audio/wav",
    FormatTag.RF64: "audio/wav",
    FormatTag.AIFF: "audio/aiff",
    FormatTag.CAF: "audio/x-caf",
    FormatTag.FLAC: "audio/flac",
    FormatTag.OGG_VORBIS: "audio/ogg",
    FormatTag.OGG_OPUS: "audio/ogg",
    FormatTag.OGG_FLAC: "audio/ogg",
    FormatTag.MP3: "audio/mpeg",
    FormatTag.AAC: "audio/aac",
    FormatTag.MP4: "audio/mp4",
    FormatTag.MATROSKA: "audio/x-matroska",
}

_FFMPEG_ONLY = frozenset({FormatTag.AAC, FormatTag.MP4, FormatTag.MATROSKA})


# =============================================================================
# Signature Matchers
# =============================================================================


def _match_riff(header: bytes) -> FormatTag | None:
    if header[8:12] != b"WAVE":
        return None
    if header[:4] == b"RIFF":
        return FormatTag.WAV
    if header[:4] == b"RF64":
        return FormatTag.RF64
    return None


def _match_aiff(header: bytes) -> FormatTag | None:
    if header[:4] == b"FORM" and header[8:12] in (b"AIFF", b"AIFC"):
        return FormatTag.AIFF
    return None


def _match_caf(header: bytes) -> FormatTag | None:
    return FormatTag.CAF if header[:4] == b"caff" else None


def _match_flac(header: bytes) -> FormatTag | None:
    return FormatTag.FLAC if header[:4] == b"fLaC" else None


def _match_ogg(header: bytes) -> FormatTag | None:
    """
    Match an Ogg stream and identify its codec from the first packet.

    The beginning-of-stream page carries only the codec identification
    header, so its first bytes follow the page's segment table.
    """
    if header[:4] != b"OggS":
        return None
    if len(header) < _OGG_PAGE_HEADER_SIZE:
        raise TruncatedInputError(
            "Ogg page header is truncated",
            detail={"available": len(header), "required": _OGG_PAGE_HEADER_SIZE},
        )

    packet_start = _OGG_PAGE_HEADER_SIZE + header[26]
    packet = header[packet_start:packet_start + 8]
    if len(packet) < 8:
        if packet_start + 8 > PROBE_SIZE:
            # Identification packet lies beyond the probe window
            return None
        raise TruncatedInputError(
            "Ogg identification packet is truncated",
            detail={"available": len(header), "required": packet_start + 8},
        )

    if packet[:7] == b"\x01vorbis":
        return FormatTag.OGG_VORBIS
    if packet == b"OpusHead":
        return FormatTag.OGG_OPUS
    if packet[:5] == b"\x7fFLAC":
        return FormatTag.OGG_FLAC
    return None


def _match_matroska(header: bytes) -> FormatTag | None:
    return FormatTag.MATROSKA if header[:4] == b"\x1a\x45\xdf\xa3" else None


def _match_mp4(header: bytes) -> FormatTag | None:
    return FormatTag.MP4 if header[4:8] == b"ftyp" else None


def _match_id3(header: bytes) -> FormatTag | None:
    # ID3v2 tag: "ID3", major version 2-4, revision byte
    if header[:3] == b"ID3" and header[3] in (2, 3, 4):
        return FormatTag.MP3
    return None


def _match_mpeg_frame(header: bytes) -> FormatTag | None:
    """MPEG-1/2/2.5 audio frame header with non-zero layer bits."""
    if header[0] != 0xFF or (header[1] & 0xE0) != 0xE0:
        return None
    version = (header[1] >> 3) & 0x03
    layer = (header[1] >> 1) & 0x03
    bitrate_index = header[2] >> 4
    rate_index = (header[2] >> 2) & 0x03
    if version == 0x01 or layer == 0x00:
        return None
    if bitrate_index == 0x0F or rate_index == 0x03:
        return None
    return FormatTag.MP3


def _match_adts(header: bytes) -> FormatTag | None:
    """ADTS AAC: 12-bit sync word with layer bits fixed at 00."""
    if header[0] == 0xFF and (header[1] & 0xF6) == 0xF0:
        return FormatTag.AAC
    return None


# Priority order; matchers must stay pairwise disjoint
SIGNATURES: list[tuple[str, Callable[[bytes], FormatTag | None]]] = [
    ("riff", _match_riff),
    ("aiff", _match_aiff),
    ("caf", _match_caf),
    ("flac", _match_flac),
    ("ogg", _match_ogg),
    ("matroska", _match_matroska),
    ("mp4", _match_mp4),
    ("id3", _match_id3),
    ("mpeg_frame", _match_mpeg_frame),
    ("adts", _match_adts),
]


# =============================================================================
# Detection
# =============================================================================


def detect(data: bytes) -> FormatTag:
    """
    Detect the container/codec of raw audio bytes.

    Args:
        data: Raw input bytes (only the first PROBE_SIZE are read)

    Returns:
        Matching FormatTag.

    Raises:
        TruncatedInputError: Fewer than MIN_SIGNATURE_SIZE bytes, or an
            Ogg header cut short before its codec identification
        UnrecognizedFormatError: No signature matched
    """
    header = bytes(data[:PROBE_SIZE])

    if len(header) < MIN_SIGNATURE_SIZE:
        raise TruncatedInputError(
            f"Need at least {MIN_SIGNATURE_SIZE} bytes to detect format, got {len(header)}",
            detail={"available": len(header), "required": MIN_SIGNATURE_SIZE},
        )

    for _name, matcher in SIGNATURES:
        tag = matcher(header)
        if tag is not None:
            return tag

    raise UnrecognizedFormatError(
        "No known audio signature matched",
        detail={"prefix_hex": header[:16].hex()},
    )
