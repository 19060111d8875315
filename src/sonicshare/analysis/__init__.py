"""Audio analysis: decoding, bitrate estimation and filename heuristics."""

from sonicshare.analysis.decoder import DecodedAudio, Decoder, PydubDecoder
from sonicshare.analysis.extractor import AudioFingerprintExtractor, estimate_bitrate_kbps
from sonicshare.analysis.filename import (
    UNKNOWN_ARTIST,
    UNKNOWN_FORMAT,
    detect_format,
    guess_track_fields,
)

__all__ = [
    "AudioFingerprintExtractor",
    "DecodedAudio",
    "Decoder",
    "PydubDecoder",
    "UNKNOWN_ARTIST",
    "UNKNOWN_FORMAT",
    "detect_format",
    "estimate_bitrate_kbps",
    "guess_track_fields",
]
