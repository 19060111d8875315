"""Decoder protocol and the pydub-backed default implementation."""

import io
import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pydub import AudioSegment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedAudio:
    """Structural properties reported by a decoder."""

    duration_seconds: float
    sample_rate_hz: int
    channel_count: int


@runtime_checkable
class Decoder(Protocol):
    """Protocol that audio decoders must implement."""

    def decode(self, data: bytes, format_hint: str | None = None) -> DecodedAudio:
        """Decode an audio blob.

        Args:
            data: Raw file bytes.
            format_hint: Lower-cased container extension (e.g., "flac"), if known.

        Returns:
            DecodedAudio with exact duration, sample rate and channel count.

        Raises:
            Exception: Any error if the bytes cannot be parsed as audio.
        """
        ...


class PydubDecoder:
    """Decode audio with pydub.

    WAV is parsed in-process; every other container goes through ffmpeg,
    which must be on PATH.
    """

    def decode(self, data: bytes, format_hint: str | None = None) -> DecodedAudio:
        audio = AudioSegment.from_file(io.BytesIO(data), format=format_hint or None)
        frame_count = audio.frame_count()
        duration = frame_count / audio.frame_rate if audio.frame_rate else 0.0
        logger.debug(
            f"Decoded {len(data)} bytes: {frame_count:.0f} frames @ {audio.frame_rate}Hz, "
            f"{audio.channels}ch"
        )
        return DecodedAudio(
            duration_seconds=duration,
            sample_rate_hz=audio.frame_rate,
            channel_count=audio.channels,
        )
