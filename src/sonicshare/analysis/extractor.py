"""Turn a dropped audio file into structural stats and a metadata guess."""

import logging
import math

from sonicshare.analysis.decoder import Decoder, PydubDecoder
from sonicshare.analysis.filename import detect_format, guess_track_fields
from sonicshare.errors import AnalysisError
from sonicshare.models import AudioAnalysis, AudioStats, MediaFile

logger = logging.getLogger(__name__)


def estimate_bitrate_kbps(size_bytes: int, duration_seconds: float) -> int:
    """Average bitrate from file size and duration, rounded half-up.

    This is an estimate over the whole container (headers and artwork
    included), not the value stored in the stream headers.

    Raises:
        AnalysisError: If duration is not a positive finite number.
    """
    if not math.isfinite(duration_seconds) or duration_seconds <= 0:
        raise AnalysisError(f"Cannot estimate bitrate for duration {duration_seconds!r}")
    return math.floor(size_bytes * 8 / duration_seconds / 1000 + 0.5)


class AudioFingerprintExtractor:
    """Analyze audio blobs using an injected decoder."""

    def __init__(self, decoder: Decoder | None = None, default_album: str = "") -> None:
        self._decoder = decoder or PydubDecoder()
        self._default_album = default_album

    def analyze(self, file: MediaFile) -> AudioAnalysis:
        """Extract stats and a title/artist guess from an audio file.

        Args:
            file: The audio blob to analyze.

        Returns:
            AudioAnalysis with immutable stats and suggested fields.

        Raises:
            AnalysisError: If the decoder rejects the bytes or reports
                values that cannot describe real audio.
        """
        try:
            decoded = self._decoder.decode(file.data, file.extension or None)
        except Exception as e:
            logger.warning(f"Could not decode {file.filename}: {e}")
            raise AnalysisError(f"Could not analyze audio file structure: {file.filename}") from e

        if decoded.sample_rate_hz <= 0:
            raise AnalysisError(f"Invalid sample rate {decoded.sample_rate_hz} in {file.filename}")
        if decoded.channel_count < 1:
            raise AnalysisError(f"Invalid channel count {decoded.channel_count} in {file.filename}")

        stats = AudioStats(
            duration_seconds=float(decoded.duration_seconds),
            sample_rate_hz=int(decoded.sample_rate_hz),
            channel_count=int(decoded.channel_count),
            bitrate_kbps=estimate_bitrate_kbps(file.size, decoded.duration_seconds),
            format=detect_format(file.filename),
        )
        logger.info(
            f"Analyzed {file.filename}: {stats.duration_seconds:.2f}s, {stats.sample_rate_hz}Hz, "
            f"{stats.channel_count}ch, ~{stats.bitrate_kbps}kbps {stats.format}"
        )
        return AudioAnalysis(
            stats=stats,
            suggested=guess_track_fields(file.filename, album=self._default_album),
        )
