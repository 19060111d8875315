"""Filename heuristics for the initial title/artist guess and container format."""

import re

from sonicshare.models import TrackFields

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_FORMAT = "UNKNOWN"

# Separator used by most rippers and stores: "Artist - Title.flac"
_ARTIST_TITLE_SEPARATOR = " - "
_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")

# Extensions reported as the container format. Anything else is stored as
# UNKNOWN; the decoder (ffmpeg) still decides whether the audio is readable.
KNOWN_AUDIO_FORMATS = frozenset({
    "AAC",
    "AC3",
    "AIF",
    "AIFF",
    "ALAC",
    "AMR",
    "APE",
    "AU",
    "CAF",
    "DFF",
    "DSF",
    "FLAC",
    "M4A",
    "MKA",
    "MP2",
    "MP3",
    "OGA",
    "OGG",
    "OPUS",
    "SPX",
    "TTA",
    "WAV",
    "WEBM",
    "WMA",
    "WV",
})


def strip_extension(filename: str) -> str:
    """Remove the final extension from a filename ("a.b.flac" -> "a.b")."""
    return _EXTENSION_PATTERN.sub("", filename)


def detect_format(filename: str) -> str:
    """Upper-cased container format from the extension, or "UNKNOWN"."""
    match = _EXTENSION_PATTERN.search(filename)
    if not match:
        return UNKNOWN_FORMAT
    ext = match.group(0)[1:].upper()
    return ext if ext in KNOWN_AUDIO_FORMATS else UNKNOWN_FORMAT


def guess_track_fields(filename: str, album: str = "") -> TrackFields:
    """Guess title and artist from a filename.

    "Artist - Title.flac" yields artist "Artist" and title "Title"; anything
    without the separator becomes the title with an unknown artist. When the
    separator appears more than once only the first two segments are used.

    Args:
        filename: Original filename including extension.
        album: Album to seed the result with.

    Returns:
        TrackFields with title, artist and album set and empty lyrics.
    """
    stem = strip_extension(filename)
    parts = stem.split(_ARTIST_TITLE_SEPARATOR)
    if len(parts) >= 2:
        artist, title = parts[0].strip(), parts[1].strip()
    else:
        artist, title = UNKNOWN_ARTIST, stem.strip()
    return TrackFields(title=title, artist=artist, album=album)
