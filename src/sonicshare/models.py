"""Shared data models for the SonicShare upload core.

This module contains the dataclasses passed between components:
- MediaFile: an opaque in-memory handle to an audio or image blob
- AudioStats / TrackFields / AudioAnalysis: what analysis produces
- CatalogRecord: the persisted catalog entry
- CommittedResource: one successful blob write within a commit
"""

import mimetypes
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path


_FRACTION_PATTERN = re.compile(r"\.(\d{1,6})(?=\d*(?:[+-]\d{2}:\d{2})?$)")


def parse_timestamp(value) -> datetime | None:
    """Parse a database timestamp, or return None if it cannot be read.

    Postgres trims trailing zeros from fractional seconds (".12345+00:00")
    and may emit a trailing "Z"; both are normalized before parsing.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value.replace("Z", "+00:00")
    text = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1).ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class UploadState(Enum):
    """Lifecycle states of an upload session."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    EDITING = "editing"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


class BlobNamespace(Enum):
    """Blob store namespaces; also the kinds of resource a commit writes."""

    AUDIO = "audio"
    COVER = "cover"


@dataclass(frozen=True)
class MediaFile:
    """An audio or image blob selected by the user.

    Attributes:
        filename: Original filename including extension (e.g., "Artist - Title.flac").
        data: Raw file bytes.
        content_type: MIME type reported by the source, if known.
    """

    filename: str
    data: bytes = field(repr=False)
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: Path) -> "MediaFile":
        """Load a file from disk, guessing its content type from the name."""
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(filename=path.name, data=path.read_bytes(), content_type=content_type)

    @property
    def size(self) -> int:
        """Size of the blob in bytes."""
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot, or "" if there is none."""
        stem, dot, ext = self.filename.rpartition(".")
        if not dot or not stem or "/" in ext:
            return ""
        return ext.lower()


@dataclass(frozen=True)
class AudioStats:
    """Structural metadata extracted from an audio blob. Immutable once set."""

    duration_seconds: float
    sample_rate_hz: int
    channel_count: int
    bitrate_kbps: int
    format: str

    @property
    def is_stereo(self) -> bool:
        return self.channel_count == 2


@dataclass
class TrackFields:
    """User-editable track metadata."""

    title: str = ""
    artist: str = ""
    album: str = ""
    lyrics: str = ""

    NAMES = ("title", "artist", "album", "lyrics")

    def copy(self) -> "TrackFields":
        return replace(self)


@dataclass(frozen=True)
class AudioAnalysis:
    """Result of analyzing a dropped file: stats plus a filename-derived guess."""

    stats: AudioStats
    suggested: TrackFields


@dataclass(frozen=True)
class CommittedResource:
    """A blob that was written successfully during the current commit."""

    kind: BlobNamespace
    key: str


@dataclass(frozen=True)
class CatalogRecord:
    """A catalog entry as stored in the metadata store.

    `id` and `created_at` are assigned by the store on insert; records built
    by the coordinator carry None for both until then.
    """

    title: str
    artist: str
    album: str
    audio_url: str
    cover_url: str
    duration_seconds: float
    format: str
    bitrate_kbps: int
    sample_rate_hz: int
    channel_count: int
    uploader_id: str
    lyrics: str = ""
    play_count: int = 0
    id: str | None = None
    created_at: datetime | None = None

    def with_identity(self, record_id: str, created_at: datetime) -> "CatalogRecord":
        """Return a copy carrying the store-assigned identity."""
        return replace(self, id=record_id, created_at=created_at)

    def to_row(self) -> dict:
        """Map to the columns of the `songs` table (without store-assigned columns)."""
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "coverUrl": self.cover_url,
            "audioUrl": self.audio_url,
            "duration": self.duration_seconds,
            "lyrics": self.lyrics,
            "format": self.format,
            "bitrate": self.bitrate_kbps,
            "sampleRate": self.sample_rate_hz,
            "channels": self.channel_count,
            "uploaderId": self.uploader_id,
            "plays": self.play_count,
        }

    @classmethod
    def from_row(cls, row: dict) -> "CatalogRecord":
        """Build a record from a `songs` table row."""
        created_at = row.get("created_at")
        if not isinstance(created_at, datetime):
            created_at = parse_timestamp(created_at)

        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            title=row["title"],
            artist=row["artist"],
            album=row.get("album") or "",
            audio_url=row["audioUrl"],
            cover_url=row["coverUrl"],
            duration_seconds=float(row["duration"]),
            lyrics=row.get("lyrics") or "",
            format=row["format"],
            bitrate_kbps=int(row["bitrate"]),
            sample_rate_hz=int(row["sampleRate"]),
            channel_count=int(row["channels"]),
            uploader_id=row["uploaderId"],
            play_count=int(row.get("plays") or 0),
            created_at=created_at,
        )
