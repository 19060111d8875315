"""Transactional upload coordinator.

Commits an upload session across two blob namespaces and the metadata
store in a fixed order:

    1. validate fields            (no I/O)
    2. put audio blob             -> push "delete audio"
    3. put cover blob (optional)  -> push "delete cover"
    4. insert catalog record

When a step fails, every compensation pushed so far runs newest-first
before the UploadError reaches the caller. The three store calls are
strictly sequential: each one's outcome decides whether the next runs and
what has to be undone.
"""

import hashlib
import logging
import threading
import time
from typing import Callable

from sonicshare.errors import UploadError
from sonicshare.models import (
    AudioStats,
    BlobNamespace,
    CatalogRecord,
    CommittedResource,
    MediaFile,
    TrackFields,
)
from sonicshare.saga import CommitPlan
from sonicshare.session import UploadSession
from sonicshare.stores.base import BlobStore, MetadataStore

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_COVER_URL = "https://picsum.photos/seed/{seed}/400/400"
DEFAULT_FALLBACK_ALBUM = "Unknown Album"


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class TransactionalUploadCoordinator:
    """Commit upload sessions with reverse-order compensation on failure."""

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        placeholder_cover_url: str = DEFAULT_PLACEHOLDER_COVER_URL,
        fallback_album: str = DEFAULT_FALLBACK_ALBUM,
        clock: Callable[[], int] = _wall_clock_ms,
    ) -> None:
        self._blobs = blob_store
        self._metadata = metadata_store
        self._placeholder_cover_url = placeholder_cover_url
        self._fallback_album = fallback_album
        self._clock = clock
        self._last_timestamp = 0
        self._timestamp_lock = threading.Lock()

    def commit(self, session: UploadSession) -> CatalogRecord:
        """Persist a session's audio, cover and catalog record.

        Args:
            session: A session in the Editing state.

        Returns:
            The catalog record as stored, with its assigned id.

        Raises:
            ValidationError: Title or artist is blank. Nothing was written.
            InvalidTransitionError: The session is not in Editing (e.g., a
                commit is already in flight).
            UploadError: A store write failed. Everything written before it
                has been rolled back (best-effort) and the session is back
                in Editing with its fields untouched.
        """
        fields = session.begin_commit()
        plan = CommitPlan()
        timestamp = self._next_timestamp()

        try:
            record = self._execute(session, fields, plan, timestamp)
        except UploadError:
            session.commit_failed()
            raise
        except Exception:
            logger.exception("Unexpected error during commit; rolling back")
            plan.rollback()
            session.commit_failed()
            raise

        plan.discard()
        session.commit_succeeded(record)
        logger.info(
            f"Committed '{record.title}' by {record.artist} as record {record.id} "
            f"for uploader {record.uploader_id}"
        )
        return record

    def _execute(
        self,
        session: UploadSession,
        fields: TrackFields,
        plan: CommitPlan,
        timestamp: int,
    ) -> CatalogRecord:
        source = session.source_file
        stats = session.stats
        if source is None or stats is None:
            raise RuntimeError(f"{session!r} has no analyzed source file")

        audio_url = self._put(
            plan,
            BlobNamespace.AUDIO,
            self.blob_key(session.uploader_id, timestamp, source.filename),
            source,
        )

        cover = session.cover_file
        if cover is not None:
            cover_url = self._put(
                plan,
                BlobNamespace.COVER,
                self.blob_key(session.uploader_id, timestamp, cover.filename),
                cover,
            )
        else:
            cover_url = self.placeholder_cover_url(source)

        record = self._build_record(session.uploader_id, fields, stats, audio_url, cover_url)
        try:
            return self._metadata.insert(record)
        except Exception as e:
            raise self._abort("metadata", plan, e) from e

    def _put(
        self,
        plan: CommitPlan,
        namespace: BlobNamespace,
        key: str,
        file: MediaFile,
    ) -> str:
        """Write one blob and push its compensation onto the plan."""
        try:
            url = self._blobs.put(namespace, key, file.data, file.content_type)
        except Exception as e:
            raise self._abort(namespace.value, plan, e) from e

        plan.record(
            CommittedResource(kind=namespace, key=key),
            lambda: self._blobs.delete(namespace, key),
        )
        return url

    def _abort(self, stage: str, plan: CommitPlan, cause: Exception) -> UploadError:
        logger.warning(
            f"{stage.capitalize()} stage failed: {cause}; "
            f"rolling back {len(plan)} committed resource(s)"
        )
        warnings = plan.rollback()
        return UploadError(
            stage,
            f"{stage.capitalize()} upload failed: {cause}",
            compensation_warnings=warnings,
        )

    def _build_record(
        self,
        uploader_id: str,
        fields: TrackFields,
        stats: AudioStats,
        audio_url: str,
        cover_url: str,
    ) -> CatalogRecord:
        return CatalogRecord(
            title=fields.title.strip(),
            artist=fields.artist.strip(),
            album=fields.album.strip() or self._fallback_album,
            lyrics=fields.lyrics,
            audio_url=audio_url,
            cover_url=cover_url,
            duration_seconds=stats.duration_seconds,
            format=stats.format,
            bitrate_kbps=stats.bitrate_kbps,
            sample_rate_hz=stats.sample_rate_hz,
            channel_count=stats.channel_count,
            uploader_id=uploader_id,
            play_count=0,
        )

    @staticmethod
    def blob_key(uploader_id: str, timestamp: int, filename: str) -> str:
        """Storage key: "{uploader_id}/{timestamp}_{filename}"."""
        return f"{uploader_id}/{timestamp}_{filename}"

    def placeholder_cover_url(self, source: MediaFile) -> str:
        """Deterministic placeholder art for tracks committed without a cover."""
        seed = hashlib.sha256(source.data).hexdigest()[:12]
        return self._placeholder_cover_url.format(seed=seed)

    def _next_timestamp(self) -> int:
        """Millisecond commit timestamp, strictly increasing per coordinator."""
        with self._timestamp_lock:
            now = self._clock()
            if now <= self._last_timestamp:
                now = self._last_timestamp + 1
            self._last_timestamp = now
            return now
