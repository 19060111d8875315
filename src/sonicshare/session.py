"""Upload session state machine.

    Idle --select_file--> Analyzing
    Analyzing --analysis_succeeded--> Editing
    Analyzing --analysis_failed--> Idle
    Editing --edit_field / select_cover--> Editing
    Editing --begin_commit--> Committing    (title and artist required)
    Committing --commit_succeeded--> Completed
    Committing --commit_failed--> Editing   (fields and stats preserved)

Completed is terminal. `discard()` releases the file handles from any state;
a session discarded mid-commit ends in Failed.
"""

import logging
import threading

from sonicshare.errors import InvalidTransitionError, ValidationError
from sonicshare.models import (
    AudioAnalysis,
    AudioStats,
    CatalogRecord,
    MediaFile,
    TrackFields,
    UploadState,
)

logger = logging.getLogger(__name__)


def validate_fields(fields: TrackFields) -> None:
    """Raise ValidationError unless title and artist are non-blank."""
    missing = [name for name in ("title", "artist") if not getattr(fields, name).strip()]
    if missing:
        raise ValidationError(
            f"Please provide at least a title and artist name (missing: {', '.join(missing)})"
        )


class UploadSession:
    """Mutable, single-owner state of one upload attempt."""

    def __init__(self, uploader_id: str) -> None:
        if not uploader_id or not uploader_id.strip():
            raise ValidationError("Uploader ID is required")
        self.uploader_id = uploader_id
        self._state = UploadState.IDLE
        self._source_file: MediaFile | None = None
        self._cover_file: MediaFile | None = None
        self._stats: AudioStats | None = None
        self._fields = TrackFields()
        self._record: CatalogRecord | None = None
        self._discarded = False
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        name = self._source_file.filename if self._source_file else None
        return f"UploadSession(uploader={self.uploader_id!r}, state={self._state.value}, file={name!r})"

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def source_file(self) -> MediaFile | None:
        return self._source_file

    @property
    def cover_file(self) -> MediaFile | None:
        return self._cover_file

    @property
    def stats(self) -> AudioStats | None:
        return self._stats

    @property
    def fields(self) -> TrackFields:
        """A copy of the current fields; mutate through `edit_field`."""
        return self._fields.copy()

    @property
    def record(self) -> CatalogRecord | None:
        """The committed catalog record once the session is Completed."""
        return self._record

    @property
    def discarded(self) -> bool:
        return self._discarded

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _require(self, operation: str, *states: UploadState) -> None:
        if self._discarded or self._state not in states:
            raise InvalidTransitionError(operation, self._state)

    def select_file(self, file: MediaFile) -> None:
        with self._lock:
            self._require("select a file", UploadState.IDLE)
            self._source_file = file
            self._state = UploadState.ANALYZING

    def analysis_succeeded(self, analysis: AudioAnalysis) -> None:
        with self._lock:
            self._require("finish analysis", UploadState.ANALYZING)
            self._stats = analysis.stats
            self._fields = analysis.suggested.copy()
            self._state = UploadState.EDITING

    def analysis_failed(self) -> None:
        with self._lock:
            self._require("fail analysis", UploadState.ANALYZING)
            self._source_file = None
            self._state = UploadState.IDLE

    def edit_field(self, name: str, value: str) -> None:
        if name not in TrackFields.NAMES:
            raise ValidationError(f"Unknown field: {name!r}")
        if not isinstance(value, str):
            raise ValidationError(f"Field {name!r} must be a string")
        with self._lock:
            self._require(f"edit {name}", UploadState.EDITING)
            setattr(self._fields, name, value)

    def select_cover(self, file: MediaFile) -> None:
        with self._lock:
            self._require("select a cover", UploadState.EDITING)
            self._cover_file = file

    def begin_commit(self) -> TrackFields:
        """Enter Committing and return a snapshot of the fields to commit.

        Validation failures leave the session in Editing. A second call while
        a commit is in flight raises InvalidTransitionError.
        """
        with self._lock:
            self._require("submit", UploadState.EDITING)
            validate_fields(self._fields)
            self._state = UploadState.COMMITTING
            return self._fields.copy()

    def commit_succeeded(self, record: CatalogRecord) -> None:
        with self._lock:
            if self._discarded:
                logger.info(f"Session discarded mid-commit; record {record.id} kept in catalog")
                return
            self._require("complete commit", UploadState.COMMITTING)
            self._record = record
            self._state = UploadState.COMPLETED

    def commit_failed(self) -> None:
        with self._lock:
            if self._discarded:
                return
            self._require("fail commit", UploadState.COMMITTING)
            self._state = UploadState.EDITING

    def discard(self) -> None:
        """Release file handles and retire the session, whatever its state.

        A session abandoned while its commit is in flight ends in Failed; the
        outcome of the calls already issued is ignored.
        """
        with self._lock:
            self._discarded = True
            self._source_file = None
            self._cover_file = None
            if self._state is UploadState.COMPLETED:
                return
            self._stats = None
            if self._state is UploadState.COMMITTING:
                self._state = UploadState.FAILED
            else:
                self._state = UploadState.IDLE
