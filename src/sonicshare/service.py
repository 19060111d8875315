"""Upload API exposed to the UI layer.

Wraps one UploadSession at a time together with the extractor and the
coordinator. A completed or reset session is replaced by a fresh one; a
session never goes back to accepting a new file once it completes.
"""

import logging

from sonicshare.analysis import AudioFingerprintExtractor, PydubDecoder
from sonicshare.artwork import inspect_cover
from sonicshare.config import Settings, get_settings
from sonicshare.coordinator import TransactionalUploadCoordinator
from sonicshare.errors import AnalysisError, InvalidTransitionError, ValidationError
from sonicshare.lyrics import LyricsClient
from sonicshare.models import AudioAnalysis, CatalogRecord, MediaFile, UploadState
from sonicshare.session import UploadSession
from sonicshare.stores import build_stores

logger = logging.getLogger(__name__)

# Accepted even when the source reports no audio/* content type.
ACCEPTED_AUDIO_EXTENSIONS = frozenset({"flac", "mp3", "wav"})


def is_supported_audio(file: MediaFile) -> bool:
    """True if the file looks like audio by content type or extension."""
    if file.content_type and file.content_type.lower().startswith("audio/"):
        return True
    return file.extension in ACCEPTED_AUDIO_EXTENSIONS


class UploadService:
    """Single-user upload workflow: analyze, edit, submit, reset."""

    def __init__(
        self,
        uploader_id: str,
        coordinator: TransactionalUploadCoordinator,
        extractor: AudioFingerprintExtractor,
        lyrics: LyricsClient | None = None,
        closeables: tuple = (),
    ) -> None:
        self._uploader_id = uploader_id
        self._coordinator = coordinator
        self._extractor = extractor
        self._lyrics = lyrics
        self._session = UploadSession(uploader_id)
        self._closeables = closeables

    @classmethod
    def from_settings(cls, uploader_id: str, settings: Settings | None = None) -> "UploadService":
        """Wire up the configured stores, the pydub decoder and the lyrics client."""
        s = settings or get_settings()
        blob_store, metadata_store = build_stores(s)
        coordinator = TransactionalUploadCoordinator(
            blob_store,
            metadata_store,
            placeholder_cover_url=s.placeholder_cover_url,
            fallback_album=s.fallback_album,
        )
        extractor = AudioFingerprintExtractor(PydubDecoder(), default_album=s.default_album)
        lyrics = LyricsClient(s)
        return cls(
            uploader_id,
            coordinator,
            extractor,
            lyrics,
            closeables=(blob_store, metadata_store, lyrics),
        )

    def close(self) -> None:
        """Release the HTTP connections held by the stores and the lyrics client."""
        for resource in self._closeables:
            resource.close()

    def __enter__(self) -> "UploadService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def session(self) -> UploadSession:
        return self._session

    def start_session(self, file: MediaFile) -> AudioAnalysis:
        """Select an audio file and analyze it.

        Returns:
            The analysis; the session is now in Editing with the suggested fields.

        Raises:
            ValidationError: The file is not an audio file. Session stays Idle.
            AnalysisError: The audio could not be analyzed. Session back to Idle.
            InvalidTransitionError: An upload is already under way.
        """
        if self._session.state is UploadState.COMPLETED:
            self._session = UploadSession(self._uploader_id)
        if self._session.state is not UploadState.IDLE:
            raise InvalidTransitionError("select a file", self._session.state)
        if not is_supported_audio(file):
            raise ValidationError(f"Please upload a valid FLAC or audio file ({file.filename})")

        self._session.select_file(file)
        try:
            analysis = self._extractor.analyze(file)
        except AnalysisError:
            self._session.analysis_failed()
            raise
        self._session.analysis_succeeded(analysis)
        return analysis

    def update_field(self, name: str, value: str) -> None:
        self._session.edit_field(name, value)

    def set_cover(self, file: MediaFile) -> None:
        """Attach cover art. Non-images are rejected and the previous cover kept."""
        if self._session.state is not UploadState.EDITING:
            raise InvalidTransitionError("select a cover", self._session.state)
        self._session.select_cover(inspect_cover(file))

    def fetch_lyrics(self) -> str | None:
        """Look up lyrics for the current title and artist and fill them in.

        Returns:
            The lyrics, or None if none were found (the field is left as is).
        """
        if self._lyrics is None:
            raise RuntimeError("No lyrics client configured")
        if self._session.state is not UploadState.EDITING:
            raise InvalidTransitionError("fetch lyrics", self._session.state)

        fields = self._session.fields
        if not fields.title.strip() or not fields.artist.strip():
            raise ValidationError("Title and artist are required to look up lyrics")

        lyrics = self._lyrics.fetch(fields.artist, fields.title)
        if lyrics is not None:
            self._session.edit_field("lyrics", lyrics)
        return lyrics

    def submit(self) -> CatalogRecord:
        """Commit the current session. See TransactionalUploadCoordinator.commit."""
        return self._coordinator.commit(self._session)

    def reset(self) -> None:
        """Discard the current session unconditionally and start a fresh one."""
        logger.debug(f"Resetting {self._session!r}")
        self._session.discard()
        self._session = UploadSession(self._uploader_id)
