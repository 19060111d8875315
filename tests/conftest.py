import io

import pytest
from PIL import Image

from sonicshare.analysis import AudioFingerprintExtractor, DecodedAudio
from sonicshare.coordinator import TransactionalUploadCoordinator
from sonicshare.models import (
    AudioAnalysis,
    AudioStats,
    BlobNamespace,
    MediaFile,
    TrackFields,
)
from sonicshare.service import UploadService
from sonicshare.session import UploadSession
from sonicshare.stores import InMemoryBlobStore, InMemoryMetadataStore

FIXED_NOW_MS = 1_700_000_000_000


class StoreFailure(Exception):
    pass


class RecordingBlobStore(InMemoryBlobStore):
    """In-memory blob store that logs every call and can be told to fail."""

    def __init__(self, calls: list) -> None:
        super().__init__(base_url="https://blobs.test/")
        self.calls = calls
        self.fail_put: set[BlobNamespace] = set()
        self.fail_delete: set[BlobNamespace] = set()

    def put(self, namespace, key, data, content_type=None):
        self.calls.append(("put", namespace, key))
        if namespace in self.fail_put:
            raise StoreFailure(f"{namespace.value} bucket unavailable")
        return super().put(namespace, key, data, content_type)

    def delete(self, namespace, key):
        self.calls.append(("delete", namespace, key))
        if namespace in self.fail_delete:
            raise StoreFailure(f"cannot delete from {namespace.value}")
        super().delete(namespace, key)


class RecordingMetadataStore(InMemoryMetadataStore):
    def __init__(self, calls: list) -> None:
        super().__init__()
        self.calls = calls
        self.fail_insert = False

    def insert(self, record):
        self.calls.append(("insert", record))
        if self.fail_insert:
            raise StoreFailure("songs table unavailable")
        return super().insert(record)


class StubDecoder:
    def __init__(self, duration=180.0, sample_rate=44_100, channels=2, error=None):
        self.result = DecodedAudio(duration, sample_rate, channels)
        self.error = error
        self.calls = []

    def decode(self, data, format_hint=None):
        self.calls.append((len(data), format_hint))
        if self.error is not None:
            raise self.error
        return self.result


def make_audio(filename="Artist - Title.flac", size=1024, content_type="audio/flac") -> MediaFile:
    return MediaFile(filename=filename, data=b"\x00" * size, content_type=content_type)


def make_png(filename="cover.png") -> MediaFile:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 30, 30)).save(buf, format="PNG")
    return MediaFile(filename=filename, data=buf.getvalue())


def make_editing_session(
    uploader_id="u1",
    fields=None,
    cover: MediaFile | None = None,
) -> UploadSession:
    session = UploadSession(uploader_id)
    session.select_file(make_audio())
    session.analysis_succeeded(AudioAnalysis(
        stats=AudioStats(
            duration_seconds=200.5,
            sample_rate_hz=96_000,
            channel_count=2,
            bitrate_kbps=2304,
            format="FLAC",
        ),
        suggested=fields or TrackFields(title="Title", artist="Artist", album="Single"),
    ))
    if cover is not None:
        session.select_cover(cover)
    return session


@pytest.fixture
def calls():
    return []


@pytest.fixture
def blob_store(calls):
    return RecordingBlobStore(calls)


@pytest.fixture
def metadata_store(calls):
    return RecordingMetadataStore(calls)


@pytest.fixture
def coordinator(blob_store, metadata_store):
    return TransactionalUploadCoordinator(
        blob_store,
        metadata_store,
        placeholder_cover_url="https://placeholder.test/{seed}.jpg",
        clock=lambda: FIXED_NOW_MS,
    )


@pytest.fixture
def decoder():
    return StubDecoder()


@pytest.fixture
def service(coordinator, decoder):
    return UploadService("u1", coordinator, AudioFingerprintExtractor(decoder, default_album="Single"))
