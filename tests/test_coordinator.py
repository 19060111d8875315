import json

import httpx
import pytest

from sonicshare.config import Settings
from sonicshare.coordinator import TransactionalUploadCoordinator
from sonicshare.errors import CompensationWarning, UploadError, ValidationError
from sonicshare.models import BlobNamespace, TrackFields, UploadState
from sonicshare.stores import InMemoryBlobStore, InMemoryMetadataStore, SupabaseMetadataStore
from tests.conftest import FIXED_NOW_MS, StoreFailure, make_editing_session, make_png

AUDIO_KEY = f"u1/{FIXED_NOW_MS}_Artist - Title.flac"
COVER_KEY = f"u1/{FIXED_NOW_MS}_cover.png"


def _ops(calls):
    return [(c[0], c[1]) if c[0] != "insert" else ("insert",) for c in calls]


@pytest.mark.parametrize("title, artist", [("", "Artist"), ("Title", ""), ("   ", "Artist"), ("Title", "\t ")])
def test_validation_gate_issues_no_store_calls(coordinator, calls, title, artist):
    session = make_editing_session(fields=TrackFields(title=title, artist=artist))
    with pytest.raises(ValidationError):
        coordinator.commit(session)
    assert calls == []
    assert session.state is UploadState.EDITING


def test_all_writes_succeed(coordinator, blob_store, metadata_store, calls):
    session = make_editing_session(cover=make_png())

    record = coordinator.commit(session)

    assert _ops(calls) == [
        ("put", BlobNamespace.AUDIO),
        ("put", BlobNamespace.COVER),
        ("insert",),
    ]
    assert record.audio_url == blob_store.url_for(BlobNamespace.AUDIO, AUDIO_KEY)
    assert record.cover_url == blob_store.url_for(BlobNamespace.COVER, COVER_KEY)
    assert record.play_count == 0
    assert record.id is not None
    assert record.uploader_id == "u1"
    assert record.sample_rate_hz == 96_000
    assert record.format == "FLAC"
    assert metadata_store.records == [record]
    assert session.state is UploadState.COMPLETED
    assert session.record == record


def test_audio_key_layout(coordinator, calls):
    coordinator.commit(make_editing_session())
    assert calls[0] == ("put", BlobNamespace.AUDIO, AUDIO_KEY)


def test_insert_never_precedes_audio_put(coordinator, calls):
    coordinator.commit(make_editing_session())
    ops = _ops(calls)
    assert ops.index(("put", BlobNamespace.AUDIO)) < ops.index(("insert",))


def test_audio_failure_compensates_nothing(coordinator, blob_store, calls):
    blob_store.fail_put.add(BlobNamespace.AUDIO)
    session = make_editing_session(cover=make_png())

    with pytest.raises(UploadError) as excinfo:
        coordinator.commit(session)

    assert excinfo.value.stage == "audio"
    assert isinstance(excinfo.value.__cause__, StoreFailure)
    assert _ops(calls) == [("put", BlobNamespace.AUDIO)]
    assert session.state is UploadState.EDITING


def test_cover_failure_deletes_only_audio(coordinator, blob_store, metadata_store, calls):
    blob_store.fail_put.add(BlobNamespace.COVER)
    session = make_editing_session(cover=make_png())

    with pytest.raises(UploadError) as excinfo:
        coordinator.commit(session)

    assert excinfo.value.stage == "cover"
    deletes = [c for c in calls if c[0] == "delete"]
    assert deletes == [("delete", BlobNamespace.AUDIO, AUDIO_KEY)]
    assert not any(c[0] == "insert" for c in calls)
    assert metadata_store.records == []
    assert blob_store.keys(BlobNamespace.AUDIO) == []
    assert session.state is UploadState.EDITING


def test_metadata_failure_deletes_cover_then_audio(coordinator, blob_store, metadata_store, calls):
    metadata_store.fail_insert = True
    session = make_editing_session(cover=make_png())

    with pytest.raises(UploadError) as excinfo:
        coordinator.commit(session)

    assert excinfo.value.stage == "metadata"
    deletes = [c for c in calls if c[0] == "delete"]
    assert deletes == [
        ("delete", BlobNamespace.COVER, COVER_KEY),
        ("delete", BlobNamespace.AUDIO, AUDIO_KEY),
    ]
    assert blob_store.keys(BlobNamespace.AUDIO) == []
    assert blob_store.keys(BlobNamespace.COVER) == []
    assert session.state is UploadState.EDITING


def test_metadata_failure_without_cover_deletes_audio_only(coordinator, metadata_store, calls):
    metadata_store.fail_insert = True
    with pytest.raises(UploadError):
        coordinator.commit(make_editing_session())
    deletes = [c for c in calls if c[0] == "delete"]
    assert deletes == [("delete", BlobNamespace.AUDIO, AUDIO_KEY)]


@pytest.mark.parametrize("failing", ["audio", "cover", "metadata"])
def test_fields_preserved_after_upload_error(coordinator, blob_store, metadata_store, failing):
    if failing == "metadata":
        metadata_store.fail_insert = True
    else:
        blob_store.fail_put.add(BlobNamespace(failing))
    session = make_editing_session(cover=make_png())
    session.edit_field("album", "Sessions")
    session.edit_field("lyrics", "verse one\nchorus")
    before = session.fields
    stats_before = session.stats

    with pytest.raises(UploadError):
        coordinator.commit(session)

    assert session.fields == before
    assert session.stats == stats_before
    assert session.cover_file is not None


def test_retry_uses_new_keys(coordinator, metadata_store, calls):
    metadata_store.fail_insert = True
    session = make_editing_session()

    with pytest.raises(UploadError):
        coordinator.commit(session)
    with pytest.raises(UploadError):
        coordinator.commit(session)

    audio_keys = [c[2] for c in calls if c[0] == "put" and c[1] is BlobNamespace.AUDIO]
    assert len(audio_keys) == 2
    assert audio_keys[0] != audio_keys[1]


def test_retry_after_failure_succeeds(coordinator, metadata_store):
    metadata_store.fail_insert = True
    session = make_editing_session()
    with pytest.raises(UploadError):
        coordinator.commit(session)

    metadata_store.fail_insert = False
    record = coordinator.commit(session)

    assert session.state is UploadState.COMPLETED
    assert record.audio_url.endswith(f"u1/{FIXED_NOW_MS + 1}_Artist - Title.flac")


def test_compensation_failure_does_not_mask_primary_error(coordinator, blob_store, metadata_store, calls):
    metadata_store.fail_insert = True
    blob_store.fail_delete.add(BlobNamespace.COVER)
    session = make_editing_session(cover=make_png())

    with pytest.raises(UploadError) as excinfo:
        coordinator.commit(session)

    error = excinfo.value
    assert error.stage == "metadata"
    assert len(error.compensation_warnings) == 1
    warning = error.compensation_warnings[0]
    assert isinstance(warning, CompensationWarning)
    assert warning.resource.kind is BlobNamespace.COVER
    # the audio delete is still attempted after the cover delete failed
    deletes = [c for c in calls if c[0] == "delete"]
    assert [d[1] for d in deletes] == [BlobNamespace.COVER, BlobNamespace.AUDIO]
    assert blob_store.keys(BlobNamespace.AUDIO) == []
    assert session.state is UploadState.EDITING


def test_missing_cover_uses_deterministic_placeholder(blob_store, metadata_store, calls):
    coordinator = TransactionalUploadCoordinator(
        blob_store, metadata_store, placeholder_cover_url="https://placeholder.test/{seed}.jpg"
    )
    first = coordinator.commit(make_editing_session())
    second = coordinator.commit(make_editing_session())

    assert first.cover_url.startswith("https://placeholder.test/")
    assert first.cover_url == second.cover_url
    assert not any(c[0] == "put" and c[1] is BlobNamespace.COVER for c in calls)


def test_record_fields_are_trimmed_and_album_defaulted(coordinator):
    session = make_editing_session(fields=TrackFields(title="  Title ", artist=" Artist", album="  "))
    record = coordinator.commit(session)
    assert record.title == "Title"
    assert record.artist == "Artist"
    assert record.album == "Unknown Album"


def test_timestamps_are_strictly_increasing_with_a_stalled_clock():
    coordinator = TransactionalUploadCoordinator(
        InMemoryBlobStore(), InMemoryMetadataStore(), clock=lambda: 5
    )
    records = [coordinator.commit(make_editing_session()) for _ in range(3)]
    urls = [r.audio_url for r in records]
    assert urls == [
        "memory://audio/u1/5_Artist - Title.flac",
        "memory://audio/u1/6_Artist - Title.flac",
        "memory://audio/u1/7_Artist - Title.flac",
    ]



def test_inserted_row_with_unreadable_timestamp_is_not_rolled_back(blob_store, calls):
    def handler(request):
        row = json.loads(request.content)[0]
        return httpx.Response(201, json=[{**row, "id": 11, "created_at": "yesterday-ish"}])

    metadata_store = SupabaseMetadataStore(
        Settings(SUPABASE_URL="https://proj.supabase.co", SUPABASE_KEY="secret"),
        client=httpx.Client(
            base_url="https://proj.supabase.co/rest/v1",
            transport=httpx.MockTransport(handler),
        ),
    )
    coordinator = TransactionalUploadCoordinator(
        blob_store,
        metadata_store,
        placeholder_cover_url="https://placeholder.test/{seed}.jpg",
        clock=lambda: FIXED_NOW_MS,
    )
    session = make_editing_session(cover=make_png())

    record = coordinator.commit(session)

    assert record.id == "11"
    assert [c[0] for c in calls] == ["put", "put"]
    assert session.state is UploadState.COMPLETED
