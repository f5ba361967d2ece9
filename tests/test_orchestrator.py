"""Tests for the upload orchestrator and commit workflow."""
import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from mediadrop.errors import (
    BlobUploadError,
    LinkCreationError,
    MetadataInsertError,
    UploadError,
)
from mediadrop.models import LocalFile, UploadConfig, UploadSession
from mediadrop.orchestrator import UploadOrchestrator
from mediadrop.protocols import ITokenGenerator
from mediadrop.services import InMemoryBlobStore, InMemoryMetadataStore
from mediadrop.staging import FileStagingManager

MB = 1024 * 1024
EVENT_DATE = date(2026, 10, 19)


class RecordingStores:
    """Blob store and record sink that log every call in order."""

    def __init__(self, fail_upload_at=None, fail_insert_at=None, fail_table=None):
        self.calls = []
        self._uploads = 0
        self._inserts = 0
        self._fail_upload_at = fail_upload_at
        self._fail_insert_at = fail_insert_at
        self._fail_table = fail_table

    async def upload(self, bucket, path, payload, content_type=None):
        self._uploads += 1
        if self._uploads == self._fail_upload_at:
            raise ConnectionError("storage unavailable")
        self.calls.append(("upload", bucket, path, content_type))

    async def insert(self, table, record):
        self._inserts += 1
        if self._inserts == self._fail_insert_at or table == self._fail_table:
            raise RuntimeError(f"insert into {table} rejected")
        self.calls.append(("insert", table, record))

    def of(self, kind, table=None):
        return [c for c in self.calls if c[0] == kind and (table is None or c[1] == table)]


def _media(name, mime_type="image/jpeg", size=5 * MB):
    return LocalFile(name=name, type=mime_type, size=size, payload=name.encode())


def _build(tokens, stores=None, config=None):
    stores = stores or RecordingStores()
    orchestrator = UploadOrchestrator(
        blob_store=stores,
        metadata_store=stores,
        token_generator=tokens,
        config=config,
    )
    return orchestrator, stores


@pytest.mark.asyncio
async def test_commit_success_uploads_then_links(tokens):
    orchestrator, stores = _build(tokens)
    orchestrator.add_files([_media("a.jpg"), _media("b.mp4", "video/mp4"), _media("c.png", "image/png")])

    link = await orchestrator.commit(EVENT_DATE)

    assert [c[0] for c in stores.calls] == ["upload", "insert"] * 3 + ["insert"]
    assert [c[2] for c in stores.of("upload")] == [
        "2026-10-19/s1.jpg",
        "2026-10-19/s2.mp4",
        "2026-10-19/s3.png",
    ]
    assert all(c[1] == "wedding-files" for c in stores.of("upload"))
    assert [c[3] for c in stores.of("upload")] == ["image/jpeg", "video/mp4", "image/png"]
    assert len(stores.of("insert", "uploads")) == 3
    assert stores.calls[-1] == (
        "insert",
        "download_links",
        {"link_token": "tok1", "expires_at": "2026-10-26T00:00:00+00:00"},
    )
    assert link.token == "tok1"
    assert link.expires_at == datetime(2026, 10, 26, tzinfo=timezone.utc)
    assert orchestrator.staged_files == []
    assert orchestrator.upload_complete is True
    assert orchestrator.is_uploading is False
    assert tokens.suffix_calls == 3
    assert tokens.token_calls == 1


@pytest.mark.asyncio
async def test_metadata_record_matches_upload(tokens):
    orchestrator, stores = _build(tokens)
    orchestrator.add_files([_media("party.jpg", size=1234)])

    await orchestrator.commit(EVENT_DATE)

    assert stores.of("insert", "uploads")[0][2] == {
        "file_name": "party.jpg",
        "file_path": "2026-10-19/s1.jpg",
        "file_type": "image/jpeg",
        "file_size": 1234,
    }


@pytest.mark.asyncio
async def test_name_without_extension_has_no_trailing_dot(tokens):
    orchestrator, stores = _build(tokens)
    orchestrator.add_files([_media("IMG_0001")])

    await orchestrator.commit(EVENT_DATE)

    assert stores.of("upload")[0][2] == "2026-10-19/s1"


@pytest.mark.asyncio
async def test_commit_is_noop_when_nothing_staged(tokens):
    orchestrator, stores = _build(tokens)

    result = await orchestrator.commit(EVENT_DATE)

    assert result is None
    assert stores.calls == []
    assert orchestrator.upload_complete is False
    assert tokens.suffix_calls == 0


@pytest.mark.asyncio
async def test_commit_is_noop_while_uploading(tokens):
    orchestrator, stores = _build(tokens)
    orchestrator.add_files([_media("a.jpg")])
    orchestrator.session.is_uploading = True

    result = await orchestrator.commit(EVENT_DATE)

    assert result is None
    assert stores.calls == []
    assert len(orchestrator.staged_files) == 1
    assert orchestrator.is_uploading is True


@pytest.mark.asyncio
async def test_concurrent_commit_is_ignored(tokens):
    gate = asyncio.Event()
    blob_store = AsyncMock()
    metadata_store = AsyncMock()

    async def slow_upload(*args, **kwargs):
        await gate.wait()

    blob_store.upload.side_effect = slow_upload
    orchestrator = UploadOrchestrator(
        blob_store=blob_store, metadata_store=metadata_store, token_generator=tokens
    )
    orchestrator.add_files([_media("a.jpg")])

    first = asyncio.create_task(orchestrator.commit(EVENT_DATE))
    await asyncio.sleep(0)
    assert orchestrator.is_uploading is True

    second = await orchestrator.commit(EVENT_DATE)
    gate.set()
    link = await first

    assert second is None
    assert link is not None
    blob_store.upload.assert_awaited_once()
    assert metadata_store.insert.await_count == 2


@pytest.mark.asyncio
async def test_blob_failure_aborts_commit(tokens):
    stores = RecordingStores(fail_upload_at=2)
    orchestrator, _ = _build(tokens, stores)
    orchestrator.add_files([_media("a.jpg"), _media("b.jpg"), _media("c.jpg")])

    with pytest.raises(BlobUploadError) as exc_info:
        await orchestrator.commit(EVENT_DATE)

    assert isinstance(exc_info.value, UploadError)
    assert isinstance(exc_info.value.cause, ConnectionError)
    assert exc_info.value.__cause__ is exc_info.value.cause
    assert exc_info.value.staged_file.name == "b.jpg"
    assert len(stores.of("insert", "uploads")) == 1
    assert stores.of("insert", "download_links") == []
    assert len(orchestrator.staged_files) == 3
    assert [f.progress_percent for f in orchestrator.staged_files] == [100, 0, 0]
    assert orchestrator.is_uploading is False
    assert orchestrator.upload_complete is False


@pytest.mark.asyncio
async def test_metadata_failure_aborts_commit(tokens):
    stores = RecordingStores(fail_insert_at=1)
    orchestrator, _ = _build(tokens, stores)
    orchestrator.add_files([_media("a.jpg"), _media("b.jpg")])

    with pytest.raises(MetadataInsertError):
        await orchestrator.commit(EVENT_DATE)

    assert len(stores.of("upload")) == 1
    assert [f.progress_percent for f in orchestrator.staged_files] == [0, 0]
    assert orchestrator.is_uploading is False


@pytest.mark.asyncio
async def test_link_failure_keeps_batch_staged(tokens):
    stores = RecordingStores(fail_table="download_links")
    orchestrator, _ = _build(tokens, stores)
    orchestrator.add_files([_media("a.jpg"), _media("b.jpg")])

    with pytest.raises(LinkCreationError):
        await orchestrator.commit(EVENT_DATE)

    assert len(stores.of("insert", "uploads")) == 2
    assert len(orchestrator.staged_files) == 2
    assert orchestrator.upload_complete is False
    assert orchestrator.is_uploading is False


@pytest.mark.asyncio
async def test_retry_after_failure_reuploads_whole_batch(tokens):
    stores = RecordingStores(fail_upload_at=2)
    orchestrator, _ = _build(tokens, stores)
    orchestrator.add_files([_media("a.jpg"), _media("b.jpg")])

    with pytest.raises(UploadError):
        await orchestrator.commit(EVENT_DATE)
    link = await orchestrator.commit(EVENT_DATE)

    assert link is not None
    assert len(stores.of("upload")) == 3
    assert len(stores.of("insert", "uploads")) == 3


@pytest.mark.asyncio
async def test_retention_is_configurable(tokens):
    orchestrator, _ = _build(tokens, config=UploadConfig(retention_days=30, bucket="event-media"))
    orchestrator.add_files([_media("a.jpg")])

    link = await orchestrator.commit(date(2026, 2, 1))

    assert link.expires_at == datetime(2026, 3, 3, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_events_emitted_in_order(tokens):
    orchestrator, _ = _build(tokens)
    seen = []
    orchestrator.events.on("commit_start", lambda session: seen.append("start"))
    orchestrator.events.on("file_start", lambda staged: seen.append(f"file:{staged.name}"))
    orchestrator.events.on("file_complete", lambda staged, record: seen.append(f"done:{record.file_path}"))
    orchestrator.events.on("link_created", lambda link: seen.append(f"link:{link.token}"))
    orchestrator.events.on("commit_complete", lambda link: seen.append("complete"))
    orchestrator.add_files([_media("a.jpg")])

    await orchestrator.commit(EVENT_DATE)

    assert seen == ["start", "file:a.jpg", "done:2026-10-19/s1.jpg", "link:tok1", "complete"]


@pytest.mark.asyncio
async def test_failing_listener_does_not_abort_commit(tokens):
    orchestrator, _ = _build(tokens)

    def broken(*args):
        raise ValueError("listener bug")

    orchestrator.events.on("file_complete", broken)
    orchestrator.add_files([_media("a.jpg")])

    link = await orchestrator.commit(EVENT_DATE)

    assert link is not None
    assert orchestrator.upload_complete is True


@pytest.mark.asyncio
async def test_commit_failed_event_carries_error(tokens):
    orchestrator, _ = _build(tokens, RecordingStores(fail_upload_at=1))
    failures = []
    orchestrator.events.on("commit_failed", failures.append)
    orchestrator.add_files([_media("a.jpg")])

    with pytest.raises(BlobUploadError):
        await orchestrator.commit(EVENT_DATE)

    assert len(failures) == 1
    assert isinstance(failures[0], BlobUploadError)


@pytest.mark.asyncio
async def test_in_memory_stores_end_to_end(tokens):
    blobs = InMemoryBlobStore()
    records = InMemoryMetadataStore()
    orchestrator = UploadOrchestrator(blob_store=blobs, metadata_store=records, token_generator=tokens)
    orchestrator.add_files([_media("a.jpg"), _media("b.mp4", "video/mp4"), _media("c.jpg")])

    await orchestrator.commit(EVENT_DATE)

    assert len(blobs.objects) == 3
    assert blobs.objects[("wedding-files", "2026-10-19/s2.mp4")] == (b"b.mp4", "video/mp4")
    assert len(records.table("uploads")) == 3
    assert len(records.table("download_links")) == 1


@pytest.mark.asyncio
async def test_commit_requires_initialization():
    orchestrator = UploadOrchestrator(api_url="http://storage.local")
    orchestrator.add_files([_media("a.jpg")])

    with pytest.raises(RuntimeError, match="not initialized"):
        await orchestrator.commit(EVENT_DATE)


@pytest.mark.asyncio
async def test_context_requires_api_url_or_stores():
    with pytest.raises(ValueError):
        async with UploadOrchestrator():
            pass


@pytest.mark.asyncio
async def test_injected_empty_session_is_shared(tokens):
    session = UploadSession()
    stores = RecordingStores()
    orchestrator = UploadOrchestrator(
        blob_store=stores, metadata_store=stores, token_generator=tokens, session=session
    )
    staging = FileStagingManager(session)

    assert orchestrator.session is session
    staging.add_files([_media("a.jpg")])
    assert len(orchestrator.staged_files) == 1

    await orchestrator.commit(EVENT_DATE)

    assert session.staged_files == []
    assert session.upload_complete is True
    assert session.is_uploading is False


class BrokenTokenGenerator(ITokenGenerator):
    def file_suffix(self) -> str:
        raise OSError("entropy pool unavailable")

    def link_token(self) -> str:
        return "unused"


@pytest.mark.asyncio
async def test_suffix_failure_is_wrapped_and_reported():
    stores = RecordingStores()
    orchestrator = UploadOrchestrator(
        blob_store=stores, metadata_store=stores, token_generator=BrokenTokenGenerator()
    )
    failures = []
    orchestrator.events.on("commit_failed", failures.append)
    orchestrator.add_files([_media("a.jpg")])

    with pytest.raises(BlobUploadError) as exc_info:
        await orchestrator.commit(EVENT_DATE)

    assert isinstance(exc_info.value.cause, OSError)
    assert failures == [exc_info.value]
    assert stores.calls == []
    assert orchestrator.is_uploading is False
    assert len(orchestrator.staged_files) == 1
