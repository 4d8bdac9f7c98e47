"""Tests for the reconciliation sweep."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from image_gallery.adapters.local_blob_store import LocalBlobStore
from image_gallery.domain.errors import MetadataWriteError, StorageWriteError
from image_gallery.domain.images import NewImage
from image_gallery.domain.uploads import IntentStatus, UploadedFile
from image_gallery.services.notifications import NotificationHub
from image_gallery.services.reconciliation import ReconciliationService
from image_gallery.services.uploads import UploadService
from tests.conftest import (
    FailingBlobStore,
    InMemoryImageRepository,
    InMemoryUploadIntentRepository,
    stored_files,
)

PNG = UploadedFile(original_name="a.png", mime_type="image/png")
LATER = datetime.now(tz=UTC) + timedelta(hours=1)


def test_sweep_removes_orphan_left_by_failed_insert(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path)
    repository = InMemoryImageRepository(fail_insert=True)
    intents = InMemoryUploadIntentRepository()
    uploads = UploadService(store, repository, intents, NotificationHub())
    with pytest.raises(MetadataWriteError):
        asyncio.run(uploads.handle_upload(b"data", PNG))
    assert len(stored_files(tmp_path)) == 1

    service = ReconciliationService(intents, repository, store, grace_seconds=60)
    report = asyncio.run(service.sweep(now=LATER))

    assert report.orphans_removed == 1
    assert report.completed == 0
    assert stored_files(tmp_path) == []
    assert intents.intents == {}


def test_sweep_completes_intent_when_record_exists(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path)
    repository = InMemoryImageRepository()
    intents = InMemoryUploadIntentRepository()
    intents.create_intent("image-1.png")
    asyncio.run(store.put("image-1.png", b"data"))
    repository.insert(
        NewImage(
            stored_name="image-1.png",
            original_name="a.png",
            mime_type="image/png",
            size_bytes=4,
        )
    )

    service = ReconciliationService(intents, repository, store)
    report = asyncio.run(service.sweep(now=LATER))

    assert report.completed == 1
    assert intents.intents["image-1.png"].status == IntentStatus.COMPLETED
    assert stored_files(tmp_path) == ["image-1.png"]


def test_sweep_discards_intent_without_blob(tmp_path: Path) -> None:
    store = FailingBlobStore(tmp_path)
    repository = InMemoryImageRepository()
    intents = InMemoryUploadIntentRepository()
    uploads = UploadService(store, repository, intents, NotificationHub())
    with pytest.raises(StorageWriteError):
        asyncio.run(uploads.handle_upload(b"data", PNG))

    service = ReconciliationService(intents, repository, store)
    report = asyncio.run(service.sweep(now=LATER))

    assert report.discarded == 1
    assert intents.intents == {}


def test_sweep_leaves_recent_intents_alone(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path)
    intents = InMemoryUploadIntentRepository()
    intents.create_intent("image-1.png")
    asyncio.run(store.put("image-1.png", b"in flight"))

    service = ReconciliationService(
        intents, InMemoryImageRepository(), store, grace_seconds=300
    )
    report = asyncio.run(service.sweep())

    assert report.orphans_removed == 0
    assert stored_files(tmp_path) == ["image-1.png"]
    assert "image-1.png" in intents.intents


@dataclass
class LockedBlobStore(LocalBlobStore):
    """Blob store that cannot delete some of its files."""

    locked: frozenset[str] = frozenset()

    async def delete(self, stored_name: str) -> bool:
        if stored_name in self.locked:
            raise PermissionError(f"{stored_name} is locked")
        return await super().delete(stored_name)


def test_sweep_continues_past_a_blob_that_cannot_be_deleted(tmp_path: Path) -> None:
    store = LockedBlobStore(tmp_path, locked=frozenset({"image-1-locked.png"}))
    intents = InMemoryUploadIntentRepository()
    for name in ("image-1-locked.png", "image-2-orphan.png"):
        intents.create_intent(name)
        asyncio.run(store.put(name, b"orphan"))

    service = ReconciliationService(intents, InMemoryImageRepository(), store)
    report = asyncio.run(service.sweep(now=LATER))

    assert report.failed == 1
    assert report.orphans_removed == 1
    assert stored_files(tmp_path) == ["image-1-locked.png"]
    assert list(intents.intents) == ["image-1-locked.png"]


def test_sweep_counts_intent_that_cannot_be_completed(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path)
    repository = InMemoryImageRepository()
    intents = InMemoryUploadIntentRepository(fail_complete=True)
    intents.create_intent("image-1.png")
    intents.create_intent("image-2.png")
    asyncio.run(store.put("image-1.png", b"data"))
    repository.insert(
        NewImage(
            stored_name="image-1.png",
            original_name="a.png",
            mime_type="image/png",
            size_bytes=4,
        )
    )

    service = ReconciliationService(intents, repository, store)
    report = asyncio.run(service.sweep(now=LATER))

    assert report.failed == 1
    assert report.discarded == 1
    assert intents.intents["image-1.png"].status == IntentStatus.PENDING
