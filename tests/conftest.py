"""Shared test fixtures."""

import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from image_gallery.adapters.local_blob_store import LocalBlobStore
from image_gallery.config import Settings
from image_gallery.containers import AppContainer
from image_gallery.domain.errors import (
    MetadataQueryError,
    MetadataWriteError,
    StorageWriteError,
)
from image_gallery.domain.images import ImageRecord, NewImage
from image_gallery.domain.uploads import IntentStatus, UploadIntent
from image_gallery.services.images import GalleryService, ImageRepository
from image_gallery.services.notifications import NotificationHub
from image_gallery.services.reconciliation import ReconciliationService
from image_gallery.services.uploads import UploadIntentRepository, UploadService


@dataclass
class InMemoryImageRepository(ImageRepository):
    """In-memory image repository for tests."""

    images: dict[int, ImageRecord] = field(default_factory=dict)
    fail_insert: bool = False
    fail_queries: bool = False
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def insert(self, image: NewImage) -> ImageRecord:
        if self.fail_insert:
            raise MetadataWriteError("insert failed")
        record = ImageRecord(
            id=next(self._ids),
            stored_name=image.stored_name,
            original_name=image.original_name,
            mime_type=image.mime_type,
            size_bytes=image.size_bytes,
        )
        self.images[record.id] = record
        return record

    def list_all(self) -> list[ImageRecord]:
        if self.fail_queries:
            raise MetadataQueryError("query failed")
        return [self.images[image_id] for image_id in sorted(self.images)]

    def get(self, image_id: int) -> ImageRecord | None:
        return self.images.get(image_id)

    def find_by_stored_name(self, stored_name: str) -> ImageRecord | None:
        for image in self.images.values():
            if image.stored_name == stored_name:
                return image
        return None

    def update_original_name(self, image_id: int, original_name: str) -> bool:
        if self.fail_queries:
            raise MetadataWriteError("update failed")
        current = self.images.get(image_id)
        if current is None:
            return False
        self.images[image_id] = ImageRecord(
            id=current.id,
            stored_name=current.stored_name,
            original_name=original_name,
            mime_type=current.mime_type,
            size_bytes=current.size_bytes,
        )
        return True

    def delete(self, image_id: int) -> ImageRecord | None:
        if self.fail_queries:
            raise MetadataWriteError("delete failed")
        return self.images.pop(image_id, None)


@dataclass
class InMemoryUploadIntentRepository(UploadIntentRepository):
    """In-memory upload intent repository for tests."""

    intents: dict[str, UploadIntent] = field(default_factory=dict)
    fail_create: bool = False
    fail_complete: bool = False
    fail_list: bool = False

    def create_intent(self, stored_name: str) -> UploadIntent:
        if self.fail_create or stored_name in self.intents:
            raise MetadataWriteError(f"cannot reserve {stored_name}")
        intent = UploadIntent(
            stored_name=stored_name,
            status=IntentStatus.PENDING,
            created_at=datetime.now(tz=UTC),
        )
        self.intents[stored_name] = intent
        return intent

    def mark_completed(self, stored_name: str) -> None:
        if self.fail_complete:
            raise MetadataWriteError("complete failed")
        current = self.intents[stored_name]
        self.intents[stored_name] = UploadIntent(
            stored_name=stored_name,
            status=IntentStatus.COMPLETED,
            created_at=current.created_at,
        )

    def list_pending(self, created_before: datetime) -> list[UploadIntent]:
        if self.fail_list:
            raise MetadataQueryError("list failed")
        return [
            intent
            for intent in self.intents.values()
            if intent.status == IntentStatus.PENDING
            and intent.created_at < created_before
        ]

    def delete_intent(self, stored_name: str) -> None:
        self.intents.pop(stored_name, None)


@dataclass
class FailingBlobStore(LocalBlobStore):
    """Blob store whose writes always fail."""

    async def put(self, stored_name: str, content: bytes) -> None:
        raise StorageWriteError(f"disk full while writing {stored_name}")


@dataclass(eq=False)
class FakeViewerSession:
    """Viewer session that records received frames."""

    session_id: str = "viewer"
    is_open: bool = True
    received: list[str] = field(default_factory=list)
    closed: bool = False
    on_send: Callable[[], Awaitable[None]] | None = None

    async def send_text(self, text: str) -> None:
        if self.closed:
            raise ConnectionError(f"{self.session_id} is closed")
        if self.on_send is not None:
            await self.on_send()
        self.received.append(text)

    async def close(self, code: int = 1001) -> None:
        self.closed = True
        self.is_open = False


def stored_files(root: Path) -> list[str]:
    """Return the names of blob files under a directory."""
    if not root.exists():
        return []
    return sorted(path.name for path in root.iterdir())


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def image_repository() -> InMemoryImageRepository:
    return InMemoryImageRepository()


@pytest.fixture
def intent_repository() -> InMemoryUploadIntentRepository:
    return InMemoryUploadIntentRepository()


@pytest.fixture
def blob_store(settings: Settings) -> LocalBlobStore:
    store = LocalBlobStore(Path(settings.upload_dir))
    store.ensure_root()
    return store


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def container(
    settings: Settings,
    image_repository: InMemoryImageRepository,
    intent_repository: InMemoryUploadIntentRepository,
    blob_store: LocalBlobStore,
    hub: NotificationHub,
) -> AppContainer:
    upload_service = UploadService(
        blob_store=blob_store,
        repository=image_repository,
        intents=intent_repository,
        hub=hub,
    )
    gallery_service = GalleryService(
        repository=image_repository,
        blob_store=blob_store,
        hub=hub,
        broadcast_mutations=settings.broadcast_mutations,
    )
    reconciliation_service = ReconciliationService(
        intents=intent_repository,
        repository=image_repository,
        blob_store=blob_store,
        grace_seconds=settings.reconcile_grace_seconds,
    )

    async def close_resources() -> None:
        await hub.close_all()

    return AppContainer(
        settings=settings,
        hub=hub,
        blob_store=blob_store,
        upload_service=upload_service,
        gallery_service=gallery_service,
        reconciliation_service=reconciliation_service,
        close_resources=close_resources,
    )
