"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from image_gallery.adapters.local_blob_store import LocalBlobStore
from image_gallery.adapters.supabase_image_repository import SupabaseImageRepository
from image_gallery.adapters.supabase_upload_intent_repository import (
    SupabaseUploadIntentRepository,
)
from image_gallery.config import Settings
from image_gallery.services.images import GalleryService
from image_gallery.services.notifications import NotificationHub
from image_gallery.services.reconciliation import ReconciliationService
from image_gallery.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    hub: NotificationHub
    blob_store: LocalBlobStore
    upload_service: UploadService
    gallery_service: GalleryService
    reconciliation_service: ReconciliationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    image_repository = SupabaseImageRepository(
        supabase_client, table_name=resolved_settings.images_table
    )
    intent_repository = SupabaseUploadIntentRepository(
        supabase_client, table_name=resolved_settings.upload_intents_table
    )
    blob_store = LocalBlobStore(Path(resolved_settings.upload_dir))
    hub = NotificationHub(send_timeout=resolved_settings.viewer_send_timeout_seconds)
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
        broadcast_mutations=resolved_settings.broadcast_mutations,
    )
    reconciliation_service = ReconciliationService(
        intents=intent_repository,
        repository=image_repository,
        blob_store=blob_store,
        grace_seconds=resolved_settings.reconcile_grace_seconds,
    )

    async def close_resources() -> None:
        await hub.close_all()

    return AppContainer(
        settings=resolved_settings,
        hub=hub,
        blob_store=blob_store,
        upload_service=upload_service,
        gallery_service=gallery_service,
        reconciliation_service=reconciliation_service,
        close_resources=close_resources,
    )
