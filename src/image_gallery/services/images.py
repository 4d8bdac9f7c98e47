"""Gallery queries, renames and deletes."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from image_gallery.domain.events import GalleryEvent
from image_gallery.domain.images import ImageRecord, NewImage
from image_gallery.services.blobs import BlobStore
from image_gallery.services.notifications import NotificationHub

logger = logging.getLogger(__name__)


class ImageRepository(Protocol):
    """Persistence interface for image metadata."""

    def insert(self, image: NewImage) -> ImageRecord:
        """Insert a row atomically and return it with its new id."""

    def list_all(self) -> list[ImageRecord]:
        """Return every image ordered by id."""

    def get(self, image_id: int) -> ImageRecord | None:
        """Return an image by id, if present."""

    def find_by_stored_name(self, stored_name: str) -> ImageRecord | None:
        """Return the image referencing a blob, if present."""

    def update_original_name(self, image_id: int, original_name: str) -> bool:
        """Rename an image, returning False when no row matched."""

    def delete(self, image_id: int) -> ImageRecord | None:
        """Delete an image and return the removed row, if any."""


@dataclass
class GalleryService:
    """Read, rename and delete operations on the gallery.

    Listing is a full scan with no pagination, which is only reasonable for
    small collections.
    """

    repository: ImageRepository
    blob_store: BlobStore
    hub: NotificationHub
    broadcast_mutations: bool = False

    async def list_images(self) -> list[ImageRecord]:
        """Return all images."""
        return await asyncio.to_thread(self.repository.list_all)

    async def get_image(self, image_id: int) -> ImageRecord | None:
        """Return a single image, if present."""
        return await asyncio.to_thread(self.repository.get, image_id)

    async def rename_image(self, image_id: int, original_name: str) -> bool:
        """Change the original name of an image."""
        updated = await asyncio.to_thread(
            self.repository.update_original_name, image_id, original_name
        )
        if updated:
            await self._notify(GalleryEvent.IMAGE_UPDATED)
        return updated

    async def delete_image(self, image_id: int) -> bool:
        """Delete an image row, then its blob."""
        removed = await asyncio.to_thread(self.repository.delete, image_id)
        if removed is None:
            return False
        try:
            blob_deleted = await self.blob_store.delete(removed.stored_name)
        except OSError:
            logger.exception(
                "Failed to delete blob %s for image %s",
                removed.stored_name,
                image_id,
            )
        else:
            if not blob_deleted:
                logger.warning(
                    "Blob %s for image %s was already missing",
                    removed.stored_name,
                    image_id,
                )
        await self._notify(GalleryEvent.IMAGE_DELETED)
        return True

    async def _notify(self, event: GalleryEvent) -> None:
        if not self.broadcast_mutations:
            return
        try:
            await self.hub.broadcast(event)
        except Exception:
            logger.exception("Failed to broadcast %s", event.value)
