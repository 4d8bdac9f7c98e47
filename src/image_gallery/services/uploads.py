"""Upload pipeline: validate, store the blob, insert metadata, notify."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from image_gallery.domain.errors import (
    InvalidFileTypeError,
    MetadataWriteError,
    NoFileError,
    StorageWriteError,
)
from image_gallery.domain.events import GalleryEvent
from image_gallery.domain.images import ImageRecord, NewImage
from image_gallery.domain.uploads import UploadedFile, UploadIntent
from image_gallery.services.blobs import BlobStore, StoredNameFactory
from image_gallery.services.images import ImageRepository
from image_gallery.services.notifications import NotificationHub

logger = logging.getLogger(__name__)

IMAGE_MIME_PREFIX = "image/"


class UploadIntentRepository(Protocol):
    """Persistence interface for the upload saga log."""

    def create_intent(self, stored_name: str) -> UploadIntent:
        """Record a pending intent; fails if the name is already reserved."""

    def mark_completed(self, stored_name: str) -> None:
        """Mark the intent for a stored name as completed."""

    def list_pending(self, created_before: datetime) -> list[UploadIntent]:
        """Return pending intents created before the given time."""

    def delete_intent(self, stored_name: str) -> None:
        """Remove an intent."""


@dataclass
class UploadService:
    """Coordinates a single upload across blob storage, metadata and viewers.

    The intent row reserves the stored name before any bytes are written.
    Steps run strictly in order and each one gates the next:

    1. record the intent,
    2. write the blob (``StorageWriteError`` aborts, no row is created),
    3. insert the metadata row (``MetadataWriteError`` aborts and leaves an
       orphan blob that the reconciliation sweep removes later),
    4. mark the intent completed,
    5. broadcast ``image_uploaded``.

    Only steps 1-3 can fail the upload.
    """

    blob_store: BlobStore
    repository: ImageRepository
    intents: UploadIntentRepository
    hub: NotificationHub
    names: StoredNameFactory = field(default_factory=StoredNameFactory)

    async def handle_upload(
        self, content: bytes | None, upload: UploadedFile | None
    ) -> ImageRecord:
        """Persist an uploaded image and return its record."""
        if content is None or upload is None:
            raise NoFileError
        if not upload.mime_type.startswith(IMAGE_MIME_PREFIX):
            raise InvalidFileTypeError(upload.mime_type)

        stored_name = self.names.build(upload.field_name, upload.original_name)
        try:
            await asyncio.to_thread(self.intents.create_intent, stored_name)
        except MetadataWriteError:
            logger.exception("Failed to record upload intent for %s", stored_name)
            raise

        try:
            await self.blob_store.put(stored_name, content)
        except StorageWriteError:
            logger.exception("Failed to store blob %s", stored_name)
            raise

        new_image = NewImage(
            stored_name=stored_name,
            original_name=upload.original_name,
            mime_type=upload.mime_type,
            size_bytes=len(content),
        )
        try:
            record = await asyncio.to_thread(self.repository.insert, new_image)
        except MetadataWriteError:
            logger.error(
                "Orphan blob %s: metadata insert failed, pending reconciliation",
                stored_name,
            )
            raise

        try:
            await asyncio.to_thread(self.intents.mark_completed, stored_name)
        except MetadataWriteError:
            logger.warning(
                "Could not complete upload intent for %s", stored_name, exc_info=True
            )

        await self._notify(record)
        return record

    async def _notify(self, record: ImageRecord) -> None:
        try:
            delivered = await self.hub.broadcast(GalleryEvent.IMAGE_UPLOADED)
        except Exception:
            logger.exception("Failed to broadcast upload of image %s", record.id)
            return
        logger.info(
            "Stored image %s as %s, notified %d viewer(s)",
            record.id,
            record.stored_name,
            delivered,
        )
