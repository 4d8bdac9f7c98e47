"""Supabase-backed image metadata repository."""

from dataclasses import dataclass

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from image_gallery.domain.errors import MetadataQueryError, MetadataWriteError
from image_gallery.domain.images import ImageRecord, NewImage
from image_gallery.services.images import ImageRepository

_COLUMNS = "id, filename, originalname, mimetype, size"
_DATABASE_ERRORS = (APIError, httpx.HTTPError)


@dataclass
class SupabaseImageRepository(ImageRepository):
    """Supabase implementation for image metadata persistence."""

    client: Client
    table_name: str = "images"

    def insert(self, image: NewImage) -> ImageRecord:
        """Insert an image row and return it with its id."""
        try:
            response = (
                self.client.table(self.table_name)
                .insert(
                    {
                        "filename": image.stored_name,
                        "originalname": image.original_name,
                        "mimetype": image.mime_type,
                        "size": image.size_bytes,
                    }
                )
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError("Failed to insert image metadata") from exc
        if not response.data:
            raise MetadataWriteError("Failed to insert image metadata")
        return _to_record(response.data[0])

    def list_all(self) -> list[ImageRecord]:
        """Return every image ordered by id."""
        try:
            response = (
                self.client.table(self.table_name)
                .select(_COLUMNS)
                .order("id")
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataQueryError("Failed to list images") from exc
        return [_to_record(row) for row in response.data or []]

    def get(self, image_id: int) -> ImageRecord | None:
        """Return an image by id, if present."""
        return self._get_one("id", image_id)

    def find_by_stored_name(self, stored_name: str) -> ImageRecord | None:
        """Return the image that references a stored blob name."""
        return self._get_one("filename", stored_name)

    def update_original_name(self, image_id: int, original_name: str) -> bool:
        """Rename an image and report whether a row matched."""
        try:
            response = (
                self.client.table(self.table_name)
                .update({"originalname": original_name})
                .eq("id", image_id)
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError(f"Failed to update image {image_id}") from exc
        return bool(response.data)

    def delete(self, image_id: int) -> ImageRecord | None:
        """Delete an image row and return it, if it existed."""
        try:
            response = (
                self.client.table(self.table_name)
                .delete()
                .eq("id", image_id)
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError(f"Failed to delete image {image_id}") from exc
        if not response.data:
            return None
        return _to_record(response.data[0])

    def _get_one(self, column: str, value: object) -> ImageRecord | None:
        try:
            response = (
                self.client.table(self.table_name)
                .select(_COLUMNS)
                .eq(column, value)
                .limit(1)
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataQueryError(f"Failed to query image by {column}") from exc
        if not response.data:
            return None
        return _to_record(response.data[0])


def _to_record(row: dict[str, object]) -> ImageRecord:
    return ImageRecord(
        id=int(row["id"]),
        stored_name=str(row["filename"]),
        original_name=str(row["originalname"]),
        mime_type=str(row["mimetype"]),
        size_bytes=int(row["size"]),
    )
