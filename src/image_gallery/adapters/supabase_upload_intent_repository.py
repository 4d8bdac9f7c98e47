"""Supabase-backed upload intent repository."""

from dataclasses import dataclass
from datetime import datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from image_gallery.domain.errors import MetadataQueryError, MetadataWriteError
from image_gallery.domain.uploads import IntentStatus, UploadIntent
from image_gallery.services.uploads import UploadIntentRepository

_DATABASE_ERRORS = (APIError, httpx.HTTPError)


@dataclass
class SupabaseUploadIntentRepository(UploadIntentRepository):
    """Supabase implementation of the upload saga log.

    The table has a unique constraint on ``filename`` so that recording an
    intent also reserves the stored name.
    """

    client: Client
    table_name: str = "upload_intents"

    def create_intent(self, stored_name: str) -> UploadIntent:
        """Insert a pending intent row."""
        try:
            response = (
                self.client.table(self.table_name)
                .insert({"filename": stored_name, "status": IntentStatus.PENDING})
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError(
                f"Failed to record upload intent for {stored_name}"
            ) from exc
        if not response.data:
            raise MetadataWriteError(
                f"Failed to record upload intent for {stored_name}"
            )
        return _to_intent(response.data[0])

    def mark_completed(self, stored_name: str) -> None:
        """Mark an intent completed."""
        try:
            self.client.table(self.table_name).update(
                {"status": IntentStatus.COMPLETED}
            ).eq("filename", stored_name).execute()
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError(
                f"Failed to complete upload intent for {stored_name}"
            ) from exc

    def list_pending(self, created_before: datetime) -> list[UploadIntent]:
        """Return pending intents created before a cutoff."""
        try:
            response = (
                self.client.table(self.table_name)
                .select("filename, status, created_at")
                .eq("status", IntentStatus.PENDING)
                .lt("created_at", created_before.isoformat())
                .order("created_at")
                .execute()
            )
        except _DATABASE_ERRORS as exc:
            raise MetadataQueryError("Failed to list pending upload intents") from exc
        return [_to_intent(row) for row in response.data or []]

    def delete_intent(self, stored_name: str) -> None:
        """Delete an intent row."""
        try:
            self.client.table(self.table_name).delete().eq(
                "filename", stored_name
            ).execute()
        except _DATABASE_ERRORS as exc:
            raise MetadataWriteError(
                f"Failed to delete upload intent for {stored_name}"
            ) from exc


def _to_intent(row: dict[str, object]) -> UploadIntent:
    return UploadIntent(
        stored_name=str(row["filename"]),
        status=IntentStatus(str(row["status"])),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
