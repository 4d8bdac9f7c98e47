"""Compensation sweep for uploads that stopped half-way."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from image_gallery.domain.errors import GalleryError
from image_gallery.domain.uploads import ReconciliationReport, UploadIntent
from image_gallery.services.blobs import BlobStore
from image_gallery.services.images import ImageRepository
from image_gallery.services.uploads import UploadIntentRepository

logger = logging.getLogger(__name__)


class _Outcome(StrEnum):
    COMPLETED = "completed"
    ORPHAN_REMOVED = "orphans_removed"
    DISCARDED = "discarded"


@dataclass
class ReconciliationService:
    """Resolve pending upload intents older than a grace period.

    Intents younger than the grace period may belong to uploads that are
    still in flight and are left alone. A failure on one intent is logged and
    counted; the intent stays pending for the next sweep and the remaining
    intents are still processed.
    """

    intents: UploadIntentRepository
    repository: ImageRepository
    blob_store: BlobStore
    grace_seconds: int = 300

    async def sweep(self, now: datetime | None = None) -> ReconciliationReport:
        """Complete, compensate or discard every stale pending intent."""
        cutoff = (now or datetime.now(tz=UTC)) - timedelta(seconds=self.grace_seconds)
        pending = await asyncio.to_thread(self.intents.list_pending, cutoff)
        counts = dict.fromkeys(_Outcome, 0)
        failed = 0
        for intent in pending:
            try:
                outcome = await self._resolve(intent)
            except (GalleryError, OSError):
                logger.exception(
                    "Could not reconcile upload intent %s", intent.stored_name
                )
                failed += 1
                continue
            counts[outcome] += 1
        report = ReconciliationReport(
            completed=counts[_Outcome.COMPLETED],
            orphans_removed=counts[_Outcome.ORPHAN_REMOVED],
            discarded=counts[_Outcome.DISCARDED],
            failed=failed,
        )
        logger.info(
            "Reconciliation finished: %d completed, %d orphans removed, "
            "%d discarded, %d failed",
            report.completed,
            report.orphans_removed,
            report.discarded,
            report.failed,
        )
        return report

    async def _resolve(self, intent: UploadIntent) -> _Outcome:
        name = intent.stored_name
        record = await asyncio.to_thread(self.repository.find_by_stored_name, name)
        if record is not None:
            await asyncio.to_thread(self.intents.mark_completed, name)
            return _Outcome.COMPLETED
        outcome = _Outcome.DISCARDED
        if await self.blob_store.exists(name):
            await self.blob_store.delete(name)
            logger.info("Removed orphan blob %s", name)
            outcome = _Outcome.ORPHAN_REMOVED
        await asyncio.to_thread(self.intents.delete_intent, name)
        return outcome
