"""Domain models for the upload pipeline."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


@dataclass(frozen=True)
class UploadedFile:
    """Client-supplied metadata for a single multipart file part."""

    original_name: str
    mime_type: str
    field_name: str = "image"


class IntentStatus(StrEnum):
    """Lifecycle states of an upload intent."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class UploadIntent:
    """Saga log entry written before a blob is stored."""

    stored_name: str
    status: IntentStatus
    created_at: datetime


@dataclass(frozen=True)
class ReconciliationReport:
    """Outcome of a reconciliation sweep over pending intents."""

    completed: int = 0
    orphans_removed: int = 0
    discarded: int = 0
    failed: int = 0
