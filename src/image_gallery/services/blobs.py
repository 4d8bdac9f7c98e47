"""Blob storage interface and stored-name generation."""

import re
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Protocol

_EXTENSION_CHARS = re.compile(r"[^a-z0-9]")
_MAX_EXTENSION_LENGTH = 16


class BlobStore(Protocol):
    """Durable storage for raw uploaded bytes."""

    async def put(self, stored_name: str, content: bytes) -> None:
        """Write bytes under a name that must not already be taken."""

    async def exists(self, stored_name: str) -> bool:
        """Return whether a blob is stored under the name."""

    async def delete(self, stored_name: str) -> bool:
        """Delete a blob, returning False when it was already absent."""


def file_extension(original_name: str) -> str:
    """Return a sanitised, lower-cased extension including the leading dot."""
    suffix = PurePath(original_name).suffix.lower()
    cleaned = _EXTENSION_CHARS.sub("", suffix[1:])[:_MAX_EXTENSION_LENGTH]
    return f".{cleaned}" if cleaned else ""


@dataclass
class StoredNameFactory:
    """Build collision-resistant blob names.

    Names have the form ``<field>-<nanoseconds>-<token><ext>``. The random
    token keeps names distinct when the clock reads the same value for
    concurrent uploads.
    """

    clock: Callable[[], int] = field(default=time.time_ns)
    token_bytes: int = 6

    def build(self, field_name: str, original_name: str) -> str:
        """Return a fresh stored name for an upload."""
        tag = _EXTENSION_CHARS.sub("", field_name.lower()) or "file"
        token = secrets.token_hex(self.token_bytes)
        return f"{tag}-{self.clock()}-{token}{file_extension(original_name)}"
