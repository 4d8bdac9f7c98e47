"""Filesystem-backed blob store."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from image_gallery.domain.errors import StorageWriteError
from image_gallery.services.blobs import BlobStore


@dataclass
class LocalBlobStore(BlobStore):
    """Stores blobs as files in a single directory."""

    root: Path

    def ensure_root(self) -> None:
        """Create the storage directory if it is missing."""
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, stored_name: str) -> Path:
        """Resolve a stored name to a path inside the storage directory."""
        if (
            not stored_name
            or stored_name in {".", ".."}
            or "/" in stored_name
            or "\\" in stored_name
        ):
            raise ValueError(f"Invalid stored name: {stored_name!r}")
        return self.root / stored_name

    async def put(self, stored_name: str, content: bytes) -> None:
        """Write bytes to a new file, never overwriting an existing blob."""
        await asyncio.to_thread(self._write, stored_name, content)

    async def exists(self, stored_name: str) -> bool:
        """Return whether the blob file exists."""
        return await asyncio.to_thread(self.path_for(stored_name).is_file)

    async def delete(self, stored_name: str) -> bool:
        """Delete the blob file if present."""
        return await asyncio.to_thread(self._unlink, stored_name)

    def read(self, stored_name: str) -> bytes:
        """Return the stored bytes."""
        return self.path_for(stored_name).read_bytes()

    def _write(self, stored_name: str, content: bytes) -> None:
        path = self.path_for(stored_name)
        try:
            handle = path.open("xb")
        except FileExistsError as exc:
            raise StorageWriteError(f"Blob {stored_name} already exists") from exc
        except OSError as exc:
            raise StorageWriteError(f"Failed to create blob {stored_name}") from exc
        try:
            with handle:
                handle.write(content)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise StorageWriteError(f"Failed to write blob {stored_name}") from exc

    def _unlink(self, stored_name: str) -> bool:
        try:
            self.path_for(stored_name).unlink()
        except FileNotFoundError:
            return False
        return True
