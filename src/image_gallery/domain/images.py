"""Domain models for gallery images."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NewImage:
    """Image metadata that has not been assigned an id yet."""

    stored_name: str
    original_name: str
    mime_type: str
    size_bytes: int


@dataclass(frozen=True)
class ImageRecord:
    """Represents an image row stored in the metadata table."""

    id: int
    stored_name: str
    original_name: str
    mime_type: str
    size_bytes: int

    def to_payload(self) -> dict[str, object]:
        """Return the record using the public wire field names."""
        return {
            "id": self.id,
            "filename": self.stored_name,
            "originalname": self.original_name,
            "mimetype": self.mime_type,
            "size": self.size_bytes,
        }
