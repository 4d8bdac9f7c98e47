"""Realtime events pushed to gallery viewers."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)

EventHandler = Callable[["GalleryEvent"], Awaitable[None]]


class GalleryEvent(StrEnum):
    """Event tags sent over the realtime channel as bare strings."""

    IMAGE_UPLOADED = "image_uploaded"
    IMAGE_UPDATED = "image_updated"
    IMAGE_DELETED = "image_deleted"


def parse_event(raw: str) -> GalleryEvent | None:
    """Return the event for a wire tag, or None when the tag is unknown."""
    try:
        return GalleryEvent(raw.strip())
    except ValueError:
        return None


@dataclass
class EventDispatcher:
    """Subscriber-side helper that routes received event tags to handlers.

    Viewer clients feed each text frame from the realtime channel into
    ``dispatch``; the server only sends tags and never dispatches them.
    Unknown tags are dropped so that new event variants never break
    subscribers written against an older set.
    """

    handlers: dict[GalleryEvent, list[EventHandler]] = field(default_factory=dict)

    def on(self, event: GalleryEvent, handler: EventHandler) -> None:
        """Register a handler for an event."""
        self.handlers.setdefault(event, []).append(handler)

    async def dispatch(self, raw: str) -> bool:
        """Run the handlers for a raw tag and report whether it was known."""
        event = parse_event(raw)
        if event is None:
            logger.debug("Ignoring unknown event tag %r", raw)
            return False
        for handler in self.handlers.get(event, []):
            await handler(event)
        return True
