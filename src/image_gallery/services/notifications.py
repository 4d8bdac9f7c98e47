"""Fan-out of realtime events to connected viewers."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from image_gallery.domain.events import GalleryEvent

logger = logging.getLogger(__name__)


class ViewerSession(Protocol):
    """A live duplex connection to one gallery viewer."""

    @property
    def session_id(self) -> str:
        """Return an identifier used in logs."""

    @property
    def is_open(self) -> bool:
        """Return whether the connection can currently accept messages."""

    async def send_text(self, text: str) -> None:
        """Send a text frame to the viewer."""

    async def close(self, code: int = 1001) -> None:
        """Close the connection."""


@dataclass
class NotificationHub:
    """Registry of open viewer sessions with best-effort broadcast.

    Broadcast works on a snapshot of the registry, so sessions may connect or
    disconnect while an event is being delivered. Sends run concurrently and
    each is bounded by ``send_timeout`` seconds; a viewer that stops reading
    is dropped like one whose send fails. Missed events are never replayed;
    viewers rely on their own full refresh.

    Membership changes happen between awaits on a single event loop, so the
    registry is a plain set.
    """

    send_timeout: float = 5.0
    _sessions: set[ViewerSession] = field(default_factory=set)

    @property
    def session_count(self) -> int:
        """Return the number of registered sessions."""
        return len(self._sessions)

    async def register(self, session: ViewerSession) -> None:
        """Add a session to the registry."""
        self._sessions.add(session)
        logger.info("Viewer %s connected", session.session_id)

    async def unregister(self, session: ViewerSession) -> None:
        """Remove a session; unknown sessions are ignored."""
        if session not in self._sessions:
            return
        self._sessions.discard(session)
        logger.info("Viewer %s disconnected", session.session_id)

    async def broadcast(self, event: GalleryEvent) -> int:
        """Send an event to every open session and return the delivery count."""
        targets = [session for session in list(self._sessions) if session.is_open]
        results = await asyncio.gather(
            *(self._deliver(session, event) for session in targets)
        )
        for session, delivered in zip(targets, results, strict=True):
            if not delivered:
                await self.unregister(session)
        return sum(results)

    async def _deliver(self, session: ViewerSession, event: GalleryEvent) -> bool:
        try:
            await asyncio.wait_for(
                session.send_text(event.value), timeout=self.send_timeout
            )
        except TimeoutError:
            logger.warning(
                "Viewer %s did not accept %s within %.1fs",
                session.session_id,
                event.value,
                self.send_timeout,
            )
            return False
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to deliver %s to viewer %s",
                event.value,
                session.session_id,
                exc_info=True,
            )
            return False
        return True

    async def close_all(self) -> None:
        """Close and forget every session, used on shutdown."""
        snapshot = list(self._sessions)
        self._sessions.clear()
        for session in snapshot:
            if not session.is_open:
                continue
            try:
                await session.close()
            except Exception:  # noqa: BLE001
                logger.debug("Viewer %s was already closing", session.session_id)
