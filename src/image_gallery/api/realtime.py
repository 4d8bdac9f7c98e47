"""WebSocket channel that pushes gallery events to viewers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketState

if TYPE_CHECKING:
    from image_gallery.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

PING = "ping"
PONG = "pong"


@dataclass(eq=False)
class WebSocketViewerSession:
    """Viewer session backed by a Starlette WebSocket."""

    websocket: WebSocket
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])

    @property
    def is_open(self) -> bool:
        """Return True once accepted and until either side starts closing."""
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, text: str) -> None:
        """Send a text frame."""
        await self.websocket.send_text(text)

    async def close(self, code: int = 1001) -> None:
        """Close the socket."""
        await self.websocket.close(code=code)


@router.websocket("/ws")
@router.websocket("/")
async def viewer_socket(websocket: WebSocket) -> None:
    """Register a viewer for push notifications until it disconnects.

    Clients may send ``ping`` to receive ``pong``; other messages are ignored.
    """
    container: AppContainer = websocket.app.state.container
    await websocket.accept()
    session = WebSocketViewerSession(websocket)
    await container.hub.register(session)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("text") == PING:
                await websocket.send_text(PONG)
    finally:
        await container.hub.unregister(session)
