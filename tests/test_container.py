"""Tests for container wiring."""

import asyncio

from image_gallery.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.upload_service is not None
    assert container.gallery_service.hub is container.upload_service.hub
    assert container.reconciliation_service.grace_seconds == 300
    assert container.hub.send_timeout == settings.viewer_send_timeout_seconds
    asyncio.run(container.close_resources())
