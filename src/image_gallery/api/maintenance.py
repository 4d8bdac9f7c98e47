"""Maintenance endpoints guarded by the admin token."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from image_gallery.api.models import (
    ErrorResponse,
    ReconciliationResponse,
    error_response,
)
from image_gallery.domain.errors import GalleryError

if TYPE_CHECKING:
    from image_gallery.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post(
    "/reconcile",
    dependencies=[Depends(require_admin)],
    response_model=ReconciliationResponse,
    responses={500: {"model": ErrorResponse}},
)
async def reconcile(request: Request) -> ReconciliationResponse | JSONResponse:
    """Resolve stale upload intents and remove orphan blobs."""
    container: AppContainer = request.app.state.container
    try:
        report = await container.reconciliation_service.sweep()
    except GalleryError as exc:
        logger.error("Reconciliation failed: %s", exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Reconciliation failed", exc
        )
    return ReconciliationResponse(
        completed=report.completed,
        orphans_removed=report.orphans_removed,
        discarded=report.discarded,
        failed=report.failed,
    )


@router.get("/viewers", dependencies=[Depends(require_admin)])
async def viewers(request: Request) -> dict[str, int]:
    """Return the number of connected viewers."""
    container: AppContainer = request.app.state.container
    return {"viewers": container.hub.session_count}
