"""Pydantic models for the HTTP API."""

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from image_gallery.domain.errors import GalleryError


class RenameImageRequest(BaseModel):
    """Body of an image rename request."""

    model_config = ConfigDict(populate_by_name=True)

    new_original_name: str = Field(alias="newOriginalName", min_length=1)


class ImagePayload(BaseModel):
    """Image record as exposed to clients."""

    id: int
    filename: str
    originalname: str
    mimetype: str
    size: int = Field(ge=0)


class UploadResponse(BaseModel):
    """Successful upload response."""

    message: str
    image: ImagePayload


class ErrorResponse(BaseModel):
    """Error body; ``error`` and ``retryable`` keep failure kinds apart."""

    message: str
    error: str | None = None
    retryable: bool | None = None


class MutationResponse(BaseModel):
    """Response to rename and delete requests."""

    message: str
    updated: bool | None = None
    deleted: bool | None = None


class ReconciliationResponse(BaseModel):
    """Result of a reconciliation sweep."""

    completed: int
    orphans_removed: int
    discarded: int
    failed: int


def error_response(
    status_code: int, message: str, error: GalleryError | None = None
) -> JSONResponse:
    """Build an error body that keeps the failure kind visible."""
    body = ErrorResponse(message=message)
    if error is not None:
        body.error = error.code
        body.retryable = error.retryable
    return JSONResponse(
        body.model_dump(exclude_none=True), status_code=status_code
    )
