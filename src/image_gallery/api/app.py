"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from image_gallery.api.maintenance import router as maintenance_router
from image_gallery.api.models import (
    ErrorResponse,
    ImagePayload,
    MutationResponse,
    RenameImageRequest,
    UploadResponse,
    error_response,
)
from image_gallery.api.realtime import router as realtime_router
from image_gallery.app_logging import configure_logging
from image_gallery.config import parse_cors_origins
from image_gallery.containers import AppContainer
from image_gallery.domain.errors import GalleryError, NoFileError, UploadError
from image_gallery.domain.uploads import UploadedFile

UPLOAD_FIELD = "image"

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    500: {"model": ErrorResponse},
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    container.blob_store.ensure_root()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(maintenance_router)
    app.include_router(realtime_router)
    app.mount(
        "/uploads",
        StaticFiles(directory=container.blob_store.root, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post(
        "/upload",
        response_model=UploadResponse,
        responses={400: {"model": ErrorResponse}, **_ERROR_RESPONSES},
    )
    async def upload_image(
        request: Request, image: UploadFile | None = File(default=None)
    ) -> UploadResponse | JSONResponse:
        """Store an uploaded image and notify connected viewers."""
        state_container: AppContainer = request.app.state.container
        content: bytes | None = None
        upload: UploadedFile | None = None
        if image is not None:
            content = await image.read()
            upload = UploadedFile(
                original_name=image.filename or "",
                mime_type=image.content_type or "application/octet-stream",
                field_name=UPLOAD_FIELD,
            )
        try:
            record = await state_container.upload_service.handle_upload(
                content, upload
            )
        except NoFileError as exc:
            return error_response(status.HTTP_400_BAD_REQUEST, str(exc), exc)
        except UploadError as exc:
            logger.warning("Upload failed: %s", exc)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Upload failed", exc
            )
        except Exception:
            logger.exception("Upload failed")
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Upload failed"
            )
        return UploadResponse(
            message="File uploaded successfully",
            image=ImagePayload.model_validate(record.to_payload()),
        )

    @app.get(
        "/images", response_model=list[ImagePayload], responses=_ERROR_RESPONSES
    )
    async def list_images(request: Request) -> list[ImagePayload] | JSONResponse:
        """Return every stored image record."""
        state_container: AppContainer = request.app.state.container
        try:
            images = await state_container.gallery_service.list_images()
        except GalleryError as exc:
            logger.error("Error fetching images: %s", exc)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR, "Error fetching images", exc
            )
        return [ImagePayload.model_validate(image.to_payload()) for image in images]

    @app.put(
        "/images/{image_id}",
        response_model=MutationResponse,
        response_model_exclude_none=True,
        responses=_ERROR_RESPONSES,
    )
    async def rename_image(
        image_id: int, body: RenameImageRequest, request: Request
    ) -> MutationResponse | JSONResponse:
        """Update the original name of an image record.

        Succeeds whether or not a row matched; ``updated`` tells them apart.
        """
        state_container: AppContainer = request.app.state.container
        try:
            updated = await state_container.gallery_service.rename_image(
                image_id, body.new_original_name
            )
        except GalleryError as exc:
            logger.error("Error updating image record %s: %s", image_id, exc)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Error updating image record",
                exc,
            )
        message = (
            "Image record updated successfully"
            if updated
            else "No image record matched"
        )
        return MutationResponse(message=message, updated=updated)

    @app.delete(
        "/images/{image_id}",
        response_model=MutationResponse,
        response_model_exclude_none=True,
        responses=_ERROR_RESPONSES,
    )
    async def delete_image(
        image_id: int, request: Request
    ) -> MutationResponse | JSONResponse:
        """Delete an image record and its stored file.

        Succeeds whether or not a row matched; ``deleted`` tells them apart.
        """
        state_container: AppContainer = request.app.state.container
        try:
            deleted = await state_container.gallery_service.delete_image(image_id)
        except GalleryError as exc:
            logger.error("Error deleting image record %s: %s", image_id, exc)
            return error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Error deleting image record",
                exc,
            )
        message = (
            "Image record deleted successfully"
            if deleted
            else "No image record matched"
        )
        return MutationResponse(message=message, deleted=deleted)

    return app

