"""Error taxonomy for the gallery.

Client faults (`retryable = False`) should not be retried by callers; the
infrastructure faults may be. Nothing in the service retries on its own.
"""


class GalleryError(Exception):
    """Base class for all gallery errors."""

    code = "gallery_error"
    retryable = False


class UploadError(GalleryError):
    """Base class for failures of the upload pipeline."""

    code = "upload_error"


class NoFileError(UploadError):
    """The request did not carry a file part."""

    code = "no_file"

    def __init__(self) -> None:
        super().__init__("No file uploaded")


class InvalidFileTypeError(UploadError):
    """The uploaded file is not an image."""

    code = "invalid_file_type"

    def __init__(self, mime_type: str) -> None:
        super().__init__(
            f"Invalid file type {mime_type!r}. Only image files are allowed."
        )
        self.mime_type = mime_type


class StorageWriteError(UploadError):
    """Blob bytes could not be written."""

    code = "storage_write_failed"
    retryable = True


class MetadataWriteError(UploadError):
    """An image or intent row could not be written."""

    code = "metadata_write_failed"
    retryable = True


class MetadataQueryError(GalleryError):
    """Image metadata could not be read."""

    code = "metadata_query_failed"
    retryable = True
