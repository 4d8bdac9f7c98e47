"""Command-line entrypoint that serves the gallery API."""

import uvicorn

from image_gallery.config import Settings


def main() -> None:
    """Run the ASGI app with uvicorn on the configured host and port."""
    settings = Settings()
    uvicorn.run(
        "image_gallery.api.asgi:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
