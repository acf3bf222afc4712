"""Import of remote images into the content repository's staging folder."""

import logging
import uuid

import httpx
from sqlalchemy.exc import SQLAlchemyError

from ugcmigrate.errors import ItemExistsError
from ugcmigrate.services.ports import AssetStore, ImageFetcher

logger = logging.getLogger(__name__)

STAGING_PATH = "/content/usergenerated/tmp/social/images"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Checked in order; the first substring found in the MIME type wins
_EXTENSIONS: list[tuple[str, str]] = [
    ("gif", ".gif"),
    ("jpg", ".jpeg"),
    ("png", ".png"),
    ("svg+xml", ".svg"),
]


def get_file_extension(mime_type: str | None) -> str:
    """Map a MIME type to a file extension, or "" if it is not recognized."""
    if not mime_type:
        return ""
    lowered = mime_type.lower()
    for needle, extension in _EXTENSIONS:
        if needle in lowered:
            return extension
    return ""


class AssetImporter:
    """Downloads images and stores them as binary file nodes."""

    def __init__(self, fetcher: ImageFetcher, store: AssetStore, staging_path: str = STAGING_PATH) -> None:
        self.fetcher = fetcher
        self.store = store
        self.staging_path = staging_path.rstrip("/")

    def should_import(self, url: str | None) -> bool:
        """Check if a URL points at an image that still needs importing."""
        if not url:
            return False
        # Already staged
        if url.startswith(self.staging_path):
            return False
        # Never read from the local file system
        if url.startswith("file://"):
            return False
        return True

    async def import_asset(self, url: str | None) -> str | None:
        """
        Download an image and store it under the staging folder.

        Failures are logged and never raised.

        Returns:
            The repository path of the stored image, or None if nothing was stored
        """
        if not url or not self.should_import(url):
            return None

        try:
            image = await self.fetcher.fetch(url.replace(" ", "%20"))
        except (httpx.HTTPError, httpx.InvalidURL):
            logger.error("Error while downloading image: %s", url, exc_info=True)
            return None

        if not image.is_success:
            logger.warning("Skipping image %s: HTTP status %d", url, image.status_code)
            return None

        mime_type = image.content_type or DEFAULT_MIME_TYPE
        file_name = f"{uuid.uuid4()}{get_file_extension(image.content_type)}"

        try:
            await self.store.ensure_folder(self.staging_path)
            path = await self.store.write_binary(self.staging_path, file_name, image.content, mime_type)
            await self.store.commit()
        except (SQLAlchemyError, ItemExistsError):
            logger.error("Error moving image %s into the repository", url, exc_info=True)
            await self.store.rollback()
            return None

        logger.info("Imported image %s as %s", url, path)
        return path
