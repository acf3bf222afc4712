"""Rewriting of embedded image references in rich text."""

import html
import logging
import re
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy.ext.asyncio import AsyncSession

from ugcmigrate.config import Settings, get_settings
from ugcmigrate.services.fetcher import HttpImageFetcher
from ugcmigrate.services.importer import AssetImporter
from ugcmigrate.services.ports import ImageImporter
from ugcmigrate.services.repository import ContentRepository

logger = logging.getLogger(__name__)

IMAGE_ELEMENT = re.compile(re.escape("<img"), re.IGNORECASE)
SRC_ELEMENT = re.compile(re.escape("src="), re.IGNORECASE)


@dataclass
class ImageReference:
    """Location of an img tag's src value within a text."""

    tag_start: int
    value_start: int  # First character after the opening quote
    value_end: int  # Index of the closing quote
    url: str

    @property
    def span(self) -> tuple[int, int]:
        """Return the (start, end) offsets of the src value."""
        return self.value_start, self.value_end


def _parse_reference(text: str, tag_start: int) -> ImageReference | None:
    """Locate the double-quoted src value of the tag starting at ``tag_start``."""
    tag_end = text.find(">", tag_start)
    if tag_end < 0:
        return None

    src = SRC_ELEMENT.search(text, tag_start)
    if src is None:
        return None

    open_quote = text.find('"', src.start())
    if open_quote < 0 or open_quote >= tag_end:
        return None

    # The closing quote may lie past the end of the tag
    close_quote = text.find('"', open_quote + 1)
    if close_quote < 0:
        return None

    return ImageReference(
        tag_start=tag_start,
        value_start=open_quote + 1,
        value_end=close_quote,
        url=text[open_quote + 1 : close_quote],
    )


def find_image_references(text: str) -> Iterator[ImageReference]:
    """
    Yield the src values of img tags in document order.

    Scanning resumes one character past each ``<img`` token, so tags nested
    inside a malformed tag are still visited. Tags without a well-formed
    double-quoted src are skipped.
    """
    cursor = 0
    while True:
        match = IMAGE_ELEMENT.search(text, cursor)
        if match is None:
            return
        cursor = match.start() + 1

        reference = _parse_reference(text, match.start())
        if reference is not None:
            yield reference


def _apply_replacements(text: str, replacements: dict[tuple[int, int], str]) -> str:
    """Build a new string with each (start, end) span replaced."""
    parts: list[str] = []
    position = 0
    for (start, end), value in sorted(replacements.items()):
        parts.append(text[position:start])
        parts.append(value)
        position = end
    parts.append(text[position:])
    return "".join(parts)


async def rewrite_images(text: str, include: str | None, importer: ImageImporter) -> str:
    """
    Import every embedded image and point its src at the stored copy.

    Args:
        text: Rich text containing ``<img src="...">`` tags
        include: If set, only URLs containing this substring are imported
        importer: Imports a URL and returns the new path, or None

    Returns:
        The text with imported image URLs replaced; unchanged if nothing was imported
    """
    if not text or IMAGE_ELEMENT.search(text) is None:
        return text  # Fast path: no images

    # Two tags share a span or have disjoint spans; a tag inside a replaced
    # value no longer exists once that value is rewritten
    replacements: dict[tuple[int, int], str] = {}
    for reference in find_image_references(text):
        if any(start <= reference.tag_start < end for start, end in replacements):
            continue

        url = html.unescape(replacements.get(reference.span, reference.url))

        if include and include not in url:
            logger.debug("Skipping image %s: does not match filter %r", url, include)
            continue

        new_path = await importer.import_asset(url)
        if new_path is not None:
            replacements[reference.span] = new_path

    if not replacements:
        return text

    return _apply_replacements(text, replacements)


async def import_images(
    session: AsyncSession,
    text: str,
    include: str | None = None,
    settings: Settings | None = None,
    fetcher: HttpImageFetcher | None = None,
) -> str:
    """
    Import the images embedded in ``text`` into the content repository.

    Args:
        session: Database session of the content repository
        text: Rich text to rewrite
        include: URL filter; defaults to the configured image include filter
        settings: Settings to use instead of the cached ones
        fetcher: Fetcher to reuse; a new one is created and closed otherwise

    Returns:
        The rewritten text
    """
    settings = settings or get_settings()
    if include is None:
        include = settings.image_include_filter

    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = HttpImageFetcher(settings)

    importer = AssetImporter(fetcher, ContentRepository(session), settings.image_staging_path)
    try:
        return await rewrite_images(text, include, importer)
    finally:
        if owns_fetcher:
            await fetcher.close()
