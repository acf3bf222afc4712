"""Capability interfaces the migration services depend on.

Kept small so tests can supply simple fakes instead of a live repository or
network.
"""

from typing import Protocol

from ugcmigrate.services.fetcher import FetchedImage


class ImageFetcher(Protocol):
    """Fetches the raw bytes behind a URL."""

    async def fetch(self, url: str) -> FetchedImage: ...


class AssetStore(Protocol):
    """Path-addressable store for binary assets."""

    async def ensure_folder(self, path: str) -> None: ...

    async def write_binary(self, folder_path: str, name: str, data: bytes, mime_type: str) -> str: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class ScoringService(Protocol):
    """Applies a user's score for a resource under a scoring rule."""

    async def save_score(self, user_id: str, resource_path: str, rule_path: str, score: int) -> None: ...


class ImageImporter(Protocol):
    """Imports the image behind a URL, returning its new path."""

    async def import_asset(self, url: str) -> str | None: ...
