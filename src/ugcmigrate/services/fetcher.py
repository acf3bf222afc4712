"""HTTP fetching of remote images."""

from dataclasses import dataclass

import httpx

from ugcmigrate.config import Settings


@dataclass
class FetchedImage:
    """Represents the response to an image download."""

    url: str
    status_code: int
    content: bytes
    content_type: str | None = None

    @property
    def is_success(self) -> bool:
        """Check if the response carried a 2xx status."""
        return 200 <= self.status_code <= 299


class HttpImageFetcher:
    """Downloads images with a shared httpx client."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.settings.user_agent},
                timeout=self.settings.http_timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchedImage:
        """
        GET a URL and read the whole body into memory.

        Raises:
            httpx.HTTPError: on connection or protocol failures
        """
        client = await self._get_client()
        response = await client.get(url)
        return FetchedImage(
            url=url,
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("Content-Type"),
        )
