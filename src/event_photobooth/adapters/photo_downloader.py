"""HTTP download of photos referenced by public URL."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class PhotoDownloader(Protocol):
    """Interface for fetching photo bytes by URL."""

    async def download(self, url: str) -> bytes:
        """Download a photo and return its bytes."""


@dataclass
class HttpxPhotoDownloader(PhotoDownloader):
    """Photo downloader using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxPhotoDownloader":
        """Create a downloader with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient())

    async def download(self, url: str) -> bytes:
        """Fetch a photo over HTTP."""
        response = await self.http_client.get(url, timeout=20)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
