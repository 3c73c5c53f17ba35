"""
Local filesystem implementation of FileStore.

Transfers stream the HTTP body straight to disk with httpx so large media
files never sit in memory.
"""

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

import httpx

from .base import FileStat, TransferInfo

logger = logging.getLogger(__name__)


class LocalFileStore:
    """
    FileStore backed by the local filesystem.

    Uses a lazily created httpx.AsyncClient for transfers. Close it with
    ``await store.close()`` or use the store as an async context manager.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        chunk_size: int = 64 * 1024,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            timeout: Transfer timeout in seconds
            chunk_size: Bytes per streamed chunk
            client: Pre-built client (e.g. with a mock transport)
        """
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._client = client
        self._owns_client = client is None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LocalFileStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def exists(self, path: str) -> bool:
        if not path:
            return False
        return await asyncio.to_thread(Path(path).is_file)

    async def stat(self, path: str) -> FileStat:
        result = await asyncio.to_thread(Path(path).stat)
        return FileStat(size=result.st_size)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(Path(path).unlink, missing_ok=True)

    async def write(self, path: str, source_url: str, headers: Mapping[str, str]) -> TransferInfo:
        """
        Stream source_url into path.

        The body is written whatever the status code, like a platform
        download-to-file API; the caller validates and cleans up.

        Raises:
            httpx.HTTPError: On transport failure
        """
        target = Path(path)
        await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)

        client = await self._ensure_client()
        written = 0

        logger.debug("Transfer %s -> %s", source_url, target)
        async with client.stream("GET", source_url, headers=dict(headers)) as response:
            with open(target, "wb") as f:
                async for chunk in response.aiter_bytes(self.chunk_size):
                    f.write(chunk)
                    written += len(chunk)

        logger.debug("Transfer finished: status=%d bytes=%d", response.status_code, written)
        return TransferInfo(status_code=response.status_code, bytes_written=written)
