"""
Shared network-to-file transfer step for the download managers.

A transfer either leaves a complete, non-empty file at the deterministic
target path or leaves nothing there at all.
"""

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path

import httpx

from ..storage.base import FileStore

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Base exception for download failures."""

    def __init__(self, message: str, item_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.item_id = item_id

    def __str__(self) -> str:
        return self.message


class InvalidInputError(DownloadError):
    """Empty or missing id; raised before any I/O."""

    pass


class TransferFailedError(DownloadError):
    """Non-200 response or transport failure."""

    def __init__(self, message: str, item_id: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, item_id)
        self.status_code = status_code


class EmptyFileError(DownloadError):
    """The transfer produced a zero-byte file."""

    pass


class DownloadInProgressError(DownloadError):
    """The same id is already being downloaded."""

    pass


class DirectoryClass(str, Enum):
    """
    Where downloaded media lives.

    CACHE directories may be purged by the OS under storage pressure;
    DOCUMENT directories are kept until the app removes them.
    """

    CACHE = "cache"
    DOCUMENT = "document"


DEFAULT_DIRECTORY_CLASSES: dict[str, DirectoryClass] = {
    "android": DirectoryClass.CACHE,
    "ios": DirectoryClass.DOCUMENT,
}


def choose_directory(
    platform: str,
    cache_dir: Path,
    document_dir: Path,
    directory_classes: Mapping[str, DirectoryClass | str] | None = None,
) -> Path:
    """
    Pick the download directory for a platform.

    Platforms missing from the mapping use the document directory.
    """
    classes = DEFAULT_DIRECTORY_CLASSES if directory_classes is None else directory_classes
    chosen = DirectoryClass(classes.get(platform.lower(), DirectoryClass.DOCUMENT))
    return Path(cache_dir) if chosen is DirectoryClass.CACHE else Path(document_dir)


class MediaDownloader:
    """
    Downloads one kind of media (audio, PDF) into a directory.

    Keeps the set of ids currently in flight; claiming an id that is
    already claimed raises DownloadInProgressError.
    """

    def __init__(
        self,
        files: FileStore,
        directory: Path | str,
        assets_url: str,
        extension: str,
        accept: str,
        user_agent: str = "tosuthien-app",
    ):
        """
        Args:
            files: File store performing the transfer
            directory: Target directory for downloaded files
            assets_url: Base URL asset ids are appended to
            extension: File extension including the dot (".mp3")
            accept: Accept header sent with the transfer
            user_agent: User-Agent header sent with the transfer
        """
        self.files = files
        self.directory = Path(directory)
        self.assets_url = assets_url if assets_url.endswith("/") else f"{assets_url}/"
        self.extension = extension
        self.headers = {"Accept": accept, "User-Agent": user_agent}
        self._in_flight: set[str] = set()

    def target_path(self, item_id: str) -> str:
        return str(self.directory / f"{item_id}{self.extension}")

    def source_url(self, asset_id: str) -> str:
        return f"{self.assets_url}{asset_id}"

    def is_in_flight(self, item_id: str) -> bool:
        return item_id in self._in_flight

    @asynccontextmanager
    async def claim(self, item_id: str) -> AsyncIterator[None]:
        """
        Mark item_id as downloading for the duration of the block.

        Raises:
            DownloadInProgressError: If item_id is already claimed
        """
        # Check and add with no await in between so the claim is atomic.
        if item_id in self._in_flight:
            raise DownloadInProgressError(f"Download already in progress: {item_id}", item_id)
        self._in_flight.add(item_id)
        try:
            yield
        finally:
            self._in_flight.discard(item_id)

    async def _discard(self, path: str) -> None:
        if await self.files.exists(path):
            await self.files.delete(path)

    async def fetch(self, item_id: str, asset_id: str | None = None) -> str:
        """
        Transfer an asset into the target path for item_id.

        Args:
            item_id: Id the local file is named after
            asset_id: Asset to download (defaults to item_id)

        Returns:
            Local path of the downloaded file

        Raises:
            InvalidInputError: If an id is empty
            TransferFailedError: If the status is not 200 or the transfer failed
            EmptyFileError: If the downloaded file is empty
        """
        asset_id = item_id if asset_id is None else asset_id
        if not item_id or not asset_id:
            raise InvalidInputError("Invalid id", item_id)

        path = self.target_path(item_id)
        url = self.source_url(asset_id)

        # Overwrite any stale file from an earlier attempt.
        await self._discard(path)

        logger.info("Downloading %s -> %s", url, path)
        try:
            info = await self.files.write(path, url, self.headers)
        except (httpx.HTTPError, OSError) as e:
            await self._discard(path)
            raise TransferFailedError(f"Transfer of {item_id} failed: {e}", item_id) from e

        if info.status_code != 200:
            await self._discard(path)
            raise TransferFailedError(
                f"Server returned status code {info.status_code} for {item_id}",
                item_id,
                status_code=info.status_code,
            )

        try:
            size = (await self.files.stat(path)).size
        except OSError:
            size = 0
        if size == 0:
            await self._discard(path)
            raise EmptyFileError(f"Downloaded file for {item_id} is empty", item_id)

        logger.info("Downloaded %s (%d bytes)", path, size)
        return path
