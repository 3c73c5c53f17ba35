"""
Storage contracts shared by the cache and download layers.

Two external collaborators are modelled here as protocols so that any
backend (SQLite, an in-memory dict, a platform key-value API) can be
plugged in without touching the code that depends on them:

- KeyValueStore: durable, string-keyed, string-valued storage
- FileStore: local files addressed by path, plus a network-to-file transfer
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


class StorageError(Exception):
    """Base exception for key-value store failures."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key

    def __str__(self) -> str:
        return self.message


class StorageQuotaError(StorageError):
    """The store has no room left for the write."""

    pass


@dataclass(frozen=True)
class FileStat:
    """Subset of file metadata the download layer needs."""

    size: int


@dataclass(frozen=True)
class TransferInfo:
    """Outcome of a network-to-file transfer."""

    status_code: int
    bytes_written: int = 0

    @property
    def ok(self) -> bool:
        return self.status_code == 200


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Durable string key-value storage.

    Every method is a suspension point. Operations on the same key issued
    sequentially by one caller complete in issue order; there is no locking
    across callers (last write wins).
    """

    async def get(self, key: str) -> str | None:
        """Return the stored string, or None if the key is absent."""
        ...

    async def set(self, key: str, value: str) -> None:
        """
        Store a value.

        Raises:
            StorageQuotaError: If the store is out of space
            StorageError: On any other backend failure
        """
        ...

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        ...

    async def keys(self) -> list[str]:
        """List every key in the store."""
        ...

    async def multi_get(self, keys: Iterable[str]) -> list[tuple[str, str | None]]:
        """Fetch several keys at once, preserving the requested order."""
        ...

    async def multi_delete(self, keys: Iterable[str]) -> None:
        """Delete several keys at once."""
        ...


@runtime_checkable
class FileStore(Protocol):
    """Local file operations used by the download managers."""

    async def exists(self, path: str) -> bool:
        ...

    async def stat(self, path: str) -> FileStat:
        """
        Raises:
            OSError: If the file cannot be inspected
        """
        ...

    async def write(self, path: str, source_url: str, headers: Mapping[str, str]) -> TransferInfo:
        """
        Fetch source_url and write the response body to path.

        The status code is reported, not interpreted: callers decide whether
        the written file is acceptable.
        """
        ...

    async def delete(self, path: str) -> None:
        ...
