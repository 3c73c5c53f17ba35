"""
In-memory key-value store.

Useful for tests and ephemeral sessions. An optional byte quota makes it
behave like a size-limited device store.
"""

from collections.abc import Iterable

from .base import StorageQuotaError


class MemoryKeyValueStore:
    """Dict-backed KeyValueStore with an optional quota."""

    def __init__(self, initial: dict[str, str] | None = None, max_bytes: int | None = None):
        """
        Args:
            initial: Pre-populated contents (copied)
            max_bytes: Total size limit over all keys and values, None for unlimited
        """
        self._data: dict[str, str] = dict(initial or {})
        self.max_bytes = max_bytes

    @staticmethod
    def _entry_size(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def used_bytes(self) -> int:
        return sum(self._entry_size(k, v) for k, v in self._data.items())

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            current = self.used_bytes()
            if key in self._data:
                current -= self._entry_size(key, self._data[key])
            if current + self._entry_size(key, value) > self.max_bytes:
                raise StorageQuotaError(f"Quota of {self.max_bytes} bytes exceeded writing '{key}'", key=key)
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self) -> list[str]:
        return list(self._data.keys())

    async def multi_get(self, keys: Iterable[str]) -> list[tuple[str, str | None]]:
        return [(k, self._data.get(k)) for k in keys]

    async def multi_delete(self, keys: Iterable[str]) -> None:
        for k in list(keys):
            self._data.pop(k, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the current contents."""
        return dict(self._data)
