"""
Storage backends for the key-value store and local files.
"""

from .base import FileStat, FileStore, KeyValueStore, StorageError, StorageQuotaError, TransferInfo
from .files import LocalFileStore
from .memory import MemoryKeyValueStore
from .sqlite_store import SQLiteKeyValueStore

__all__ = [
    # Protocols
    "KeyValueStore",
    "FileStore",
    # Value types
    "FileStat",
    "TransferInfo",
    # Exceptions
    "StorageError",
    "StorageQuotaError",
    # Backends
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "LocalFileStore",
]
