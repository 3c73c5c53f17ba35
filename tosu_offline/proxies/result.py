"""
Read outcomes for catalog lookups.

Public proxy methods stay lenient (empty list / None on failure), but each
has a ``*_result`` twin returning an Outcome so callers can tell "no data"
apart from "both cache and network failed".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Source(str, Enum):
    """Where a read's value came from."""

    CACHE = "cache"
    NETWORK = "network"
    NONE = "none"


class CatalogUnavailableError(Exception):
    """Neither the cache nor the network could supply a value."""

    def __init__(self, message: str, key: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class NetworkUnavailableError(Exception):
    """The reachability signal reports the device is offline."""

    pass


@dataclass
class Outcome(Generic[T]):
    """Value of a catalog read plus its provenance."""

    value: T | None
    source: Source
    error: BaseException | None = None
    key: str | None = None

    @property
    def ok(self) -> bool:
        return self.source is not Source.NONE

    @property
    def from_cache(self) -> bool:
        return self.source is Source.CACHE

    def unwrap(self) -> T:
        """
        Return the value.

        Raises:
            CatalogUnavailableError: If the read produced nothing
        """
        if not self.ok:
            raise CatalogUnavailableError(
                f"No cached or fresh data for '{self.key}'",
                key=self.key,
                cause=self.error,
            )
        return self.value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default

    @classmethod
    def missing(cls, key: str | None = None, error: BaseException | None = None) -> "Outcome[T]":
        return cls(value=None, source=Source.NONE, error=error, key=key)
