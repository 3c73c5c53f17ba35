"""
Book catalog proxy.

The book list is stored raw (no envelope) at ``all_books`` because it also
holds on-device state: download flag, local path and reading progress.
It doubles as the record store for downloaded books.
"""

import logging

from ..api.models import Book
from ..api.source import ContentSource
from ..cache.proxy import CacheProxy
from ..network.reachability import ReachabilityMonitor
from .common import CatalogReader, require_list
from .merge import merge_books, patch_entry
from .result import Outcome

logger = logging.getLogger(__name__)

NAMESPACE = "books"
BOOKS_KEY = "all_books"


def parse_books(data) -> list[Book]:
    return [Book.model_validate(item) for item in require_list(data)]


class BookProxy:
    """Cached access to the book list and per-book local state."""

    def __init__(
        self,
        cache: CacheProxy,
        source: ContentSource,
        reachability: ReachabilityMonitor | None = None,
        fetch_timeout: float | None = 15.0,
    ):
        self.cache = cache
        self.source = source
        self.reader = CatalogReader(cache, reachability=reachability, fetch_timeout=fetch_timeout, raw=True)

    async def _fetch(self) -> list[dict]:
        return [book.to_cache() for book in await self.source.fetch_books()]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_books_result(self) -> Outcome[list[Book]]:
        return await self.reader.cached_first(BOOKS_KEY, self._fetch, parse_books)

    async def get_books(self) -> list[Book]:
        """All books, cache first. Empty on failure."""
        return (await self.get_books_result()).value_or([])

    async def get_books_fresh_result(self) -> Outcome[list[Book]]:
        return await self.reader.fresh_first(BOOKS_KEY, self._fetch, parse_books, merge=merge_books)

    async def get_books_fresh(self) -> list[Book]:
        """All books, network first, with download and progress state kept."""
        return (await self.get_books_fresh_result()).value_or([])

    async def cached_books(self) -> list[Book]:
        """The cached list only, never touching the network."""
        return (await self.reader.read_cached(BOOKS_KEY, parse_books)).value_or([])

    async def get_book_by_id(self, book_id: str) -> Book | None:
        if not book_id:
            logger.error("Invalid book ID")
            return None

        for book in await self.cached_books():
            if book.id == book_id:
                return book
        return next((book for book in await self.get_books() if book.id == book_id), None)

    async def get_all_downloaded(self) -> list[Book]:
        """Books flagged as downloaded (flag only, files are not checked)."""
        return [book for book in await self.get_books() if book.is_download]

    # -------------------------------------------------------------------------
    # Local state
    # -------------------------------------------------------------------------

    async def _patch(self, book_id: str, **fields) -> bool:
        if not book_id:
            logger.error("Invalid book ID")
            return False

        books = await self.reader.cached_data(BOOKS_KEY, parse_books)
        if books is None:
            logger.debug("No cached book list to patch for %s", book_id)
            return False

        if not patch_entry(books, lambda entry: entry.get("id") == book_id, **fields):
            logger.debug("Book %s is not in the cached list", book_id)
            return False

        return await self.cache.set_raw(BOOKS_KEY, books)

    async def update_download_status(self, book_id: str, downloaded: bool, path: str | None = None) -> bool:
        """
        Record a book's download state.

        Returns:
            False if no list was ever cached or the book is not in it
        """
        if downloaded and path is None:
            current = next((b for b in await self.cached_books() if b.id == book_id), None)
            path = current.path if current else None
        return await self._patch(book_id, isDownload=downloaded, path=path if downloaded else None)

    async def update_current_page(self, book_id: str, page: int) -> bool:
        """Record reading progress. False if there is nothing to patch."""
        return await self._patch(book_id, pageCurrent=page)

    async def clear_cache(self) -> int:
        """Drop the cached book list, download state included."""
        return await self.cache.clear_all()
