"""
Book (PDF) download manager.

The cached book list is the record store: a book is downloaded when its
entry has ``isDownload`` set and its ``path`` resolves to an existing file.
"""

import logging

from ..api.models import Book
from ..proxies.book import BookProxy
from ..storage.base import FileStore
from .index import ReconcileReport
from .transfer import InvalidInputError, MediaDownloader

logger = logging.getLogger(__name__)


class BookDownloadManager:
    """Downloads book PDFs and records them in the book cache."""

    def __init__(self, downloader: MediaDownloader, files: FileStore, book_proxy: BookProxy):
        self.downloader = downloader
        self.files = files
        self.book_proxy = book_proxy

    async def download(self, book_id: str, first_chapter_id: str) -> str:
        """
        Download a book's PDF (named after the book, fetched by chapter asset).

        Returns:
            Local path of the file

        Raises:
            InvalidInputError: If either id is empty
            DownloadInProgressError: If the book is already downloading
            TransferFailedError: If the server did not answer 200
            EmptyFileError: If the file came back empty
        """
        if not book_id or not first_chapter_id:
            raise InvalidInputError("Invalid book or chapter id", book_id)

        async with self.downloader.claim(book_id):
            path = await self.downloader.fetch(book_id, asset_id=first_chapter_id)
            if not await self.book_proxy.update_download_status(book_id, True, path):
                logger.warning("Book %s downloaded but not present in the cached list", book_id)
        return path

    async def remove_download(self, book_id: str) -> None:
        """
        Delete a book's file and mark it as not downloaded.

        Raises:
            InvalidInputError: If book_id is empty
        """
        if not book_id:
            raise InvalidInputError("Invalid book id", book_id)

        book = await self.book_proxy.get_book_by_id(book_id)
        if book and book.path and await self.files.exists(book.path):
            await self.files.delete(book.path)
            logger.info("Deleted book file %s", book.path)

        await self.book_proxy.update_download_status(book_id, False)

    async def get_offline_path(self, book_id: str) -> str | None:
        """Local path of a downloaded book; a missing file clears the flag."""
        if not book_id:
            return None

        book = next((b for b in await self.book_proxy.cached_books() if b.id == book_id), None)
        if book is None or not book.path:
            return None

        if await self.files.exists(book.path):
            return book.path

        logger.info("Book file for %s is missing, clearing download state", book_id)
        await self.book_proxy.update_download_status(book_id, False)
        return None

    async def is_downloaded(self, book_id: str) -> bool:
        return await self.get_offline_path(book_id) is not None

    async def reconcile(self) -> ReconcileReport:
        """Clear the download flag of every book whose file is gone."""
        report = ReconcileReport()
        for book in await self.book_proxy.cached_books():
            if not book.is_download:
                continue
            if book.path and await self.files.exists(book.path):
                report.valid.append(book)
            else:
                await self.book_proxy.update_download_status(book.id, False)
                report.removed.append(book)

        if report.removed:
            logger.info("Book downloads reconciled: %d valid, %d removed", len(report.valid), len(report.removed))
        return report

    async def list_all_downloaded(self) -> list[Book]:
        """Downloaded books whose files exist; stale flags are cleared."""
        return (await self.reconcile()).valid

    async def used_storage_bytes(self) -> int:
        total = 0
        for book in await self.list_all_downloaded():
            try:
                total += (await self.files.stat(book.path)).size
            except OSError as e:
                logger.debug("Could not stat %s: %s", book.path, e)
        return total
