"""
Download management CLI commands.

- list: Downloaded tracks and books
- usage: Storage used by downloads
- reconcile: Repair download records against the files on disk
- remove: Delete a downloaded track or book
- audio: Download tracks
- book: Download a book PDF
"""

import logging

import typer

from ..downloads.transfer import DownloadError
from ..utils.logging import log_success, log_warning
from .common import Icons, async_command, console, gather_with_progress, get_services, run_async, ui

logger = logging.getLogger(__name__)

downloads_app = typer.Typer(help="⬇️ Manage offline downloads")


@downloads_app.command("list")
def downloads_list():
    """List downloaded tracks and books."""

    async def _run() -> None:
        async with get_services() as services:
            tracks = await services.audio_downloads.list_all_downloaded()
            books = await services.book_downloads.list_all_downloaded()

        table = ui.create_table(f"{Icons.AUDIO} Tracks", ["ID", "Title", "Category", "Last played"])
        for record in tracks:
            table.add_row(record.id, record.title, record.category_id or "", ui.timestamp_ms(record.last_played_at))
        console.print(table)

        table = ui.create_table(f"{Icons.BOOK} Books", ["ID", "Title", "Path"])
        for book in books:
            table.add_row(book.id, book.title, book.path or "")
        console.print(table)

    run_async(_run())


@downloads_app.command("usage")
def downloads_usage():
    """Show storage used by downloads."""

    async def _run() -> tuple[int, int]:
        async with get_services() as services:
            return (
                await services.audio_downloads.used_storage_bytes(),
                await services.book_downloads.used_storage_bytes(),
            )

    audio_bytes, book_bytes = run_async(_run())
    console.print(f"  {Icons.AUDIO} Audio: ", ui.size_display(audio_bytes))
    console.print(f"  {Icons.BOOK} Books: ", ui.size_display(book_bytes))
    console.print(f"  {Icons.FOLDER} Total: ", ui.size_display(audio_bytes + book_bytes))


@downloads_app.command("reconcile")
@async_command(console=console, spinner_text="Reconciling downloads...")
async def downloads_reconcile():
    """Prune records whose files are gone and rebuild the indexes."""
    async with get_services() as services:
        reports = await services.reconcile()

    for name, report in reports.items():
        if report.changed:
            log_warning(
                "%s: %d removed, %d orphaned index entries",
                name,
                len(report.removed),
                len(report.orphaned),
                logger=logger,
            )
        ui.success(f"{name}: {len(report.valid)} valid downloads")
    log_success("Reconcile finished", logger=logger)


@downloads_app.command("remove")
def downloads_remove(
    item_id: str = typer.Argument(..., help="Track or book ID"),
    category_id: str | None = typer.Option(None, "--category", "-c", help="Category of the track"),
    book: bool = typer.Option(False, "--book", "-b", help="Remove a book instead of a track"),
):
    """Delete a downloaded track or book."""

    async def _run() -> None:
        async with get_services() as services:
            if book:
                await services.book_downloads.remove_download(item_id)
                return
            record = await services.track_index.get(item_id)
            category = category_id or (record.category_id if record else None)
            await services.audio_downloads.remove_download(item_id, category or "")

    try:
        run_async(_run())
    except DownloadError as e:
        ui.error("Remove failed", details=str(e))
        raise typer.Exit(1)
    ui.success(f"Removed {item_id}")


@downloads_app.command("audio")
def downloads_audio(
    category_id: str = typer.Argument(..., help="Collection the tracks belong to"),
    track_ids: list[str] | None = typer.Argument(None, help="Track IDs (all tracks of the collection if omitted)"),
):
    """Download tracks of a collection."""

    async def _run() -> list[str | DownloadError]:
        async with get_services() as services:
            detail = await services.audio.get_audio_by_id(category_id)
            titles = {item.track_id: item.title for item in detail.audios} if detail else {}
            wanted = track_ids or [t for t in titles if t]
            if not wanted:
                return []

            async def one(track_id: str) -> str | DownloadError:
                try:
                    return await services.audio_downloads.download(track_id, category_id, titles.get(track_id, ""))
                except DownloadError as e:
                    return e

            return await gather_with_progress([one(t) for t in wanted], console=console, description="Downloading")

    results = run_async(_run())
    if not results:
        ui.warning("Nothing to download")
        raise typer.Exit(1)

    failed = [r for r in results if isinstance(r, DownloadError)]
    for error in failed:
        ui.error(f"Failed: {error.item_id}", details=str(error))
    ui.success(f"Downloaded {len(results) - len(failed)} of {len(results)} tracks")
    if failed:
        raise typer.Exit(1)


@downloads_app.command("book")
def downloads_book(
    book_id: str = typer.Argument(..., help="Book ID"),
    chapter_id: str | None = typer.Option(None, "--chapter", help="Chapter asset ID (looked up if omitted)"),
):
    """Download a book PDF."""

    async def _run() -> str:
        async with get_services() as services:
            chapter = chapter_id
            if chapter is None:
                book = await services.books.get_book_by_id(book_id)
                chapter = book.first_chapter_id if book else None
            return await services.book_downloads.download(book_id, chapter or "")

    try:
        path = run_async(_run())
    except DownloadError as e:
        ui.error("Download failed", details=str(e))
        raise typer.Exit(1)
    ui.success(f"Downloaded {book_id}", details=path)
