"""
Catalog CLI commands.

Read the cached catalog, or refresh it from the CMS:
- audio: Audio categories, or one collection's tracks
- books: Book list with download and reading state
- videos: Video categories, or one category's videos
- centers: Practice center directory
"""

import typer

from ..proxies.result import Outcome
from .common import Icons, console, get_services, run_async, ui

catalog_app = typer.Typer(help="📚 Browse the cached catalog")

FRESH_HELP = "Fetch from the server first and merge with local state"


def _check(outcome: Outcome, what: str) -> None:
    """Exit with an error if the read produced nothing."""
    if not outcome.ok:
        ui.error(f"No {what} available", details=str(outcome.error) if outcome.error else None)
        raise typer.Exit(1)
    console.print("  Source:", ui.source_badge(outcome.source.value))


@catalog_app.command("audio")
def catalog_audio(
    category_id: str | None = typer.Argument(None, help="Category ID (root level if omitted)"),
    collection: str | None = typer.Option(None, "--collection", "-c", help="Show one collection's tracks"),
    fresh: bool = typer.Option(False, "--fresh", "-f", help=FRESH_HELP),
):
    """List audio categories or a collection's tracks."""

    async def _run() -> None:
        async with get_services() as services:
            if collection:
                if fresh:
                    outcome = await services.audio.get_audio_by_id_fresh_result(collection)
                else:
                    outcome = await services.audio.get_audio_by_id_result(collection)
                _check(outcome, f"collection '{collection}'")

                detail = outcome.value
                table = ui.create_table(f"{Icons.AUDIO} {detail.name or detail.id}", ["Track", "Title", "Offline"])
                for item in detail.audios:
                    offline = "[success]✓[/success]" if item.is_offline else ""
                    table.add_row(item.track_id or "[dim]-[/dim]", item.title, offline)
                console.print(table)
                return

            if fresh:
                outcome = await services.audio.get_audio_category_fresh_result(category_id)
            else:
                outcome = await services.audio.get_audio_category_result(category_id)
            _check(outcome, "audio categories")

            table = ui.create_table(f"{Icons.AUDIO} Audio", ["ID", "Name", "Category"])
            for entry in outcome.value:
                table.add_row(entry.id, entry.name, "yes" if entry.is_category else "")
            console.print(table)

    run_async(_run())


@catalog_app.command("books")
def catalog_books(fresh: bool = typer.Option(False, "--fresh", "-f", help=FRESH_HELP)):
    """List books with download state and reading progress."""

    async def _run() -> None:
        async with get_services() as services:
            if fresh:
                outcome = await services.books.get_books_fresh_result()
            else:
                outcome = await services.books.get_books_result()
            _check(outcome, "books")

            table = ui.create_table(f"{Icons.BOOK} Books", ["ID", "Title", "Downloaded", "Page"])
            for book in outcome.value:
                progress = book.reading_progress
                page = f"{progress[0]}/{progress[1]}" if progress else str(book.page_current or "")
                table.add_row(book.id, book.title, "[success]✓[/success]" if book.is_download else "", page)
            console.print(table)

    run_async(_run())


@catalog_app.command("videos")
def catalog_videos(
    category_id: str | None = typer.Argument(None, help="Category ID (all categories if omitted)"),
    fresh: bool = typer.Option(False, "--fresh", "-f", help=FRESH_HELP),
):
    """List video categories or one category's videos."""

    async def _run() -> None:
        async with get_services() as services:
            if category_id:
                if fresh:
                    outcome = await services.videos.get_video_category_by_id_fresh_result(category_id)
                else:
                    outcome = await services.videos.get_video_category_by_id_result(category_id)
                _check(outcome, f"videos for '{category_id}'")

                table = ui.create_table(f"{Icons.VIDEO} {category_id}", ["Video ID", "Title"])
                for video in outcome.value.videos:
                    table.add_row(video.video_id, video.title)
                console.print(table)
                return

            if fresh:
                outcome = await services.videos.get_video_categories_fresh_result()
            else:
                outcome = await services.videos.get_video_categories_result()
            _check(outcome, "video categories")

            table = ui.create_table(f"{Icons.VIDEO} Video categories", ["ID", "Name"])
            for entry in outcome.value:
                table.add_row(entry.id, entry.name)
            console.print(table)

    run_async(_run())


@catalog_app.command("centers")
def catalog_centers(fresh: bool = typer.Option(False, "--fresh", "-f", help=FRESH_HELP)):
    """List practice centers."""

    async def _run() -> None:
        async with get_services() as services:
            if fresh:
                outcome = await services.centers.get_centers_fresh_result()
            else:
                outcome = await services.centers.get_centers_result()
            _check(outcome, "centers")

            table = ui.create_table(f"{Icons.CENTER} Centers", ["Name", "Address", "Phone"])
            for center in outcome.value:
                table.add_row(center.name, center.address, center.phone)
            console.print(table)

    run_async(_run())
