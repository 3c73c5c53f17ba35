#!/usr/bin/env python3
"""
CLI for the offline content cache.

Maintenance entry point for the cache and download layer: inspect the
store, browse the cached catalog, and manage downloads. Assembles the
subcommands from tosu_offline/cli/.
"""

import logging
from typing import Any

import typer

from tosu_offline.cache.envelope import now_ms
from tosu_offline.cli.catalog import catalog_app
from tosu_offline.cli.common import Icons, console, get_services, run_async, setup_logging, ui
from tosu_offline.cli.downloads import downloads_app
from tosu_offline.config import get_settings
from tosu_offline.proxies import book as book_proxy_module
from tosu_offline.storage.base import StorageError

# Create main app
app = typer.Typer(
    name="tosu-offline",
    help="🎧 Offline content cache and download manager",
    rich_markup_mode="rich",
)

# Register sub-apps
app.add_typer(catalog_app, name="catalog")
app.add_typer(downloads_app, name="downloads")

logger = logging.getLogger(__name__)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """Offline content cache and download manager."""
    setup_logging(verbose)


def _store_stats(store: Any) -> dict[str, Any]:
    get_stats = getattr(store, "get_stats", None)
    if get_stats is not None:
        return get_stats()
    used_bytes = getattr(store, "used_bytes", None)
    return {"backend": type(store).__name__, "used_bytes": used_bytes() if used_bytes else None}


@app.command()
def status():
    """Show connectivity, store, and download status."""
    settings = get_settings()
    has_errors = False

    ui.header("Offline Content", subtitle="System Status", icon=Icons.AUDIO)

    async def _run() -> tuple[bool, dict[str, Any], int, int]:
        async with get_services() as services:
            online = await services.reachability.fetch()
            audio_bytes = await services.audio_downloads.used_storage_bytes()
            book_bytes = await services.book_downloads.used_storage_bytes()
            return online, _store_stats(services.store), audio_bytes, book_bytes

    try:
        with ui.spinner("Checking status..."):
            online, stats, audio_bytes, book_bytes = run_async(_run())
    except StorageError as e:
        ui.error("Store unavailable", details=str(e))
        raise typer.Exit(1)

    # Network
    ui.section("Network", icon=Icons.CLOUD)
    console.print(f"  Probe: [accent]{settings.network.probe_url}[/accent]")
    console.print("  ", ui.connection_status(online, "CMS"))
    if not online:
        has_errors = True

    # Store
    ui.section("Store", icon=Icons.DATABASE)
    console.print(ui.key_value_table(stats))

    # Downloads
    ui.section("Downloads", icon=Icons.DOWNLOAD)
    console.print(f"  Directory: [accent]{settings.download_dir}[/accent]")
    console.print("  Audio: ", ui.size_display(audio_bytes))
    console.print("  Books: ", ui.size_display(book_bytes))
    console.print()

    if has_errors:
        raise typer.Exit(1)


@app.command()
def watch(
    interval: float | None = typer.Option(None, "--interval", "-i", help="Seconds between probes (default from settings)"),
    checks: int = typer.Option(0, "--checks", "-n", help="Stop after this many probes (0 polls until Ctrl+C)"),
):
    """Poll connectivity and report every change."""

    def report(online: bool) -> None:
        console.print(ui.timestamp_ms(now_ms()), ui.connection_status(online, "CMS"))

    async def _run() -> bool:
        async with get_services() as services:
            network = services.settings.network
            seconds = network.poll_interval if interval is None else interval
            ui.muted(f"Probing {network.probe_url} every {seconds:g}s")

            unsubscribe = services.reachability.subscribe(report)
            try:
                await services.reachability.watch(seconds, checks or None)
            finally:
                unsubscribe()
            return services.reachability.is_connected

    try:
        online = run_async(_run())
    except KeyboardInterrupt:
        ui.muted("Stopped watching")
        return

    if not online:
        raise typer.Exit(1)


@app.command("cache")
def cache_command(
    stats: bool = typer.Option(True, "--stats/--no-stats", help="Show cache statistics"),
    clear: bool = typer.Option(False, "--clear", help="Clear cached catalog data"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Specific namespace to clear"),
):
    """Inspect or clear the catalog caches."""

    async def _clear() -> int:
        async with get_services() as services:
            if namespace is None:
                return await services.clear_catalog_caches()
            caches = services.catalog_caches
            if namespace not in caches:
                ui.error(f"Unknown namespace '{namespace}'", details=", ".join(caches))
                raise typer.Exit(1)
            return await caches[namespace].clear_all()

    async def _stats() -> tuple[dict[str, Any], dict[str, int]]:
        async with get_services() as services:
            counts = {name: len(await cache.keys()) for name, cache in services.catalog_caches.items()}
            return _store_stats(services.store), counts

    if clear:
        if namespace == book_proxy_module.NAMESPACE:
            ui.warning("Clearing books also forgets download state and reading progress")
        with ui.spinner("Clearing cache..."):
            count = run_async(_clear())
        ui.success(f"Cleared {count} cached keys" + (f" from '{namespace}'" if namespace else ""))
        return

    if stats:
        store_stats, counts = run_async(_stats())
        console.print(ui.stats_panel(store_stats, title="Store", icon=Icons.CACHE))
        table = ui.create_table(f"{Icons.FOLDER} Namespaces", ["Namespace", "Keys"])
        for name, count in counts.items():
            table.add_row(name, str(count))
        console.print(table)


if __name__ == "__main__":
    app()
