"""
Audio download manager.

Per track: NotDownloaded -> Downloading -> Downloaded, back to NotDownloaded
on removal or failure. A fast index (``offline_path_<id>``, raw string) maps
ids to local paths; it is a derived cache and every read re-validates it
against the file store before trusting it.
"""

import logging

from ..proxies.audio import AudioProxy
from ..storage.base import FileStore, KeyValueStore, StorageError
from .index import OfflineDownloadRecord, OfflineTrackIndex, ReconcileReport
from .transfer import InvalidInputError, MediaDownloader

logger = logging.getLogger(__name__)

FAST_INDEX_PREFIX = "offline_path_"


def fast_index_key(track_id: str) -> str:
    return f"{FAST_INDEX_PREFIX}{track_id}"


class AudioDownloadManager:
    """Downloads tracks and keeps the index, fast index and audio cache in step."""

    def __init__(
        self,
        downloader: MediaDownloader,
        index: OfflineTrackIndex,
        store: KeyValueStore,
        files: FileStore,
        audio_proxy: AudioProxy,
    ):
        self.downloader = downloader
        self.index = index
        self.store = store
        self.files = files
        self.audio_proxy = audio_proxy

    # -------------------------------------------------------------------------
    # Fast index
    # -------------------------------------------------------------------------

    async def _get_fast(self, track_id: str) -> str | None:
        try:
            return await self.store.get(fast_index_key(track_id))
        except StorageError as e:
            logger.warning("Fast index read failed for %s: %s", track_id, e)
            return None

    async def _set_fast(self, track_id: str, path: str) -> None:
        try:
            await self.store.set(fast_index_key(track_id), path)
        except StorageError as e:
            logger.warning("Fast index write failed for %s: %s", track_id, e)

    async def _clear_fast(self, track_id: str) -> None:
        try:
            await self.store.delete(fast_index_key(track_id))
        except StorageError as e:
            logger.warning("Fast index delete failed for %s: %s", track_id, e)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def download(self, track_id: str, category_id: str, title: str = "") -> str:
        """
        Download a track and record it everywhere.

        Returns:
            Local path of the file

        Raises:
            InvalidInputError: If track_id is empty
            DownloadInProgressError: If the track is already downloading
            TransferFailedError: If the server did not answer 200
            EmptyFileError: If the file came back empty
        """
        if not track_id:
            raise InvalidInputError("Invalid track id", track_id)

        async with self.downloader.claim(track_id):
            logger.info("Downloading track: %s", title or track_id)
            path = await self.downloader.fetch(track_id)

            await self.audio_proxy.update_download_status(track_id, category_id, True, path)
            await self.index.upsert(track_id, category_id, path, title)
            await self._set_fast(track_id, path)
        return path

    async def remove_download(self, track_id: str, category_id: str) -> None:
        """
        Delete a downloaded track and mark it as not downloaded.

        Raises:
            InvalidInputError: If track_id is empty
        """
        if not track_id:
            raise InvalidInputError("Invalid track id", track_id)

        path = await self.get_offline_path(track_id)
        if path and await self.files.exists(path):
            await self.files.delete(path)

        await self._clear_fast(track_id)
        await self.index.remove(track_id)
        await self.audio_proxy.update_download_status(track_id, category_id, False, None)
        logger.info("Removed downloaded track %s", track_id)

    async def get_offline_path(self, track_id: str) -> str | None:
        """
        Local path of a downloaded track, or None.

        A record whose file turns out to be missing is purged.
        """
        if not track_id:
            return None

        cached_path = await self._get_fast(track_id)
        if cached_path:
            if await self.files.exists(cached_path):
                return cached_path
            await self._clear_fast(track_id)

        record = await self.index.get(track_id)
        if record is None:
            return None

        if not await self.files.exists(record.local_path):
            logger.info("Offline file for %s is missing, purging record", track_id)
            await self.index.remove(track_id)
            return None

        await self._set_fast(track_id, record.local_path)
        return record.local_path

    async def can_play_offline(self, track_id: str) -> bool:
        return await self.get_offline_path(track_id) is not None

    async def list_all_downloaded(self) -> list[OfflineDownloadRecord]:
        """Valid downloads; prunes stale records and refreshes the fast index."""
        report = await self.index.reconcile()
        for record in report.removed:
            await self._clear_fast(record.id)
        for record in report.valid:
            await self._set_fast(record.id, record.local_path)
        return report.valid

    async def used_storage_bytes(self) -> int:
        """Total size of valid downloads; unreadable files count as zero."""
        total = 0
        for record in await self.list_all_downloaded():
            try:
                total += (await self.files.stat(record.local_path)).size
            except OSError as e:
                logger.debug("Could not stat %s: %s", record.local_path, e)
        return total

    async def reconcile(self) -> ReconcileReport:
        """
        Full repair pass.

        Prunes records with missing files, rebuilds the fast index, deletes
        fast-index entries with no record behind them, and marks pruned
        tracks as not downloaded in the audio cache.
        """
        report = await self.index.reconcile()
        valid_ids = {record.id for record in report.valid}

        for record in report.valid:
            await self._set_fast(record.id, record.local_path)

        try:
            keys = await self.store.keys()
        except StorageError as e:
            logger.warning("Could not list fast index keys: %s", e)
            keys = []
        for key in keys:
            if key.startswith(FAST_INDEX_PREFIX) and key[len(FAST_INDEX_PREFIX):] not in valid_ids:
                await self._clear_fast(key[len(FAST_INDEX_PREFIX):])
                report.orphaned.append(key)

        for record in report.removed:
            if record.category_id is not None:
                await self.audio_proxy.update_download_status(record.id, record.category_id, False, None)

        if report.changed:
            logger.info(
                "Audio downloads reconciled: %d valid, %d removed, %d orphaned index entries",
                len(report.valid),
                len(report.removed),
                len(report.orphaned),
            )
        return report
