"""
Playback orchestration.

Builds the play queue for a track: downloaded files are played from disk
(and their lastPlayedAt is touched), everything else streams from the
assets URL. While offline, the queue is built from downloads only.
"""

import logging

from ..api.models import AudioItem
from ..downloads.audio import AudioDownloadManager
from ..downloads.index import OfflineDownloadRecord, OfflineTrackIndex
from ..network.reachability import ReachabilityMonitor
from ..proxies.audio import AudioProxy
from .transport import MediaTransport, PlaybackState, Progress, Track

logger = logging.getLogger(__name__)

DEFAULT_ARTIST = "Tô Sư Thiền"
OFFLINE_TRACK_TITLE = "Âm thanh đã tải"
RESTART_THRESHOLD_SECONDS = 3.0


def record_to_item(record: OfflineDownloadRecord) -> AudioItem:
    return AudioItem(audio=[record.id], title=record.title, isDownloadable=True, path=record.local_path)


class PlaybackOrchestrator:
    """Turns catalog and download state into a transport queue."""

    def __init__(
        self,
        transport: MediaTransport,
        audio_proxy: AudioProxy,
        downloads: AudioDownloadManager,
        index: OfflineTrackIndex,
        assets_url: str,
        reachability: ReachabilityMonitor | None = None,
        artist: str = DEFAULT_ARTIST,
    ):
        self.transport = transport
        self.audio_proxy = audio_proxy
        self.downloads = downloads
        self.index = index
        self.assets_url = assets_url if assets_url.endswith("/") else f"{assets_url}/"
        self.reachability = reachability
        self.artist = artist

        self.category_id: str | None = None
        self.queue: list[Track] = []
        self.current_index = -1

    @property
    def is_offline(self) -> bool:
        return self.reachability is not None and self.reachability.is_offline

    @property
    def current_track(self) -> Track | None:
        if 0 <= self.current_index < len(self.queue):
            return self.queue[self.current_index]
        return None

    async def _build_tracks(self, items: list[AudioItem]) -> list[Track]:
        tracks = []
        for item in items:
            track_id = item.track_id
            if not track_id:
                continue

            if item.is_offline:
                url = item.path
                await self.index.touch_last_played(track_id)
            else:
                url = f"{self.assets_url}{track_id}"

            tracks.append(Track(id=track_id, url=url, title=item.title, artist=self.artist, is_local=item.is_offline))
        return tracks

    async def _play_items(self, items: list[AudioItem], start_track_id: str) -> bool:
        await self.transport.reset()
        tracks = await self._build_tracks(items)
        if not tracks:
            logger.warning("Nothing playable for track %s", start_track_id)
            self.queue, self.current_index = [], -1
            return False

        await self.transport.enqueue(tracks)
        self.queue = tracks
        self.current_index = 0

        index = next((i for i, t in enumerate(tracks) if t.id == start_track_id), -1)
        if index != -1:
            await self.transport.skip_to(index)
            self.current_index = index

        await self.transport.play()
        return True

    async def play_track(self, category_id: str, track_id: str, track_list: list[AudioItem] | None = None) -> bool:
        """
        Queue a category's tracks and start playing track_id.

        Returns:
            True if something was queued and started
        """
        self.category_id = category_id

        if self.is_offline:
            records = await self.index.list_by_category(category_id)
            if records:
                return await self._play_items([record_to_item(r) for r in records], track_id)

            path = await self.downloads.get_offline_path(track_id)
            if path:
                single = AudioItem(audio=[track_id], title=OFFLINE_TRACK_TITLE, isDownloadable=True, path=path)
                return await self._play_items([single], track_id)

        if track_list:
            return await self._play_items(track_list, track_id)

        outcome = await self.audio_proxy.get_audio_by_id_result(category_id)
        if outcome.ok and outcome.value is not None:
            return await self._play_items(outcome.value.audios, track_id)

        logger.error("Could not load collection %s, trying offline tracks: %s", category_id, outcome.error)
        records = await self.index.list_all()
        if not records:
            logger.error("No offline tracks available")
            return False
        return await self._play_items([record_to_item(r) for r in records], track_id)

    async def toggle_playback(self) -> None:
        state = await self.transport.get_state()
        if state is PlaybackState.PLAYING:
            await self.transport.pause()
        else:
            await self.transport.play()

    async def seek_to(self, position: float) -> None:
        await self.transport.seek_to(position)

    async def skip_next(self) -> None:
        if len(self.queue) <= 1 or self.current_index >= len(self.queue) - 1:
            return
        await self.transport.skip_next()
        self.current_index += 1

    async def skip_previous(self) -> None:
        """Restart the current track if past the threshold, else go back one."""
        if len(self.queue) <= 1:
            return
        progress = await self.transport.get_progress()
        if progress.position > RESTART_THRESHOLD_SECONDS:
            await self.transport.seek_to(0)
            return
        if self.current_index > 0:
            await self.transport.skip_previous()
            self.current_index -= 1

    async def get_progress(self) -> Progress:
        return await self.transport.get_progress()

    async def stop(self) -> None:
        await self.transport.stop()
        self.current_index = -1
