"""
Offline track index.

Persists the list of downloaded audio tracks (``offline_audio_tracks``) and
the derived set of categories that have at least one of them
(``offline_audio_categories``), both as raw JSON arrays. A record is only
valid while its file exists; reads prune records whose file is gone.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..cache.envelope import EnvelopeCodec, now_ms
from ..storage.base import FileStore, KeyValueStore

logger = logging.getLogger(__name__)

TRACKS_KEY = "offline_audio_tracks"
CATEGORIES_KEY = "offline_audio_categories"


class OfflineDownloadRecord(BaseModel):
    """One downloaded track."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    category_id: str | None = Field(default=None, alias="categoryId")
    local_path: str = Field(default="", alias="path")
    title: str = ""
    last_played_at: int | None = Field(default=None, alias="lastPlayedAt")

    def to_dict(self) -> dict:
        """Dictionary in the persisted shape."""
        return self.model_dump(by_alias=True)


@dataclass
class ReconcileReport:
    """Result of a repair pass."""

    valid: list[Any] = field(default_factory=list)
    removed: list[Any] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.orphaned)


class OfflineTrackIndex:
    """
    Records of downloaded tracks with per-category queries.

    Mutations (and the pruning done by reads) run under one asyncio.Lock so
    interleaved tasks cannot lose each other's updates.
    """

    def __init__(self, store: KeyValueStore, files: FileStore, codec: EnvelopeCodec | None = None):
        self.store = store
        self.files = files
        self.codec = codec or EnvelopeCodec(store)
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def _load(self) -> list[OfflineDownloadRecord]:
        data = await self.codec.read(TRACKS_KEY)
        if not isinstance(data, list):
            return []

        records = []
        for item in data:
            try:
                records.append(OfflineDownloadRecord.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed offline track record: %s", e)
        return records

    async def _save(self, records: list[OfflineDownloadRecord]) -> None:
        await self.codec.write_raw(TRACKS_KEY, [r.to_dict() for r in records])

    async def _load_categories(self) -> list[str]:
        data = await self.codec.read(CATEGORIES_KEY)
        if not isinstance(data, list):
            return []
        return [c for c in data if isinstance(c, str)]

    async def _save_categories(self, categories: list[str]) -> None:
        await self.codec.write_raw(CATEGORIES_KEY, categories)

    async def _is_valid(self, record: OfflineDownloadRecord) -> bool:
        return bool(record.id) and await self.files.exists(record.local_path)

    async def _partition(
        self, records: list[OfflineDownloadRecord]
    ) -> tuple[list[OfflineDownloadRecord], list[OfflineDownloadRecord]]:
        valid, invalid = [], []
        for record in records:
            (valid if await self._is_valid(record) else invalid).append(record)
        return valid, invalid

    async def _validated(self) -> list[OfflineDownloadRecord]:
        """Valid records, persisting the pruned list if anything was dropped."""
        records = await self._load()
        valid, invalid = await self._partition(records)
        if invalid:
            logger.info("Pruning %d offline tracks with missing files", len(invalid))
            await self._save(valid)
            await self._drop_emptied_categories(invalid, valid)
        return valid

    async def _drop_emptied_categories(
        self, pruned: list[OfflineDownloadRecord], remaining: list[OfflineDownloadRecord]
    ) -> None:
        emptied = {r.category_id for r in pruned} - {r.category_id for r in remaining}
        categories = await self._load_categories()
        kept = [c for c in categories if c not in emptied]
        if kept != categories:
            await self._save_categories(kept)

    async def _refresh_category(self, category_id: str | None) -> None:
        """Add or drop category_id depending on whether it has valid tracks."""
        if category_id is None:
            return
        has_tracks = any(r.category_id == category_id for r in await self._validated())
        categories = await self._load_categories()

        if has_tracks and category_id not in categories:
            categories.append(category_id)
        elif not has_tracks and category_id in categories:
            categories.remove(category_id)
        else:
            return
        await self._save_categories(categories)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def upsert(self, track_id: str, category_id: str | None, path: str, title: str = "") -> None:
        """Add a record, or update path, title and category of an existing one."""
        async with self._lock:
            records = await self._load()
            existing = next((r for r in records if r.id == track_id), None)
            previous_category = None

            if existing is not None:
                previous_category = existing.category_id
                existing.local_path = path
                existing.title = title
                existing.category_id = category_id
            else:
                records.append(
                    OfflineDownloadRecord(
                        id=track_id,
                        categoryId=category_id,
                        path=path,
                        title=title,
                        lastPlayedAt=now_ms(),
                    )
                )

            await self._save(records)
            await self._refresh_category(category_id)
            if previous_category not in (None, category_id):
                await self._refresh_category(previous_category)

    async def get(self, track_id: str) -> OfflineDownloadRecord | None:
        """Stored record for track_id, without validating its file."""
        return next((r for r in await self._load() if r.id == track_id), None)

    async def list_all(self) -> list[OfflineDownloadRecord]:
        """Every record whose file still exists; stale ones are pruned."""
        async with self._lock:
            return await self._validated()

    async def list_by_category(self, category_id: str) -> list[OfflineDownloadRecord]:
        return [r for r in await self.list_all() if r.category_id == category_id]

    async def remove(self, track_id: str) -> bool:
        """
        Remove a record and its file.

        Returns:
            False if no record existed for track_id
        """
        async with self._lock:
            records = await self._load()
            record = next((r for r in records if r.id == track_id), None)
            if record is None:
                return False

            if record.local_path and await self.files.exists(record.local_path):
                await self.files.delete(record.local_path)

            await self._save([r for r in records if r.id != track_id])
            await self._refresh_category(record.category_id)
            return True

    async def touch_last_played(self, track_id: str) -> None:
        """Set lastPlayedAt to now. No-op for unknown ids."""
        async with self._lock:
            records = await self._load()
            record = next((r for r in records if r.id == track_id), None)
            if record is None:
                return
            record.last_played_at = now_ms()
            await self._save(records)

    async def list_categories_with_offline_content(self) -> list[str]:
        """Snapshot of the category index."""
        return await self._load_categories()

    async def reconcile(self) -> ReconcileReport:
        """
        Prune records with missing files and rebuild the category index.

        Returns:
            Valid and removed records
        """
        async with self._lock:
            records = await self._load()
            valid, invalid = await self._partition(records)
            if invalid:
                await self._save(valid)

            categories: list[str] = []
            for record in valid:
                if record.category_id is not None and record.category_id not in categories:
                    categories.append(record.category_id)
            if categories != await self._load_categories():
                await self._save_categories(categories)

        if invalid:
            logger.info("Reconciled offline tracks: %d valid, %d removed", len(valid), len(invalid))
        return ReconcileReport(valid=valid, removed=invalid)
