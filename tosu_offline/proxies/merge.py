"""
Merge freshly fetched catalog entries with previously cached local state.

The fresh result defines membership: ids missing from it are dropped, new
ids pass through as fetched. For ids present in both, every local-only
field the cached entry holds a non-null value for is copied forward.
"""

from collections.abc import Callable, Iterable
from typing import Any

AUDIO_LOCAL_FIELDS = ("isDownloadable", "path")
BOOK_LOCAL_FIELDS = ("isDownload", "path", "pageCurrent")


def entry_id(entry: dict) -> Any:
    return entry.get("id")


def audio_track_id(entry: dict) -> Any:
    """Tracks are identified by their first audio asset id."""
    audio = entry.get("audio")
    if isinstance(audio, list) and audio:
        return audio[0]
    return entry.get("id")


def merge_local_state(
    fresh: list[dict],
    cached: list[dict] | None,
    local_fields: Iterable[str],
    identity: Callable[[dict], Any] = entry_id,
) -> list[dict]:
    """
    Copy local-only fields from cached entries into matching fresh entries.

    Args:
        fresh: Entries from the network (not mutated)
        cached: Previously persisted entries, or None
        local_fields: Field names that only exist on-device
        identity: Function returning an entry's id

    Returns:
        New list of merged entries, in fresh order
    """
    fields = tuple(local_fields)
    if not cached:
        return [dict(entry) for entry in fresh]

    previous: dict[Any, dict] = {}
    for entry in cached:
        if isinstance(entry, dict):
            key = identity(entry)
            if key is not None:
                previous.setdefault(key, entry)

    merged = []
    for entry in fresh:
        result = dict(entry)
        old = previous.get(identity(entry))
        if old is not None:
            for field in fields:
                if old.get(field) is not None:
                    result[field] = old[field]
        merged.append(result)
    return merged


def merge_audio_detail(fresh: dict, cached: dict | None) -> dict:
    """Merge a collection detail, carrying track download state forward."""
    if not isinstance(cached, dict):
        return dict(fresh)
    merged = dict(fresh)
    merged["audios"] = merge_local_state(
        fresh.get("audios") or [],
        cached.get("audios") or [],
        AUDIO_LOCAL_FIELDS,
        identity=audio_track_id,
    )
    return merged


def merge_books(fresh: list[dict], cached: list[dict] | None) -> list[dict]:
    return merge_local_state(fresh, cached, BOOK_LOCAL_FIELDS)


def patch_entry(entries: list[dict], match: Callable[[dict], bool], **fields: Any) -> bool:
    """
    Update fields on every entry that matches, in place.

    Returns:
        True if at least one entry matched
    """
    found = False
    for entry in entries:
        if isinstance(entry, dict) and match(entry):
            entry.update(fields)
            found = True
    return found
