"""
Remote catalog contract consumed by the domain proxies.
"""

from typing import Protocol, runtime_checkable

from .models import (
    AudioCollection,
    AudioCollectionDetail,
    Book,
    Center,
    VideoCollection,
    VideoCollectionDetail,
)


@runtime_checkable
class ContentSource(Protocol):
    """
    Anything that can fetch catalog data from the server.

    Implementations raise on any failure (transport error, bad status,
    bad payload); the proxies treat every failure the same way.
    """

    async def fetch_audio_category(self, category_id: str | None) -> list[AudioCollection]:
        ...

    async def fetch_audio_detail(self, collection_id: str) -> AudioCollectionDetail:
        ...

    async def fetch_books(self) -> list[Book]:
        ...

    async def fetch_centers(self) -> list[Center]:
        ...

    async def fetch_video_categories(self) -> list[VideoCollection]:
        ...

    async def fetch_video_detail(self, category_id: str) -> VideoCollectionDetail:
        ...
