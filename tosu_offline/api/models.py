"""
Pydantic models for CMS content.

The CMS wraps every field as ``data.<field>.iv``; the client flattens that
shape into these models. Field names keep the camelCase aliases used in the
persisted cache so that entries written by earlier app versions still load.
Unknown fields are kept (``extra="allow"``) and survive a cache round trip.
"""

from pydantic import BaseModel, ConfigDict, Field


class CMSModel(BaseModel):
    """Base model: accepts field names or aliases and keeps unknown fields."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_cache(self) -> dict:
        """Dict in the persisted (aliased) shape."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Audio
# =============================================================================


class AudioCollection(CMSModel):
    """Audio category or collection in a category listing."""

    id: str
    name: str = ""
    is_category: bool | None = Field(default=None, alias="isCategory")
    description: str = ""


class AudioItem(CMSModel):
    """Single audio track inside a collection."""

    audio: list[str] = Field(default_factory=list)
    title: str = ""
    is_downloadable: bool | None = Field(default=None, alias="isDownloadable")
    path: str | None = None

    @property
    def track_id(self) -> str | None:
        """Asset id of the track (first entry of ``audio``)."""
        return self.audio[0] if self.audio else None

    @property
    def is_offline(self) -> bool:
        return bool(self.is_downloadable and self.path)


class AudioCollectionDetail(CMSModel):
    """Collection with its tracks."""

    id: str
    name: str = ""
    audios: list[AudioItem] = Field(default_factory=list)
    is_category: bool | None = Field(default=None, alias="isCategory")

    def find_track(self, track_id: str) -> AudioItem | None:
        return next((a for a in self.audios if a.track_id == track_id), None)


# =============================================================================
# Books
# =============================================================================


class Book(CMSModel):
    """E-book entry, including on-device download and reading state."""

    id: str
    title: str = ""
    description: str = ""
    first_chapter_id: str | None = Field(default=None, alias="firstChapterId")
    is_download: bool = Field(default=False, alias="isDownload")
    path: str | None = None
    page_current: int | None = Field(default=1, alias="pageCurrent")
    page_total: int | None = Field(default=None, alias="pageTotal")

    @property
    def reading_progress(self) -> tuple[int, int] | None:
        """(current, total) pages if both are known."""
        if self.page_current is None or self.page_total is None:
            return None
        return self.page_current, self.page_total


# =============================================================================
# Centers
# =============================================================================


class Center(CMSModel):
    """Practice center in the directory."""

    id: str
    name: str = ""
    address: str = ""
    phone: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    image: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


# =============================================================================
# Videos
# =============================================================================


class VideoCollection(CMSModel):
    """Video category."""

    id: str
    name: str = ""
    description: str | None = None


class VideoItem(CMSModel):
    """Video reference inside a category."""

    video_id: str = Field(alias="videoId")
    title: str = ""
    description: str | None = None


class VideoCollectionDetail(CMSModel):
    """Video category with its videos."""

    id: str
    videos: list[VideoItem] = Field(default_factory=list)
