"""
CMS content API module.
"""

from .client import AsyncContentClient, ContentConnectionError, ContentError, ContentNotFoundError
from .models import (
    AudioCollection,
    AudioCollectionDetail,
    AudioItem,
    Book,
    Center,
    CMSModel,
    VideoCollection,
    VideoCollectionDetail,
    VideoItem,
)
from .source import ContentSource

__all__ = [
    # Clients
    "AsyncContentClient",
    "ContentSource",
    # Exceptions
    "ContentError",
    "ContentConnectionError",
    "ContentNotFoundError",
    # Models
    "CMSModel",
    "AudioCollection",
    "AudioCollectionDetail",
    "AudioItem",
    "Book",
    "Center",
    "VideoCollection",
    "VideoCollectionDetail",
    "VideoItem",
]
