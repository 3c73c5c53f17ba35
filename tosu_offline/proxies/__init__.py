"""
Domain proxies: cached-first and fresh-first catalog reads.
"""

from .audio import AudioProxy
from .book import BookProxy
from .center import CenterProxy
from .common import CatalogReader
from .merge import merge_local_state
from .result import CatalogUnavailableError, NetworkUnavailableError, Outcome, Source
from .video import VideoProxy

__all__ = [
    "AudioProxy",
    "BookProxy",
    "CenterProxy",
    "VideoProxy",
    "CatalogReader",
    "merge_local_state",
    "Outcome",
    "Source",
    "CatalogUnavailableError",
    "NetworkUnavailableError",
]
