"""
Offline content cache and synchronization layer.

Caches CMS catalog data (audio, books, videos, centers) in a key-value store,
merges refreshed server data with on-device state, and manages downloaded
media files for offline playback and reading.
"""

__version__ = "0.1.0"
