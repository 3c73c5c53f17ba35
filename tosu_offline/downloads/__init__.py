"""
Media downloads and the offline track index.
"""

from .audio import AudioDownloadManager
from .book import BookDownloadManager
from .index import OfflineDownloadRecord, OfflineTrackIndex, ReconcileReport
from .transfer import (
    DirectoryClass,
    DownloadError,
    DownloadInProgressError,
    EmptyFileError,
    InvalidInputError,
    MediaDownloader,
    TransferFailedError,
    choose_directory,
)

__all__ = [
    # Managers
    "AudioDownloadManager",
    "BookDownloadManager",
    "MediaDownloader",
    # Index
    "OfflineTrackIndex",
    "OfflineDownloadRecord",
    "ReconcileReport",
    # Directories
    "DirectoryClass",
    "choose_directory",
    # Exceptions
    "DownloadError",
    "InvalidInputError",
    "TransferFailedError",
    "EmptyFileError",
    "DownloadInProgressError",
]
