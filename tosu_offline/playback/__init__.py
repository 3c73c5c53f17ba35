"""
Playback orchestration over an opaque media transport.
"""

from .orchestrator import PlaybackOrchestrator
from .transport import MediaTransport, PlaybackState, Progress, Track

__all__ = ["PlaybackOrchestrator", "MediaTransport", "PlaybackState", "Progress", "Track"]
