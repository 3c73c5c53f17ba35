"""
Media transport contract.

The playback engine itself is outside this library; the orchestrator
drives anything that implements MediaTransport.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class PlaybackState(str, Enum):
    NONE = "none"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    BUFFERING = "buffering"


@dataclass(frozen=True)
class Track:
    """Queue entry handed to the transport."""

    id: str
    url: str
    title: str = ""
    artist: str = ""
    is_local: bool = False


@dataclass(frozen=True)
class Progress:
    """Playback position and duration in seconds."""

    position: float = 0.0
    duration: float = 0.0


@runtime_checkable
class MediaTransport(Protocol):
    async def reset(self) -> None:
        ...

    async def enqueue(self, tracks: list[Track]) -> None:
        ...

    async def skip_to(self, index: int) -> None:
        ...

    async def play(self) -> None:
        ...

    async def pause(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def seek_to(self, position: float) -> None:
        ...

    async def skip_next(self) -> None:
        ...

    async def skip_previous(self) -> None:
        ...

    async def get_progress(self) -> Progress:
        ...

    async def get_state(self) -> PlaybackState:
        ...
