"""Events delivered to the session loop and the channel that carries them.

Every producer (input reader, listing jobs, preview jobs, image worker,
mutation jobs, signal handlers) posts onto one ``EventChannel``; the loop is
its only consumer.
"""

from __future__ import annotations

import queue
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Union

from ..filesystem import FileEntry

if TYPE_CHECKING:
    from ..image.protocol import ImageProtocol
    from ..preview import Preview

ListingTarget = Literal["parent", "current"]


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class TerminalResized:
    pass


@dataclass(frozen=True)
class DirEntriesLoaded:
    """One batch of a directory scan tagged with its listing epoch."""

    listing_id: int
    target: ListingTarget
    entries: tuple[FileEntry, ...]
    done: bool


@dataclass(frozen=True)
class PreviewLoaded:
    request_id: int
    path: Path
    preview: Preview | None = None
    error: str | None = None


@dataclass(frozen=True)
class ImageRendered:
    """Returns ownership of an image protocol object to the session."""

    version: int
    protocol: ImageProtocol


@dataclass(frozen=True)
class ActionCompleted:
    select: Path | None = None
    error: str | None = None


@dataclass(frozen=True)
class Notice:
    message: str


Event = Union[
    KeyPressed,
    TerminalResized,
    DirEntriesLoaded,
    PreviewLoaded,
    ImageRendered,
    ActionCompleted,
    Notice,
]


class EventChannel:
    """Unbounded multi-producer, single-consumer event queue."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Event] = queue.Queue()

    def post(self, event: Event) -> None:
        self._queue.put(event)

    def get(self, timeout: float | None = None) -> Event | None:
        """Block for the next event; ``None`` only when ``timeout`` expires."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
