"""
Messages exchanged between the producer threads and the event loop.

Every producer only ever writes to an EventBus (or, for MPD traffic, to the
client worker's request queue; for background jobs, to the work pool's
request queue). Only the event loop reads the bus.
"""

import queue
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from loguru import logger

from mpdeck.mpd import Client, IdleEvent, Song, Status


class Level(Enum):
    """Severity of a status message shown in the bottom bar."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Background jobs


@dataclass(frozen=True)
class DownloadYoutube:
    url: str


WorkRequest = DownloadYoutube


@dataclass(frozen=True)
class YoutubeDownloaded:
    file_path: str


@dataclass(frozen=True)
class WorkResult:
    """Outcome of one WorkRequest: exactly one of ``value`` / ``error`` is set."""

    request: WorkRequest
    value: Optional[YoutubeDownloaded] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Query results


@dataclass(frozen=True)
class StatusResult:
    status: Status


@dataclass(frozen=True)
class VolumeResult:
    volume: int


@dataclass(frozen=True)
class QueueResult:
    songs: list[Song]


@dataclass(frozen=True)
class CurrentSongResult:
    song: Optional[Song]


@dataclass(frozen=True)
class AlbumArtResult:
    data: Optional[bytes]


@dataclass(frozen=True)
class TagListResult:
    values: list[str]


@dataclass(frozen=True)
class SongListResult:
    songs: list[Song]


QueryResult = Union[
    StatusResult,
    VolumeResult,
    QueueResult,
    CurrentSongResult,
    AlbumArtResult,
    TagListResult,
    SongListResult,
]


# ---------------------------------------------------------------------------
# Client requests


@dataclass
class Command:
    """Fire-and-forget mutation; failures come back as a Status event."""

    callback: Callable[[Client], None]
    description: str = ""


@dataclass
class Query:
    """A named unit of work against the command connection.

    ``id`` names the purpose (not the call), so a second query for the same
    purpose carrying ``replace_id`` supersedes the first. ``generation`` is
    stamped when the query is issued and is echoed back on the result.
    """

    id: str
    callback: Callable[[Client], QueryResult]
    replace_id: Optional[str] = None
    target: Optional[str] = None
    generation: int = 0


ClientRequest = Union[Command, Query]


# ---------------------------------------------------------------------------
# Events


@dataclass(frozen=True)
class UserKeyInput:
    key: Any


@dataclass(frozen=True)
class UserMouseInput:
    mouse: Any


@dataclass(frozen=True)
class Resized:
    columns: int
    rows: int


@dataclass(frozen=True)
class StatusMessage:
    message: str
    level: Level = Level.INFO


@dataclass(frozen=True)
class Log:
    line: str


@dataclass(frozen=True)
class IdleNotification:
    event: IdleEvent


@dataclass(frozen=True)
class RequestStatusUpdate:
    pass


@dataclass(frozen=True)
class RequestRender:
    full: bool = False


@dataclass(frozen=True)
class WorkDone:
    result: WorkResult


@dataclass(frozen=True)
class QueryFinished:
    id: str
    data: QueryResult
    target: Optional[str] = None
    generation: int = 0


AppEvent = Union[
    UserKeyInput,
    UserMouseInput,
    Resized,
    StatusMessage,
    Log,
    IdleNotification,
    RequestStatusUpdate,
    RequestRender,
    WorkDone,
    QueryFinished,
]


@dataclass
class EventBus:
    """Multi-producer, single-consumer channel of AppEvent.

    ``send`` never blocks and never raises into the producer. ``receive`` is
    only called by the event loop.
    """

    _queue: "queue.SimpleQueue[AppEvent]" = field(default_factory=queue.SimpleQueue)

    def send(self, event: AppEvent) -> bool:
        try:
            self._queue.put(event)
            return True
        except Exception:
            logger.exception(f"Failed to send app event: {event!r}")
            return False

    def receive(self, timeout: Optional[float] = None) -> Optional[AppEvent]:
        """Block for the next event; returns None once ``timeout`` elapses."""
        try:
            if timeout is None:
                return self._queue.get()
            return self._queue.get(timeout=max(0.0, timeout))
        except queue.Empty:
            return None

    def status(self, message: str, level: Level = Level.INFO) -> bool:
        """Shortcut for producers reporting a user-visible status message."""
        return self.send(StatusMessage(message, level))

    def empty(self) -> bool:
        return self._queue.empty()
