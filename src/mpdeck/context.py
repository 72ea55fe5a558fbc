"""
Application context - all mutable state, owned by the event loop.

Nothing in here is shared with another thread. Producers only see the
request queues, never the context itself.
"""

import itertools
import queue
import time
from dataclasses import dataclass
from typing import Callable, Optional


from mpdeck.core.config import Config
from mpdeck.events import (
    ClientRequest,
    Command,
    Level,
    Query,
    QueryFinished,
    QueryResult,
    WorkRequest,
)
from mpdeck.mpd import Client, Song, Status
from mpdeck.mpd.protocol import Version

# Correlation ids: one per purpose, not per call
QUERY_STATUS = "status"
QUERY_VOLUME = "volume"
QUERY_QUEUE = "queue"
QUERY_CURRENT_SONG = "current_song"

STATUS_MESSAGE_TTL = 5.0


@dataclass
class PendingMessage:
    message: str
    level: Level
    expires_at: float


class AppContext:
    def __init__(
        self,
        config: Config,
        client_requests: "queue.Queue[ClientRequest]",
        work_requests: "queue.Queue[WorkRequest]",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.client_requests = client_requests
        self.work_requests = work_requests
        self.clock = clock

        self.status = Status()
        self.queue: list[Song] = []
        self.current_song: Optional[Song] = None
        self.supported_commands: set[str] = set()
        self.mpd_version = Version(0, 0, 0)

        self.status_message: Optional[PendingMessage] = None
        self.frame_count = 0
        self.render_pending = False
        self.full_render_pending = False

        self._generations = itertools.count(1)
        # id -> generation of the newest query that replaced it
        self._latest_generation: dict[str, int] = {}

    # Requests

    def command(self, callback: Callable[[Client], None], description: str = "") -> None:
        self.client_requests.put(Command(callback, description))

    def query(
        self,
        id: str,
        callback: Callable[[Client], QueryResult],
        replace_id: Optional[str] = None,
        target: Optional[str] = None,
    ) -> Query:
        request = Query(
            id=id,
            callback=callback,
            replace_id=replace_id,
            target=target,
            generation=next(self._generations),
        )
        if replace_id is not None:
            self._latest_generation[replace_id] = request.generation
        self.client_requests.put(request)
        return request

    def supersede(self, id: str) -> None:
        """Make every result still in flight for ``id`` stale without a new query."""
        self._latest_generation[id] = next(self._generations)

    def is_stale(self, result: QueryFinished) -> bool:
        """True when a later query replaced the one that produced ``result``."""
        latest = self._latest_generation.get(result.id)
        return latest is not None and result.generation < latest

    def work(self, request: WorkRequest) -> None:
        self.work_requests.put(request)

    # Status bar

    def display_message(self, message: str, level: Level = Level.INFO) -> None:
        self.status_message = PendingMessage(
            message, level, self.clock() + STATUS_MESSAGE_TTL
        )
        self.render_pending = True

    def active_message(self) -> Optional[PendingMessage]:
        message = self.status_message
        if message is not None and self.clock() >= message.expires_at:
            self.status_message = None
            return None
        return message

    def supports(self, command: str) -> bool:
        return command in self.supported_commands
