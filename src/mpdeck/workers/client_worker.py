"""
Client session worker: the only thread that talks on the command connection.

Requests are drained in batches. A Query is skipped when a later query in
the same batch names it in ``replace_id``; anything that slips through is
discarded by the event loop when the result arrives.
"""

import queue
import threading
from typing import Callable, Optional

from loguru import logger

from mpdeck.events import (
    ClientRequest,
    Command,
    EventBus,
    Level,
    Query,
    QueryFinished,
)
from mpdeck.mpd import Client, MpdConnectionError, MpdError


def superseded_indexes(batch: list[ClientRequest]) -> set[int]:
    """Indexes of queries replaced by a later query within ``batch``."""
    skipped = set()
    replacing: set[str] = set()
    for index in range(len(batch) - 1, -1, -1):
        request = batch[index]
        if not isinstance(request, Query):
            continue
        if request.id in replacing:
            skipped.add(index)
        if request.replace_id is not None:
            replacing.add(request.replace_id)
    return skipped


class ClientWorker:
    def __init__(
        self,
        client: Client,
        bus: EventBus,
        reconnect: Optional[Callable[[], Client]] = None,
        requests: Optional["queue.Queue[ClientRequest]"] = None,
    ):
        self.client = client
        self.bus = bus
        self._reconnect = reconnect
        self.requests: "queue.Queue[ClientRequest]" = requests or queue.Queue()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self._run, name="client", daemon=True)
        self.thread.start()
        return self.thread

    def submit(self, request: ClientRequest) -> None:
        self.requests.put(request)

    def next_batch(self, timeout: Optional[float] = None) -> list[ClientRequest]:
        """Block for one request, then take everything already waiting."""
        try:
            batch = [self.requests.get(timeout=timeout)]
        except queue.Empty:
            return []
        while True:
            try:
                batch.append(self.requests.get_nowait())
            except queue.Empty:
                return batch

    def process_batch(self, batch: list[ClientRequest]) -> None:
        skipped = superseded_indexes(batch)
        for index, request in enumerate(batch):
            if index in skipped:
                logger.debug(f"Skipping superseded query '{request.id}'")
                continue
            self.handle(request)

    def _run(self) -> None:
        while True:
            self.process_batch(self.next_batch())

    def _ensure_connected(self) -> Client:
        if not self.client.connection.connected and self._reconnect is not None:
            logger.info("Command connection lost, reconnecting")
            self.client = self._reconnect()
        return self.client

    def handle(self, request: ClientRequest) -> None:
        if isinstance(request, Command):
            label = request.description or "run command"
        else:
            label = f"run query '{request.id}'"

        try:
            client = self._ensure_connected()
            if isinstance(request, Command):
                request.callback(client)
                return
            data = request.callback(client)
        except MpdConnectionError as e:
            logger.error(f"Failed to {label}: {e}")
            self.bus.status(f"Connection to MPD lost: {e}", Level.ERROR)
            return
        except MpdError as e:
            logger.warning(f"Failed to {label}: {e}")
            self.bus.status(f"Failed to {label}: {e}", Level.ERROR)
            return
        except Exception as e:
            logger.exception(f"Unexpected error while trying to {label}")
            self.bus.status(f"Failed to {label}: {e}", Level.ERROR)
            return

        self.bus.send(
            QueryFinished(
                id=request.id,
                data=data,
                target=request.target,
                generation=request.generation,
            )
        )
