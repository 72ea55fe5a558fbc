"""Shared fixtures for the mpdeck test suite."""

import io
import queue
from unittest.mock import MagicMock

import pytest

from mpdeck.context import AppContext
from mpdeck.core.config import Config
from mpdeck.events import EventBus
from mpdeck.mpd import Client
from mpdeck.mpd.protocol import Connection, Version


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_connection(data: bytes, version: Version = Version(0, 24, 0)) -> Connection:
    """Connection whose socket is a mock and whose reader replays ``data``."""
    connection = Connection("127.0.0.1:6600")
    connection._sock = MagicMock()
    connection._reader = io.BytesIO(data)
    connection.version = version
    return connection


def sent_lines(connection: Connection) -> list[str]:
    return [
        call.args[0].decode("utf-8").rstrip("\n")
        for call in connection._sock.sendall.call_args_list
    ]


def drain(bus: EventBus) -> list:
    events = []
    while True:
        event = bus.receive(timeout=0)
        if event is None:
            return events
        events.append(event)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def ctx(config: Config, clock: FakeClock) -> AppContext:
    return AppContext(config, queue.Queue(), queue.Queue(), clock=clock)


@pytest.fixture
def client_factory():
    """Build a Client replaying a canned server transcript."""

    def factory(data: bytes, version: Version = Version(0, 24, 0)) -> Client:
        return Client(make_connection(data, version))

    return factory


def pending_requests(q: queue.Queue) -> list:
    items = []
    while True:
        try:
            items.append(q.get_nowait())
        except queue.Empty:
            return items
