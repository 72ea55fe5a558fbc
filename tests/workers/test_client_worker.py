"""Tests for the client session worker and query supersession."""

from unittest.mock import MagicMock

import pytest

from conftest import drain
from mpdeck.events import (
    Command,
    EventBus,
    Level,
    Query,
    QueryFinished,
    StatusMessage,
    VolumeResult,
)
from mpdeck.mpd import MpdConnectionError, MpdFailureResponse
from mpdeck.workers.client_worker import ClientWorker, superseded_indexes


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.connection.connected = True
    return client


def volume_query(id: str, volume: int, replace_id=None, generation: int = 0) -> Query:
    return Query(
        id=id,
        callback=lambda c: VolumeResult(volume),
        replace_id=replace_id,
        generation=generation,
    )


class TestSupersededIndexes:
    def test_later_replacing_query_skips_earlier(self) -> None:
        batch = [
            volume_query("art", 1, replace_id="art"),
            volume_query("art", 2, replace_id="art"),
        ]
        assert superseded_indexes(batch) == {0}

    def test_without_replace_id_nothing_skipped(self) -> None:
        batch = [volume_query("art", 1), volume_query("art", 2)]
        assert superseded_indexes(batch) == set()

    def test_replacement_only_looks_forward(self) -> None:
        batch = [
            volume_query("art", 1, replace_id="art"),
            volume_query("status", 2),
        ]
        assert superseded_indexes(batch) == set()

    def test_commands_never_skipped(self) -> None:
        batch = [Command(lambda c: None), volume_query("x", 1, replace_id="x")]
        assert superseded_indexes(batch) == set()


class TestClientWorker:
    def test_query_result_delivered(self, bus: EventBus, client: MagicMock) -> None:
        worker = ClientWorker(client, bus)
        worker.handle(
            Query(id="volume", target="Queue", generation=3, callback=lambda c: VolumeResult(10))
        )
        assert drain(bus) == [
            QueryFinished(id="volume", data=VolumeResult(10), target="Queue", generation=3)
        ]

    def test_command_success_is_silent(self, bus: EventBus, client: MagicMock) -> None:
        ClientWorker(client, bus).handle(Command(lambda c: c.next(), "play next"))
        client.next.assert_called_once()
        assert drain(bus) == []

    def test_command_failure_reported(self, bus: EventBus, client: MagicMock) -> None:
        client.next.side_effect = MpdFailureResponse(55, 0, "next", "Not playing")
        ClientWorker(client, bus).handle(Command(lambda c: c.next(), "play next"))

        events = drain(bus)
        assert len(events) == 1
        assert isinstance(events[0], StatusMessage)
        assert events[0].level == Level.ERROR
        assert "play next" in events[0].message

    def test_query_failure_reported(self, bus: EventBus, client: MagicMock) -> None:
        client.get_status.side_effect = MpdConnectionError("reset")
        ClientWorker(client, bus).handle(
            Query(id="status", callback=lambda c: c.get_status())
        )
        events = drain(bus)
        assert isinstance(events[0], StatusMessage)
        assert events[0].level == Level.ERROR

    def test_unexpected_exception_does_not_kill_worker(self, bus, client) -> None:
        def explode(c):
            raise ValueError("bad")

        worker = ClientWorker(client, bus)
        worker.handle(Command(explode, "explode"))
        worker.handle(volume_query("volume", 5))
        events = drain(bus)
        assert isinstance(events[0], StatusMessage)
        assert isinstance(events[1], QueryFinished)

    def test_batch_skips_superseded(self, bus: EventBus, client: MagicMock) -> None:
        worker = ClientWorker(client, bus)
        worker.submit(volume_query("art", 1, replace_id="art", generation=1))
        worker.submit(volume_query("art", 2, replace_id="art", generation=2))

        worker.process_batch(worker.next_batch(timeout=0.1))

        assert drain(bus) == [
            QueryFinished(id="art", data=VolumeResult(2), target=None, generation=2)
        ]

    def test_next_batch_drains_queue_in_order(self, bus, client) -> None:
        worker = ClientWorker(client, bus)
        first, second = Command(lambda c: None, "a"), Command(lambda c: None, "b")
        worker.submit(first)
        worker.submit(second)
        assert worker.next_batch(timeout=0.1) == [first, second]
        assert worker.next_batch(timeout=0.01) == []

    def test_reconnects_when_connection_dropped(self, bus, client) -> None:
        client.connection.connected = False
        fresh = MagicMock()
        fresh.connection.connected = True
        worker = ClientWorker(client, bus, reconnect=lambda: fresh)

        worker.handle(Command(lambda c: c.stop(), "stop"))

        fresh.stop.assert_called_once()
        assert worker.client is fresh
