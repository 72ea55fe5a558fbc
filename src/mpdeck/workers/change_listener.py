"""
Change listener: a dedicated MPD connection parked in ``idle``.

Every subsystem MPD reports becomes one IdleNotification on the bus.
Failures back off linearly (1s, 2s, ...); once more than
MAX_CONSECUTIVE_ERRORS failures happen in a row the thread gives up and
tells the user that change notifications are gone.
"""

import threading
import time
from typing import Callable, Optional

from loguru import logger

from mpdeck.events import EventBus, IdleNotification, Level
from mpdeck.mpd import Client, MpdError

MAX_CONSECUTIVE_ERRORS = 5


class ChangeListener:
    """Owns the idle connection; nothing else may use it."""

    def __init__(
        self,
        bus: EventBus,
        connect: Callable[[], Client],
        client: Optional[Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.bus = bus
        self._connect = connect
        self.client = client
        self._sleep = sleep
        self.error_count = 0
        self.thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self.run, name="idle", daemon=True)
        self.thread.start()
        return self.thread

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def _ensure_client(self) -> Client:
        if self.client is None or not self.client.connection.connected:
            self.client = self._connect()
        # idle may legitimately block for hours
        self.client.connection.set_timeout(None)
        return self.client

    def wait_once(self) -> bool:
        """One idle round trip. Returns False when the listener must stop."""
        try:
            events = self._ensure_client().idle()
        except MpdError as e:
            if self.client is not None:
                self.client.close()
            self.error_count += 1
            if self.error_count > MAX_CONSECUTIVE_ERRORS:
                logger.error(
                    f"Idle connection failed {self.error_count} times in a row, giving up: {e}"
                )
                self.bus.status(
                    "Lost connection for change notifications, the UI will no longer update",
                    Level.ERROR,
                )
                return False
            logger.warning(
                f"Idle connection error ({self.error_count}/{MAX_CONSECUTIVE_ERRORS}), "
                f"retrying in {self.error_count}s: {e}"
            )
            self._sleep(self.error_count)
            return True

        self.error_count = 0
        for event in events:
            logger.trace(f"Idle event: {event.value}")
            self.bus.send(IdleNotification(event))
        return True

    def run(self) -> None:
        while self.wait_once():
            pass
        logger.info("Change listener stopped")
