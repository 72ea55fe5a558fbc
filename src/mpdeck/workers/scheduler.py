"""
Periodic "refresh status" ticker that can be started and stopped.

Control goes through a private queue so ``start``/``stop`` never block and
may be called redundantly from the event loop.
"""

import queue
import threading
import time
from enum import Enum
from typing import Optional

from loguru import logger

from mpdeck.events import EventBus, RequestStatusUpdate


class Signal(Enum):
    START = "start"
    STOP = "stop"


class SchedulerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class UpdateScheduler:
    """Sends RequestStatusUpdate every ``interval`` seconds while running.

    With ``interval=None`` no thread is created and start/stop do nothing.
    """

    def __init__(self, bus: EventBus, interval: Optional[float]):
        self.bus = bus
        self.interval = interval
        self.state = SchedulerState.STOPPED
        self._control: "queue.Queue[Signal]" = queue.Queue()
        self.thread: Optional[threading.Thread] = None

        if interval is not None:
            self.thread = threading.Thread(
                target=self._run, name="scheduler", daemon=True
            )
            self.thread.start()
        else:
            logger.debug("Status polling disabled, scheduler is inert")

    @property
    def enabled(self) -> bool:
        return self.thread is not None

    def start(self) -> None:
        if self.enabled:
            self._control.put(Signal.START)

    def stop(self) -> None:
        if self.enabled:
            self._control.put(Signal.STOP)

    def _latest_pending(self) -> Optional[Signal]:
        latest = None
        while True:
            try:
                latest = self._control.get_nowait()
            except queue.Empty:
                return latest

    def _run(self) -> None:
        while True:
            if self.state == SchedulerState.STOPPED:
                signal = self._control.get()
                if signal == Signal.START:
                    logger.trace("Scheduler started")
                    self.state = SchedulerState.RUNNING
                continue

            time.sleep(self.interval)
            self.bus.send(RequestStatusUpdate())

            if self._latest_pending() == Signal.STOP:
                logger.trace("Scheduler stopped")
                self.state = SchedulerState.STOPPED
