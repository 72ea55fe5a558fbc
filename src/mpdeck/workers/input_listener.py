"""
Input listener: polls the terminal and turns keys, mouse reports and size
changes into events.
"""

import threading
from typing import Optional

from blessed import Terminal
from loguru import logger

from mpdeck.events import EventBus, Resized, UserKeyInput, UserMouseInput
from mpdeck.ui.mouse import MouseEventTracker, parse_sgr

POLL_TIMEOUT = 0.25
MOUSE_PREFIX = "\x1b[<"
MAX_MOUSE_SEQUENCE = 32


class InputListener:
    def __init__(
        self,
        term: Terminal,
        bus: EventBus,
        tracker: Optional[MouseEventTracker] = None,
    ):
        self.term = term
        self.bus = bus
        self.tracker = tracker or MouseEventTracker()
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self._size = (term.width, term.height)

    def start(self) -> threading.Thread:
        self.thread = threading.Thread(target=self._run, name="input", daemon=True)
        self.thread.start()
        return self.thread

    def stop(self) -> None:
        self.stop_event.set()

    def _run(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.poll()
            except Exception as e:
                logger.warning(f"Failed to read terminal input: {e}")

    def _read_mouse_sequence(self, first: str) -> str:
        # blessed does not decode SGR reports, so collect the rest by hand
        sequence = first
        while sequence[-1] not in "Mm" and len(sequence) < MAX_MOUSE_SEQUENCE:
            more = self.term.inkey(timeout=0.01)
            if not more:
                break
            sequence += str(more)
        return sequence

    def check_resize(self) -> None:
        size = (self.term.width, self.term.height)
        if size != self._size:
            self._size = size
            self.bus.send(Resized(columns=size[0], rows=size[1]))

    def _handle_mouse(self, sequence: str) -> None:
        raw = parse_sgr(sequence)
        if raw is None:
            logger.debug(f"Dropping unrecognised mouse sequence: {sequence!r}")
            return
        mouse = self.tracker.track(raw)
        if mouse is not None:
            self.bus.send(UserMouseInput(mouse))

    def poll(self) -> None:
        """One poll of at most POLL_TIMEOUT seconds."""
        key = self.term.inkey(timeout=POLL_TIMEOUT)
        self.check_resize()
        if not key:
            return

        text = str(key)
        if text.startswith(MOUSE_PREFIX):
            self._handle_mouse(self._read_mouse_sequence(text))
            return

        if text == "\x1b":
            # an SGR report blessed could not resolve arrives as ESC + characters
            following = []
            for expected in MOUSE_PREFIX[1:]:
                more = self.term.inkey(timeout=0)
                if not more:
                    break
                following.append(more)
                if str(more) != expected:
                    break
            if "".join(str(k) for k in following) == MOUSE_PREFIX[1:]:
                self._handle_mouse(self._read_mouse_sequence(MOUSE_PREFIX))
                return
            self.bus.send(UserKeyInput(key))
            for extra in following:
                self.bus.send(UserKeyInput(extra))
            return

        self.bus.send(UserKeyInput(key))
