"""
SGR mouse reporting (``ESC [ < b ; x ; y M|m``) and click coalescing.

The raw stream contains a press, a release and often a burst of motion
reports for every gesture; MouseEventTracker turns it into one semantic
event or nothing.
"""

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

SGR_PATTERN = re.compile(r"\x1b\[<(\d+);(\d+);(\d+)([Mm])")

DOUBLE_CLICK_INTERVAL = 0.5

# xterm mouse tracking: button events with drag motion + SGR encoding
ENABLE_MOUSE = "\x1b[?1002h\x1b[?1006h"
DISABLE_MOUSE = "\x1b[?1002l\x1b[?1006l"


class Button(Enum):
    LEFT = 0
    MIDDLE = 1
    RIGHT = 2
    NONE = 3


class RawKind(Enum):
    DOWN = "down"
    UP = "up"
    DRAG = "drag"
    MOVE = "move"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


@dataclass(frozen=True)
class RawMouseEvent:
    kind: RawKind
    button: Button
    x: int
    y: int


class MouseEventKind(Enum):
    LEFT_CLICK = "left_click"
    DOUBLE_CLICK = "double_click"
    MIDDLE_CLICK = "middle_click"
    RIGHT_CLICK = "right_click"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"
    DRAG = "drag"


@dataclass(frozen=True)
class MouseEvent:
    kind: MouseEventKind
    x: int
    y: int


def parse_sgr(sequence: str) -> Optional[RawMouseEvent]:
    """Decode one SGR report; coordinates become 0-based."""
    match = SGR_PATTERN.fullmatch(sequence)
    if not match:
        return None
    code, col, row, final = match.groups()
    code = int(code)
    x, y = int(col) - 1, int(row) - 1

    if code & 64:
        if code & 2:
            # horizontal wheel
            return None
        kind = RawKind.SCROLL_DOWN if code & 1 else RawKind.SCROLL_UP
        return RawMouseEvent(kind, Button.NONE, x, y)

    button = Button(code & 3)
    if code & 32:
        kind = RawKind.MOVE if button == Button.NONE else RawKind.DRAG
    elif final == "M":
        kind = RawKind.DOWN
    else:
        kind = RawKind.UP
    return RawMouseEvent(kind, button, x, y)


class MouseEventTracker:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._last_click: Optional[tuple[int, int, float]] = None
        self._last_drag: Optional[tuple[int, int]] = None

    def track(self, raw: RawMouseEvent) -> Optional[MouseEvent]:
        if raw.kind == RawKind.SCROLL_UP:
            return MouseEvent(MouseEventKind.SCROLL_UP, raw.x, raw.y)
        if raw.kind == RawKind.SCROLL_DOWN:
            return MouseEvent(MouseEventKind.SCROLL_DOWN, raw.x, raw.y)

        if raw.kind == RawKind.UP:
            self._last_drag = None
            return None

        if raw.kind == RawKind.DRAG:
            position = (raw.x, raw.y)
            if position == self._last_drag:
                return None
            self._last_drag = position
            return MouseEvent(MouseEventKind.DRAG, raw.x, raw.y)

        if raw.kind != RawKind.DOWN:
            return None

        if raw.button == Button.MIDDLE:
            return MouseEvent(MouseEventKind.MIDDLE_CLICK, raw.x, raw.y)
        if raw.button == Button.RIGHT:
            return MouseEvent(MouseEventKind.RIGHT_CLICK, raw.x, raw.y)
        if raw.button != Button.LEFT:
            return None

        now = self._clock()
        last = self._last_click
        if (
            last is not None
            and (last[0], last[1]) == (raw.x, raw.y)
            and now - last[2] <= DOUBLE_CLICK_INTERVAL
        ):
            self._last_click = None
            return MouseEvent(MouseEventKind.DOUBLE_CLICK, raw.x, raw.y)

        self._last_click = (raw.x, raw.y, now)
        return MouseEvent(MouseEventKind.LEFT_CLICK, raw.x, raw.y)
