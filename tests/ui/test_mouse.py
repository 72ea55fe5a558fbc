"""Tests for SGR mouse decoding and click coalescing."""

from conftest import FakeClock
from mpdeck.ui.mouse import (
    DISABLE_MOUSE,
    ENABLE_MOUSE,
    Button,
    MouseEvent,
    MouseEventKind,
    MouseEventTracker,
    RawKind,
    RawMouseEvent,
    parse_sgr,
)


def down(x: int, y: int, button: Button = Button.LEFT) -> RawMouseEvent:
    return RawMouseEvent(RawKind.DOWN, button, x, y)


class TestParseSgr:
    def test_left_press_is_zero_based(self) -> None:
        assert parse_sgr("\x1b[<0;10;5M") == RawMouseEvent(RawKind.DOWN, Button.LEFT, 9, 4)

    def test_release(self) -> None:
        assert parse_sgr("\x1b[<0;1;1m").kind == RawKind.UP

    def test_right_press(self) -> None:
        assert parse_sgr("\x1b[<2;3;3M").button == Button.RIGHT

    def test_scroll(self) -> None:
        assert parse_sgr("\x1b[<64;1;1M").kind == RawKind.SCROLL_UP
        assert parse_sgr("\x1b[<65;1;1M").kind == RawKind.SCROLL_DOWN

    def test_drag_and_move(self) -> None:
        assert parse_sgr("\x1b[<32;4;4M").kind == RawKind.DRAG
        assert parse_sgr("\x1b[<35;4;4M").kind == RawKind.MOVE

    def test_horizontal_wheel_ignored(self) -> None:
        assert parse_sgr("\x1b[<66;1;1M") is None
        assert parse_sgr("\x1b[<67;1;1M") is None

    def test_garbage(self) -> None:
        assert parse_sgr("\x1b[A") is None


class TestMouseEventTracker:
    def test_single_click(self) -> None:
        tracker = MouseEventTracker(clock=FakeClock())
        assert tracker.track(down(3, 4)) == MouseEvent(MouseEventKind.LEFT_CLICK, 3, 4)

    def test_double_click(self) -> None:
        clock = FakeClock()
        tracker = MouseEventTracker(clock=clock)
        tracker.track(down(3, 4))
        clock.advance(0.2)
        assert tracker.track(down(3, 4)).kind == MouseEventKind.DOUBLE_CLICK
        clock.advance(0.2)
        # a third click starts over
        assert tracker.track(down(3, 4)).kind == MouseEventKind.LEFT_CLICK

    def test_slow_clicks_are_single(self) -> None:
        clock = FakeClock()
        tracker = MouseEventTracker(clock=clock)
        tracker.track(down(3, 4))
        clock.advance(0.8)
        assert tracker.track(down(3, 4)).kind == MouseEventKind.LEFT_CLICK

    def test_clicks_elsewhere_are_single(self) -> None:
        tracker = MouseEventTracker(clock=FakeClock())
        tracker.track(down(3, 4))
        assert tracker.track(down(5, 4)).kind == MouseEventKind.LEFT_CLICK

    def test_other_buttons(self) -> None:
        tracker = MouseEventTracker(clock=FakeClock())
        assert tracker.track(down(1, 1, Button.MIDDLE)).kind == MouseEventKind.MIDDLE_CLICK
        assert tracker.track(down(1, 1, Button.RIGHT)).kind == MouseEventKind.RIGHT_CLICK

    def test_drag_noise_coalesced(self) -> None:
        tracker = MouseEventTracker(clock=FakeClock())
        drag = RawMouseEvent(RawKind.DRAG, Button.LEFT, 7, 7)
        assert tracker.track(drag).kind == MouseEventKind.DRAG
        assert tracker.track(drag) is None
        assert tracker.track(RawMouseEvent(RawKind.DRAG, Button.LEFT, 8, 7)).kind == MouseEventKind.DRAG

    def test_release_and_motion_are_silent(self) -> None:
        tracker = MouseEventTracker(clock=FakeClock())
        assert tracker.track(RawMouseEvent(RawKind.UP, Button.LEFT, 1, 1)) is None
        assert tracker.track(RawMouseEvent(RawKind.MOVE, Button.NONE, 1, 1)) is None


class TestTrackingMode:
    def test_button_event_tracking_only(self) -> None:
        """Drags are reported but bare pointer motion is not."""
        assert "\x1b[?1002h" in ENABLE_MOUSE
        assert "\x1b[?1006h" in ENABLE_MOUSE
        assert "1003" not in ENABLE_MOUSE + DISABLE_MOUSE
        assert "\x1b[?1002l" in DISABLE_MOUSE
