"""Logs surface: the most recent log records forwarded by the logging sink."""

from collections import deque

from blessed import Terminal

from mpdeck.context import AppContext
from mpdeck.events import QueryResult
from mpdeck.ui.base import Rect, RenderDecision, UiEvent
from mpdeck.ui.keys import navigation_delta
from mpdeck.ui.mouse import MouseEvent, MouseEventKind
from mpdeck.ui.terminal import fit

MAX_LOG_LINES = 1000


class LogsSurface:
    def __init__(self, max_lines: int = MAX_LOG_LINES):
        self.lines: deque[str] = deque(maxlen=max_lines)
        # lines scrolled up from the bottom; 0 follows new output
        self.scroll = 0

    def add_line(self, line: str) -> None:
        self.lines.append(line)
        if self.scroll:
            self.scroll = min(self.scroll + 1, len(self.lines) - 1)

    def before_show(self, ctx: AppContext) -> None:
        pass

    def on_hide(self, ctx: AppContext) -> None:
        pass

    def on_event(self, event: UiEvent, ctx: AppContext) -> bool:
        return event == UiEvent.RESIZED

    def on_query_finished(self, id: str, data: QueryResult, ctx: AppContext) -> bool:
        return False

    def _scroll_by(self, delta: int) -> None:
        self.scroll = max(0, min(self.scroll - delta, max(0, len(self.lines) - 1)))

    def handle_key(self, event: dict, ctx: AppContext) -> RenderDecision:
        delta = navigation_delta(event, page=10)
        if delta:
            self._scroll_by(delta)
            return RenderDecision.RENDER
        if event["char"] == "G" or event["type"] == "end":
            self.scroll = 0
            return RenderDecision.RENDER
        if event["char"] == "g" or event["type"] == "home":
            self.scroll = max(0, len(self.lines) - 1)
            return RenderDecision.RENDER
        if event["char"] == "D":
            self.lines.clear()
            self.scroll = 0
            return RenderDecision.RENDER
        return RenderDecision.SKIP

    def handle_mouse(self, mouse: MouseEvent, area: Rect, ctx: AppContext) -> RenderDecision:
        if mouse.kind == MouseEventKind.SCROLL_UP:
            self._scroll_by(-1)
        elif mouse.kind == MouseEventKind.SCROLL_DOWN:
            self._scroll_by(1)
        else:
            return RenderDecision.SKIP
        return RenderDecision.RENDER

    def render(self, term: Terminal, area: Rect, ctx: AppContext) -> list[str]:
        rows = max(0, area.height - 1)
        header = f" Logs ({len(self.lines)})" + (f"  [scrolled {self.scroll}]" if self.scroll else "")
        lines = [term.bold_white(fit(header, area.width))]

        end = len(self.lines) - self.scroll
        visible = list(self.lines)[max(0, end - rows) : end]
        for line in visible:
            if " ERROR " in line:
                color = term.red
            elif " WARNING " in line:
                color = term.yellow
            elif " DEBUG " in line or " TRACE " in line:
                color = term.bright_black
            else:
                color = term.white
            lines.append(color(fit(line, area.width)))
        while len(lines) < area.height:
            lines.append(" " * area.width)
        return lines
