"""
Terminal UI: surfaces selected through a dispatch table, a modal stack and
the global key bindings.

The event loop decides when to render; this package decides what a key
does and how the screen looks.
"""

import sys
from typing import Optional, TextIO

from blessed import Terminal
from loguru import logger

from mpdeck.context import AppContext
from mpdeck.events import DownloadYoutube, Level, QueryResult
from mpdeck.mpd import clamp_volume
from mpdeck.mpd.protocol import Version

from .base import ActiveSurface, Modal, Rect, RenderDecision, Surface, UiEvent
from .header import render_header, render_status_bar, render_tabs, tab_ranges
from .keys import parse_key
from .modals import ConfirmModal, InputModal
from .mouse import MouseEvent, MouseEventKind
from .surfaces import AlbumsSurface, LogsSurface, QueueSurface
from .terminal import write_at

HEADER_HEIGHT = 2
TABS_ROW = HEADER_HEIGHT
BODY_TOP = TABS_ROW + 1
SEEK_STEP = "5"

SURFACE_KEYS = {"1": ActiveSurface.QUEUE, "2": ActiveSurface.ALBUMS, "3": ActiveSurface.LOGS}


class Ui:
    def __init__(self, term: Terminal, stream: Optional[TextIO] = None):
        self.term = term
        self.stream = stream or sys.stdout
        self.queue = QueueSurface()
        self.albums = AlbumsSurface()
        self.logs = LogsSurface()
        self.surfaces: dict[ActiveSurface, Surface] = {
            ActiveSurface.QUEUE: self.queue,
            ActiveSurface.ALBUMS: self.albums,
            ActiveSurface.LOGS: self.logs,
        }
        self.active = ActiveSurface.QUEUE
        self.modals: list[Modal] = []

    @property
    def active_surface(self) -> Surface:
        return self.surfaces[self.active]

    def init(self, ctx: AppContext) -> None:
        self.active_surface.before_show(ctx)

    # Modal stack

    def push_modal(self, modal: Modal) -> None:
        self.modals.append(modal)

    def pop_modal(self) -> Optional[Modal]:
        return self.modals.pop() if self.modals else None

    # Surfaces

    def switch_to(self, surface: ActiveSurface, ctx: AppContext) -> RenderDecision:
        if surface == self.active:
            return RenderDecision.SKIP
        self.active_surface.on_hide(ctx)
        self.active = surface
        self.active_surface.before_show(ctx)
        return RenderDecision.FULL_RENDER

    def _cycle_surface(self, step: int, ctx: AppContext) -> RenderDecision:
        order = list(ActiveSurface)
        index = (order.index(self.active) + step) % len(order)
        return self.switch_to(order[index], ctx)

    # Notifications from the event loop

    def display_message(self, message: str, level: Level, ctx: AppContext) -> None:
        ctx.display_message(message, level)

    def on_log(self, line: str) -> bool:
        """Store a log line; True when it is visible right now."""
        self.logs.add_line(line)
        return self.active == ActiveSurface.LOGS

    def on_event(self, event: UiEvent, ctx: AppContext) -> bool:
        wants_render = False
        for kind, surface in self.surfaces.items():
            changed = surface.on_event(event, ctx)
            if kind == self.active:
                wants_render = changed
        return wants_render

    def on_query_finished(
        self, target: str, id: str, data: QueryResult, ctx: AppContext
    ) -> bool:
        try:
            kind = ActiveSurface(target)
        except ValueError:
            logger.warning(f"Query result '{id}' for unknown target '{target}'")
            return False
        changed = self.surfaces[kind].on_query_finished(id, data, ctx)
        return changed and kind == self.active

    # Input

    def handle_key(self, key, ctx: AppContext) -> RenderDecision:
        event = parse_key(key)
        if self.modals:
            modal = self.modals[-1]
            decision = modal.handle_key(event, ctx)
            if modal.closed:
                self.pop_modal()
                return RenderDecision.FULL_RENDER
            return decision

        decision = self._handle_global_key(event, ctx)
        if decision is not None:
            return decision
        return self.active_surface.handle_key(event, ctx)

    def _handle_global_key(self, event: dict, ctx: AppContext) -> Optional[RenderDecision]:
        char = event["char"]
        kind = event["type"]
        status = ctx.status

        if char == "q" or kind == "ctrl_c":
            return RenderDecision.QUIT
        if kind == "tab":
            return self._cycle_surface(1, ctx)
        if kind == "back_tab":
            return self._cycle_surface(-1, ctx)
        if char in SURFACE_KEYS:
            return self.switch_to(SURFACE_KEYS[char], ctx)

        if char == "p":
            ctx.command(lambda c: c.pause_toggle(), "toggle pause")
        elif char == ">":
            ctx.command(lambda c: c.next(), "play next song")
        elif char == "<":
            ctx.command(lambda c: c.prev(), "play previous song")
        elif char == "s":
            ctx.command(lambda c: c.stop(), "stop playback")
        elif char == "z":
            repeat = not status.repeat
            ctx.command(lambda c: c.repeat(repeat), "toggle repeat")
        elif char == "x":
            random = not status.random
            ctx.command(lambda c: c.random(random), "toggle random")
        elif char == "c":
            single = status.single.cycle()
            ctx.command(lambda c: c.single(single), "change single mode")
        elif char == "v":
            if ctx.mpd_version >= Version(0, 24, 0):
                consume = status.consume.cycle()
            else:
                consume = status.consume.cycle_pre_mpd_24()
            ctx.command(lambda c: c.consume(consume), "change consume mode")
        elif char in ("+", "-"):
            step = ctx.config.ui.volume_step if char == "+" else -ctx.config.ui.volume_step
            volume = clamp_volume(status.volume + step)
            ctx.command(lambda c: c.set_volume(volume), "set volume")
        elif char in ("f", "b"):
            offset = ("+" if char == "f" else "-") + SEEK_STEP
            ctx.command(lambda c: c.seek_current(offset), "seek")
        elif char == "y":
            self.push_modal(InputModal("YouTube URL", self._submit_youtube))
            return RenderDecision.RENDER
        elif char == "C":
            self.push_modal(
                ConfirmModal(
                    "Clear the whole queue?",
                    lambda ctx: ctx.command(lambda c: c.clear(), "clear the queue"),
                )
            )
            return RenderDecision.RENDER
        else:
            return None
        return RenderDecision.SKIP

    def _submit_youtube(self, url: str, ctx: AppContext) -> None:
        ctx.work(DownloadYoutube(url))
        ctx.display_message(f"Downloading {url}", Level.INFO)

    def handle_mouse(self, mouse: MouseEvent, ctx: AppContext) -> RenderDecision:
        if self.modals:
            return RenderDecision.SKIP
        if mouse.y == TABS_ROW and mouse.kind == MouseEventKind.LEFT_CLICK:
            for surface, start, end in tab_ranges(self.term.width):
                if start <= mouse.x < end:
                    return self.switch_to(surface, ctx)
            return RenderDecision.SKIP
        area = self.body_area()
        if not area.contains(mouse.x, mouse.y):
            return RenderDecision.SKIP
        return self.active_surface.handle_mouse(mouse, area, ctx)

    # Rendering

    def body_area(self) -> Rect:
        width = self.term.width
        height = max(0, self.term.height - BODY_TOP - 1)
        return Rect(0, BODY_TOP, width, height)

    def clear(self) -> None:
        self.stream.write(self.term.home + self.term.clear)

    def render(self, ctx: AppContext) -> None:
        term = self.term
        width = term.width
        area = self.body_area()

        for row, line in enumerate(render_header(term, width, ctx)):
            write_at(term, 0, row, line, stream=self.stream)
        write_at(term, 0, TABS_ROW, render_tabs(term, width, self.active), stream=self.stream)

        body = self.active_surface.render(term, area, ctx)
        if self.modals:
            overlay = self.modals[-1].render(term, area, ctx)
            start = max(0, len(body) - len(overlay))
            body = body[:start] + overlay
        for row, line in enumerate(body[: area.height]):
            write_at(term, 0, area.y + row, line, stream=self.stream)

        write_at(term, 0, term.height - 1, render_status_bar(term, width, ctx), stream=self.stream)
        self.stream.flush()


__all__ = [
    "ActiveSurface",
    "Rect",
    "RenderDecision",
    "Ui",
    "UiEvent",
]
