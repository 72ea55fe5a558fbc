"""Queue surface: the current play queue with an album art pane."""

from typing import Callable, Optional

from blessed import Terminal
from loguru import logger

from mpdeck.context import AppContext
from mpdeck.events import AlbumArtResult, QueryResult
from mpdeck.mpd import Client, Song
from mpdeck.ui.base import ActiveSurface, Rect, RenderDecision, UiEvent
from mpdeck.ui.header import format_time
from mpdeck.ui.keys import navigation_delta
from mpdeck.ui.mouse import MouseEvent, MouseEventKind
from mpdeck.ui.terminal import fit

ALBUM_ART = "album_art"
TARGET = ActiveSurface.QUEUE.value

ART_PANE_WIDTH = 30
MIN_WIDTH_FOR_ART = 70


def fetch_album_art(song: Song) -> Callable[[Client], AlbumArtResult]:
    def callback(client: Client) -> AlbumArtResult:
        return AlbumArtResult(client.find_album_art(song.file))

    return callback


class QueueSurface:
    def __init__(self):
        self.selected = 0
        self.offset = 0
        self.album_art: Optional[bytes] = None
        self.art_song_file: Optional[str] = None

    # Album art

    def _art_allowed(self, song: Song, ctx: AppContext) -> bool:
        art = ctx.config.album_art
        if not art.enabled:
            return False
        return not any(song.file.startswith(p) for p in art.disabled_protocols)

    def request_album_art(self, ctx: AppContext) -> None:
        """Drop the current image and ask for the current song's art."""
        song = ctx.current_song
        self.album_art = None
        self.art_song_file = song.file if song else None
        if song is None or not self._art_allowed(song, ctx):
            ctx.supersede(ALBUM_ART)
            return
        logger.debug(f"Requesting album art for {song.file}")
        ctx.query(
            id=ALBUM_ART,
            replace_id=ALBUM_ART,
            target=TARGET,
            callback=fetch_album_art(song),
        )

    # Surface interface

    def before_show(self, ctx: AppContext) -> None:
        self._clamp(ctx)
        self.request_album_art(ctx)

    def on_hide(self, ctx: AppContext) -> None:
        pass

    def on_event(self, event: UiEvent, ctx: AppContext) -> bool:
        if event == UiEvent.SONG_CHANGED:
            self.request_album_art(ctx)
            return True
        if event == UiEvent.PLAYLIST:
            self._clamp(ctx)
            return True
        return event in (UiEvent.PLAYER, UiEvent.RESIZED)

    def on_query_finished(self, id: str, data: QueryResult, ctx: AppContext) -> bool:
        if id == ALBUM_ART and isinstance(data, AlbumArtResult):
            self.album_art = data.data
            return True
        return False

    def _clamp(self, ctx: AppContext) -> None:
        if not ctx.queue:
            self.selected = 0
            self.offset = 0
            return
        self.selected = max(0, min(self.selected, len(ctx.queue) - 1))

    def _selected_song(self, ctx: AppContext) -> Optional[Song]:
        if 0 <= self.selected < len(ctx.queue):
            return ctx.queue[self.selected]
        return None

    def _play_selected(self, ctx: AppContext) -> None:
        song = self._selected_song(ctx)
        if song is not None and song.id is not None:
            ctx.command(lambda c, song_id=song.id: c.play_id(song_id), "play song")

    def handle_key(self, event: dict, ctx: AppContext) -> RenderDecision:
        delta = navigation_delta(event, page=10)
        if delta:
            self.selected += delta
            self._clamp(ctx)
            return RenderDecision.RENDER

        char = event["char"]
        if event["type"] == "enter":
            self._play_selected(ctx)
            return RenderDecision.SKIP
        if char == "g" or event["type"] == "home":
            self.selected = 0
            return RenderDecision.RENDER
        if char == "G" or event["type"] == "end":
            self.selected = max(0, len(ctx.queue) - 1)
            return RenderDecision.RENDER
        if char == "d":
            song = self._selected_song(ctx)
            if song is not None and song.id is not None:
                ctx.command(lambda c, song_id=song.id: c.delete_id(song_id), "delete song")
            return RenderDecision.SKIP
        return RenderDecision.SKIP

    def handle_mouse(self, mouse: MouseEvent, area: Rect, ctx: AppContext) -> RenderDecision:
        if mouse.kind == MouseEventKind.SCROLL_UP:
            self.selected -= 1
        elif mouse.kind == MouseEventKind.SCROLL_DOWN:
            self.selected += 1
        elif mouse.kind in (MouseEventKind.LEFT_CLICK, MouseEventKind.DOUBLE_CLICK):
            row = mouse.y - area.y - 1  # column header
            if row < 0 or self.offset + row >= len(ctx.queue):
                return RenderDecision.SKIP
            self.selected = self.offset + row
            if mouse.kind == MouseEventKind.DOUBLE_CLICK:
                self._play_selected(ctx)
        else:
            return RenderDecision.SKIP
        self._clamp(ctx)
        return RenderDecision.RENDER

    # Rendering

    def render_album_art(self, term: Terminal, width: int, height: int) -> list[str]:
        lines = [term.bold_white(fit(" Album Art", width))]
        if self.album_art:
            body = f"[image {len(self.album_art) / 1024:.1f} KiB]"
        else:
            body = "♫ no album art"
        for row in range(1, height):
            text = body if row == height // 2 else ""
            lines.append(term.bright_black(fit(text.center(width), width)))
        return lines

    def render(self, term: Terminal, area: Rect, ctx: AppContext) -> list[str]:
        show_art = ctx.config.album_art.enabled and area.width >= MIN_WIDTH_FOR_ART
        list_width = area.width - ART_PANE_WIDTH - 1 if show_art else area.width
        rows = max(0, area.height - 1)

        if self.selected < self.offset:
            self.offset = self.selected
        elif rows and self.selected >= self.offset + rows:
            self.offset = self.selected - rows + 1

        time_width = 8
        name_width = max(0, list_width - time_width - 3)
        lines = [term.bold_white(fit(f"   {'Title':<{name_width}}{'Time':>{time_width}}", list_width))]

        playing_id = ctx.status.songid
        for index in range(self.offset, self.offset + rows):
            if index >= len(ctx.queue):
                lines.append(" " * list_width)
                continue
            song = ctx.queue[index]
            marker = "▶ " if song.id is not None and song.id == playing_id else "  "
            duration = format_time(song.duration) if song.duration else ""
            text = fit(f" {marker}{fit(song.display_name(), name_width)}{duration:>{time_width}}", list_width)
            if index == self.selected:
                lines.append(term.black_on_cyan(text))
            elif marker.strip():
                lines.append(term.bold_green(text))
            else:
                lines.append(term.white(text))

        if not ctx.queue and rows:
            lines[1] = term.bright_black(fit("   Queue is empty", list_width))

        if show_art:
            art = self.render_album_art(term, ART_PANE_WIDTH, area.height)
            lines = [left + term.bright_black("│") + right for left, right in zip(lines, art)]
        return lines
