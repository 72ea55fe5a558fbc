"""Albums surface: browse the library by album and add to the queue."""

from typing import Optional

from blessed import Terminal

from mpdeck.context import AppContext
from mpdeck.events import QueryResult, SongListResult, TagListResult
from mpdeck.mpd import Song
from mpdeck.ui.base import ActiveSurface, Rect, RenderDecision, UiEvent
from mpdeck.ui.keys import navigation_delta
from mpdeck.ui.mouse import MouseEvent, MouseEventKind
from mpdeck.ui.terminal import fit

ALBUM_LIST = "album_list"
ALBUM_SONGS = "album_songs"
TARGET = ActiveSurface.ALBUMS.value


class AlbumsSurface:
    def __init__(self):
        self.albums: list[str] = []
        self.songs: list[Song] = []
        self.open_album: Optional[str] = None
        self.selected = 0
        self.album_selected = 0
        self.loaded = False

    @property
    def _items(self) -> list:
        return self.songs if self.open_album is not None else self.albums

    def _clamp(self) -> None:
        self.selected = max(0, min(self.selected, len(self._items) - 1))

    def load_albums(self, ctx: AppContext) -> None:
        ctx.query(
            id=ALBUM_LIST,
            replace_id=ALBUM_LIST,
            target=TARGET,
            callback=lambda c: TagListResult(c.list_tag("album")),
        )

    def open(self, album: str, ctx: AppContext) -> None:
        self.open_album = album
        self.album_selected = self.selected
        self.selected = 0
        self.songs = []
        ctx.query(
            id=ALBUM_SONGS,
            replace_id=ALBUM_SONGS,
            target=TARGET,
            callback=lambda c: SongListResult(c.find([("album", album)])),
        )

    def close(self) -> None:
        self.open_album = None
        self.songs = []
        self.selected = self.album_selected
        self._clamp()

    # Surface interface

    def before_show(self, ctx: AppContext) -> None:
        if not self.loaded:
            self.load_albums(ctx)

    def on_hide(self, ctx: AppContext) -> None:
        pass

    def on_event(self, event: UiEvent, ctx: AppContext) -> bool:
        if event == UiEvent.DATABASE:
            self.loaded = False
            self.load_albums(ctx)
            return True
        return event == UiEvent.RESIZED

    def on_query_finished(self, id: str, data: QueryResult, ctx: AppContext) -> bool:
        if id == ALBUM_LIST and isinstance(data, TagListResult):
            self.albums = sorted((a for a in data.values if a), key=str.casefold)
            self.loaded = True
            if self.open_album is None:
                self._clamp()
            return True
        if id == ALBUM_SONGS and isinstance(data, SongListResult):
            if self.open_album is None:
                return False
            self.songs = data.songs
            self._clamp()
            return True
        return False

    def _add_selected(self, ctx: AppContext) -> None:
        items = self._items
        if not items:
            return
        item = items[self.selected]
        if self.open_album is None:
            ctx.command(lambda c: c.find_add([("album", item)]), f"add album '{item}'")
            ctx.display_message(f"Added album '{item}' to the queue")
        else:
            ctx.command(lambda c: c.add(item.file), f"add '{item.display_name()}'")
            ctx.display_message(f"Added '{item.display_name()}' to the queue")

    def handle_key(self, event: dict, ctx: AppContext) -> RenderDecision:
        delta = navigation_delta(event, page=10)
        if delta:
            self.selected += delta
            self._clamp()
            return RenderDecision.RENDER

        kind = event["type"]
        char = event["char"]
        if self.open_album is None and (kind in ("enter", "arrow_right") or char == "l"):
            if self.albums:
                self.open(self.albums[self.selected], ctx)
                return RenderDecision.RENDER
            return RenderDecision.SKIP
        if self.open_album is not None and (kind in ("backspace", "escape", "arrow_left") or char == "h"):
            self.close()
            return RenderDecision.RENDER
        if char == "a" or (self.open_album is not None and kind == "enter"):
            self._add_selected(ctx)
            return RenderDecision.RENDER
        return RenderDecision.SKIP

    def handle_mouse(self, mouse: MouseEvent, area: Rect, ctx: AppContext) -> RenderDecision:
        if mouse.kind == MouseEventKind.SCROLL_UP:
            self.selected -= 1
        elif mouse.kind == MouseEventKind.SCROLL_DOWN:
            self.selected += 1
        elif mouse.kind in (MouseEventKind.LEFT_CLICK, MouseEventKind.DOUBLE_CLICK):
            row = mouse.y - area.y - 1
            offset = self._offset(max(0, area.height - 1))
            if row < 0 or offset + row >= len(self._items):
                return RenderDecision.SKIP
            self.selected = offset + row
            if mouse.kind == MouseEventKind.DOUBLE_CLICK:
                if self.open_album is None:
                    self.open(self.albums[self.selected], ctx)
                else:
                    self._add_selected(ctx)
        else:
            return RenderDecision.SKIP
        self._clamp()
        return RenderDecision.RENDER

    def _offset(self, rows: int) -> int:
        if rows <= 0 or self.selected < rows:
            return 0
        return self.selected - rows + 1

    def render(self, term: Terminal, area: Rect, ctx: AppContext) -> list[str]:
        rows = max(0, area.height - 1)
        if self.open_album is None:
            title = f" Albums ({len(self.albums)})"
            labels = self.albums
        else:
            title = f" {self.open_album}  (backspace: back, a/enter: add)"
            labels = [song.display_name() for song in self.songs]

        lines = [term.bold_white(fit(title, area.width))]
        offset = self._offset(rows)
        for index in range(offset, offset + rows):
            if index >= len(labels):
                lines.append(" " * area.width)
                continue
            text = fit(f"  {labels[index]}", area.width)
            lines.append(term.black_on_cyan(text) if index == self.selected else term.white(text))

        if rows and not labels:
            message = "  Loading..." if not self.loaded or self.open_album else "  No albums"
            lines[1] = term.bright_black(fit(message, area.width))
        return lines
