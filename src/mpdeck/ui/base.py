"""Shared UI types: render decisions, UI events and the surface interface."""

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Protocol

from blessed import Terminal

from mpdeck.events import QueryResult
from mpdeck.mpd import IdleEvent

if TYPE_CHECKING:
    from mpdeck.context import AppContext
    from mpdeck.ui.mouse import MouseEvent


class RenderDecision(Enum):
    SKIP = "skip"
    RENDER = "render"
    FULL_RENDER = "full_render"
    QUIT = "quit"


class UiEvent(Enum):
    PLAYER = "player"
    MIXER = "mixer"
    PLAYLIST = "playlist"
    STORED_PLAYLIST = "stored_playlist"
    DATABASE = "database"
    UPDATE = "update"
    OPTIONS = "options"
    SONG_CHANGED = "song_changed"
    RESIZED = "resized"
    EXIT = "exit"

    @classmethod
    def from_idle(cls, event: IdleEvent) -> "UiEvent":
        return cls(event.value)


class ActiveSurface(Enum):
    QUEUE = "Queue"
    ALBUMS = "Albums"
    LOGS = "Logs"


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.width and self.y <= y < self.y + self.height


class Surface(Protocol):
    """One full-body screen; selected through ``Ui.surfaces[ActiveSurface]``."""

    def handle_key(self, event: dict, ctx: "AppContext") -> RenderDecision: ...

    def handle_mouse(self, mouse: "MouseEvent", area: Rect, ctx: "AppContext") -> RenderDecision: ...

    def on_event(self, event: UiEvent, ctx: "AppContext") -> bool: ...

    def on_query_finished(self, id: str, data: QueryResult, ctx: "AppContext") -> bool: ...

    def before_show(self, ctx: "AppContext") -> None: ...

    def on_hide(self, ctx: "AppContext") -> None: ...

    def render(self, term: Terminal, area: Rect, ctx: "AppContext") -> list[str]: ...


class Modal(Protocol):
    """Takes all input while on top of the modal stack; sets ``closed`` when done."""

    closed: bool

    def handle_key(self, event: dict, ctx: "AppContext") -> RenderDecision: ...

    def render(self, term: Terminal, area: Rect, ctx: "AppContext") -> list[str]: ...
