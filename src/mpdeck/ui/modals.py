"""Modal dialogs pushed onto the UI's modal stack."""

from typing import Callable

from blessed import Terminal

from mpdeck.context import AppContext

from .base import Rect, RenderDecision
from .terminal import fit


class InputModal:
    """Single line text prompt."""

    def __init__(self, title: str, on_submit: Callable[[str, AppContext], None]):
        self.title = title
        self.on_submit = on_submit
        self.value = ""
        self.closed = False

    def handle_key(self, event: dict, ctx: AppContext) -> RenderDecision:
        kind = event["type"]
        if kind == "escape":
            self.closed = True
        elif kind == "enter":
            self.closed = True
            value = self.value.strip()
            if value:
                self.on_submit(value, ctx)
        elif kind == "backspace":
            self.value = self.value[:-1]
        elif kind == "char":
            self.value += event["char"]
        else:
            return RenderDecision.SKIP
        return RenderDecision.RENDER

    def render(self, term: Terminal, area: Rect, ctx: AppContext) -> list[str]:
        inner = max(0, area.width - 4)
        return [
            term.bold_cyan(fit(f" {self.title} ", area.width)),
            "  " + term.white(fit(self.value + "█", inner)),
            term.bright_black(fit("  enter: confirm  esc: cancel", area.width)),
        ]


class ConfirmModal:
    """Yes/no question; ``on_confirm`` runs only on yes."""

    def __init__(self, message: str, on_confirm: Callable[[AppContext], None]):
        self.message = message
        self.on_confirm = on_confirm
        self.closed = False

    def handle_key(self, event: dict, ctx: AppContext) -> RenderDecision:
        if event["type"] == "enter" or event["char"] in ("y", "Y"):
            self.closed = True
            self.on_confirm(ctx)
        elif event["type"] == "escape" or event["char"] in ("n", "N", "q"):
            self.closed = True
        else:
            return RenderDecision.SKIP
        return RenderDecision.RENDER

    def render(self, term: Terminal, area: Rect, ctx: AppContext) -> list[str]:
        return [
            term.bold_yellow(fit(f" {self.message} ", area.width)),
            term.bright_black(fit("  y/enter: yes  n/esc: no", area.width)),
        ]
