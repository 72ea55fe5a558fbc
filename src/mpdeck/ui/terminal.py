"""Terminal output helpers and restoration of the user's terminal."""

import _thread
import atexit
import contextlib
import signal
import sys
import threading
from typing import Optional, TextIO

from blessed import Terminal
from loguru import logger

from .mouse import DISABLE_MOUSE, ENABLE_MOUSE


def write_at(
    term: Terminal,
    x: int,
    y: int,
    content: str,
    *,
    clear: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Write content at position, clearing the rest of the line by default.

    Args:
        term: Blessed terminal instance
        x: Column position (0-indexed)
        y: Row position (0-indexed)
        content: Text to write (can include terminal formatting)
        clear: Clear to end of line first so shorter text leaves no residue
    """
    out = stream or sys.stdout
    if clear:
        out.write(term.move_xy(x, y) + term.clear_eol + content)
    else:
        out.write(term.move_xy(x, y) + content)


def fit(text: str, width: int) -> str:
    """Cut or pad plain text to exactly ``width`` cells."""
    if width <= 0:
        return ""
    if len(text) > width:
        return text[: max(0, width - 1)] + "…" if width > 1 else text[:width]
    return text.ljust(width)


class TerminalSession:
    """Fullscreen/cbreak/hidden-cursor/mouse state with a single restore path.

    ``restore`` is idempotent; it is wired to normal exit, uncaught
    exceptions in any thread and SIGTERM by ``install_fault_hooks``.
    """

    def __init__(self, term: Terminal, enable_mouse: bool = True, stream: Optional[TextIO] = None):
        self.term = term
        self.enable_mouse = enable_mouse
        self.stream = stream or sys.stdout
        self._stack: Optional[contextlib.ExitStack] = None
        self._lock = threading.Lock()
        self._hooks_installed = False
        # set when a worker thread died; the main thread is interrupted right after
        self.faulted = False

    @property
    def active(self) -> bool:
        return self._stack is not None

    def enter(self) -> None:
        stack = contextlib.ExitStack()
        try:
            stack.enter_context(self.term.fullscreen())
            stack.enter_context(self.term.cbreak())
            stack.enter_context(self.term.hidden_cursor())
        except Exception:
            stack.close()
            raise
        self._stack = stack
        if self.enable_mouse:
            self.stream.write(ENABLE_MOUSE)
        self.stream.flush()

    def restore(self) -> None:
        with self._lock:
            if self._stack is None:
                return
            stack, self._stack = self._stack, None
            try:
                if self.enable_mouse:
                    self.stream.write(DISABLE_MOUSE)
                stack.close()
                self.stream.flush()
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to restore terminal: {e}")

    def __enter__(self) -> "TerminalSession":
        self.enter()
        return self

    def __exit__(self, *exc_info) -> None:
        self.restore()

    def install_fault_hooks(self) -> None:
        """Register ``restore`` once for every way the process can die."""
        if self._hooks_installed:
            return
        self._hooks_installed = True

        previous_excepthook = sys.excepthook
        previous_thread_hook = threading.excepthook

        def excepthook(exc_type, exc, tb):
            self.restore()
            previous_excepthook(exc_type, exc, tb)

        def thread_excepthook(args):
            self.faulted = True
            self.restore()
            logger.opt(exception=(args.exc_type, args.exc_value, args.exc_traceback)).error(
                f"Unhandled exception in thread {args.thread.name if args.thread else '?'}"
            )
            previous_thread_hook(args)
            # the UI cannot be trusted after a worker died; stop the main thread
            _thread.interrupt_main()

        def on_sigterm(signum, frame):
            self.restore()
            raise SystemExit(128 + signum)

        sys.excepthook = excepthook
        threading.excepthook = thread_excepthook
        atexit.register(self.restore)
        signal.signal(signal.SIGTERM, on_sigterm)
