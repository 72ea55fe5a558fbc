"""Keystroke normalisation shared by surfaces and modals."""

from blessed.keyboard import Keystroke


def parse_key(key: Keystroke) -> dict:
    """
    Parse keystroke into event dictionary.

    Args:
        key: blessed Keystroke

    Returns:
        Dict with "type" (enter, escape, tab, char, ...), "name" and "char"
    """
    name = getattr(key, "name", None)
    event = {
        "type": "unknown",
        "key": key,
        "name": name,
        "char": str(key) if key and str(key).isprintable() else None,
    }

    if name == "KEY_ENTER" or key == "\r" or key == "\n":
        event["type"] = "enter"
    elif name == "KEY_ESCAPE":
        event["type"] = "escape"
    elif name == "KEY_BTAB":
        event["type"] = "back_tab"
    elif name == "KEY_TAB" or key == "\t":
        event["type"] = "tab"
    elif name == "KEY_BACKSPACE" or key == "\x7f" or key == "\x08":
        event["type"] = "backspace"
    elif name == "KEY_UP":
        event["type"] = "arrow_up"
    elif name == "KEY_DOWN":
        event["type"] = "arrow_down"
    elif name == "KEY_LEFT":
        event["type"] = "arrow_left"
    elif name == "KEY_RIGHT":
        event["type"] = "arrow_right"
    elif name == "KEY_PGUP" or key == "\x15":  # Ctrl+U
        event["type"] = "page_up"
    elif name == "KEY_PGDOWN" or key == "\x04":  # Ctrl+D
        event["type"] = "page_down"
    elif name == "KEY_HOME":
        event["type"] = "home"
    elif name == "KEY_END":
        event["type"] = "end"
    elif key == "\x03":  # Ctrl+C
        event["type"] = "ctrl_c"
    elif event["char"]:
        event["type"] = "char"

    return event


def navigation_delta(event: dict, page: int) -> int:
    """Cursor movement for arrow/vim/page keys; 0 when the key is not navigation."""
    kind = event["type"]
    char = event["char"]
    if kind == "arrow_up" or char == "k":
        return -1
    if kind == "arrow_down" or char == "j":
        return 1
    if kind == "page_up":
        return -max(1, page)
    if kind == "page_down":
        return max(1, page)
    return 0
