"""Header, tab row and bottom status bar."""

from blessed import Terminal

from mpdeck.context import AppContext
from mpdeck.events import Level
from mpdeck.mpd import OnOffOneshot, State

from .base import ActiveSurface
from .terminal import fit

STATE_ICONS = {State.PLAY: "▶", State.PAUSE: "⏸", State.STOP: "■"}


def format_time(seconds: float) -> str:
    total = int(max(0, seconds))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _flag(label: str, value) -> str:
    if isinstance(value, OnOffOneshot):
        if value == OnOffOneshot.ONESHOT:
            return label.upper() + "¹"
        value = value == OnOffOneshot.ON
    return label.upper() if value else "-"


def render_header(term: Terminal, width: int, ctx: AppContext) -> list[str]:
    status = ctx.status
    song = ctx.current_song

    title = song.display_name() if song else "No song playing"
    state = f"{STATE_ICONS[status.state]} {status.state.value}"
    left = f"{state}  {title}"

    options = " ".join(
        [
            _flag("r", status.repeat),
            _flag("z", status.random),
            _flag("s", status.single),
            _flag("c", status.consume),
        ]
    )
    right = f"vol {status.volume:>3}%  [{options}]"
    if ctx.config.ui.show_frame_count:
        right = f"frame {ctx.frame_count}  " + right

    left_width = max(0, width - len(right) - 1)
    line1 = term.bold_cyan(fit(left, left_width)) + " " + term.yellow(right)

    album = song.album if song and song.album else ""
    line2 = term.bright_black(fit(f"  {album}", width))
    return [line1, line2]


def tab_ranges(width: int) -> list[tuple[ActiveSurface, int, int]]:
    """(surface, start column, end column) of each tab label."""
    ranges = []
    x = 1
    for index, surface in enumerate(ActiveSurface, start=1):
        label = f" {index}:{surface.value} "
        ranges.append((surface, x, x + len(label)))
        x += len(label) + 1
        if x >= width:
            break
    return ranges


def render_tabs(term: Terminal, width: int, active: ActiveSurface) -> str:
    parts = [" "]
    used = 1
    for index, surface in enumerate(ActiveSurface, start=1):
        label = f" {index}:{surface.value} "
        if used + len(label) + 1 > width:
            break
        styled = term.black_on_cyan(label) if surface == active else term.white(label)
        parts.append(styled + " ")
        used += len(label) + 1
    return "".join(parts)


def render_status_bar(term: Terminal, width: int, ctx: AppContext) -> str:
    message = ctx.active_message()
    if message is not None:
        color = {
            Level.ERROR: term.bold_red,
            Level.WARN: term.bold_yellow,
            Level.INFO: term.white,
        }.get(message.level, term.bright_black)
        return color(fit(f" {message.message}", width))

    status = ctx.status
    if status.state == State.STOP or status.duration <= 0:
        return term.bright_black(fit("", width))

    times = f" {format_time(status.elapsed)}/{format_time(status.duration)} "
    bar_width = max(0, width - len(times) - 1)
    filled = int(bar_width * min(1.0, status.elapsed / status.duration))
    return term.cyan(times) + term.bold_blue("━" * filled) + term.bright_black(
        "─" * (bar_width - filled)
    )
