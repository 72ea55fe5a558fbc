"""
Log output for mpdeck using Loguru.

The terminal belongs to the UI while it runs, so nothing is printed to
stdout: records go to a rotating file and, once the event bus exists, are
forwarded to the in-app logs surface as ``Log`` events.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from .config import get_data_dir

if TYPE_CHECKING:
    from mpdeck.events import EventBus

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"
BUS_FORMAT = "{time:HH:mm:ss} {level: <7} {message}"

_bus_sink_id: Optional[int] = None


def get_log_file_path() -> Path:
    """Get the default path of the log file."""
    return get_data_dir() / "mpdeck.log"


def setup_loguru(log_file: Optional[Path] = None, level: str = "INFO") -> Path:
    """
    Configure loguru for file-only logging.

    Args:
        log_file: Path to log file (default: ~/.local/share/mpdeck/mpdeck.log)
        level: Minimum level for file logging (TRACE, DEBUG, INFO, WARNING, ERROR)

    Returns:
        The path records are written to
    """
    path = log_file or get_log_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Remove default stderr handler
    logger.remove()

    logger.add(
        path,
        rotation="10 MB",
        retention=5,
        level=level,
        format=LOG_FORMAT,
        enqueue=False,
    )

    logger.info(f"Loguru initialized: {path} (level={level})")
    return path


def attach_event_bus(bus: "EventBus", level: str = "INFO") -> int:
    """
    Forward every record at ``level`` or above to ``bus`` as a Log event.

    Replaces a previously attached bus sink. Returns the loguru handler id.
    """
    global _bus_sink_id
    from mpdeck.events import Log

    detach_event_bus()

    def sink(message) -> None:
        # Called from whichever thread logged; send never blocks
        bus.send(Log(str(message).rstrip("\n")))

    _bus_sink_id = logger.add(sink, level=level, format=BUS_FORMAT, colorize=False)
    return _bus_sink_id


def detach_event_bus() -> None:
    global _bus_sink_id
    if _bus_sink_id is not None:
        try:
            logger.remove(_bus_sink_id)
        except ValueError:
            pass
        _bus_sink_id = None
