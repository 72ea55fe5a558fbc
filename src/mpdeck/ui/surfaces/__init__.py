"""Full-body surfaces selectable from the tab row."""

from .albums import AlbumsSurface
from .logs import LogsSurface
from .queue import QueueSurface

__all__ = ["AlbumsSurface", "LogsSurface", "QueueSurface"]
