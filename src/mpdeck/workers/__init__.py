"""Producer threads feeding the event bus."""

from .change_listener import ChangeListener
from .client_worker import ClientWorker
from .input_listener import InputListener
from .scheduler import UpdateScheduler
from .work_pool import WorkPool

__all__ = [
    "ChangeListener",
    "ClientWorker",
    "InputListener",
    "UpdateScheduler",
    "WorkPool",
]
