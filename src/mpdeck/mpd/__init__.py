"""MPD session layer: protocol, typed models and the blocking client."""

from .client import Client, filter_expression
from .errors import (
    MpdConnectionError,
    MpdError,
    MpdFailureResponse,
    MpdProtocolError,
    UnsupportedMpdVersion,
)
from .models import (
    HANDLED_IDLE_EVENTS,
    IdleEvent,
    OnOffOneshot,
    Song,
    State,
    Status,
    clamp_volume,
)

__all__ = [
    "Client",
    "filter_expression",
    "MpdConnectionError",
    "MpdError",
    "MpdFailureResponse",
    "MpdProtocolError",
    "UnsupportedMpdVersion",
    "HANDLED_IDLE_EVENTS",
    "IdleEvent",
    "OnOffOneshot",
    "Song",
    "State",
    "Status",
    "clamp_volume",
]
