"""MPD-specific exceptions for error handling."""

from typing import Optional


class MpdError(Exception):
    """Base exception for MPD session operations."""

    pass


class MpdConnectionError(MpdError):
    """Raised when the socket cannot be opened, is closed, or times out."""

    pass


class MpdProtocolError(MpdError):
    """Raised when the server sends something that is not valid protocol."""

    pass


class UnsupportedMpdVersion(MpdError):
    """Raised when a command needs a newer server than the one connected."""

    pass


class MpdFailureResponse(MpdError):
    """Raised when the server answers a command with an ACK line.

    ACK lines look like: ``ACK [50@0] {play} song doesn't exist: "10"``
    """

    def __init__(
        self,
        code: int,
        command_index: int,
        command: str,
        message: str,
        raw: Optional[str] = None,
    ):
        self.code = code
        self.command_index = command_index
        self.command = command
        self.message = message
        self.raw = raw
        super().__init__(f"{command}: {message} (code {code})")
