"""
MPD line protocol over a blocking socket.

Reference: https://mpd.readthedocs.io/en/latest/protocol.html

Every response is a list of ``key: value`` lines terminated by ``OK`` or by a
single ``ACK [code@index] {command} message`` line. ``binary: N`` is followed
by exactly N raw bytes and a newline.
"""

import re
import socket
from pathlib import Path
from typing import NamedTuple, Optional

from loguru import logger

from .errors import MpdConnectionError, MpdFailureResponse, MpdProtocolError

DEFAULT_PORT = 6600

ACK_PATTERN = re.compile(r"^ACK \[(\d+)@(\d+)\] \{([^}]*)\} ?(.*)$")


class Version(NamedTuple):
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "Version":
        parts = (text.split(".") + ["0", "0", "0"])[:3]
        try:
            return cls(*(int(p) for p in parts))
        except ValueError:
            raise MpdProtocolError(f"Invalid MPD version: {text!r}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class Response(NamedTuple):
    """Parsed response: ordered key/value pairs plus any binary payload."""

    pairs: list[tuple[str, str]]
    binary: Optional[bytes] = None

    def as_dict(self) -> dict[str, str]:
        """Collapse pairs into a dict; later keys win."""
        return dict(self.pairs)

    def values(self, key: str) -> list[str]:
        return [value for k, value in self.pairs if k == key]


def escape(value: str) -> str:
    """Quote an argument so spaces, quotes and backslashes survive."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_command(command: str, *args: object) -> str:
    """Format a command line with every argument quoted."""
    if not args:
        return command
    return command + " " + " ".join(escape(str(arg)) for arg in args)


def parse_ack(line: str) -> MpdFailureResponse:
    match = ACK_PATTERN.match(line)
    if not match:
        return MpdFailureResponse(0, 0, "", line, raw=line)
    code, index, command, message = match.groups()
    return MpdFailureResponse(int(code), int(index), command, message, raw=line)


def parse_address(address: str) -> tuple[Optional[str], Optional[int], Optional[str]]:
    """Split an address into (host, port, unix_path).

    Absolute paths and ``~`` paths are Unix sockets; ``host`` and ``host:port``
    are TCP. ``[v6addr]:port`` is accepted for IPv6.
    """
    if address.startswith("/") or address.startswith("~"):
        return None, None, str(Path(address).expanduser())

    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = int(rest[1:]) if rest.startswith(":") else DEFAULT_PORT
        return host, port, None

    if address.count(":") == 1:
        host, port_text = address.split(":", 1)
        try:
            return host or "127.0.0.1", int(port_text), None
        except ValueError:
            raise MpdConnectionError(f"Invalid port in MPD address: {address!r}")

    return address or "127.0.0.1", DEFAULT_PORT, None


class Connection:
    """One blocking socket connection to MPD.

    Not thread-safe. Each thread that talks to MPD owns its own Connection.
    """

    def __init__(self, address: str, timeout: Optional[float] = 10.0):
        self.address = address
        self.timeout = timeout
        self.version: Optional[Version] = None
        self._sock: Optional[socket.socket] = None
        self._reader = None

    def connect(self) -> Version:
        host, port, unix_path = parse_address(self.address)
        sock = None
        try:
            if unix_path:
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(self.timeout)
                sock.connect(unix_path)
            else:
                sock = socket.create_connection((host, port), timeout=self.timeout)
        except OSError as e:
            if sock is not None:
                sock.close()
            raise MpdConnectionError(f"Failed to connect to MPD at {self.address}: {e}")

        self._sock = sock
        self._reader = sock.makefile("rb")
        greeting = self._read_line()
        if not greeting.startswith("OK MPD "):
            self.close()
            raise MpdProtocolError(f"Invalid initial response from MPD: {greeting!r}")
        self.version = Version.parse(greeting[len("OK MPD ") :].strip())
        logger.debug(f"Connected to MPD {self.version} at {self.address}")
        return self.version

    def set_timeout(self, timeout: Optional[float]) -> None:
        """None blocks forever; used by the idle connection."""
        self.timeout = timeout
        if self._sock:
            self._sock.settimeout(timeout)

    def close(self) -> None:
        if self._reader:
            try:
                self._reader.close()
            except OSError:
                pass
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
        self._sock = None
        self._reader = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def send_line(self, line: str) -> None:
        if not self._sock:
            raise MpdConnectionError("Not connected to MPD")
        try:
            self._sock.sendall(line.encode("utf-8") + b"\n")
        except OSError as e:
            self.close()
            raise MpdConnectionError(f"Failed to send to MPD: {e}")

    def _read_line(self) -> str:
        if not self._reader:
            raise MpdConnectionError("Not connected to MPD")
        try:
            raw = self._reader.readline()
        except (OSError, socket.timeout) as e:
            self.close()
            raise MpdConnectionError(f"Failed to read from MPD: {e}")
        if not raw:
            self.close()
            raise MpdConnectionError("MPD closed the connection")
        return raw.decode("utf-8", errors="replace").rstrip("\n")

    def _read_exact(self, size: int) -> bytes:
        if not self._reader:
            raise MpdConnectionError("Not connected to MPD")
        try:
            data = self._reader.read(size)
            # trailing newline after binary payload
            self._reader.readline()
        except (OSError, socket.timeout) as e:
            self.close()
            raise MpdConnectionError(f"Failed to read binary data from MPD: {e}")
        if len(data) != size:
            self.close()
            raise MpdConnectionError("MPD closed the connection mid binary response")
        return data

    def read_response(self) -> Response:
        pairs: list[tuple[str, str]] = []
        binary: Optional[bytes] = None
        while True:
            line = self._read_line()
            if line == "OK":
                return Response(pairs, binary)
            if line.startswith("ACK "):
                raise parse_ack(line)
            key, sep, value = line.partition(": ")
            if not sep:
                raise MpdProtocolError(f"Malformed response line: {line!r}")
            if key == "binary":
                try:
                    size = int(value)
                except ValueError:
                    raise MpdProtocolError(f"Invalid binary size: {value!r}")
                binary = self._read_exact(size)
            else:
                pairs.append((key, value))

    def execute(self, line: str) -> Response:
        self.send_line(line)
        return self.read_response()
