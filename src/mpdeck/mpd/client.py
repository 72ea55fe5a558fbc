"""
MPD session client.

A Client wraps exactly one Connection. The client worker thread owns the
command client and the change listener thread owns the idle client; they are
never shared between threads.
"""

from typing import Iterable, Optional

from loguru import logger

from .errors import MpdError, MpdFailureResponse, UnsupportedMpdVersion
from .models import IdleEvent, OnOffOneshot, Song, Status, clamp_volume, split_songs
from .protocol import Connection, Response, Version, build_command, escape

# ACK error code for "no such file/song/picture"
ACK_NO_EXIST = 50

Filter = tuple[str, str]


def filter_expression(filters: Iterable[Filter]) -> str:
    """Build an MPD filter expression matching every (tag, value) exactly."""
    parts = [f"({tag} == {escape(value)})" for tag, value in filters]
    if len(parts) == 1:
        return parts[0]
    return "(" + " AND ".join(parts) + ")"


class Client:
    """Blocking MPD client bound to one connection."""

    def __init__(self, connection: Connection, name: str = "command"):
        self.connection = connection
        self.name = name

    @classmethod
    def connect(
        cls,
        address: str,
        password: Optional[str] = None,
        name: str = "command",
        timeout: Optional[float] = 10.0,
    ) -> "Client":
        """Open a connection and authenticate.

        Raises:
            MpdConnectionError: Server unreachable
            MpdFailureResponse: Password rejected
        """
        connection = Connection(address, timeout=timeout)
        connection.connect()
        client = cls(connection, name)
        if password:
            try:
                client.send_command(build_command("password", password))
            except MpdError:
                client.close()
                raise
        logger.info(f"MPD client '{name}' connected to {address}")
        return client

    @property
    def version(self) -> Version:
        return self.connection.version or Version(0, 0, 0)

    def close(self) -> None:
        self.connection.close()

    def send_command(self, text: str) -> Response:
        logger.trace(f"[{self.name}] >> {text}")
        return self.connection.execute(text)

    def _ok(self, command: str, *args: object) -> None:
        self.send_command(build_command(command, *args))

    # Queries

    def commands(self) -> set[str]:
        return set(self.send_command("commands").values("command"))

    def idle(self, subsystem: Optional[IdleEvent] = None) -> list[IdleEvent]:
        """Block until something changes; unknown subsystems are dropped."""
        if subsystem is not None:
            response = self.send_command(build_command("idle", subsystem.value))
        else:
            response = self.send_command("idle")
        events = []
        for value in response.values("changed"):
            event = IdleEvent.parse(value)
            if event is not None:
                events.append(event)
        return events

    def get_status(self) -> Status:
        return Status.from_pairs(self.send_command("status").as_dict())

    def get_current_song(self) -> Optional[Song]:
        songs = split_songs(self.send_command("currentsong").pairs)
        return songs[0] if songs else None

    def get_volume(self) -> int:
        if self.version < Version(0, 23, 0):
            raise UnsupportedMpdVersion("getvol can be used since MPD 0.23.0")
        return clamp_volume(int(self.send_command("getvol").as_dict().get("volume", 0)))

    def playlist_info(self) -> list[Song]:
        return split_songs(self.send_command("playlistinfo").pairs)

    def list_tag(self, tag: str, filters: Optional[Iterable[Filter]] = None) -> list[str]:
        if filters:
            response = self.send_command(
                build_command("list", tag, filter_expression(filters))
            )
        else:
            response = self.send_command(build_command("list", tag))
        # MPD echoes the tag name with its own capitalisation
        wanted = tag.lower()
        return [value for key, value in response.pairs if key.lower() == wanted]

    def find(self, filters: Iterable[Filter]) -> list[Song]:
        return split_songs(
            self.send_command(build_command("find", filter_expression(filters))).pairs
        )

    # Playback control

    def pause_toggle(self) -> None:
        self._ok("pause")

    def next(self) -> None:
        self._ok("next")

    def prev(self) -> None:
        self._ok("previous")

    def stop(self) -> None:
        self._ok("stop")

    def play_id(self, song_id: int) -> None:
        self._ok("playid", song_id)

    def set_volume(self, volume: int) -> None:
        self._ok("setvol", clamp_volume(volume))

    def seek_current(self, value: str) -> None:
        """value is absolute seconds or a signed relative offset like '+5'."""
        self._ok("seekcur", value)

    def repeat(self, enabled: bool) -> None:
        self._ok("repeat", int(enabled))

    def random(self, enabled: bool) -> None:
        self._ok("random", int(enabled))

    def single(self, mode: OnOffOneshot) -> None:
        self._ok("single", mode.value)

    def consume(self, mode: OnOffOneshot) -> None:
        if mode == OnOffOneshot.ONESHOT and self.version < Version(0, 24, 0):
            raise UnsupportedMpdVersion("consume oneshot can be used since MPD 0.24.0")
        self._ok("consume", mode.value)

    # Queue

    def add(self, uri: str) -> None:
        self._ok("add", uri)

    def clear(self) -> None:
        self._ok("clear")

    def delete_id(self, song_id: int) -> None:
        self._ok("deleteid", song_id)

    def find_add(self, filters: Iterable[Filter]) -> None:
        self._ok("findadd", filter_expression(filters))

    # Album art

    def _read_binary(self, command: str, uri: str) -> Optional[bytes]:
        data = bytearray()
        size: Optional[int] = None
        while size is None or len(data) < size:
            try:
                response = self.send_command(build_command(command, uri, len(data)))
            except MpdFailureResponse as e:
                if e.code == ACK_NO_EXIST:
                    return None
                raise
            size = int(response.as_dict().get("size", 0))
            if not response.binary:
                break
            data.extend(response.binary)
        return bytes(data) if data else None

    def albumart(self, uri: str) -> Optional[bytes]:
        return self._read_binary("albumart", uri)

    def read_picture(self, uri: str) -> Optional[bytes]:
        return self._read_binary("readpicture", uri)

    def find_album_art(self, uri: str) -> Optional[bytes]:
        """Try cover files next to the song first, then embedded pictures."""
        art = self.albumart(uri)
        if art is not None:
            return art
        return self.read_picture(uri)
