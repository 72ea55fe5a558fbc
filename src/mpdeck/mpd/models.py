"""
Typed views over MPD responses.

Parsing is lenient: missing keys fall back to defaults, unknown keys are kept
in ``Song.metadata`` so hooks can export them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from loguru import logger


class IdleEvent(Enum):
    """Subsystems reported by the ``idle`` command."""

    PLAYER = "player"
    MIXER = "mixer"
    PLAYLIST = "playlist"
    STORED_PLAYLIST = "stored_playlist"
    DATABASE = "database"
    UPDATE = "update"
    OPTIONS = "options"
    OUTPUT = "output"
    PARTITION = "partition"
    STICKER = "sticker"
    SUBSCRIPTION = "subscription"
    MESSAGE = "message"
    NEIGHBOR = "neighbor"
    MOUNT = "mount"

    @classmethod
    def parse(cls, value: str) -> Optional["IdleEvent"]:
        """Return the matching subsystem, or None for tags this client does not know."""
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown idle subsystem from server: {value!r}")
            return None


# Subsystems the event loop reacts to; the rest are logged and dropped
HANDLED_IDLE_EVENTS = frozenset(
    {
        IdleEvent.PLAYER,
        IdleEvent.MIXER,
        IdleEvent.PLAYLIST,
        IdleEvent.STORED_PLAYLIST,
        IdleEvent.DATABASE,
        IdleEvent.UPDATE,
        IdleEvent.OPTIONS,
    }
)


class State(Enum):
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"


class OnOffOneshot(Enum):
    ON = "1"
    OFF = "0"
    ONESHOT = "oneshot"

    def cycle(self) -> "OnOffOneshot":
        return {
            OnOffOneshot.OFF: OnOffOneshot.ON,
            OnOffOneshot.ON: OnOffOneshot.ONESHOT,
            OnOffOneshot.ONESHOT: OnOffOneshot.OFF,
        }[self]

    def cycle_pre_mpd_24(self) -> "OnOffOneshot":
        """consume oneshot only exists since MPD 0.24"""
        return OnOffOneshot.OFF if self == OnOffOneshot.ON else OnOffOneshot.ON

    @classmethod
    def parse(cls, value: Optional[str]) -> "OnOffOneshot":
        try:
            return cls(value or "0")
        except ValueError:
            return cls.OFF


def _opt_int(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _opt_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def clamp_volume(value: int) -> int:
    return max(0, min(100, value))


@dataclass
class Status:
    """Snapshot of the ``status`` command."""

    volume: int = 0
    repeat: bool = False
    random: bool = False
    single: OnOffOneshot = OnOffOneshot.OFF
    consume: OnOffOneshot = OnOffOneshot.OFF
    playlist_version: int = 0
    playlist_length: int = 0
    state: State = State.STOP
    song: Optional[int] = None
    songid: Optional[int] = None
    elapsed: float = 0.0
    duration: float = 0.0
    bitrate: Optional[int] = None
    updating_db: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_pairs(cls, pairs: dict[str, str]) -> "Status":
        state_value = pairs.get("state", "stop")
        try:
            state = State(state_value)
        except ValueError:
            state = State.STOP

        # "time" is the pre-0.20 "elapsed:duration" form
        elapsed = _opt_float(pairs.get("elapsed"))
        duration = _opt_float(pairs.get("duration"))
        legacy_time = pairs.get("time")
        if legacy_time and ":" in legacy_time and (elapsed is None or duration is None):
            legacy_elapsed, legacy_duration = legacy_time.split(":", 1)
            elapsed = elapsed if elapsed is not None else _opt_float(legacy_elapsed)
            duration = duration if duration is not None else _opt_float(legacy_duration)

        volume = _opt_int(pairs.get("volume"))
        return cls(
            volume=clamp_volume(volume) if volume is not None and volume >= 0 else 0,
            repeat=pairs.get("repeat") == "1",
            random=pairs.get("random") == "1",
            single=OnOffOneshot.parse(pairs.get("single")),
            consume=OnOffOneshot.parse(pairs.get("consume")),
            playlist_version=_opt_int(pairs.get("playlist")) or 0,
            playlist_length=_opt_int(pairs.get("playlistlength")) or 0,
            state=state,
            song=_opt_int(pairs.get("song")),
            songid=_opt_int(pairs.get("songid")),
            elapsed=elapsed or 0.0,
            duration=duration or 0.0,
            bitrate=_opt_int(pairs.get("bitrate")),
            updating_db=_opt_int(pairs.get("updating_db")),
            error=pairs.get("error"),
        )


@dataclass
class Song:
    """One song entry from ``playlistinfo``, ``currentsong`` or ``find``."""

    file: str
    id: Optional[int] = None
    pos: Optional[int] = None
    duration: Optional[float] = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def title(self) -> Optional[str]:
        return self.metadata.get("title")

    @property
    def artist(self) -> Optional[str]:
        return self.metadata.get("artist")

    @property
    def album(self) -> Optional[str]:
        return self.metadata.get("album")

    def display_name(self) -> str:
        if self.title and self.artist:
            return f"{self.artist} - {self.title}"
        if self.title:
            return self.title
        return self.file.rsplit("/", 1)[-1]

    @classmethod
    def from_pairs(cls, pairs: list[tuple[str, str]]) -> "Song":
        file = ""
        song_id = None
        pos = None
        duration = None
        metadata: dict[str, str] = {}
        for key, value in pairs:
            lowered = key.lower()
            if lowered == "file":
                file = value
            elif lowered == "id":
                song_id = _opt_int(value)
            elif lowered == "pos":
                pos = _opt_int(value)
            elif lowered == "duration":
                duration = _opt_float(value)
            elif lowered == "time" and duration is None:
                duration = _opt_float(value)
            elif lowered in metadata:
                # multi-value tags (several artists etc.) are joined
                metadata[lowered] = f"{metadata[lowered]}, {value}"
            else:
                metadata[lowered] = value
        return cls(file=file, id=song_id, pos=pos, duration=duration, metadata=metadata)


def split_songs(pairs: list[tuple[str, str]]) -> list[Song]:
    """Split a flat key/value listing into songs; every ``file`` key starts a new one."""
    songs: list[Song] = []
    current: list[tuple[str, str]] = []
    for key, value in pairs:
        if key == "file" and current:
            songs.append(Song.from_pairs(current))
            current = []
        if key == "file" or current:
            current.append((key, value))
    if current:
        songs.append(Song.from_pairs(current))
    return songs
