"""User hooks: external commands started on player events."""

import os
import subprocess
from typing import Optional, Sequence

from loguru import logger

from mpdeck.mpd import Song


class HookError(Exception):
    """Raised when a hook command cannot be started."""

    pass


def song_environment(song: Song, base: Optional[dict] = None) -> dict[str, str]:
    """Environment for a hook: the song's tags upper-cased plus FILE and DURATION."""
    env = dict(os.environ if base is None else base)
    for key, value in song.metadata.items():
        env[key.upper().replace("-", "_")] = value
    env["FILE"] = song.file
    if song.duration is not None:
        env["DURATION"] = str(int(song.duration))
    return env


def run_on_song_change(command: Sequence[str], song: Song) -> subprocess.Popen:
    """Start ``command`` for ``song``; the process is not waited on.

    Raises:
        HookError: The command could not be started
    """
    logger.debug(f"Running on_song_change hook {list(command)} for {song.file}")
    try:
        return subprocess.Popen(
            list(command),
            env=song_environment(song),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (subprocess.SubprocessError, OSError) as e:
        raise HookError(f"Failed to run on_song_change hook '{command[0]}': {e}")
