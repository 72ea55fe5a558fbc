"""
Configuration management for mpdeck
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_ADDRESS = "127.0.0.1:6600"


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""

    pass


@dataclass
class MpdConfig:
    """Connection settings for the MPD server."""

    address: str = DEFAULT_ADDRESS
    password: Optional[str] = None
    connect_timeout: float = 10.0


@dataclass
class UIConfig:
    """Configuration for user interface."""

    # Status polling interval while playing; None disables polling
    status_update_interval_ms: Optional[int] = 1000
    enable_mouse: bool = True
    volume_step: int = 5
    max_fps: int = 30
    show_frame_count: bool = False


@dataclass
class AlbumArtConfig:
    """Configuration for the album art pane."""

    enabled: bool = True
    # Songs whose URI starts with one of these are never searched for art
    disabled_protocols: List[str] = field(
        default_factory=lambda: ["http://", "https://"]
    )


@dataclass
class YoutubeConfig:
    """Configuration for YouTube downloads."""

    cache_dir: Optional[str] = None


@dataclass
class HooksConfig:
    """External commands run on player events."""

    on_song_change: Optional[List[str]] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # TRACE, DEBUG, INFO, WARNING, ERROR
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/mpdeck/mpdeck.log)
    )


@dataclass
class Config:
    """Main configuration object."""

    mpd: MpdConfig = field(default_factory=MpdConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    album_art: AlbumArtConfig = field(default_factory=AlbumArtConfig)
    youtube: YoutubeConfig = field(default_factory=YoutubeConfig)
    hooks: HooksConfig = field(default_factory=HooksConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def status_update_interval(self) -> Optional[float]:
        """Polling interval in seconds, or None when polling is disabled."""
        interval = self.ui.status_update_interval_ms
        if interval is None or interval <= 0:
            return None
        return interval / 1000.0

    @property
    def cache_dir(self) -> Optional[Path]:
        if not self.youtube.cache_dir:
            return None
        return Path(self.youtube.cache_dir).expanduser()


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "mpdeck"
    return Path.home() / ".config" / "mpdeck"


def get_config_path() -> Path:
    """Get the main configuration file path."""
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "mpdeck"
    return Path.home() / ".local" / "share" / "mpdeck"


def _expect(value: object, kind: type, name: str) -> None:
    if not isinstance(value, kind):
        raise ConfigError(f"'{name}' must be of type {kind.__name__}")


def parse_config(toml_data: dict, base: Optional[Config] = None) -> Config:
    """Build a Config from already-parsed TOML data layered over ``base``.

    Raises:
        ConfigError: If a value has the wrong type
    """
    config = base or Config()

    if "mpd" in toml_data:
        mpd_data = toml_data["mpd"]
        config.mpd = MpdConfig(
            address=mpd_data.get("address", config.mpd.address),
            password=mpd_data.get("password", config.mpd.password),
            connect_timeout=float(
                mpd_data.get("connect_timeout", config.mpd.connect_timeout)
            ),
        )
        _expect(config.mpd.address, str, "mpd.address")

    if "ui" in toml_data:
        ui_data = toml_data["ui"]
        config.ui = UIConfig(
            status_update_interval_ms=ui_data.get(
                "status_update_interval_ms", config.ui.status_update_interval_ms
            ),
            enable_mouse=ui_data.get("enable_mouse", config.ui.enable_mouse),
            volume_step=ui_data.get("volume_step", config.ui.volume_step),
            max_fps=ui_data.get("max_fps", config.ui.max_fps),
            show_frame_count=ui_data.get(
                "show_frame_count", config.ui.show_frame_count
            ),
        )
        _expect(config.ui.volume_step, int, "ui.volume_step")
        _expect(config.ui.max_fps, int, "ui.max_fps")
        if config.ui.max_fps <= 0:
            raise ConfigError("'ui.max_fps' must be positive")

    if "album_art" in toml_data:
        art_data = toml_data["album_art"]
        config.album_art = AlbumArtConfig(
            enabled=art_data.get("enabled", config.album_art.enabled),
            disabled_protocols=art_data.get(
                "disabled_protocols", config.album_art.disabled_protocols
            ),
        )
        _expect(config.album_art.disabled_protocols, list, "album_art.disabled_protocols")

    if "youtube" in toml_data:
        config.youtube = YoutubeConfig(cache_dir=toml_data["youtube"].get("cache_dir"))

    if "hooks" in toml_data:
        on_song_change = toml_data["hooks"].get("on_song_change")
        if isinstance(on_song_change, str):
            on_song_change = [on_song_change]
        if on_song_change is not None:
            _expect(on_song_change, list, "hooks.on_song_change")
        config.hooks = HooksConfig(on_song_change=on_song_change)

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
        )

    return config


def apply_env(config: Config) -> Config:
    """Environment variables replace the built-in connection defaults:
    - MPD_HOST
    - MPD_PASSWORD

    Values from the config file and the command line take precedence.
    """
    address = os.environ.get("MPD_HOST")
    password = os.environ.get("MPD_PASSWORD")

    if address:
        config.mpd.address = address
    if password:
        config.mpd.password = password
    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file, falling back to defaults.

    A missing file is not an error; an unreadable or invalid one is.

    Raises:
        ConfigError: If the file exists but cannot be parsed
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    path = config_path or get_config_path()
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return apply_env(Config())

    try:
        with open(path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Error loading configuration from {path}: {e}")

    return parse_config(toml_data, base=apply_env(Config()))
