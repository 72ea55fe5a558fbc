"""Core infrastructure layer - configuration and log output.

Nothing here depends on the MPD session, the workers or the UI.
"""

from .config import (
    Config,
    ConfigError,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
    parse_config,
)
from .output import attach_event_bus, detach_event_bus, setup_loguru

__all__ = [
    "Config",
    "ConfigError",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    "parse_config",
    "attach_event_bus",
    "detach_event_bus",
    "setup_loguru",
]
