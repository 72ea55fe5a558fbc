"""Audio downloads with yt-dlp, run by the work pool."""

from .download import download_audio, sanitize_filename
from .exceptions import (
    AgeRestrictedError,
    CacheDirNotConfiguredError,
    InvalidYouTubeURLError,
    VideoUnavailableError,
    YouTubeError,
)

__all__ = [
    "download_audio",
    "sanitize_filename",
    "AgeRestrictedError",
    "CacheDirNotConfiguredError",
    "InvalidYouTubeURLError",
    "VideoUnavailableError",
    "YouTubeError",
]
