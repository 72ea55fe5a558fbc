"""YouTube-specific exceptions for error handling."""


class YouTubeError(Exception):
    """Base exception for YouTube operations."""

    pass


class InvalidYouTubeURLError(YouTubeError):
    """Raised when the locator is not something yt-dlp can resolve."""

    pass


class VideoUnavailableError(YouTubeError):
    """Raised when video is deleted, private or otherwise unavailable."""

    pass


class AgeRestrictedError(YouTubeError):
    """Raised when video requires age verification."""

    pass


class CacheDirNotConfiguredError(YouTubeError):
    """Raised when downloads are requested without ``youtube.cache_dir``."""

    def __init__(self, message: str = None):
        super().__init__(
            message or "YouTube downloads need 'cache_dir' set in the [youtube] config section"
        )
