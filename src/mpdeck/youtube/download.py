"""YouTube audio download using yt-dlp."""

import re
from pathlib import Path

import yt_dlp
from loguru import logger

from .exceptions import (
    AgeRestrictedError,
    CacheDirNotConfiguredError,
    InvalidYouTubeURLError,
    VideoUnavailableError,
    YouTubeError,
)

# Lowest-effort audio that MPD decodes without transcoding
AUDIO_FORMAT = "bestaudio[ext=m4a]/bestaudio[ext=webm]/bestaudio/best"

MAX_NAME_LENGTH = 180


def sanitize_filename(title: str, video_id: str = "") -> str:
    """Turn a video title into a snake_case file stem.

    Example:
        ("Darude - Sandstorm", "y6120QOlsfU") -> "darude_sandstorm_y6120QOlsfU"
    """
    stem = re.sub(r"[^\w\s-]", "_", title.lower())
    stem = re.sub(r"[\s_-]+", "_", stem).strip("_")[:MAX_NAME_LENGTH].rstrip("_")
    if not stem:
        stem = "download"
    return f"{stem}_{video_id}" if video_id else stem


def _classify(error: Exception) -> YouTubeError:
    message = str(error).lower()
    if "unsupported url" in message or "not a valid url" in message:
        return InvalidYouTubeURLError(f"Not a downloadable URL: {error}")
    if any(hint in message for hint in ("sign in", "confirm your age", "age-restricted")):
        return AgeRestrictedError("Video requires age verification (login not supported)")
    if "unavailable" in message or "private" in message or "deleted" in message:
        return VideoUnavailableError("Video is unavailable, deleted, or private")
    return YouTubeError(f"Download failed: {error}")


def download_audio(url: str, cache_dir: Path) -> Path:
    """Download the audio track of ``url`` into ``cache_dir/youtube``.

    An already downloaded file for the same video is reused.

    Args:
        url: Anything yt-dlp accepts (video page, short link, ...)
        cache_dir: Configured cache directory; None is rejected

    Returns:
        Absolute path of the audio file

    Raises:
        CacheDirNotConfiguredError: ``cache_dir`` is None
        InvalidYouTubeURLError: yt-dlp cannot resolve ``url``
        AgeRestrictedError, VideoUnavailableError: Video cannot be fetched
        YouTubeError: Any other download failure
    """
    if cache_dir is None:
        raise CacheDirNotConfiguredError()

    output_dir = Path(cache_dir).expanduser() / "youtube"
    output_dir.mkdir(parents=True, exist_ok=True)

    ydl_opts = {
        "format": AUDIO_FORMAT,
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "noprogress": True,
    }

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(url, download=False)
        if not info or "id" not in info:
            raise VideoUnavailableError("Failed to extract video information")

        stem = sanitize_filename(info.get("title") or "", info["id"])
        existing = sorted(output_dir.glob(f"{stem}.*"))
        if existing:
            logger.info(f"Reusing cached download for {url}: {existing[0]}")
            return existing[0].resolve()

        ydl_opts["outtmpl"] = str(output_dir / f"{stem}.%(ext)s")
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            ydl.download([url])
    except yt_dlp.utils.DownloadError as e:
        raise _classify(e)
    except YouTubeError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during YouTube download")
        raise YouTubeError(f"Unexpected error: {e}")

    downloaded = sorted(output_dir.glob(f"{stem}.*"))
    if not downloaded:
        raise YouTubeError("Download completed but file not found")

    path = downloaded[0].resolve()
    logger.info(f"Downloaded {info.get('title', url)} ({info['id']}) -> {path}")
    return path
