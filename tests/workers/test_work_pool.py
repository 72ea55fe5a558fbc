"""Tests for the background work pool."""

from pathlib import Path
from unittest.mock import patch

from mpdeck.core.config import Config
from mpdeck.events import DownloadYoutube, EventBus, WorkDone, YoutubeDownloaded
from mpdeck.workers.work_pool import WorkPool
from mpdeck.youtube import VideoUnavailableError


class TestExecute:
    def test_failure_is_data(self, bus: EventBus, config: Config) -> None:
        """No cache dir configured: the job fails without raising."""
        result = WorkPool(bus, config).execute(DownloadYoutube("http://x"))
        assert not result.ok
        assert "cache_dir" in result.error
        assert result.request == DownloadYoutube("http://x")

    def test_youtube_error_message(self, bus: EventBus, config: Config) -> None:
        with patch(
            "mpdeck.youtube.download_audio",
            side_effect=VideoUnavailableError("Video is unavailable"),
        ):
            result = WorkPool(bus, config).execute(DownloadYoutube("http://x"))
        assert result.error == "Video is unavailable"

    def test_unexpected_error_is_caught(self, bus: EventBus, config: Config) -> None:
        with patch("mpdeck.youtube.download_audio", side_effect=RuntimeError("kaboom")):
            result = WorkPool(bus, config).execute(DownloadYoutube("http://x"))
        assert result.error == "Unexpected error: kaboom"

    def test_success(self, bus: EventBus, config: Config, tmp_path: Path) -> None:
        config.youtube.cache_dir = str(tmp_path)
        target = tmp_path / "youtube" / "song_abc.m4a"
        with patch("mpdeck.youtube.download_audio", return_value=target) as download:
            result = WorkPool(bus, config).execute(DownloadYoutube("https://youtu.be/abc"))
        download.assert_called_once_with("https://youtu.be/abc", tmp_path)
        assert result.ok
        assert result.value == YoutubeDownloaded(str(target))


class TestWorkerThread:
    def test_exactly_one_result_per_request(self, bus: EventBus, config: Config) -> None:
        pool = WorkPool(bus, config)
        pool.start()
        pool.submit(DownloadYoutube("http://x"))

        event = bus.receive(timeout=2.0)
        assert isinstance(event, WorkDone)
        assert not event.result.ok
        assert bus.receive(timeout=0.1) is None
        assert pool.threads[0].is_alive()
