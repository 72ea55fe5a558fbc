"""
Background jobs that may block for a long time (network downloads).

Every request yields exactly one WorkDone event; failures travel as data.
"""

import queue
import threading
from typing import Optional

from loguru import logger

from mpdeck import youtube
from mpdeck.core.config import Config
from mpdeck.events import (
    DownloadYoutube,
    EventBus,
    WorkDone,
    WorkRequest,
    WorkResult,
    YoutubeDownloaded,
)


class WorkPool:
    def __init__(
        self,
        bus: EventBus,
        config: Config,
        workers: int = 1,
        requests: Optional["queue.Queue[WorkRequest]"] = None,
    ):
        self.bus = bus
        self.config = config
        self.workers = max(1, workers)
        self.requests: "queue.Queue[WorkRequest]" = requests or queue.Queue()
        self.threads: list[threading.Thread] = []

    def start(self) -> None:
        for index in range(self.workers):
            thread = threading.Thread(
                target=self._run, name=f"work-{index}", daemon=True
            )
            thread.start()
            self.threads.append(thread)

    def submit(self, request: WorkRequest) -> None:
        self.requests.put(request)

    def _run(self) -> None:
        while True:
            request = self.requests.get()
            self.bus.send(WorkDone(self.execute(request)))

    def execute(self, request: WorkRequest) -> WorkResult:
        """Run one job synchronously; never raises."""
        logger.debug(f"Work started: {request!r}")
        try:
            if isinstance(request, DownloadYoutube):
                path = youtube.download_audio(request.url, self.config.cache_dir)
                return WorkResult(request, value=YoutubeDownloaded(str(path)))
            return WorkResult(request, error=f"Unknown work request: {request!r}")
        except youtube.YouTubeError as e:
            logger.warning(f"Work failed: {request!r}: {e}")
            return WorkResult(request, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while running {request!r}")
            return WorkResult(request, error=f"Unexpected error: {e}")
