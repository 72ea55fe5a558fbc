"""
Event loop: the single consumer of the event bus and sole owner of state.

Each cycle waits for one event (bounded by the frame budget while a render
is pending), applies it, then renders if the budget allows.
"""

import time
from typing import Callable, Optional

from loguru import logger

from mpdeck import hooks
from mpdeck.context import (
    QUERY_CURRENT_SONG,
    QUERY_QUEUE,
    QUERY_STATUS,
    QUERY_VOLUME,
    AppContext,
)
from mpdeck.events import (
    AppEvent,
    CurrentSongResult,
    EventBus,
    IdleNotification,
    Level,
    Log,
    QueryFinished,
    QueueResult,
    RequestRender,
    RequestStatusUpdate,
    Resized,
    StatusMessage,
    StatusResult,
    UserKeyInput,
    UserMouseInput,
    VolumeResult,
    WorkDone,
)
from mpdeck.mpd import HANDLED_IDLE_EVENTS, Client, IdleEvent, MpdError, Song, State, Status
from mpdeck.ui import RenderDecision, Ui, UiEvent
from mpdeck.workers.scheduler import UpdateScheduler


def status_query(client: Client) -> StatusResult:
    return StatusResult(client.get_status())


def volume_query(client: Client) -> VolumeResult:
    return VolumeResult(client.get_volume())


def queue_query(client: Client) -> QueueResult:
    return QueueResult(client.playlist_info())


def current_song_query(client: Client) -> CurrentSongResult:
    return CurrentSongResult(client.get_current_song())


class EventLoop:
    def __init__(
        self,
        ctx: AppContext,
        ui: Ui,
        bus: EventBus,
        scheduler: UpdateScheduler,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ctx = ctx
        self.ui = ui
        self.bus = bus
        self.scheduler = scheduler
        self.clock = clock
        self.frame_budget = 1.0 / ctx.config.ui.max_fps
        self.last_render: Optional[float] = None
        self.running = False

    # Startup

    def bootstrap(self, client: Client) -> None:
        """Load the initial state synchronously, before the worker owns ``client``.

        Raises:
            MpdError: The server could not be queried
        """
        ctx = self.ctx
        ctx.mpd_version = client.version
        ctx.supported_commands = client.commands()
        ctx.status = client.get_status()
        ctx.current_song = client.get_current_song()
        ctx.queue = client.playlist_info()
        logger.info(
            f"Connected to MPD {ctx.mpd_version}: {len(ctx.queue)} songs queued, "
            f"state={ctx.status.state.value}"
        )

        if ctx.status.state == State.PLAY:
            self.scheduler.start()
        self.ui.init(ctx)
        self.request_render(full=True)

    # Requests

    def request_render(self, full: bool = False) -> None:
        self.ctx.render_pending = True
        if full:
            self.ctx.full_render_pending = True

    def request_status(self) -> None:
        self.ctx.query(QUERY_STATUS, status_query, replace_id=QUERY_STATUS)

    def _apply_decision(self, decision: RenderDecision) -> bool:
        if decision == RenderDecision.QUIT:
            self.ui.on_event(UiEvent.EXIT, self.ctx)
            return False
        if decision == RenderDecision.FULL_RENDER:
            self.request_render(full=True)
        elif decision == RenderDecision.RENDER:
            self.request_render()
        return True

    # Event handling

    def handle_event(self, event: AppEvent) -> bool:
        """Apply one event. Returns False when the loop must stop."""
        ctx = self.ctx

        if isinstance(event, (UserKeyInput, UserMouseInput)):
            try:
                if isinstance(event, UserKeyInput):
                    decision = self.ui.handle_key(event.key, ctx)
                else:
                    decision = self.ui.handle_mouse(event.mouse, ctx)
            except MpdError as e:
                logger.warning(f"Input handling failed: {e}")
                self.ui.display_message(str(e), Level.ERROR, ctx)
                decision = RenderDecision.RENDER
            return self._apply_decision(decision)

        if isinstance(event, StatusMessage):
            self.ui.display_message(event.message, event.level, ctx)
            self.request_render()
        elif isinstance(event, Log):
            if self.ui.on_log(event.line):
                self.request_render()
        elif isinstance(event, IdleNotification):
            self.handle_idle_event(event.event)
        elif isinstance(event, RequestStatusUpdate):
            self.request_status()
        elif isinstance(event, RequestRender):
            self.request_render(full=event.full)
        elif isinstance(event, WorkDone):
            self.handle_work_done(event)
        elif isinstance(event, Resized):
            self.ui.on_event(UiEvent.RESIZED, ctx)
            self.request_render(full=True)
        elif isinstance(event, QueryFinished):
            self.handle_query_finished(event)
        else:
            logger.warning(f"Unhandled app event: {event!r}")
        return True

    def handle_idle_event(self, event: IdleEvent) -> None:
        ctx = self.ctx
        if event not in HANDLED_IDLE_EVENTS:
            logger.debug(f"Ignoring idle event '{event.value}'")
            return

        if event in (IdleEvent.PLAYER, IdleEvent.OPTIONS, IdleEvent.UPDATE):
            self.request_status()
        elif event == IdleEvent.MIXER:
            if ctx.supports("getvol"):
                ctx.query(QUERY_VOLUME, volume_query, replace_id=QUERY_VOLUME)
            else:
                self.request_status()
        elif event == IdleEvent.PLAYLIST:
            ctx.query(QUERY_QUEUE, queue_query, replace_id=QUERY_QUEUE)
            self.request_status()

        self.ui.on_event(UiEvent.from_idle(event), ctx)
        self.request_render()

    def handle_work_done(self, event: WorkDone) -> None:
        result = event.result
        if not result.ok:
            self.ui.display_message(f"Download failed: {result.error}", Level.ERROR, self.ctx)
        else:
            path = result.value.file_path
            self.ctx.command(lambda c: c.add(path), f"add '{path}' to the queue")
            self.ui.display_message(f"Downloaded and queued {path}", Level.INFO, self.ctx)
        self.request_render()

    def handle_query_finished(self, event: QueryFinished) -> None:
        ctx = self.ctx
        if ctx.is_stale(event):
            logger.debug(f"Discarding stale result for '{event.id}' (gen {event.generation})")
            return

        data = event.data
        if event.id == QUERY_STATUS and isinstance(data, StatusResult):
            self.apply_status(data.status)
        elif event.id == QUERY_VOLUME and isinstance(data, VolumeResult):
            ctx.status.volume = data.volume
        elif event.id == QUERY_QUEUE and isinstance(data, QueueResult):
            ctx.queue = data.songs
        elif event.id == QUERY_CURRENT_SONG and isinstance(data, CurrentSongResult):
            self.apply_current_song(data.song)

        if event.target is not None:
            if self.ui.on_query_finished(event.target, event.id, data, ctx):
                self.request_render()
        else:
            self.request_render()

    def apply_status(self, status: Status) -> None:
        ctx = self.ctx
        previous = ctx.status
        ctx.status = status

        if status.state != previous.state:
            if status.state == State.PLAY:
                self.scheduler.start()
            else:
                self.scheduler.stop()

        current_id = ctx.current_song.id if ctx.current_song else None
        if status.songid != current_id:
            ctx.query(QUERY_CURRENT_SONG, current_song_query, replace_id=QUERY_CURRENT_SONG)

    def apply_current_song(self, song: Optional[Song]) -> None:
        ctx = self.ctx
        previous = ctx.current_song
        ctx.current_song = song
        if (previous.id if previous else None) == (song.id if song else None):
            return

        command = ctx.config.hooks.on_song_change
        if song is not None and command:
            try:
                hooks.run_on_song_change(command, song)
            except hooks.HookError as e:
                logger.error(str(e))
                self.ui.display_message(str(e), Level.ERROR, ctx)
        self.ui.on_event(UiEvent.SONG_CHANGED, ctx)

    # Frame pacing

    def _until_next_frame(self) -> float:
        if self.last_render is None:
            return 0.0
        return max(0.0, self.frame_budget - (self.clock() - self.last_render))

    def receive_timeout(self) -> Optional[float]:
        """How long the next receive may block; None means indefinitely."""
        if self.ctx.render_pending:
            return self._until_next_frame()
        message = self.ctx.status_message
        if message is not None:
            return max(0.0, message.expires_at - self.clock())
        return None

    def maybe_render(self) -> bool:
        ctx = self.ctx
        message = ctx.status_message
        if message is not None and ctx.active_message() is None:
            ctx.render_pending = True

        if not ctx.render_pending or self._until_next_frame() > 0:
            return False

        if ctx.full_render_pending:
            self.ui.clear()
        self.ui.render(ctx)
        ctx.frame_count += 1
        self.last_render = self.clock()
        ctx.render_pending = False
        ctx.full_render_pending = False
        return True

    def run_once(self) -> bool:
        """One consumption cycle. Returns False once the user quit."""
        event = self.bus.receive(self.receive_timeout())
        if event is not None and not self.handle_event(event):
            self.running = False
            return False
        self.maybe_render()
        return True

    def run(self) -> None:
        self.running = True
        logger.info("Event loop started")
        while self.run_once():
            pass
        logger.info("Event loop stopped")
