"""Tests for global key bindings, modals and the individual surfaces."""

from unittest.mock import MagicMock

import pytest

from conftest import pending_requests
from mpdeck.context import AppContext
from mpdeck.events import (
    AlbumArtResult,
    Command,
    DownloadYoutube,
    Query,
    SongListResult,
    TagListResult,
)
from mpdeck.mpd import OnOffOneshot, Song
from mpdeck.mpd.protocol import Version
from mpdeck.ui import ActiveSurface, Rect, RenderDecision, Ui, UiEvent
from mpdeck.ui.keys import parse_key
from mpdeck.ui.modals import ConfirmModal, InputModal
from mpdeck.ui.mouse import MouseEvent, MouseEventKind
from mpdeck.ui.surfaces import AlbumsSurface, LogsSurface, QueueSurface
from mpdeck.ui.surfaces.albums import ALBUM_LIST, ALBUM_SONGS
from mpdeck.ui.surfaces.queue import ALBUM_ART

AREA = Rect(0, 3, 80, 20)


def run_commands(ctx: AppContext) -> MagicMock:
    """Execute every queued Command against a mock client."""
    client = MagicMock()
    for request in pending_requests(ctx.client_requests):
        assert isinstance(request, Command)
        request.callback(client)
    return client


def key(char: str) -> dict:
    return parse_key(char)


@pytest.fixture
def ui() -> Ui:
    term = MagicMock()
    term.width = 80
    term.height = 24
    return Ui(term)


class TestGlobalKeys:
    def test_quit(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.handle_key("q", ctx) == RenderDecision.QUIT
        assert ui.handle_key("\x03", ctx) == RenderDecision.QUIT

    def test_pause_toggle(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.handle_key("p", ctx) == RenderDecision.SKIP
        run_commands(ctx).pause_toggle.assert_called_once()

    def test_volume_is_clamped(self, ui: Ui, ctx: AppContext) -> None:
        ctx.status.volume = 98
        ui.handle_key("+", ctx)
        run_commands(ctx).set_volume.assert_called_once_with(100)

        ctx.status.volume = 3
        ui.handle_key("-", ctx)
        run_commands(ctx).set_volume.assert_called_once_with(0)

    def test_toggles_use_current_status(self, ui: Ui, ctx: AppContext) -> None:
        ctx.status.repeat = True
        ui.handle_key("z", ctx)
        ui.handle_key("x", ctx)
        client = run_commands(ctx)
        client.repeat.assert_called_once_with(False)
        client.random.assert_called_once_with(True)

    def test_single_cycles(self, ui: Ui, ctx: AppContext) -> None:
        ctx.status.single = OnOffOneshot.ON
        ui.handle_key("c", ctx)
        run_commands(ctx).single.assert_called_once_with(OnOffOneshot.ONESHOT)

    def test_consume_skips_oneshot_on_old_servers(self, ui: Ui, ctx: AppContext) -> None:
        ctx.status.consume = OnOffOneshot.ON
        ctx.mpd_version = Version(0, 23, 5)
        ui.handle_key("v", ctx)
        run_commands(ctx).consume.assert_called_once_with(OnOffOneshot.OFF)

        ctx.mpd_version = Version(0, 24, 0)
        ui.handle_key("v", ctx)
        run_commands(ctx).consume.assert_called_once_with(OnOffOneshot.ONESHOT)

    def test_seek(self, ui: Ui, ctx: AppContext) -> None:
        ui.handle_key("f", ctx)
        ui.handle_key("b", ctx)
        client = run_commands(ctx)
        assert [c.args for c in client.seek_current.call_args_list] == [("+5",), ("-5",)]

    def test_number_keys_switch_surface(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.handle_key("3", ctx) == RenderDecision.FULL_RENDER
        assert ui.active == ActiveSurface.LOGS
        assert ui.handle_key("3", ctx) == RenderDecision.SKIP

    def test_tab_cycles_surfaces(self, ui: Ui, ctx: AppContext) -> None:
        ui.handle_key("\t", ctx)
        assert ui.active == ActiveSurface.ALBUMS
        ui.handle_key("\t", ctx)
        ui.handle_key("\t", ctx)
        assert ui.active == ActiveSurface.QUEUE

    def test_unbound_key_goes_to_surface(self, ui: Ui, ctx: AppContext) -> None:
        ctx.queue = [Song(file="a.mp3", id=1), Song(file="b.mp3", id=2)]
        assert ui.handle_key("j", ctx) == RenderDecision.RENDER
        assert ui.queue.selected == 1


class TestModals:
    def test_youtube_prompt_submits_work(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.handle_key("y", ctx) == RenderDecision.RENDER
        assert isinstance(ui.modals[-1], InputModal)

        for char in "https://youtu.be/abc":
            ui.handle_key(char, ctx)
        # modal swallows keys that would otherwise be global
        assert pending_requests(ctx.client_requests) == []

        assert ui.handle_key("\r", ctx) == RenderDecision.FULL_RENDER
        assert ui.modals == []
        assert pending_requests(ctx.work_requests) == [DownloadYoutube("https://youtu.be/abc")]
        assert "Downloading" in ctx.status_message.message

    def test_escape_cancels_prompt(self, ui: Ui, ctx: AppContext) -> None:
        ui.handle_key("y", ctx)
        ui.handle_key("a", ctx)
        ui.modals[-1].handle_key({"type": "escape", "char": None}, ctx)
        assert ui.modals[-1].closed
        assert pending_requests(ctx.work_requests) == []

    def test_confirm_clear(self, ui: Ui, ctx: AppContext) -> None:
        ui.handle_key("C", ctx)
        assert isinstance(ui.modals[-1], ConfirmModal)
        assert ui.handle_key("y", ctx) == RenderDecision.FULL_RENDER
        run_commands(ctx).clear.assert_called_once()

    def test_decline_clear(self, ui: Ui, ctx: AppContext) -> None:
        ui.handle_key("C", ctx)
        ui.handle_key("n", ctx)
        assert ui.modals == []
        assert pending_requests(ctx.client_requests) == []

    def test_topmost_modal_gets_input(self, ui: Ui, ctx: AppContext) -> None:
        bottom = InputModal("bottom", MagicMock())
        top = InputModal("top", MagicMock())
        ui.push_modal(bottom)
        ui.push_modal(top)
        ui.handle_key("x", ctx)
        assert (top.value, bottom.value) == ("x", "")
        assert ui.pop_modal() is top
        assert ui.pop_modal() is bottom
        assert ui.pop_modal() is None

    def test_mouse_ignored_under_modal(self, ui: Ui, ctx: AppContext) -> None:
        ui.push_modal(InputModal("prompt", MagicMock()))
        click = MouseEvent(MouseEventKind.LEFT_CLICK, 1, 5)
        assert ui.handle_mouse(click, ctx) == RenderDecision.SKIP


class TestUiRouting:
    def test_query_result_routed_by_target(self, ui: Ui, ctx: AppContext) -> None:
        changed = ui.on_query_finished("Albums", ALBUM_LIST, TagListResult(["B", "a"]), ctx)
        # albums is not the active surface
        assert changed is False
        assert ui.albums.albums == ["a", "B"]

    def test_unknown_target(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.on_query_finished("Nowhere", "x", TagListResult([]), ctx) is False

    def test_log_visible_only_on_logs_surface(self, ui: Ui, ctx: AppContext) -> None:
        assert ui.on_log("line one") is False
        ui.switch_to(ActiveSurface.LOGS, ctx)
        assert ui.on_log("line two") is True
        assert list(ui.logs.lines) == ["line one", "line two"]


class TestQueueSurface:
    @pytest.fixture
    def surface(self, ctx: AppContext) -> QueueSurface:
        ctx.queue = [Song(file=f"{n}.mp3", id=n) for n in range(1, 4)]
        return QueueSurface()

    def test_navigation_clamped(self, surface: QueueSurface, ctx: AppContext) -> None:
        surface.handle_key(key("k"), ctx)
        assert surface.selected == 0
        surface.handle_key(key("G"), ctx)
        surface.handle_key(key("j"), ctx)
        assert surface.selected == 2

    def test_enter_plays_selected(self, surface: QueueSurface, ctx: AppContext) -> None:
        surface.handle_key(key("j"), ctx)
        surface.handle_key(key("\r"), ctx)
        run_commands(ctx).play_id.assert_called_once_with(2)

    def test_delete_selected(self, surface: QueueSurface, ctx: AppContext) -> None:
        surface.handle_key(key("d"), ctx)
        run_commands(ctx).delete_id.assert_called_once_with(1)

    def test_click_selects_and_double_click_plays(self, surface: QueueSurface, ctx: AppContext) -> None:
        # first row below the column header
        click = MouseEvent(MouseEventKind.LEFT_CLICK, 2, AREA.y + 2)
        assert surface.handle_mouse(click, AREA, ctx) == RenderDecision.RENDER
        assert surface.selected == 1

        double = MouseEvent(MouseEventKind.DOUBLE_CLICK, 2, AREA.y + 2)
        surface.handle_mouse(double, AREA, ctx)
        run_commands(ctx).play_id.assert_called_once_with(2)

    def test_click_below_last_song(self, surface: QueueSurface, ctx: AppContext) -> None:
        click = MouseEvent(MouseEventKind.LEFT_CLICK, 2, AREA.y + 10)
        assert surface.handle_mouse(click, AREA, ctx) == RenderDecision.SKIP

    def test_song_change_requests_album_art(self, surface: QueueSurface, ctx: AppContext) -> None:
        surface.album_art = b"old"
        ctx.current_song = ctx.queue[0]
        assert surface.on_event(UiEvent.SONG_CHANGED, ctx) is True
        assert surface.album_art is None

        (request,) = pending_requests(ctx.client_requests)
        assert isinstance(request, Query)
        assert (request.id, request.replace_id) == (ALBUM_ART, ALBUM_ART)

        client = MagicMock()
        client.find_album_art.return_value = b"png"
        assert request.callback(client) == AlbumArtResult(b"png")
        client.find_album_art.assert_called_once_with("1.mp3")

    def test_streams_skip_album_art(self, surface: QueueSurface, ctx: AppContext) -> None:
        ctx.current_song = Song(file="http://radio.example/stream", id=9)
        surface.request_album_art(ctx)
        assert pending_requests(ctx.client_requests) == []

    def test_album_art_disabled(self, surface: QueueSurface, ctx: AppContext) -> None:
        ctx.config.album_art.enabled = False
        ctx.current_song = ctx.queue[0]
        surface.request_album_art(ctx)
        assert pending_requests(ctx.client_requests) == []

    def test_album_art_result_stored(self, surface: QueueSurface, ctx: AppContext) -> None:
        assert surface.on_query_finished(ALBUM_ART, AlbumArtResult(b"img"), ctx)
        assert surface.album_art == b"img"

    def test_render_marks_playing_song(self, surface: QueueSurface, ctx: AppContext) -> None:
        term = MagicMock()
        term.black_on_cyan.side_effect = lambda text: text
        term.bold_green.side_effect = lambda text: "PLAYING" + text
        term.white.side_effect = lambda text: text
        term.bold_white.side_effect = lambda text: text
        term.bright_black.side_effect = lambda text: text
        ctx.status.songid = 2

        lines = surface.render(term, Rect(0, 3, 60, 6), ctx)
        assert len(lines) == 6
        assert lines[2].startswith("PLAYING")


class TestAlbumsSurface:
    def test_loads_albums_on_first_show(self, ctx: AppContext) -> None:
        surface = AlbumsSurface()
        surface.before_show(ctx)
        (request,) = pending_requests(ctx.client_requests)
        assert request.id == ALBUM_LIST

        client = MagicMock()
        client.list_tag.return_value = ["X"]
        assert request.callback(client) == TagListResult(["X"])
        client.list_tag.assert_called_once_with("album")

        surface.on_query_finished(ALBUM_LIST, TagListResult(["X", ""]), ctx)
        surface.before_show(ctx)
        # already loaded, empty names dropped
        assert pending_requests(ctx.client_requests) == []
        assert surface.albums == ["X"]

    def test_open_album_and_add_song(self, ctx: AppContext) -> None:
        surface = AlbumsSurface()
        surface.on_query_finished(ALBUM_LIST, TagListResult(["Abbey Road", "Help!"]), ctx)
        surface.handle_key(key("j"), ctx)
        surface.handle_key(key("\r"), ctx)
        assert surface.open_album == "Help!"

        (request,) = pending_requests(ctx.client_requests)
        assert request.id == ALBUM_SONGS
        client = MagicMock()
        request.callback(client)
        client.find.assert_called_once_with([("album", "Help!")])

        songs = [Song(file="help/01.flac", metadata={"title": "Help!"})]
        surface.on_query_finished(ALBUM_SONGS, SongListResult(songs), ctx)
        surface.handle_key(key("a"), ctx)
        run_commands(ctx).add.assert_called_once_with("help/01.flac")

        surface.handle_key(key("h"), ctx)
        assert surface.open_album is None
        assert surface.selected == 1

    def test_add_whole_album(self, ctx: AppContext) -> None:
        surface = AlbumsSurface()
        surface.on_query_finished(ALBUM_LIST, TagListResult(["Abbey Road"]), ctx)
        surface.handle_key(key("a"), ctx)
        run_commands(ctx).find_add.assert_called_once_with([("album", "Abbey Road")])
        assert "Abbey Road" in ctx.status_message.message

    def test_late_song_list_after_close_ignored(self, ctx: AppContext) -> None:
        surface = AlbumsSurface()
        surface.on_query_finished(ALBUM_LIST, TagListResult(["A"]), ctx)
        surface.open("A", ctx)
        surface.close()
        assert surface.on_query_finished(ALBUM_SONGS, SongListResult([Song(file="x")]), ctx) is False
        assert surface.songs == []

    def test_database_change_reloads(self, ctx: AppContext) -> None:
        surface = AlbumsSurface()
        assert surface.on_event(UiEvent.DATABASE, ctx) is True
        (request,) = pending_requests(ctx.client_requests)
        assert request.id == ALBUM_LIST


class TestLogsSurface:
    def test_keeps_most_recent_lines(self) -> None:
        surface = LogsSurface()
        for n in range(1005):
            surface.add_line(f"line {n}")
        assert len(surface.lines) == 1000
        assert surface.lines[0] == "line 5"

    def test_scroll_and_follow(self, ctx: AppContext) -> None:
        surface = LogsSurface()
        for n in range(20):
            surface.add_line(f"line {n}")
        surface.handle_key(key("k"), ctx)
        assert surface.scroll == 1
        # new output keeps the scrolled view in place
        surface.add_line("line 20")
        assert surface.scroll == 2
        surface.handle_key(key("G"), ctx)
        assert surface.scroll == 0

    def test_clear(self, ctx: AppContext) -> None:
        surface = LogsSurface()
        surface.add_line("x")
        surface.handle_key(key("D"), ctx)
        assert len(surface.lines) == 0
