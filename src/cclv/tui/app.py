"""Textual application: wires AppState, the widgets and the file watcher."""

from __future__ import annotations

import logging

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal

import cclv.state.search as search
import cclv.tui.input_modes as input_modes
from cclv.io.source import FileSource, FileWatcher, SourceError
from cclv.state.app_state import AppState
from cclv.tui.screens import HelpScreen, SessionPickerScreen
from cclv.tui.widgets import LogPane, SearchBar, StatsPanel, StatusBar, TabBar

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 0.1
BLINK_INTERVAL_S = 0.5


class CclvApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }
    #body {
        height: 1fr;
    }
    #body LogPane {
        width: 1fr;
    }
    """

    def __init__(
        self,
        state: AppState,
        source: FileSource | None = None,
        watcher: FileWatcher | None = None,
        poll_interval: float = POLL_INTERVAL_S,
    ):
        super().__init__()
        self.state = state
        self._source = source
        self._watcher = watcher
        self._poll_interval = poll_interval
        self._blink_on = True

    def compose(self) -> ComposeResult:
        yield TabBar(id="tabs")
        with Horizontal(id="body"):
            yield LogPane(self.state, id="log-pane")
            yield StatsPanel(id="stats-panel")
        yield SearchBar(id="search-bar")
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        pane = self._base(LogPane)
        pane.focus()
        if self._source is not None and self._watcher is not None:
            self._watcher.start()
            self.state.live = True
            self.set_interval(self._poll_interval, self.poll_source)
            self.set_interval(BLINK_INTERVAL_S, self._blink)
        self.call_after_refresh(self._initial_layout)
        self.refresh_view()

    def _initial_layout(self) -> None:
        self._base(LogPane).sync_viewport()
        self.refresh_view()

    def on_unmount(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    # ─── Live tailing ─────────────────────────────────────────────────────

    def poll_source(self) -> None:
        """Drain watcher notifications and ingest whatever was appended."""
        if self._watcher is None or self._source is None or not self._watcher.drain():
            return
        try:
            result = self._source.read_update()
        except SourceError as exc:
            logger.warning("reading new entries failed: %s", exc)
            self.notify(str(exc), severity="warning")
            return
        if result.reset:
            # the file restarted; its entries replace the current log
            self.state.reset()
            self.notify(f"{self._source.path.name} was truncated; reloaded", severity="warning")
        if result.entries:
            self.state.ingest(result.entries)
        if result.reset or result.entries:
            self.refresh_view()

    # ─── Input ────────────────────────────────────────────────────────────

    def on_key(self, event: events.Key) -> None:
        """// [LAW:single-enforcer] on_key is the sole key dispatcher."""
        mode = input_modes.current_mode(self.state)
        action = input_modes.lookup(mode, event.key, event.character)
        if action is not None:
            event.prevent_default()
            event.stop()
            self.state.handle_action(action)
        elif mode == input_modes.InputMode.SEARCH_EDIT:
            event.prevent_default()
            event.stop()
            self._edit_search(event)
        else:
            return

        if self.state.should_quit:
            self.exit()
            return
        self.refresh_view()

    def _edit_search(self, event: events.Key) -> None:
        if event.key == "backspace":
            self.state.search_backspace()
        elif event.key == "left":
            self.state.search_cursor(-1)
        elif event.key == "right":
            self.state.search_cursor(1)
        elif event.is_printable and event.character:
            self.state.search_insert(event.character)

    # ─── Display ──────────────────────────────────────────────────────────

    def _base(self, widget_type):
        """A widget on the main screen, even while an overlay is on top."""
        return self.screen_stack[0].query_one(widget_type)

    def refresh_view(self) -> None:
        self._base(TabBar).update_display(self.state)
        self._base(SearchBar).update_display(self.state.search)
        self._base(StatsPanel).update_display(self.state)
        self._base(StatusBar).update_display(self.state, self._blink_on)
        self._base(LogPane).refresh()
        if isinstance(self.state.search, search.Active):
            self.sub_title = f"/{self.state.search.query.text}"
        else:
            self.sub_title = ""
        self._sync_overlay()

    def _sync_overlay(self) -> None:
        """Push or pop overlay screens until the top one matches AppState.

        // [LAW:one-source-of-truth] AppState decides which overlay is open;
        // the screen stack follows it.
        """
        if self.state.session_picker is not None:
            wanted = SessionPickerScreen
        elif self.state.help_visible:
            wanted = HelpScreen
        else:
            wanted = None
        while isinstance(self.screen, (HelpScreen, SessionPickerScreen)) and type(self.screen) is not wanted:
            self.pop_screen()
        if wanted is None:
            return
        if isinstance(self.screen, wanted):
            if isinstance(self.screen, SessionPickerScreen):
                self.screen.update_display()
        elif wanted is SessionPickerScreen:
            self.push_screen(SessionPickerScreen(self.state))
        else:
            self.push_screen(HelpScreen())

    def _blink(self) -> None:
        self._blink_on = not self._blink_on
        self._base(StatusBar).update_display(self.state, self._blink_on)
