"""Overlay screens: key help and the session picker.

Both are display-only. Keys pressed while one is open bubble up to the
app's on_key, which routes them through the HELP or SESSION_PICKER key map;
the app pushes and pops these screens to match AppState.
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

import cclv.tui.panel_renderers as panel_renderers
from cclv.state.app_state import AppState
from cclv.state.session_picker import summarize


class HelpScreen(ModalScreen):
    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-dialog {
        width: auto;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        border: thick $accent;
        background: $surface;
    }
    """

    def compose(self) -> ComposeResult:
        with Container(id="help-dialog"):
            yield Static(panel_renderers.render_help(), id="help-text")


class SessionPickerScreen(ModalScreen):
    DEFAULT_CSS = """
    SessionPickerScreen {
        align: center middle;
    }
    #picker-dialog {
        width: 70;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        border: thick $accent;
        background: $surface;
    }
    """

    # rows of sessions shown at once
    VISIBLE_ROWS = 15

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state

    def compose(self) -> ComposeResult:
        with Container(id="picker-dialog"):
            yield Static("", id="picker-list")

    def on_mount(self) -> None:
        self._draw()

    def update_display(self) -> None:
        # the list widget exists only once mounted; on_mount draws the first frame
        if self.is_mounted:
            self._draw()

    def _draw(self) -> None:
        picker = self.state.session_picker
        if picker is None:
            return
        picker.adjust_scroll(self.VISIBLE_ROWS)
        text = panel_renderers.render_session_list(
            summarize(self.state.log),
            picker,
            self.state.current_session_index(),
            self.VISIBLE_ROWS,
        )
        self.query_one("#picker-list", Static).update(text)
