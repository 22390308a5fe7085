"""Textual widgets for the viewer.

LogPane uses the Line API: render_line(y) asks the selected conversation for
the row at scroll_offset + y, which is one O(log n) HeightIndex lookup.
Nothing outside the viewport is touched per frame.
"""

from __future__ import annotations

import re

from rich.style import Style
from rich.text import Text
from textual import events
from textual.strip import Strip
from textual.widget import Widget
from textual.widgets import Static

import cclv.state.search as search
import cclv.tui.input_modes as input_modes
import cclv.tui.panel_renderers as panel_renderers
from cclv.state.app_state import AppState

SEARCH_ALL_STYLE = Style(bgcolor="grey35")
SEARCH_CURRENT_STYLE = Style(bgcolor="dark_orange3", bold=True)
FOCUSED_ENTRY_STYLE = Style(bgcolor="grey15")


def apply_search_highlights(text: Text, query: str, is_current_entry: bool) -> Text:
    """Highlighted copy of a rendered line. Cached lines are never mutated.

    Every occurrence gets a dim background; lines of the entry holding the
    current match get the bright one.
    """
    line = text.copy()
    style = SEARCH_CURRENT_STYLE if is_current_entry else SEARCH_ALL_STYLE
    line.highlight_regex("(?i)" + re.escape(query), style)
    return line


# ─── Log pane ────────────────────────────────────────────────────────────────


class LogPane(Widget, can_focus=True):
    """Virtualized view of the selected conversation."""

    DEFAULT_CSS = """
    LogPane {
        height: 1fr;
        border: solid $accent;
        &:focus {
            background-tint: $foreground 5%;
        }
    }
    """

    def __init__(self, state: AppState, **kwargs):
        super().__init__(**kwargs)
        self.state = state

    def sync_viewport(self) -> None:
        """Push the pane's size into the layout engine.

        The renderer reserves two columns for the border, so it gets the
        outer width.
        """
        if self.size.height <= 0:
            return
        width = self.outer_size.width or self.size.width
        if (width, self.size.height) != tuple(self.state.viewport):
            self.state.set_viewport(width, self.size.height)

    def on_resize(self, event: events.Resize) -> None:
        self.sync_viewport()
        self.refresh()

    def render_line(self, y: int) -> Strip:
        width = self.size.width
        conv = self.state.selected_conversation()
        if conv is None:
            return Strip.blank(width, self.rich_style)
        offset = conv.resolved_scroll(self.state.viewport.height)
        row = conv.line_at(offset + y)
        if row is None:
            return Strip.blank(width, self.rich_style)
        index, _intra, text = row

        query, current_identity = self._search_context(conv.agent_id)
        view = conv.entry(index)
        if query:
            text = apply_search_highlights(text, query, view.identity == current_identity)
        else:
            text = text.copy()
        text.expand_tabs()
        if index == conv.focused_index:
            text.stylize(FOCUSED_ENTRY_STYLE)

        segments = list(text.render(self.app.console))
        left = conv.horizontal_offset
        return Strip(segments).crop_extend(left, left + width, self.rich_style)

    def _search_context(self, agent_id: str | None) -> tuple[str | None, str | None]:
        state = self.state.search
        if not isinstance(state, search.Active) or not state.matches:
            return None, None
        current = state.current
        if current is None or current.agent_id != agent_id:
            return state.query.text, None
        return state.query.text, current.entry_identity

    def on_click(self, event: events.Click) -> None:
        offset = event.get_content_offset(self)
        if offset is None:
            return
        if self.state.handle_click(offset.x, offset.y):
            self.app.refresh_view()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.state.handle_mouse_scroll(1)
        event.stop()
        self.app.refresh_view()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.state.handle_mouse_scroll(-1)
        event.stop()
        self.app.refresh_view()


# ─── Bars ────────────────────────────────────────────────────────────────────


class TabBar(Static):
    DEFAULT_CSS = """
    TabBar {
        height: 1;
        background: $panel;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)

    def update_display(self, state: AppState) -> None:
        line = Text()
        selected = state.selected_tab_index()
        for i, label in enumerate(state.tab_labels()):
            if i:
                line.append(" │ ", style="dim")
            line.append(f"{i + 1}:{label}", style="bold reverse" if i == selected else "")
        self.update(line)


class SearchBar(Static):
    """Search prompt. The app's on_key does all text editing."""

    DEFAULT_CSS = """
    SearchBar {
        height: 1;
        display: none;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)

    def update_display(self, state: search.SearchState) -> None:
        if isinstance(state, search.Inactive):
            self.display = False
            return
        self.display = True
        line = Text()
        line.append("/ ", style="bold")
        if isinstance(state, search.Typing):
            query, cursor = state.query, state.cursor
            if cursor < len(query):
                line.append(query[:cursor], style="bold")
                line.append(query[cursor], style="bold reverse")
                line.append(query[cursor + 1 :], style="bold")
            else:
                line.append(query, style="bold")
                line.append("█")
        else:
            line.append(state.query.text, style="bold")
            if state.matches:
                line.append(f"  [{state.current_match + 1}/{len(state.matches)}]", style="cyan")
            else:
                line.append("  [no matches]", style="dim")
        self.update(line)


class StatusBar(Static):
    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $panel;
        padding: 0 1;
    }
    """

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)

    def update_display(self, state: AppState, blink_on: bool = True) -> None:
        line = panel_renderers.render_live_indicator(state.live, blink_on)
        line.append(" ")
        session_index = state.current_session_index()
        if session_index is None:
            line.append("no entries", style="dim")
        else:
            session = state.viewed_session
            line.append(f"session {session_index + 1}/{len(state.log)} ", style="bold")
            line.append(session.session_id[:8], style="dim")
        line.append(f"  {'follow' if state.follow else 'paused'}", style="green" if state.follow else "yellow")
        line.append(f"  {state.global_wrap.value}", style="dim")
        if state.stats_visible:
            line.append(f"  stats:{state.stats_filter.short_label}", style="cyan")
        if state.status_message:
            line.append(f"  {state.status_message}", style="italic")
        line.append("   ")
        mode = input_modes.current_mode(state)
        for key, desc in input_modes.FOOTER_KEYS[mode]:
            line.append(key, style="bold")
            line.append(f" {desc} ", style="dim")
        self.update(line)


class StatsPanel(Static):
    """Token usage and cost for the selected stats scope, beside the log pane."""

    DEFAULT_CSS = """
    StatsPanel {
        width: 38;
        height: 1fr;
        display: none;
        border-left: solid $accent;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)

    def update_display(self, state: AppState) -> None:
        self.display = state.stats_visible
        if not state.stats_visible:
            return
        self.update(
            panel_renderers.render_stats_panel(
                state.selected_stats(),
                state.stats_filter,
                state.stats.pricing,
                state.stats.actual_cost_usd,
            )
        )
