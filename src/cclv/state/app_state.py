"""Application state: which conversation is shown and how user intents change it.

Selection is identity-based (Main or Subagent(agent_id)), never a tab index,
so sub-threads appearing mid-stream never move the user to another tab.

// [LAW:single-enforcer] handle_action() is the one entry point for key
// intents; the widget layer only translates keys and mouse events.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Union

from rich.text import Text

import cclv.state.search as search
import cclv.state.stats as stats
from cclv.core.model import ConversationEntry
from cclv.state.key_action import Action, KeyAction, SelectTab
from cclv.state.session_picker import SessionPicker
from cclv.view_state.conversation import ConversationViewState
from cclv.view_state.log import LogViewState
from cclv.view_state.scroll import AtEntry, Bottom, Top
from cclv.view_state.session import SessionViewState
from cclv.view_state.types import Hit, ViewportDimensions, WrapMode

logger = logging.getLogger(__name__)

MOUSE_SCROLL_LINES = 3
HORIZONTAL_STEP = 4
MAIN_TAB_LABEL = "Main"
MATCH_INDICATOR = " ●"


@dataclass(frozen=True)
class Main:
    pass


@dataclass(frozen=True)
class Subagent:
    agent_id: str


ConversationSelection = Union[Main, Subagent]


def _selection_for(agent_id: str | None) -> ConversationSelection:
    return Main() if agent_id is None else Subagent(agent_id)


class AppState:
    def __init__(
        self,
        log: LogViewState,
        *,
        follow: bool = True,
        viewport: ViewportDimensions = ViewportDimensions(80, 24),
        pricing: Mapping[str, stats.ModelPricing] | None = None,
    ):
        self.log = log
        self.follow = follow
        self.viewport = viewport
        self.selection: ConversationSelection = Main()
        self.search: search.SearchState = search.Inactive()
        # None means "always the latest session"
        self.viewed_session_index: int | None = None
        self.should_quit = False
        self.status_message = ""
        # tailing a growing file; drives the LIVE indicator
        self.live = False

        self.stats = stats.LogStats(pricing)
        self.stats.record_all(self._all_entries())
        self.stats_filter: stats.StatsFilter = stats.AllSessions()
        self.stats_visible = False
        self.help_visible = False
        self.session_picker: SessionPicker | None = None

    # ─── Viewed session and selection ─────────────────────────────────────

    def current_session_index(self) -> int | None:
        if not len(self.log):
            return None
        if self.viewed_session_index is None:
            return len(self.log) - 1
        return min(self.viewed_session_index, len(self.log) - 1)

    @property
    def viewed_session(self) -> SessionViewState | None:
        index = self.current_session_index()
        return None if index is None else self.log.session(index)

    def selected_conversation(self) -> ConversationViewState | None:
        """The conversation on screen. Viewing a sub-thread materializes it."""
        session = self.viewed_session
        if session is None:
            return None
        if isinstance(self.selection, Subagent) and session.has_subagent(self.selection.agent_id):
            return session.subagent(self.selection.agent_id)
        return session.main

    def tab_ids(self) -> list[str | None]:
        session = self.viewed_session
        if session is None:
            return [None]
        return [None, *session.subagent_ids()]

    def selected_tab_index(self) -> int:
        if isinstance(self.selection, Main):
            return 0
        ids = self.tab_ids()
        try:
            return ids.index(self.selection.agent_id)
        except ValueError:
            return 0

    def tab_labels(self) -> list[str]:
        session_index = self.current_session_index()
        hits = search.tabs_with_matches(self.search, session_index) if session_index is not None else set()
        labels = []
        for agent_id in self.tab_ids():
            label = MAIN_TAB_LABEL if agent_id is None else agent_id
            labels.append(label + MATCH_INDICATOR if agent_id in hits else label)
        return labels

    def select(self, selection: ConversationSelection) -> None:
        self.selection = selection

    def next_tab(self) -> None:
        ids = self.tab_ids()
        self.selection = _selection_for(ids[(self.selected_tab_index() + 1) % len(ids)])

    def prev_tab(self) -> None:
        ids = self.tab_ids()
        self.selection = _selection_for(ids[(self.selected_tab_index() - 1) % len(ids)])

    def select_tab(self, number: int) -> None:
        """1-based; out-of-range numbers are ignored."""
        ids = self.tab_ids()
        if 1 <= number <= len(ids):
            self.selection = _selection_for(ids[number - 1])

    def view_session(self, index: int | None) -> None:
        if index is not None and not 0 <= index < len(self.log):
            return
        self.viewed_session_index = index
        session = self.viewed_session
        if isinstance(self.selection, Subagent) and (
            session is None or not session.has_subagent(self.selection.agent_id)
        ):
            self.selection = Main()
        if session is not None:
            self.stats_filter = stats.follow_session(self.stats_filter, session.session_id)

    def next_session(self) -> None:
        current = self.current_session_index()
        if current is None:
            return
        nxt = current + 1
        # stepping onto the last session resumes "follow latest"
        self.view_session(None if nxt >= len(self.log) - 1 else nxt)

    def prev_session(self) -> None:
        current = self.current_session_index()
        if current is None or current == 0:
            return
        self.view_session(current - 1)

    # ─── Ingest and layout ────────────────────────────────────────────────

    def reset(self) -> None:
        """Forget everything read so far, for a source that restarted from the top.

        Viewport, wrap, follow and panel visibility survive; selection, search,
        the stats filter and the viewed session go back to their startup values.
        """
        self.log.clear()
        self.stats.clear()
        self.stats_filter = stats.AllSessions()
        self.session_picker = None
        self.selection = Main()
        self.search = search.Inactive()
        self.viewed_session_index = None
        self.status_message = "log reloaded"

    def ingest(self, entries: Iterable[ConversationEntry]) -> int:
        """Add entries; with follow on, a conversation at the bottom stays there."""
        entries = list(entries)
        self.stats.record_all(entries)
        conv = self.selected_conversation()
        pinned = self.follow and (conv is None or conv.is_at_bottom(self.viewport.height))
        count = self.log.add_entries(entries)
        if pinned and count:
            conv = self.selected_conversation()
            if conv is not None:
                conv.set_scroll(Bottom())
        return count

    @property
    def global_wrap(self) -> WrapMode:
        return self.log.global_wrap

    def set_viewport(self, width: int, height: int) -> None:
        self.viewport = ViewportDimensions(width, height)
        self.log.set_viewport(width, self.log.global_wrap, height)

    def toggle_global_wrap(self) -> None:
        self.log.set_viewport(self.viewport.width, self.log.global_wrap.toggled(), self.viewport.height)

    # ─── Key intents ──────────────────────────────────────────────────────

    def handle_action(self, action: KeyAction) -> bool:
        """Apply one intent. Returns False for intents that do nothing here."""
        if isinstance(action, SelectTab):
            self.select_tab(action.number)
            return True
        handler = _ACTION_HANDLERS.get(action)
        if handler is None:
            return False
        handler(self)
        return True

    def _conv_do(self, fn) -> None:
        conv = self.selected_conversation()
        if conv is not None:
            fn(conv)

    def scroll_lines(self, delta: int) -> None:
        self._conv_do(lambda c: c.scroll_by(delta, self.viewport.height))

    def page(self, direction: int) -> None:
        self.scroll_lines(direction * max(1, self.viewport.height))

    def scroll_to_top(self) -> None:
        self._conv_do(lambda c: c.set_scroll(Top()))

    def scroll_to_bottom(self) -> None:
        self._conv_do(lambda c: c.set_scroll(Bottom()))

    def scroll_horizontal(self, direction: int) -> None:
        if direction < 0:
            self._conv_do(lambda c: c.scroll_left(HORIZONTAL_STEP))
        else:
            self._conv_do(lambda c: c.scroll_right(HORIZONTAL_STEP))

    def _target_index(self, conv: ConversationViewState) -> int | None:
        """Focused entry, else the first visible one."""
        if conv.focused_index is not None and conv.entry(conv.focused_index) is not None:
            return conv.focused_index
        rng = conv.visible_range(self.viewport)
        return None if rng.is_empty else rng.start_index

    def toggle_expand(self) -> None:
        conv = self.selected_conversation()
        if conv is None:
            return
        index = self._target_index(conv)
        if index is not None:
            conv.toggle_entry_expanded(index, self.viewport)

    def set_all_expanded(self, expanded: bool) -> None:
        self._conv_do(lambda c: c.set_all_expanded(expanded))

    def toggle_entry_wrap(self) -> None:
        conv = self.selected_conversation()
        if conv is None:
            return
        index = self._target_index(conv)
        if index is not None:
            conv.toggle_entry_wrap(index, self.viewport)

    def move_focus(self, direction: int) -> None:
        conv = self.selected_conversation()
        if conv is None or not len(conv):
            return
        current = self._target_index(conv)
        if current is None or conv.focused_index is None:
            target = current if current is not None else 0
        else:
            target = min(max(current + direction, 0), len(conv) - 1)
        conv.focused_index = target
        rng = conv.visible_range(self.viewport)
        if target not in rng.indices():
            conv.set_scroll(AtEntry(target, 0))

    def toggle_auto_scroll(self) -> None:
        self.follow = not self.follow
        self.status_message = "follow on" if self.follow else "follow off"
        if self.follow:
            self.scroll_to_bottom()

    # ─── Search ───────────────────────────────────────────────────────────

    def start_search(self) -> None:
        self.search = search.Typing()

    def cancel_search(self) -> None:
        self.search = search.Inactive()

    def search_insert(self, text: str) -> None:
        if isinstance(self.search, search.Typing):
            self.search = self.search.insert(text)

    def search_backspace(self) -> None:
        if isinstance(self.search, search.Typing):
            self.search = self.search.backspace()

    def search_cursor(self, direction: int) -> None:
        if isinstance(self.search, search.Typing):
            self.search = self.search.cursor_left() if direction < 0 else self.search.cursor_right()

    def submit_search(self) -> None:
        self.search = search.submit(self.search, self.log)
        if isinstance(self.search, search.Active):
            count = len(self.search.matches)
            self.status_message = f"{count} match{'es' if count != 1 else ''}"
            self._jump_to_current_match()

    def next_match(self) -> None:
        self.search = search.next_match(self.search)
        self._jump_to_current_match()

    def prev_match(self) -> None:
        self.search = search.prev_match(self.search)
        self._jump_to_current_match()

    def _jump_to_current_match(self) -> None:
        if not isinstance(self.search, search.Active):
            return
        match = self.search.current
        if match is None:
            return
        last = len(self.log) - 1
        self.viewed_session_index = None if match.session_index == last else match.session_index
        self.selection = _selection_for(match.agent_id)
        conv = self.selected_conversation()
        if conv is None:
            return
        index = conv.index_of(match.entry_identity)
        if index is None:
            return
        conv.focused_index = index
        conv.set_scroll(AtEntry(index, 0))

    # ─── Stats and overlays ───────────────────────────────────────────────

    def _all_entries(self) -> Iterable[ConversationEntry]:
        for session in self.log.sessions:
            for view in session.main.entries():
                yield view.entry
            for agent_id in session.subagent_ids():
                yield from session.subagent_entries(agent_id)

    def toggle_stats(self) -> None:
        self.stats_visible = not self.stats_visible

    def cycle_stats_filter(self) -> None:
        session = self.viewed_session
        self.stats_filter = stats.next_filter(
            self.stats_filter,
            session.session_id if session is not None else None,
            session.subagent_ids() if session is not None else [],
        )
        self.stats_visible = True

    def selected_stats(self) -> stats.UsageBucket:
        return self.stats.bucket(self.stats_filter)

    def toggle_help(self) -> None:
        self.help_visible = not self.help_visible
        if self.help_visible:
            self.session_picker = None

    def toggle_session_picker(self) -> None:
        if self.session_picker is not None:
            self.session_picker = None
            return
        current = self.current_session_index()
        if current is None:
            self.status_message = "no sessions yet"
            return
        self.help_visible = False
        self.session_picker = SessionPicker(selected=current)

    def _picker_do(self, fn) -> None:
        if self.session_picker is not None:
            fn(self.session_picker)

    def confirm_session_picker(self) -> None:
        """View the highlighted session; the last one resumes following new sessions."""
        if self.session_picker is None:
            return
        index = self.session_picker.selected_index(len(self.log))
        self.session_picker = None
        if index is not None:
            self.view_session(None if index == len(self.log) - 1 else index)

    # ─── Mouse ────────────────────────────────────────────────────────────

    def handle_click(self, x: int, y: int) -> bool:
        """Toggle the entry under a viewport click. True when an entry was hit."""
        conv = self.selected_conversation()
        if conv is None:
            return False
        offset = conv.resolved_scroll(self.viewport.height)
        result = conv.hit_test(y, x, offset)
        if not isinstance(result, Hit):
            return False
        conv.focused_index = result.entry_index
        conv.toggle_entry_expanded(result.entry_index, self.viewport)
        return True

    def handle_mouse_scroll(self, direction: int) -> None:
        self.scroll_lines(direction * MOUSE_SCROLL_LINES)

    # ─── Output ───────────────────────────────────────────────────────────

    def visible_lines(self) -> list[tuple[int, int, Text]]:
        conv = self.selected_conversation()
        if conv is None:
            return []
        return conv.visible_lines(self.viewport)

    def quit(self) -> None:
        self.should_quit = True


_ACTION_HANDLERS = {
    Action.SCROLL_UP: lambda s: s.scroll_lines(-1),
    Action.SCROLL_DOWN: lambda s: s.scroll_lines(1),
    Action.SCROLL_LEFT: lambda s: s.scroll_horizontal(-1),
    Action.SCROLL_RIGHT: lambda s: s.scroll_horizontal(1),
    Action.PAGE_UP: lambda s: s.page(-1),
    Action.PAGE_DOWN: lambda s: s.page(1),
    Action.SCROLL_TO_TOP: AppState.scroll_to_top,
    Action.SCROLL_TO_BOTTOM: AppState.scroll_to_bottom,
    Action.TOGGLE_EXPAND: AppState.toggle_expand,
    Action.EXPAND_ALL: lambda s: s.set_all_expanded(True),
    Action.COLLAPSE_ALL: lambda s: s.set_all_expanded(False),
    Action.TOGGLE_WRAP: AppState.toggle_entry_wrap,
    Action.TOGGLE_GLOBAL_WRAP: AppState.toggle_global_wrap,
    Action.NEXT_TAB: AppState.next_tab,
    Action.PREV_TAB: AppState.prev_tab,
    Action.START_SEARCH: AppState.start_search,
    Action.SUBMIT_SEARCH: AppState.submit_search,
    Action.CANCEL_SEARCH: AppState.cancel_search,
    Action.NEXT_MATCH: AppState.next_match,
    Action.PREV_MATCH: AppState.prev_match,
    Action.NEXT_ENTRY: lambda s: s.move_focus(1),
    Action.PREV_ENTRY: lambda s: s.move_focus(-1),
    Action.TOGGLE_AUTO_SCROLL: AppState.toggle_auto_scroll,
    Action.NEXT_SESSION: AppState.next_session,
    Action.PREV_SESSION: AppState.prev_session,
    Action.TOGGLE_STATS: AppState.toggle_stats,
    Action.CYCLE_STATS_FILTER: AppState.cycle_stats_filter,
    Action.TOGGLE_HELP: AppState.toggle_help,
    Action.TOGGLE_SESSION_PICKER: AppState.toggle_session_picker,
    Action.PICKER_PREV: lambda s: s._picker_do(lambda p: p.select_prev()),
    Action.PICKER_NEXT: lambda s: s._picker_do(lambda p: p.select_next(len(s.log))),
    Action.PICKER_FIRST: lambda s: s._picker_do(lambda p: p.select_first()),
    Action.PICKER_LAST: lambda s: s._picker_do(lambda p: p.select_last(len(s.log))),
    Action.PICKER_CONFIRM: AppState.confirm_session_picker,
    Action.QUIT: AppState.quit,
}
