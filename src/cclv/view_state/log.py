"""The whole log: an ordered list of sessions.

A new session starts whenever an incoming entry's session id differs from
the tail session's. Each session's start_line is fixed when it is created
and never revised, even when earlier sessions later grow.
"""

from __future__ import annotations

import logging
from typing import Iterable

from cclv.core.model import UNKNOWN_SESSION_ID, ConversationEntry
from cclv.view_state.conversation import DEFAULT_WIDTH
from cclv.view_state.renderer import EntryRenderer
from cclv.view_state.session import SessionViewState
from cclv.view_state.types import WrapMode

logger = logging.getLogger(__name__)


class LogViewState:
    def __init__(
        self,
        renderer: EntryRenderer | None = None,
        width: int = DEFAULT_WIDTH,
        global_wrap: WrapMode = WrapMode.WRAP,
    ):
        self.renderer = renderer or EntryRenderer()
        self._width = width
        self._global_wrap = global_wrap
        self._sessions: list[SessionViewState] = []

    @property
    def width(self) -> int:
        return self._width

    @property
    def global_wrap(self) -> WrapMode:
        return self._global_wrap

    @property
    def sessions(self) -> list[SessionViewState]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def session(self, index: int) -> SessionViewState | None:
        if 0 <= index < len(self._sessions):
            return self._sessions[index]
        return None

    @property
    def tail(self) -> SessionViewState | None:
        return self._sessions[-1] if self._sessions else None

    # ─── Ingest ───────────────────────────────────────────────────────────

    def add_entry(self, entry: ConversationEntry, agent_id: str | None = None) -> SessionViewState:
        """Route an entry to its session, starting a new one on a boundary."""
        session_id = entry.session_id
        tail = self.tail
        if tail is None:
            tail = self._start_session(session_id or UNKNOWN_SESSION_ID)
        elif session_id is not None and session_id != tail.session_id:
            tail = self._start_session(session_id)
        tail.add_entry(entry, agent_id if agent_id is not None else entry.agent_id)
        return tail

    def add_entries(self, entries: Iterable[ConversationEntry]) -> int:
        count = 0
        for entry in entries:
            self.add_entry(entry)
            count += 1
        return count

    def _start_session(self, session_id: str) -> SessionViewState:
        start_line = sum(s.total_height() for s in self._sessions)
        session = SessionViewState(
            session_id, start_line, self.renderer, self._width, self._global_wrap
        )
        self._sessions.append(session)
        logger.info("session %d started: %s at line %d", len(self._sessions), session_id, start_line)
        return session

    # ─── Queries ──────────────────────────────────────────────────────────

    def total_height(self) -> int:
        return sum(s.total_height() for s in self._sessions)

    def entry_count(self) -> int:
        return sum(s.entry_count() for s in self._sessions)

    def active_session_index(self, scroll_line: int) -> int | None:
        """Index of the last session whose start_line <= scroll_line."""
        found = None
        for i, session in enumerate(self._sessions):
            if session.start_line <= scroll_line:
                found = i
        return found

    def active_session(self, scroll_line: int) -> SessionViewState | None:
        index = self.active_session_index(scroll_line)
        return None if index is None else self._sessions[index]

    def clear(self) -> None:
        """Drop every session and cached rendering. Width and wrap are kept."""
        logger.info("log cleared (%d sessions)", len(self._sessions))
        self._sessions = []
        self.renderer.cache.clear()

    def set_viewport(self, width: int, global_wrap: WrapMode, viewport_height: int | None = None) -> None:
        self._width = width
        self._global_wrap = global_wrap
        for session in self._sessions:
            session.set_viewport(width, global_wrap, viewport_height)
