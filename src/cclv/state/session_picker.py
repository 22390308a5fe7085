"""Session list shown by the session picker overlay.

The picker only holds a highlighted row; the rows themselves are summarized
from the log each time they are drawn, so sessions that arrive while the
picker is open show up immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from cclv.view_state.log import LogViewState


@dataclass(frozen=True)
class SessionSummary:
    index: int
    session_id: str
    message_count: int
    subagent_count: int
    start_time: datetime | None = None

    def display_line(self) -> str:
        """'Session 2: 14 messages, 3 subagents (10:42)'"""
        time = self.start_time.strftime(" (%H:%M)") if self.start_time is not None else ""
        return (
            f"Session {self.index + 1}: {self.message_count} messages, "
            f"{self.subagent_count} subagents{time}"
        )


def summarize(log: LogViewState) -> list[SessionSummary]:
    return [
        SessionSummary(
            index=i,
            session_id=session.session_id,
            message_count=len(session.main),
            subagent_count=len(session.subagent_ids()),
            start_time=session.start_time,
        )
        for i, session in enumerate(log.sessions)
    ]


@dataclass
class SessionPicker:
    """Highlighted row and scroll offset. Movement clamps, it never wraps."""

    selected: int = 0
    scroll_offset: int = 0

    def select_prev(self) -> None:
        self.selected = max(0, self.selected - 1)

    def select_next(self, session_count: int) -> None:
        if session_count:
            self.selected = min(self.selected + 1, session_count - 1)

    def select_first(self) -> None:
        self.selected = 0

    def select_last(self, session_count: int) -> None:
        if session_count:
            self.selected = session_count - 1

    def selected_index(self, session_count: int) -> int | None:
        return self.selected if 0 <= self.selected < session_count else None

    def adjust_scroll(self, visible_rows: int) -> None:
        """Keep the highlighted row inside a window of visible_rows."""
        if visible_rows <= 0:
            return
        if self.selected < self.scroll_offset:
            self.scroll_offset = self.selected
        elif self.selected >= self.scroll_offset + visible_rows:
            self.scroll_offset = self.selected - visible_rows + 1
