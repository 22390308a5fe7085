"""Search state machine and match scanning.

States: Inactive → Typing(query, cursor) → Active(query, matches, current).
State objects are immutable; every transition returns a new state.

Matching is case-insensitive substring over text, thinking and tool-result
blocks. Overlapping occurrences are all recorded. Tool-use input is not
searched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterator, Union

from cclv.core.model import ConversationEntry, LogEntry, searchable_text
from cclv.view_state.log import LogViewState

logger = logging.getLogger(__name__)


# ─── Values ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SearchQuery:
    text: str

    def __post_init__(self):
        if not self.text.strip():
            raise ValueError("search query must not be blank")

    @classmethod
    def parse(cls, text: str) -> SearchQuery | None:
        """A query, or None for blank input."""
        if not text.strip():
            return None
        return cls(text)


@dataclass(frozen=True)
class SearchMatch:
    """One occurrence. agent_id is None for the main conversation."""

    agent_id: str | None
    entry_identity: str
    block_index: int
    char_offset: int
    length: int
    session_index: int = 0


# ─── States ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Inactive:
    pass


@dataclass(frozen=True)
class Typing:
    query: str = ""
    cursor: int = 0

    def insert(self, text: str) -> Typing:
        q = self.query[: self.cursor] + text + self.query[self.cursor :]
        return Typing(q, self.cursor + len(text))

    def backspace(self) -> Typing:
        if self.cursor == 0:
            return self
        q = self.query[: self.cursor - 1] + self.query[self.cursor :]
        return Typing(q, self.cursor - 1)

    def cursor_left(self) -> Typing:
        return Typing(self.query, max(0, self.cursor - 1))

    def cursor_right(self) -> Typing:
        return Typing(self.query, min(len(self.query), self.cursor + 1))


@dataclass(frozen=True)
class Active:
    query: SearchQuery
    matches: tuple[SearchMatch, ...] = field(default_factory=tuple)
    current_match: int = 0

    @property
    def current(self) -> SearchMatch | None:
        if not self.matches:
            return None
        return self.matches[self.current_match]


SearchState = Union[Inactive, Typing, Active]


# ─── Scanning ────────────────────────────────────────────────────────────────


def find_occurrences(haystack: str, needle: str) -> Iterator[tuple[int, int]]:
    """(offset, length) of every case-insensitive occurrence, overlapping included.

    Offsets index the original text, so characters whose lowercase form is
    longer (such as "İ") do not shift later matches.
    """
    if not needle:
        return
    # zero-width lookahead so overlapping occurrences are all reported
    pattern = re.compile(f"(?=({re.escape(needle)}))", re.IGNORECASE)
    for m in pattern.finditer(haystack):
        yield m.start(), len(m.group(1))


def _scan_entry(
    entry: ConversationEntry,
    query: SearchQuery,
    agent_id: str | None,
    session_index: int,
) -> Iterator[SearchMatch]:
    if not isinstance(entry, LogEntry):
        return
    for block_index, block in enumerate(entry.message.blocks):
        text = searchable_text(block)
        if not text:
            continue
        for offset, length in find_occurrences(text, query.text):
            yield SearchMatch(
                agent_id,
                entry.identity,
                block_index,
                offset,
                length,
                session_index,
            )


def execute_search(log: LogViewState, query: SearchQuery) -> tuple[SearchMatch, ...]:
    """Every match in the log: session order, main then sub-threads in tab order."""
    matches: list[SearchMatch] = []
    for session_index, session in enumerate(log.sessions):
        for view in session.main.entries():
            matches.extend(_scan_entry(view.entry, query, None, session_index))
        for agent_id in session.subagent_ids():
            # pending buffers are scanned without materializing them
            for entry in session.subagent_entries(agent_id):
                matches.extend(_scan_entry(entry, query, agent_id, session_index))
    logger.debug("search %r: %d matches", query.text, len(matches))
    return tuple(matches)


# ─── Transitions ─────────────────────────────────────────────────────────────


def submit(state: SearchState, log: LogViewState) -> SearchState:
    """Typing → Active, or Inactive when the typed query is blank."""
    if not isinstance(state, Typing):
        return state
    query = SearchQuery.parse(state.query)
    if query is None:
        return Inactive()
    return Active(query, execute_search(log, query), 0)


def next_match(state: SearchState) -> SearchState:
    if not isinstance(state, Active) or not state.matches:
        return state
    return replace(state, current_match=(state.current_match + 1) % len(state.matches))


def prev_match(state: SearchState) -> SearchState:
    if not isinstance(state, Active) or not state.matches:
        return state
    return replace(state, current_match=(state.current_match - 1) % len(state.matches))


def tabs_with_matches(state: SearchState, session_index: int) -> set[str | None]:
    """Agent ids (None for main) that hold a match in the given session."""
    if not isinstance(state, Active):
        return set()
    return {m.agent_id for m in state.matches if m.session_index == session_index}
