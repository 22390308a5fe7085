"""One session: an eager main conversation plus lazily built sub-threads.

Sub-thread entries are buffered in a PendingSubagent until the sub-thread is
first viewed. Until then each buffered entry counts as one line in
total_height().

// [LAW:one-source-of-truth] A single dict maps agent id to either the
// pending buffer or the materialized conversation; an id is never in both.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from cclv.core.model import ConversationEntry
from cclv.view_state.conversation import DEFAULT_WIDTH, ConversationViewState
from cclv.view_state.renderer import EntryRenderer
from cclv.view_state.types import WrapMode

logger = logging.getLogger(__name__)


@dataclass
class PendingSubagent:
    entries: list[ConversationEntry] = field(default_factory=list)


SubagentSlot = Union[PendingSubagent, ConversationViewState]


class SessionViewState:
    def __init__(
        self,
        session_id: str,
        start_line: int,
        renderer: EntryRenderer,
        width: int = DEFAULT_WIDTH,
        global_wrap: WrapMode = WrapMode.WRAP,
    ):
        self.session_id = session_id
        self._start_line = start_line
        self._renderer = renderer
        self._width = width
        self._global_wrap = global_wrap
        self.main = ConversationViewState(None, renderer, width, global_wrap)
        self._subagents: dict[str, SubagentSlot] = {}
        self.start_time: datetime | None = None

    @property
    def start_line(self) -> int:
        """Cumulative height of earlier sessions when this one was created."""
        return self._start_line

    # ─── Ingest ───────────────────────────────────────────────────────────

    def add_entry(self, entry: ConversationEntry, agent_id: str | None = None) -> None:
        if self.start_time is None and entry.timestamp is not None:
            self.start_time = entry.timestamp
        if agent_id is None:
            self.main.append((entry,))
            return
        slot = self._subagents.get(agent_id)
        if slot is None:
            logger.debug("session %s: new sub-thread %s", self.session_id, agent_id)
            slot = self._subagents[agent_id] = PendingSubagent()
        if isinstance(slot, PendingSubagent):
            slot.entries.append(entry)
        else:
            slot.append((entry,))

    # ─── Sub-thread access ────────────────────────────────────────────────

    def subagent(self, agent_id: str) -> ConversationViewState:
        """Materialize (if needed) and return a sub-thread conversation."""
        slot = self._subagents.get(agent_id)
        if isinstance(slot, ConversationViewState):
            return slot
        entries = slot.entries if slot is not None else []
        conversation = ConversationViewState(
            agent_id, self._renderer, self._width, self._global_wrap, entries
        )
        self._subagents[agent_id] = conversation
        logger.debug(
            "session %s: materialized sub-thread %s (%d entries)",
            self.session_id,
            agent_id,
            len(entries),
        )
        return conversation

    def get_subagent(self, agent_id: str) -> ConversationViewState | None:
        """The sub-thread conversation if already materialized. Never materializes."""
        slot = self._subagents.get(agent_id)
        return slot if isinstance(slot, ConversationViewState) else None

    def has_subagent(self, agent_id: str) -> bool:
        return agent_id in self._subagents

    def is_materialized(self, agent_id: str) -> bool:
        return isinstance(self._subagents.get(agent_id), ConversationViewState)

    def pending_entries(self, agent_id: str) -> list[ConversationEntry]:
        slot = self._subagents.get(agent_id)
        return list(slot.entries) if isinstance(slot, PendingSubagent) else []

    def subagent_entries(self, agent_id: str) -> list[ConversationEntry]:
        """Entries of a sub-thread whether pending or materialized."""
        slot = self._subagents.get(agent_id)
        if slot is None:
            return []
        if isinstance(slot, PendingSubagent):
            return list(slot.entries)
        return [view.entry for view in slot.entries()]

    def subagent_ids(self) -> list[str]:
        return sorted(self._subagents)

    # ─── Aggregates ───────────────────────────────────────────────────────

    def total_height(self) -> int:
        total = self.main.total_height()
        for slot in self._subagents.values():
            if isinstance(slot, PendingSubagent):
                total += len(slot.entries)
            else:
                total += slot.total_height()
        return total

    def entry_count(self) -> int:
        count = len(self.main)
        for slot in self._subagents.values():
            count += len(slot.entries) if isinstance(slot, PendingSubagent) else len(slot)
        return count

    def set_viewport(self, width: int, global_wrap: WrapMode, viewport_height: int | None = None) -> None:
        """Relayout main and materialized sub-threads; remembered for later ones."""
        if width == self._width and global_wrap == self._global_wrap:
            return
        self._width = width
        self._global_wrap = global_wrap
        self.main.relayout(width, global_wrap, viewport_height)
        for slot in self._subagents.values():
            if isinstance(slot, ConversationViewState):
                slot.relayout(width, global_wrap, viewport_height)

    def conversations(self) -> list[ConversationViewState]:
        """Main plus every materialized sub-thread, in tab order."""
        out = [self.main]
        for agent_id in self.subagent_ids():
            conv = self.get_subagent(agent_id)
            if conv is not None:
                out.append(conv)
        return out

    def check_invariants(self) -> None:
        for conv in self.conversations():
            conv.check_invariants()

    def __repr__(self) -> str:
        return (
            f"SessionViewState({self.session_id!r}, start_line={self._start_line}, "
            f"subagents={len(self._subagents)})"
        )
