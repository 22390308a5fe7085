"""Layout and scroll state for one conversation (main thread or sub-thread).

Every mutation touches its EntryView first and then pushes exactly the
resulting height(s) into the HeightIndex, so
height_index.total() == sum(view.height for view in entries) always holds.

Index-taking operations ignore out-of-range indices. Queries on an empty
conversation return an empty range or a Miss.
"""

from __future__ import annotations

import logging
from typing import Iterable

from rich.text import Text

from cclv.core.model import ConversationEntry
from cclv.view_state.entry_view import EntryView
from cclv.view_state.height_index import HeightIndex
from cclv.view_state.renderer import EntryRenderer
from cclv.view_state.scroll import AtEntry, AtLine, Bottom, ScrollPosition, Top, max_scroll
from cclv.view_state.types import (
    EMPTY_RANGE,
    Hit,
    HitTestResult,
    Miss,
    ViewportDimensions,
    VisibleRange,
    WrapMode,
)

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 80


class ConversationViewState:
    def __init__(
        self,
        agent_id: str | None,
        renderer: EntryRenderer,
        width: int = DEFAULT_WIDTH,
        global_wrap: WrapMode = WrapMode.WRAP,
        entries: Iterable[ConversationEntry] = (),
    ):
        self.agent_id = agent_id
        self._renderer = renderer
        self._width = width
        self._global_wrap = global_wrap
        self._views: list[EntryView] = []
        self._by_identity: dict[str, int] = {}
        self._heights = HeightIndex()
        self._scroll: ScrollPosition = Top()
        self.horizontal_offset = 0
        self.focused_index: int | None = None
        self.append(entries)

    # ─── Properties ───────────────────────────────────────────────────────

    @property
    def is_subagent(self) -> bool:
        return self.agent_id is not None

    @property
    def width(self) -> int:
        return self._width

    @property
    def global_wrap(self) -> WrapMode:
        return self._global_wrap

    @property
    def height_index(self) -> HeightIndex:
        return self._heights

    def __len__(self) -> int:
        return len(self._views)

    def __bool__(self) -> bool:
        # an empty conversation is still a conversation
        return True

    def entry(self, index: int) -> EntryView | None:
        if 0 <= index < len(self._views):
            return self._views[index]
        return None

    def entries(self) -> list[EntryView]:
        return list(self._views)

    def index_of(self, identity: str) -> int | None:
        return self._by_identity.get(identity)

    # ─── Heights ──────────────────────────────────────────────────────────

    def total_height(self) -> int:
        return self._heights.total()

    def entry_height(self, index: int) -> int | None:
        if 0 <= index < len(self._views):
            return self._heights.get(index)
        return None

    def entry_cumulative_y(self, index: int) -> int | None:
        """First absolute line of entry `index`."""
        if not 0 <= index < len(self._views):
            return None
        if index == 0:
            return 0
        return self._heights.prefix_sum(index - 1)

    # ─── Mutation ─────────────────────────────────────────────────────────

    def append(self, entries: Iterable[ConversationEntry]) -> int:
        """Append entries; returns how many were added."""
        added = 0
        for entry in entries:
            index = len(self._views)
            view = EntryView(
                entry,
                index,
                self._renderer,
                self._width,
                self._global_wrap,
                is_subagent_view=self.is_subagent,
            )
            self._views.append(view)
            # first occurrence wins for identity lookups
            self._by_identity.setdefault(view.identity, index)
            self._heights.push(view.height)
            added += 1
        if added:
            logger.debug("conversation %s: appended %d entries", self.agent_id or "main", added)
        return added

    def toggle_entry_expanded(self, index: int, viewport: ViewportDimensions | None = None) -> bool:
        view = self.entry(index)
        if view is None:
            return False
        return self.set_entry_expanded(index, not view.expanded, viewport)

    def set_entry_expanded(
        self, index: int, expanded: bool, viewport: ViewportDimensions | None = None
    ) -> bool:
        view = self.entry(index)
        if view is None:
            return False
        anchor = self._anchor_for_mutation(index, viewport)
        self._heights.update(index, view.set_expanded(expanded))
        self._restore_anchor(anchor)
        return True

    def set_entry_wrap_override(
        self, index: int, mode: WrapMode | None, viewport: ViewportDimensions | None = None
    ) -> bool:
        view = self.entry(index)
        if view is None:
            return False
        anchor = self._anchor_for_mutation(index, viewport)
        self._heights.update(index, view.set_wrap_override(mode))
        self._restore_anchor(anchor)
        return True

    def toggle_entry_wrap(self, index: int, viewport: ViewportDimensions | None = None) -> bool:
        view = self.entry(index)
        if view is None:
            return False
        anchor = self._anchor_for_mutation(index, viewport)
        self._heights.update(index, view.toggle_wrap())
        self._restore_anchor(anchor)
        return True

    def set_all_expanded(self, expanded: bool) -> None:
        heights = [view.set_expanded(expanded) for view in self._views]
        self._heights = HeightIndex.from_heights(heights)

    def relayout(self, width: int, global_wrap: WrapMode, viewport_height: int | None = None) -> None:
        """Recompute every entry for a new width or global wrap, then rebuild the index."""
        anchor = None
        if viewport_height is not None and isinstance(self._scroll, AtLine):
            anchor = self._first_visible_anchor(viewport_height)
        self._width = width
        self._global_wrap = global_wrap
        heights = [view.relayout(width, global_wrap) for view in self._views]
        self._heights = HeightIndex.from_heights(heights)
        self._restore_anchor(anchor)
        logger.debug(
            "conversation %s: relayout width=%d wrap=%s total=%d",
            self.agent_id or "main",
            width,
            global_wrap.value,
            self._heights.total(),
        )

    def _first_visible_anchor(self, viewport_height: int) -> AtEntry | None:
        offset = self.resolved_scroll(viewport_height)
        first = self._heights.locate(offset)
        if first is None:
            return None
        return AtEntry(first, offset - self.entry_cumulative_y(first))

    def _anchor_for_mutation(self, index: int, viewport: ViewportDimensions | None) -> AtEntry | None:
        # Only free scroll can drift; Top, Bottom and AtEntry re-resolve correctly
        if viewport is None or not isinstance(self._scroll, AtLine):
            return None
        anchor = self._first_visible_anchor(viewport.height)
        if anchor is None or index >= anchor.entry_index:
            return None
        return anchor

    def _restore_anchor(self, anchor: AtEntry | None) -> None:
        if anchor is not None:
            self._scroll = anchor

    # ─── Scroll ───────────────────────────────────────────────────────────

    @property
    def scroll(self) -> ScrollPosition:
        return self._scroll

    def set_scroll(self, position: ScrollPosition) -> None:
        self._scroll = position

    def resolved_scroll(self, viewport_height: int) -> int:
        return self._scroll.resolve(self.total_height(), viewport_height, self.entry_cumulative_y)

    def scroll_by(self, delta: int, viewport_height: int) -> None:
        current = self.resolved_scroll(viewport_height)
        target = current + delta
        if delta > 0 and target >= max_scroll(self.total_height(), viewport_height):
            self._scroll = Bottom()
        elif target <= 0:
            self._scroll = Top()
        else:
            self._scroll = AtLine(target)

    def scroll_left(self, amount: int = 1) -> None:
        self.horizontal_offset = max(0, self.horizontal_offset - amount)

    def scroll_right(self, amount: int = 1) -> None:
        self.horizontal_offset += amount

    def is_at_bottom(self, viewport_height: int) -> bool:
        if isinstance(self._scroll, Bottom):
            return True
        return self.resolved_scroll(viewport_height) >= max_scroll(self.total_height(), viewport_height)

    # ─── Viewport queries ─────────────────────────────────────────────────

    def visible_range(self, viewport: ViewportDimensions) -> VisibleRange:
        """Entries intersecting the viewport; walks only the visible ones."""
        if not self._views or viewport.height <= 0:
            return EMPTY_RANGE
        offset = self.resolved_scroll(viewport.height)
        start = self._heights.locate(offset)
        if start is None:
            return VisibleRange(len(self._views), len(self._views), offset)
        covered = self.entry_cumulative_y(start) + self._heights.get(start) - offset
        end = start + 1
        n = len(self._views)
        while covered < viewport.height and end < n:
            covered += self._heights.get(end)
            end += 1
        return VisibleRange(start, end, offset)

    def hit_test(self, viewport_y: int, viewport_x: int, scroll_offset: int) -> HitTestResult:
        if viewport_y < 0 or viewport_x < 0:
            return Miss()
        absolute = scroll_offset + viewport_y
        index = self._heights.locate(absolute)
        if index is None:
            return Miss()
        return Hit(index, absolute - self.entry_cumulative_y(index), viewport_x)

    def line_at(self, absolute_line: int) -> tuple[int, int, Text] | None:
        """(entry index, line within entry, rendered line) at an absolute row."""
        index = self._heights.locate(absolute_line)
        if index is None:
            return None
        intra = absolute_line - self.entry_cumulative_y(index)
        return index, intra, self._views[index].lines[intra]

    def visible_lines(self, viewport: ViewportDimensions) -> list[tuple[int, int, Text]]:
        """Rendered rows covering the viewport, top to bottom."""
        rng = self.visible_range(viewport)
        rows: list[tuple[int, int, Text]] = []
        if rng.is_empty:
            return rows
        skip = rng.scroll_offset - self.entry_cumulative_y(rng.start_index)
        for index in rng.indices():
            lines = self._views[index].lines
            start = skip if index == rng.start_index else 0
            for intra in range(start, len(lines)):
                if len(rows) >= viewport.height:
                    return rows
                rows.append((index, intra, lines[intra]))
        return rows

    # ─── Invariants ───────────────────────────────────────────────────────

    def check_invariants(self) -> None:
        heights = [view.height for view in self._views]
        assert len(self._heights) == len(self._views), "index length drifted from entries"
        assert self._heights.heights() == heights, "height index drifted from rendered lines"
        assert self._heights.total() == sum(heights), "cached total drifted"
        running = 0
        for i, h in enumerate(heights):
            running += h
            assert self._heights.prefix_sum(i) == running, f"prefix sum drifted at {i}"

    def __repr__(self) -> str:
        return (
            f"ConversationViewState({self.agent_id or 'main'!r}, "
            f"entries={len(self._views)}, total={self.total_height()})"
        )
