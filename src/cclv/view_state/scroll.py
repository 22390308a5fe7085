"""Scroll positions and their resolution to absolute line offsets.

AtEntry anchors survive content mutation above the viewport (expand,
collapse, relayout). AtLine is what free scrolling produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

CumulativeY = Callable[[int], "int | None"]


def max_scroll(total_height: int, viewport_height: int) -> int:
    return max(0, total_height - viewport_height)


def _clamp(line: int, total_height: int, viewport_height: int) -> int:
    return min(max(line, 0), max_scroll(total_height, viewport_height))


class ScrollPosition:
    """Base for the four anchor kinds. Subclasses are frozen dataclasses."""

    def resolve(self, total_height: int, viewport_height: int, cumulative_y: CumulativeY) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class Top(ScrollPosition):
    def resolve(self, total_height, viewport_height, cumulative_y) -> int:
        return 0


@dataclass(frozen=True)
class Bottom(ScrollPosition):
    def resolve(self, total_height, viewport_height, cumulative_y) -> int:
        return max_scroll(total_height, viewport_height)


@dataclass(frozen=True)
class AtLine(ScrollPosition):
    line: int

    def resolve(self, total_height, viewport_height, cumulative_y) -> int:
        return _clamp(self.line, total_height, viewport_height)


@dataclass(frozen=True)
class AtEntry(ScrollPosition):
    entry_index: int
    line_in_entry: int = 0

    def resolve(self, total_height, viewport_height, cumulative_y) -> int:
        start = cumulative_y(self.entry_index)
        if start is None:
            return 0
        return _clamp(start + self.line_in_entry, total_height, viewport_height)
