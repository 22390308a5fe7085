"""Value types shared by the layout and scroll engine.

LineHeight, LineOffset and EntryIndex are plain ints. Heights are always
>= MIN_LINE_HEIGHT for any entry that occupies a slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union

MIN_LINE_HEIGHT = 1


class WrapMode(Enum):
    WRAP = "wrap"
    NO_WRAP = "nowrap"

    def toggled(self) -> WrapMode:
        return WrapMode.NO_WRAP if self is WrapMode.WRAP else WrapMode.WRAP


class ViewportDimensions(NamedTuple):
    width: int
    height: int


@dataclass(frozen=True)
class VisibleRange:
    """Entries [start_index, end_index) intersecting the viewport.

    scroll_offset is the resolved absolute line at the top of the viewport.
    """

    start_index: int
    end_index: int
    scroll_offset: int

    @property
    def is_empty(self) -> bool:
        return self.end_index <= self.start_index

    def indices(self) -> range:
        return range(self.start_index, self.end_index)

    def __len__(self) -> int:
        return max(0, self.end_index - self.start_index)


EMPTY_RANGE = VisibleRange(0, 0, 0)


# ─── Hit testing ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Hit:
    entry_index: int
    line_in_entry: int
    column: int


@dataclass(frozen=True)
class Miss:
    pass


HitTestResult = Union[Hit, Miss]
