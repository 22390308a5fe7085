"""Fenwick tree over per-entry rendered heights.

The tree is a flat 1-based int list. Each slot i covers the heights of
entries (i - lowbit(i), i]. The raw heights are kept alongside so get() and
update() do not need a range query.

// [LAW:single-enforcer] This is the only place cumulative heights are
// computed. Scroll resolution and hit testing both go through it so they
// cannot disagree about where an entry starts.
"""

from __future__ import annotations

from typing import Iterable

from cclv.view_state.types import MIN_LINE_HEIGHT


def _lowbit(i: int) -> int:
    return i & -i


class HeightIndex:
    """Prefix sums of entry heights with O(log n) update, query and locate."""

    __slots__ = ("_tree", "_heights", "_total")

    def __init__(self, count: int = 0):
        self._tree: list[int] = [0]
        self._heights: list[int] = []
        self._total = 0
        if count:
            self._build([MIN_LINE_HEIGHT] * count)

    @classmethod
    def from_heights(cls, heights: Iterable[int]) -> HeightIndex:
        """O(n) bulk build."""
        index = cls()
        index._build(list(heights))
        return index

    def _build(self, heights: list[int]) -> None:
        for h in heights:
            _check_height(h)
        n = len(heights)
        tree = [0] * (n + 1)
        for i in range(1, n + 1):
            tree[i] += heights[i - 1]
            parent = i + _lowbit(i)
            if parent <= n:
                tree[parent] += tree[i]
        self._tree = tree
        self._heights = heights
        self._total = sum(heights)

    # ─── Queries ──────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._heights)

    def total(self) -> int:
        return self._total

    def get(self, index: int) -> int:
        self._check_index(index)
        return self._heights[index]

    def prefix_sum(self, index: int) -> int:
        """Sum of heights[0..index] inclusive."""
        self._check_index(index)
        return self._prefix(index + 1)

    def _prefix(self, count: int) -> int:
        # sum of the first `count` heights
        tree = self._tree
        acc = 0
        i = count
        while i > 0:
            acc += tree[i]
            i -= _lowbit(i)
        return acc

    def locate(self, offset: int) -> int | None:
        """Smallest index whose prefix_sum exceeds offset, or None past the end."""
        n = len(self._heights)
        if n == 0 or offset < 0 or offset >= self._total:
            return None
        tree = self._tree
        pos = 0
        remaining = offset
        step = 1 << (n.bit_length() - 1)
        while step:
            nxt = pos + step
            if nxt <= n and tree[nxt] <= remaining:
                pos = nxt
                remaining -= tree[nxt]
            step >>= 1
        # pos is the count of entries whose cumulative height is <= offset
        return pos

    # ─── Mutation ─────────────────────────────────────────────────────────

    def update(self, index: int, height: int) -> None:
        self._check_index(index)
        _check_height(height)
        delta = height - self._heights[index]
        if delta == 0:
            return
        self._heights[index] = height
        self._total += delta
        tree = self._tree
        n = len(self._heights)
        i = index + 1
        while i <= n:
            tree[i] += delta
            i += _lowbit(i)

    def push(self, height: int) -> None:
        """Append one entry. Slot i needs the sum of heights (i - lowbit(i), i]."""
        _check_height(height)
        i = len(self._heights) + 1
        covered = self._prefix(i - 1) - self._prefix(i - _lowbit(i))
        self._heights.append(height)
        self._tree.append(height + covered)
        self._total += height

    def extend(self, heights: Iterable[int]) -> None:
        for h in heights:
            self.push(h)

    def clear(self) -> None:
        self._tree = [0]
        self._heights = []
        self._total = 0

    def heights(self) -> list[int]:
        return list(self._heights)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._heights):
            raise IndexError(f"height index {index} out of range (len={len(self._heights)})")

    def __repr__(self) -> str:
        return f"HeightIndex(len={len(self._heights)}, total={self._total})"


def _check_height(height: int) -> None:
    if height < MIN_LINE_HEIGHT:
        raise ValueError(f"line height must be >= {MIN_LINE_HEIGHT}, got {height}")
