"""Bounded LRU of rendered entry lines.

The key carries every input that changes an entry's rendering, so entries
never need explicit invalidation: a width change or toggle simply misses.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from rich.text import Text
from textual.cache import LRUCache

from cclv.view_state.types import WrapMode

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


class RenderKey(NamedTuple):
    identity: str
    width: int
    expanded: bool
    wrap_mode: WrapMode
    # position-dependent decorations: gutter number and Initial Prompt label
    entry_index: int | None = None
    is_subagent_view: bool = False


class RenderCache:
    """LRU keyed on RenderKey. get() promotes; put() evicts the oldest at capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        # 0 means "use the default", never "disable"
        self._capacity = capacity if capacity > 0 else DEFAULT_CAPACITY
        self._lru: LRUCache[RenderKey, tuple[Text, ...]] = LRUCache(self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: RenderKey) -> tuple[Text, ...] | None:
        return self._lru.get(key)

    def put(self, key: RenderKey, lines: tuple[Text, ...]) -> None:
        self._lru.set(key, lines)

    def __contains__(self, key: object) -> bool:
        return key in self._lru

    def __len__(self) -> int:
        return len(self._lru)

    def clear(self) -> None:
        logger.debug("render cache cleared (%d entries)", len(self._lru))
        self._lru.clear()

    @property
    def hits(self) -> int:
        return self._lru.hits

    @property
    def misses(self) -> int:
        return self._lru.misses
