"""User intents, independent of the keys that produce them.

Key strings map to these in cclv.tui.input_modes. AppState consumes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union


class Action(Enum):
    SCROLL_UP = auto()
    SCROLL_DOWN = auto()
    SCROLL_LEFT = auto()
    SCROLL_RIGHT = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    SCROLL_TO_TOP = auto()
    SCROLL_TO_BOTTOM = auto()

    TOGGLE_EXPAND = auto()
    EXPAND_ALL = auto()
    COLLAPSE_ALL = auto()
    TOGGLE_WRAP = auto()
    TOGGLE_GLOBAL_WRAP = auto()

    NEXT_TAB = auto()
    PREV_TAB = auto()

    START_SEARCH = auto()
    SUBMIT_SEARCH = auto()
    CANCEL_SEARCH = auto()
    NEXT_MATCH = auto()
    PREV_MATCH = auto()

    NEXT_ENTRY = auto()
    PREV_ENTRY = auto()
    TOGGLE_AUTO_SCROLL = auto()
    NEXT_SESSION = auto()
    PREV_SESSION = auto()

    TOGGLE_STATS = auto()
    CYCLE_STATS_FILTER = auto()
    TOGGLE_HELP = auto()

    TOGGLE_SESSION_PICKER = auto()
    PICKER_PREV = auto()
    PICKER_NEXT = auto()
    PICKER_FIRST = auto()
    PICKER_LAST = auto()
    PICKER_CONFIRM = auto()

    QUIT = auto()


@dataclass(frozen=True)
class SelectTab:
    """Jump to tab `number`, 1-based (1 is the main conversation)."""

    number: int


KeyAction = Union[Action, SelectTab]
