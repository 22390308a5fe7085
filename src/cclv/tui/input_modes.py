"""Mode-based key dispatch tables.

All keyboard input routes through CclvApp.on_key, which looks keys up here.
Textual BINDINGS are not used.

Keys are Textual key names (event.key). Printable keys whose names differ
from their characters are listed under both, so lookups can use either.
"""

from __future__ import annotations

from enum import Enum, auto

import cclv.state.search as search
from cclv.state.key_action import Action, KeyAction, SelectTab


class InputMode(Enum):
    NORMAL = auto()
    SEARCH_EDIT = auto()
    SEARCH_NAV = auto()
    HELP = auto()
    SESSION_PICKER = auto()


def mode_for(state: search.SearchState) -> InputMode:
    """Input mode is derived from search state, never stored separately."""
    if isinstance(state, search.Typing):
        return InputMode.SEARCH_EDIT
    if isinstance(state, search.Active):
        return InputMode.SEARCH_NAV
    return InputMode.NORMAL


def current_mode(state) -> InputMode:
    """Mode for an AppState: an open overlay takes every key, then search."""
    if state.session_picker is not None:
        return InputMode.SESSION_PICKER
    if state.help_visible:
        return InputMode.HELP
    return mode_for(state.search)


_NAVIGATION: dict[str, KeyAction] = {
    "j": Action.SCROLL_DOWN,
    "down": Action.SCROLL_DOWN,
    "k": Action.SCROLL_UP,
    "up": Action.SCROLL_UP,
    "h": Action.SCROLL_LEFT,
    "left": Action.SCROLL_LEFT,
    "l": Action.SCROLL_RIGHT,
    "right": Action.SCROLL_RIGHT,
    "pagedown": Action.PAGE_DOWN,
    "ctrl+d": Action.PAGE_DOWN,
    "space": Action.PAGE_DOWN,
    "pageup": Action.PAGE_UP,
    "ctrl+u": Action.PAGE_UP,
    "g": Action.SCROLL_TO_TOP,
    "home": Action.SCROLL_TO_TOP,
    "G": Action.SCROLL_TO_BOTTOM,
    "end": Action.SCROLL_TO_BOTTOM,
    "enter": Action.TOGGLE_EXPAND,
    "e": Action.EXPAND_ALL,
    "E": Action.COLLAPSE_ALL,
    "w": Action.TOGGLE_WRAP,
    "W": Action.TOGGLE_GLOBAL_WRAP,
    "J": Action.NEXT_ENTRY,
    "K": Action.PREV_ENTRY,
    "tab": Action.NEXT_TAB,
    "]": Action.NEXT_TAB,
    "right_square_bracket": Action.NEXT_TAB,
    "shift+tab": Action.PREV_TAB,
    "[": Action.PREV_TAB,
    "left_square_bracket": Action.PREV_TAB,
    "}": Action.NEXT_SESSION,
    "right_curly_bracket": Action.NEXT_SESSION,
    "{": Action.PREV_SESSION,
    "left_curly_bracket": Action.PREV_SESSION,
    "f": Action.TOGGLE_AUTO_SCROLL,
    "s": Action.TOGGLE_STATS,
    "m": Action.CYCLE_STATS_FILTER,
    "S": Action.TOGGLE_SESSION_PICKER,
    "?": Action.TOGGLE_HELP,
    "question_mark": Action.TOGGLE_HELP,
    "/": Action.START_SEARCH,
    "slash": Action.START_SEARCH,
    "q": Action.QUIT,
    "ctrl+c": Action.QUIT,
}

_TAB_NUMBERS: dict[str, KeyAction] = {str(n): SelectTab(n) for n in range(1, 10)}


# [LAW:one-source-of-truth] Key → intent mapping per mode.
# SEARCH_EDIT only lists control keys; printable keys are typed into the query.
MODE_KEYMAP: dict[InputMode, dict[str, KeyAction]] = {
    InputMode.NORMAL: {**_NAVIGATION, **_TAB_NUMBERS},
    InputMode.SEARCH_NAV: {
        **_NAVIGATION,
        **_TAB_NUMBERS,
        "n": Action.NEXT_MATCH,
        "N": Action.PREV_MATCH,
        "escape": Action.CANCEL_SEARCH,
    },
    InputMode.SEARCH_EDIT: {
        "enter": Action.SUBMIT_SEARCH,
        "escape": Action.CANCEL_SEARCH,
        "ctrl+c": Action.QUIT,
    },
    InputMode.HELP: {
        "?": Action.TOGGLE_HELP,
        "question_mark": Action.TOGGLE_HELP,
        "escape": Action.TOGGLE_HELP,
        "q": Action.TOGGLE_HELP,
        "ctrl+c": Action.QUIT,
    },
    InputMode.SESSION_PICKER: {
        "k": Action.PICKER_PREV,
        "up": Action.PICKER_PREV,
        "j": Action.PICKER_NEXT,
        "down": Action.PICKER_NEXT,
        "g": Action.PICKER_FIRST,
        "home": Action.PICKER_FIRST,
        "G": Action.PICKER_LAST,
        "end": Action.PICKER_LAST,
        "enter": Action.PICKER_CONFIRM,
        "escape": Action.TOGGLE_SESSION_PICKER,
        "S": Action.TOGGLE_SESSION_PICKER,
        "s": Action.TOGGLE_SESSION_PICKER,
        "ctrl+c": Action.QUIT,
    },
}


def lookup(mode: InputMode, key: str, character: str | None = None) -> KeyAction | None:
    keymap = MODE_KEYMAP[mode]
    action = keymap.get(key)
    if action is None and character:
        action = keymap.get(character)
    return action


# [LAW:one-source-of-truth] Footer hints per mode.
FOOTER_KEYS: dict[InputMode, list[tuple[str, str]]] = {
    InputMode.NORMAL: [
        ("j/k", "scroll"),
        ("g/G", "top/bottom"),
        ("enter", "expand"),
        ("e/E", "all"),
        ("w/W", "wrap"),
        ("tab", "tab"),
        ("{}", "session"),
        ("f", "follow"),
        ("/", "search"),
        ("?", "help"),
        ("q", "quit"),
    ],
    InputMode.SEARCH_EDIT: [
        ("enter", "search"),
        ("esc", "cancel"),
        ("←/→", "cursor"),
    ],
    InputMode.SEARCH_NAV: [
        ("n/N", "next/prev"),
        ("/", "new search"),
        ("esc", "done"),
        ("j/k", "scroll"),
    ],
    InputMode.HELP: [
        ("?/esc", "close help"),
    ],
    InputMode.SESSION_PICKER: [
        ("j/k", "move"),
        ("enter", "view"),
        ("esc", "cancel"),
    ],
}


# [LAW:one-source-of-truth] Help overlay content, grouped.
KEY_GROUPS: list[tuple[str, list[tuple[str, str]]]] = [
    ("Scroll", [
        ("j/k", "Line down / up"),
        ("h/l", "Column left / right"),
        ("^D/^U", "Page down / up"),
        ("g/G", "Top / bottom"),
        ("J/K", "Next / prev entry"),
    ]),
    ("Entries", [
        ("enter", "Expand / collapse"),
        ("e/E", "Expand / collapse all"),
        ("w/W", "Wrap entry / all"),
    ]),
    ("Conversations", [
        ("tab/[]", "Next / prev tab"),
        ("1-9", "Jump to tab"),
        ("{/}", "Prev / next session"),
        ("S", "Session list"),
        ("f", "Follow mode"),
    ]),
    ("Search", [
        ("/", "Search"),
        ("n/N", "Next / prev match"),
        ("esc", "End search"),
    ]),
    ("Panels", [
        ("s", "Statistics"),
        ("m", "Stats scope"),
        ("?", "This help"),
        ("q", "Quit"),
    ]),
]
