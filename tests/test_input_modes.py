"""Tests for pure mode derivation and key lookup.

Verifies that MODE_KEYMAP routes keys correctly per mode and that the mode
follows the search state.
"""

from types import SimpleNamespace

import pytest

from cclv.state.key_action import Action, SelectTab
from cclv.state.search import Active, Inactive, SearchQuery, Typing
from cclv.tui.input_modes import FOOTER_KEYS, MODE_KEYMAP, InputMode, current_mode, lookup, mode_for


class TestModeFor:
    def test_inactive_is_normal(self):
        assert mode_for(Inactive()) is InputMode.NORMAL

    def test_typing_is_search_edit(self):
        assert mode_for(Typing("ab", 2)) is InputMode.SEARCH_EDIT

    def test_active_is_search_nav(self):
        assert mode_for(Active(SearchQuery("ab"))) is InputMode.SEARCH_NAV


class TestNormalMode:
    @pytest.mark.parametrize(
        "key, action",
        [
            ("j", Action.SCROLL_DOWN),
            ("down", Action.SCROLL_DOWN),
            ("k", Action.SCROLL_UP),
            ("G", Action.SCROLL_TO_BOTTOM),
            ("g", Action.SCROLL_TO_TOP),
            ("enter", Action.TOGGLE_EXPAND),
            ("tab", Action.NEXT_TAB),
            ("shift+tab", Action.PREV_TAB),
            ("f", Action.TOGGLE_AUTO_SCROLL),
            ("q", Action.QUIT),
            ("ctrl+c", Action.QUIT),
            ("s", Action.TOGGLE_STATS),
            ("m", Action.CYCLE_STATS_FILTER),
            ("S", Action.TOGGLE_SESSION_PICKER),
            ("question_mark", Action.TOGGLE_HELP),
        ],
    )
    def test_navigation_keys(self, key, action):
        assert lookup(InputMode.NORMAL, key) is action

    def test_digits_select_tabs(self):
        assert lookup(InputMode.NORMAL, "1") == SelectTab(1)
        assert lookup(InputMode.NORMAL, "9") == SelectTab(9)
        assert lookup(InputMode.NORMAL, "0") is None

    def test_falls_back_to_character(self):
        assert lookup(InputMode.NORMAL, "question_mark_key", "/") is Action.START_SEARCH

    def test_match_keys_inactive_outside_search(self):
        assert lookup(InputMode.NORMAL, "n") is None
        assert lookup(InputMode.NORMAL, "escape") is None


class TestSearchModes:
    def test_nav_adds_match_keys(self):
        assert lookup(InputMode.SEARCH_NAV, "n") is Action.NEXT_MATCH
        assert lookup(InputMode.SEARCH_NAV, "N") is Action.PREV_MATCH
        assert lookup(InputMode.SEARCH_NAV, "escape") is Action.CANCEL_SEARCH
        assert lookup(InputMode.SEARCH_NAV, "j") is Action.SCROLL_DOWN

    def test_edit_mode_only_maps_control_keys(self):
        assert lookup(InputMode.SEARCH_EDIT, "enter") is Action.SUBMIT_SEARCH
        assert lookup(InputMode.SEARCH_EDIT, "escape") is Action.CANCEL_SEARCH
        assert lookup(InputMode.SEARCH_EDIT, "j", "j") is None
        assert lookup(InputMode.SEARCH_EDIT, "q", "q") is None


class TestOverlayModes:
    def _state(self, search=Inactive(), help_visible=False, session_picker=None):
        return SimpleNamespace(search=search, help_visible=help_visible, session_picker=session_picker)

    def test_overlays_take_precedence_over_search(self):
        assert current_mode(self._state()) is InputMode.NORMAL
        assert current_mode(self._state(search=Typing("a", 1))) is InputMode.SEARCH_EDIT
        assert current_mode(self._state(search=Typing("a", 1), help_visible=True)) is InputMode.HELP
        assert current_mode(self._state(help_visible=True, session_picker=object())) is InputMode.SESSION_PICKER

    def test_help_keys(self):
        for key in ("escape", "question_mark", "q"):
            assert lookup(InputMode.HELP, key) is Action.TOGGLE_HELP
        assert lookup(InputMode.HELP, "j") is None
        assert lookup(InputMode.HELP, "ctrl+c") is Action.QUIT

    @pytest.mark.parametrize(
        "key, action",
        [
            ("k", Action.PICKER_PREV),
            ("down", Action.PICKER_NEXT),
            ("g", Action.PICKER_FIRST),
            ("end", Action.PICKER_LAST),
            ("enter", Action.PICKER_CONFIRM),
            ("escape", Action.TOGGLE_SESSION_PICKER),
            ("s", Action.TOGGLE_SESSION_PICKER),
        ],
    )
    def test_picker_keys(self, key, action):
        assert lookup(InputMode.SESSION_PICKER, key) is action

    def test_picker_swallows_scrolling(self):
        assert lookup(InputMode.SESSION_PICKER, "ctrl+d") is None
        assert lookup(InputMode.SESSION_PICKER, "q") is None


def test_every_mode_has_keymap_and_footer():
    for mode in InputMode:
        assert MODE_KEYMAP[mode]
        assert FOOTER_KEYS[mode]
