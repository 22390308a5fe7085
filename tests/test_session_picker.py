"""Tests for the session picker: clamped movement, scrolling and row summaries."""

from datetime import datetime, timezone

from cclv.state.session_picker import SessionPicker, SessionSummary, summarize
from cclv.view_state.log import LogViewState
from tests.harness import make_entry, make_renderer


class TestMovement:
    def test_prev_clamps_at_first(self):
        picker = SessionPicker()
        picker.select_prev()
        assert picker.selected == 0

    def test_next_clamps_at_last(self):
        picker = SessionPicker(selected=1)
        picker.select_next(3)
        picker.select_next(3)
        picker.select_next(3)
        assert picker.selected == 2

    def test_first_and_last(self):
        picker = SessionPicker(selected=2)
        picker.select_first()
        assert picker.selected == 0
        picker.select_last(5)
        assert picker.selected == 4

    def test_empty_list_never_moves(self):
        picker = SessionPicker()
        picker.select_next(0)
        picker.select_last(0)
        assert picker.selected == 0
        assert picker.selected_index(0) is None

    def test_selected_index_in_range(self):
        assert SessionPicker(selected=1).selected_index(2) == 1
        assert SessionPicker(selected=3).selected_index(2) is None


class TestAdjustScroll:
    def test_scrolls_down_to_keep_selection_visible(self):
        picker = SessionPicker(selected=7)
        picker.adjust_scroll(5)
        assert picker.scroll_offset == 3

    def test_scrolls_up_to_selection(self):
        picker = SessionPicker(selected=2, scroll_offset=6)
        picker.adjust_scroll(5)
        assert picker.scroll_offset == 2

    def test_visible_selection_leaves_offset(self):
        picker = SessionPicker(selected=4, scroll_offset=2)
        picker.adjust_scroll(5)
        assert picker.scroll_offset == 2

    def test_zero_rows_is_ignored(self):
        picker = SessionPicker(selected=4)
        picker.adjust_scroll(0)
        assert picker.scroll_offset == 0


def test_display_line():
    start = datetime(2025, 12, 25, 10, 42, tzinfo=timezone.utc)
    assert SessionSummary(1, "s2", 14, 3, start).display_line() == "Session 2: 14 messages, 3 subagents (10:42)"
    assert SessionSummary(0, "s1", 1, 0).display_line() == "Session 1: 1 messages, 0 subagents"


def test_summarize_counts_main_entries_and_subagents():
    log = LogViewState(make_renderer())
    log.add_entries(
        [
            make_entry("a", session_id="s1", timestamp="2025-12-25T09:15:00Z"),
            make_entry("b", session_id="s1"),
            make_entry("x", session_id="s1", agent_id="agent-a"),
            make_entry("y", session_id="s1", agent_id="agent-b"),
            make_entry("c", session_id="s2", timestamp=None),
        ]
    )
    summaries = summarize(log)
    assert [(s.index, s.session_id, s.message_count, s.subagent_count) for s in summaries] == [
        (0, "s1", 2, 2),
        (1, "s2", 1, 0),
    ]
    assert summaries[0].start_time.hour == 9
    assert summaries[1].start_time is None
