"""Tests for ConversationViewState layout, scroll and hit testing."""

import random

import pytest

from cclv.view_state.conversation import ConversationViewState
from cclv.view_state.scroll import AtEntry, AtLine, Bottom, Top
from cclv.view_state.types import Hit, Miss, ViewportDimensions, WrapMode
from tests.harness import lines_text, make_conversation, make_entry, make_renderer, two_line_renderer

VIEWPORT = ViewportDimensions(80, 5)


class TestHeights:
    def test_five_collapsed_entries_then_expand_the_second(self):
        conv = make_conversation(5)
        assert conv.total_height() == 10

        conv.toggle_entry_expanded(1)

        assert conv.total_height() == 14
        assert conv.entry_cumulative_y(2) == 8
        assert [conv.entry_height(i) for i in range(5)] == [2, 6, 2, 2, 2]
        conv.check_invariants()

    def test_cumulative_y(self):
        conv = make_conversation(3)
        assert [conv.entry_cumulative_y(i) for i in range(3)] == [0, 2, 4]
        assert conv.entry_cumulative_y(3) is None
        assert conv.entry_cumulative_y(-1) is None

    def test_append_extends_index(self):
        conv = make_conversation(2)
        added = conv.append([make_entry("x", lines_text(2))])
        assert added == 1
        assert len(conv) == 3
        assert conv.total_height() == 2 + 2 + 3
        conv.check_invariants()

    def test_toggle_twice_is_identity(self):
        conv = make_conversation(4)
        before = conv.height_index.heights()
        conv.toggle_entry_expanded(2)
        conv.toggle_entry_expanded(2)
        assert conv.height_index.heights() == before

    def test_set_all_expanded(self):
        conv = make_conversation(4)
        conv.set_all_expanded(True)
        assert conv.total_height() == 24
        conv.set_all_expanded(False)
        assert conv.total_height() == 8
        conv.check_invariants()

    def test_relayout_rebuilds(self):
        renderer = make_renderer()
        conv = ConversationViewState(None, renderer, 102, WrapMode.WRAP, [make_entry("a", "z" * 100)])
        assert conv.total_height() == 2
        conv.relayout(52, WrapMode.WRAP)
        assert conv.total_height() == 3
        conv.relayout(52, WrapMode.NO_WRAP)
        assert conv.total_height() == 2
        conv.check_invariants()

    def test_wrap_override_updates_single_entry(self):
        conv = ConversationViewState(
            None,
            make_renderer(),
            22,
            WrapMode.WRAP,
            [make_entry("a", "z" * 100), make_entry("b", "z" * 100)],
        )
        assert conv.total_height() == 12
        conv.set_entry_wrap_override(0, WrapMode.NO_WRAP)
        assert conv.total_height() == 8
        conv.toggle_entry_wrap(0)
        assert conv.total_height() == 12

    def test_index_of(self):
        conv = make_conversation(3)
        assert conv.index_of("u2") == 2
        assert conv.index_of("missing") is None


class TestOutOfRange:
    @pytest.mark.parametrize("index", [-1, 5, 100])
    def test_mutations_are_noops(self, index):
        conv = make_conversation(5)
        assert conv.toggle_entry_expanded(index) is False
        assert conv.set_entry_wrap_override(index, WrapMode.NO_WRAP) is False
        assert conv.total_height() == 10

    def test_empty_conversation_queries(self):
        conv = ConversationViewState(None, two_line_renderer())
        assert conv.total_height() == 0
        assert conv.visible_range(VIEWPORT).is_empty
        assert conv.hit_test(0, 0, 0) == Miss()
        assert conv.visible_lines(VIEWPORT) == []

    def test_zero_height_viewport(self):
        conv = make_conversation(3)
        assert conv.visible_range(ViewportDimensions(80, 0)).is_empty


class TestScroll:
    def test_default_is_top(self):
        conv = make_conversation(10)
        assert conv.scroll == Top()
        assert conv.resolved_scroll(5) == 0

    def test_scroll_by_clamps_and_pins_bottom(self):
        conv = make_conversation(10)
        conv.scroll_by(3, 5)
        assert conv.scroll == AtLine(3)
        conv.scroll_by(100, 5)
        assert conv.scroll == Bottom()
        assert conv.resolved_scroll(5) == 15
        conv.scroll_by(-100, 5)
        assert conv.scroll == Top()

    def test_bottom_follows_appends(self):
        conv = make_conversation(10)
        conv.set_scroll(Bottom())
        conv.append([make_entry("new", lines_text(5))])
        assert conv.resolved_scroll(5) == 22 - 5

    def test_is_at_bottom(self):
        conv = make_conversation(10)
        assert not conv.is_at_bottom(5)
        conv.set_scroll(AtLine(15))
        assert conv.is_at_bottom(5)

    def test_horizontal_scroll_never_negative(self):
        conv = make_conversation(1)
        conv.scroll_right(4)
        conv.scroll_left(10)
        assert conv.horizontal_offset == 0

    def test_expanding_above_viewport_keeps_visible_content_still(self):
        conv = make_conversation(10)
        conv.set_scroll(AtLine(7))
        first_row = conv.visible_lines(VIEWPORT)[0]

        conv.toggle_entry_expanded(0, VIEWPORT)

        assert conv.scroll == AtEntry(3, 1)
        assert conv.visible_lines(VIEWPORT)[0][:2] == first_row[:2]

    def test_expanding_visible_entry_does_not_reanchor(self):
        conv = make_conversation(10)
        conv.set_scroll(AtLine(6))
        conv.toggle_entry_expanded(3, VIEWPORT)
        assert conv.scroll == AtLine(6)


class TestViewport:
    def test_visible_range_covers_viewport(self):
        conv = make_conversation(10)
        conv.set_scroll(AtLine(3))
        rng = conv.visible_range(VIEWPORT)
        # rows 3..7 span entries 1 (rows 2-3), 2 (4-5), 3 (6-7)
        assert (rng.start_index, rng.end_index, rng.scroll_offset) == (1, 4, 3)

    def test_visible_range_at_end(self):
        conv = make_conversation(3)
        conv.set_scroll(Bottom())
        rng = conv.visible_range(ViewportDimensions(80, 20))
        assert (rng.start_index, rng.end_index) == (0, 3)

    def test_visible_lines_fill_viewport_in_order(self):
        conv = make_conversation(10)
        conv.set_scroll(AtLine(3))
        rows = conv.visible_lines(VIEWPORT)
        assert [(i, intra) for i, intra, _ in rows] == [(1, 1), (2, 0), (2, 1), (3, 0), (3, 1)]

    def test_hit_test(self):
        conv = make_conversation(5)
        conv.toggle_entry_expanded(1)
        assert conv.hit_test(0, 4, 0) == Hit(0, 0, 4)
        assert conv.hit_test(3, 0, 0) == Hit(1, 1, 0)
        assert conv.hit_test(1, 0, 7) == Hit(2, 0, 0)
        assert conv.hit_test(20, 0, 0) == Miss()
        assert conv.hit_test(-1, 0, 0) == Miss()

    def test_line_at(self):
        conv = make_conversation(2)
        index, intra, text = conv.line_at(1)
        assert (index, intra, text.plain) == (0, 1, "")
        assert conv.line_at(4) is None


def test_scroll_and_hit_test_agree():
    conv = make_conversation(40)
    rng = random.Random(7)
    for i in rng.sample(range(40), 10):
        conv.toggle_entry_expanded(i)
    for _ in range(100):
        offset = rng.randrange(conv.total_height())
        for i in range(len(conv)):
            row = conv.entry_cumulative_y(i) - offset
            if 0 <= row < 30:
                result = conv.hit_test(row, 0, offset)
                assert isinstance(result, Hit)
                assert result.entry_index == i
                assert result.line_in_entry == 0


def test_random_mutations_keep_invariants():
    rng = random.Random(2024)
    renderer = make_renderer(collapse_threshold=3, summary_lines=1)
    conv = ConversationViewState(None, renderer, 40, WrapMode.WRAP)
    for step in range(300):
        op = rng.choice(["append", "toggle", "wrap", "relayout", "all"])
        if op == "append" or not len(conv):
            text = "\n".join("w" * rng.randint(0, 90) for _ in range(rng.randint(0, 8)))
            conv.append([make_entry(f"e{step}", text)])
        elif op == "toggle":
            conv.toggle_entry_expanded(rng.randrange(len(conv)), ViewportDimensions(40, 10))
        elif op == "wrap":
            conv.toggle_entry_wrap(rng.randrange(len(conv)))
        elif op == "relayout":
            conv.relayout(rng.randint(10, 120), rng.choice(list(WrapMode)))
        else:
            conv.set_all_expanded(rng.random() < 0.5)
        conv.check_invariants()
        assert conv.total_height() == sum(view.height for view in conv.entries())
