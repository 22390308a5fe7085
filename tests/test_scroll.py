"""Tests for scroll position resolution."""

import pytest

from cclv.view_state.scroll import AtEntry, AtLine, Bottom, Top


def _cumulative(heights):
    def lookup(index):
        if not 0 <= index < len(heights):
            return None
        return sum(heights[:index])

    return lookup


NO_ENTRIES = _cumulative([])


def test_top_is_zero():
    assert Top().resolve(100, 20, NO_ENTRIES) == 0


def test_bottom_on_100_lines_with_20_row_viewport():
    assert Bottom().resolve(100, 20, NO_ENTRIES) == 80


def test_bottom_when_content_fits():
    assert Bottom().resolve(10, 20, NO_ENTRIES) == 0


@pytest.mark.parametrize("line", [80, 81, 500])
def test_at_line_clamps_to_max(line):
    assert AtLine(line).resolve(100, 20, NO_ENTRIES) == 80


@pytest.mark.parametrize("line", [0, -1, -50])
def test_at_line_clamps_to_zero(line):
    assert AtLine(line).resolve(100, 20, NO_ENTRIES) == 0


def test_at_line_within_range():
    assert AtLine(37).resolve(100, 20, NO_ENTRIES) == 37


def test_at_entry_uses_cumulative_height():
    lookup = _cumulative([2, 6, 2, 2, 2])
    assert AtEntry(2).resolve(14, 5, lookup) == 8
    assert AtEntry(2, 1).resolve(14, 5, lookup) == 9


def test_at_entry_clamps():
    lookup = _cumulative([2, 6, 2, 2, 2])
    assert AtEntry(4, 1).resolve(14, 5, lookup) == 9


def test_at_entry_unknown_index_resolves_to_zero():
    assert AtEntry(99).resolve(14, 5, _cumulative([2, 2])) == 0


def test_zero_viewport_never_negative():
    assert Bottom().resolve(0, 0, NO_ENTRIES) == 0
    assert AtLine(-3).resolve(0, 0, NO_ENTRIES) == 0


def test_positions_are_values():
    assert AtEntry(3, 1) == AtEntry(3, 1)
    assert Top() == Top()
    assert Top() != Bottom()
