"""Tests for entry rendering: collapse, wrap, gutter and placeholders."""

from cclv.core.parser import parse_entry_graceful
from cclv.view_state.renderer import (
    EntryRenderer,
    RenderConfig,
    compute_entry_lines,
    content_width,
    wrap_lines,
)
from cclv.view_state.types import WrapMode
from tests.harness import lines_text, make_entry, make_renderer, plain


def _render(entry, *, expanded=False, wrap=WrapMode.WRAP, width=80, config=None, **kwargs):
    return plain(
        compute_entry_lines(
            entry,
            expanded=expanded,
            wrap_mode=wrap,
            width=width,
            config=config or RenderConfig(),
            **kwargs,
        )
    )


class TestWrapLines:
    def test_chunks_by_width(self):
        assert wrap_lines(["abcdefg"], WrapMode.WRAP, 3) == ["abc", "def", "g"]

    def test_empty_lines_survive(self):
        assert wrap_lines(["", "ab"], WrapMode.WRAP, 5) == ["", "ab"]

    def test_no_wrap_keeps_source_lines(self):
        assert wrap_lines(["abcdefg"], WrapMode.NO_WRAP, 3) == ["abcdefg"]

    def test_width_floor_is_one(self):
        assert wrap_lines(["ab"], WrapMode.WRAP, 0) == ["a", "b"]


class TestCollapse:
    def test_short_block_is_shown_whole_plus_separator(self):
        rows = _render(make_entry("u", lines_text(3)))
        assert rows == ["line 0", "line 1", "line 2", ""]

    def test_long_block_collapses_to_summary(self):
        rows = _render(make_entry("u", lines_text(12)))
        assert rows == ["line 0", "line 1", "line 2", "(+9 more lines)", ""]

    def test_expanded_shows_everything(self):
        rows = _render(make_entry("u", lines_text(12)), expanded=True)
        assert len(rows) == 13
        assert rows[-2] == "line 11"

    def test_threshold_is_exclusive(self):
        config = RenderConfig(collapse_threshold=4, summary_lines=0)
        assert _render(make_entry("u", lines_text(4)), config=config) == [
            "line 0",
            "line 1",
            "line 2",
            "line 3",
            "",
        ]
        assert _render(make_entry("u", lines_text(5)), config=config) == ["(+5 more lines)", ""]

    def test_each_block_collapses_independently(self):
        blocks = [
            {"type": "text", "text": lines_text(12, "a")},
            {"type": "text", "text": "short"},
        ]
        rows = _render(make_entry("u", blocks, role="assistant"))
        assert rows == ["a 0", "a 1", "a 2", "(+9 more lines)", "short", ""]


class TestBlocks:
    def test_tool_use_header_and_indented_json(self):
        blocks = [{"type": "tool_use", "id": "t", "name": "Bash", "input": {"command": "ls"}}]
        rows = _render(make_entry("u", blocks, role="assistant"))
        assert rows[0] == "🔧 Tool: Bash"
        assert rows[1:4] == ["  {", '    "command": "ls"', "  }"]
        assert rows[-1] == ""

    def test_tool_error_is_red(self):
        blocks = [{"type": "tool_result", "tool_use_id": "t", "content": "boom", "is_error": True}]
        lines = compute_entry_lines(
            make_entry("u", blocks),
            expanded=False,
            wrap_mode=WrapMode.WRAP,
            width=80,
            config=RenderConfig(),
        )
        assert lines[0].plain == "boom"
        assert lines[0].style.color.name == "red"

    def test_thinking_is_italic_dim(self):
        blocks = [{"type": "thinking", "thinking": "pondering"}]
        lines = compute_entry_lines(
            make_entry("u", blocks, role="assistant"),
            expanded=False,
            wrap_mode=WrapMode.WRAP,
            width=80,
            config=RenderConfig(),
        )
        assert lines[0].style.italic
        assert lines[0].style.dim


class TestDecorations:
    def test_gutter_is_one_based_and_skips_separator(self):
        config = RenderConfig(show_entry_index=True)
        rows = _render(make_entry("u", "hi\nthere"), config=config, entry_index=0)
        assert rows == ["   1│hi", "   1│there", ""]

    def test_initial_prompt_label_on_first_subagent_entry(self):
        rows = _render(make_entry("u", "task"), entry_index=0, is_subagent_view=True)
        assert rows == ["🔷 Initial Prompt", "task", ""]
        rows = _render(make_entry("u", "task"), entry_index=1, is_subagent_view=True)
        assert rows == ["task", ""]

    def test_wrap_width_accounts_for_border_and_gutter(self):
        config = RenderConfig(show_entry_index=True)
        assert content_width(20, config) == 13
        rows = _render(make_entry("u", "x" * 20), config=config, width=20, entry_index=4)
        assert rows == ["   5│" + "x" * 13, "   5│" + "x" * 7, ""]

    def test_no_wrap_keeps_long_line(self):
        rows = _render(make_entry("u", "y" * 200), wrap=WrapMode.NO_WRAP, width=20)
        assert rows == ["y" * 200, ""]


def test_malformed_entry_is_one_row_regardless_of_flags():
    entry = parse_entry_graceful("{not json", 7)
    for expanded in (False, True):
        for wrap in WrapMode:
            rows = _render(entry, expanded=expanded, wrap=wrap, width=10)
            assert len(rows) == 1
            assert "line 7" in rows[0]


def test_empty_message_still_has_separator_row():
    assert _render(make_entry("u", "")) == [""]


class TestEntryRenderer:
    def test_second_render_comes_from_cache(self):
        renderer = make_renderer()
        entry = make_entry("u", "hello")
        first = renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80)
        second = renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80)
        assert first is second
        assert renderer.cache.hits == 1

    def test_key_includes_every_render_input(self):
        renderer = EntryRenderer()
        entry = make_entry("u", lines_text(30))
        renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80)
        renderer.render(entry, expanded=True, wrap_mode=WrapMode.WRAP, width=80)
        renderer.render(entry, expanded=False, wrap_mode=WrapMode.NO_WRAP, width=80)
        renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=40)
        assert len(renderer.cache) == 4

    def test_same_identity_at_another_index_gets_its_own_gutter(self):
        renderer = make_renderer(show_entry_index=True)
        entry = make_entry("dup", "hello")
        first = renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80, entry_index=0)
        second = renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80, entry_index=1)
        assert first[0].plain.startswith("   1│")
        assert second[0].plain.startswith("   2│")

    def test_initial_prompt_label_is_not_shared_with_main_view(self):
        renderer = make_renderer()
        entry = make_entry("dup", "hello")
        sub = renderer.render(
            entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80, entry_index=0, is_subagent_view=True
        )
        main = renderer.render(entry, expanded=False, wrap_mode=WrapMode.WRAP, width=80, entry_index=0)
        assert plain(sub)[0] == "🔷 Initial Prompt"
        assert plain(main)[0] == "hello"
