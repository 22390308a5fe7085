"""Tests for the pure panel render functions."""

from datetime import datetime

import cclv.state.stats as stats
import cclv.tui.input_modes as input_modes
from cclv.core.model import TokenUsage
from cclv.state.session_picker import SessionPicker, SessionSummary
from cclv.tui.panel_renderers import (
    fmt_cost,
    fmt_tokens,
    render_help,
    render_live_indicator,
    render_session_list,
    render_stats_panel,
)


def _bucket(tools=None, usage=TokenUsage(1200, 300), model="claude-opus-4-5"):
    bucket = stats.UsageBucket()
    bucket.usage = usage
    bucket.by_model[model] = usage
    for name, count in (tools or {}).items():
        bucket.tools[name] = count
    return bucket


def test_formatting():
    assert fmt_tokens(1234567) == "1,234,567"
    assert fmt_cost(1234.5) == "$1,234.50"
    assert fmt_cost(0.004) == "$0.00"


class TestStatsPanel:
    def test_sections(self):
        text = render_stats_panel(_bucket(), stats.AllSessions(), stats.MODEL_PRICING).plain
        assert text.startswith("Statistics: All Sessions")
        assert "Input:  1,200" in text
        assert "Output: 300" in text
        assert "Total:  1,500" in text
        assert "Cache:" not in text
        assert "Estimated Cost:" in text
        assert "Opus: 1,500" in text
        assert "Count: 0" in text
        assert text.endswith("m scope: All")

    def test_cache_line_when_cache_tokens_present(self):
        bucket = _bucket(usage=TokenUsage(10, 5, 20, 30))
        text = render_stats_panel(bucket, stats.AllSessions(), stats.MODEL_PRICING).plain
        assert "Input:  60" in text
        assert "Cache:  50" in text

    def test_tool_list_is_capped(self):
        tools = {f"Tool{i:02d}": 20 - i for i in range(12)}
        text = render_stats_panel(_bucket(tools), stats.AllSessions(), stats.MODEL_PRICING).plain
        assert "Tool00: 20" in text
        assert "Tool09: 11" in text
        assert "Tool10" not in text
        assert "... and 2 more" in text

    def test_reported_cost_only_for_all_sessions(self):
        bucket = _bucket()
        everything = render_stats_panel(bucket, stats.AllSessions(), stats.MODEL_PRICING, 2.5).plain
        assert "Reported: $2.50" in everything
        scoped = render_stats_panel(bucket, stats.SessionScope("s1"), stats.MODEL_PRICING, 2.5).plain
        assert "Reported" not in scoped
        assert scoped.endswith("m scope: Sess")


def test_help_lists_every_key_group():
    text = render_help().plain
    for title, keys in input_modes.KEY_GROUPS:
        assert title in text
        for key, description in keys:
            assert description in text
    assert text.endswith("? or esc to close")


class TestSessionList:
    def _summaries(self, n):
        return [SessionSummary(i, f"s{i}", i + 1, 0, datetime(2025, 1, 1, 9, i)) for i in range(n)]

    def test_marks_selection_and_current(self):
        text = render_session_list(self._summaries(3), SessionPicker(selected=1), 2, 10).plain
        rows = text.splitlines()
        assert rows[0] == "Sessions"
        assert rows[1].startswith("  Session 1:")
        assert rows[2].startswith("> Session 2: 2 messages")
        assert rows[3].endswith("[CURRENT]")
        assert "▼ more" not in text

    def test_window_starts_at_scroll_offset(self):
        picker = SessionPicker(selected=5, scroll_offset=4)
        rows = render_session_list(self._summaries(10), picker, None, 3).plain.splitlines()
        assert rows[1].startswith("  Session 5:")
        assert rows[2].startswith("> Session 6:")
        assert rows[4] == "  ▼ more"


def test_live_indicator_styles():
    assert render_live_indicator(True, True).plain == "[LIVE]"
    assert str(render_live_indicator(True, True).style) == "bold green"
    assert str(render_live_indicator(True, False).style) == "green dim"
    assert str(render_live_indicator(False, True).style) == "grey50"
