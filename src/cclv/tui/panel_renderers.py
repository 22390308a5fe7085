"""Panel rendering logic - pure functions for building display text.

Widgets and overlay screens call these with plain data and show the
returned Text, so the formatting is testable without running the app.
"""

from __future__ import annotations

from typing import Mapping

from rich.text import Text

import cclv.state.stats as stats
import cclv.tui.input_modes as input_modes
from cclv.state.session_picker import SessionPicker, SessionSummary

HEADING_STYLE = "bold cyan"
MAX_TOOLS_SHOWN = 10


def fmt_tokens(n: int) -> str:
    """1234567 -> '1,234,567'"""
    return f"{n:,}"


def fmt_cost(cost: float) -> str:
    return f"${cost:,.2f}"


def render_stats_panel(
    bucket: stats.UsageBucket,
    stats_filter: stats.StatsFilter,
    pricing: Mapping[str, stats.ModelPricing],
    actual_cost_usd: float | None = None,
) -> Text:
    """Token, cost, tool and sub-agent sections for one stats scope."""
    usage = bucket.usage
    text = Text()
    text.append(stats_filter.label, style="bold")
    text.append("\n\n")

    text.append("Tokens:\n", style=HEADING_STYLE)
    text.append(f"  Input:  {fmt_tokens(usage.total_input)}\n")
    text.append(f"  Output: {fmt_tokens(usage.output_tokens)}\n")
    text.append(f"  Total:  {fmt_tokens(usage.total)}\n")
    if usage.cache_tokens:
        text.append(f"  Cache:  {fmt_tokens(usage.cache_tokens)}\n")
    text.append("\n")

    text.append("Estimated Cost:\n", style=HEADING_STYLE)
    text.append(f"  {fmt_cost(bucket.estimated_cost(pricing))}\n")
    # reported cost is for the whole run
    if actual_cost_usd is not None and isinstance(stats_filter, stats.AllSessions):
        text.append(f"  Reported: {fmt_cost(actual_cost_usd)}\n")
    text.append("\n")

    if bucket.by_model:
        text.append("Models:\n", style=HEADING_STYLE)
        for model in sorted(bucket.by_model):
            name = stats.model_display_name(model) if model else "unknown"
            text.append(f"  {name}: {fmt_tokens(bucket.by_model[model].total)}\n")
        text.append("\n")

    if bucket.tools:
        text.append("Tool Usage:\n", style=HEADING_STYLE)
        shown, remaining = bucket.top_tools(MAX_TOOLS_SHOWN)
        for name, count in shown:
            text.append(f"  {name}: {count}\n")
        if remaining:
            text.append(f"  ... and {remaining} more\n", style="dim")
        text.append("\n")

    text.append("Subagents:\n", style=HEADING_STYLE)
    text.append(f"  Count: {len(bucket.agents)}\n")
    text.append("\n")
    text.append("m", style="bold")
    text.append(f" scope: {stats_filter.short_label}", style="dim")
    return text


def render_help() -> Text:
    """Grouped key reference for the help overlay.

    // [LAW:one-source-of-truth] KEY_GROUPS from input_modes is the sole data source.
    """
    key_groups = input_modes.KEY_GROUPS

    text = Text()
    text.append("Keys", style="bold cyan")
    text.append("\n")

    for group_title, keys in key_groups:
        text.append(" ")
        text.append(group_title, style="bold underline")
        text.append("\n")
        for key_display, description in keys:
            text.append("  ")
            text.append("{:>7}".format(key_display), style="bold cyan")
            text.append("  ")
            text.append(description, style="dim")
            text.append("\n")

    text.append("\n")
    text.append("? or esc to close", style="dim italic")
    return text


def render_session_list(
    summaries: list[SessionSummary],
    picker: SessionPicker,
    current_index: int | None,
    visible_rows: int,
) -> Text:
    """Rows from picker.scroll_offset, highlighted row marked with '>'."""
    text = Text()
    text.append("Sessions", style="bold cyan")
    text.append("\n")
    window = summaries[picker.scroll_offset : picker.scroll_offset + max(1, visible_rows)]
    for summary in window:
        selected = summary.index == picker.selected
        text.append("> " if selected else "  ")
        text.append(summary.display_line(), style="bold reverse" if selected else "")
        if summary.index == current_index:
            text.append("  [CURRENT]", style="green")
        text.append("\n")
    if picker.scroll_offset + len(window) < len(summaries):
        text.append("  ▼ more\n", style="dim")
    text.append("\n")
    text.append("↑/↓ navigate  enter select  esc cancel", style="dim")
    return text


def render_live_indicator(live: bool, blink_on: bool) -> Text:
    """'[LIVE]' blinking green while tailing, gray otherwise."""
    if live and blink_on:
        return Text("[LIVE]", style="bold green")
    if live:
        return Text("[LIVE]", style="green dim")
    return Text("[LIVE]", style="grey50")
