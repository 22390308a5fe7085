"""Entry → rendered lines.

An entry's height is exactly len(compute_entry_lines(...)). Everything that
changes the line count (collapse, wrap, gutter, separator) happens here and
nowhere else, so layout and painting cannot drift.

Search highlighting is not applied here. It is layered on at paint time by
the widget so cached lines stay valid across searches.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.style import Style
from rich.text import Text

from cclv.core.model import (
    ContentBlock,
    ConversationEntry,
    MalformedEntry,
    Role,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from cclv.view_state.cache import RenderCache, RenderKey
from cclv.view_state.types import WrapMode

DEFAULT_COLLAPSE_THRESHOLD = 10
DEFAULT_SUMMARY_LINES = 3

GUTTER_WIDTH = 5  # "NNNN│"
BORDER_WIDTH = 2

ROLE_STYLES = {
    Role.USER: Style(color="cyan"),
    Role.ASSISTANT: Style(color="green"),
}
TOOL_USE_STYLE = Style(color="yellow")
TOOL_ERROR_STYLE = Style(color="red")
THINKING_STYLE = Style(italic=True, dim=True)
INDICATOR_STYLE = Style(dim=True)
GUTTER_STYLE = Style(color="bright_black", dim=True)
MALFORMED_STYLE = Style(color="red", dim=True)
INITIAL_PROMPT_STYLE = Style(color="magenta", bold=True)


@dataclass(frozen=True)
class RenderConfig:
    collapse_threshold: int = DEFAULT_COLLAPSE_THRESHOLD
    summary_lines: int = DEFAULT_SUMMARY_LINES
    show_entry_index: bool = False

    @property
    def gutter_width(self) -> int:
        return GUTTER_WIDTH if self.show_entry_index else 0


def content_width(width: int, config: RenderConfig) -> int:
    return max(1, width - BORDER_WIDTH - config.gutter_width)


def wrap_lines(source: list[str], wrap_mode: WrapMode, width: int) -> list[str]:
    """Chunk each source line into `width`-character pieces, or keep it whole.

    Empty source lines stay as a single empty line in both modes.
    """
    if wrap_mode is WrapMode.NO_WRAP:
        return list(source)
    width = max(1, width)
    wrapped: list[str] = []
    for line in source:
        if not line:
            wrapped.append("")
            continue
        wrapped.extend(line[i : i + width] for i in range(0, len(line), width))
    return wrapped


def _collapsible(
    lines: list[str],
    style: Style,
    expanded: bool,
    config: RenderConfig,
    indent: str = "",
) -> list[Text]:
    """Render block lines, collapsing to a summary when over the threshold."""
    total = len(lines)
    if expanded or total <= config.collapse_threshold:
        return [Text(indent + line, style=style) for line in lines]
    shown = min(config.summary_lines, total)
    out = [Text(indent + line, style=style) for line in lines[:shown]]
    out.append(Text(f"{indent}(+{total - shown} more lines)", style=INDICATOR_STYLE))
    return out


def _render_block(
    block: ContentBlock,
    role_style: Style,
    expanded: bool,
    wrap_mode: WrapMode,
    width: int,
    config: RenderConfig,
) -> list[Text]:
    if isinstance(block, TextBlock):
        lines = wrap_lines(block.text.splitlines(), wrap_mode, width)
        return _collapsible(lines, role_style, expanded, config)

    if isinstance(block, ThinkingBlock):
        lines = wrap_lines(block.thinking.splitlines(), wrap_mode, width)
        return _collapsible(lines, role_style + THINKING_STYLE, expanded, config)

    if isinstance(block, ToolUseBlock):
        header = Text(f"🔧 Tool: {block.name}", style=TOOL_USE_STYLE + Style(bold=True))
        # input lines are indented two columns, so wrap two narrower
        lines = wrap_lines(block.pretty_input().splitlines(), wrap_mode, max(1, width - 2))
        return [header] + _collapsible(lines, TOOL_USE_STYLE, expanded, config, indent="  ")

    if isinstance(block, ToolResultBlock):
        style = TOOL_ERROR_STYLE if block.is_error else role_style
        lines = wrap_lines(block.content.splitlines(), wrap_mode, width)
        return _collapsible(lines, style, expanded, config)

    return []


def malformed_placeholder(entry: MalformedEntry) -> Text:
    text = Text(f"⚠ malformed entry (line {entry.line_number}): {entry.error}", style=MALFORMED_STYLE)
    text.no_wrap = True
    return text


def compute_entry_lines(
    entry: ConversationEntry,
    *,
    expanded: bool,
    wrap_mode: WrapMode,
    width: int,
    config: RenderConfig,
    entry_index: int | None = None,
    is_subagent_view: bool = False,
) -> list[Text]:
    """Rendered rows for one entry. Always returns at least one row."""
    if isinstance(entry, MalformedEntry):
        return [malformed_placeholder(entry)]

    message = entry.message
    role_style = ROLE_STYLES.get(message.role, Style())
    inner_width = content_width(width, config)

    lines: list[Text] = []
    if is_subagent_view and entry_index == 0:
        lines.append(Text("🔷 Initial Prompt", style=INITIAL_PROMPT_STYLE))

    for block in message.blocks:
        lines.extend(_render_block(block, role_style, expanded, wrap_mode, inner_width, config))

    if config.show_entry_index and entry_index is not None:
        gutter = f"{entry_index + 1:>4}│"
        lines = [Text.assemble((gutter, GUTTER_STYLE), line) for line in lines]

    # separator row, never gutter-prefixed
    lines.append(Text(""))
    return lines


class EntryRenderer:
    """Render config plus the shared LRU in front of compute_entry_lines."""

    def __init__(self, config: RenderConfig | None = None, cache: RenderCache | None = None):
        self.config = config or RenderConfig()
        self.cache = cache if cache is not None else RenderCache()

    def render(
        self,
        entry: ConversationEntry,
        *,
        expanded: bool,
        wrap_mode: WrapMode,
        width: int,
        entry_index: int | None = None,
        is_subagent_view: bool = False,
    ) -> tuple[Text, ...]:
        key = RenderKey(entry.identity, width, expanded, wrap_mode, entry_index, is_subagent_view)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        lines = tuple(
            compute_entry_lines(
                entry,
                expanded=expanded,
                wrap_mode=wrap_mode,
                width=width,
                config=self.config,
                entry_index=entry_index,
                is_subagent_view=is_subagent_view,
            )
        )
        self.cache.put(key, lines)
        return lines
