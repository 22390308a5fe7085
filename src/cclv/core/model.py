"""Domain entries for Claude Code JSONL logs.

One JSONL line becomes one ConversationEntry: either a LogEntry (fully parsed)
or a MalformedEntry (kept so later entries keep their positions).

Entries are immutable once parsed. View state (expanded, wrap override) lives
in cclv.view_state.entry_view, never here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

UNKNOWN_SESSION_ID = "unknown-session"


# ─── Enums ────────────────────────────────────────────────────────────────────


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class EntryType(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SUMMARY = "summary"
    SYSTEM = "system"
    RESULT = "result"


# ─── Content blocks ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ThinkingBlock:
    thinking: str


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool invocation. `input` is the raw JSON arguments object."""

    id: str
    name: str
    input: dict = field(default_factory=dict)

    def pretty_input(self) -> str:
        return json.dumps(self.input, indent=2, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = Union[TextBlock, ThinkingBlock, ToolUseBlock, ToolResultBlock]


def searchable_text(block: ContentBlock) -> str | None:
    """Text that search scans for a block, or None for non-searchable blocks.

    Tool-use input is structured metadata, not conversation content.
    """
    if isinstance(block, TextBlock):
        return block.text
    if isinstance(block, ThinkingBlock):
        return block.thinking
    if isinstance(block, ToolResultBlock):
        return block.content
    return None


# ─── Messages and entries ────────────────────────────────────────────────────


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported on an assistant message."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @property
    def cache_tokens(self) -> int:
        return self.cache_creation_input_tokens + self.cache_read_input_tokens

    @property
    def total_input(self) -> int:
        """Uncached input plus both cache counts."""
        return self.input_tokens + self.cache_tokens

    @property
    def total(self) -> int:
        return self.total_input + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            self.input_tokens + other.input_tokens,
            self.output_tokens + other.output_tokens,
            self.cache_creation_input_tokens + other.cache_creation_input_tokens,
            self.cache_read_input_tokens + other.cache_read_input_tokens,
        )


@dataclass(frozen=True)
class Message:
    """A message body. `content` is a plain string or a tuple of blocks."""

    role: Role
    content: str | tuple[ContentBlock, ...]
    model: str | None = None
    usage: TokenUsage | None = None

    @property
    def blocks(self) -> tuple[ContentBlock, ...]:
        """Content as blocks; plain-string content becomes a single TextBlock."""
        if isinstance(self.content, str):
            return (TextBlock(self.content),)
        return self.content

    def tool_names(self) -> list[str]:
        return [b.name for b in self.blocks if isinstance(b, ToolUseBlock)]


@dataclass(frozen=True)
class LogEntry:
    uuid: str
    session_id: str
    timestamp: datetime | None
    entry_type: EntryType
    message: Message
    agent_id: str | None = None
    parent_uuid: str | None = None
    is_sidechain: bool = False
    # total_cost_usd reported by a result entry
    cost_usd: float | None = None

    @property
    def identity(self) -> str:
        return self.uuid

    @property
    def is_malformed(self) -> bool:
        return False


@dataclass(frozen=True)
class MalformedEntry:
    """A line the parser could not interpret. Rendered as a one-row placeholder."""

    line_number: int
    raw_line: str
    error: str
    session_id: str | None = None

    @property
    def identity(self) -> str:
        return f"line:{self.line_number}"

    @property
    def agent_id(self) -> None:
        return None

    @property
    def timestamp(self) -> None:
        return None

    @property
    def is_malformed(self) -> bool:
        return True


ConversationEntry = Union[LogEntry, MalformedEntry]
