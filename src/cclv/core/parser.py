"""JSONL line parsing into domain entries.

parse_entry() is strict and raises ParseError. parse_entry_graceful() never
raises: a bad line becomes a MalformedEntry carrying the error text and, when
the JSON is readable enough, its session id.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Iterable, Iterator

from cclv.core.model import (
    UNKNOWN_SESSION_ID,
    ContentBlock,
    ConversationEntry,
    EntryType,
    LogEntry,
    MalformedEntry,
    Message,
    Role,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
)

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """A JSONL line could not be turned into a LogEntry."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}")


_ENTRY_TYPES = {t.value: t for t in EntryType}
_ROLES = {r.value: r for r in Role}


def _parse_timestamp(raw, line_number: int) -> datetime | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ParseError(line_number, f"invalid timestamp: {raw!r}")
    try:
        # fromisoformat() only accepts a trailing Z from 3.11 on
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ParseError(line_number, f"invalid timestamp: {raw!r}") from exc


def _tool_result_text(content) -> str:
    """Tool results carry either a string or a list of {type: text} parts."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
            elif isinstance(item, str):
                parts.append(item)
        return "\n".join(parts)
    return json.dumps(content, ensure_ascii=False)


def _parse_block(raw: dict, line_number: int) -> ContentBlock | None:
    if not isinstance(raw, dict):
        raise ParseError(line_number, "content block is not an object")
    kind = raw.get("type")
    if kind == "text":
        return TextBlock(str(raw.get("text", "")))
    if kind == "thinking":
        return ThinkingBlock(str(raw.get("thinking", "")))
    if kind == "tool_use":
        tool_input = raw.get("input")
        return ToolUseBlock(
            id=str(raw.get("id", "")),
            name=str(raw.get("name", "")),
            input=tool_input if isinstance(tool_input, dict) else {},
        )
    if kind == "tool_result":
        return ToolResultBlock(
            tool_use_id=str(raw.get("tool_use_id", "")),
            content=_tool_result_text(raw.get("content")),
            is_error=bool(raw.get("is_error", False)),
        )
    # Unknown block kinds (images, redacted thinking) have no renderable text
    logger.debug("line %d: skipping content block of type %r", line_number, kind)
    return None


_USAGE_FIELDS = (
    "input_tokens",
    "output_tokens",
    "cache_creation_input_tokens",
    "cache_read_input_tokens",
)


def _token_count(value) -> int:
    # bools are ints; negative or non-numeric counts read as 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def _cost(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _parse_usage(raw) -> TokenUsage | None:
    """Usage is advisory: a missing or odd usage object never fails the line."""
    if not isinstance(raw, dict):
        return None
    return TokenUsage(*(_token_count(raw.get(name)) for name in _USAGE_FIELDS))


def _parse_message(raw, entry_type: EntryType, line_number: int) -> Message:
    if raw is None:
        # summary/system/result lines have no message body
        return Message(role=Role.ASSISTANT, content="")
    if not isinstance(raw, dict):
        raise ParseError(line_number, "message is not an object")

    role_name = raw.get("role") or (
        "user" if entry_type is EntryType.USER else "assistant"
    )
    role = _ROLES.get(role_name)
    if role is None:
        raise ParseError(line_number, f"unknown role: {role_name!r}")

    content = raw.get("content", "")
    if isinstance(content, str):
        parsed: str | tuple[ContentBlock, ...] = content
    elif isinstance(content, list):
        blocks = (_parse_block(b, line_number) for b in content)
        parsed = tuple(b for b in blocks if b is not None)
    else:
        raise ParseError(line_number, "message content must be a string or list")

    model = raw.get("model")
    return Message(
        role=role,
        content=parsed,
        model=model if isinstance(model, str) else None,
        usage=_parse_usage(raw.get("usage")),
    )


def _system_text(raw: dict) -> str:
    """Best-effort body for entries that carry no message."""
    for key in ("summary", "result", "content"):
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    subtype = raw.get("subtype")
    return f"[{raw.get('type')}{': ' + subtype if subtype else ''}]"


def parse_entry(raw: str, line_number: int) -> LogEntry:
    """Parse one JSONL line. Raises ParseError on any structural problem."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(line_number, f"invalid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ParseError(line_number, "line is not a JSON object")

    type_name = data.get("type")
    entry_type = _ENTRY_TYPES.get(type_name)
    if entry_type is None:
        raise ParseError(line_number, f"unknown entry type: {type_name!r}")

    uuid = data.get("uuid")
    if not isinstance(uuid, str) or not uuid.strip():
        raise ParseError(line_number, "missing uuid")

    session_id = data.get("sessionId", data.get("session_id"))
    if session_id is not None and (not isinstance(session_id, str) or not session_id.strip()):
        raise ParseError(line_number, "empty session id")

    message = _parse_message(data.get("message"), entry_type, line_number)
    if data.get("message") is None and entry_type in (
        EntryType.SUMMARY,
        EntryType.SYSTEM,
        EntryType.RESULT,
    ):
        message = Message(role=Role.ASSISTANT, content=_system_text(data))

    agent_id = data.get("agentId")
    return LogEntry(
        uuid=uuid,
        session_id=session_id or UNKNOWN_SESSION_ID,
        timestamp=_parse_timestamp(data.get("timestamp"), line_number),
        entry_type=entry_type,
        message=message,
        agent_id=agent_id if isinstance(agent_id, str) and agent_id else None,
        parent_uuid=data.get("parentUuid"),
        is_sidechain=bool(data.get("isSidechain", False)),
        cost_usd=_cost(data.get("total_cost_usd")),
    )


def _session_id_best_effort(raw: str) -> str | None:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    value = data.get("sessionId", data.get("session_id"))
    return value if isinstance(value, str) and value.strip() else None


def parse_entry_graceful(raw: str, line_number: int) -> ConversationEntry:
    """Parse one line, turning failures into a MalformedEntry."""
    try:
        return parse_entry(raw, line_number)
    except ParseError as exc:
        logger.debug("malformed entry: %s", exc)
        return MalformedEntry(
            line_number=line_number,
            raw_line=raw,
            error=exc.reason,
            session_id=_session_id_best_effort(raw),
        )


def parse_lines(lines: Iterable[str], first_line_number: int = 1) -> Iterator[ConversationEntry]:
    """Parse an iterable of raw lines, skipping blank ones.

    Line numbers count blank lines too so they match the file.
    """
    for offset, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        yield parse_entry_graceful(stripped, first_line_number + offset)
