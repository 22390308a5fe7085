"""Token usage, tool counts and estimated cost, aggregated per scope.

LogStats is fed every ingested entry. Each entry is counted in three buckets:
the whole log, its session, and either that session's main agent or its
sub-agent. A StatsFilter picks the bucket the stats panel shows.

// [LAW:one-source-of-truth] MODEL_PRICING is the only price table; settings
// overrides are merged onto it, never kept beside it.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping, NamedTuple, Union

from cclv.core.model import ConversationEntry, LogEntry, TokenUsage

logger = logging.getLogger(__name__)


# ─── Model economics ─────────────────────────────────────────────────────────


class ModelPricing(NamedTuple):
    """Per-model pricing in $/MTok."""

    base_input: float
    cache_write: float
    cache_hit: float
    output: float


MODEL_PRICING: dict[str, ModelPricing] = {
    "opus": ModelPricing(base_input=5.0, cache_write=6.25, cache_hit=0.50, output=25.0),
    "sonnet": ModelPricing(base_input=3.0, cache_write=3.75, cache_hit=0.30, output=15.0),
    "haiku": ModelPricing(base_input=1.0, cache_write=1.25, cache_hit=0.10, output=5.0),
}

FALLBACK_FAMILY = "sonnet"

_MODEL_FAMILY_DISPLAY = {
    "opus": "Opus",
    "sonnet": "Sonnet",
    "haiku": "Haiku",
}


def classify_model(
    model: str | None,
    pricing: Mapping[str, ModelPricing] = MODEL_PRICING,
) -> tuple[str, ModelPricing]:
    """Map a full model string to (family, pricing).

    Matches on substring, longest family first. Unknown or missing models
    are priced as sonnet and reported as "unknown".
    """
    fallback = pricing.get(FALLBACK_FAMILY, MODEL_PRICING[FALLBACK_FAMILY])
    if not model:
        return "unknown", fallback
    lower = model.lower()
    for family in sorted(pricing, key=len, reverse=True):
        if family in lower:
            return family, pricing[family]
    return "unknown", fallback


def model_display_name(model: str) -> str:
    """'claude-opus-4-5-20251101' -> 'Opus'; unknown ids are shown as-is."""
    family, _ = classify_model(model)
    return _MODEL_FAMILY_DISPLAY.get(family, model)


def usage_cost(usage: TokenUsage, pricing: ModelPricing) -> float:
    """Estimated cost in USD."""
    return (
        usage.input_tokens * pricing.base_input
        + usage.cache_creation_input_tokens * pricing.cache_write
        + usage.cache_read_input_tokens * pricing.cache_hit
        + usage.output_tokens * pricing.output
    ) / 1_000_000


def pricing_from_settings(raw) -> dict[str, ModelPricing]:
    """MODEL_PRICING with overrides from the settings file's "pricing" object.

    Each override is {"base_input": .., "cache_write": .., "cache_hit": ..,
    "output": ..}; missing fields keep the default (sonnet for new families).
    Invalid entries are logged and skipped.
    """
    table = dict(MODEL_PRICING)
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("settings: pricing must be an object, got %r", raw)
        return table
    for family, values in raw.items():
        if not isinstance(values, dict):
            logger.warning("settings: pricing for %r must be an object", family)
            continue
        base = table.get(family.lower(), MODEL_PRICING[FALLBACK_FAMILY])
        try:
            updates = {
                name: float(values[name])
                for name in ModelPricing._fields
                if name in values and not isinstance(values[name], bool)
            }
        except (TypeError, ValueError):
            logger.warning("settings: invalid pricing for %r: %r", family, values)
            continue
        if any(v < 0 for v in updates.values()):
            logger.warning("settings: negative pricing for %r ignored", family)
            continue
        table[family.lower()] = base._replace(**updates)
    return table


# ─── Filters ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AllSessions:
    @property
    def label(self) -> str:
        return "Statistics: All Sessions"

    @property
    def short_label(self) -> str:
        return "All"


@dataclass(frozen=True)
class SessionScope:
    """Main agent plus every sub-agent of one session."""

    session_id: str

    @property
    def label(self) -> str:
        return f"Statistics: Session {self.session_id}"

    @property
    def short_label(self) -> str:
        return "Sess"


@dataclass(frozen=True)
class MainAgentScope:
    session_id: str

    @property
    def label(self) -> str:
        return f"Statistics: Main Agent (Session {self.session_id})"

    @property
    def short_label(self) -> str:
        return "Main"


@dataclass(frozen=True)
class SubagentScope:
    agent_id: str

    @property
    def label(self) -> str:
        return f"Statistics: Subagent {self.agent_id}"

    @property
    def short_label(self) -> str:
        return "Sub"


StatsFilter = Union[AllSessions, SessionScope, MainAgentScope, SubagentScope]


def next_filter(
    current: StatsFilter,
    session_id: str | None,
    subagent_ids: list[str],
) -> StatsFilter:
    """All -> Session -> Main -> each sub-agent in tab order -> All.

    session_id and subagent_ids describe the viewed session. A step with
    nothing to show (no session, no sub-agents, an unknown agent) goes back
    to All.
    """
    if isinstance(current, AllSessions):
        return SessionScope(session_id) if session_id is not None else AllSessions()
    if isinstance(current, SessionScope):
        return MainAgentScope(session_id) if session_id is not None else AllSessions()
    if isinstance(current, MainAgentScope):
        return SubagentScope(subagent_ids[0]) if subagent_ids else AllSessions()
    try:
        position = subagent_ids.index(current.agent_id)
    except ValueError:
        return AllSessions()
    if position + 1 < len(subagent_ids):
        return SubagentScope(subagent_ids[position + 1])
    return AllSessions()


def follow_session(current: StatsFilter, session_id: str) -> StatsFilter:
    """Session-bound filters move to the newly viewed session."""
    if isinstance(current, SessionScope):
        return SessionScope(session_id)
    if isinstance(current, MainAgentScope):
        return MainAgentScope(session_id)
    return current


# ─── Aggregation ─────────────────────────────────────────────────────────────


@dataclass
class UsageBucket:
    usage: TokenUsage = field(default_factory=TokenUsage)
    by_model: dict[str, TokenUsage] = field(default_factory=dict)
    tools: Counter = field(default_factory=Counter)
    agents: set[str] = field(default_factory=set)
    entries: int = 0

    def record(self, entry: LogEntry) -> None:
        self.entries += 1
        if entry.agent_id is not None:
            self.agents.add(entry.agent_id)
        self.tools.update(entry.message.tool_names())
        usage = entry.message.usage
        if usage is None:
            return
        self.usage = self.usage + usage
        model = entry.message.model or ""
        self.by_model[model] = self.by_model.get(model, TokenUsage()) + usage

    def estimated_cost(self, pricing: Mapping[str, ModelPricing] = MODEL_PRICING) -> float:
        """Each model's tokens at that model's rates."""
        return sum(
            usage_cost(usage, classify_model(model, pricing)[1]) for model, usage in self.by_model.items()
        )

    def top_tools(self, limit: int) -> tuple[list[tuple[str, int]], int]:
        """Most used tools, ties by name, and how many were left out."""
        ranked = sorted(self.tools.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:limit], max(0, len(ranked) - limit)


class LogStats:
    def __init__(self, pricing: Mapping[str, ModelPricing] | None = None):
        self.pricing = dict(pricing) if pricing is not None else dict(MODEL_PRICING)
        self.clear()

    def clear(self) -> None:
        self._all = UsageBucket()
        self._sessions: dict[str, UsageBucket] = {}
        self._main: dict[str, UsageBucket] = {}
        self._agents: dict[str, UsageBucket] = {}
        # total_cost_usd of the latest result entry
        self.actual_cost_usd: float | None = None

    def record(self, entry: ConversationEntry) -> None:
        """Count one entry. Malformed lines carry nothing to count."""
        if not isinstance(entry, LogEntry):
            return
        scoped = (
            self._main.setdefault(entry.session_id, UsageBucket())
            if entry.agent_id is None
            else self._agents.setdefault(entry.agent_id, UsageBucket())
        )
        for bucket in (self._all, self._sessions.setdefault(entry.session_id, UsageBucket()), scoped):
            bucket.record(entry)
        if entry.cost_usd is not None:
            self.actual_cost_usd = entry.cost_usd

    def record_all(self, entries: Iterable[ConversationEntry]) -> None:
        for entry in entries:
            self.record(entry)

    def bucket(self, stats_filter: StatsFilter) -> UsageBucket:
        """The bucket a filter selects; an empty one when nothing was recorded."""
        if isinstance(stats_filter, SessionScope):
            found = self._sessions.get(stats_filter.session_id)
        elif isinstance(stats_filter, MainAgentScope):
            found = self._main.get(stats_filter.session_id)
        elif isinstance(stats_filter, SubagentScope):
            found = self._agents.get(stats_filter.agent_id)
        else:
            found = self._all
        return found if found is not None else UsageBucket()

    def estimated_cost(self, stats_filter: StatsFilter) -> float:
        return self.bucket(stats_filter).estimated_cost(self.pricing)
