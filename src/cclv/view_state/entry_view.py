"""One entry plus its presentation flags and rendered-line cache.

The cached line list IS the height: there is no separately stored height
that could go stale.
"""

from __future__ import annotations

from rich.text import Text

from cclv.core.model import ConversationEntry
from cclv.view_state.renderer import EntryRenderer
from cclv.view_state.types import WrapMode


class EntryView:
    __slots__ = (
        "entry",
        "index",
        "expanded",
        "wrap_override",
        "_renderer",
        "_is_subagent_view",
        "_width",
        "_global_wrap",
        "_lines",
    )

    def __init__(
        self,
        entry: ConversationEntry,
        index: int,
        renderer: EntryRenderer,
        width: int,
        global_wrap: WrapMode,
        is_subagent_view: bool = False,
    ):
        self.entry = entry
        self.index = index
        self.expanded = False
        self.wrap_override: WrapMode | None = None
        self._renderer = renderer
        self._is_subagent_view = is_subagent_view
        self._width = width
        self._global_wrap = global_wrap
        self._lines: tuple[Text, ...] = ()
        self._recompute()

    # ─── Derived ──────────────────────────────────────────────────────────

    @property
    def height(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> tuple[Text, ...]:
        return self._lines

    @property
    def identity(self) -> str:
        return self.entry.identity

    def effective_wrap(self, global_wrap: WrapMode) -> WrapMode:
        return self.wrap_override if self.wrap_override is not None else global_wrap

    # ─── Mutation (each returns the new height) ───────────────────────────

    def toggle_expanded(self) -> int:
        return self.set_expanded(not self.expanded)

    def set_expanded(self, expanded: bool) -> int:
        self.expanded = expanded
        return self._recompute()

    def set_wrap_override(self, mode: WrapMode | None) -> int:
        self.wrap_override = mode
        return self._recompute()

    def toggle_wrap(self) -> int:
        """Per-entry wrap toggle.

        With no override, set the opposite of the global mode. With an
        override, clear it so the entry follows global toggles again.
        """
        if self.wrap_override is None:
            return self.set_wrap_override(self._global_wrap.toggled())
        return self.set_wrap_override(None)

    def relayout(self, width: int, global_wrap: WrapMode) -> int:
        self._width = width
        self._global_wrap = global_wrap
        return self._recompute()

    def _recompute(self) -> int:
        self._lines = self._renderer.render(
            self.entry,
            expanded=self.expanded,
            wrap_mode=self.effective_wrap(self._global_wrap),
            width=self._width,
            entry_index=self.index,
            is_subagent_view=self._is_subagent_view,
        )
        return len(self._lines)

    def __repr__(self) -> str:
        return f"EntryView({self.identity!r}, height={self.height}, expanded={self.expanded})"
