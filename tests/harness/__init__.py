"""Test harness for cclv.

Re-exports the public helpers:
    from tests.harness import run_app, make_entry, make_conversation, ...
"""

from tests.harness.app_runner import run_app
from tests.harness.builders import (
    entry_dict,
    jsonl_line,
    lines_text,
    make_conversation,
    make_entry,
    make_renderer,
    plain,
    two_line_renderer,
)
from tests.harness.interactions import press_and_settle, press_sequence, click_and_settle, resize_and_settle
from tests.harness.content import pane_text

__all__ = [
    "run_app",
    "entry_dict",
    "jsonl_line",
    "lines_text",
    "make_conversation",
    "make_entry",
    "make_renderer",
    "plain",
    "two_line_renderer",
    "press_and_settle",
    "press_sequence",
    "click_and_settle",
    "resize_and_settle",
    "pane_text",
]
