"""CLI entry point for cclv."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Mapping, Sequence

import cclv.io.logging_setup
import cclv.io.settings
import cclv.state.stats as stats
from cclv.io.source import FileSource, FileWatcher, SourceError, StdinSource
from cclv.state.app_state import AppState
from cclv.view_state.cache import RenderCache
from cclv.view_state.log import LogViewState
from cclv.view_state.renderer import EntryRenderer, RenderConfig
from cclv.view_state.types import WrapMode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cclv",
        description="Terminal viewer for Claude Code JSONL conversation logs",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="JSONL log to view; omit or use '-' to read stdin",
    )
    parser.add_argument(
        "--follow",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Tail the file and keep the view pinned to new entries (default: on)",
    )
    parser.add_argument(
        "--wrap",
        dest="line_wrap",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Wrap long lines (default: on). Env: CCLV_LINE_WRAP",
    )
    parser.add_argument(
        "--collapse-threshold",
        type=int,
        default=None,
        help="Collapse blocks longer than N lines (default: 10)",
    )
    parser.add_argument(
        "--summary-lines",
        type=int,
        default=None,
        help="Lines shown for a collapsed block (default: 3)",
    )
    parser.add_argument(
        "--cache-capacity",
        dest="render_cache_capacity",
        type=int,
        default=None,
        help="Rendered-entry cache size; 0 uses the default (1000)",
    )
    parser.add_argument(
        "--entry-index",
        dest="show_entry_index",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show the entry number gutter (default: on)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for the cclv log file. Env: CCLV_LOG_LEVEL",
    )
    return parser


def build_state(
    config: cclv.io.settings.ViewerConfig,
    pricing: Mapping[str, stats.ModelPricing] | None = None,
) -> AppState:
    renderer = EntryRenderer(
        RenderConfig(
            collapse_threshold=config.collapse_threshold,
            summary_lines=config.summary_lines,
            show_entry_index=config.show_entry_index,
        ),
        RenderCache(config.render_cache_capacity),
    )
    wrap = WrapMode.WRAP if config.line_wrap else WrapMode.NO_WRAP
    return AppState(LogViewState(renderer, global_wrap=wrap), follow=config.follow, pricing=pricing)


def _reattach_tty() -> None:
    """Point fd 0 back at the terminal after stdin was consumed as input."""
    try:
        tty = open("/dev/tty", "rb")
    except OSError as exc:
        raise SourceError(f"stdin was used for input and no terminal is available: {exc}") from exc
    os.dup2(tty.fileno(), 0)
    tty.close()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    reading_stdin = args.file is None or args.file == "-"
    if reading_stdin and sys.stdin.isatty():
        parser.error("no input: pass a log file or pipe one on stdin")
    runtime = cclv.io.logging_setup.configure("viewer", level=args.log_level)

    cli_values = {
        name: getattr(args, name)
        for name in (
            "follow",
            "line_wrap",
            "collapse_threshold",
            "summary_lines",
            "render_cache_capacity",
            "show_entry_index",
        )
    }
    config = cclv.io.settings.resolve_config(cli_values)
    pricing = stats.pricing_from_settings(cclv.io.settings.load_setting("pricing"))
    state = build_state(config, pricing)

    source = None
    watcher = None
    try:
        if reading_stdin:
            state.ingest(StdinSource().read_entries())
            _reattach_tty()
        else:
            source = FileSource(args.file)
            if config.follow:
                state.ingest(source.initial_load())
                watcher = FileWatcher(source.path)
            else:
                state.ingest(source.read_all())
    except SourceError as exc:
        logger.error("cannot open input: %s", exc)
        print(f"cclv: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "loaded %d entries in %d session(s); log file %s",
        state.log.entry_count(),
        len(state.log),
        runtime.file_path,
    )

    # imported late so --help does not pay for loading textual
    from cclv.tui.app import CclvApp

    CclvApp(state, source=source, watcher=watcher).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
