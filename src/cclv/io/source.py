"""Entry sources: a tailed JSONL file or a one-shot read of stdin.

FileWatcher runs watchfiles in a daemon thread and posts each debounced
batch of changes to a queue.Queue. The app drains that queue with
get_nowait() on a timer, so the UI thread never blocks on the filesystem.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from pathlib import Path
from typing import IO, NamedTuple

import watchfiles

from cclv.core.model import ConversationEntry
from cclv.core.parser import parse_entry_graceful

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 100


class SourceError(Exception):
    """Input could not be read."""


class SourceNotFoundError(SourceError, FileNotFoundError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"file not found: {path}")


def _parse_raw_lines(raw_lines: list[bytes], first_line_number: int) -> list[ConversationEntry]:
    entries = []
    for offset, raw in enumerate(raw_lines):
        text = raw.decode("utf-8", errors="replace").strip()
        if text:
            entries.append(parse_entry_graceful(text, first_line_number + offset))
    return entries


class ReadResult(NamedTuple):
    entries: list[ConversationEntry]
    # True when the file shrank and reading restarted from the top; the
    # entries then replace everything read before
    reset: bool = False


class FileSource:
    """Incremental reader of a JSONL file.

    A trailing line without a newline is held back until it is completed.
    If the file shrinks or is replaced by another file (truncation or
    rotation) reading restarts from the top and the result is flagged reset.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if not self.path.is_file():
            raise SourceNotFoundError(self.path)
        self._position = 0
        self._partial = b""
        self._line_count = 0
        self._inode: int | None = None

    @property
    def line_count(self) -> int:
        """Complete lines consumed so far, blank lines included."""
        return self._line_count

    def initial_load(self) -> list[ConversationEntry]:
        return self.read_new_entries()

    def read_new_entries(self) -> list[ConversationEntry]:
        return self.read_update().entries

    def read_update(self) -> ReadResult:
        """Entries appended since the last read, flagged when the file was reset."""
        reset = False
        try:
            stat = self.path.stat()
            size = stat.st_size
            replaced = self._inode is not None and stat.st_ino != self._inode
            self._inode = stat.st_ino
            if size < self._position or replaced:
                logger.warning(
                    "%s was truncated or replaced (%d -> %d bytes); reloading", self.path, self._position, size
                )
                self._position = 0
                self._partial = b""
                self._line_count = 0
                reset = True
            if size == self._position:
                return ReadResult([], reset)
            with self.path.open("rb") as f:
                f.seek(self._position)
                chunk = f.read()
        except FileNotFoundError as exc:
            raise SourceNotFoundError(self.path) from exc
        except OSError as exc:
            raise SourceError(f"cannot read {self.path}: {exc}") from exc

        self._position += len(chunk)
        *complete, self._partial = (self._partial + chunk).split(b"\n")
        first = self._line_count + 1
        self._line_count += len(complete)
        entries = _parse_raw_lines(complete, first)
        if entries:
            logger.debug("%s: read %d entries (through line %d)", self.path, len(entries), self._line_count)
        return ReadResult(entries, reset)

    def flush_partial(self) -> list[ConversationEntry]:
        """Parse a held-back trailing line. For one-shot reads that do not tail."""
        if not self._partial:
            return []
        raw, self._partial = self._partial, b""
        self._line_count += 1
        return _parse_raw_lines([raw], self._line_count)

    def read_all(self) -> list[ConversationEntry]:
        return self.read_new_entries() + self.flush_partial()


class StdinSource:
    """Reads every line of a stream once, at startup."""

    def __init__(self, stream: IO[str] | None = None):
        self._stream = stream if stream is not None else sys.stdin

    def read_entries(self) -> list[ConversationEntry]:
        try:
            lines = self._stream.read().splitlines()
        except OSError as exc:
            raise SourceError(f"cannot read stdin: {exc}") from exc
        entries = [
            parse_entry_graceful(line.strip(), number)
            for number, line in enumerate(lines, start=1)
            if line.strip()
        ]
        logger.info("stdin: read %d entries from %d lines", len(entries), len(lines))
        return entries


class FileWatcher:
    """Background thread that reports changes to one file through a queue."""

    def __init__(
        self,
        path: str | Path,
        events: queue.Queue | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ):
        self.path = Path(path).resolve()
        self.events: queue.Queue = events if events is not None else queue.Queue()
        self.debounce_ms = debounce_ms
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="cclv-watcher", daemon=True)
        self._thread.start()
        logger.info("watching %s", self.path)

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _accepts(self, change: watchfiles.Change, changed_path: str) -> bool:
        return Path(changed_path).resolve() == self.path

    def _run(self) -> None:
        # The parent directory is watched so rotation (delete + recreate) is seen
        try:
            for changes in watchfiles.watch(
                self.path.parent,
                watch_filter=self._accepts,
                debounce=self.debounce_ms,
                stop_event=self._stop,
                raise_interrupt=False,
            ):
                self.events.put(changes)
        except Exception:
            logger.exception("file watcher for %s stopped", self.path)

    def drain(self) -> bool:
        """True if any change arrived since the last drain. Never blocks."""
        changed = False
        while True:
            try:
                self.events.get_nowait()
            except queue.Empty:
                return changed
            changed = True
