"""Pytest configuration and shared fixtures for cclv tests."""

import logging

import pytest

import cclv.io.logging_setup as logging_setup


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Point settings and logs at the test's tmp dir; clear CCLV_* overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("CCLV_LOG_DIR", str(tmp_path / "logs"))
    for var in (
        "CCLV_LOG_LEVEL",
        "CCLV_LOG_FILE",
        "CCLV_FOLLOW",
        "CCLV_LINE_WRAP",
        "CCLV_COLLAPSE_THRESHOLD",
        "CCLV_SUMMARY_LINES",
        "CCLV_CACHE_CAPACITY",
        "CCLV_SHOW_ENTRY_INDEX",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fresh_logging(monkeypatch):
    """Let configure() run again, and undo its handler wiring afterwards."""
    logger = logging.getLogger(logging_setup.ROOT_LOGGER)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    monkeypatch.setattr(logging_setup, "_RUNTIME", None)
    yield logger
    for handler in logger.handlers:
        if handler not in saved[0]:
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
    logging.captureWarnings(False)


# ---------------------------------------------------------------------------
# Sample log files
# ---------------------------------------------------------------------------

@pytest.fixture
def log_file(tmp_path):
    """An empty .jsonl file to append records to."""
    path = tmp_path / "session.jsonl"
    path.write_text("", encoding="utf-8")
    return path
