"""Settings file I/O and viewer configuration.

A JSON settings file lives at XDG_CONFIG_HOME/cclv/settings.json. Viewer
options resolve through four layers, later ones winning:

    defaults < settings file < CCLV_* environment < command-line flags

Invalid values at any layer are logged and skipped; they never abort startup.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "cclv" / "settings.json"


def load_settings() -> dict:
    """Settings dict, or {} when the file is missing, unreadable or not an object."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt the read; {} is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: dict) -> None:
    """Write settings atomically: temp file in the same directory, then rename."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_setting(key: str, default=None):
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Merge one key into the existing settings and save."""
    data = load_settings()
    data[key] = value
    save_settings(data)


# ─── Viewer configuration ────────────────────────────────────────────────────


@dataclass(frozen=True)
class ViewerConfig:
    follow: bool = True
    line_wrap: bool = True
    collapse_threshold: int = 10
    summary_lines: int = 3
    render_cache_capacity: int = 1000
    show_entry_index: bool = True


ENV_VARS = {
    "follow": "CCLV_FOLLOW",
    "line_wrap": "CCLV_LINE_WRAP",
    "collapse_threshold": "CCLV_COLLAPSE_THRESHOLD",
    "summary_lines": "CCLV_SUMMARY_LINES",
    "render_cache_capacity": "CCLV_CACHE_CAPACITY",
    "show_entry_index": "CCLV_SHOW_ENTRY_INDEX",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce(name: str, kind: type, value: Any, source: str) -> Any:
    """Value converted to the field's type, or None (with a warning) when invalid."""
    if kind is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    else:
        try:
            number = int(value)
        except (TypeError, ValueError):
            number = None
        # bools are ints; "true" for a count is still a mistake
        if number is not None and not isinstance(value, bool) and number >= 0:
            return number
    logger.warning("%s: invalid value %r for %s, using default", source, value, name)
    return None


def _apply(config: ViewerConfig, values: Mapping[str, Any], source: str) -> ViewerConfig:
    updates = {}
    for f in fields(ViewerConfig):
        if f.name not in values or values[f.name] is None:
            continue
        kind = type(getattr(ViewerConfig(), f.name))
        coerced = _coerce(f.name, kind, values[f.name], source)
        if coerced is not None:
            updates[f.name] = coerced
    return replace(config, **updates) if updates else config


def resolve_config(
    cli: Mapping[str, Any] | None = None,
    *,
    settings: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> ViewerConfig:
    """Merge defaults, the settings file, environment and CLI flags."""
    config = ViewerConfig()
    file_values = load_settings() if settings is None else settings
    config = _apply(config, file_values, "settings")
    environ = os.environ if env is None else env
    env_values = {name: environ[var] for name, var in ENV_VARS.items() if var in environ}
    config = _apply(config, env_values, "environment")
    config = _apply(config, cli or {}, "command line")
    logger.debug("resolved config: %s", config)
    return config
