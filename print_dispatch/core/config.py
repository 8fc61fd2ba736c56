"""
Config utilities for Print Dispatch.

Responsibilities:
- Resolve config/database paths with environment and XDG support
- Provide JSON load/save helpers for the optional config file
- Build the Settings object injected into the application factory
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

ENV_PREFIX = "PRINTDISPATCH_"


def default_config_path() -> str:
    """
    Resolve the default config path using:
    1) $XDG_CONFIG_HOME/printdispatch/config.json
    2) ~/.config/printdispatch/config.json
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return str(Path(xdg) / "printdispatch" / "config.json")
    return str(Path.home() / ".config" / "printdispatch" / "config.json")


def default_db_path() -> str:
    """
    Resolve the default job database path using:
    1) $XDG_DATA_HOME/printdispatch/jobs.db
    2) ~/.local/share/printdispatch/jobs.db
    """
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return str(Path(xdg) / "printdispatch" / "jobs.db")
    return str(Path.home() / ".local" / "share" / "printdispatch" / "jobs.db")


def get_config_path() -> str:
    """
    Return the config path honoring PRINTDISPATCH_CONFIG_PATH override.
    """
    return os.environ.get(ENV_PREFIX + "CONFIG_PATH", default_config_path())


def get_db_path() -> str:
    """
    Return the database path honoring PRINTDISPATCH_DB_PATH override.
    """
    return os.environ.get(ENV_PREFIX + "DB_PATH", default_db_path())


def load_config(path: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Load the JSON config if it exists; return None if missing.

    Raises:
        json.JSONDecodeError if the file exists but contains invalid JSON.
        OSError for I/O errors other than missing file.
    """
    cfg_path = Path(path or get_config_path())
    if not cfg_path.exists():
        return None
    with cfg_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def save_config(data: dict[str, Any], path: Optional[str] = None) -> None:
    """
    Save the JSON config, creating parent directories as needed.

    Writes atomically by using a temporary file and os.replace().
    Raises OSError on I/O failures.
    """
    cfg_path = Path(path or get_config_path())
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, cfg_path)


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    s = str(value).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off", ""):
        return False
    return default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# Env variable suffix for each Settings field; the boolean switch keeps its
# feature-specific name.
_ENV_NAMES = {
    "enabled": "CLOUDPRNT_ENABLED",
}


@dataclass
class Settings:
    """Runtime settings for the dispatch subsystem."""

    enabled: bool = False
    db_path: str = field(default_factory=get_db_path)
    default_content_type: str = "text/plain"
    receipt_content_type: str = "application/vnd.star.starprnt"
    list_limit: int = 50
    summary_window_hours: int = 24
    paper_width: int = 48
    feed_lines: int = 3
    cut_mode: str = "partial"
    codepage: str = "cp437"
    currency_symbol: str = "$"
    category_order: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(
        cls,
        overrides: Optional[Mapping[str, Any]] = None,
        config_path: Optional[str] = None,
    ) -> "Settings":
        """
        Build settings from (lowest to highest precedence) defaults, the JSON
        config file, PRINTDISPATCH_* environment variables and `overrides`.
        """
        defaults = cls()
        values: Dict[str, Any] = {}

        file_cfg = load_config(config_path) or {}
        for f in fields(cls):
            if f.name in file_cfg:
                values[f.name] = file_cfg[f.name]

        for f in fields(cls):
            if f.name == "category_order":
                continue
            env_name = ENV_PREFIX + _ENV_NAMES.get(f.name, f.name.upper())
            if env_name in os.environ:
                values[f.name] = os.environ[env_name]

        if overrides:
            values.update({k: v for k, v in overrides.items() if k in {f.name for f in fields(cls)}})

        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in values:
                continue
            current = getattr(defaults, f.name)
            raw = values[f.name]
            if isinstance(current, bool):
                kwargs[f.name] = _coerce_bool(raw, current)
            elif isinstance(current, int):
                kwargs[f.name] = _coerce_int(raw, current)
            elif isinstance(current, dict):
                kwargs[f.name] = dict(raw) if isinstance(raw, Mapping) else current
            else:
                kwargs[f.name] = str(raw)
        return cls(**kwargs)


__all__ = [
    "ENV_PREFIX",
    "Settings",
    "default_config_path",
    "default_db_path",
    "get_config_path",
    "get_db_path",
    "load_config",
    "save_config",
]
