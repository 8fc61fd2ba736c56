"""
Core utilities for Print Dispatch.

This package groups non-Flask helpers used across the app:
- config: paths, JSON load/save, Settings built from env and overrides
- logging: Request ID aware logging filters/formatters and root logger config
- db: SQLite-backed job store

Exports are explicit to keep static analyzers (e.g., Pyright) happy.
"""

from .config import (
    ENV_PREFIX,
    Settings,
    default_config_path,
    default_db_path,
    get_config_path,
    get_db_path,
    load_config,
    save_config,
)
from .db import SCHEMA_VERSION, SQLiteJobStore
from .logging import (
    EVENT_FIELDS,
    JsonFormatter,
    RequestIdFilter,
    configure_logging,
)

__all__ = [
    # config
    "ENV_PREFIX",
    "Settings",
    "default_config_path",
    "default_db_path",
    "get_config_path",
    "get_db_path",
    "load_config",
    "save_config",
    # db
    "SCHEMA_VERSION",
    "SQLiteJobStore",
    # logging
    "EVENT_FIELDS",
    "configure_logging",
    "RequestIdFilter",
    "JsonFormatter",
]
