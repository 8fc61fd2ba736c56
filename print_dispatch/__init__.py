"""
Print Dispatch package

This module provides an application factory with minimal wiring:
- Configures logging via print_dispatch.core.logging
- Builds runtime Settings (env, config file, overrides) and the job store
- Attaches the dispatch bundle (store, enqueue service, poll handler) to the app
- Registers the CloudPRNT, API and health blueprints
"""

from __future__ import annotations

import importlib
import os
import uuid
from collections.abc import Sequence
from typing import Optional

from flask import Flask, g

from print_dispatch.core.config import Settings
from print_dispatch.core.logging import configure_logging
from print_dispatch.dispatch.jobs import JobStore

__version__ = "0.1.0"

DEFAULT_BLUEPRINTS = [
    ("print_dispatch.web.cloudprnt", "cloudprnt_bp"),  # printer polling (Phase A / Phase B)
    ("print_dispatch.web.api", "api_bp"),  # enqueue, receipt, inspection
    ("print_dispatch.web.health", "health_bp"),  # health endpoint
]

# Not registered while the CloudPRNT switch is off, so every method on their
# paths answers like an unknown route.
GATED_BLUEPRINTS = frozenset({"cloudprnt_bp", "api_bp"})


def _register_blueprint(app: Flask, import_path: str, attr: str) -> None:
    """
    Import a blueprint from import_path and register it.
    """
    mod = importlib.import_module(import_path)
    app.register_blueprint(getattr(mod, attr))
    app.logger.debug(f"Registered blueprint: {import_path}.{attr}")


def _set_request_id() -> None:
    """
    Assign a request ID for logging if not set by a filter elsewhere.
    """
    g.request_id = getattr(g, "request_id", None) or uuid.uuid4().hex


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[JobStore] = None,
    config_overrides: Optional[dict] = None,
    blueprints: Optional[Sequence[tuple[str, str]]] = None,
) -> Flask:
    """
    Application factory.

    Parameters:
    - settings: dispatch settings; built with Settings.from_env() when None
    - store: job store; a SQLiteJobStore at settings.db_path when None
    - config_overrides: values to inject into app.config after defaults
    - blueprints: optional list of (import_path, attribute) tuples to register
      If None, the CloudPRNT, API and health blueprints are registered.

    Returns:
    - Flask app instance
    """
    from print_dispatch.web.context import EXTENSION_KEY, Dispatch

    app = Flask("print_dispatch")

    app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("PRINTDISPATCH_MAX_CONTENT_LENGTH", 1024 * 1024))  # 1 MiB
    if config_overrides:
        app.config.update(config_overrides)

    # Logging
    configure_logging(app.name)

    settings = settings or Settings.from_env()
    if store is None:
        from print_dispatch.core.db import SQLiteJobStore

        store = SQLiteJobStore(settings.db_path)
    app.extensions[EXTENSION_KEY] = Dispatch.build(settings, store)
    app.logger.info(
        "Print Dispatch app created (cloudprnt_enabled=%s, store=%s)",
        settings.enabled,
        type(store).__name__,
    )

    # Strict slashes off for more forgiving routing
    app.url_map.strict_slashes = False

    # Generic request hooks
    @app.before_request
    def _before_request():
        _set_request_id()

    for import_path, attr in blueprints or DEFAULT_BLUEPRINTS:
        if attr in GATED_BLUEPRINTS and not settings.enabled:
            app.logger.debug(f"Skipped blueprint while disabled: {import_path}.{attr}")
            continue
        _register_blueprint(app, import_path, attr)

    return app


__all__ = ["DEFAULT_BLUEPRINTS", "GATED_BLUEPRINTS", "create_app", "__version__"]
