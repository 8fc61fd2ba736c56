# Ensure the repository root is on sys.path so `print_dispatch` can be imported in tests.

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    # This file lives at: <repo_root>/tests/conftest.py
    # We want to add <repo_root> to sys.path (if not already present).
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    repo_str = str(repo_root)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_root_on_syspath()

from print_dispatch import create_app  # noqa: E402
from print_dispatch.core.config import Settings  # noqa: E402
from print_dispatch.core.db import SQLiteJobStore  # noqa: E402
from print_dispatch.dispatch.jobs import MemoryJobStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    # Keep real user config/data out of the tests.
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    for name in ("PRINTDISPATCH_CONFIG_PATH", "PRINTDISPATCH_DB_PATH", "PRINTDISPATCH_CLOUDPRNT_ENABLED"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryJobStore()
    return SQLiteJobStore(str(tmp_path / "jobs.db"))


@pytest.fixture
def settings(tmp_path):
    return Settings(enabled=True, db_path=str(tmp_path / "jobs.db"))


@pytest.fixture
def app(settings, store):
    app = create_app(settings=settings, store=store)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
