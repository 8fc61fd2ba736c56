"""
Per-app dispatch wiring shared by the blueprints.

create_app() stores a Dispatch bundle under app.extensions["print_dispatch"];
handlers look it up through get_dispatch() instead of module globals so each
app (and each test) gets its own settings and store.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from print_dispatch.core.config import Settings
from print_dispatch.dispatch.categories import CategoryOrderingTable
from print_dispatch.dispatch.jobs import JobStore
from print_dispatch.dispatch.poll import PollHandler
from print_dispatch.dispatch.service import EnqueueService

EXTENSION_KEY = "print_dispatch"


@dataclass
class Dispatch:
    settings: Settings
    store: JobStore
    service: EnqueueService
    poller: PollHandler
    categories: CategoryOrderingTable

    @classmethod
    def build(cls, settings: Settings, store: JobStore) -> "Dispatch":
        return cls(
            settings=settings,
            store=store,
            service=EnqueueService(store, settings.default_content_type),
            poller=PollHandler(store),
            categories=CategoryOrderingTable.from_config(settings.category_order),
        )


def get_dispatch() -> Dispatch:
    return current_app.extensions[EXTENSION_KEY]


__all__ = ["Dispatch", "EXTENSION_KEY", "get_dispatch"]
