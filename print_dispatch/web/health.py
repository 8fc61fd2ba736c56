from __future__ import annotations

"""
Health endpoint for Print Dispatch.

This blueprint exposes `/healthz`, reporting:
- Overall status ("ok" or "degraded")
- Whether the CloudPRNT endpoints are switched on
- Job store reachability and the number of jobs still QUEUED

It is not gated by the feature switch so deployments can be probed either way.
"""

from typing import Any, Dict

from flask import Blueprint

from print_dispatch.dispatch.errors import StorageError
from print_dispatch.dispatch.jobs import JobStatus
from .context import get_dispatch

health_bp = Blueprint("health", __name__)


@health_bp.get("/healthz")
def healthz():
    dispatch = get_dispatch()
    status: Dict[str, Any] = {
        "status": "ok",
        "cloudprnt_enabled": bool(dispatch.settings.enabled),
    }
    try:
        summary = dispatch.store.summarize()
    except StorageError as e:
        status["status"] = "degraded"
        status["store_ok"] = False
        status["reason"] = f"store_unavailable: {e.code}"
        return status, 200

    status["store_ok"] = True
    status["queued"] = summary.by_status.get(JobStatus.QUEUED.value, 0)
    return status, 200
