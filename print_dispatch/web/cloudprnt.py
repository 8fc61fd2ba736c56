from __future__ import annotations

"""
CloudPRNT-style printer endpoints.

Endpoints:
- POST /printers/<printer_id>/job : Phase A, availability check (read-only)
- GET  /printers/<printer_id>/job : Phase B, content fetch (marks the job DELIVERED)

Printers poll these on their own schedule, so both responses disable caching
and Phase A never answers with an error status.
"""

import logging

from flask import Blueprint, Response, jsonify, request

from print_dispatch.dispatch.errors import StorageError
from .context import get_dispatch

logger = logging.getLogger(__name__)

cloudprnt_bp = Blueprint("cloudprnt", __name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _no_cache(response: Response) -> Response:
    response.headers.update(NO_CACHE_HEADERS)
    return response


@cloudprnt_bp.post("/printers/<printer_id>/job")
def check_job(printer_id: str):
    # The body is printer status (printerMAC, statusCode, ...); logged only.
    status = request.get_json(silent=True, force=True)
    if not isinstance(status, dict):
        status = {}
    availability = get_dispatch().poller.check_availability(printer_id, status)
    return _no_cache(jsonify(availability.to_dict()))


@cloudprnt_bp.get("/printers/<printer_id>/job")
def fetch_job(printer_id: str):
    media_type = request.args.get("type")
    device_id = request.args.get("device") or request.args.get("mac")
    try:
        delivery = get_dispatch().poller.fetch(printer_id, media_type, device_id)
    except StorageError as e:
        logger.error("content fetch failed printer_id=%s: %s", printer_id, e)
        return _no_cache(Response("Failed to fetch print job", status=500, mimetype="text/plain"))

    if delivery is None:
        return _no_cache(Response(status=204))

    resp = Response(delivery.body, status=200)
    # Stored content type goes out verbatim, no charset appended.
    resp.headers["Content-Type"] = delivery.content_type
    return _no_cache(resp)


__all__ = ["NO_CACHE_HEADERS", "cloudprnt_bp"]
