from __future__ import annotations

"""
JSON API for Print Dispatch.

Endpoints:
- POST /print-jobs         : Queue raw receipt content for a printer
- POST /print-jobs/receipt : Compose a kitchen/customer receipt, then queue it
- GET  /print-jobs         : Recent jobs (optionally ?printer_id=) plus counts

Payload shape (POST /print-jobs):
{"printer_id": str, "payload": str, "content_type": str?, "order_reference": str?, "receipt_kind": str?}
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Type, TypeVar

from flask import Blueprint, jsonify, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from print_dispatch.dispatch.codec import payload_text
from print_dispatch.dispatch.errors import StorageError, ValidationError
from print_dispatch.dispatch.jobs import utc_now
from print_dispatch.dispatch.receipt import CutMode, ReceiptOptions, compose_receipt
from print_dispatch.dispatch.service import EnqueueResult
from . import schemas
from .context import get_dispatch

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

M = TypeVar("M", bound=BaseModel)


def _json_error(msg: str, status: int = 400, **extra: Any):
    body: Dict[str, Any] = {"error": msg}
    body.update(extra)
    return jsonify(body), status


def _parse_body(model: Type[M]) -> M:
    """
    Validate the JSON request body against `model`.

    Raises ValidationError with a concise message for anything that is not a
    JSON object or fails validation.
    """
    if not request.is_json:
        raise ValidationError("Expected application/json body")
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("invalid JSON payload")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        # Return a concise error message
        errors = e.errors()
        if not errors:
            raise ValidationError(str(e)) from e
        first_err = errors[0]
        loc = ".".join(str(p) for p in first_err.get("loc", ()))
        msg = first_err.get("msg") or str(e)
        raise ValidationError(f"{loc}: {msg}" if loc else msg) from e


def _accepted(result: EnqueueResult):
    resp = schemas.EnqueueAcceptedResponse(
        job_id=result.job_id,
        printer_id=result.printer_id,
        status=result.status.value,
    )
    return jsonify(resp.model_dump(by_alias=True)), 200


def _cut_mode(requested: Optional[CutMode], configured: str) -> CutMode:
    if requested is not None:
        return requested
    try:
        return CutMode(configured)
    except ValueError:
        logger.warning("unknown cut mode %r in settings; using partial", configured)
        return CutMode.PARTIAL


@api_bp.post("/print-jobs")
def enqueue_job():
    """
    Validate and queue a print job. Payloads carrying printer control codes
    are stored base64-encoded; the printer receives the original bytes.
    """
    try:
        req = _parse_body(schemas.EnqueueRequest)
        result = get_dispatch().service.submit(
            req.printer_id,
            req.payload,
            req.content_type,
            order_reference=req.order_reference,
            receipt_kind=req.receipt_kind,
        )
    except ValidationError as e:
        return _json_error(str(e), 400)
    except StorageError as e:
        return _json_error("Failed to enqueue print job", 500, **e.to_dict())
    return _accepted(result)


@api_bp.post("/print-jobs/receipt")
def enqueue_receipt():
    """
    Compose a structured receipt and queue the resulting command stream.
    """
    dispatch = get_dispatch()
    settings = dispatch.settings
    try:
        req = _parse_body(schemas.ReceiptRequest)
        options = ReceiptOptions(
            kind=req.kind,
            order_reference=req.order_reference,
            customer_name=req.customer_name,
            header_text=req.header_text,
            footer_text=req.footer_text,
            show_prices=req.show_prices,
            payment=req.payment.to_summary() if req.payment else None,
            printed_at=utc_now(),
            cut=_cut_mode(req.cut, settings.cut_mode),
            feed_lines=settings.feed_lines if req.feed_lines is None else req.feed_lines,
            paper_width=settings.paper_width,
            codepage=settings.codepage,
            currency_symbol=settings.currency_symbol,
        )
        data = compose_receipt([line.to_line() for line in req.lines], options, dispatch.categories)
        result = dispatch.service.submit(
            req.printer_id,
            payload_text(data),
            settings.receipt_content_type,
            order_reference=req.order_reference,
            receipt_kind=req.kind.value,
        )
    except ValidationError as e:
        return _json_error(str(e), 400)
    except StorageError as e:
        return _json_error("Failed to enqueue print job", 500, **e.to_dict())
    return _accepted(result)


@api_bp.get("/print-jobs")
def list_jobs():
    dispatch = get_dispatch()
    settings = dispatch.settings
    printer_id = (request.args.get("printer_id") or "").strip() or None
    now = utc_now()
    try:
        jobs = dispatch.store.list_recent(printer_id, settings.list_limit)
        summary = dispatch.store.summarize(now - timedelta(hours=settings.summary_window_hours))
    except StorageError as e:
        return _json_error("Failed to fetch print jobs", 500, **e.to_dict())
    return (
        jsonify(
            {
                "jobs": [j.to_summary() for j in jobs],
                "summary": summary.to_dict(),
                "timestamp": now.isoformat(),
            }
        ),
        200,
    )


__all__ = ["api_bp"]
