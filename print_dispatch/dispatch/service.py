"""
Enqueue service: the producer-facing entry point for print jobs.

Validates a request, applies the payload codec when the content carries
printer control codes, and writes a QUEUED job. Callers that need a
structured receipt compose it first (see dispatch.receipt) and pass the
result in as the payload.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from . import codec
from .errors import ValidationError
from .jobs import JobStatus, JobStore, PrintJob

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"

# type/subtype with optional ;name=value parameters (RFC 7231 tokens).
_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
MEDIA_TYPE_RE = re.compile(rf"{_TOKEN}/{_TOKEN}(?:[ \t]*;[ \t]*{_TOKEN}=(?:{_TOKEN}|\"[^\"\r\n]*\"))*")


@dataclass(frozen=True)
class EnqueueResult:
    job_id: str
    printer_id: str
    status: JobStatus
    encoding: str


class EnqueueService:
    def __init__(self, store: JobStore, default_content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        self.store = store
        self.default_content_type = default_content_type

    def submit(
        self,
        printer_id: Any,
        payload: Any,
        content_type: Optional[str] = None,
        *,
        order_reference: Optional[str] = None,
        receipt_kind: Optional[str] = None,
    ) -> EnqueueResult:
        """
        Queue `payload` for `printer_id`.

        Raises ValidationError for missing/malformed input and StorageError
        when the job cannot be written.
        """
        if not isinstance(printer_id, str) or not printer_id.strip():
            raise ValidationError("printer_id and payload are required")
        if payload is None or payload == "":
            raise ValidationError("printer_id and payload are required")
        if not isinstance(payload, str):
            raise ValidationError("payload must be a string")

        printer_id = printer_id.strip()
        if content_type is not None and not isinstance(content_type, str):
            raise ValidationError("content_type must be a string")
        content_type = (content_type or "").strip() or self.default_content_type
        if not MEDIA_TYPE_RE.fullmatch(content_type):
            raise ValidationError("content_type must be a media type such as text/plain")
        stored, marker = codec.encode(payload)
        if marker != codec.UNENCODED:
            logger.info("payload for printer_id=%s contains control codes; stored as %s", printer_id, marker)

        job: PrintJob = self.store.enqueue(
            printer_id,
            stored,  # type: ignore[arg-type]
            content_type,
            encoding=marker,
            order_reference=order_reference,
            receipt_kind=receipt_kind,
        )
        logger.info(
            "job enqueued job_id=%s printer_id=%s content_type=%s encoding=%s",
            job.id,
            job.printer_id,
            job.content_type,
            marker,
            extra={"event": "job.enqueued", "job_id": job.id, "printer_id": job.printer_id},
        )
        return EnqueueResult(job_id=job.id, printer_id=job.printer_id, status=JobStatus(job.status), encoding=marker)


__all__ = ["DEFAULT_CONTENT_TYPE", "MEDIA_TYPE_RE", "EnqueueResult", "EnqueueService"]
