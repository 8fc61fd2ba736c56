"""
CloudPRNT-style poll handling.

A printer drives a two-phase cycle against the server:

Phase A (availability check): "is there a job for me?" Read-only; a printer
may get "ready" and never come back, so the job must stay QUEUED.

Phase B (content fetch): the oldest QUEUED job is decoded, marked DELIVERED
and only then handed over. If another fetch for the same printer wins the
DELIVERED transition first, this fetch moves on to the next queued job or
reports that nothing is available.

No state is kept between phases; everything lives in the JobStore.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from . import codec
from .errors import DecodeError, StorageError
from .jobs import DeliveryResult, JobStore

logger = logging.getLogger(__name__)

# Bound on re-peeks after losing a delivery race.
MAX_FETCH_ATTEMPTS = 5


@dataclass(frozen=True)
class Availability:
    ready: bool
    content_type: Optional[str] = None
    job_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.ready:
            return {"jobReady": False}
        return {"jobReady": True, "mediaTypes": [self.content_type], "jobToken": self.job_token}


@dataclass(frozen=True)
class Delivery:
    job_id: str
    printer_id: str
    content_type: str
    body: bytes


class PollHandler:
    def __init__(self, store: JobStore, max_fetch_attempts: int = MAX_FETCH_ATTEMPTS) -> None:
        self.store = store
        self.max_fetch_attempts = max(1, int(max_fetch_attempts))

    def check_availability(self, printer_id: str, status: Optional[Mapping[str, Any]] = None) -> Availability:
        """
        Phase A. A storage failure reports "not ready" so the printer simply
        polls again on its own schedule.
        """
        if status:
            logger.debug(
                "printer status printer_id=%s status=%s mac=%s code=%s",
                printer_id,
                status.get("status"),
                status.get("printerMAC"),
                status.get("statusCode"),
            )
        try:
            job = self.store.peek_oldest_queued(printer_id)
        except StorageError as e:
            logger.warning(
                "availability check degraded to not-ready printer_id=%s: %s",
                printer_id,
                e,
                extra={"event": "poll.storage_error", "printer_id": printer_id},
            )
            return Availability(ready=False)

        if job is None:
            logger.debug("no job printer_id=%s", printer_id, extra={"event": "poll.miss", "printer_id": printer_id})
            return Availability(ready=False)

        logger.info(
            "job ready job_id=%s printer_id=%s",
            job.id,
            printer_id,
            extra={"event": "poll.hit", "job_id": job.id, "printer_id": printer_id},
        )
        return Availability(ready=True, content_type=job.content_type, job_token=job.id)

    def fetch(
        self,
        printer_id: str,
        media_type: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> Optional[Delivery]:
        """
        Phase B. Returns the delivered job, or None when nothing is queued.

        StorageError propagates: a failed read or a failed DELIVERED
        transition must not hand out content.
        """
        for _ in range(self.max_fetch_attempts):
            job = self.store.peek_oldest_queued(printer_id)
            if job is None:
                logger.debug(
                    "nothing to deliver printer_id=%s device=%s",
                    printer_id,
                    device_id or "-",
                    extra={"event": "fetch.empty", "printer_id": printer_id},
                )
                return None

            try:
                body = codec.decode_strict(job.payload, job.encoding)
            except DecodeError as e:
                logger.warning(
                    "payload decode failed job_id=%s printer_id=%s: %s; delivering stored bytes",
                    job.id,
                    printer_id,
                    e,
                    extra={"event": "fetch.decode_failed", "job_id": job.id, "printer_id": printer_id},
                )
                body = codec.payload_bytes(job.payload)

            result = self.store.mark_delivered(job.id)
            if result is DeliveryResult.TRANSITIONED:
                if media_type and media_type != job.content_type:
                    logger.debug("printer requested %s; job is %s job_id=%s", media_type, job.content_type, job.id)
                logger.info(
                    "job delivered job_id=%s printer_id=%s device=%s bytes=%d",
                    job.id,
                    printer_id,
                    device_id or "-",
                    len(body),
                    extra={"event": "fetch.delivered", "job_id": job.id, "printer_id": printer_id},
                )
                return Delivery(job_id=job.id, printer_id=printer_id, content_type=job.content_type, body=body)

            logger.info(
                "job already taken job_id=%s printer_id=%s result=%s; retrying",
                job.id,
                printer_id,
                result.value,
                extra={"event": "fetch.lost_race", "job_id": job.id, "printer_id": printer_id},
            )
        return None


__all__ = ["Availability", "Delivery", "MAX_FETCH_ATTEMPTS", "PollHandler"]
