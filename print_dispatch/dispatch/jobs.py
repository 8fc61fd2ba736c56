"""
Print job model and the JobStore interface.

A PrintJob is one payload destined for one printer. Jobs are created QUEUED
and move to DELIVERED exactly once, when a printer fetches the content. Per
printer, QUEUED jobs are offered in insertion order.

MemoryJobStore is a lock-protected in-process implementation with the same
semantics as the SQLite store; it backs tests and single-process setups.
"""

from __future__ import annotations

import abc
import itertools
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    DELIVERED = "DELIVERED"


class DeliveryResult(str, Enum):
    TRANSITIONED = "transitioned"  # this caller moved the job to DELIVERED
    ALREADY_DELIVERED = "already_delivered"  # no-op; someone else won
    NOT_FOUND = "not_found"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PrintJob:
    id: str
    printer_id: str
    payload: str
    content_type: str
    status: JobStatus = JobStatus.QUEUED
    encoding: str = "unencoded"
    created_at: datetime = field(default_factory=utc_now)
    delivered_at: Optional[datetime] = None
    order_reference: Optional[str] = None
    receipt_kind: Optional[str] = None

    def to_summary(self) -> Dict[str, Any]:
        """JSON-friendly view without the payload."""
        data = asdict(self)
        data.pop("payload", None)
        data["status"] = JobStatus(self.status).value
        data["created_at"] = self.created_at.isoformat()
        data["delivered_at"] = self.delivered_at.isoformat() if self.delivered_at else None
        return data


@dataclass
class JobSummary:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_printer: Dict[str, int] = field(default_factory=dict)

    def add(self, status: str, printer_id: str, count: int = 1) -> None:
        self.total += count
        self.by_status[status] = self.by_status.get(status, 0) + count
        self.by_printer[printer_id] = self.by_printer.get(printer_id, 0) + count

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "byStatus": dict(self.by_status), "byPrinter": dict(self.by_printer)}


class JobStore(abc.ABC):
    """
    Durable, per-printer ordered queue of print jobs.

    Implementations raise StorageError for datastore failures.
    """

    @abc.abstractmethod
    def enqueue(
        self,
        printer_id: str,
        payload: str,
        content_type: str,
        *,
        encoding: str = "unencoded",
        order_reference: Optional[str] = None,
        receipt_kind: Optional[str] = None,
    ) -> PrintJob:
        """Insert a QUEUED job atomically and return it."""

    @abc.abstractmethod
    def peek_oldest_queued(self, printer_id: str) -> Optional[PrintJob]:
        """First-inserted QUEUED job for the printer, without changing any state."""

    @abc.abstractmethod
    def mark_delivered(self, job_id: str) -> DeliveryResult:
        """Conditionally move QUEUED -> DELIVERED; exactly one concurrent caller transitions."""

    @abc.abstractmethod
    def list_recent(self, printer_id: Optional[str] = None, limit: int = 50) -> List[PrintJob]:
        """Newest first, optionally for one printer."""

    @abc.abstractmethod
    def summarize(self, since: Optional[datetime] = None) -> JobSummary:
        """Counts by status and printer for jobs created at or after `since`."""


class MemoryJobStore(JobStore):
    def __init__(self) -> None:
        self._jobs: Dict[str, PrintJob] = {}
        self._seq: Dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.RLock()

    def enqueue(
        self,
        printer_id: str,
        payload: str,
        content_type: str,
        *,
        encoding: str = "unencoded",
        order_reference: Optional[str] = None,
        receipt_kind: Optional[str] = None,
    ) -> PrintJob:
        with self._lock:
            job = PrintJob(
                id=new_job_id(),
                printer_id=printer_id,
                payload=payload,
                content_type=content_type,
                encoding=encoding,
                created_at=utc_now(),
                order_reference=order_reference,
                receipt_kind=receipt_kind,
            )
            self._jobs[job.id] = job
            self._seq[job.id] = next(self._counter)
        return _copy(job)

    def _ordered(self) -> List[PrintJob]:
        return sorted(self._jobs.values(), key=lambda j: self._seq[j.id])

    def peek_oldest_queued(self, printer_id: str) -> Optional[PrintJob]:
        with self._lock:
            for job in self._ordered():
                if job.printer_id == printer_id and job.status is JobStatus.QUEUED:
                    return _copy(job)
        return None

    def mark_delivered(self, job_id: str) -> DeliveryResult:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return DeliveryResult.NOT_FOUND
            if job.status is not JobStatus.QUEUED:
                return DeliveryResult.ALREADY_DELIVERED
            job.status = JobStatus.DELIVERED
            job.delivered_at = utc_now()
            return DeliveryResult.TRANSITIONED

    def list_recent(self, printer_id: Optional[str] = None, limit: int = 50) -> List[PrintJob]:
        with self._lock:
            items = [j for j in reversed(self._ordered()) if printer_id is None or j.printer_id == printer_id]
            return [_copy(j) for j in items[: max(0, limit)]]

    def summarize(self, since: Optional[datetime] = None) -> JobSummary:
        summary = JobSummary()
        with self._lock:
            for job in self._jobs.values():
                if since is None or job.created_at >= since:
                    summary.add(JobStatus(job.status).value, job.printer_id)
        return summary


def _copy(job: PrintJob) -> PrintJob:
    return PrintJob(**{k: getattr(job, k) for k in job.__dataclass_fields__})


__all__ = [
    "DeliveryResult",
    "JobStatus",
    "JobStore",
    "JobSummary",
    "MemoryJobStore",
    "PrintJob",
    "new_job_id",
    "utc_now",
]
