from __future__ import annotations

"""
SQLite persistence for print jobs.

Features:
- DB path resolution with env/XDG defaults (see core.config)
- One short-lived connection per operation, safe to share across threads
- PRAGMAs for reliability: WAL, synchronous=NORMAL, busy_timeout
- Schema bootstrap and simple migrations (schema_version)
- Conditional QUEUED -> DELIVERED update so concurrent fetches cannot both win
- Queue order is insertion order (seq), assigned under the write lock
"""

import contextlib
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from print_dispatch.core.config import get_db_path
from print_dispatch.dispatch.errors import StorageError
from print_dispatch.dispatch.jobs import (
    DeliveryResult,
    JobStatus,
    JobStore,
    JobSummary,
    PrintJob,
    new_job_id,
    utc_now,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
BUSY_TIMEOUT_SECONDS = 5.0

_HINTS = {
    "SQLITE_BUSY": "Another connection holds the write lock; retry the request.",
    "SQLITE_LOCKED": "Another connection holds the write lock; retry the request.",
    "SQLITE_CANTOPEN": "Check that PRINTDISPATCH_DB_PATH points to a writable location.",
    "SQLITE_READONLY": "The job database is read-only; check file permissions.",
    "SQLITE_CONSTRAINT": "A constraint on print_jobs was violated.",
    "SQLITE_CONSTRAINT_UNIQUE": "A job with this id already exists.",
}


# ----- Utilities -------------------------------------------------------------


def _iso(dt: Optional[datetime]) -> Optional[str]:
    # Fixed-width microsecond timestamps keep lexical order equal to time order.
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse(s: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(s) if s else None


def _row_to_job(row: sqlite3.Row) -> PrintJob:
    return PrintJob(
        id=row["id"],
        printer_id=row["printer_id"],
        payload=row["payload"],
        content_type=row["content_type"],
        status=JobStatus(row["status"]),
        encoding=row["encoding"],
        created_at=_parse(row["created_at"]),  # type: ignore[arg-type]
        delivered_at=_parse(row["delivered_at"]),
        order_reference=row["order_reference"],
        receipt_kind=row["receipt_kind"],
    )


def _error_code(e: BaseException) -> str:
    return getattr(e, "sqlite_errorname", None) or type(e).__name__


# ----- Schema and migrations -------------------------------------------------


def _apply_pragmas(db: sqlite3.Connection) -> None:
    db.execute(f"PRAGMA busy_timeout = {int(BUSY_TIMEOUT_SECONDS * 1000)}")
    db.execute("PRAGMA journal_mode = WAL")
    db.execute("PRAGMA synchronous = NORMAL")


def _ensure_schema(db: sqlite3.Connection) -> None:
    """
    Create tables if not present and ensure schema_version is initialized.
    """
    with db:
        db.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
              version INTEGER NOT NULL
            )
            """,
        )
        db.execute(
            """
            CREATE TABLE IF NOT EXISTS print_jobs (
              seq              INTEGER PRIMARY KEY AUTOINCREMENT,
              id               TEXT NOT NULL UNIQUE,
              printer_id       TEXT NOT NULL,
              payload          TEXT NOT NULL,
              content_type     TEXT NOT NULL,
              status           TEXT NOT NULL DEFAULT 'QUEUED',
              encoding         TEXT NOT NULL DEFAULT 'unencoded',
              order_reference  TEXT,
              receipt_kind     TEXT,
              created_at       TEXT NOT NULL,
              delivered_at     TEXT
            )
            """,
        )
        db.execute(
            "CREATE INDEX IF NOT EXISTS idx_print_jobs_queue ON print_jobs(printer_id, status, seq)",
        )
        db.execute("CREATE INDEX IF NOT EXISTS idx_print_jobs_created ON print_jobs(created_at)")

        row = db.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1").fetchone()
        if row is None:
            db.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        elif int(row["version"]) < SCHEMA_VERSION:
            _migrate(db, int(row["version"]), SCHEMA_VERSION)


def _migrate(db: sqlite3.Connection, current: int, target: int) -> None:
    """
    Incremental migrations from `current` to `target`. Only version 1 exists so far.
    """
    logger.info("Migrating DB schema from v%s to v%s", current, target)
    db.execute("INSERT INTO schema_version (version) VALUES (?)", (target,))


# ----- Store -----------------------------------------------------------------


class SQLiteJobStore(JobStore):
    """JobStore backed by a SQLite file."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or get_db_path()
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def _open(self) -> sqlite3.Connection:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, timeout=BUSY_TIMEOUT_SECONDS)
        conn.row_factory = sqlite3.Row
        _apply_pragmas(conn)
        if not self._schema_ready:
            with self._schema_lock:
                if not self._schema_ready:
                    _ensure_schema(conn)
                    self._schema_ready = True
        return conn

    @contextlib.contextmanager
    def _connection(self, operation: str, printer_id: Optional[str] = None) -> Iterator[sqlite3.Connection]:
        """
        Yield a connection; translate datastore failures into StorageError.
        """
        try:
            conn = self._open()
        except (sqlite3.Error, OSError) as e:
            raise self._storage_error(e, operation, printer_id) from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise self._storage_error(e, operation, printer_id) from e
        finally:
            conn.close()

    def _storage_error(self, e: BaseException, operation: str, printer_id: Optional[str]) -> StorageError:
        code = _error_code(e)
        logger.error(
            "store error operation=%s printer_id=%s code=%s: %s",
            operation,
            printer_id or "-",
            code,
            e,
            extra={"event": "store.error", "operation": operation, "printer_id": printer_id},
        )
        return StorageError(
            f"{operation} failed: {e}",
            operation=operation,
            printer_id=printer_id,
            code=code,
            hint=_HINTS.get(code, f"Check the job database at {self.path}."),
        )

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
        with self._connection("enqueue", printer_id) as db:
            with db:
                # Take the write lock before stamping so created_at follows seq.
                db.execute("BEGIN IMMEDIATE")
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
                db.execute(
                    """
                    INSERT INTO print_jobs
                      (id, printer_id, payload, content_type, status, encoding, order_reference, receipt_kind, created_at)
                    VALUES (?,?,?,?,?,?,?,?,?)
                    """,
                    (
                        job.id,
                        job.printer_id,
                        job.payload,
                        job.content_type,
                        JobStatus.QUEUED.value,
                        job.encoding,
                        job.order_reference,
                        job.receipt_kind,
                        _iso(job.created_at),
                    ),
                )
        return job

    def peek_oldest_queued(self, printer_id: str) -> Optional[PrintJob]:
        with self._connection("peek_oldest_queued", printer_id) as db:
            row = db.execute(
                """
                SELECT * FROM print_jobs
                WHERE printer_id = ? AND status = ?
                ORDER BY seq ASC
                LIMIT 1
                """,
                (printer_id, JobStatus.QUEUED.value),
            ).fetchone()
        return _row_to_job(row) if row is not None else None

    def mark_delivered(self, job_id: str) -> DeliveryResult:
        with self._connection("mark_delivered") as db:
            with db:
                cur = db.execute(
                    "UPDATE print_jobs SET status = ?, delivered_at = ? WHERE id = ? AND status = ?",
                    (JobStatus.DELIVERED.value, _iso(utc_now()), job_id, JobStatus.QUEUED.value),
                )
                if cur.rowcount == 1:
                    return DeliveryResult.TRANSITIONED
                exists = db.execute("SELECT 1 FROM print_jobs WHERE id = ?", (job_id,)).fetchone()
        return DeliveryResult.ALREADY_DELIVERED if exists else DeliveryResult.NOT_FOUND

    def list_recent(self, printer_id: Optional[str] = None, limit: int = 50) -> List[PrintJob]:
        with self._connection("list_recent", printer_id) as db:
            if printer_id:
                rows = db.execute(
                    "SELECT * FROM print_jobs WHERE printer_id = ? ORDER BY seq DESC LIMIT ?",
                    (printer_id, max(0, int(limit))),
                ).fetchall()
            else:
                rows = db.execute(
                    "SELECT * FROM print_jobs ORDER BY seq DESC LIMIT ?",
                    (max(0, int(limit)),),
                ).fetchall()
        return [_row_to_job(r) for r in rows]

    def summarize(self, since: Optional[datetime] = None) -> JobSummary:
        summary = JobSummary()
        with self._connection("summarize") as db:
            rows = db.execute(
                """
                SELECT status, printer_id, COUNT(*) AS n
                FROM print_jobs
                WHERE created_at >= ?
                GROUP BY status, printer_id
                """,
                (_iso(since) if since else "",),
            ).fetchall()
        for r in rows:
            summary.add(r["status"], r["printer_id"], int(r["n"]))
        return summary


__all__ = ["SCHEMA_VERSION", "SQLiteJobStore"]
