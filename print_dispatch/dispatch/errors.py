"""Error taxonomy for the dispatch subsystem."""

from __future__ import annotations

from typing import Optional


class ValidationError(ValueError):
    """Enqueue or receipt input is missing or malformed. Never retried."""


class DecodeError(ValueError):
    """A stored payload could not be reversed with its recorded encoding."""


class StorageError(RuntimeError):
    """
    The job datastore failed (unavailable, locked, constraint violation).

    Carries enough context for logs and diagnostic responses: the store
    operation, the printer involved (if any), a short error code and a hint.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        printer_id: Optional[str] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.printer_id = printer_id
        self.code = code
        self.hint = hint

    def to_dict(self) -> dict:
        return {
            "details": str(self),
            "code": self.code,
            "hint": self.hint,
        }


__all__ = ["DecodeError", "StorageError", "ValidationError"]
