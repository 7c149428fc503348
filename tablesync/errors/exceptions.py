from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tablesync.errors.codes import ErrorCode
from tablesync.errors.mapper import map_error


@dataclass
class WorkflowError(Exception):
    """Base class for errors surfaced by the synchronization workflow."""

    message: str
    code: ErrorCode = ErrorCode.INTERNAL
    retryable: bool = False
    details: Optional[List[str]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    @property
    def http_status(self) -> int:
        return map_error(self.code)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    @classmethod
    def wrap(cls, exc: BaseException) -> "WorkflowError":
        """Coerce any exception into a WorkflowError, keeping typed ones as-is."""
        if isinstance(exc, WorkflowError):
            return exc
        return cls(
            message=str(exc) or type(exc).__name__,
            extra={"error_type": type(exc).__name__},
        )


@dataclass
class DatabaseError(WorkflowError):
    """Query execution failure: connection, syntax, constraint violation."""

    code: ErrorCode = ErrorCode.DB_ERROR

    @classmethod
    def unavailable(cls, message: str) -> "DatabaseError":
        return cls(
            message=message,
            code=ErrorCode.DB_UNAVAILABLE,
            retryable=map_error(ErrorCode.DB_UNAVAILABLE)[1],
        )


@dataclass
class ResolutionError(WorkflowError):
    """A constraint references a table name absent from the in-memory table set."""

    code: ErrorCode = ErrorCode.CONSTRAINT_UNRESOLVED
