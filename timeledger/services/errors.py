"""
Domain errors raised by the time-accounting services.

Every error carries a short ``kind`` used by the HTTP layer for status mapping
and a ``context`` dict with whatever identifies the failure (entry id, status,
attempted action, ...). None of them are retried by the services.
"""

from typing import Any


class TimesheetError(Exception):
    """Base exception for business rule violations."""

    kind = "error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict:
        body = {"error": self.kind, "detail": self.message}
        body.update({k: str(v) for k, v in self.context.items()})
        return body


class ValidationError(TimesheetError):
    """Raised when input is malformed or out of range."""

    kind = "validation_error"


class DailyCapExceeded(TimesheetError):
    """Raised when a write would push a user's day above the hours cap."""

    kind = "daily_cap_exceeded"


class NotFound(TimesheetError):
    """Raised when an entry, project or user reference does not resolve."""

    kind = "not_found"


class Forbidden(TimesheetError):
    """Raised when the actor lacks ownership or approver rights."""

    kind = "forbidden"


class InvalidState(TimesheetError):
    """Raised when an operation is not legal from the entry's current status."""

    kind = "invalid_state"
