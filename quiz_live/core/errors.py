"""Errors raised by live session operations.

Each error carries a stable ``code`` that the server layer reports to the
issuing client and maps to an HTTP status code.
"""

from __future__ import annotations


class SessionError(Exception):
    """Base class for per-command failures reported back to the caller."""

    code = "session_error"

    def __init__(self, message: str | None = None, **details: object) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"code": self.code, "message": self.message}
        payload.update(self.details)
        return payload


class NotAuthenticated(SessionError):
    code = "not_authenticated"


class NotAssigned(SessionError):
    code = "quiz_not_assigned"


class NotFound(SessionError):
    code = "not_found"


class Forbidden(SessionError):
    code = "forbidden"


class AlreadyInProgress(SessionError):
    code = "attempt_already_in_progress"


class AlreadyCompleted(SessionError):
    code = "attempt_already_completed"


class NoQuestions(SessionError):
    code = "no_questions"


class StorageFailure(SessionError):
    """A collaborator (attempt store, question bank) failed unexpectedly."""

    code = "storage_failure"


class InvalidRequest(SessionError):
    code = "invalid_request"


class InternalError(SessionError):
    """An unexpected failure while handling a command; the connection stays open."""

    code = "internal_error"
