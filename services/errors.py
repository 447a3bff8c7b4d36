"""Error kinds surfaced by the interview session engine."""
from __future__ import annotations


class SessionError(Exception):
    """Structural error returned to callers verbatim."""

    kind = "session_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SessionError):
    kind = "not_found"


class ConflictError(SessionError):
    kind = "conflict"


class InvalidArgumentError(SessionError):
    kind = "invalid_argument"


class BackendDegraded(RuntimeError):
    """Generative backend output was unusable; always absorbed by a fallback."""


__all__ = [
    "SessionError",
    "NotFoundError",
    "ConflictError",
    "InvalidArgumentError",
    "BackendDegraded",
]
