"""Errors the purge service and its HTTP surface raise.

Each carries a machine-readable ``error_code`` plus a ``context`` dict that
the problem handlers sanitize into the response body.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BadInputError",
    "DomainError",
    "RecordStoreError",
]


class DomainError(Exception):
    """Root of the hierarchy.

    >>> str(DomainError("Operation failed", {"user_id": "123"}))
    'Operation failed (user_id=123)'
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        pairs = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({pairs})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class BadInputError(DomainError):
    """The whole payload is unusable (not one identifier in it). HTTP 400."""

    error_code: str = "BAD_INPUT"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Bad Request: '{field}' {reason}",
            {"field": field, "reason": reason, **extra_context},
        )


class AuthenticationError(DomainError):
    """No usable credentials. HTTP 401.

    ``auth_error`` is the RFC 6750 code placed in the ``WWW-Authenticate``
    challenge; ``error_code`` may be narrowed per instance, e.g. ``TOKEN_EXPIRED``.
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)


class AuthorizationError(DomainError):
    """Authenticated, but without the role or tenant the operation needs. HTTP 403."""

    error_code: str = "AUTHORIZATION_ERROR"


class RecordStoreError(DomainError):
    """A ``find`` or ``delete`` against the record store failed.

    Deletes are never retried: a batch delete that errored may still have
    removed some records. ``reason`` carries the driver's text and is kept out
    of response bodies.

    Attributes:
        operation: ``"find"`` or ``"delete"``.
        category: Record category the call targeted.
        reason: Underlying failure text.
    """

    error_code: str = "RECORD_STORE_ERROR"

    def __init__(self, operation: str, category: str, reason: str) -> None:
        self.operation = operation
        self.category = category
        self.reason = reason
        super().__init__(
            f"Record store {operation} on '{category}' failed: {reason}",
            {"operation": operation, "category": category},
        )
