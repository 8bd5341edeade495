"""RFC 7807 problem responses for exceptions that escape a route.

The purge endpoint answers with its own body for everything it decides
itself; what reaches these handlers is mostly raised by dependencies
(missing or under-privileged principals) or is a genuine bug.

    BadInputError        400  /errors/bad-input
    AuthenticationError  401  /errors/<error-code>, plus a Bearer challenge
    AuthorizationError   403  /errors/forbidden
    RecordStoreError     500  /errors/record-store-error, reason withheld
    DomainError          400  /errors/domain-error
    anything else        500  /errors/internal-error

Every 5xx body carries the request's correlation id.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tabula.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadInputError,
    DomainError,
    RecordStoreError,
)
from tabula.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemDetail(BaseModel):
    """RFC 7807 body with tabula's ``error_code``/``context``/``correlation_id`` extensions."""

    type: str = Field(..., examples=["/errors/forbidden"])
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: str
    instance: str | None = None
    error_code: str | None = Field(default=None, examples=["AUTHORIZATION_ERROR"])
    context: dict[str, Any] | None = None
    correlation_id: str | None = None


@dataclass(frozen=True, slots=True)
class _Problem:
    status: int
    title: str
    slug: str | None  # None: derived from the exception's error_code
    show_context: bool = True


_PROBLEMS: dict[type[DomainError], _Problem] = {
    BadInputError: _Problem(400, "Bad Request", "bad-input"),
    AuthenticationError: _Problem(401, "Unauthorized", None, show_context=False),
    AuthorizationError: _Problem(403, "Forbidden", "forbidden"),
    RecordStoreError: _Problem(
        500, "Internal Server Error", "record-store-error", show_context=False
    ),
    DomainError: _Problem(400, "Bad Request", "domain-error"),
}

# Keys dropped from context and secrets masked inside string values
_SECRET_KEYS = frozenset({"password", "secret", "token", "api_key", "apikey", "credential"})
_SECRET_TEXT = (
    (re.compile(r"postgresql(\+\w+)?://[^@]*@[^/\s]*"), "postgresql://[REDACTED]@[REDACTED]"),
    (re.compile(r"password\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"token\s*=\s*['\"]?[^'\"\s]+['\"]?", re.IGNORECASE), "token=[REDACTED]"),
)


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    if not context:
        return None
    cleaned = {k: _sanitize_value(v) for k, v in context.items() if k.lower() not in _SECRET_KEYS}
    return cleaned or None


def _sanitize_value(value: Any) -> Any:
    """Make a context value JSON-safe with embedded secrets masked."""
    match value:
        case UUID():
            return str(value)
        case datetime():
            return value.isoformat()
        case str():
            for pattern, replacement in _SECRET_TEXT:
                value = pattern.sub(replacement, value)
            return value
        case dict():
            return _sanitize_context(value)
        case list() | tuple() | set() | frozenset():
            return [_sanitize_value(v) for v in value]
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _respond(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


def _lookup(exc: DomainError) -> _Problem:
    for cls in type(exc).__mro__:
        if cls in _PROBLEMS:
            return _PROBLEMS[cls]  # type: ignore[index]
    return _PROBLEMS[DomainError]


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render any DomainError according to the table above."""
    kind = _lookup(exc)
    slug = kind.slug or exc.error_code.lower().replace("_", "-")
    path = str(request.url.path)

    detail = exc.message
    correlation_id = None
    if isinstance(exc, RecordStoreError):
        # The driver's reason can leak connection details; it stays in the log
        detail = f"Record store {exc.operation} on '{exc.category}' failed"
        correlation_id = get_request_id() or "unknown"
        logger.error(
            "record_store_error",
            extra={
                "correlation_id": correlation_id,
                "path": path,
                "operation": exc.operation,
                "category": exc.category,
            },
        )

    response = _respond(
        ProblemDetail(
            type=f"/errors/{slug}",
            title=kind.title,
            status=kind.status,
            detail=detail,
            instance=path,
            error_code=exc.error_code,
            context=_sanitize_context(exc.context) if kind.show_context else None,
            correlation_id=correlation_id,
        )
    )
    if isinstance(exc, AuthenticationError):
        # RFC 6750 section 3: every Bearer 401 carries a challenge
        response.headers["WWW-Authenticate"] = f'Bearer realm="API", error="{exc.auth_error}"'
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the full exception; answer with a generic 500 and the correlation id."""
    correlation_id = get_request_id() or "unknown"
    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": str(request.url.path),
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    return _respond(
        ProblemDetail(
            type="/errors/internal-error",
            title="Internal Server Error",
            status=500,
            detail="An internal error occurred. Please contact support with the correlation ID.",
            instance=str(request.url.path),
            error_code="INTERNAL_ERROR",
            correlation_id=correlation_id,
        )
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem handlers; published as the ``rfc7807`` entry point."""
    # Starlette's handler typing is stricter than the per-exception signatures
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
