"""Correlation id for every request.

A client-supplied ``X-Request-ID`` is kept when it parses as a UUID; anything
else is replaced by a fresh UUID4 rather than rejected. The id is echoed on the
response, exposed through :func:`get_request_id` and bound into the structlog
context, so each purge audit line and every 5xx body can be tied together.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Any

import structlog

from tabula.foundation.application import MiddlewareContribution, MiddlewarePriority

REQUEST_ID_HEADER = "X-Request-ID"
_HEADER_KEY = REQUEST_ID_HEADER.lower().encode("latin-1")

_request_id: ContextVar[str] = ContextVar("tabula_request_id", default="")


def get_request_id() -> str:
    """The id of the request being served, or "" outside one."""
    return _request_id.get()


def _is_valid_uuid(value: str | None) -> bool:
    try:
        uuid.UUID(value or "")
    except ValueError:
        return False
    return True


def _incoming_id(scope: dict[str, Any]) -> str:
    supplied = next(
        (v.decode("latin-1") for k, v in scope.get("headers", []) if k.lower() == _HEADER_KEY),
        "",
    )
    return supplied if _is_valid_uuid(supplied) else str(uuid.uuid4())


class RequestIdMiddleware:
    """Pure ASGI middleware; lifespan and other non-HTTP scopes pass straight through."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = _incoming_id(scope)
        token = _request_id.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)

        async def send_with_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                headers = [*message.get("headers", []), (_HEADER_KEY, request_id.encode("latin-1"))]
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, send_with_id)
        finally:
            _request_id.reset(token)
            structlog.contextvars.unbind_contextvars("request_id")


contribution = MiddlewareContribution(RequestIdMiddleware, MiddlewarePriority.REQUEST_ID)
