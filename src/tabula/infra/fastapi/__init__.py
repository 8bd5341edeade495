"""Tabula Infra FastAPI -- app factory, error handlers, middleware, health."""

from tabula.infra.fastapi.app_factory import ALL_GROUPS, create_app
from tabula.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from tabula.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)
from tabula.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "ALL_GROUPS",
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestIdMiddleware",
    "create_app",
    "get_request_id",
    "register_exception_handlers",
]
