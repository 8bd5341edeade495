"""Builds the tabula ASGI application from installed entry points.

Every installed module publishes its pieces under four groups:

    tabula.routers         APIRouter objects
    tabula.middleware      MiddlewareContribution
    tabula.error_handlers  register(app) callables
    tabula.lifespan        LifespanContribution (or a bare hook factory)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from tabula.foundation.application import (
    LifespanContribution,
    MiddlewareContribution,
    discover,
)
from tabula.infra.fastapi.lifespan import compose_lifespan
from tabula.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "tabula.routers"
GROUP_MIDDLEWARE = "tabula.middleware"
GROUP_ERROR_HANDLERS = "tabula.error_handlers"
GROUP_LIFESPAN = "tabula.lifespan"

ALL_GROUPS = frozenset({GROUP_ROUTERS, GROUP_MIDDLEWARE, GROUP_ERROR_HANDLERS, GROUP_LIFESPAN})


class _Discovery:
    """Entry-point lookup honouring the group and name exclusions."""

    def __init__(self, skip_groups: frozenset[str], skip_names: frozenset[str]) -> None:
        self._skip_groups = skip_groups
        self._skip_names = skip_names

    def values(self, group: str) -> list[tuple[str, Any]]:
        if group in self._skip_groups:
            return []
        return [(c.name, c.value) for c in discover(group, exclude_names=self._skip_names)]


def _lifespan_hooks(
    found: _Discovery, extra: list[LifespanContribution]
) -> list[LifespanContribution]:
    hooks = list(extra)
    for _, value in found.values(GROUP_LIFESPAN):
        if not isinstance(value, LifespanContribution):
            value = LifespanContribution(value)
        hooks.append(value)
    return hooks


def _add_middleware(app: FastAPI, found: _Discovery, extra: list[MiddlewareContribution]) -> None:
    stack = list(extra)
    for name, value in found.values(GROUP_MIDDLEWARE):
        if not isinstance(value, MiddlewareContribution):
            logger.warning("middleware_entry_point_ignored", extra={"entry_point": name})
            continue
        stack.append(value)

    # add_middleware() wraps the current stack, so the innermost goes first
    for contribution in sorted(stack, key=lambda c: c.priority, reverse=True):
        app.add_middleware(contribution.middleware_class, **contribution.kwargs)
        logger.debug(
            "middleware_registered",
            extra={
                "middleware": contribution.middleware_class.__name__,
                "priority": int(contribution.priority),
            },
        )


def _register_error_handlers(app: FastAPI, found: _Discovery) -> None:
    for name, register in found.values(GROUP_ERROR_HANDLERS):
        if not callable(register):
            logger.warning("error_handler_entry_point_ignored", extra={"entry_point": name})
            continue
        register(app)


def create_app(
    settings: AppSettings | None = None,
    *,
    extra_routers: list[APIRouter] | None = None,
    extra_middleware: list[MiddlewareContribution] | None = None,
    extra_lifespan_hooks: list[LifespanContribution] | None = None,
    exclude_groups: frozenset[str] = frozenset(),
    exclude_names: frozenset[str] | None = None,
) -> FastAPI:
    """Create the application with every discovered contribution wired in.

    Args:
        settings: Application settings; read from the environment if omitted.
        extra_routers: Routers mounted after the discovered ones.
        extra_middleware: Middleware ordered together with the discovered ones.
        extra_lifespan_hooks: Lifespan hooks ordered with the discovered ones.
        exclude_groups: Entry-point groups not consulted at all.
        exclude_names: Entry-point names skipped in every group. Defaults to
            ``settings.disabled_entry_points``.

    Returns:
        The configured FastAPI application.
    """
    settings = settings or AppSettings()
    found = _Discovery(
        exclude_groups,
        exclude_names if exclude_names is not None else settings.disabled_entry_points,
    )

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        redoc_url=None,
        debug=settings.debug,
        lifespan=compose_lifespan(_lifespan_hooks(found, extra_lifespan_hooks or [])),
    )

    cors = settings.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
        expose_headers=cors.expose_headers,
    )
    _add_middleware(app, found, extra_middleware or [])
    _register_error_handlers(app, found)

    for router in [*(value for _, value in found.values(GROUP_ROUTERS)), *(extra_routers or [])]:
        app.include_router(router)

    return app
