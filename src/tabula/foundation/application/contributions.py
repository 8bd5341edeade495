"""Shapes of the middleware and lifespan hooks that tabula modules publish.

Each installed module exposes these through the ``tabula.middleware`` and
``tabula.lifespan`` entry-point groups; the application factory orders them
by priority. Error handlers and routers need no wrapper: they are published
as plain ``register(app)`` callables and ``APIRouter`` objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class MiddlewarePriority(IntEnum):
    """Position of each middleware in the stack; lower wraps further out."""

    REQUEST_ID = 10
    AUTHENTICATION = 150
    DEFAULT = 400


class LifespanPriority(IntEnum):
    """Startup order of lifespan hooks; shutdown runs in reverse."""

    LOGGING = 50
    JWKS = 60
    DATABASE = 75
    SCHEMA = 80
    DEFAULT = 500


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """An ASGI middleware plus where it sits in the stack.

    Attributes:
        middleware_class: Class passed to ``app.add_middleware()``.
        priority: Non-negative stack position, see :class:`MiddlewarePriority`.
        kwargs: Constructor arguments for ``middleware_class``.
    """

    middleware_class: type[Any]
    priority: int = MiddlewarePriority.DEFAULT
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.priority < 0:
            msg = f"Middleware priority cannot be negative, got {self.priority}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """An ``(app) -> AsyncContextManager[None]`` factory and its startup rank."""

    hook: Any
    priority: int = LifespanPriority.DEFAULT
