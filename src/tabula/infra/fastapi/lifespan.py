"""Lifespan composition for the tabula app factory."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from fastapi import FastAPI

    from tabula.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: list[LifespanContribution],
) -> Callable[[FastAPI], Any]:
    """Combine lifespan hooks into one FastAPI ``lifespan`` factory.

    Hooks run in ascending priority; shutdown happens in reverse
    (stack semantics via :class:`AsyncExitStack`). A hook that fails on
    startup unwinds the hooks already entered.

    Args:
        hooks: LifespanContribution instances, in any order.

    Returns:
        An async context manager factory suitable for ``FastAPI(lifespan=...)``.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contrib in ordered:
                logger.info(
                    "lifespan_hook_entering",
                    extra={"priority": contrib.priority, "hook": repr(contrib.hook)},
                )
                await stack.enter_async_context(contrib.hook(app))
            yield

    return lifespan
