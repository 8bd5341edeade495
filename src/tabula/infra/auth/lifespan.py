"""Auth lifespan hook that builds the JWKS provider before the first request.

Runs after observability (so discovery failures are logged in the configured
format) and before persistence.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from tabula.foundation.application.contributions import (
    LifespanContribution,
    LifespanPriority,
)
from tabula.infra.auth.jwks import JWKSProvider
from tabula.infra.auth.settings import get_auth_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _auth_lifespan(app: Any) -> AsyncIterator[None]:
    """Store a JWKSProvider on ``app.state.jwks_provider`` when an issuer is set.

    A provider that cannot be built leaves the attribute unset; the JWT
    middleware then answers bearer requests with 503 instead of failing startup.

    Args:
        app: The FastAPI application instance.
    """
    settings = get_auth_settings()

    if settings.is_jwks_configured():
        try:
            app.state.jwks_provider = JWKSProvider(
                settings.issuer, cache_ttl=settings.jwks_cache_ttl
            )
        except (ValueError, OSError):
            logger.warning("auth_lifespan_jwks_unavailable", exc_info=True)
    else:
        logger.info(
            "auth_lifespan_jwks_skipped",
            extra={"issuer_set": bool(settings.issuer), "dev_bypass": settings.dev_bypass},
        )

    yield


lifespan_contribution = LifespanContribution(
    hook=_auth_lifespan,
    priority=LifespanPriority.JWKS,
)
