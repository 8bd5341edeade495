"""Local development login without an identity provider.

With ``AUTH_DEV_BYPASS=true`` a request that carries no Authorization header
runs as a synthetic admin of the ``dev-tenant`` workspace. A request that
does carry a token is still fully verified. ``ENVIRONMENT=production``
overrides the flag.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

PRODUCTION_ENVIRONMENTS = frozenset({"production", "prod"})

# The nil UUID and a .dev address keep bypass sessions recognisable in logs
DEV_BYPASS_CLAIMS: dict[str, object] = {
    "sub": "00000000-0000-0000-0000-000000000000",
    "tenant_id": "dev-tenant",
    "roles": ["Admin"],
    "email": "dev-bypass@localhost.dev",
    "iss": "dev-bypass",
    "aud": "api",
    "exp": 0,
}


def resolve_dev_bypass(requested: bool) -> bool:
    """Whether the bypass may run in this process.

    Returns False when it was not requested or ``ENVIRONMENT`` names a
    production deployment (case-insensitive); the refusal is logged.
    """
    if not requested:
        return False

    environment = os.environ.get("ENVIRONMENT", "development")
    if environment.lower() in PRODUCTION_ENVIRONMENTS:
        logger.error("auth_dev_bypass_refused", extra={"environment": environment})
        return False

    logger.warning("auth_dev_bypass_enabled", extra={"environment": environment})
    return True
