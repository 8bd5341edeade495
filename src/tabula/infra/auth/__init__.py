"""Tabula Infra Auth -- JWT validation, JWKS discovery, principal dependencies."""

from tabula.infra.auth.dependencies import (
    CurrentPrincipal,
    get_current_principal,
    require_role,
)
from tabula.infra.auth.dev_bypass import DEV_BYPASS_CLAIMS, resolve_dev_bypass
from tabula.infra.auth.jwks import JWKSProvider, discover_jwks_uri
from tabula.infra.auth.lifespan import lifespan_contribution
from tabula.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from tabula.infra.auth.settings import AuthSettings, get_auth_settings

__all__ = [
    "DEV_BYPASS_CLAIMS",
    "AuthSettings",
    "CurrentPrincipal",
    "JWKSProvider",
    "JWTAuthMiddleware",
    "discover_jwks_uri",
    "get_auth_settings",
    "get_current_principal",
    "lifespan_contribution",
    "require_role",
    "resolve_dev_bypass",
]
