"""Authentication middleware."""

from tabula.infra.auth.middleware.jwt_auth import JWTAuthMiddleware, extract_principal

__all__ = ["JWTAuthMiddleware", "extract_principal"]
