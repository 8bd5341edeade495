"""Bearer-token authentication for every request outside the public paths.

A valid RS256 token becomes a :class:`Principal` published through the
principal context for the rest of the request. A BaseHTTPMiddleware cannot
hand exceptions to the application's handlers, so rejections are answered
here with the same RFC 7807 body the handlers produce.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import UUID

import jwt as pyjwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from tabula.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from tabula.foundation.application.contributions import (
    MiddlewareContribution,
    MiddlewarePriority,
)
from tabula.foundation.domain.principal import Principal
from tabula.infra.auth.dev_bypass import DEV_BYPASS_CLAIMS, resolve_dev_bypass
from tabula.infra.auth.settings import get_auth_settings
from tabula.infra.fastapi.error_handlers import PROBLEM_MEDIA_TYPE, ProblemDetail

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

    from tabula.infra.auth.jwks import JWKSProvider

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = ("/health", "/docs", "/openapi.json")

# Checked in order; the PyJWTError base must stay last
_DECODE_FAILURES: tuple[tuple[type[pyjwt.PyJWTError], str, str], ...] = (
    (pyjwt.ExpiredSignatureError, "token_expired", "Token has expired"),
    (pyjwt.InvalidIssuerError, "invalid_claims", "Invalid issuer claim"),
    (pyjwt.InvalidAudienceError, "invalid_claims", "Invalid audience claim"),
    (pyjwt.InvalidSignatureError, "invalid_signature", "Token signature verification failed"),
    (pyjwt.PyJWTError, "invalid_token", "Token validation failed"),
)


class _Rejected(Exception):
    def __init__(self, code: str, message: str, status: int = 401) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status


def _bearer_token(header: str) -> str:
    if not header:
        raise _Rejected("missing_token", "Unauthorized: No token provided.")
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer":
        raise _Rejected("invalid_format", "Authorization header must use Bearer scheme")
    if not token.strip():
        raise _Rejected("invalid_format", "Bearer token is empty")
    return token.strip()


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Validates ``Authorization: Bearer`` tokens against the tenant IdP.

    Signature, ``exp``, ``iss``, ``aud`` and ``sub`` are all required. With
    the dev bypass active, a request without an Authorization header runs
    as the synthetic development admin. Without a signing-key provider the
    middleware answers 503.

    Args:
        app: ASGI application (passed by Starlette).
        jwks_provider: Signing key source; falls back to
            ``app.state.jwks_provider`` set by the auth lifespan.
        issuer: Expected ``iss``; defaults to ``AUTH_ISSUER``.
        audience: Expected ``aud``; defaults to ``AUTH_AUDIENCE``.
        dev_bypass: Requested bypass, still subject to the production lockout.
        public_prefixes: Path prefixes served without a principal.
    """

    def __init__(
        self,
        app: Any,
        jwks_provider: JWKSProvider | None = None,
        issuer: str | None = None,
        audience: str | None = None,
        dev_bypass: bool | None = None,
        public_prefixes: tuple[str, ...] = PUBLIC_PREFIXES,
    ) -> None:
        super().__init__(app)
        settings = get_auth_settings()
        self._jwks_provider = jwks_provider
        self._issuer = settings.issuer if issuer is None else issuer
        self._audience = settings.audience if audience is None else audience
        self._dev_bypass = resolve_dev_bypass(
            settings.dev_bypass if dev_bypass is None else dev_bypass
        )
        self._public_prefixes = public_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path.startswith(self._public_prefixes):
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        try:
            if self._dev_bypass and not header:
                claims: dict[str, Any] = dict(DEV_BYPASS_CLAIMS)
            else:
                claims = self._verify(_bearer_token(header), request)
            principal = extract_principal(claims)
        except _Rejected as exc:
            return _problem(request, exc)
        except ValueError as exc:
            return _problem(request, _Rejected("invalid_claims", str(exc)))

        request.state.jwt_claims = claims
        token = set_principal_context(principal)
        try:
            return await call_next(request)
        finally:
            clear_principal_context(token)

    def _verify(self, token: str, request: Request) -> dict[str, Any]:
        provider = self._jwks_provider or getattr(request.app.state, "jwks_provider", None)
        if provider is None:
            raise _Rejected(
                "service_unavailable", "Authentication service not configured", status=503
            )
        try:
            signing_key = provider.get_signing_key_from_jwt(token)
            return pyjwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["exp", "iss", "aud", "sub"]},
            )
        except pyjwt.MissingRequiredClaimError as exc:
            raise _Rejected("invalid_claims", f"Missing required claim: {exc.claim}") from exc
        except pyjwt.PyJWTError as exc:
            code, message = next((c, m) for t, c, m in _DECODE_FAILURES if isinstance(exc, t))
            raise _Rejected(code, message) from exc


def _problem(request: Request, rejected: _Rejected) -> JSONResponse:
    path = request.url.path
    logger.info(
        "auth_validation_failed",
        extra={"error_code": rejected.code, "path": path, "method": request.method},
    )
    problem = ProblemDetail(
        type=f"/errors/{rejected.code.replace('_', '-')}",
        title="Unauthorized" if rejected.status == 401 else "Service Unavailable",
        status=rejected.status,
        detail=rejected.message,
        instance=path,
        error_code=rejected.code.upper(),
    )
    headers: dict[str, str] = {}
    if rejected.status == 401:
        headers["WWW-Authenticate"] = (
            f'Bearer realm="API", error="{rejected.code}", '
            f'error_description="{rejected.message}"'
        )
    return JSONResponse(
        status_code=rejected.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def extract_principal(claims: dict[str, Any]) -> Principal:
    """Build the request's Principal from verified claims.

    ``sub`` has to parse as a UUID since it doubles as the actor's stored id.
    A single-string ``roles`` claim is accepted as a one-role list.

    Raises:
        ValueError: ``sub`` or ``tenant_id`` is absent, or ``sub`` is not a UUID.
    """
    for name in ("sub", "tenant_id"):
        if not claims.get(name):
            raise ValueError(f"Token lacks the '{name}' claim")
    subject = str(claims["sub"])
    try:
        actor_id = UUID(subject)
    except ValueError:
        raise ValueError(f"Token 'sub' claim is not a UUID: {subject}") from None

    roles = claims.get("roles") or ()
    email = claims.get("email")
    return Principal(
        subject=subject,
        tenant_id=str(claims["tenant_id"]),
        user_id=actor_id,
        roles=(roles,) if isinstance(roles, str) else tuple(map(str, roles)),
        email=None if email is None else str(email),
    )


contribution = MiddlewareContribution(JWTAuthMiddleware, MiddlewarePriority.AUTHENTICATION)
