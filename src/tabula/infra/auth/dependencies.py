"""FastAPI dependency functions for authentication and authorization.

Usage:
    from tabula.infra.auth.dependencies import CurrentPrincipal, require_role

    @router.delete("/admin/project-managers")
    async def purge(
        principal: CurrentPrincipal,
        _: Annotated[None, Depends(require_role("Admin"))],
    ):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

from fastapi import Depends

from tabula.foundation.application.context import get_optional_principal
from tabula.foundation.domain.exceptions import AuthenticationError, AuthorizationError
from tabula.foundation.domain.principal import Principal

if TYPE_CHECKING:
    from collections.abc import Callable


def get_current_principal() -> Principal:
    """FastAPI dependency that returns the authenticated principal.

    Reads the principal ContextVar set by JWTAuthMiddleware.

    Raises:
        AuthenticationError: If no principal was established for the request
            (middleware excluded or not installed). Rendered as 401.
    """
    principal = get_optional_principal()
    if principal is None:
        raise AuthenticationError(
            "Authentication required",
            auth_error="invalid_token",
            error_code="MISSING_PRINCIPAL",
        )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_role(role: str) -> Callable[..., None]:
    """Factory returning a dependency that enforces role membership.

    Args:
        role: Required role string (case-sensitive).

    Returns:
        Dependency raising AuthorizationError (403) when the principal
        lacks ``role``.
    """

    def _check_role(principal: CurrentPrincipal) -> None:
        if not principal.has_role(role):
            raise AuthorizationError(
                f"Forbidden: {role} access required.",
                context={"required_role": role, "principal_id": principal.subject},
            )

    return _check_role
