"""The authenticated principal of the request being served.

The JWT middleware sets it once the token is verified and resets it when the
response is sent; route dependencies read it from here.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from tabula.foundation.domain.principal import Principal


class NoRequestContextError(RuntimeError):
    """No principal is bound: called outside a request or before authentication."""

    def __init__(self) -> None:
        super().__init__("No authenticated principal is bound to the current request")


_current: ContextVar[Principal | None] = ContextVar("tabula_principal", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    return _current.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    _current.reset(token)


def get_current_principal() -> Principal:
    """The bound principal.

    Raises:
        NoRequestContextError: Nothing is bound.
    """
    principal = _current.get()
    if principal is None:
        raise NoRequestContextError()
    return principal


def get_optional_principal() -> Principal | None:
    return _current.get()
