"""Tabula Foundation Application -- principal context and auto-discovery."""

from tabula.foundation.application.context import (
    NoRequestContextError,
    clear_principal_context,
    get_current_principal,
    get_optional_principal,
    set_principal_context,
)
from tabula.foundation.application.contributions import (
    LifespanContribution,
    LifespanPriority,
    MiddlewareContribution,
    MiddlewarePriority,
)
from tabula.foundation.application.discovery import (
    DiscoveredContribution,
    discover,
)

__all__ = [
    "DiscoveredContribution",
    "LifespanContribution",
    "LifespanPriority",
    "MiddlewareContribution",
    "MiddlewarePriority",
    "NoRequestContextError",
    "clear_principal_context",
    "discover",
    "get_current_principal",
    "get_optional_principal",
    "set_principal_context",
]
