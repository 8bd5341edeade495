"""Tabula Foundation Domain -- pure Python domain primitives.

This package provides the foundational domain building blocks shared by the
workspace bounded context: exceptions, the authenticated principal, user
value objects, and port interfaces.
"""

from tabula.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadInputError,
    DomainError,
    RecordStoreError,
)
from tabula.foundation.domain.ports import RecordStorePort
from tabula.foundation.domain.principal import Principal
from tabula.foundation.domain.user_value_objects import Email

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BadInputError",
    "DomainError",
    "Email",
    "Principal",
    "RecordStoreError",
    "RecordStorePort",
]
