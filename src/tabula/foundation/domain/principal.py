"""Who is asking: the identity behind an authenticated request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Identity read from verified token claims.

    ``user_id`` is the ``sub`` claim as a UUID and is what the purge looks up
    as the actor's ``admin_id``. ``tenant_id`` scopes every store call.
    """

    subject: str
    tenant_id: str
    user_id: UUID
    roles: tuple[str, ...] = ()
    email: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles  # exact match, "Admin" != "admin"
