"""Value objects for user identities.

Immutable, validated domain primitives. All validation occurs at construction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# local-part, '@', dotted domain ending in a 2-63 letter TLD; no '..' anywhere
_EMAIL_PATTERN = re.compile(r"(?!.*\.\.)[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,63}")


@dataclass(frozen=True, slots=True)
class Email:
    """Validated, canonical email address.

    Format: email-shaped token (local-part, '@', domain containing at least
    one dot, no consecutive dots). The stored value is case-folded to lower
    case so that two spellings of the same address compare equal.

    Attributes:
        value: The canonical (lower-cased) email string.

    Raises:
        ValueError: If the email is empty, too long, or malformed.

    Example:
        >>> Email("PM1@Example.com").value
        'pm1@example.com'
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            msg = "Email cannot be empty"
            raise ValueError(msg)
        if len(self.value) > 255:
            msg = f"Email too long: {len(self.value)} chars (max 255)"
            raise ValueError(msg)
        if not _EMAIL_PATTERN.fullmatch(self.value):
            msg = f"Invalid email format: '{self.value}'"
            raise ValueError(msg)
        object.__setattr__(self, "value", self.value.lower())

    def __str__(self) -> str:
        return self.value

    def matches(self, other: str) -> bool:
        """Case-insensitive comparison against a raw address."""
        return self.value == other.lower()
