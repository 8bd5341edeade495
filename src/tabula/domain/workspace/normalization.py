"""Canonicalization and validation of raw target identifiers."""

from __future__ import annotations

import json
from typing import Any

from tabula.domain.workspace.outcomes import InvalidFormat, IsSelf, NormalizationResult
from tabula.foundation.domain.exceptions import BadInputError
from tabula.foundation.domain.user_value_objects import Email

IDENTIFIERS_FIELD = "identifiers"


def render_identifier(entry: Any) -> str:
    """Printable form of a raw entry; non-strings use their JSON rendering."""
    if isinstance(entry, str):
        return entry
    try:
        return json.dumps(entry)
    except (TypeError, ValueError):
        return str(entry)


def normalize(raw: Any, actor_email: str) -> NormalizationResult:
    """Validate, case-fold and deduplicate raw identifiers.

    Entries are checked in input order:

    1. Non-strings and strings that are not email-shaped -> ``InvalidFormat``.
    2. The actor's own address (any case) -> ``IsSelf``; every occurrence
       is reported.
    3. Everything else is lower-cased; repeats of an accepted address are
       dropped without a rejection.

    Args:
        raw: The ``identifiers`` value from the request body.
        actor_email: Email of the acting admin.

    Returns:
        Accepted canonical identifiers (first occurrence order) and rejections.

    Raises:
        BadInputError: If ``raw`` is not a non-empty list.
    """
    if not isinstance(raw, list) or not raw:
        raise BadInputError(IDENTIFIERS_FIELD, "array is required and cannot be empty.")

    actor = actor_email.lower()
    accepted: dict[str, None] = {}
    rejected: list[InvalidFormat | IsSelf] = []

    for entry in raw:
        if not isinstance(entry, str):
            rejected.append(InvalidFormat(render_identifier(entry)))
            continue
        try:
            email = Email(entry)
        except ValueError:
            rejected.append(InvalidFormat(entry))
            continue
        if email.matches(actor):
            rejected.append(IsSelf(entry))
            continue
        accepted.setdefault(email.value, None)

    return NormalizationResult(accepted=tuple(accepted), rejected=tuple(rejected))
