"""Entry-point-based auto-discovery utilities.

Routers, middleware, error handlers and lifespan hooks are declared as entry
points in the project metadata (groups ``tabula.routers``,
``tabula.middleware``, ``tabula.error_handlers``, ``tabula.lifespan``) and
loaded here with ``importlib.metadata``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveredContribution:
    """A single loaded entry point.

    Attributes:
        name: Entry point name (e.g., ``"workspace"``).
        group: Entry point group (e.g., ``"tabula.routers"``).
        value: The loaded Python object.
    """

    name: str
    group: str
    value: Any


def discover(
    group: str,
    *,
    exclude_names: frozenset[str] = frozenset(),
) -> list[DiscoveredContribution]:
    """Load every entry point of ``group`` not named in ``exclude_names``.

    Entry points are returned sorted by name so that wiring order does not
    depend on installation order. An entry point that fails to import is
    logged and skipped; the remaining contributions are still returned.

    Args:
        group: Entry point group name.
        exclude_names: Entry point names to skip.

    Returns:
        Successfully loaded contributions.
    """
    loaded: list[DiscoveredContribution] = []
    for ep in sorted(entry_points(group=group), key=lambda e: e.name):
        if ep.name in exclude_names:
            logger.debug("discovery_skipped", extra={"group": group, "entry_point": ep.name})
            continue
        try:
            value = ep.load()
        except Exception:
            logger.exception(
                "discovery_load_failed", extra={"group": group, "entry_point": ep.name}
            )
            continue
        loaded.append(DiscoveredContribution(name=ep.name, group=group, value=value))

    logger.info("discovery_completed", extra={"group": group, "count": len(loaded)})
    return loaded
