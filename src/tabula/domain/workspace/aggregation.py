"""Breadth-first discovery of dependent records.

The walk is driven entirely by the :class:`DependencyGraph` table. Starting
from the root ids it expands one level at a time; at each level every edge
leaving a category discovered in the previous level is resolved with one
batched store call, and the ids it yields are unioned into that category's
bucket. Only ids not seen before form the next level, so a record reachable
through two roots (or two paths) is collected once and the walk terminates on
any acyclic graph.

Edge kinds are resolved differently:

- ``CHILD_REFERENCES_PARENT``: ``find_in(child, link_field, parent_ids)``.
  The projection also carries the list fields of the child's own
  ``PARENT_LISTS_CHILDREN`` edges, so the next level needs no extra read.
- ``PARENT_LISTS_CHILDREN``: the child ids are read from the parent rows'
  list field. Parent rows not already in hand (e.g. root records) are
  fetched with one ``find_in(parent, id_field, ids)``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tabula.domain.workspace.graph import WORKSPACE_GRAPH, LinkKind
from tabula.domain.workspace.outcomes import CascadeSet

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from tabula.domain.workspace.graph import DependencyEdge, DependencyGraph
    from tabula.foundation.domain.ports import RecordStorePort

logger = logging.getLogger(__name__)

# category -> record id -> list field -> child ids
_ListCache = dict[str, dict[str, dict[str, list[str]]]]


def _as_id_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


class DependencyAggregator:
    """Collects the transitive dependents of a set of root records.

    Args:
        store: Record store scoped to the acting tenant.
        graph: Dependency graph to walk.
    """

    def __init__(self, store: RecordStorePort, graph: DependencyGraph = WORKSPACE_GRAPH) -> None:
        self._store = store
        self._graph = graph

    async def aggregate(self, root_ids: Collection[str]) -> CascadeSet:
        """Discover every dependent of ``root_ids``.

        Args:
            root_ids: Internal ids of the resolved root records.

        Returns:
            One deduplicated id bucket per dependent category (empty buckets
            included).

        Raises:
            RecordStoreError: If any lookup fails.
        """
        buckets: dict[str, set[str]] = {
            name: set() for name in self._graph.dependent_categories()
        }
        lists: _ListCache = {}
        frontier: dict[str, set[str]] = {self._graph.root.name: set(root_ids)}
        level = 0

        while frontier:
            level += 1
            discovered: dict[str, set[str]] = {}
            for parent in self._graph.topological_order():
                parent_ids = frontier.get(parent)
                if not parent_ids:
                    continue
                for edge in self._graph.edges_from(parent):
                    child_ids = await self._follow(edge, parent_ids, lists)
                    fresh = child_ids - buckets[edge.child]
                    buckets[edge.child] |= fresh
                    discovered.setdefault(edge.child, set()).update(fresh)

            frontier = {name: ids for name, ids in discovered.items() if ids}
            if frontier:
                logger.debug(
                    "dependents_level_discovered",
                    extra={"level": level, "counts": {n: len(i) for n, i in frontier.items()}},
                )

        return CascadeSet({name: frozenset(ids) for name, ids in buckets.items()})

    async def _follow(
        self,
        edge: DependencyEdge,
        parent_ids: set[str],
        lists: _ListCache,
    ) -> set[str]:
        if edge.kind is LinkKind.PARENT_LISTS_CHILDREN:
            return await self._listed_children(edge, parent_ids, lists)

        child = self._graph.category(edge.child)
        list_fields = self._list_fields(edge.child)
        rows = await self._store.find_in(
            edge.child,
            edge.link_field,
            sorted(parent_ids),
            (child.id_field, *list_fields),
        )
        found: set[str] = set()
        cache = lists.setdefault(edge.child, {})
        for row in rows:
            record_id = str(row[child.id_field])
            found.add(record_id)
            if list_fields:
                cache[record_id] = {f: _as_id_list(row.get(f)) for f in list_fields}
        return found

    async def _listed_children(
        self,
        edge: DependencyEdge,
        parent_ids: set[str],
        lists: _ListCache,
    ) -> set[str]:
        cache = lists.setdefault(edge.parent, {})
        missing = sorted(pid for pid in parent_ids if edge.link_field not in cache.get(pid, {}))
        if missing:
            parent = self._graph.category(edge.parent)
            list_fields = self._list_fields(edge.parent)
            rows = await self._store.find_in(
                edge.parent,
                parent.id_field,
                missing,
                (parent.id_field, *list_fields),
            )
            for row in rows:
                cache[str(row[parent.id_field])] = {
                    f: _as_id_list(row.get(f)) for f in list_fields
                }

        found: set[str] = set()
        for pid in parent_ids:
            found.update(cache.get(pid, {}).get(edge.link_field, ()))
        return found

    def _list_fields(self, category: str) -> tuple[str, ...]:
        return _unique(
            e.link_field
            for e in self._graph.edges_from(category)
            if e.kind is LinkKind.PARENT_LISTS_CHILDREN
        )


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))
