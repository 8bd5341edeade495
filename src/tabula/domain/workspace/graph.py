"""Static dependency graph between record categories.

The graph is plain data: a table of categories and a table of parent -> child
edges. Traversal (aggregation) and deletion ordering are derived from it, so
adding a dependent record type means adding a row, not code.

Example:
    >>> WORKSPACE_GRAPH.deletion_order()
    ('tasks', 'assignments', 'teams', 'projects', 'users')
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class LinkKind(StrEnum):
    """Where the reference between a parent and a child record lives."""

    CHILD_REFERENCES_PARENT = "child_references_parent"
    """Child rows hold the parent id in ``link_field``."""

    PARENT_LISTS_CHILDREN = "parent_lists_children"
    """Parent rows hold a list of child ids in ``link_field``."""


@dataclass(frozen=True, slots=True)
class EntityCategory:
    """A record category known to the store.

    Attributes:
        name: Category (collection/table) name.
        id_field: Field holding the record's internal id.
        display_key_field: External key used to address root records
            (e.g. ``email``). None for dependent-only categories.
    """

    name: str
    id_field: str
    display_key_field: str | None = None


@dataclass(frozen=True, slots=True)
class DependencyEdge:
    """A parent -> child ownership relation.

    Attributes:
        parent: Parent category name.
        child: Child category name; its records die with the parent.
        link_field: Field carrying the reference (see ``kind`` for which side).
        kind: Which side of the relation stores the reference.
    """

    parent: str
    child: str
    link_field: str
    kind: LinkKind = LinkKind.CHILD_REFERENCES_PARENT


class DependencyGraph:
    """Validated, acyclic graph of record categories rooted at one category.

    Args:
        root: Name of the root category (the records targeted for deletion).
        categories: Every category taking part in the graph.
        edges: Parent -> child relations, in declaration order.

    Raises:
        ValueError: On duplicate or unknown categories, edges into the root,
            categories unreachable from the root, or cycles.
    """

    def __init__(
        self,
        root: str,
        categories: Iterable[EntityCategory],
        edges: Iterable[DependencyEdge],
    ) -> None:
        self._categories: dict[str, EntityCategory] = {}
        for category in categories:
            if category.name in self._categories:
                raise ValueError(f"Duplicate category: {category.name}")
            self._categories[category.name] = category

        if root not in self._categories:
            raise ValueError(f"Unknown root category: {root}")
        self._root = root
        self._edges = tuple(edges)

        for edge in self._edges:
            for name in (edge.parent, edge.child):
                if name not in self._categories:
                    msg = f"Edge {edge.parent}->{edge.child} names unknown category {name}"
                    raise ValueError(msg)
            if edge.child == root:
                raise ValueError(f"Root category {root} cannot be a dependent")

        self._order = self._topological_sort()

    @property
    def root(self) -> EntityCategory:
        return self._categories[self._root]

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return self._edges

    def category(self, name: str) -> EntityCategory:
        """Look up a category by name.

        Raises:
            KeyError: If the category is not part of the graph.
        """
        return self._categories[name]

    def edges_from(self, parent: str) -> tuple[DependencyEdge, ...]:
        """Outgoing edges of ``parent`` in declaration order."""
        return tuple(e for e in self._edges if e.parent == parent)

    def dependent_categories(self) -> tuple[str, ...]:
        """Every non-root category, parents before children."""
        return self._order[1:]

    def topological_order(self) -> tuple[str, ...]:
        """Root first, then each category after all of its parents."""
        return self._order

    def deletion_order(self) -> tuple[str, ...]:
        """Deepest dependents first, root last."""
        return tuple(reversed(self._order))

    def _topological_sort(self) -> tuple[str, ...]:
        # Kahn's algorithm; ties resolved by category declaration order
        position = {name: i for i, name in enumerate(self._categories)}
        indegree = dict.fromkeys(self._categories, 0)
        children: dict[str, list[str]] = {name: [] for name in self._categories}
        for edge in self._edges:
            if edge.child not in children[edge.parent]:
                children[edge.parent].append(edge.child)
                indegree[edge.child] += 1

        unreachable = [n for n, d in indegree.items() if d == 0 and n != self._root]
        if unreachable:
            raise ValueError(f"Categories not reachable from {self._root}: {unreachable}")

        order: list[str] = []
        ready = deque([self._root])
        while ready:
            name = ready.popleft()
            order.append(name)
            released = []
            for child in children[name]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    released.append(child)
            ready.extend(sorted(released, key=position.__getitem__))

        if len(order) != len(self._categories):
            stuck = sorted(set(self._categories) - set(order))
            raise ValueError(f"Dependency graph has a cycle through {stuck}")
        return tuple(order)


WORKSPACE_GRAPH = DependencyGraph(
    root="users",
    categories=(
        EntityCategory("users", id_field="user_id", display_key_field="email"),
        EntityCategory("projects", id_field="project_id"),
        EntityCategory("teams", id_field="team_id"),
        EntityCategory("assignments", id_field="assignment_id"),
        EntityCategory("tasks", id_field="task_id"),
    ),
    edges=(
        DependencyEdge("users", "projects", "created_by"),
        DependencyEdge("users", "teams", "created_by"),
        DependencyEdge("users", "assignments", "assigned_by"),
        DependencyEdge("assignments", "tasks", "task_ids", LinkKind.PARENT_LISTS_CHILDREN),
    ),
)
