"""Tabula Workspace -- bulk cascading purge of Project Manager accounts.

Normalizes target emails, resolves them to users, walks the dependency graph
to collect everything they own, deletes it deepest first and reports a
per-identifier result.
"""

from tabula.domain.workspace.aggregation import DependencyAggregator
from tabula.domain.workspace.cascade import CascadeExecutor, CascadeInterruptedError
from tabula.domain.workspace.graph import (
    WORKSPACE_GRAPH,
    DependencyEdge,
    DependencyGraph,
    EntityCategory,
    LinkKind,
)
from tabula.domain.workspace.normalization import normalize
from tabula.domain.workspace.outcomes import (
    BatchResult,
    CascadeSet,
    CountDiscrepancy,
    EntityStatus,
    InvalidFormat,
    IsSelf,
    NormalizationResult,
    NotFound,
    PurgeOutcome,
    PurgeState,
    PurgeStatus,
    Rejection,
    ResolutionResult,
    ResolvedEntity,
    WrongRole,
)
from tabula.domain.workspace.purge_service import ProjectManagerPurgeService
from tabula.domain.workspace.reporting import build_batch_result, classify, report
from tabula.domain.workspace.resolution import EntityResolver
from tabula.domain.workspace.settings import PurgeSettings, get_purge_settings

__all__ = [
    "WORKSPACE_GRAPH",
    "BatchResult",
    "CascadeExecutor",
    "CascadeInterruptedError",
    "CascadeSet",
    "CountDiscrepancy",
    "DependencyAggregator",
    "DependencyEdge",
    "DependencyGraph",
    "EntityCategory",
    "EntityResolver",
    "EntityStatus",
    "InvalidFormat",
    "IsSelf",
    "LinkKind",
    "NormalizationResult",
    "NotFound",
    "ProjectManagerPurgeService",
    "PurgeOutcome",
    "PurgeSettings",
    "PurgeState",
    "PurgeStatus",
    "Rejection",
    "ResolutionResult",
    "ResolvedEntity",
    "WrongRole",
    "build_batch_result",
    "classify",
    "get_purge_settings",
    "normalize",
    "report",
]
