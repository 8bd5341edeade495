"""Value types flowing through the purge workflow.

Everything here is immutable and request-scoped. ``PurgeState`` is the
accumulator threaded through the phases: each phase receives a state and
returns a new one built with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping


class EntityStatus(StrEnum):
    """Per-identifier outcome tag."""

    VALID = "Valid"
    NOT_FOUND = "NotFound"
    WRONG_ROLE = "WrongRole"
    IS_SELF = "IsSelf"
    INVALID_FORMAT = "InvalidFormat"
    DUPLICATE = "Duplicate"


# -- Rejection variants -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InvalidFormat:
    """Entry is not a string or not email-shaped."""

    identifier: str
    status: ClassVar[EntityStatus] = EntityStatus.INVALID_FORMAT

    @property
    def message(self) -> str:
        return "Invalid email format"


@dataclass(frozen=True, slots=True)
class IsSelf:
    """Entry names the acting admin."""

    identifier: str
    status: ClassVar[EntityStatus] = EntityStatus.IS_SELF

    @property
    def message(self) -> str:
        return "Admin cannot delete self"


@dataclass(frozen=True, slots=True)
class NotFound:
    """No record with this identifier is visible to the actor."""

    identifier: str
    status: ClassVar[EntityStatus] = EntityStatus.NOT_FOUND

    @property
    def message(self) -> str:
        return "User not found"


@dataclass(frozen=True, slots=True)
class WrongRole:
    """Record exists but does not carry the role targeted by the purge."""

    identifier: str
    actual_role: str
    expected_role: str
    status: ClassVar[EntityStatus] = EntityStatus.WRONG_ROLE

    @property
    def message(self) -> str:
        return f"Not a {self.expected_role} (Type: {self.actual_role})"


Rejection = InvalidFormat | IsSelf | NotFound | WrongRole


# -- Phase results ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResolvedEntity:
    """A root record confirmed for deletion.

    Attributes:
        identifier: Canonical display key (lower-cased email) as requested.
        internal_id: Stored record id; dependents reference this.
        role: Role stored on the record.
        status: Always ``EntityStatus.VALID`` for resolved entities.
        stored_key: Display key exactly as the store holds it, which may
            differ in case from ``identifier``.
    """

    identifier: str
    internal_id: str
    role: str
    status: EntityStatus = EntityStatus.VALID
    stored_key: str | None = None

    @property
    def delete_key(self) -> str:
        """Key the root record is deleted by."""
        return self.stored_key or self.identifier


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Output of identity normalization.

    Attributes:
        accepted: Canonical identifiers, deduplicated, first occurrence order.
        rejected: Rejections in input order.
    """

    accepted: tuple[str, ...]
    rejected: tuple[InvalidFormat | IsSelf, ...] = ()


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Output of entity resolution; ``valid`` and ``invalid`` partition the accepted set."""

    valid: tuple[ResolvedEntity, ...]
    invalid: tuple[NotFound | WrongRole, ...] = ()


@dataclass(frozen=True, slots=True)
class CascadeSet:
    """Dependent record ids to delete, one deduplicated bucket per category."""

    buckets: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "buckets", MappingProxyType(dict(self.buckets)))

    def ids(self, category: str) -> frozenset[str]:
        """Ids collected for ``category`` (empty if none)."""
        return self.buckets.get(category, frozenset())

    def sizes(self) -> dict[str, int]:
        return {name: len(ids) for name, ids in self.buckets.items()}

    @property
    def total(self) -> int:
        return sum(len(ids) for ids in self.buckets.values())


@dataclass(frozen=True, slots=True)
class CountDiscrepancy:
    """A delete phase removed a different number of records than requested."""

    category: str
    requested: int
    deleted: int


@dataclass(frozen=True, slots=True)
class PurgeState:
    """Accumulator threaded through every phase of a purge.

    Attributes:
        normalized: Normalization output, once that phase ran.
        resolved: Resolution output, once that phase ran.
        cascade: Aggregated dependents, once that phase ran.
        deleted_counts: Records removed per category, in phase order.
        discrepancies: Phases whose removed count differs from the request.
        deletion_started: True once the first delete call was issued.
    """

    normalized: NormalizationResult | None = None
    resolved: ResolutionResult | None = None
    cascade: CascadeSet | None = None
    deleted_counts: Mapping[str, int] = field(default_factory=dict)
    discrepancies: tuple[CountDiscrepancy, ...] = ()
    deletion_started: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "deleted_counts", MappingProxyType(dict(self.deleted_counts)))

    def with_count(self, category: str, requested: int, deleted: int) -> PurgeState:
        """Return a new state recording one completed delete phase."""
        discrepancies = self.discrepancies
        if deleted != requested:
            discrepancies = (*discrepancies, CountDiscrepancy(category, requested, deleted))
        return replace(
            self,
            deleted_counts={**self.deleted_counts, category: deleted},
            discrepancies=discrepancies,
            deletion_started=True,
        )


class PurgeStatus(IntEnum):
    """HTTP-style classification of a purge outcome."""

    OK = 200
    MULTI_STATUS = 207
    BAD_INPUT = 400
    NOT_FOUND = 404
    SERVER_ERROR = 500


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Complete per-identifier accounting of one purge request.

    Every input entry appears exactly once across ``valid_processed`` and
    ``invalid_or_skipped`` (duplicates of an accepted entry collapse into it).
    """

    valid_processed: tuple[str, ...]
    invalid_or_skipped: tuple[Rejection, ...]
    deleted_counts: Mapping[str, int]
    count_discrepancies: tuple[CountDiscrepancy, ...] = ()
    possibly_partially_applied: bool = False


@dataclass(frozen=True, slots=True)
class PurgeOutcome:
    """Status, summary message and result returned to the HTTP layer."""

    status: PurgeStatus
    message: str
    result: BatchResult

    @property
    def success(self) -> bool:
        return self.status is PurgeStatus.OK
