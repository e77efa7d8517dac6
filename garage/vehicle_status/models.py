"""
Data models for the vehicle status pipeline.

All structured data uses dataclasses for type hints, __eq__, and __repr__.
Registry rows and batch outcomes are frozen: a record only changes by the
registry handing back an updated copy.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional


class CanonicalStatus(str, Enum):
    """
    Maintenance condition every vehicle holds.

    Ordered Poor < Average < Good via ``rank``.
    """
    POOR = "Poor"
    AVERAGE = "Average"
    GOOD = "Good"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @classmethod
    def values(cls) -> list[str]:
        return [s.value for s in cls]


_STATUS_RANK = {
    CanonicalStatus.POOR: 1,
    CanonicalStatus.AVERAGE: 2,
    CanonicalStatus.GOOD: 3,
}


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed values compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MatchType(str, Enum):
    """Which resolver stage produced a match."""
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    FUZZY = "fuzzy"
    KEYWORD = "keyword"        # Suggestions only, never a found match
    NONE = "none"


class OutcomeKind(str, Enum):
    """Disjoint batch outcome buckets."""
    UPDATED = "UPDATED"
    UNCHANGED = "UNCHANGED"
    FAILED = "FAILED"


class ErrorKind(str, Enum):
    """Failure taxonomy for batch items."""
    INPUT = "INPUT"            # Empty/oversized name, unknown status
    NOT_FOUND = "NOT_FOUND"    # Nothing cleared the fuzzy threshold
    TRANSITION = "TRANSITION"  # Reserved, all transitions currently allowed
    SYSTEM = "SYSTEM"          # Registry I/O and anything unexpected


@dataclass(frozen=True)
class VehicleRecord:
    """
    A single row of the vehicle registry.

    Owned by the registry; mutated only through a successful update.
    """
    vehicle_id: int
    name: str
    status: CanonicalStatus = CanonicalStatus.GOOD
    last_maintenance: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatusUpdateRequest:
    """One batch item: a free-text vehicle name and a free-text status."""
    vehicle_name: str
    status: str


@dataclass(frozen=True)
class DuplicateCriteria:
    """Tie-break policy for registry rows sharing a normalized name."""
    preferred_status: Optional[CanonicalStatus] = None
    prefer_older: bool = False
    prefer_recent_maintenance: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.preferred_status or self.prefer_older or self.prefer_recent_maintenance)


@dataclass(frozen=True)
class Candidate:
    """A scored registry row offered as a match or an alternative."""
    vehicle: VehicleRecord
    score: float
    match_type: MatchType
    common_keywords: tuple[str, ...] = ()


@dataclass
class MatchResult:
    """
    Output of the resolver for a single query.

    ``alternatives`` holds up to three further candidates (fuzzy runners-up
    or keyword suggestions). ``duplicates`` is only populated when more than
    one registry row shares the matched name.
    """
    query: str
    found: bool = False
    vehicle: Optional[VehicleRecord] = None
    match_type: MatchType = MatchType.NONE
    confidence: float = 0.0
    alternatives: list[Candidate] = field(default_factory=list)
    duplicates: list[VehicleRecord] = field(default_factory=list)

    @property
    def alternative_names(self) -> list[str]:
        return [c.vehicle.name for c in self.alternatives]

    @property
    def has_duplicates(self) -> bool:
        return len(self.duplicates) > 1


@dataclass(frozen=True)
class TransitionResult:
    """Classification of a status change."""
    is_valid: bool = True
    is_no_change: bool = False
    is_upgrade: bool = False
    is_downgrade: bool = False
    warning: Optional[str] = None
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class MaintenanceCheck:
    """Advisory findings from maintenance-history heuristics."""
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass
class ValidationOutcome:
    """
    Full validation of one request without applying it.

    Errors block the update; warnings and recommendations are advisory.
    """
    normalized_status: Optional[CanonicalStatus] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    vehicle: Optional[VehicleRecord] = None
    match: Optional[MatchResult] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ItemOutcome:
    """
    Result of processing one batch item.

    ``kind`` decides which report bucket the item lands in.
    """
    index: int
    kind: OutcomeKind
    raw_name: str
    raw_status: str
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    old_status: Optional[CanonicalStatus] = None
    new_status: Optional[CanonicalStatus] = None
    match_type: MatchType = MatchType.NONE
    confidence: float = 0.0
    error_kind: Optional[ErrorKind] = None
    reason: str = ""
    suggestions: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        return self.vehicle_name or self.raw_name


@dataclass(frozen=True)
class BatchReport:
    """
    Immutable batch summary.

    Each attempted item is folded in with ``with_outcome`` which returns a
    new report, so the three buckets always add up to ``total``.
    """
    batch_id: str
    started_at: datetime
    requested: int = 0
    finished_at: Optional[datetime] = None
    updated: tuple[ItemOutcome, ...] = ()
    unchanged: tuple[ItemOutcome, ...] = ()
    failed: tuple[ItemOutcome, ...] = ()

    def with_outcome(self, outcome: ItemOutcome) -> "BatchReport":
        if outcome.kind == OutcomeKind.UPDATED:
            return replace(self, updated=self.updated + (outcome,))
        if outcome.kind == OutcomeKind.UNCHANGED:
            return replace(self, unchanged=self.unchanged + (outcome,))
        return replace(self, failed=self.failed + (outcome,))

    def finish(self, finished_at: datetime) -> "BatchReport":
        return replace(self, finished_at=finished_at)

    @property
    def total(self) -> int:
        """Items actually attempted."""
        return len(self.updated) + len(self.unchanged) + len(self.failed)

    @property
    def is_complete(self) -> bool:
        return self.total == self.requested

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def duration(self) -> timedelta:
        if self.finished_at is None:
            return timedelta(0)
        return self.finished_at - self.started_at

    @property
    def counts(self) -> dict:
        return {
            "total": self.total,
            "requested": self.requested,
            "updated": len(self.updated),
            "unchanged": len(self.unchanged),
            "failed": len(self.failed),
        }

    def outcomes(self) -> list[ItemOutcome]:
        """All outcomes back in input order."""
        return sorted(self.updated + self.unchanged + self.failed, key=lambda o: o.index)
