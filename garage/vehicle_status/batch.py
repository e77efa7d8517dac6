"""
Batch Processor - Apply a list of free-text status updates to the registry.

Per item, in order:
| Step       | Rule                                          | On failure            |
|------------|-----------------------------------------------|-----------------------|
| name       | trim, 2..100 chars                            | FAILED / INPUT        |
| resolve    | exact -> case-insensitive -> fuzzy            | FAILED / NOT_FOUND    |
| duplicates | criteria pick a row, else first + warning     | -                     |
| status     | synonym table lookup                          | FAILED / INPUT        |
| compare    | same as current status                        | UNCHANGED (no write)  |
| apply      | registry.update_status                        | FAILED / SYSTEM       |

Items are processed strictly in order; a repeated vehicle name is applied
each time, so the last occurrence wins. One bad item never stops the batch.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import reduce
from itertools import islice
from typing import Callable, Iterable, Iterator, Optional

from .audit import AuditLogger, LoggingAuditLogger, generate_batch_id
from .config import Config
from .duplicates import DuplicateResolver
from .exceptions import InputError, TransitionError, VehicleNotFoundError
from .models import (
    BatchReport,
    DuplicateCriteria,
    ErrorKind,
    ItemOutcome,
    MatchResult,
    MatchType,
    OutcomeKind,
    StatusUpdateRequest,
    ValidationOutcome,
)
from .registry import VehicleRegistry
from .resolver import VehicleResolver
from .status import (
    StatusNormalizer,
    validate_maintenance_history,
    validate_transition,
    validate_vehicle_name,
)

logger = logging.getLogger(__name__)


def default_requests() -> list[StatusUpdateRequest]:
    """Built-in update list: every garage vehicle to good, G63 listed twice."""
    return [
        StatusUpdateRequest("BMW 4-Series", "good"),
        StatusUpdateRequest("Audi RS6", "good"),
        StatusUpdateRequest("Mercedes G63AMG", "good"),
        StatusUpdateRequest("Tesla Model 3", "good"),
        StatusUpdateRequest("Mercedes G63AMG", "average"),
        StatusUpdateRequest("Chevrolet Camaro", "good"),
        StatusUpdateRequest("Rolls-Royce Phantom", "good"),
        StatusUpdateRequest("Ferrari J50", "good"),
        StatusUpdateRequest("Porsche 911", "good"),
        StatusUpdateRequest("Sparrow", "good"),
        StatusUpdateRequest("Ducati Ducnaked", "good"),
        StatusUpdateRequest("NRG-500", "good"),
        StatusUpdateRequest("Mercedes-Benz C63S", "good"),
        StatusUpdateRequest("BMW M3 Touring", "good"),
        StatusUpdateRequest("Lamborghini Huracan 2022", "good"),
    ]


def _raw_text(value) -> str:
    return "" if value is None else str(value)


def find_repeated_names(requests: Iterable[StatusUpdateRequest]) -> list[str]:
    """
    Names that appear more than once in a request list.

    Comparison is trimmed and case-insensitive; each name is reported once,
    spelled as it first appeared.
    """
    counts: Counter = Counter()
    first_spelling: dict[str, str] = {}
    for request in requests:
        name = _raw_text(request.vehicle_name).strip()
        if not name:
            continue
        key = name.lower()
        counts[key] += 1
        first_spelling.setdefault(key, name)
    return [first_spelling[key] for key, n in counts.items() if n > 1]


@dataclass
class BatchPreflight:
    """Read-only dry run of a batch: what would happen, without writing."""
    validations: list[ValidationOutcome] = field(default_factory=list)
    status_distribution: dict[str, int] = field(default_factory=dict)
    repeated_names: list[str] = field(default_factory=list)
    matched: list[tuple[str, str, MatchType, float]] = field(default_factory=list)
    unmatched_names: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.validations)

    @property
    def valid_count(self) -> int:
        return sum(1 for v in self.validations if v.is_valid)

    @property
    def invalid_count(self) -> int:
        return self.total - self.valid_count

    @property
    def is_valid(self) -> bool:
        """False for an empty list or when any item has blocking errors."""
        return bool(self.validations) and self.invalid_count == 0


class BatchProcessor:
    """
    Resolves and applies status updates one item at a time.

    Collaborators are injected so tests can swap in an in-memory registry,
    a failing audit logger or a fixed clock.
    """

    def __init__(
        self,
        registry: VehicleRegistry,
        audit: Optional[AuditLogger] = None,
        config: Optional[Config] = None,
        duplicate_criteria: Optional[DuplicateCriteria] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.registry = registry
        self.audit = audit or LoggingAuditLogger()
        self.config = config or Config()
        self.duplicate_criteria = duplicate_criteria or DuplicateCriteria()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.resolver = VehicleResolver(registry, self.config)
        self.status_normalizer = StatusNormalizer(self.config.status_synonyms_path)

    # ----- public API -----

    def process_batch(
        self,
        requests: Iterable[StatusUpdateRequest],
        max_items: Optional[int] = None,
        source: str = "batch",
    ) -> BatchReport:
        """
        Apply every request in order and summarize the result.

        Args:
            requests: Status update requests
            max_items: Stop after this many items; the report then covers
                only the attempted ones (``is_complete`` is False)
            source: Label recorded with the batch start audit event

        Returns:
            BatchReport whose updated/unchanged/failed buckets add up to total
        """
        requests = list(requests)
        batch_id = generate_batch_id()
        report = BatchReport(batch_id=batch_id, started_at=self.clock(), requested=len(requests))

        logger.info(f"Batch {batch_id}: processing {len(requests)} status updates from {source}")
        self._audit("log_batch_start", batch_id, len(requests), source)

        outcomes = self.iter_outcomes(requests, batch_id=batch_id)
        if max_items is not None:
            outcomes = islice(outcomes, max(0, max_items))
        report = reduce(BatchReport.with_outcome, outcomes, report)
        report = report.finish(self.clock())

        counts = report.counts
        logger.info(
            f"Batch {batch_id} finished: {counts['updated']} updated, "
            f"{counts['unchanged']} unchanged, {counts['failed']} failed "
            f"({counts['total']}/{counts['requested']} attempted)"
        )
        self._audit("log_batch_complete", report)
        return report

    def iter_outcomes(
        self,
        requests: Iterable[StatusUpdateRequest],
        batch_id: Optional[str] = None,
    ) -> Iterator[ItemOutcome]:
        """Process requests lazily, yielding one outcome per item."""
        for index, request in enumerate(requests):
            outcome = self.process_item(index, request)
            if outcome.kind == OutcomeKind.UPDATED:
                self._audit("log_status_update", outcome, batch_id)
            elif outcome.kind == OutcomeKind.FAILED:
                self._audit("log_status_update_error", outcome, outcome.reason, batch_id)
            yield outcome

    def process_item(self, index: int, request: StatusUpdateRequest) -> ItemOutcome:
        """
        Resolve and apply a single request.

        Never raises: every error becomes a FAILED outcome.
        """
        context = {
            "index": index,
            "raw_name": _raw_text(request.vehicle_name),
            "raw_status": _raw_text(request.status),
        }
        try:
            return self._apply(request, context)
        except InputError as e:
            return self._failed(context, ErrorKind.INPUT, str(e))
        except VehicleNotFoundError as e:
            return self._failed(context, ErrorKind.NOT_FOUND, str(e), e.suggestions)
        except TransitionError as e:
            return self._failed(context, ErrorKind.TRANSITION, str(e))
        except Exception as e:
            logger.exception(f"Failed to update '{context['raw_name']}'")
            return self._failed(context, ErrorKind.SYSTEM, str(e) or type(e).__name__)

    def validate_request(self, request: StatusUpdateRequest) -> ValidationOutcome:
        """
        Run every check for one request without writing anything.

        All problems are collected: a bad name does not hide a bad status.
        """
        outcome = ValidationOutcome()
        try:
            name, name_warnings = validate_vehicle_name(request.vehicle_name, self.config.names)
            outcome.warnings.extend(name_warnings)
        except InputError as e:
            outcome.errors.append(str(e))
            name = None

        try:
            outcome.normalized_status = self.status_normalizer.normalize(request.status)
        except InputError as e:
            outcome.errors.append(str(e))

        if name is None:
            return outcome

        match = self.resolver.resolve(name)
        outcome.match = match
        if not match.found:
            error = VehicleNotFoundError(name, self.resolver.suggest(name))
            outcome.errors.append(str(error))
            return outcome

        vehicle = self._choose_vehicle(match, outcome.warnings)
        outcome.vehicle = vehicle
        if match.match_type == MatchType.FUZZY:
            outcome.warnings.append(_fuzzy_warning(name, vehicle.name, match.confidence))

        if outcome.normalized_status is not None:
            transition = validate_transition(vehicle.status, outcome.normalized_status)
            _collect_transition(transition, outcome.warnings, outcome.recommendations)
            if not transition.is_no_change:
                check = validate_maintenance_history(
                    vehicle, outcome.normalized_status, self.config.maintenance, now=self.clock()
                )
                outcome.warnings.extend(check.warnings)
                outcome.recommendations.extend(check.recommendations)
        return outcome

    def preflight(self, requests: Iterable[StatusUpdateRequest]) -> BatchPreflight:
        """
        Dry run of a whole batch: validation, distribution, repeats, matches.

        No registry writes and no audit events.
        """
        requests = list(requests)
        result = BatchPreflight(repeated_names=find_repeated_names(requests))
        distribution: Counter = Counter()

        for request in requests:
            validation = self.validate_request(request)
            result.validations.append(validation)
            if validation.normalized_status is not None:
                distribution[validation.normalized_status.value] += 1

            match = validation.match
            if match is None:
                continue
            if match.found:
                result.matched.append((match.query, match.vehicle.name, match.match_type, match.confidence))
            else:
                result.unmatched_names.append(match.query)

        result.status_distribution = dict(distribution)
        return result

    # ----- internals -----

    def _apply(self, request: StatusUpdateRequest, context: dict) -> ItemOutcome:
        name, warnings = validate_vehicle_name(request.vehicle_name, self.config.names)

        match = self.resolver.resolve(name)
        if not match.found:
            raise VehicleNotFoundError(name, self.resolver.suggest(name))

        vehicle = self._choose_vehicle(match, warnings)
        context.update(
            vehicle_id=vehicle.vehicle_id,
            vehicle_name=vehicle.name,
            old_status=vehicle.status,
            match_type=match.match_type,
            confidence=match.confidence,
        )
        if match.match_type == MatchType.FUZZY:
            warnings.append(_fuzzy_warning(name, vehicle.name, match.confidence))

        new_status = self.status_normalizer.normalize(request.status)
        context["new_status"] = new_status

        if new_status == vehicle.status:
            return ItemOutcome(
                kind=OutcomeKind.UNCHANGED,
                reason=f"Status already {new_status.value}",
                warnings=tuple(warnings),
                **context,
            )

        recommendations: list[str] = []
        transition = validate_transition(vehicle.status, new_status)
        if not transition.is_valid:
            raise TransitionError(transition.warning or f"{vehicle.status.value} -> {new_status.value} not allowed")
        _collect_transition(transition, warnings, recommendations)

        check = validate_maintenance_history(vehicle, new_status, self.config.maintenance, now=self.clock())
        warnings.extend(check.warnings)
        recommendations.extend(check.recommendations)

        updated = self.registry.update_status(vehicle.vehicle_id, new_status)
        logger.debug(f"{updated.name} ({updated.vehicle_id}): {vehicle.status.value} -> {updated.status.value}")

        return ItemOutcome(
            kind=OutcomeKind.UPDATED,
            warnings=tuple(warnings),
            recommendations=tuple(recommendations),
            **context,
        )

    def _choose_vehicle(self, match: MatchResult, warnings: list[str]):
        """Apply duplicate criteria, or keep the resolver's row and say so."""
        if not match.has_duplicates:
            return match.vehicle
        if not self.duplicate_criteria.is_empty:
            return DuplicateResolver.resolve(match.duplicates, self.duplicate_criteria)
        warnings.append(
            f'{len(match.duplicates)} vehicles share the name "{match.vehicle.name}"; '
            f"updating id {match.vehicle.vehicle_id}"
        )
        return match.vehicle

    @staticmethod
    def _failed(context: dict, error_kind: ErrorKind, reason: str, suggestions=()) -> ItemOutcome:
        return ItemOutcome(
            kind=OutcomeKind.FAILED,
            error_kind=error_kind,
            reason=reason,
            suggestions=tuple(suggestions),
            **context,
        )

    def _audit(self, method: str, *args) -> None:
        """Call an audit hook; failures are logged and never propagate."""
        try:
            getattr(self.audit, method)(*args)
        except Exception as e:
            logger.warning(f"Audit {method} failed: {e}")


def _fuzzy_warning(query: str, matched_name: str, confidence: float) -> str:
    return f'"{query}" matched as "{matched_name}" ({confidence:.0%})'


def _collect_transition(transition, warnings: list[str], recommendations: list[str]) -> None:
    if transition.warning:
        warnings.append(transition.warning)
    if transition.recommendation:
        recommendations.append(transition.recommendation)
