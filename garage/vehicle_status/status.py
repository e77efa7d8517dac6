"""
Status normalization and transition validation.

The synonym table is pure data (status_synonyms.yaml). Adding a spelling
means editing the YAML, not this module.
"""

import logging
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml

from .config import DEFAULT_SYNONYMS_PATH, MaintenanceSettings, NameSettings
from .exceptions import InputError, UnknownStatusError
from .models import CanonicalStatus, MaintenanceCheck, TransitionResult, VehicleRecord, as_utc

logger = logging.getLogger(__name__)

STATUS_UNCHANGED = "Status unchanged"
CONDITION_IMPROVED = "Vehicle condition improved"
CONDITION_WORSENED = "Vehicle condition worsened"

_SUSPICIOUS_CHARS = re.compile(r"""[<>{}\[\]\\|`~!@#$%^&*()+=;:'"]""")


@lru_cache(maxsize=8)
def load_synonym_table(path: Path = DEFAULT_SYNONYMS_PATH) -> dict[str, CanonicalStatus]:
    """
    Load the synonym table once per path.

    Returns:
        Mapping of lowercased synonym -> CanonicalStatus
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    table = {status.value.lower(): status for status in CanonicalStatus}
    for canonical, synonyms in (data.get("statuses") or {}).items():
        status = CanonicalStatus(canonical)
        for synonym in synonyms or []:
            key = str(synonym).strip().lower()
            existing = table.get(key)
            if existing is not None and existing != status:
                raise ValueError(f"Synonym '{key}' maps to both {existing.value} and {status.value}")
            table[key] = status

    logger.debug(f"Loaded {len(table)} status synonyms from {path}")
    return table


class StatusNormalizer:
    """Maps free-text status tokens onto CanonicalStatus."""

    def __init__(self, synonyms_path: Optional[Path] = None):
        self._table = load_synonym_table(Path(synonyms_path or DEFAULT_SYNONYMS_PATH))

    def normalize(self, raw_status) -> CanonicalStatus:
        """
        Resolve a raw status string.

        Raises:
            UnknownStatusError: No synonym matches (message lists allowed values)
        """
        if isinstance(raw_status, CanonicalStatus):
            return raw_status
        if not isinstance(raw_status, str) or not raw_status.strip():
            raise UnknownStatusError(raw_status, CanonicalStatus.values())
        status = self._table.get(raw_status.strip().lower())
        if status is None:
            raise UnknownStatusError(raw_status, CanonicalStatus.values())
        return status

    def is_known(self, raw_status) -> bool:
        try:
            self.normalize(raw_status)
        except UnknownStatusError:
            return False
        return True


def validate_transition(old_status: CanonicalStatus, new_status: CanonicalStatus) -> TransitionResult:
    """
    Classify a status change by rank.

    Every transition is currently allowed; ``is_valid`` is the hook for
    future policy.
    """
    if old_status == new_status:
        return TransitionResult(is_no_change=True, warning=STATUS_UNCHANGED)

    if new_status.rank > old_status.rank:
        return TransitionResult(is_upgrade=True, recommendation=CONDITION_IMPROVED)
    return TransitionResult(is_downgrade=True, warning=CONDITION_WORSENED)


def validate_maintenance_history(
    vehicle: VehicleRecord,
    new_status: CanonicalStatus,
    settings: Optional[MaintenanceSettings] = None,
    now: Optional[datetime] = None,
) -> MaintenanceCheck:
    """
    Sanity-check a new status against the last maintenance date.

    Advisory only: nothing here blocks an update.

    Args:
        vehicle: Registry row before the update
        new_status: Status about to be written
        settings: Day thresholds (defaults: 30 / 60 / 7)
        now: Reference time, defaults to current UTC time

    Returns:
        MaintenanceCheck with warnings and recommendations
    """
    settings = settings or MaintenanceSettings()
    now = as_utc(now or datetime.now(timezone.utc))
    warnings = []
    recommendations = []

    if vehicle.last_maintenance is None:
        warnings.append("No last-maintenance date on record")
    else:
        days_since = (now - as_utc(vehicle.last_maintenance)).days

        if days_since > settings.overdue_days:
            warnings.append(f"Last maintenance was {days_since} days ago")

        if new_status == CanonicalStatus.GOOD and days_since > settings.stale_good_days:
            warnings.append("Suspicious: good condition reported long after last maintenance")

        if new_status == CanonicalStatus.POOR and days_since < settings.fresh_poor_days:
            warnings.append("Suspicious: poor condition reported right after maintenance")

    if new_status == CanonicalStatus.POOR:
        recommendations.append("Schedule maintenance")
    elif new_status == CanonicalStatus.AVERAGE:
        recommendations.append("Schedule a preventive inspection")

    return MaintenanceCheck(warnings=tuple(warnings), recommendations=tuple(recommendations))


def validate_vehicle_name(raw_name, settings: Optional[NameSettings] = None) -> tuple[str, list[str]]:
    """
    Check a raw vehicle name before resolving it.

    Returns:
        (trimmed name, advisory warnings)

    Raises:
        InputError: Non-string, empty, too short or too long
    """
    settings = settings or NameSettings()
    if not isinstance(raw_name, str):
        raise InputError("Vehicle name must be a string")

    name = raw_name.strip()
    if not name:
        raise InputError("Vehicle name is empty")
    if len(name) > settings.max_length:
        raise InputError(f"Vehicle name is too long (max {settings.max_length} characters)")
    if len(name) < settings.min_length:
        raise InputError(f"Vehicle name is too short (min {settings.min_length} characters)")

    warnings = []
    if _SUSPICIOUS_CHARS.search(name):
        warnings.append("Vehicle name contains suspicious characters")
    digits = sum(ch.isdigit() for ch in name)
    if digits > len(name) * 0.5:
        warnings.append("Vehicle name is mostly digits")

    return name, warnings
