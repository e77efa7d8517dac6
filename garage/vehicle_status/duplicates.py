"""
Duplicate Resolver - Pick one row when several share a normalized name.

Duplicates are data, never errors. Choosing among them is the caller's
policy, expressed as DuplicateCriteria.
"""

from typing import Iterable, Optional

from .models import DuplicateCriteria, VehicleRecord, as_utc
from .normalize import normalize_name
from .registry import VehicleRegistry


def find_duplicates(vehicles: Iterable[VehicleRecord], name: str) -> list[VehicleRecord]:
    """All vehicles whose normalized name equals ``name``'s, registry order."""
    target = normalize_name(name)
    if not target:
        return []
    return [v for v in vehicles if normalize_name(v.name) == target]


class DuplicateResolver:
    """Finds and disambiguates registry rows sharing a name."""

    def __init__(self, registry: VehicleRegistry):
        self.registry = registry

    def find_duplicates(self, name: str) -> list[VehicleRecord]:
        return find_duplicates(self.registry.get_all(), name)

    def group_duplicates(self) -> dict[str, list[VehicleRecord]]:
        """Every normalized name held by more than one row."""
        groups: dict[str, list[VehicleRecord]] = {}
        for vehicle in self.registry.get_all():
            groups.setdefault(normalize_name(vehicle.name), []).append(vehicle)
        return {name: rows for name, rows in groups.items() if len(rows) > 1}

    @staticmethod
    def resolve(
        duplicates: list[VehicleRecord],
        criteria: Optional[DuplicateCriteria] = None,
    ) -> Optional[VehicleRecord]:
        """
        Choose one vehicle from a duplicate set.

        Priority:
        1. preferred_status - first row holding that status
        2. prefer_older - smallest id
        3. prefer_recent_maintenance - latest last_maintenance (rows
           without a date never win)
        4. first row in registry order

        A criterion that matches nothing falls through to the next one.
        """
        if not duplicates:
            return None
        if len(duplicates) == 1:
            return duplicates[0]

        criteria = criteria or DuplicateCriteria()

        if criteria.preferred_status is not None:
            match = next((v for v in duplicates if v.status == criteria.preferred_status), None)
            if match is not None:
                return match

        if criteria.prefer_older:
            return min(duplicates, key=lambda v: v.vehicle_id)

        if criteria.prefer_recent_maintenance:
            dated = [v for v in duplicates if v.last_maintenance is not None]
            if dated:
                return max(dated, key=lambda v: as_utc(v.last_maintenance))

        # TODO: confirm registry order is the intended default tie-break
        return duplicates[0]
