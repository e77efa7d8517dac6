"""
Vehicle Registry - Bridge to wherever vehicle rows live.

The registry pattern lets us swap implementations (in-memory for tests,
SQLite for the garage database) without changing resolver or batch logic.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from .exceptions import RegistryError
from .models import CanonicalStatus, VehicleRecord


def empty_statistics() -> dict:
    """Zeroed per-status counters plus a total."""
    stats = {status.value: 0 for status in CanonicalStatus}
    stats["total"] = 0
    return stats


class VehicleRegistry(ABC):
    """
    Abstract interface for vehicle storage.

    Rows come back in registry (insertion) order. The resolver and batch
    processor don't know or care where the data actually lives.
    """

    @abstractmethod
    def get_all(self) -> list[VehicleRecord]:
        """All vehicles, registry order."""

    @abstractmethod
    def get_by_id(self, vehicle_id: int) -> Optional[VehicleRecord]:
        """Vehicle by id, or None."""

    @abstractmethod
    def find_by_exact_name(self, name: str) -> Optional[VehicleRecord]:
        """First vehicle whose name equals ``name`` exactly (after trim)."""

    @abstractmethod
    def find_by_case_insensitive_name(self, name: str) -> Optional[VehicleRecord]:
        """First vehicle whose trimmed, lowercased name equals ``name``'s."""

    @abstractmethod
    def update_status(self, vehicle_id: int, status: CanonicalStatus) -> VehicleRecord:
        """
        Write a new status and stamp last maintenance with now.

        Returns:
            The updated record

        Raises:
            RegistryError: Unknown id or storage failure
        """

    @abstractmethod
    def add_vehicle(
        self,
        name: str,
        status: CanonicalStatus = CanonicalStatus.GOOD,
        last_maintenance: Optional[datetime] = None,
    ) -> VehicleRecord:
        """Insert a vehicle and return it with its assigned id."""

    def get_statistics(self) -> dict:
        """Count of vehicles per canonical status plus ``total``."""
        stats = empty_statistics()
        for vehicle in self.get_all():
            stats[vehicle.status.value] += 1
            stats["total"] += 1
        return stats


class InMemoryVehicleRegistry(VehicleRegistry):
    """
    In-memory registry for programmatic setup.

    Useful for unit tests where you want to control exact records.
    """

    def __init__(
        self,
        records: Optional[Iterable[VehicleRecord]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._records: list[VehicleRecord] = list(records or [])
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_names(cls, entries: Iterable[tuple[str, CanonicalStatus]], **kwargs) -> "InMemoryVehicleRegistry":
        """Build a registry from (name, status) pairs with ids 1..n."""
        records = [
            VehicleRecord(vehicle_id=i, name=name, status=status)
            for i, (name, status) in enumerate(entries, start=1)
        ]
        return cls(records, **kwargs)

    def get_all(self) -> list[VehicleRecord]:
        return list(self._records)

    def get_by_id(self, vehicle_id: int) -> Optional[VehicleRecord]:
        return next((r for r in self._records if r.vehicle_id == vehicle_id), None)

    def find_by_exact_name(self, name: str) -> Optional[VehicleRecord]:
        target = name.strip()
        return next((r for r in self._records if r.name.strip() == target), None)

    def find_by_case_insensitive_name(self, name: str) -> Optional[VehicleRecord]:
        target = name.strip().lower()
        return next((r for r in self._records if r.name.strip().lower() == target), None)

    def update_status(self, vehicle_id: int, status: CanonicalStatus) -> VehicleRecord:
        for i, record in enumerate(self._records):
            if record.vehicle_id == vehicle_id:
                now = self._clock()
                updated = replace(record, status=CanonicalStatus(status), last_maintenance=now, updated_at=now)
                self._records[i] = updated
                return updated
        raise RegistryError(f"Vehicle with id {vehicle_id} not found")

    def add_vehicle(
        self,
        name: str,
        status: CanonicalStatus = CanonicalStatus.GOOD,
        last_maintenance: Optional[datetime] = None,
    ) -> VehicleRecord:
        next_id = max((r.vehicle_id for r in self._records), default=0) + 1
        now = self._clock()
        record = VehicleRecord(
            vehicle_id=next_id,
            name=name,
            status=CanonicalStatus(status),
            last_maintenance=last_maintenance,
            created_at=now,
            updated_at=now,
        )
        self._records.append(record)
        return record

    def clear(self):
        """Remove all records."""
        self._records = []
