"""
Tests for the in-memory and SQLite vehicle registries.

Run with: pytest garage/vehicle_status/tests/test_registry.py -v
"""

import sqlite3

import pytest
from datetime import datetime, timezone

from garage.vehicle_status.exceptions import RegistryError
from garage.vehicle_status.models import CanonicalStatus, VehicleRecord
from garage.vehicle_status.registry import InMemoryVehicleRegistry, empty_statistics
from garage.vehicle_status.sqlite_registry import DEFAULT_VEHICLES, SqliteVehicleRegistry


@pytest.fixture
def sqlite_registry(tmp_path, clock):
    registry = SqliteVehicleRegistry(tmp_path / "garage.db", clock=clock)
    registry.init_db()
    registry.seed_vehicles()
    return registry


@pytest.fixture(params=["memory", "sqlite"])
def registry(request, garage, sqlite_registry):
    """Both implementations seeded with the default garage."""
    if request.param == "memory":
        return garage
    return sqlite_registry


class TestRegistryContract:

    def test_get_all_in_insertion_order(self, registry):
        names = [v.name for v in registry.get_all()]
        assert names == [name for name, _ in DEFAULT_VEHICLES]

    def test_get_by_id(self, registry):
        vehicle = registry.get_by_id(9)
        assert vehicle.name == "Sparrow"
        assert vehicle.status == CanonicalStatus.GOOD
        assert registry.get_by_id(999) is None

    def test_find_by_exact_name(self, registry):
        assert registry.find_by_exact_name("NRG-500").vehicle_id == 11
        assert registry.find_by_exact_name("nrg-500") is None

    def test_find_by_exact_name_strips_tabs_and_newlines(self, registry):
        assert registry.find_by_exact_name("\tNRG-500\n").vehicle_id == 11
        padded = registry.add_vehicle("\tDelorean DMC-12\n", CanonicalStatus.POOR)
        assert registry.find_by_exact_name("Delorean DMC-12").vehicle_id == padded.vehicle_id

    def test_find_by_case_insensitive_name(self, registry):
        assert registry.find_by_case_insensitive_name("  nrg-500 ").vehicle_id == 11
        assert registry.find_by_case_insensitive_name("nrg 500") is None

    def test_update_status(self, registry, clock):
        updated = registry.update_status(7, CanonicalStatus.GOOD)
        assert updated.status == CanonicalStatus.GOOD
        assert updated.last_maintenance == clock()
        assert registry.get_by_id(7).status == CanonicalStatus.GOOD

    def test_update_unknown_id(self, registry):
        with pytest.raises(RegistryError):
            registry.update_status(999, CanonicalStatus.GOOD)

    def test_add_vehicle(self, registry):
        added = registry.add_vehicle("Mercedes G63AMG", CanonicalStatus.AVERAGE)
        assert added.vehicle_id == 15
        assert registry.get_all()[-1] == added

    def test_statistics(self, registry):
        assert registry.get_statistics() == {"Poor": 4, "Average": 5, "Good": 5, "total": 14}

    def test_statistics_after_update(self, registry):
        registry.update_status(3, CanonicalStatus.GOOD)
        stats = registry.get_statistics()
        assert stats["Poor"] == 3
        assert stats["Good"] == 6
        assert stats["total"] == 14


class TestInMemoryRegistry:

    def test_empty(self):
        registry = InMemoryVehicleRegistry()
        assert registry.get_all() == []
        assert registry.get_statistics() == empty_statistics()

    def test_records_are_replaced_not_mutated(self, garage):
        before = garage.get_by_id(2)
        garage.update_status(2, CanonicalStatus.POOR)
        assert before.status == CanonicalStatus.AVERAGE

    def test_clear(self, garage):
        garage.clear()
        assert garage.get_all() == []


class TestSqliteRegistry:

    def test_seed_only_once(self, sqlite_registry):
        assert sqlite_registry.seed_vehicles() == 0
        assert len(sqlite_registry.get_all()) == 14

    def test_timestamps_round_trip(self, tmp_path):
        registry = SqliteVehicleRegistry(tmp_path / "garage.db")
        registry.init_db()
        maintained = datetime(2025, 3, 4, 5, 6, tzinfo=timezone.utc)
        added = registry.add_vehicle("Sparrow", CanonicalStatus.GOOD, last_maintenance=maintained)
        assert registry.get_by_id(added.vehicle_id).last_maintenance == maintained

    def test_in_memory_database(self, clock):
        registry = SqliteVehicleRegistry(":memory:", clock=clock)
        registry.init_db()
        registry.seed_vehicles([("Sparrow", CanonicalStatus.POOR)])
        assert [v.name for v in registry.get_all()] == ["Sparrow"]
        registry.close()

    def test_status_check_constraint(self, sqlite_registry):
        with pytest.raises(RegistryError):
            with sqlite_registry.get_db() as conn:
                conn.execute("UPDATE garage SET status = 'Shiny' WHERE car_id = 1")
        assert sqlite_registry.get_by_id(1).status == CanonicalStatus.GOOD

    def test_missing_table(self, tmp_path):
        registry = SqliteVehicleRegistry(tmp_path / "empty.db")
        with pytest.raises(RegistryError):
            registry.get_all()

    def test_reopen_keeps_data(self, tmp_path, sqlite_registry):
        sqlite_registry.update_status(1, CanonicalStatus.POOR)
        reopened = SqliteVehicleRegistry(tmp_path / "garage.db")
        assert reopened.get_by_id(1).status == CanonicalStatus.POOR

    def test_rows_are_plain_records(self, sqlite_registry):
        vehicle = sqlite_registry.get_by_id(1)
        assert isinstance(vehicle, VehicleRecord)
        assert not isinstance(vehicle, sqlite3.Row)
