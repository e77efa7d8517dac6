"""
Shared fixtures for vehicle status tests.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from garage.vehicle_status.config import Config, load_config
from garage.vehicle_status.registry import InMemoryVehicleRegistry
from garage.vehicle_status.sqlite_registry import DEFAULT_VEHICLES


CONFIG_PATH = Path(__file__).parent.parent / "vehicle_status_config.json"

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config() -> Config:
    return load_config(CONFIG_PATH)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def garage(clock):
    """In-memory registry holding the 14 default garage vehicles, ids 1..14."""
    return InMemoryVehicleRegistry.from_names(DEFAULT_VEHICLES, clock=clock)
