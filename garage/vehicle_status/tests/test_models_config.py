"""
Tests for models and config.

Run with: pytest garage/vehicle_status/tests/test_models_config.py -v
"""

import json

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from garage.vehicle_status.config import (
    DEFAULT_SYNONYMS_PATH,
    load_config,
)
from garage.vehicle_status.exceptions import (
    InputError,
    UnknownStatusError,
    VehicleNotFoundError,
    VehicleStatusError,
)
from garage.vehicle_status.models import (
    BatchReport,
    CanonicalStatus,
    DuplicateCriteria,
    ItemOutcome,
    OutcomeKind,
)


# Path to test config
CONFIG_PATH = Path(__file__).parent.parent / "vehicle_status_config.json"

STARTED = datetime(2025, 6, 1, tzinfo=timezone.utc)


def outcome(index, kind):
    return ItemOutcome(index=index, kind=kind, raw_name=f"car {index}", raw_status="good")


class TestCanonicalStatus:
    """Test CanonicalStatus enum."""

    def test_values(self):
        assert CanonicalStatus.values() == ["Poor", "Average", "Good"]

    def test_rank_order(self):
        assert CanonicalStatus.POOR.rank < CanonicalStatus.AVERAGE.rank < CanonicalStatus.GOOD.rank

    def test_str_enum(self):
        assert CanonicalStatus("Good") == CanonicalStatus.GOOD
        assert CanonicalStatus.GOOD == "Good"


class TestDuplicateCriteria:

    def test_empty(self):
        assert DuplicateCriteria().is_empty
        assert not DuplicateCriteria(prefer_older=True).is_empty
        assert not DuplicateCriteria(preferred_status=CanonicalStatus.POOR).is_empty


class TestBatchReport:
    """Test the immutable report fold."""

    def test_with_outcome_returns_new_report(self):
        empty = BatchReport(batch_id="b", started_at=STARTED, requested=1)
        report = empty.with_outcome(outcome(0, OutcomeKind.UPDATED))
        assert empty.total == 0
        assert report.total == 1
        assert report.updated[0].index == 0

    def test_buckets(self):
        report = BatchReport(batch_id="b", started_at=STARTED, requested=3)
        for item in [outcome(0, OutcomeKind.FAILED), outcome(1, OutcomeKind.UNCHANGED), outcome(2, OutcomeKind.UPDATED)]:
            report = report.with_outcome(item)
        assert report.counts == {"total": 3, "requested": 3, "updated": 1, "unchanged": 1, "failed": 1}
        assert [o.index for o in report.outcomes()] == [0, 1, 2]
        assert report.is_complete
        assert not report.success

    def test_duration(self):
        report = BatchReport(batch_id="b", started_at=STARTED)
        assert report.duration == timedelta(0)
        finished = report.finish(STARTED + timedelta(seconds=3))
        assert finished.duration == timedelta(seconds=3)

    def test_display_name_falls_back_to_raw(self):
        assert outcome(0, OutcomeKind.FAILED).display_name == "car 0"


class TestExceptions:

    def test_hierarchy(self):
        assert issubclass(UnknownStatusError, InputError)
        assert issubclass(InputError, VehicleStatusError)
        assert issubclass(VehicleNotFoundError, VehicleStatusError)

    def test_not_found_message(self):
        error = VehicleNotFoundError("Toyota Supra", ["Tesla Model 3"])
        assert str(error) == 'Vehicle "Toyota Supra" not found'
        assert error.suggestions == ["Tesla Model 3"]


class TestConfig:
    """Test configuration loading."""

    def test_load_default(self):
        config = load_config(CONFIG_PATH)
        assert config.matching.similarity_threshold == 0.7
        assert config.matching.suggestion_threshold == 0.3
        assert config.matching.max_alternatives == 3
        assert "the" in config.matching.stop_words
        assert config.names.max_length == 100
        assert config.maintenance.overdue_days == 30
        assert config.status_synonyms_path.name == "status_synonyms.yaml"
        assert config.status_synonyms_path.exists()

    def test_load_without_path(self):
        assert load_config().matching.similarity_threshold == 0.7

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"matching": {"similarity_threshold": 0.8}}))
        config = load_config(path)
        assert config.matching.similarity_threshold == 0.8
        assert config.matching.max_suggestions == 3
        assert config.maintenance.fresh_poor_days == 7
        assert config.status_synonyms_path == DEFAULT_SYNONYMS_PATH

    def test_relative_synonyms_path(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"status_synonyms_path": "my_synonyms.yaml"}))
        assert load_config(path).status_synonyms_path == tmp_path / "my_synonyms.yaml"

    def test_threshold_out_of_range(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"matching": {"similarity_threshold": 1.5}}))
        with pytest.raises(ValueError):
            load_config(path)

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("VEHICLE_STATUS_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("VEHICLE_STATUS_AUDIT_DIR", "/tmp/audit")
        config = load_config(CONFIG_PATH)
        assert config.storage.db_path == "/tmp/other.db"
        assert config.storage.audit_log_dir == "/tmp/audit"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")
