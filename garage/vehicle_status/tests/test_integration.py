"""
Integration tests for the command line entry point.

These tests run the full pipeline against a SQLite garage in tmp_path.
Run with: pytest garage/vehicle_status/tests/test_integration.py -v
"""

import json

import pytest
from pathlib import Path

from garage.vehicle_status.__main__ import main
from garage.vehicle_status.models import CanonicalStatus
from garage.vehicle_status.sqlite_registry import SqliteVehicleRegistry


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "garage.db"


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    monkeypatch.setenv("VEHICLE_STATUS_DB_PATH", str(tmp_path / "default.db"))
    monkeypatch.setenv("VEHICLE_STATUS_AUDIT_DIR", str(tmp_path / "logs"))


class TestCli:
    """Test the end-to-end command line flow."""

    def test_default_list(self, db_path, capsys):
        main(["--db", str(db_path), "--seed"])

        output = capsys.readouterr().out
        assert "Seeded garage with 14 vehicles" in output
        assert "PREFLIGHT" in output
        assert "REPEATED NAMES (1)" in output
        assert "SUMMARY" in output

        registry = SqliteVehicleRegistry(db_path)
        assert registry.get_statistics() == {"Poor": 0, "Average": 1, "Good": 13, "total": 14}

    def test_csv_file_with_exports(self, db_path, tmp_path):
        csv_out = tmp_path / "report.csv"
        xlsx_out = tmp_path / "report.xlsx"
        main([
            "--db", str(db_path), "--seed", "--quiet",
            "--file", str(FIXTURES_DIR / "updates.csv"),
            "--output-csv", str(csv_out),
            "--output-xlsx", str(xlsx_out),
        ])

        assert csv_out.read_text().count("\n") == 5
        assert xlsx_out.stat().st_size > 0
        registry = SqliteVehicleRegistry(db_path)
        assert registry.find_by_exact_name("Audi RS6").status == CanonicalStatus.AVERAGE
        assert registry.find_by_exact_name("Mercedes G63AMG").status == CanonicalStatus.GOOD

    def test_dry_run_writes_nothing(self, db_path):
        main(["--db", str(db_path), "--seed", "--quiet", "--dry-run"])
        registry = SqliteVehicleRegistry(db_path)
        assert registry.get_statistics()["Poor"] == 4

    def test_strict_aborts_on_invalid_item(self, db_path):
        with pytest.raises(SystemExit) as exc_info:
            main([
                "--db", str(db_path), "--seed", "--quiet", "--strict",
                "--file", str(FIXTURES_DIR / "updates.csv"),
            ])
        assert exc_info.value.code == 1
        registry = SqliteVehicleRegistry(db_path)
        assert registry.find_by_exact_name("Mercedes G63AMG").status == CanonicalStatus.POOR

    def test_item_failures_still_exit_zero(self, db_path):
        # Toyota Supra fails, the rest apply
        main([
            "--db", str(db_path), "--seed", "--quiet",
            "--file", str(FIXTURES_DIR / "updates.csv"),
        ])

    def test_no_valid_items(self, db_path, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([["Toyota Supra", "good"]]))
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(db_path), "--seed", "--quiet", "--file", str(path)])
        assert exc_info.value.code == 1
        assert "No valid updates" in capsys.readouterr().err

    def test_missing_file(self, db_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--db", str(db_path), "--file", "does_not_exist.csv"])
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().err

    def test_file_audit(self, db_path, tmp_path):
        main(["--db", str(db_path), "--seed", "--quiet", "--audit", "file"])
        assert (tmp_path / "logs" / "status_updates.json").exists()
        assert (tmp_path / "logs" / "status_updates.log").exists()

    def test_prefer_status_with_duplicates(self, db_path):
        registry = SqliteVehicleRegistry(db_path)
        registry.init_db()
        registry.seed_vehicles()
        registry.add_vehicle("Mercedes G63AMG", CanonicalStatus.GOOD)

        main([
            "--db", str(db_path), "--quiet", "--prefer-status", "Good",
            "--file", str(FIXTURES_DIR / "updates.json"),
        ])

        # Both G63 updates hit row 15; the original row 3 is untouched
        assert registry.get_by_id(15).status == CanonicalStatus.AVERAGE
        assert registry.get_by_id(3).status == CanonicalStatus.POOR
