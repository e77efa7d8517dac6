"""
Tests for loading update lists from CSV, JSON and XLSX files.

Run with: pytest garage/vehicle_status/tests/test_loader.py -v
"""

import json
from pathlib import Path

import pytest
from openpyxl import Workbook

from garage.vehicle_status.loader import UpdateRow, load_requests
from garage.vehicle_status.models import StatusUpdateRequest


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestCsv:

    def test_fixture(self):
        requests = load_requests(FIXTURES_DIR / "updates.csv")
        assert requests[0] == StatusUpdateRequest("BMW 4-Series", "good")
        assert len(requests) == 4

    def test_alternate_headers_and_blank_rows(self, tmp_path):
        path = tmp_path / "updates.csv"
        path.write_text("Car Name,Condition\n  Audi RS6 , average \n,\nSparrow,\n", encoding="utf-8")
        requests = load_requests(path)
        assert requests == [
            StatusUpdateRequest("Audi RS6", "average"),
            StatusUpdateRequest("Sparrow", ""),
        ]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "updates.csv"
        path.write_text("model,colour\nAudi RS6,red\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Missing"):
            load_requests(path)


class TestJson:

    def test_fixture(self):
        requests = load_requests(FIXTURES_DIR / "updates.json")
        assert StatusUpdateRequest("Mercedes G63AMG", "average") in requests

    def test_pairs(self, tmp_path):
        path = tmp_path / "updates.json"
        path.write_text(json.dumps([["Audi RS6", "good"], ["NRG-500", "bad"]]), encoding="utf-8")
        assert load_requests(path) == [
            StatusUpdateRequest("Audi RS6", "good"),
            StatusUpdateRequest("NRG-500", "bad"),
        ]

    def test_numbers_become_text(self, tmp_path):
        path = tmp_path / "updates.json"
        path.write_text(json.dumps([{"name": 911, "status": "good"}]), encoding="utf-8")
        assert load_requests(path) == [StatusUpdateRequest("911", "good")]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "updates.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_requests(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "updates.json"
        path.write_text(json.dumps({"vehicles": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_requests(path)


class TestXlsx:

    def test_header_below_title(self, tmp_path):
        path = tmp_path / "updates.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.append(["Garage status updates"])
        ws.append([])
        ws.append(["Vehicle", "Status"])
        ws.append(["Porsche 911", "Good"])
        ws.append([None, None])
        ws.append(["Ducati Ducnaked", "poor"])
        wb.save(path)

        assert load_requests(path) == [
            StatusUpdateRequest("Porsche 911", "Good"),
            StatusUpdateRequest("Ducati Ducnaked", "poor"),
        ]

    def test_no_header(self, tmp_path):
        path = tmp_path / "updates.xlsx"
        wb = Workbook()
        wb.active.append(["just", "data"])
        wb.save(path)
        with pytest.raises(ValueError):
            load_requests(path)


class TestLoadRequests:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_requests(tmp_path / "nope.csv")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "updates.txt"
        path.write_text("Audi RS6 good", encoding="utf-8")
        with pytest.raises(ValueError, match="Unsupported"):
            load_requests(path)

    def test_update_row_strips(self):
        row = UpdateRow(vehicle_name="  Sparrow ", status=None)
        assert row.vehicle_name == "Sparrow"
        assert row.status == ""
        assert not row.is_blank
