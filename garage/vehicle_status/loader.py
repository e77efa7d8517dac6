"""
Request Loader - Read status update lists from CSV, JSON or XLSX files.

Every row passes through UpdateRow before it becomes a StatusUpdateRequest.
Blank rows are skipped; a row with a name but no status (or the reverse) is
kept so the batch reports it as an input failure.
"""

import csv
import json
from pathlib import Path
from typing import Any, Optional

from openpyxl import load_workbook
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .models import StatusUpdateRequest

# Accepted header spellings (case-insensitive)
COLUMN_PATTERNS = {
    "vehicle_name": ["vehicle_name", "vehicle name", "vehicle", "car_name", "car name", "carName", "name"],
    "status": ["status", "condition", "new_status", "new status"],
}

# How many leading rows to scan for a header in a spreadsheet
HEADER_SCAN_ROWS = 10


class UpdateRow(BaseModel):
    """One row of a request file."""
    model_config = ConfigDict(str_strip_whitespace=True)

    vehicle_name: str = ""
    status: str = ""

    @field_validator("vehicle_name", "status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @property
    def is_blank(self) -> bool:
        return not self.vehicle_name and not self.status

    def to_request(self) -> StatusUpdateRequest:
        return StatusUpdateRequest(vehicle_name=self.vehicle_name, status=self.status)


def _find_column_index(headers: list, patterns: list[str]) -> Optional[int]:
    """Find column index matching any of the patterns (case-insensitive)."""
    for i, header in enumerate(headers):
        if header is None:
            continue
        header_lower = str(header).lower().strip()
        for pattern in patterns:
            if pattern.lower() == header_lower:
                return i
    return None


def _map_columns(headers: list) -> Optional[dict[str, int]]:
    col_idx = {field: _find_column_index(headers, patterns) for field, patterns in COLUMN_PATTERNS.items()}
    if any(idx is None for idx in col_idx.values()):
        return None
    return col_idx


def _rows_to_requests(rows: list[dict], path: Path) -> list[StatusUpdateRequest]:
    requests = []
    for row_num, raw in enumerate(rows, start=1):
        try:
            row = UpdateRow.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid row {row_num} in {path}: {e}") from e
        if row.is_blank:
            continue
        requests.append(row.to_request())
    return requests


def _normalize_record(record: dict) -> dict:
    """Map a JSON/CSV record with any accepted header spelling onto UpdateRow fields."""
    keys = list(record.keys())
    mapped = {}
    for field, patterns in COLUMN_PATTERNS.items():
        idx = _find_column_index(keys, patterns)
        mapped[field] = record[keys[idx]] if idx is not None else None
    return mapped


def load_csv(path: Path) -> list[StatusUpdateRequest]:
    """Load requests from a CSV file with a header row."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or _map_columns(list(reader.fieldnames)) is None:
            raise ValueError(f"Missing vehicle name / status columns in {path}")
        rows = [_normalize_record(record) for record in reader]
    return _rows_to_requests(rows, path)


def load_json(path: Path) -> list[StatusUpdateRequest]:
    """
    Load requests from JSON.

    Accepts a list of objects, a list of [name, status] pairs, or an object
    with an ``updates`` list.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("updates")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of updates in {path}")

    rows = []
    for item in data:
        if isinstance(item, dict):
            rows.append(_normalize_record(item))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            rows.append({"vehicle_name": item[0], "status": item[1]})
        else:
            raise ValueError(f"Unsupported update entry in {path}: {item!r}")
    return _rows_to_requests(rows, path)


def load_xlsx(path: Path) -> list[StatusUpdateRequest]:
    """Load requests from the first sheet of a workbook; the header row is auto-detected."""
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        header_row = None
        col_idx = None
        for row_num, row in enumerate(sheet.iter_rows(max_row=HEADER_SCAN_ROWS, values_only=True), start=1):
            col_idx = _map_columns(list(row))
            if col_idx is not None:
                header_row = row_num
                break

        if header_row is None:
            raise ValueError(f"Missing vehicle name / status columns in {path}")

        rows = []
        for row in sheet.iter_rows(min_row=header_row + 1, values_only=True):
            def get_val(field):
                idx = col_idx[field]
                return row[idx] if idx < len(row) else None

            rows.append({"vehicle_name": get_val("vehicle_name"), "status": get_val("status")})
    finally:
        workbook.close()

    return _rows_to_requests(rows, path)


LOADERS = {
    ".csv": load_csv,
    ".json": load_json,
    ".xlsx": load_xlsx,
}


def load_requests(file_path: str | Path) -> list[StatusUpdateRequest]:
    """
    Load status update requests, choosing the parser by file suffix.

    Raises:
        FileNotFoundError: Path does not exist
        ValueError: Unsupported suffix or malformed content
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Request file not found: {path}")

    loader = LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported request file type: {path.suffix} (expected {', '.join(LOADERS)})")
    return loader(path)
