"""
SQLite-backed vehicle registry - the garage table.

One connection per operation via get_db(); commit on success, rollback on
error. sqlite3 errors surface as RegistryError so the batch processor can
record them per item.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .exceptions import RegistryError
from .models import CanonicalStatus, VehicleRecord, as_utc
from .registry import VehicleRegistry, empty_statistics

logger = logging.getLogger(__name__)

# Default garage contents
DEFAULT_VEHICLES = [
    ("BMW 4-Series", CanonicalStatus.GOOD),
    ("Audi RS6", CanonicalStatus.AVERAGE),
    ("Mercedes G63AMG", CanonicalStatus.POOR),
    ("Tesla Model 3", CanonicalStatus.GOOD),
    ("Chevrolet Camaro", CanonicalStatus.AVERAGE),
    ("Rolls-Royce Phantom", CanonicalStatus.GOOD),
    ("Ferrari J50", CanonicalStatus.POOR),
    ("Porsche 911", CanonicalStatus.AVERAGE),
    ("Sparrow", CanonicalStatus.GOOD),
    ("Ducati Ducnaked", CanonicalStatus.POOR),
    ("NRG-500", CanonicalStatus.AVERAGE),
    ("Mercedes-Benz C63S", CanonicalStatus.GOOD),
    ("BMW M3 Touring", CanonicalStatus.AVERAGE),
    ("Lamborghini Huracan 2022", CanonicalStatus.POOR),
]

_STATUS_CHECK = ", ".join(f"'{s.value}'" for s in CanonicalStatus)

SCHEMA = f"""
    -- Garage table: one row per vehicle
    CREATE TABLE IF NOT EXISTS garage (
        car_id INTEGER PRIMARY KEY AUTOINCREMENT,
        car_name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Good' CHECK (status IN ({_STATUS_CHECK})),
        last_maintenance TEXT,
        created_at TEXT,
        updated_at TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_garage_status ON garage(status);
    CREATE INDEX IF NOT EXISTS idx_garage_name ON garage(car_name);
"""


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))


def _to_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def row_to_record(row: sqlite3.Row) -> VehicleRecord:
    """Convert a garage row to a VehicleRecord."""
    return VehicleRecord(
        vehicle_id=row["car_id"],
        name=row["car_name"],
        status=CanonicalStatus(row["status"]),
        last_maintenance=_parse_timestamp(row["last_maintenance"]),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


class SqliteVehicleRegistry(VehicleRegistry):
    """Registry over a SQLite database file (or ":memory:" for one connection)."""

    def __init__(self, db_path: str | Path, clock: Optional[Callable[[], datetime]] = None):
        self.db_path = str(db_path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # An in-memory database only lives as long as its connection
        self._shared_conn: Optional[sqlite3.Connection] = None
        if self.db_path == ":memory:":
            self._shared_conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._shared_conn.row_factory = sqlite3.Row

    @contextmanager
    def get_db(self):
        """Context manager for database connections."""
        if self._shared_conn is not None:
            conn = self._shared_conn
        else:
            try:
                conn = sqlite3.connect(self.db_path)
            except sqlite3.Error as e:
                raise RegistryError(f"Cannot open registry {self.db_path}: {e}") from e
            conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RegistryError(f"Registry error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            if self._shared_conn is None:
                conn.close()

    def init_db(self):
        """Create the garage table if it is missing."""
        if self._shared_conn is None:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self.get_db() as conn:
            conn.executescript(SCHEMA)

    def seed_vehicles(self, vehicles=None) -> int:
        """
        Insert the default garage when the table is empty.

        Returns:
            Number of rows inserted (0 if the garage already had vehicles)
        """
        vehicles = vehicles if vehicles is not None else DEFAULT_VEHICLES
        now = _to_timestamp(self._clock())
        with self.get_db() as conn:
            count = conn.execute("SELECT COUNT(*) AS n FROM garage").fetchone()["n"]
            if count:
                return 0
            conn.executemany(
                "INSERT INTO garage (car_name, status, last_maintenance, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                [(name, CanonicalStatus(status).value, None, now, now) for name, status in vehicles],
            )
        logger.info(f"Seeded garage with {len(vehicles)} vehicles")
        return len(vehicles)

    def close(self):
        if self._shared_conn is not None:
            self._shared_conn.close()
            self._shared_conn = None

    def get_all(self) -> list[VehicleRecord]:
        with self.get_db() as conn:
            rows = conn.execute("SELECT * FROM garage ORDER BY car_id ASC").fetchall()
            return [row_to_record(row) for row in rows]

    def get_by_id(self, vehicle_id: int) -> Optional[VehicleRecord]:
        with self.get_db() as conn:
            row = conn.execute("SELECT * FROM garage WHERE car_id = ?", (vehicle_id,)).fetchone()
            return row_to_record(row) if row else None

    def find_by_exact_name(self, name: str) -> Optional[VehicleRecord]:
        # SQLite TRIM() only strips spaces, so compare in Python
        target = name.strip()
        return next((r for r in self.get_all() if r.name.strip() == target), None)

    def find_by_case_insensitive_name(self, name: str) -> Optional[VehicleRecord]:
        # SQLite LOWER() only folds ASCII, so compare in Python
        target = name.strip().lower()
        return next((r for r in self.get_all() if r.name.strip().lower() == target), None)

    def update_status(self, vehicle_id: int, status: CanonicalStatus) -> VehicleRecord:
        now = _to_timestamp(self._clock())
        with self.get_db() as conn:
            result = conn.execute(
                "UPDATE garage SET status = ?, last_maintenance = ?, updated_at = ? WHERE car_id = ?",
                (CanonicalStatus(status).value, now, now, vehicle_id)
            )
            if result.rowcount == 0:
                raise RegistryError(f"Vehicle with id {vehicle_id} not found")
            row = conn.execute("SELECT * FROM garage WHERE car_id = ?", (vehicle_id,)).fetchone()
            return row_to_record(row)

    def add_vehicle(
        self,
        name: str,
        status: CanonicalStatus = CanonicalStatus.GOOD,
        last_maintenance: Optional[datetime] = None,
    ) -> VehicleRecord:
        now = _to_timestamp(self._clock())
        with self.get_db() as conn:
            cursor = conn.execute(
                "INSERT INTO garage (car_name, status, last_maintenance, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (name, CanonicalStatus(status).value, _to_timestamp(last_maintenance), now, now)
            )
            row = conn.execute("SELECT * FROM garage WHERE car_id = ?", (cursor.lastrowid,)).fetchone()
            return row_to_record(row)

    def get_statistics(self) -> dict:
        stats = empty_statistics()
        with self.get_db() as conn:
            rows = conn.execute("SELECT status, COUNT(*) AS count FROM garage GROUP BY status").fetchall()
            for row in rows:
                stats[row["status"]] = row["count"]
                stats["total"] += row["count"]
        return stats
