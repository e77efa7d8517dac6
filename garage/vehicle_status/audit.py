"""
Audit logging for status updates.

The batch processor calls these as side effects only; a failing audit
logger must never abort a batch (the processor guards every call).

FileAuditLogger keeps two append-only files in its log directory:
- status_updates.log   human-readable lines
- status_updates.json  one JSON entry per line, used for history queries
"""

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import BatchReport, ItemOutcome

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_batch_id() -> str:
    """Batch id like batch_lq3k9x2a_4f1c2e."""
    return f"batch_{_base36(int(time.time() * 1000))}_{uuid.uuid4().hex[:6]}"


def generate_audit_id() -> str:
    return f"audit_{_base36(int(time.time() * 1000))}_{uuid.uuid4().hex[:9]}"


class AuditLogger(ABC):
    """Abstract audit sink for batch runs."""

    @abstractmethod
    def log_batch_start(self, batch_id: str, total_items: int, source: str) -> None:
        pass

    @abstractmethod
    def log_status_update(self, outcome: ItemOutcome, batch_id: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def log_status_update_error(self, outcome: ItemOutcome, error: str, batch_id: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def log_batch_complete(self, report: BatchReport) -> None:
        pass


class LoggingAuditLogger(AuditLogger):
    """Audit trail through the standard logging module only."""

    def __init__(self, name: str = "garage.vehicle_status.audit"):
        self._log = logging.getLogger(name)

    def log_batch_start(self, batch_id: str, total_items: int, source: str) -> None:
        self._log.info(f"[AUDIT] Batch {batch_id} started: {total_items} vehicles (source: {source})")

    def log_status_update(self, outcome: ItemOutcome, batch_id: Optional[str] = None) -> None:
        self._log.info(
            f"[AUDIT] {outcome.display_name} ({outcome.vehicle_id}) "
            f"{_status_value(outcome.old_status)} -> {_status_value(outcome.new_status)}"
        )

    def log_status_update_error(self, outcome: ItemOutcome, error: str, batch_id: Optional[str] = None) -> None:
        self._log.warning(f"[AUDIT] Update failed for {outcome.display_name}: {error}")

    def log_batch_complete(self, report: BatchReport) -> None:
        counts = report.counts
        self._log.info(
            f"[AUDIT] Batch {report.batch_id} complete: "
            f"{counts['updated']} updated, {counts['unchanged']} unchanged, {counts['failed']} failed"
        )


def _status_value(status) -> Optional[str]:
    return status.value if status is not None else None


class FileAuditLogger(AuditLogger):
    """Append-only text and JSON-lines audit files with history queries."""

    LOG_FILENAME = "status_updates.log"
    JSON_FILENAME = "status_updates.json"

    def __init__(
        self,
        log_dir: str | Path = "logs",
        source: str = "BatchProcessor",
        operator: str = "system",
    ):
        self.log_dir = Path(log_dir)
        self.log_file = self.log_dir / self.LOG_FILENAME
        self.json_log_file = self.log_dir / self.JSON_FILENAME
        self.source = source
        self.operator = operator
        self.log_dir.mkdir(parents=True, exist_ok=True)

    # ----- entry construction -----

    def create_entry(self, event: str, **fields: Any) -> Dict[str, Any]:
        entry = {
            "audit_id": generate_audit_id(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "car_id": fields.get("car_id"),
            "car_name": fields.get("car_name"),
            "old_status": fields.get("old_status"),
            "new_status": fields.get("new_status"),
            "update_reason": fields.get("update_reason", "Manual update"),
            "source": fields.get("source") or self.source,
            "operator": fields.get("operator") or self.operator,
            "batch_id": fields.get("batch_id"),
            "success": fields.get("success", True),
            "error": fields.get("error"),
            "metadata": fields.get("metadata", {}),
        }
        return entry

    def log_batch_start(self, batch_id: str, total_items: int, source: str) -> None:
        entry = self.create_entry(
            "batch_start",
            update_reason="Batch update started",
            source=source,
            batch_id=batch_id,
            metadata={"total_vehicles": total_items},
        )
        self.write(entry)

    def log_status_update(self, outcome: ItemOutcome, batch_id: Optional[str] = None) -> None:
        entry = self.create_entry(
            "status_update",
            car_id=outcome.vehicle_id,
            car_name=outcome.vehicle_name,
            old_status=_status_value(outcome.old_status),
            new_status=_status_value(outcome.new_status),
            batch_id=batch_id,
            metadata={
                "match_type": outcome.match_type.value,
                "confidence": outcome.confidence,
                "validation_warnings": list(outcome.warnings),
            },
        )
        self.write(entry)

    def log_status_update_error(self, outcome: ItemOutcome, error: str, batch_id: Optional[str] = None) -> None:
        entry = self.create_entry(
            "status_update",
            car_id=outcome.vehicle_id,
            car_name=outcome.vehicle_name or outcome.raw_name,
            old_status=_status_value(outcome.old_status),
            new_status=_status_value(outcome.new_status) or outcome.raw_status,
            batch_id=batch_id,
            success=False,
            error=error,
            metadata={
                "error_kind": outcome.error_kind.value if outcome.error_kind else None,
                "suggestions": list(outcome.suggestions),
            },
        )
        self.write(entry)

    def log_batch_complete(self, report: BatchReport) -> None:
        counts = report.counts
        entry = self.create_entry(
            "batch_complete",
            update_reason="Batch update completed",
            batch_id=report.batch_id,
            success=report.success,
            metadata={
                "total_vehicles": counts["total"],
                "successful_updates": counts["updated"],
                "failed_updates": counts["failed"],
                "unchanged_vehicles": counts["unchanged"],
                "processing_time": report.duration.total_seconds(),
                "errors": [o.reason for o in report.failed],
            },
        )
        self.write(entry)

    # ----- storage -----

    def write(self, entry: Dict[str, Any]) -> None:
        """Append one entry to both log files."""
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(self.format_line(entry) + "\n")
        with open(self.json_log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    @staticmethod
    def format_line(entry: Dict[str, Any]) -> str:
        status = "SUCCESS" if entry.get("success") else "ERROR"
        details = []
        if entry.get("car_name"):
            details.append(f"Vehicle: {entry['car_name']} (ID: {entry.get('car_id')})")
        if entry.get("old_status") and entry.get("new_status"):
            details.append(f"Status: {entry['old_status']} -> {entry['new_status']}")
        if entry.get("batch_id"):
            details.append(f"Batch: {entry['batch_id']}")
        if entry.get("error"):
            details.append(f"Error: {entry['error']}")
        return f"[{entry['timestamp']}] {entry['event'].upper()} {status} {entry['audit_id']} - {' | '.join(details)}"

    def read_entries(self) -> List[Dict[str, Any]]:
        """All JSON entries, oldest first. Missing file means no history."""
        if not self.json_log_file.exists():
            return []
        entries = []
        with open(self.json_log_file, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries

    # ----- history queries -----

    def get_vehicle_history(self, car_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent entries for one vehicle, newest first."""
        entries = [e for e in self.read_entries() if e.get("car_id") == car_id]
        entries.sort(key=lambda e: e["timestamp"], reverse=True)
        return entries[:limit]

    def get_batch_history(self, batch_id: str) -> List[Dict[str, Any]]:
        """Every entry of one batch, oldest first."""
        entries = [e for e in self.read_entries() if e.get("batch_id") == batch_id]
        return sorted(entries, key=lambda e: e["timestamp"])

    def get_update_statistics(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """
        Aggregate status_update entries between ``start`` and ``end``.

        Returns:
            Dict with totals, transition counts, per-vehicle and per-operator counts
        """
        updates = [
            e for e in self.read_entries()
            if e.get("event") == "status_update" and start <= datetime.fromisoformat(e["timestamp"]) <= end
        ]

        stats = {
            "total_updates": len(updates),
            "successful_updates": sum(1 for e in updates if e.get("success")),
            "failed_updates": sum(1 for e in updates if not e.get("success")),
            "status_transitions": {},
            "vehicle_update_counts": {},
            "operator_activity": {},
            "time_range": {"start": start.isoformat(), "end": end.isoformat()},
        }
        for entry in updates:
            if entry.get("old_status") and entry.get("new_status"):
                transition = f"{entry['old_status']} -> {entry['new_status']}"
                stats["status_transitions"][transition] = stats["status_transitions"].get(transition, 0) + 1
            if entry.get("car_name"):
                name = entry["car_name"]
                stats["vehicle_update_counts"][name] = stats["vehicle_update_counts"].get(name, 0) + 1
            if entry.get("operator"):
                operator = entry["operator"]
                stats["operator_activity"][operator] = stats["operator_activity"].get(operator, 0) + 1
        return stats

    def archive_old_logs(self, days_to_keep: int = 90, now: Optional[datetime] = None) -> int:
        """
        Move JSON entries older than ``days_to_keep`` into an archive file.

        Returns:
            Number of archived entries
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=days_to_keep)
        entries = self.read_entries()
        recent = [e for e in entries if datetime.fromisoformat(e["timestamp"]) >= cutoff]
        archived = [e for e in entries if datetime.fromisoformat(e["timestamp"]) < cutoff]
        if not archived:
            return 0

        archive_file = self.log_dir / f"archived_{int(now.timestamp() * 1000)}.json"
        with open(archive_file, "w", encoding="utf-8") as f:
            f.write("".join(json.dumps(e, ensure_ascii=False) + "\n" for e in archived))
        with open(self.json_log_file, "w", encoding="utf-8") as f:
            f.write("".join(json.dumps(e, ensure_ascii=False) + "\n" for e in recent))

        logger.info(f"Archived {len(archived)} audit entries to {archive_file}")
        return len(archived)
