"""
Report Generator - Format batch results for human consumption.

Produces console output, CSV and XLSX exports for batch reports, plus the
garage-state and preflight summaries shown before a run.
"""

import csv
import io
from datetime import datetime
from io import BytesIO
from typing import TextIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .batch import BatchPreflight
from .models import BatchReport, CanonicalStatus, ItemOutcome, MatchType, OutcomeKind, VehicleRecord

REPORT_COLUMNS = [
    "index",
    "outcome",
    "vehicle_name",
    "vehicle_id",
    "requested_name",
    "requested_status",
    "old_status",
    "new_status",
    "match_type",
    "confidence",
    "error_kind",
    "reason",
    "suggestions",
    "warnings",
    "recommendations",
]


def _status_text(status) -> str:
    return status.value if status is not None else ""


def format_garage_state(vehicles: list[VehicleRecord], statistics: dict) -> str:
    """Current registry contents grouped by status, best condition first."""
    lines = ["", "GARAGE STATE", "=" * 70]
    if not vehicles:
        lines.append("Garage is empty.")
        return "\n".join(lines)

    for status in sorted(CanonicalStatus, key=lambda s: s.rank, reverse=True):
        group = [v for v in vehicles if v.status == status]
        if not group:
            continue
        lines.append(f"\n{status.value.upper()} ({len(group)})")
        lines.append("-" * 70)
        for v in group:
            maintained = v.last_maintenance.strftime("%Y-%m-%d") if v.last_maintenance else "never"
            lines.append(f"  {v.vehicle_id:>4}  {v.name:<40} last maintenance: {maintained}")

    lines.append("\n" + "=" * 70)
    lines.append(
        f"Total: {statistics.get('total', 0)}  "
        + "  ".join(f"{s.value}: {statistics.get(s.value, 0)}" for s in CanonicalStatus)
    )
    return "\n".join(lines)


def format_preflight(preflight: BatchPreflight) -> str:
    """Dry-run summary: distribution, repeats, fuzzy matches and item problems."""
    lines = ["", "PREFLIGHT", "=" * 70]
    lines.append(f"  Items:   {preflight.total}")
    lines.append(f"  Valid:   {preflight.valid_count}")
    lines.append(f"  Invalid: {preflight.invalid_count}")

    if preflight.status_distribution:
        lines.append("\nREQUESTED STATUSES")
        lines.append("-" * 70)
        for status, count in sorted(preflight.status_distribution.items()):
            lines.append(f"  {status:<10} {count}")

    if preflight.repeated_names:
        lines.append(f"\nREPEATED NAMES ({len(preflight.repeated_names)}) - later entries win")
        lines.append("-" * 70)
        for name in preflight.repeated_names:
            lines.append(f"  {name}")

    approximate = [m for m in preflight.matched if m[2] == MatchType.FUZZY]
    if approximate:
        lines.append(f"\nAPPROXIMATE MATCHES ({len(approximate)})")
        lines.append("-" * 70)
        for query, matched_name, _, confidence in approximate:
            lines.append(f"  {query:<30} -> {matched_name} ({confidence:.0%})")

    problems = [(i, v) for i, v in enumerate(preflight.validations) if v.errors]
    if problems:
        lines.append(f"\nPROBLEMS ({len(problems)})")
        lines.append("-" * 70)
        for index, validation in problems:
            for error in validation.errors:
                lines.append(f"  #{index + 1}: {error}")

    lines.append("=" * 70)
    return "\n".join(lines)


def _outcome_label(outcome: ItemOutcome) -> str:
    # Failed items show what the user typed
    if outcome.kind != OutcomeKind.FAILED:
        return outcome.display_name
    if outcome.vehicle_name and outcome.vehicle_name != outcome.raw_name:
        return f"{outcome.raw_name} (-> {outcome.vehicle_name})"
    return outcome.raw_name


def _format_outcome(outcome: ItemOutcome) -> list[str]:
    label = _outcome_label(outcome)
    lines = []
    if outcome.old_status is not None and outcome.new_status is not None and outcome.old_status != outcome.new_status:
        lines.append(
            f"  {label:<35} {outcome.old_status.value} -> {outcome.new_status.value}"
        )
    elif outcome.reason:
        lines.append(f"  {label:<35} {outcome.reason}")
    else:
        lines.append(f"  {label}")
    if outcome.suggestions:
        lines.append(f"      did you mean: {', '.join(outcome.suggestions)}")
    for warning in outcome.warnings:
        lines.append(f"      ! {warning}")
    return lines


def format_console(report: BatchReport, show_unchanged: bool = True) -> str:
    """
    Format a batch report for console display.

    Args:
        report: Batch report to format
        show_unchanged: Whether to list unchanged items (default True)

    Returns:
        Formatted string for console output
    """
    lines = ["", f"BATCH {report.batch_id}", "=" * 70]

    if report.updated:
        lines.append(f"\nUPDATED ({len(report.updated)})")
        lines.append("-" * 70)
        for outcome in report.updated:
            lines.extend(_format_outcome(outcome))

    if report.unchanged and show_unchanged:
        lines.append(f"\nUNCHANGED ({len(report.unchanged)})")
        lines.append("-" * 70)
        for outcome in report.unchanged:
            lines.extend(_format_outcome(outcome))

    if report.failed:
        lines.append(f"\nFAILED ({len(report.failed)})")
        lines.append("-" * 70)
        for outcome in report.failed:
            lines.extend(_format_outcome(outcome))

    counts = report.counts
    lines.append("\n" + "=" * 70)
    lines.append("SUMMARY")
    lines.append(f"  Attempted:  {counts['total']} of {counts['requested']}")
    lines.append(f"  Updated:    {counts['updated']}")
    lines.append(f"  Unchanged:  {counts['unchanged']}")
    lines.append(f"  Failed:     {counts['failed']}")
    lines.append(f"  Duration:   {report.duration.total_seconds():.2f}s")
    lines.append("=" * 70)

    return "\n".join(lines)


def _outcome_row(outcome: ItemOutcome) -> list:
    return [
        outcome.index + 1,
        outcome.kind.value,
        outcome.vehicle_name or "",
        outcome.vehicle_id if outcome.vehicle_id is not None else "",
        outcome.raw_name,
        outcome.raw_status,
        _status_text(outcome.old_status),
        _status_text(outcome.new_status),
        outcome.match_type.value,
        f"{outcome.confidence:.2f}",
        outcome.error_kind.value if outcome.error_kind else "",
        outcome.reason,
        "; ".join(outcome.suggestions),
        "; ".join(outcome.warnings),
        "; ".join(outcome.recommendations),
    ]


def export_csv(report: BatchReport, output: TextIO | None = None) -> str:
    """
    Export a batch report to CSV, one row per attempted item in input order.

    Args:
        report: Batch report to export
        output: Optional file handle to write to

    Returns:
        CSV string (also writes to output if provided)
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(REPORT_COLUMNS)
    for outcome in report.outcomes():
        writer.writerow(_outcome_row(outcome))

    csv_content = buffer.getvalue()

    if output:
        output.write(csv_content)

    return csv_content


def export_xlsx(report: BatchReport) -> BytesIO:
    """
    Export a batch report to a workbook with an item sheet and a summary sheet.

    Returns:
        BytesIO buffer containing the Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Items"

    ws.append(REPORT_COLUMNS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for outcome in report.outcomes():
        ws.append(_outcome_row(outcome))

    column_widths = [8, 12, 28, 10, 28, 16, 12, 12, 18, 12, 12, 40, 30, 40, 30]
    for col_idx, width in enumerate(column_widths, 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    summary = wb.create_sheet("Summary")
    summary.append(["batch_id", report.batch_id])
    summary.append(["started_at", report.started_at.isoformat()])
    summary.append(["finished_at", report.finished_at.isoformat() if report.finished_at else ""])
    for key, value in report.counts.items():
        summary.append([key, value])
    for cell in summary["A"]:
        cell.font = Font(bold=True)

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def generate_report_filename(batch_id: str | None = None, extension: str = "csv") -> str:
    """
    Generate a filename for the report.

    Args:
        batch_id: Optional batch id to include
        extension: File extension (default "csv")

    Returns:
        Filename like "vehicle_status_batch_lq3k9x2a_4f1c2e_2026-01-08.csv"
    """
    date_str = datetime.now().strftime("%Y-%m-%d")
    if batch_id:
        return f"vehicle_status_{batch_id}_{date_str}.{extension}"
    return f"vehicle_status_{date_str}.{extension}"
