"""
CLI entry point for the vehicle status batch updater.

Usage:
    python -m garage.vehicle_status --seed
    python -m garage.vehicle_status --file updates.csv --db data/garage.db
    python -m garage.vehicle_status --file updates.xlsx --prefer-status Good --output-csv report.csv
    python -m garage.vehicle_status --file updates.json --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path

from .audit import FileAuditLogger, LoggingAuditLogger
from .batch import BatchProcessor, default_requests
from .config import load_config
from .exceptions import VehicleStatusError
from .loader import load_requests
from .models import CanonicalStatus, DuplicateCriteria
from .report import (
    export_csv,
    export_xlsx,
    format_console,
    format_garage_state,
    format_preflight,
)
from .sqlite_registry import SqliteVehicleRegistry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vehicle_status",
        description="Vehicle Status Updater - Apply free-text status updates to the garage registry",
    )

    parser.add_argument(
        "--file",
        metavar="FILE",
        help="Update list (CSV, JSON or XLSX); default: built-in list",
    )

    parser.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="Config file (default: module's vehicle_status_config.json)",
    )

    parser.add_argument(
        "--db",
        metavar="FILE",
        help="SQLite registry path (overrides config storage.db_path)",
    )

    parser.add_argument(
        "--seed",
        action="store_true",
        help="Create the garage table and insert default vehicles if empty",
    )

    parser.add_argument(
        "--audit",
        choices=["log", "file"],
        default="log",
        help="Audit sink: standard logging (default) or files in storage.audit_log_dir",
    )

    parser.add_argument(
        "--prefer-status",
        choices=CanonicalStatus.values(),
        help="Among duplicate vehicles, prefer the one holding this status",
    )

    parser.add_argument(
        "--prefer-older",
        action="store_true",
        help="Among duplicate vehicles, prefer the lowest id",
    )

    parser.add_argument(
        "--prefer-recent-maintenance",
        action="store_true",
        help="Among duplicate vehicles, prefer the most recently maintained",
    )

    parser.add_argument(
        "--max-items",
        type=int,
        metavar="N",
        help="Stop after N items",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort if any item fails preflight validation",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run preflight only, write nothing",
    )

    parser.add_argument(
        "--output-csv",
        metavar="FILE",
        help="Output CSV file path",
    )

    parser.add_argument(
        "--output-xlsx",
        metavar="FILE",
        help="Output XLSX file path",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress console output",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log at INFO level",
    )

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)

        if args.file:
            requests = load_requests(args.file)
            source = Path(args.file).name
        else:
            requests = default_requests()
            source = "default list"

        registry = SqliteVehicleRegistry(args.db or config.storage.db_path)
        registry.init_db()
        if args.seed:
            seeded = registry.seed_vehicles()
            if seeded and not args.quiet:
                print(f"Seeded garage with {seeded} vehicles")

        audit = FileAuditLogger(config.storage.audit_log_dir) if args.audit == "file" else LoggingAuditLogger()
        criteria = DuplicateCriteria(
            preferred_status=CanonicalStatus(args.prefer_status) if args.prefer_status else None,
            prefer_older=args.prefer_older,
            prefer_recent_maintenance=args.prefer_recent_maintenance,
        )
        processor = BatchProcessor(registry, audit=audit, config=config, duplicate_criteria=criteria)

        if not args.quiet:
            print(format_garage_state(registry.get_all(), registry.get_statistics()))

        preflight = processor.preflight(requests)
        if not args.quiet:
            print(format_preflight(preflight))

        if not preflight.validations:
            print("Error: No updates to apply", file=sys.stderr)
            sys.exit(1)
        if preflight.valid_count == 0:
            print("Error: No valid updates in the batch", file=sys.stderr)
            sys.exit(1)
        if args.strict and not preflight.is_valid:
            print(f"Error: {preflight.invalid_count} update(s) failed validation (--strict)", file=sys.stderr)
            sys.exit(1)

        if args.dry_run:
            return

        report = processor.process_batch(requests, max_items=args.max_items, source=source)

        if not args.quiet:
            print(format_console(report))
            print()
            print(format_garage_state(registry.get_all(), registry.get_statistics()))

        if args.output_csv:
            output_path = Path(args.output_csv)
            with open(output_path, "w", newline="") as f:
                export_csv(report, output=f)
            if not args.quiet:
                print(f"\nCSV exported to: {output_path}")

        if args.output_xlsx:
            output_path = Path(args.output_xlsx)
            output_path.write_bytes(export_xlsx(report).getvalue())
            if not args.quiet:
                print(f"\nXLSX exported to: {output_path}")

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except VehicleStatusError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
