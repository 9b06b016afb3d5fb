#!/usr/bin/env python3
"""
Compute a payslip from a JSON export of store documents.

Usage:
    python scripts/payslip.py input.json
    python scripts/payslip.py input.json --as-of 2024-03-20 --csv slip.csv
    python scripts/payslip.py input.json --xlsx slip.xlsx --json

The input file holds the raw documents:

    {
      "profile": {"id": "u1", "monthlyBaseSalary": 300000, "hireDate": "2019-04-01"},
      "timeEntries": [{"date": "2024-03-04", "duration": 735, "overtimeDuration": 240,
                       "shiftId": "morningB", "startTime": "08:00", "endTime": "20:15"}],
      "settings": {"overtimeRates": {"tier1": 1.2}},
      "attendanceOverrides": [{"id": "2024-03-05", "status": "sick_leave"}],
      "shifts": [{"id": "morningB", "startTime": "08:00", "endTime": "16:15"}]
    }

The "shifts" list is optional; its entries replace configured shifts by id.

Exit codes: 0 computed, 2 insufficient profile data, 1 invalid input.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute a payslip from exported store documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "input",
        type=Path,
        help="JSON file with profile, timeEntries, settings, attendanceOverrides.",
    )
    parser.add_argument(
        "--as-of",
        type=lambda s: date.fromisoformat(s),
        default=None,
        help="Date to compute as of (YYYY-MM-DD). Default: today.",
    )
    parser.add_argument(
        "--config",
        default="default",
        help="Payroll rule set name (default: default).",
    )
    parser.add_argument("--csv", type=Path, default=None, help="Write payslip lines to CSV.")
    parser.add_argument("--xlsx", type=Path, default=None, help="Write payslip to XLSX.")
    parser.add_argument(
        "--entries-csv",
        type=Path,
        default=None,
        help="Write the cycle's time entries to CSV.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full breakdown as JSON instead of the summary.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit structured logs to stderr.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    source_path = args.input.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1

    # Lazy imports so we fail fast on args first
    from payroll_config import get_active_config
    from payroll_kernel.exceptions import PayrollKernelError
    from payroll_kernel.logging_config import configure_logging
    from payroll_modules.payroll.documents import parse_time_entries
    from payroll_modules.payroll.export import (
        format_amount,
        write_payslip_csv,
        write_payslip_xlsx,
        write_time_entries_csv,
    )
    from payroll_modules.payroll.service import PayrollService

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        with open(source_path, encoding="utf-8") as f:
            documents = json.load(f)
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON in {source_path}: {e}", file=sys.stderr)
        return 1
    if not isinstance(documents, dict):
        print("ERROR: Input must be a JSON object", file=sys.stderr)
        return 1

    try:
        service = PayrollService(rules=get_active_config(args.config))
        result = service.calculate_payslip_from_documents(
            profile=documents.get("profile") or {},
            time_entries=documents.get("timeEntries") or [],
            settings=documents.get("settings"),
            overrides=documents.get("attendanceOverrides") or [],
            shifts=documents.get("shifts"),
            as_of=args.as_of,
        )
    except PayrollKernelError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1

    if not result.is_computed:
        print(
            "Cannot compute payslip: missing " + ", ".join(result.missing_fields),
            file=sys.stderr,
        )
        return 2

    breakdown = result.breakdown
    if args.json:
        print(json.dumps(breakdown.to_dict(), indent=2))
    else:
        currency = breakdown.currency
        print(f"Cycle:        {breakdown.cycle.start} .. {breakdown.cycle.end}")
        print(f"Days worked:  {breakdown.compensation.attendance.days_worked}"
              f" / {breakdown.compensation.attendance.workable_days}")
        print(f"Overtime:     {format_amount(breakdown.overtime.total_payout)} {currency}")
        print(f"Gross:        {format_amount(breakdown.gross)} {currency}")
        print(f"Deductions:   {format_amount(breakdown.total_deductions)} {currency}")
        print(f"Net pay:      {format_amount(breakdown.net_pay)} {currency}")
        print(f"Leave:        {breakdown.leave.total_days} days")

    if args.csv:
        with open(args.csv, "w", newline="", encoding="utf-8") as f:
            write_payslip_csv(breakdown, f)
        print(f"Wrote {args.csv}", file=sys.stderr)
    if args.entries_csv:
        entries = parse_time_entries(documents.get("timeEntries") or [])
        with open(args.entries_csv, "w", newline="", encoding="utf-8") as f:
            write_time_entries_csv(
                (e for e in entries if breakdown.cycle.contains(e.work_date)), f,
            )
        print(f"Wrote {args.entries_csv}", file=sys.stderr)
    if args.xlsx:
        write_payslip_xlsx(breakdown, args.xlsx)
        print(f"Wrote {args.xlsx}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
