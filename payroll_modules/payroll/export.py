"""
Payslip Export (``payroll_modules.payroll.export``).

Responsibility
--------------
Render a ``PayrollBreakdown`` into payslip lines, CSV and XLSX, and format
amounts for display (rounded to the nearest 100, French digit grouping).

Architecture position
---------------------
**Modules layer** -- presentation helpers.  Reads breakdowns, never
computes payroll figures.

Failure modes
-------------
* ``ImportError`` with an install hint if openpyxl is unavailable.
* I/O errors from the target path propagate.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import IO

from payroll_engines.overtime import OvertimeBucket
from payroll_kernel.domain.records import TimeEntry
from payroll_kernel.logging_config import get_logger
from payroll_modules.payroll.models import PayrollBreakdown

logger = get_logger("modules.payroll.export")

# fr-FR groups thousands with a narrow no-break space
_GROUP_SEPARATOR = "\u202f"
_HUNDRED = Decimal("100")

PAYSLIP_COLUMNS = ("label", "base", "rate", "gain", "deduction")
TIME_ENTRY_COLUMNS = (
    "date", "shift", "start", "end", "duration_minutes",
    "overtime_minutes", "public_holiday", "location",
)

_OVERTIME_LABELS = {
    OvertimeBucket.TIER1: "Overtime tier 1",
    OvertimeBucket.TIER2: "Overtime tier 2",
    OvertimeBucket.NIGHT: "Overtime night",
    OvertimeBucket.SUNDAY: "Overtime Sunday",
    OvertimeBucket.HOLIDAY: "Overtime public holiday",
}


def format_amount(amount: Decimal) -> str:
    """Round to the nearest 100 and group thousands the French way."""
    rounded = (amount / _HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * _HUNDRED
    return f"{int(rounded):,}".replace(",", _GROUP_SEPARATOR)


@dataclass(frozen=True)
class PayslipLine:
    """One printed payslip row."""

    label: str
    base: Decimal | None = None
    rate: Decimal | None = None
    gain: Decimal | None = None
    deduction: Decimal | None = None


def payslip_lines(breakdown: PayrollBreakdown) -> tuple[PayslipLine, ...]:
    """Payslip rows in print order: earnings, gross, deductions, net."""
    comp = breakdown.compensation
    ded = breakdown.deductions
    earnings_base = comp.total_earnings
    taxable = earnings_base - comp.transport_allowance
    pension_base = taxable - comp.housing_allowance

    lines = [
        PayslipLine(
            "Base salary",
            base=comp.base_salary,
            rate=Decimal(comp.attendance.days_worked),
            gain=comp.prorated_base,
        ),
    ]
    if comp.seniority_bonus > 0:
        lines.append(PayslipLine(
            "Seniority bonus", base=comp.base_salary,
            rate=Decimal(comp.seniority_years), gain=comp.seniority_bonus,
        ))
    for line in breakdown.overtime.lines:
        if line.minutes:
            lines.append(PayslipLine(
                _OVERTIME_LABELS[line.bucket],
                base=Decimal(line.minutes) / 60,
                rate=line.rate,
                gain=line.payout,
            ))
    lines.extend((
        PayslipLine("Attendance bonus", gain=comp.attendance_bonus),
        PayslipLine("Performance bonus", gain=comp.performance_bonus),
        PayslipLine("Transport allowance", gain=comp.transport_allowance),
        PayslipLine("Housing allowance", gain=comp.housing_allowance),
    ))
    if comp.absence_penalty > 0:
        lines.append(PayslipLine(
            "Absence penalty",
            base=Decimal(comp.attendance.unjustified_absences),
            deduction=comp.absence_penalty,
        ))
    lines.extend((
        PayslipLine("Gross salary", gain=breakdown.gross),
        PayslipLine("Pension", base=pension_base, deduction=ded.pension),
        PayslipLine("Local tax", base=taxable, deduction=ded.local_tax),
        PayslipLine("Income tax", deduction=ded.income_tax),
        PayslipLine("Income tax surcharge", base=ded.income_tax, deduction=ded.income_tax_surcharge),
        PayslipLine("Broadcast fee", deduction=ded.broadcast_fee),
        PayslipLine("Union dues", base=comp.prorated_base, deduction=ded.union_dues),
        PayslipLine("Communal tax", deduction=ded.communal_tax),
        PayslipLine("Total deductions", deduction=breakdown.total_deductions),
        PayslipLine("Net pay", gain=breakdown.net_pay),
    ))
    return tuple(lines)


def _cell(value: Decimal | None) -> str:
    return "" if value is None else str(value)


def write_payslip_csv(breakdown: PayrollBreakdown, stream: IO[str]) -> int:
    """Write payslip rows as CSV; returns the number of data rows."""
    writer = csv.writer(stream)
    writer.writerow(PAYSLIP_COLUMNS)
    lines = payslip_lines(breakdown)
    for line in lines:
        writer.writerow((
            line.label, _cell(line.base), _cell(line.rate),
            _cell(line.gain), _cell(line.deduction),
        ))
    logger.info(
        "payslip_csv_written",
        extra={"cycle_id": breakdown.cycle.cycle_id, "rows": len(lines)},
    )
    return len(lines)


def write_time_entries_csv(entries: Iterable[TimeEntry], stream: IO[str]) -> int:
    """Write time entries as CSV in date order; returns the row count."""
    writer = csv.writer(stream)
    writer.writerow(TIME_ENTRY_COLUMNS)
    count = 0
    for entry in sorted(entries, key=lambda e: e.work_date):
        writer.writerow((
            entry.work_date.isoformat(),
            entry.shift_id,
            entry.start_time.strftime("%H:%M") if entry.start_time else "",
            entry.end_time.strftime("%H:%M") if entry.end_time else "",
            entry.duration_minutes,
            entry.overtime_minutes,
            "yes" if entry.is_public_holiday else "no",
            entry.location or "",
        ))
        count += 1
    return count


def write_payslip_xlsx(breakdown: PayrollBreakdown, path: Path) -> Path:
    """Write the payslip to an XLSX workbook with a summary header."""
    try:
        import openpyxl
        from openpyxl.styles import Font
    except ImportError as e:
        raise ImportError("XLSX export requires openpyxl. Install with: pip install openpyxl") from e

    wb = openpyxl.Workbook()
    sheet = wb.active
    sheet.title = "Payslip"

    bold = Font(bold=True)
    sheet.append(("Employee", breakdown.employee_id or ""))
    sheet.append(("Period", f"{breakdown.cycle.start.isoformat()} - {breakdown.cycle.end.isoformat()}"))
    sheet.append(("Currency", breakdown.currency))
    sheet.append(())
    sheet.append(PAYSLIP_COLUMNS)
    for cell in sheet[sheet.max_row]:
        cell.font = bold

    for line in payslip_lines(breakdown):
        sheet.append((
            line.label,
            line.base,
            line.rate,
            line.gain,
            line.deduction,
        ))
        if line.label in ("Gross salary", "Total deductions", "Net pay"):
            for cell in sheet[sheet.max_row]:
                cell.font = bold

    sheet.column_dimensions["A"].width = 28
    for column in "BCDE":
        sheet.column_dimensions[column].width = 16

    path = Path(path)
    wb.save(path)
    logger.info(
        "payslip_xlsx_written",
        extra={"cycle_id": breakdown.cycle.cycle_id, "path": str(path)},
    )
    return path
