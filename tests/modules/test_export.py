"""Tests for payslip rendering: amount formatting, CSV and XLSX."""

import csv
from datetime import date, time
from decimal import Decimal
from io import StringIO

import openpyxl
import pytest

from conftest import make_entry, make_profile
from payroll_kernel.domain.records import TimeEntry
from payroll_modules.payroll.export import (
    PAYSLIP_COLUMNS,
    TIME_ENTRY_COLUMNS,
    format_amount,
    payslip_lines,
    write_payslip_csv,
    write_payslip_xlsx,
    write_time_entries_csv,
)
from payroll_modules.payroll.service import PayrollService

AS_OF = date(2024, 3, 25)
NNBSP = "\u202f"


@pytest.fixture
def breakdown():
    service = PayrollService()
    cycle = service.cycle_for(AS_OF)
    entries = [make_entry(d) for d in cycle.workable_days()]
    entries[5] = make_entry(entries[5].work_date, overtime=240)
    return service.calculate_payslip(
        profile=make_profile(), time_entries=entries,
        settings=None, overrides=(), as_of=AS_OF,
    ).breakdown


class TestFormatAmount:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("0"), "0"),
            (Decimal("49.99"), "0"),
            (Decimal("50"), "100"),
            (Decimal("8308.8"), f"8{NNBSP}300"),
            (Decimal("1234567"), f"1{NNBSP}234{NNBSP}600"),
        ],
    )
    def test_rounds_to_hundred_and_groups(self, amount, expected):
        assert format_amount(amount) == expected


class TestPayslipLines:
    def test_row_order(self, breakdown):
        labels = [line.label for line in payslip_lines(breakdown)]
        assert labels == [
            "Base salary",
            "Seniority bonus",
            "Overtime tier 1",
            "Attendance bonus",
            "Performance bonus",
            "Transport allowance",
            "Housing allowance",
            "Gross salary",
            "Pension",
            "Local tax",
            "Income tax",
            "Income tax surcharge",
            "Broadcast fee",
            "Union dues",
            "Communal tax",
            "Total deductions",
            "Net pay",
        ]

    def test_totals_match_breakdown(self, breakdown):
        by_label = {line.label: line for line in payslip_lines(breakdown)}
        assert by_label["Gross salary"].gain == breakdown.gross
        assert by_label["Total deductions"].deduction == breakdown.total_deductions
        assert by_label["Net pay"].gain == breakdown.net_pay
        assert by_label["Overtime tier 1"].base == Decimal("4")


class TestCsvExport:
    def test_payslip_csv(self, breakdown):
        stream = StringIO()
        count = write_payslip_csv(breakdown, stream)
        rows = list(csv.reader(StringIO(stream.getvalue())))
        assert tuple(rows[0]) == PAYSLIP_COLUMNS
        assert len(rows) == count + 1
        assert rows[-1][0] == "Net pay"
        assert Decimal(rows[-1][3]) == breakdown.net_pay

    def test_time_entries_csv_sorted(self):
        entries = [
            make_entry(date(2024, 3, 5), overtime=30),
            TimeEntry(
                work_date=date(2024, 3, 4), duration_minutes=480, overtime_minutes=0,
                shift_id="night", start_time=time(22, 0), end_time=time(6, 0),
                is_public_holiday=True, location="Depot",
            ),
        ]
        stream = StringIO()
        assert write_time_entries_csv(entries, stream) == 2
        rows = list(csv.reader(StringIO(stream.getvalue())))
        assert tuple(rows[0]) == TIME_ENTRY_COLUMNS
        assert rows[1] == ["2024-03-04", "night", "22:00", "06:00", "480", "0", "yes", "Depot"]
        assert rows[2][0] == "2024-03-05"
        assert rows[2][3] == ""


class TestXlsxExport:
    def test_workbook_contents(self, breakdown, tmp_path):
        path = write_payslip_xlsx(breakdown, tmp_path / "slip.xlsx")
        assert path.exists()

        wb = openpyxl.load_workbook(path)
        sheet = wb["Payslip"]
        assert sheet["A1"].value == "Employee"
        assert sheet["B1"].value == "emp-1"
        assert sheet["B2"].value == "2024-02-26 - 2024-03-25"
        labels = [row[0].value for row in sheet.iter_rows(min_row=6)]
        assert labels[0] == "Base salary"
        assert labels[-1] == "Net pay"
        assert sheet.cell(row=sheet.max_row, column=1).font.bold
