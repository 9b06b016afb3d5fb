"""
Payroll Module (``payroll_modules.payroll``).

Responsibility
--------------
Payslip calculation for shift workers: boundary validation of raw store
documents, the ``PayrollService`` facade, payslip result models, hours
reports, career review, and CSV/XLSX export.

Architecture position
---------------------
**Modules layer** -- delegates every figure to ``payroll_engines`` and reads
its rules from ``payroll_config``.

Failure modes
-------------
* ``PayslipResult.status == INSUFFICIENT_DATA`` -- profile lacks a salary
  or a hire date.
* ``DocumentValidationError`` -- a raw document is structurally invalid.
"""

from payroll_modules.payroll.models import (
    CareerReview,
    HoursReport,
    LeavePlan,
    PayrollBreakdown,
    PayslipResult,
    PayslipStatus,
)
from payroll_modules.payroll.service import PayrollService

__all__ = [
    "CareerReview",
    "HoursReport",
    "LeavePlan",
    "PayrollBreakdown",
    "PayrollService",
    "PayslipResult",
    "PayslipStatus",
]
