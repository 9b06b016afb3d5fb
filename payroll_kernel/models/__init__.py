"""ORM models owned by the payroll kernel."""

from payroll_kernel.models.state_record import StateRecord

__all__ = ["StateRecord"]
