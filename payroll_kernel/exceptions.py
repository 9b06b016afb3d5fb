"""
Typed Exception Hierarchy for the Payroll Kernel.

Every error carries a class-level ``code`` (machine-readable, API-safe) and
stores its context as attributes so structured logs can serialize it
without parsing the message string.

    PayrollKernelError (base)
    |
    +-- InputError
    |   +-- DocumentValidationError
    |   +-- MalformedDateError
    |
    +-- ConfigurationError
    |
    +-- TimekeepingError
    |   +-- UnknownShiftError
    |   +-- SessionAlreadyOpenError
    |   +-- NoOpenSessionError
    |
    +-- CareerError
    |   +-- SalaryGridUnavailableError
    |   +-- NoAdvancementAvailableError
    |
    +-- StateStoreError
        +-- StateSchemaError

Missing profile data is NOT an exception: the payroll service reports it as
an ``INSUFFICIENT_DATA`` result.  Malformed dates inside a calculation are
caught by the engines and contribute zero; ``MalformedDateError`` only
escapes from the strict parsing helpers.
"""

from typing import Any


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Input-related exceptions


class InputError(PayrollKernelError):
    """Base exception for malformed input documents."""

    code: str = "INPUT_ERROR"


class DocumentValidationError(InputError):
    """A raw document from the store failed boundary validation."""

    code: str = "DOCUMENT_VALIDATION_FAILED"

    def __init__(self, document_type: str, field: str, value: Any, reason: str):
        self.document_type = document_type
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid {document_type}.{field} ({value!r}): {reason}"
        )


class MalformedDateError(InputError):
    """A date string could not be parsed as YYYY-MM-DD."""

    code: str = "MALFORMED_DATE"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Malformed date for {field}: {value!r}")


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Payroll rule set is missing or structurally invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, config_name: str, reason: str):
        self.config_name = config_name
        self.reason = reason
        super().__init__(f"Payroll configuration '{config_name}' is invalid: {reason}")


# Timekeeping exceptions


class TimekeepingError(PayrollKernelError):
    """Base exception for clock-in/clock-out errors."""

    code: str = "TIMEKEEPING_ERROR"


class UnknownShiftError(TimekeepingError):
    """Shift identifier is not in the catalog."""

    code: str = "UNKNOWN_SHIFT"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Unknown shift: {shift_id}")


class SessionAlreadyOpenError(TimekeepingError):
    """Employee tried to clock in while a session is still open."""

    code: str = "SESSION_ALREADY_OPEN"

    def __init__(self, employee_id: str, opened_at: str):
        self.employee_id = employee_id
        self.opened_at = opened_at
        super().__init__(
            f"Employee {employee_id} already clocked in at {opened_at}"
        )


class NoOpenSessionError(TimekeepingError):
    """Employee tried to clock out without an open session."""

    code: str = "NO_OPEN_SESSION"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} has no open session")


# Career exceptions


class CareerError(PayrollKernelError):
    """Base exception for grade and advancement errors."""

    code: str = "CAREER_ERROR"


class SalaryGridUnavailableError(CareerError):
    """No salary grid could be loaded and none is cached."""

    code: str = "SALARY_GRID_UNAVAILABLE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Salary grid unavailable: {reason}")


class NoAdvancementAvailableError(CareerError):
    """Employee has no next grid step (ungraded or already at the top)."""

    code: str = "NO_ADVANCEMENT_AVAILABLE"

    def __init__(self, employee_id: str | None, position: str):
        self.employee_id = employee_id
        self.position = position
        super().__init__(
            f"No advancement available for employee {employee_id} ({position})"
        )


# State store exceptions


class StateStoreError(PayrollKernelError):
    """Base exception for persisted state errors."""

    code: str = "STATE_STORE_ERROR"


class StateSchemaError(StateStoreError):
    """Payload does not match the declared state schema."""

    code: str = "STATE_SCHEMA_ERROR"

    def __init__(self, namespace: str, missing_fields: tuple[str, ...]):
        self.namespace = namespace
        self.missing_fields = missing_fields
        super().__init__(
            f"State payload for '{namespace}' is missing fields: "
            f"{', '.join(missing_fields)}"
        )
