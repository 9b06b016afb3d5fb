"""
Statutory Deduction Calculator (``payroll_engines.deductions``).

Responsibility
--------------
Employee-side statutory withholdings for one payroll cycle: pension
contribution, local development tax, progressive income tax with its
surcharge, and the flat fees (broadcast fee, union dues, communal tax).

Architecture position
---------------------
**Engines layer** -- pure functions.  The bracket table is data
(``payroll_config/sets/<name>/payroll.yaml``) handed in via
``StatutoryRules``.

Invariants enforced
-------------------
* Income tax is 0 when gross is not positive or the annual taxable base is
  negative.
* Bracket tables are contiguous, ascending and continuous at every
  boundary (checked at construction).
* ``net == gross - total`` exactly; only the income tax is rounded.

Failure modes
-------------
* ValueError on a malformed bracket table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.deductions")

_ZERO = Decimal("0")
_TWELVE = Decimal("12")


@dataclass(frozen=True)
class TaxBracket:
    """One slice of the annual income-tax schedule.

    Tax for an income ``x`` inside ``(lower, upper]`` is
    ``(x - lower) * rate + base_tax``.  ``upper`` None is the open top slice.
    """

    lower: Decimal
    upper: Decimal | None
    rate: Decimal
    base_tax: Decimal = _ZERO

    def __post_init__(self) -> None:
        if self.rate < 0:
            raise ValueError("Bracket rate cannot be negative")
        if self.upper is not None and self.upper <= self.lower:
            raise ValueError(
                f"Bracket upper ({self.upper}) must exceed lower ({self.lower})"
            )

    def contains(self, amount: Decimal) -> bool:
        return self.upper is None or amount <= self.upper

    def tax_for(self, amount: Decimal) -> Decimal:
        return (amount - self.lower) * self.rate + self.base_tax

    @property
    def tax_at_upper(self) -> Decimal | None:
        if self.upper is None:
            return None
        return self.tax_for(self.upper)


DEFAULT_INCOME_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("0"), Decimal("2000000"), Decimal("0.10"), Decimal("0")),
    TaxBracket(Decimal("2000000"), Decimal("3000000"), Decimal("0.15"), Decimal("200000")),
    TaxBracket(Decimal("3000000"), Decimal("5000000"), Decimal("0.25"), Decimal("350000")),
    TaxBracket(Decimal("5000000"), None, Decimal("0.35"), Decimal("850000")),
)


def validate_brackets(brackets: tuple[TaxBracket, ...]) -> None:
    """Check a bracket table is contiguous, open-ended and continuous.

    Raises:
        ValueError: on the first structural problem found.
    """
    if not brackets:
        raise ValueError("Bracket table cannot be empty")
    if brackets[0].lower != 0:
        raise ValueError("First bracket must start at 0")
    if brackets[-1].upper is not None:
        raise ValueError("Last bracket must be open-ended")
    for previous, current in zip(brackets, brackets[1:]):
        if previous.upper != current.lower:
            raise ValueError(
                f"Bracket gap between {previous.upper} and {current.lower}"
            )
        if previous.tax_at_upper != current.base_tax:
            raise ValueError(
                f"Bracket table is discontinuous at {current.lower}: "
                f"{previous.tax_at_upper} != {current.base_tax}"
            )


@dataclass(frozen=True)
class StatutoryRules:
    """Rates and flat amounts for statutory withholdings."""

    pension_rate: Decimal = Decimal("0.042")
    local_tax_rate: Decimal = Decimal("0.01")
    taxable_fraction: Decimal = Decimal("0.7")
    surcharge_rate: Decimal = Decimal("0.10")
    broadcast_fee: Decimal = Decimal("1950")
    union_dues_rate: Decimal = Decimal("0.01")
    communal_tax: Decimal = Decimal("270")
    income_tax_brackets: tuple[TaxBracket, ...] = field(
        default=DEFAULT_INCOME_TAX_BRACKETS
    )

    def __post_init__(self) -> None:
        validate_brackets(self.income_tax_brackets)


def annual_income_tax(
    annual_taxable: Decimal,
    brackets: tuple[TaxBracket, ...] = DEFAULT_INCOME_TAX_BRACKETS,
) -> Decimal:
    """Progressive tax on an annual taxable amount (0 when negative)."""
    if annual_taxable <= 0:
        return _ZERO
    for bracket in brackets:
        if bracket.contains(annual_taxable):
            return bracket.tax_for(annual_taxable)
    # validate_brackets guarantees an open top slice
    return brackets[-1].tax_for(annual_taxable)


def monthly_income_tax(
    *,
    gross: Decimal,
    transport_allowance: Decimal,
    pension: Decimal,
    rules: StatutoryRules | None = None,
) -> Decimal:
    """Monthly income tax, rounded half-up to a whole unit.

    Annual taxable = ((gross - transport) - pension) * taxable_fraction * 12.
    """
    rules = rules or StatutoryRules()
    if gross <= 0:
        return _ZERO
    monthly_taxable = (gross - transport_allowance - pension) * rules.taxable_fraction
    annual = annual_income_tax(monthly_taxable * _TWELVE, rules.income_tax_brackets)
    return (annual / _TWELVE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class StatutoryDeductions:
    """All withholdings for one cycle, plus the resulting net pay."""

    gross: Decimal
    pension: Decimal
    local_tax: Decimal
    income_tax: Decimal
    income_tax_surcharge: Decimal
    broadcast_fee: Decimal
    union_dues: Decimal
    communal_tax: Decimal

    @property
    def total(self) -> Decimal:
        return (
            self.pension
            + self.local_tax
            + self.income_tax
            + self.income_tax_surcharge
            + self.broadcast_fee
            + self.union_dues
            + self.communal_tax
        )

    @property
    def net(self) -> Decimal:
        return self.gross - self.total


@traced_engine(
    "deductions", "1.0",
    fingerprint_fields=("gross", "earnings_base", "transport_allowance", "housing_allowance"),
)
def calculate_statutory_deductions(
    *,
    gross: Decimal,
    transport_allowance: Decimal,
    housing_allowance: Decimal,
    prorated_base: Decimal,
    earnings_base: Decimal | None = None,
    rules: StatutoryRules | None = None,
) -> StatutoryDeductions:
    """Compute every statutory withholding.

    Args:
        gross: Gross pay that net is computed from.
        transport_allowance: Transport allowance paid this cycle.
        housing_allowance: Housing allowance paid this cycle.
        prorated_base: Prorated base salary (union dues base).
        earnings_base: Earnings the percentage deductions are assessed on.
            Defaults to ``gross``; differs only when an absence penalty has
            been taken off gross.
        rules: Rates, flat fees and bracket table.
    """
    rules = rules or StatutoryRules()
    base = gross if earnings_base is None else earnings_base

    pension = (base - transport_allowance - housing_allowance) * rules.pension_rate
    local_tax = (base - transport_allowance) * rules.local_tax_rate
    income_tax = monthly_income_tax(
        gross=base,
        transport_allowance=transport_allowance,
        pension=pension,
        rules=rules,
    )

    result = StatutoryDeductions(
        gross=gross,
        pension=pension,
        local_tax=local_tax,
        income_tax=income_tax,
        income_tax_surcharge=income_tax * rules.surcharge_rate,
        broadcast_fee=rules.broadcast_fee,
        union_dues=prorated_base * rules.union_dues_rate,
        communal_tax=rules.communal_tax,
    )
    logger.debug(
        "statutory_deductions_calculated",
        extra={"income_tax": str(income_tax), "total": str(result.total)},
    )
    return result
