"""
Payroll calculation value objects.

``PayrollCalculationInput`` bundles everything one employee's pay period
needs; ``PayrollCalculationResult`` is what the orchestrator returns;
``ValidationResult`` is the outcome of the pre-calculation check. All are
frozen -- a result is never edited after the engine produces it.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_config.schema import TaxYearConfiguration
from payroll_engines.national_insurance import NICalculationResult
from payroll_engines.pension import PensionCalculationResult
from payroll_engines.student_loan import StudentLoanCalculationResult
from payroll_engines.tax import TaxCalculationResult
from payroll_kernel.domain.employee import Employee
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.values import ZERO, to_decimal
from payroll_kernel.domain.ytd import EmployeeYTDData

PAY_COMPONENT_FIELDS = (
    "gross_pay",
    "bonuses",
    "commission",
    "tronc_payment",
    "holiday_pay",
    "other_payments",
)


@dataclass(frozen=True)
class PayrollCalculationInput:
    """One employee, one pay period."""

    employee: Employee
    gross_pay: Decimal
    period_start_date: date
    period_end_date: date
    period_type: PeriodType
    period_number: int
    tax_year_config: TaxYearConfiguration
    ytd: EmployeeYTDData

    # Optional pay components; omitted means zero
    bonuses: Decimal = ZERO
    commission: Decimal = ZERO
    tronc_payment: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    other_payments: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "period_type", PeriodType(self.period_type))
        for name in PAY_COMPONENT_FIELDS:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def total_gross_pay(self) -> Decimal:
        """Sum of every pay component for the period."""
        return sum((getattr(self, name) for name in PAY_COMPONENT_FIELDS), ZERO)


@dataclass(frozen=True)
class ValidationResult:
    """Blocking errors and non-blocking warnings from ``validate_input``."""

    errors: tuple[str, ...] = field(default_factory=tuple)
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Everything the engine computed for one employee and period."""

    employee_id: str
    period_type: PeriodType
    period_number: int

    gross_pay: Decimal
    taxable_gross_pay: Decimal
    niable_gross_pay: Decimal
    pensionable_gross_pay: Decimal

    tax: TaxCalculationResult
    national_insurance: NICalculationResult
    student_loan: StudentLoanCalculationResult
    pension: PensionCalculationResult

    total_deductions: Decimal
    net_pay: Decimal
    updated_ytd: EmployeeYTDData
    calculation_log: tuple[str, ...] = field(default_factory=tuple)

    @property
    def employer_costs(self) -> Decimal:
        """Employer NI plus employer pension for the period."""
        return (
            self.national_insurance.employer_ni_this_period
            + self.pension.employer_contribution
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict; Decimals stay Decimal."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


def _plain(value: Any) -> Any:
    if hasattr(value, "__dataclass_fields__"):
        return asdict(value)
    if isinstance(value, tuple):
        return list(value)
    return value
