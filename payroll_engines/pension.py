"""
Pension Engine - workplace pension auto-enrolment contributions.

Responsibility:
    Compute employee and employer contributions on qualifying earnings
    (pay between the per-period lower and upper auto-enrolment limits) for
    enrolled employees, and track both pension YTD figures.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only status ``enrolled`` contributes; every other status yields zero
      contributions and unchanged YTD.
    - Qualifying earnings = max(0, min(gross, upper) - lower), with the
      band limits pro-rated to the period and rounded to the penny.
    - Rates default to the statutory minimums (5% employee, 3% employer)
      unless the employee record overrides them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_config.schema import TaxYearConfiguration
from payroll_engines.contracts import PENSION_CONTRACT
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.employee import AutoEnrolmentStatus, Employee
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.validation import FormatCheck
from payroll_kernel.domain.values import (
    HUNDRED,
    ZERO,
    format_gbp,
    format_percent,
    percent_to_rate,
    round_money,
    to_decimal,
)
from payroll_kernel.domain.ytd import EmployeeYTDData

INVALID_PENSION_PERCENTAGE = "Pension contribution must be between 0% and 100%"


@dataclass(frozen=True)
class PensionCalculationResult:
    """Pension outcome for one period."""

    is_enrolled: bool
    qualifying_earnings: Decimal
    lower_limit: Decimal
    upper_limit: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal
    employee_ytd: Decimal
    employer_ytd: Decimal
    calculation: str = ""


def validate_pension_contribution(percentage: Decimal | int | str) -> FormatCheck:
    """A contribution percentage is valid from 0 to 100 inclusive."""
    try:
        value = to_decimal(percentage)
    except ValueError:
        return FormatCheck.fail("Pension contribution must be a number")
    if not ZERO <= value <= HUNDRED:
        return FormatCheck.fail(INVALID_PENSION_PERCENTAGE)
    return FormatCheck.ok()


def is_enrolled(employee: Employee) -> bool:
    status = (employee.auto_enrolment_status or "").strip().lower()
    return status == AutoEnrolmentStatus.ENROLLED.value


class PensionCalculationEngine:
    """Auto-enrolment pension contribution calculator."""

    @traced_engine(
        PENSION_CONTRACT.engine_name,
        PENSION_CONTRACT.engine_version,
        PENSION_CONTRACT.input_fingerprint_rules,
    )
    def calculate(
        self,
        *,
        employee: Employee,
        gross_pay: Decimal,
        period_type: PeriodType,
        period_number: int,
        tax_year_config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
        as_of: date | None = None,
    ) -> PensionCalculationResult:
        """Compute contributions on this period's qualifying earnings."""
        periods_per_year = PeriodType(period_type).periods_per_year
        lower = round_money(tax_year_config.auto_enrolment_lower_limit_annual / periods_per_year)
        upper = round_money(tax_year_config.auto_enrolment_upper_limit_annual / periods_per_year)

        employee_rate = (
            percent_to_rate(employee.pension_contribution_percentage)
            if employee.pension_contribution_percentage is not None
            else tax_year_config.minimum_employee_contribution
        )
        employer_rate = (
            percent_to_rate(employee.employer_pension_contribution_percentage)
            if employee.employer_pension_contribution_percentage is not None
            else tax_year_config.minimum_employer_contribution
        )

        if not is_enrolled(employee):
            status = employee.auto_enrolment_status or "not set"
            return PensionCalculationResult(
                is_enrolled=False,
                qualifying_earnings=ZERO,
                lower_limit=lower,
                upper_limit=upper,
                employee_rate=employee_rate,
                employer_rate=employer_rate,
                employee_contribution=ZERO,
                employer_contribution=ZERO,
                employee_ytd=ytd.employee_pension_ytd,
                employer_ytd=ytd.employer_pension_ytd,
                calculation=f"Not enrolled (status: {status})",
            )

        qualifying = max(ZERO, min(gross_pay, upper) - lower)
        employee_contribution = round_money(qualifying * employee_rate)
        employer_contribution = round_money(qualifying * employer_rate)

        return PensionCalculationResult(
            is_enrolled=True,
            qualifying_earnings=round_money(qualifying),
            lower_limit=lower,
            upper_limit=upper,
            employee_rate=employee_rate,
            employer_rate=employer_rate,
            employee_contribution=employee_contribution,
            employer_contribution=employer_contribution,
            employee_ytd=ytd.employee_pension_ytd + employee_contribution,
            employer_ytd=ytd.employer_pension_ytd + employer_contribution,
            calculation=(
                f"Qualifying earnings {format_gbp(qualifying)} "
                f"({format_gbp(lower)} - {format_gbp(upper)}), "
                f"Employee {format_gbp(employee_contribution)} ({format_percent(employee_rate)}), "
                f"Employer {format_gbp(employer_contribution)} ({format_percent(employer_rate)})"
            ),
        )
