"""
National Insurance Engine - Class 1 employee and employer contributions.

Responsibility:
    Band one period's NI-able pay against the Primary Threshold (PT),
    Upper Earnings Limit (UEL) and Secondary Threshold (ST) for the
    employee's category letter, and track employee/employer NI YTD.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Employee NI is zero when pay is at or below the PT; the main rate
      applies between PT and UEL and the reduced rate above the UEL.
    - Employer NI is zero when pay is at or below the ST and is charged at
      a flat rate above it with no upper cap, except where age relief
      applies (category H under 25, M/Z under 21) up to the UEL.
    - Category C pays nothing and leaves both YTD figures unchanged.
    - Directors on the annual method are charged
      max(0, NI due on YTD pay - NI already paid) against annual thresholds.

Failure modes:
    - Unknown category letters use Category A rates and log
      ``ni_category_unknown_fallback``.
    - Age relief needs both a date of birth and ``as_of``; without them
      standard employer NI is charged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_config.schema import TaxYearConfiguration
from payroll_engines.contracts import NI_CONTRACT
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.employee import (
    DEFAULT_NI_CATEGORY,
    DirectorNIMethod,
    Employee,
)
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.validation import FormatCheck
from payroll_kernel.domain.values import ZERO, format_gbp, format_percent, round_money
from payroll_kernel.domain.ytd import EmployeeYTDData
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.national_insurance")

VALID_NI_CATEGORIES = ("A", "B", "C", "F", "H", "I", "J", "L", "M", "S", "V", "Z")

# Married women's and widows' reduced rate, applied below and above the UEL.
CATEGORY_B_REDUCED_RATE = Decimal("0.0135")

APPRENTICE_RELIEF_MAX_AGE = 25
UNDER_21_RELIEF_MAX_AGE = 21

STANDARD_METHOD = "standard"


@dataclass(frozen=True)
class NIThresholds:
    primary_threshold: Decimal
    upper_earnings_limit: Decimal
    secondary_threshold: Decimal


@dataclass(frozen=True)
class NIRates:
    employee_rate: Decimal
    employee_rate_above_uel: Decimal
    employer_rate: Decimal


_NO_NI_RATES = NIRates(ZERO, ZERO, ZERO)
_NO_THRESHOLDS = NIThresholds(ZERO, ZERO, ZERO)


@dataclass(frozen=True)
class NICalculationResult:
    """NI outcome for one period."""

    ni_category: str
    is_director: bool
    calculation_method: str
    employee_ni_this_period: Decimal
    employee_ni_rate: Decimal
    employee_ni_ytd: Decimal
    employer_ni_this_period: Decimal
    employer_ni_rate: Decimal
    employer_ni_ytd: Decimal
    thresholds: NIThresholds
    calculation: str = ""


def validate_ni_category(category: str) -> FormatCheck:
    """Check a category letter against the supported set (case-insensitive)."""
    if category.strip().upper() not in VALID_NI_CATEGORIES:
        return FormatCheck.fail(
            f"Invalid NI category. Valid categories: {', '.join(VALID_NI_CATEGORIES)}"
        )
    return FormatCheck.ok()


def period_thresholds(period_type: PeriodType, config: TaxYearConfiguration) -> NIThresholds:
    """
    Per-period PT/UEL/ST.

    Weekly and monthly use the published per-period figures; fortnightly
    and four-weekly are two and four times the weekly figures.
    """
    period_type = PeriodType(period_type)
    if period_type is PeriodType.MONTHLY:
        return NIThresholds(
            config.ni_primary_threshold_monthly,
            config.ni_upper_earnings_limit_monthly,
            config.ni_secondary_threshold_monthly,
        )
    weeks = {
        PeriodType.WEEKLY: 1,
        PeriodType.FORTNIGHTLY: 2,
        PeriodType.FOUR_WEEKLY: 4,
    }[period_type]
    return NIThresholds(
        config.ni_primary_threshold_weekly * weeks,
        config.ni_upper_earnings_limit_weekly * weeks,
        config.ni_secondary_threshold_weekly * weeks,
    )


def annual_thresholds(config: TaxYearConfiguration) -> NIThresholds:
    return NIThresholds(
        config.ni_primary_threshold_annual,
        config.ni_upper_earnings_limit_annual,
        config.ni_secondary_threshold_annual,
    )


def category_rates(category: str, config: TaxYearConfiguration) -> NIRates:
    """Rates for a category letter; unknown letters get Category A rates."""
    if category == "C":
        return _NO_NI_RATES
    if category == "B":
        return NIRates(
            CATEGORY_B_REDUCED_RATE, CATEGORY_B_REDUCED_RATE, config.ni_employer_rate
        )
    if category not in VALID_NI_CATEGORIES:
        logger.warning(
            "ni_category_unknown_fallback",
            extra={"ni_category": category, "fallback": DEFAULT_NI_CATEGORY},
        )
    return NIRates(
        config.ni_primary_rate, config.ni_primary_rate_above_uel, config.ni_employer_rate
    )


def _employee_ni(pay: Decimal, t: NIThresholds, rates: NIRates) -> Decimal:
    if pay <= t.primary_threshold:
        return ZERO
    main_band = min(pay, t.upper_earnings_limit) - t.primary_threshold
    above_uel = max(ZERO, pay - t.upper_earnings_limit)
    return max(ZERO, main_band) * rates.employee_rate + above_uel * rates.employee_rate_above_uel


def _employer_ni(pay: Decimal, threshold: Decimal, rate: Decimal) -> Decimal:
    if pay <= threshold:
        return ZERO
    return (pay - threshold) * rate


def _has_age_relief(category: str, employee: Employee, as_of: date | None) -> bool:
    if category == "H":
        max_age = APPRENTICE_RELIEF_MAX_AGE
    elif category in ("M", "Z"):
        max_age = UNDER_21_RELIEF_MAX_AGE
    else:
        return False
    if as_of is None:
        return False
    age = employee.age_on(as_of)
    return age is not None and age < max_age


class NICalculationEngine:
    """
    Class 1 National Insurance calculator.

    Pure functions - no I/O. Thresholds and rates come from the
    ``TaxYearConfiguration``; only the Category B reduced rate is fixed.
    """

    @traced_engine(
        NI_CONTRACT.engine_name,
        NI_CONTRACT.engine_version,
        NI_CONTRACT.input_fingerprint_rules,
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
    ) -> NICalculationResult:
        """Compute employee and employer NI for the period."""
        category = (employee.ni_category or DEFAULT_NI_CATEGORY).strip().upper()

        if category == "C":
            return NICalculationResult(
                ni_category="C",
                is_director=employee.is_director,
                calculation_method=STANDARD_METHOD,
                employee_ni_this_period=ZERO,
                employee_ni_rate=ZERO,
                employee_ni_ytd=ytd.employee_ni_paid_ytd,
                employer_ni_this_period=ZERO,
                employer_ni_rate=ZERO,
                employer_ni_ytd=ytd.employer_ni_paid_ytd,
                thresholds=_NO_THRESHOLDS,
                calculation="Category C: Over state pension age - no NI contributions",
            )

        rates = category_rates(category, tax_year_config)

        if employee.is_director and employee.director_ni_method == DirectorNIMethod.ANNUAL:
            return self._director_annual(category, gross_pay, rates, tax_year_config, ytd)

        thresholds = period_thresholds(period_type, tax_year_config)
        employee_ni = round_money(_employee_ni(gross_pay, thresholds, rates))

        relief = _has_age_relief(category, employee, as_of)
        employer_threshold = (
            thresholds.upper_earnings_limit if relief else thresholds.secondary_threshold
        )
        employer_ni = round_money(_employer_ni(gross_pay, employer_threshold, rates.employer_rate))

        method = STANDARD_METHOD
        label = f"Category {category}"
        if employee.is_director:
            method = DirectorNIMethod.ALTERNATIVE.value
            label = f"Director (alternative), {label}"
        if relief:
            label = f"{label} (employer relief to UEL)"

        return NICalculationResult(
            ni_category=category,
            is_director=employee.is_director,
            calculation_method=method,
            employee_ni_this_period=employee_ni,
            employee_ni_rate=rates.employee_rate,
            employee_ni_ytd=ytd.employee_ni_paid_ytd + employee_ni,
            employer_ni_this_period=employer_ni,
            employer_ni_rate=rates.employer_rate,
            employer_ni_ytd=ytd.employer_ni_paid_ytd + employer_ni,
            thresholds=thresholds,
            calculation=(
                f"{label}: Gross {format_gbp(gross_pay)}, "
                f"Employee NI {format_gbp(employee_ni)} ({format_percent(rates.employee_rate)}), "
                f"Employer NI {format_gbp(employer_ni)} ({format_percent(rates.employer_rate)})"
            ),
        )

    def _director_annual(
        self,
        category: str,
        gross_pay: Decimal,
        rates: NIRates,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> NICalculationResult:
        thresholds = annual_thresholds(config)
        earnings_to_date = ytd.niable_pay_ytd + gross_pay

        employee_due = round_money(_employee_ni(earnings_to_date, thresholds, rates))
        employer_due = round_money(
            _employer_ni(earnings_to_date, thresholds.secondary_threshold, rates.employer_rate)
        )
        employee_ni = max(ZERO, employee_due - ytd.employee_ni_paid_ytd)
        employer_ni = max(ZERO, employer_due - ytd.employer_ni_paid_ytd)

        return NICalculationResult(
            ni_category=category,
            is_director=True,
            calculation_method=DirectorNIMethod.ANNUAL.value,
            employee_ni_this_period=employee_ni,
            employee_ni_rate=rates.employee_rate,
            employee_ni_ytd=ytd.employee_ni_paid_ytd + employee_ni,
            employer_ni_this_period=employer_ni,
            employer_ni_rate=rates.employer_rate,
            employer_ni_ytd=ytd.employer_ni_paid_ytd + employer_ni,
            thresholds=thresholds,
            calculation=(
                f"Director (annual): YTD Earnings {format_gbp(earnings_to_date)}, "
                f"Employee NI {format_gbp(employee_ni)}, Employer NI {format_gbp(employer_ni)}"
            ),
        )
