"""
Tests for Pension Engine.

Covers:
- Contribution percentage validation
- Qualifying earnings banding
- Statutory minimum and overridden contribution rates
- Non-enrolled statuses
"""

from decimal import Decimal

import pytest

from payroll_config import get_default_tax_year_config
from payroll_engines.pension import (
    INVALID_PENSION_PERCENTAGE,
    PensionCalculationEngine,
    is_enrolled,
    validate_pension_contribution,
)
from payroll_kernel.domain import Employee, EmployeeYTDData, PeriodType, create_default_ytd


class TestValidatePensionContribution:

    @pytest.mark.parametrize("value", [0, 5, "8.5", Decimal("100")])
    def test_valid(self, value):
        assert validate_pension_contribution(value).valid

    @pytest.mark.parametrize("value", [-1, "100.01", 150])
    def test_out_of_range(self, value):
        check = validate_pension_contribution(value)
        assert not check.valid
        assert check.error == INVALID_PENSION_PERCENTAGE

    def test_not_a_number(self):
        check = validate_pension_contribution("five")
        assert not check.valid
        assert check.error == "Pension contribution must be a number"

    @pytest.mark.parametrize(
        "value", ["NaN", "Infinity", "-Infinity", float("nan"), Decimal("NaN"), Decimal("sNaN")]
    )
    def test_non_finite_is_not_a_number(self, value):
        check = validate_pension_contribution(value)
        assert not check.valid
        assert check.error == "Pension contribution must be a number"


class TestIsEnrolled:

    @pytest.mark.parametrize(
        "status, expected",
        [
            ("enrolled", True),
            ("ENROLLED", True),
            ("eligible", False),
            ("opted_out", False),
            ("postponed", False),
            ("not_eligible", False),
            (None, False),
        ],
    )
    def test_status(self, status, expected):
        assert is_enrolled(Employee(id="E", auto_enrolment_status=status)) is expected


class TestPensionCalculation:
    """Contributions on qualifying earnings for 2024/25 limits."""

    def setup_method(self):
        self.engine = PensionCalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, gross, status="enrolled", period_type=PeriodType.MONTHLY, ytd=None, **kwargs):
        employee = Employee(id="EMP-PEN", auto_enrolment_status=status, **kwargs)
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=period_type,
            period_number=1,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
        )

    def test_monthly_minimum_rates(self):
        result = self._calc("3000")

        assert result.is_enrolled
        assert result.lower_limit == Decimal("520.00")
        assert result.upper_limit == Decimal("4189.17")
        assert result.qualifying_earnings == Decimal("2480.00")
        assert result.employee_contribution == Decimal("124.00")
        assert result.employer_contribution == Decimal("74.40")
        assert result.calculation == (
            "Qualifying earnings £2480.00 (£520.00 - £4189.17), "
            "Employee £124.00 (5.0%), Employer £74.40 (3.0%)"
        )

    def test_capped_at_upper_limit(self):
        result = self._calc("5000")

        assert result.qualifying_earnings == Decimal("3669.17")
        assert result.employee_contribution == Decimal("183.46")
        assert result.employer_contribution == Decimal("110.08")

    def test_below_lower_limit(self):
        result = self._calc("500")
        assert result.qualifying_earnings == Decimal("0")
        assert result.employee_contribution == Decimal("0")

    def test_weekly_limits(self):
        result = self._calc("500", period_type=PeriodType.WEEKLY)
        assert result.lower_limit == Decimal("120.00")
        assert result.upper_limit == Decimal("966.73")
        assert result.employee_contribution == Decimal("19.00")

    def test_overridden_rates(self):
        result = self._calc(
            "3000",
            pension_contribution_percentage=Decimal("8"),
            employer_pension_contribution_percentage=Decimal("4"),
        )
        assert result.employee_rate == Decimal("0.08")
        assert result.employee_contribution == Decimal("198.40")
        assert result.employer_contribution == Decimal("99.20")

    def test_ytd_accumulates(self):
        ytd = EmployeeYTDData(
            employee_pension_ytd=Decimal("124.00"), employer_pension_ytd=Decimal("74.40")
        )
        result = self._calc("3000", ytd=ytd)
        assert result.employee_ytd == Decimal("248.00")
        assert result.employer_ytd == Decimal("148.80")

    @pytest.mark.parametrize("status", ["eligible", "opted_out", "postponed", "not_eligible"])
    def test_not_enrolled(self, status):
        ytd = EmployeeYTDData(employee_pension_ytd=Decimal("10"), employer_pension_ytd=Decimal("6"))
        result = self._calc("3000", status=status, ytd=ytd)

        assert not result.is_enrolled
        assert result.employee_contribution == Decimal("0")
        assert result.employer_contribution == Decimal("0")
        assert result.employee_ytd == Decimal("10")
        assert result.employer_ytd == Decimal("6")
        assert result.calculation == f"Not enrolled (status: {status})"

    def test_missing_status(self):
        result = self._calc("3000", status=None)
        assert result.calculation == "Not enrolled (status: not set)"
