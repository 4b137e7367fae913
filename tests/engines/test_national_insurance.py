"""
Tests for National Insurance Engine.

Covers:
- Category validation
- Per-period thresholds for every pay frequency
- Category A banding below PT, between PT and UEL, above UEL
- Category B reduced rate and Category C exemption
- Employer age relief for categories H, M and Z
- Director annual and alternative earnings periods
"""

from datetime import date
from decimal import Decimal

import pytest

from payroll_config import get_default_tax_year_config
from payroll_engines.national_insurance import (
    NICalculationEngine,
    period_thresholds,
    validate_ni_category,
)
from payroll_kernel.domain import (
    DirectorNIMethod,
    Employee,
    EmployeeYTDData,
    PeriodType,
    create_default_ytd,
)

PERIOD_END = date(2024, 5, 5)


class TestValidateNICategory:

    @pytest.mark.parametrize("category", ["A", "B", "C", "F", "H", "I", "J", "L", "M", "S", "V", "Z", "a", " h "])
    def test_valid(self, category):
        assert validate_ni_category(category).valid

    @pytest.mark.parametrize("category", ["", "X", "AA", "Q"])
    def test_invalid(self, category):
        check = validate_ni_category(category)
        assert not check.valid
        assert check.error.startswith("Invalid NI category. Valid categories: A, B, C")


class TestPeriodThresholds:
    """Published weekly/monthly figures; fortnightly and four-weekly from weekly."""

    def setup_method(self):
        self.config = get_default_tax_year_config()

    @pytest.mark.parametrize(
        "period_type, pt, uel, st",
        [
            (PeriodType.WEEKLY, "242", "967", "175"),
            (PeriodType.FORTNIGHTLY, "484", "1934", "350"),
            (PeriodType.FOUR_WEEKLY, "968", "3868", "700"),
            (PeriodType.MONTHLY, "1048", "4189", "758"),
        ],
    )
    def test_thresholds(self, period_type, pt, uel, st):
        t = period_thresholds(period_type, self.config)
        assert t.primary_threshold == Decimal(pt)
        assert t.upper_earnings_limit == Decimal(uel)
        assert t.secondary_threshold == Decimal(st)


class TestStandardNI:
    """Class 1 NI on a single period's pay."""

    def setup_method(self):
        self.engine = NICalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, gross, category="A", period_type=PeriodType.MONTHLY, ytd=None, **employee_kwargs):
        employee = Employee(id="EMP-NI", ni_category=category, **employee_kwargs)
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=period_type,
            period_number=1,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
            as_of=PERIOD_END,
        )

    def test_between_pt_and_uel(self):
        result = self._calc("3000")

        assert result.employee_ni_this_period == Decimal("234.24")
        assert result.employer_ni_this_period == Decimal("309.40")
        assert result.employee_ni_rate == Decimal("0.12")
        assert result.employer_ni_rate == Decimal("0.138")
        assert result.calculation_method == "standard"
        assert result.calculation == (
            "Category A: Gross £3000.00, Employee NI £234.24 (12.0%), "
            "Employer NI £309.40 (13.8%)"
        )

    def test_above_uel(self):
        result = self._calc("5000")
        assert result.employee_ni_this_period == Decimal("393.14")
        assert result.employer_ni_this_period == Decimal("585.40")

    def test_at_primary_threshold(self):
        result = self._calc("1048")
        assert result.employee_ni_this_period == Decimal("0")
        assert result.employer_ni_this_period == Decimal("40.02")

    def test_at_secondary_threshold(self):
        result = self._calc("758")
        assert result.employee_ni_this_period == Decimal("0")
        assert result.employer_ni_this_period == Decimal("0")

    def test_weekly(self):
        result = self._calc("500", period_type=PeriodType.WEEKLY)
        assert result.employee_ni_this_period == Decimal("30.96")
        assert result.employer_ni_this_period == Decimal("44.85")

    def test_fortnightly(self):
        result = self._calc("1000", period_type=PeriodType.FORTNIGHTLY)
        assert result.employee_ni_this_period == Decimal("61.92")
        assert result.employer_ni_this_period == Decimal("89.70")

    def test_ytd_accumulates(self):
        ytd = EmployeeYTDData(
            employee_ni_paid_ytd=Decimal("234.24"),
            employer_ni_paid_ytd=Decimal("309.40"),
        )
        result = self._calc("3000", ytd=ytd)
        assert result.employee_ni_ytd == Decimal("468.48")
        assert result.employer_ni_ytd == Decimal("618.80")

    def test_category_b_reduced_rate(self):
        result = self._calc("3000", category="B")
        assert result.employee_ni_this_period == Decimal("26.35")
        assert result.employee_ni_rate == Decimal("0.0135")
        assert result.employer_ni_this_period == Decimal("309.40")

    def test_category_c_pays_nothing(self):
        ytd = EmployeeYTDData(employee_ni_paid_ytd=Decimal("50"), employer_ni_paid_ytd=Decimal("70"))
        result = self._calc("3000", category="C", ytd=ytd)

        assert result.employee_ni_this_period == Decimal("0")
        assert result.employer_ni_this_period == Decimal("0")
        assert result.employee_ni_ytd == Decimal("50")
        assert result.employer_ni_ytd == Decimal("70")
        assert result.calculation == "Category C: Over state pension age - no NI contributions"

    def test_lowercase_category(self):
        assert self._calc("3000", category="a").ni_category == "A"

    def test_missing_category_defaults_to_a(self):
        result = self._calc("3000", category=None)
        assert result.ni_category == "A"
        assert result.employee_ni_this_period == Decimal("234.24")

    def test_unknown_category_falls_back_to_a(self, captured_logs):
        result = self._calc("3000", category="Q")

        assert result.employee_ni_this_period == Decimal("234.24")
        fallbacks = [r for r in captured_logs() if r["message"] == "ni_category_unknown_fallback"]
        assert fallbacks and fallbacks[0]["ni_category"] == "Q"


class TestEmployerAgeRelief:
    """Employer NI threshold rises to the UEL for young employees."""

    def setup_method(self):
        self.engine = NICalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, gross, category, dob, as_of=PERIOD_END):
        employee = Employee(id="EMP-AGE", ni_category=category, date_of_birth=dob)
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=PeriodType.MONTHLY,
            period_number=1,
            tax_year_config=self.config,
            ytd=create_default_ytd(),
            as_of=as_of,
        )

    def test_apprentice_under_25_below_uel(self):
        result = self._calc("3000", "H", date(2005, 1, 1))

        assert result.employer_ni_this_period == Decimal("0")
        assert result.employee_ni_this_period == Decimal("234.24")
        assert "(employer relief to UEL)" in result.calculation

    def test_apprentice_under_25_above_uel(self):
        result = self._calc("5000", "H", date(2005, 1, 1))
        assert result.employer_ni_this_period == Decimal("111.92")

    @pytest.mark.parametrize("category", ["M", "Z"])
    def test_under_21(self, category):
        assert self._calc("3000", category, date(2005, 1, 1)).employer_ni_this_period == Decimal("0")

    def test_m_aged_21_gets_no_relief(self):
        result = self._calc("3000", "M", date(2003, 5, 5))
        assert result.employer_ni_this_period == Decimal("309.40")

    def test_no_relief_without_date_of_birth(self):
        result = self._calc("3000", "H", None)
        assert result.employer_ni_this_period == Decimal("309.40")

    def test_no_relief_without_as_of(self):
        result = self._calc("3000", "H", date(2005, 1, 1), as_of=None)
        assert result.employer_ni_this_period == Decimal("309.40")


class TestDirectorNI:
    """Directors: annual earnings period or the alternative method."""

    def setup_method(self):
        self.engine = NICalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, gross, method, ytd=None):
        employee = Employee(
            id="DIR-1", ni_category="A", is_director=True, director_ni_method=method
        )
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=PeriodType.MONTHLY,
            period_number=5,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
            as_of=PERIOD_END,
        )

    def test_annual_method_below_annual_threshold(self):
        """£3000 in the first month is below the £12,570 annual PT."""
        result = self._calc("3000", DirectorNIMethod.ANNUAL)

        assert result.employee_ni_this_period == Decimal("0")
        assert result.employer_ni_this_period == Decimal("0")
        assert result.calculation_method == "annual"
        assert result.is_director

    def test_annual_method_cumulative(self):
        ytd = EmployeeYTDData(niable_pay_ytd=Decimal("12000"))
        result = self._calc("3000", DirectorNIMethod.ANNUAL, ytd=ytd)

        assert result.employee_ni_this_period == Decimal("291.60")
        assert result.employer_ni_this_period == Decimal("814.20")
        assert result.thresholds.primary_threshold == Decimal("12570")
        assert result.calculation.startswith("Director (annual): YTD Earnings £15000.00")

    def test_annual_method_subtracts_ni_paid(self):
        ytd = EmployeeYTDData(
            niable_pay_ytd=Decimal("12000"),
            employee_ni_paid_ytd=Decimal("100"),
            employer_ni_paid_ytd=Decimal("800"),
        )
        result = self._calc("3000", DirectorNIMethod.ANNUAL, ytd=ytd)

        assert result.employee_ni_this_period == Decimal("191.60")
        assert result.employer_ni_this_period == Decimal("14.20")
        assert result.employee_ni_ytd == Decimal("291.60")

    def test_alternative_method_uses_period_thresholds(self):
        result = self._calc("3000", DirectorNIMethod.ALTERNATIVE)

        assert result.employee_ni_this_period == Decimal("234.24")
        assert result.calculation_method == "alternative"
        assert result.calculation.startswith("Director (alternative), Category A: ")
