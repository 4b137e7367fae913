"""
Tests for Tax Engine.

Covers:
- Tax code validation and parsing (standard, Scottish, Welsh, K, special codes)
- Cumulative PAYE across periods
- Week1/month1 and 0T emergency basis
- Flat-rate codes BR, D0, D1 and NT
- Band breakdown and audit log lines
"""

from decimal import Decimal

import pytest

from payroll_config import get_default_tax_year_config
from payroll_engines.tax import (
    INVALID_TAX_CODE_MESSAGE,
    TaxCalculationEngine,
    TaxCodeType,
    TaxRegime,
    parse_tax_code,
    validate_tax_code,
)
from payroll_kernel.domain import (
    Employee,
    EmployeeYTDData,
    PeriodType,
    TaxCodeBasis,
    create_default_ytd,
)


def _employee(tax_code="1257L", **kwargs) -> Employee:
    return Employee(id="EMP-TAX", tax_code=tax_code, **kwargs)


class TestValidateTaxCode:
    """Format checks for tax codes."""

    @pytest.mark.parametrize(
        "code",
        ["1257L", "S1257L", "C1257L", "BR", "D0", "D1", "NT", "0T", "100K", "1257M", "1257n", " 1257L "],
    )
    def test_valid_codes(self, code):
        assert validate_tax_code(code).valid

    @pytest.mark.parametrize("code", ["", "XYZ", "L1257", "1257", "S", "K100", "D2", "1257LX"])
    def test_invalid_codes(self, code):
        check = validate_tax_code(code)
        assert not check.valid
        assert check.error == INVALID_TAX_CODE_MESSAGE


class TestParseTaxCode:
    """Interpretation of tax codes."""

    def test_standard_code(self):
        parsed = parse_tax_code("1257L")
        assert parsed.code_type == TaxCodeType.STANDARD
        assert parsed.allowance == Decimal("12570")
        assert parsed.suffix == "L"
        assert parsed.regime == TaxRegime.RUK

    def test_scottish_prefix(self):
        parsed = parse_tax_code("S1257L")
        assert parsed.prefix == "S"
        assert parsed.regime == TaxRegime.SCOTTISH
        assert parsed.allowance == Decimal("12570")

    def test_welsh_prefix(self):
        assert parse_tax_code("c1257l").regime == TaxRegime.WELSH

    def test_k_code_is_negative_allowance(self):
        parsed = parse_tax_code("100K")
        assert parsed.allowance == Decimal("-1000")
        assert parsed.suffix == "K"

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("BR", TaxCodeType.BR),
            ("D0", TaxCodeType.D0),
            ("D1", TaxCodeType.D1),
            ("NT", TaxCodeType.NT),
            ("0T", TaxCodeType.ZERO_T),
            ("br", TaxCodeType.BR),
        ],
    )
    def test_special_codes(self, code, expected):
        assert parse_tax_code(code).code_type == expected

    def test_missing_code_uses_default(self):
        parsed = parse_tax_code(None)
        assert parsed.code == "1257L"
        assert parsed.allowance == Decimal("12570")

    def test_invalid_code_falls_back_with_warning(self, captured_logs):
        parsed = parse_tax_code("GARBAGE")
        assert parsed.code == "1257L"

        warnings = [r for r in captured_logs() if r["message"] == "tax_code_invalid_fallback"]
        assert len(warnings) == 1
        assert warnings[0]["tax_code"] == "GARBAGE"
        assert warnings[0]["fallback"] == "1257L"


class TestCumulativeTax:
    """Cumulative basis: tax due on pay to date less tax already paid."""

    def setup_method(self):
        self.engine = TaxCalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, employee, gross, period_type=PeriodType.MONTHLY, period_number=1, ytd=None):
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=period_type,
            period_number=period_number,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
        )

    def test_monthly_basic_rate(self):
        """£3000 in month 1 on 1257L: (3000 - 1047.50) x 20%."""
        result = self._calc(_employee(), "3000")

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_paid_ytd == Decimal("390.50")
        assert result.basis == TaxCodeBasis.CUMULATIVE
        assert result.personal_allowance_used == Decimal("1047.50")
        assert result.taxable_pay_this_period == Decimal("3000")

    def test_second_period_uses_ytd(self):
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("3000"), tax_paid_ytd=Decimal("390.50"))
        result = self._calc(_employee(), "3000", period_number=2, ytd=ytd)

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_paid_ytd == Decimal("781.00")

    def test_higher_rate_band(self):
        result = self._calc(_employee(), "5000")

        assert result.tax_due_this_period == Decimal("952.67")
        assert [b.band for b in result.tax_bands] == ["Basic Rate", "Higher Rate"]
        assert result.tax_bands[0].amount == Decimal("3141.67")
        assert result.tax_bands[1].rate == Decimal("0.40")

    def test_weekly_period(self):
        result = self._calc(_employee(), "500", period_type=PeriodType.WEEKLY)
        assert result.tax_due_this_period == Decimal("51.65")

    def test_no_refund_when_overpaid(self):
        """A period with pay below the allowance never produces negative tax."""
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("3000"), tax_paid_ytd=Decimal("390.50"))
        result = self._calc(_employee(), "0", period_number=2, ytd=ytd)

        assert result.tax_due_this_period == Decimal("0")
        assert result.tax_paid_ytd == Decimal("390.50")

    def test_pay_below_allowance(self):
        result = self._calc(_employee(), "1000")
        assert result.tax_due_this_period == Decimal("0")
        assert result.personal_allowance_used == Decimal("1000.00")

    def test_scottish_rates(self):
        result = self._calc(_employee("S1257L"), "3000")

        assert result.tax_due_this_period == Decimal("396.44")
        assert [b.band for b in result.tax_bands] == [
            "Starter Rate",
            "Basic Rate",
            "Intermediate Rate",
        ]
        assert "Scottish rates" in result.calculation

    def test_welsh_rates_match_ruk(self):
        result = self._calc(_employee("C1257L"), "3000")

        assert result.tax_due_this_period == Decimal("390.50")
        assert "Welsh rates" in result.calculation

    def test_k_code_adds_to_taxable_pay(self):
        """100K adds £1000 a year (£83.33 a month) to taxable pay."""
        result = self._calc(_employee("100K"), "3000")
        assert result.tax_due_this_period == Decimal("616.67")
        assert result.personal_allowance_used == Decimal("0")

    def test_calculation_log_line(self):
        result = self._calc(_employee(), "3000")
        assert result.calculation == (
            "Cumulative (Period 1): Pay £3000.00, Allowance £1047.50, "
            "Taxable £1952.50, Tax £390.50"
        )


class TestNonCumulativeTax:
    """Week1/month1 basis and the 0T emergency code."""

    def setup_method(self):
        self.engine = TaxCalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, employee, gross, period_number=1, ytd=None):
        return self.engine.calculate(
            employee=employee,
            gross_pay=Decimal(gross),
            period_type=PeriodType.MONTHLY,
            period_number=period_number,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
        )

    def test_month1_ignores_ytd(self):
        employee = _employee(tax_code_basis=TaxCodeBasis.WEEK1_MONTH1)
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("15000"), tax_paid_ytd=Decimal("100"))
        result = self._calc(employee, "3000", period_number=6, ytd=ytd)

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_paid_ytd == Decimal("490.50")
        assert result.basis == TaxCodeBasis.WEEK1_MONTH1
        assert result.calculation.startswith("Week1/Month1: ")

    def test_emergency_0t_has_no_allowance(self):
        result = self._calc(_employee("0T"), "3000")

        assert result.tax_due_this_period == Decimal("600.00")
        assert result.basis == TaxCodeBasis.WEEK1_MONTH1
        assert result.personal_allowance_used == Decimal("0")
        assert result.calculation.startswith("0T Emergency: ")


class TestFlatRateCodes:
    """BR, D0, D1 and NT."""

    def setup_method(self):
        self.engine = TaxCalculationEngine()
        self.config = get_default_tax_year_config()

    def _calc(self, code, gross="3000", ytd=None):
        return self.engine.calculate(
            employee=_employee(code),
            gross_pay=Decimal(gross),
            period_type=PeriodType.MONTHLY,
            period_number=1,
            tax_year_config=self.config,
            ytd=ytd or create_default_ytd(),
        )

    @pytest.mark.parametrize(
        "code, expected",
        [("BR", "600.00"), ("D0", "1200.00"), ("D1", "1350.00")],
    )
    def test_flat_rate(self, code, expected):
        result = self._calc(code)
        assert result.tax_due_this_period == Decimal(expected)
        assert result.personal_allowance_used == Decimal("0")
        assert len(result.tax_bands) == 1

    def test_br_log_line(self):
        assert self._calc("BR").calculation == "BR: Flat 20% on £3000.00 = £600.00"

    def test_nt_deducts_nothing(self):
        ytd = EmployeeYTDData(tax_paid_ytd=Decimal("250"))
        result = self._calc("NT", ytd=ytd)

        assert result.tax_due_this_period == Decimal("0")
        assert result.tax_paid_ytd == Decimal("250")
        assert result.calculation == "NT: No tax deducted"


class TestTaxEngineTrace:
    """Every invocation emits PAYROLL_ENGINE_TRACE."""

    def test_trace_emitted(self, captured_logs):
        TaxCalculationEngine().calculate(
            employee=_employee(),
            gross_pay=Decimal("3000"),
            period_type=PeriodType.MONTHLY,
            period_number=1,
            tax_year_config=get_default_tax_year_config(),
            ytd=create_default_ytd(),
        )

        traces = [r for r in captured_logs() if r["message"] == "PAYROLL_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "tax"
        assert traces[0]["engine_version"] == "1.0"
