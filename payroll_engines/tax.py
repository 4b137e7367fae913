"""
Tax Engine - PAYE income tax for one pay period.

Responsibility:
    Parse the employee's tax code, select the regional rate bands
    (rest of UK, Scottish ``S`` prefix, Welsh ``C`` prefix) and compute the
    income tax due this period on either the cumulative or the
    week1/month1 basis. Tracks its own tax-paid YTD.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Invoked by
    ``payroll_services.payroll_engine.PayrollEngine``.

Invariants enforced:
    - Cumulative: tax this period = max(0, tax on taxable pay to date
      - tax already paid YTD). Refunds are never produced.
    - Band limits are widths of *taxable* income (threshold minus personal
      allowance) pro-rated to the period, so the personal allowance is
      never counted twice.
    - ``BR``/``D0``/``D1`` apply one flat rate to the whole period's pay;
      ``NT`` deducts nothing and leaves tax-paid YTD unchanged.
    - ``0T`` always uses week1/month1 with a zero allowance.

Failure modes:
    - An unparseable tax code falls back to ``1257L`` with a warning log
      (``tax_code_invalid_fallback``). Callers are expected to reject bad
      codes through ``validate_tax_code`` first.

Usage:
    from payroll_engines.tax import TaxCalculationEngine

    result = TaxCalculationEngine().calculate(
        employee=employee,
        gross_pay=Decimal("3000"),
        period_type=PeriodType.MONTHLY,
        period_number=1,
        tax_year_config=config,
        ytd=create_default_ytd(),
    )
    result.tax_due_this_period  # Decimal("390.50")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_config.schema import TaxYearConfiguration
from payroll_engines.contracts import TAX_CONTRACT
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.employee import DEFAULT_TAX_CODE, Employee, TaxCodeBasis
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.validation import FormatCheck
from payroll_kernel.domain.values import ZERO, format_gbp, format_percent, round_money
from payroll_kernel.domain.ytd import EmployeeYTDData
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

_STANDARD_CODE = re.compile(r"^(S|C)?(\d+)([LMNTK])$")

INVALID_TAX_CODE_MESSAGE = (
    "Invalid tax code format. Expected: 1257L, S1257L, C1257L, BR, D0, D1, NT, or 0T"
)


class TaxCodeType(str, Enum):
    """How a tax code is applied."""

    STANDARD = "standard"
    BR = "BR"  # all pay at basic rate
    D0 = "D0"  # all pay at higher rate
    D1 = "D1"  # all pay at additional rate
    NT = "NT"  # no tax
    ZERO_T = "0T"  # no allowance, non-cumulative


class TaxRegime(str, Enum):
    """Rate-band set selected by the tax code prefix."""

    RUK = "ruk"
    SCOTTISH = "scottish"
    WELSH = "welsh"


_PREFIX_REGIME = {"": TaxRegime.RUK, "S": TaxRegime.SCOTTISH, "C": TaxRegime.WELSH}

_SPECIAL_CODES = {t.value: t for t in TaxCodeType if t is not TaxCodeType.STANDARD}


@dataclass(frozen=True)
class ParsedTaxCode:
    """A tax code broken into its parts. ``allowance`` is annual, in pounds."""

    code: str
    code_type: TaxCodeType
    allowance: Decimal = ZERO
    prefix: str = ""
    suffix: str = ""

    @property
    def regime(self) -> TaxRegime:
        return _PREFIX_REGIME[self.prefix]


@dataclass(frozen=True)
class TaxBandSlice:
    """Income charged in one band and the tax on it."""

    band: str
    rate: Decimal
    amount: Decimal
    tax_on_band: Decimal


@dataclass(frozen=True)
class TaxCalculationResult:
    """Income tax outcome for one period."""

    tax_code: str
    basis: TaxCodeBasis
    taxable_pay_this_period: Decimal
    tax_due_this_period: Decimal
    tax_paid_ytd: Decimal
    personal_allowance_used: Decimal
    tax_bands: tuple[TaxBandSlice, ...] = field(default_factory=tuple)
    calculation: str = ""


def validate_tax_code(tax_code: str) -> FormatCheck:
    """Check a tax code's format without interpreting it."""
    upper = tax_code.strip().upper()
    if upper in _SPECIAL_CODES or _STANDARD_CODE.match(upper):
        return FormatCheck.ok()
    return FormatCheck.fail(INVALID_TAX_CODE_MESSAGE)


def parse_tax_code(tax_code: str | None) -> ParsedTaxCode:
    """
    Parse a tax code.

    ``K`` codes carry a negative allowance. A missing code parses as
    ``1257L``; an unparseable one also falls back to ``1257L`` and logs a
    warning.
    """
    upper = (tax_code or DEFAULT_TAX_CODE).strip().upper()

    special = _SPECIAL_CODES.get(upper)
    if special is not None:
        return ParsedTaxCode(code=upper, code_type=special)

    match = _STANDARD_CODE.match(upper)
    if match is None:
        logger.warning(
            "tax_code_invalid_fallback",
            extra={"tax_code": tax_code, "fallback": DEFAULT_TAX_CODE},
        )
        return parse_tax_code(DEFAULT_TAX_CODE)

    prefix, digits, suffix = match.group(1) or "", match.group(2), match.group(3)
    allowance = Decimal(digits) * 10
    if suffix == "K":
        allowance = -allowance
    return ParsedTaxCode(
        code=upper,
        code_type=TaxCodeType.STANDARD,
        allowance=allowance,
        prefix=prefix,
        suffix=suffix,
    )


@dataclass(frozen=True)
class _Band:
    name: str
    rate: Decimal
    width: Decimal | None  # None = unbounded top band


def _annual_bands(regime: TaxRegime, config: TaxYearConfiguration) -> list[_Band]:
    """Annual taxable-income band widths for a regime."""
    pa = config.personal_allowance

    if regime is TaxRegime.SCOTTISH:
        sb = config.scottish_bands
        limits = [
            ("Starter Rate", config.scottish_starter_rate, sb.starter_limit - pa),
            ("Basic Rate", config.scottish_basic_rate, sb.basic_limit - pa),
            ("Intermediate Rate", config.scottish_intermediate_rate, sb.intermediate_limit - pa),
            ("Higher Rate", config.scottish_higher_rate, sb.higher_limit - pa),
        ]
        top = _Band("Top Rate", config.scottish_top_rate, None)
    else:
        if regime is TaxRegime.WELSH:
            rates = (config.welsh_basic_rate, config.welsh_higher_rate, config.welsh_additional_rate)
        else:
            rates = (config.basic_rate, config.higher_rate, config.additional_rate)
        limits = [
            ("Basic Rate", rates[0], config.basic_rate_limit - pa),
            ("Higher Rate", rates[1], config.higher_rate_limit),
        ]
        top = _Band("Additional Rate", rates[2], None)

    bands: list[_Band] = []
    floor = ZERO
    for name, rate, upper in limits:
        upper = max(upper, floor)
        bands.append(_Band(name, rate, upper - floor))
        floor = upper
    bands.append(top)
    return bands


def _prorate(bands: list[_Band], periods: int, periods_per_year: int) -> list[_Band]:
    return [
        _Band(b.name, b.rate, None if b.width is None else b.width * periods / periods_per_year)
        for b in bands
    ]


def _tax_on(amount: Decimal, bands: list[_Band]) -> tuple[Decimal, tuple[TaxBandSlice, ...]]:
    """Progressive tax on ``amount``; returns unrounded total and slices."""
    total = ZERO
    slices: list[TaxBandSlice] = []
    remaining = amount
    for band in bands:
        if remaining <= 0:
            break
        in_band = remaining if band.width is None else min(remaining, band.width)
        tax = in_band * band.rate
        total += tax
        slices.append(
            TaxBandSlice(
                band=band.name,
                rate=band.rate,
                amount=round_money(in_band),
                tax_on_band=round_money(tax),
            )
        )
        remaining -= in_band
    return total, tuple(slices)


def _regime_note(regime: TaxRegime) -> str:
    if regime is TaxRegime.SCOTTISH:
        return ", Scottish rates"
    if regime is TaxRegime.WELSH:
        return ", Welsh rates"
    return ""


class TaxCalculationEngine:
    """
    PAYE income tax calculator.

    Pure functions - no I/O. All rates and thresholds come from the
    ``TaxYearConfiguration`` passed to ``calculate``.
    """

    @traced_engine(
        TAX_CONTRACT.engine_name,
        TAX_CONTRACT.engine_version,
        TAX_CONTRACT.input_fingerprint_rules,
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
    ) -> TaxCalculationResult:
        """Compute income tax due for the period."""
        period_type = PeriodType(period_type)
        parsed = parse_tax_code(employee.tax_code)
        paid = ytd.tax_paid_ytd

        if parsed.code_type is TaxCodeType.NT:
            return TaxCalculationResult(
                tax_code=parsed.code,
                basis=TaxCodeBasis.CUMULATIVE,
                taxable_pay_this_period=gross_pay,
                tax_due_this_period=ZERO,
                tax_paid_ytd=paid,
                personal_allowance_used=ZERO,
                calculation="NT: No tax deducted",
            )

        if parsed.code_type in (TaxCodeType.BR, TaxCodeType.D0, TaxCodeType.D1):
            return self._flat_rate(parsed, gross_pay, paid, tax_year_config)

        if parsed.code_type is TaxCodeType.ZERO_T:
            return self._week1_month1(
                parsed, gross_pay, paid, period_type, tax_year_config, emergency=True
            )

        if employee.tax_code_basis == TaxCodeBasis.WEEK1_MONTH1:
            return self._week1_month1(parsed, gross_pay, paid, period_type, tax_year_config)

        return self._cumulative(
            parsed, gross_pay, ytd.taxable_pay_ytd, paid, period_type, period_number,
            tax_year_config,
        )

    def _cumulative(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        taxable_pay_ytd: Decimal,
        tax_paid_ytd: Decimal,
        period_type: PeriodType,
        period_number: int,
        config: TaxYearConfiguration,
    ) -> TaxCalculationResult:
        periods_per_year = period_type.periods_per_year
        allowance_to_date = parsed.allowance * period_number / periods_per_year
        pay_to_date = taxable_pay_ytd + gross_pay
        taxable_to_date = max(ZERO, pay_to_date - allowance_to_date)

        bands = _prorate(
            _annual_bands(parsed.regime, config), period_number, periods_per_year
        )
        tax_to_date, slices = _tax_on(taxable_to_date, bands)
        tax_this_period = max(ZERO, round_money(tax_to_date) - tax_paid_ytd)

        return TaxCalculationResult(
            tax_code=parsed.code,
            basis=TaxCodeBasis.CUMULATIVE,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax_this_period,
            tax_paid_ytd=tax_paid_ytd + tax_this_period,
            personal_allowance_used=round_money(
                max(ZERO, min(pay_to_date, allowance_to_date))
            ),
            tax_bands=slices,
            calculation=(
                f"Cumulative (Period {period_number}{_regime_note(parsed.regime)}): "
                f"Pay {format_gbp(pay_to_date)}, "
                f"Allowance {format_gbp(allowance_to_date)}, "
                f"Taxable {format_gbp(taxable_to_date)}, "
                f"Tax {format_gbp(tax_this_period)}"
            ),
        )

    def _week1_month1(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        tax_paid_ytd: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        emergency: bool = False,
    ) -> TaxCalculationResult:
        periods_per_year = period_type.periods_per_year
        allowance = parsed.allowance / periods_per_year
        taxable = max(ZERO, gross_pay - allowance)

        bands = _prorate(_annual_bands(parsed.regime, config), 1, periods_per_year)
        tax, slices = _tax_on(taxable, bands)
        tax = round_money(tax)

        if emergency:
            calculation = (
                f"0T Emergency: No allowances, {format_gbp(gross_pay)} "
                f"at standard rates = {format_gbp(tax)}"
            )
        else:
            calculation = (
                f"Week1/Month1{_regime_note(parsed.regime)}: "
                f"Pay {format_gbp(gross_pay)}, Allowance {format_gbp(allowance)}, "
                f"Taxable {format_gbp(taxable)}, Tax {format_gbp(tax)}"
            )

        return TaxCalculationResult(
            tax_code=parsed.code,
            basis=TaxCodeBasis.WEEK1_MONTH1,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax,
            tax_paid_ytd=tax_paid_ytd + tax,
            personal_allowance_used=round_money(max(ZERO, min(gross_pay, allowance))),
            tax_bands=slices,
            calculation=calculation,
        )

    def _flat_rate(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        tax_paid_ytd: Decimal,
        config: TaxYearConfiguration,
    ) -> TaxCalculationResult:
        band, rate = {
            TaxCodeType.BR: ("Basic Rate", config.basic_rate),
            TaxCodeType.D0: ("Higher Rate", config.higher_rate),
            TaxCodeType.D1: ("Additional Rate", config.additional_rate),
        }[parsed.code_type]
        tax = round_money(max(ZERO, gross_pay) * rate)

        return TaxCalculationResult(
            tax_code=parsed.code,
            basis=TaxCodeBasis.CUMULATIVE,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax,
            tax_paid_ytd=tax_paid_ytd + tax,
            personal_allowance_used=ZERO,
            tax_bands=(
                TaxBandSlice(
                    band=band, rate=rate, amount=round_money(gross_pay), tax_on_band=tax
                ),
            ),
            calculation=(
                f"{parsed.code}: Flat {format_percent(rate, 0)} on "
                f"{format_gbp(gross_pay)} = {format_gbp(tax)}"
            ),
        )
