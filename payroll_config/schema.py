"""
TaxYearConfiguration schema.

The legally-defined constants for one UK tax year. A configuration is
created once per tax year, never mutated, and passed by reference into
every calculator. YAML fragments are parsed into these types by the
loader; ``defaults.get_default_tax_year_config()`` is the built-in fixture.

All monetary amounts and rates are Decimal. Rates are fractions
(``Decimal("0.20")`` for 20%).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

# ---------------------------------------------------------------------------
# Scottish income tax thresholds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScottishBands:
    """Upper income limits of the Scottish starter..higher bands."""

    starter_limit: Decimal
    basic_limit: Decimal
    intermediate_limit: Decimal
    higher_limit: Decimal


# ---------------------------------------------------------------------------
# Tax year
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxYearConfiguration:
    """Immutable constants for one tax year (6 April to 5 April)."""

    tax_year: str
    effective_from: date
    effective_to: date

    # England & Northern Ireland income tax
    personal_allowance: Decimal
    personal_allowance_monthly: Decimal
    basic_rate_limit: Decimal
    higher_rate_limit: Decimal
    basic_rate: Decimal
    higher_rate: Decimal
    additional_rate: Decimal

    # Scottish income tax
    scottish_starter_rate: Decimal
    scottish_basic_rate: Decimal
    scottish_intermediate_rate: Decimal
    scottish_higher_rate: Decimal
    scottish_top_rate: Decimal
    scottish_bands: ScottishBands

    # Welsh income tax
    welsh_basic_rate: Decimal
    welsh_higher_rate: Decimal
    welsh_additional_rate: Decimal

    # National Insurance
    ni_primary_threshold_annual: Decimal
    ni_primary_threshold_monthly: Decimal
    ni_primary_threshold_weekly: Decimal
    ni_upper_earnings_limit_annual: Decimal
    ni_upper_earnings_limit_monthly: Decimal
    ni_upper_earnings_limit_weekly: Decimal
    ni_primary_rate: Decimal
    ni_primary_rate_above_uel: Decimal
    ni_secondary_threshold_annual: Decimal
    ni_secondary_threshold_monthly: Decimal
    ni_secondary_threshold_weekly: Decimal
    ni_employer_rate: Decimal
    ni_apprentice_upper_secondary_threshold_annual: Decimal
    ni_apprentice_rate: Decimal

    # Student loans
    student_loan_plan1_threshold_annual: Decimal
    student_loan_plan2_threshold_annual: Decimal
    student_loan_plan4_threshold_annual: Decimal
    postgraduate_loan_threshold_annual: Decimal
    student_loan_rate: Decimal
    postgraduate_loan_rate: Decimal

    # Pension auto-enrolment
    auto_enrolment_lower_limit_annual: Decimal
    auto_enrolment_upper_limit_annual: Decimal
    auto_enrolment_earnings_threshold_annual: Decimal
    minimum_employee_contribution: Decimal
    minimum_employer_contribution: Decimal
    total_minimum_contribution: Decimal

    # Statutory payments
    statutory_sick_pay_weekly: Decimal
    statutory_maternity_pay_weekly: Decimal
    statutory_paternity_pay_weekly: Decimal
    statutory_adoption_pay_weekly: Decimal
    statutory_shared_parental_pay_weekly: Decimal
    statutory_parental_bereavement_pay_weekly: Decimal
    smp_higher_rate: Decimal

    # Apprenticeship levy
    apprenticeship_levy_rate: Decimal
    apprenticeship_levy_allowance: Decimal
    apprenticeship_levy_threshold: Decimal

    is_active: bool = True

    def __post_init__(self) -> None:
        if self.effective_to < self.effective_from:
            raise ValueError(
                f"Tax year {self.tax_year}: effective_to {self.effective_to} "
                f"is before effective_from {self.effective_from}"
            )

    def covers(self, on_date: date) -> bool:
        """True if ``on_date`` falls inside this tax year."""
        return self.effective_from <= on_date <= self.effective_to

    def overlaps(self, other: TaxYearConfiguration) -> bool:
        return (
            self.effective_from <= other.effective_to
            and other.effective_from <= self.effective_to
        )
