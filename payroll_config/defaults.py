"""
Built-in 2024/25 UK tax-year fixture.

Reference data, not logic: these are the constants the payroll engine
ships with and must be reproduced exactly. Companies override them by
registering their own ``TaxYearConfiguration`` (see ``payroll_config``).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from payroll_config.schema import ScottishBands, TaxYearConfiguration


def get_default_tax_year_config() -> TaxYearConfiguration:
    """Return the hard-coded 2024/25 configuration."""
    return TaxYearConfiguration(
        tax_year="2024-25",
        effective_from=date(2024, 4, 6),
        effective_to=date(2025, 4, 5),
        # England & NI tax rates
        personal_allowance=Decimal("12570"),
        personal_allowance_monthly=Decimal("1047.50"),
        basic_rate_limit=Decimal("50270"),
        higher_rate_limit=Decimal("125140"),
        basic_rate=Decimal("0.20"),
        higher_rate=Decimal("0.40"),
        additional_rate=Decimal("0.45"),
        # Scottish tax rates
        scottish_starter_rate=Decimal("0.19"),
        scottish_basic_rate=Decimal("0.20"),
        scottish_intermediate_rate=Decimal("0.21"),
        scottish_higher_rate=Decimal("0.42"),
        scottish_top_rate=Decimal("0.47"),
        scottish_bands=ScottishBands(
            starter_limit=Decimal("14876"),
            basic_limit=Decimal("26561"),
            intermediate_limit=Decimal("43662"),
            higher_limit=Decimal("75000"),
        ),
        # Welsh tax rates
        welsh_basic_rate=Decimal("0.20"),
        welsh_higher_rate=Decimal("0.40"),
        welsh_additional_rate=Decimal("0.45"),
        # National Insurance
        ni_primary_threshold_annual=Decimal("12570"),
        ni_primary_threshold_monthly=Decimal("1048"),
        ni_primary_threshold_weekly=Decimal("242"),
        ni_upper_earnings_limit_annual=Decimal("50270"),
        ni_upper_earnings_limit_monthly=Decimal("4189"),
        ni_upper_earnings_limit_weekly=Decimal("967"),
        ni_primary_rate=Decimal("0.12"),
        ni_primary_rate_above_uel=Decimal("0.02"),
        ni_secondary_threshold_annual=Decimal("9100"),
        ni_secondary_threshold_monthly=Decimal("758"),
        ni_secondary_threshold_weekly=Decimal("175"),
        ni_employer_rate=Decimal("0.138"),
        ni_apprentice_upper_secondary_threshold_annual=Decimal("50270"),
        ni_apprentice_rate=Decimal("0"),
        # Student loans
        student_loan_plan1_threshold_annual=Decimal("22015"),
        student_loan_plan2_threshold_annual=Decimal("27295"),
        student_loan_plan4_threshold_annual=Decimal("27660"),
        postgraduate_loan_threshold_annual=Decimal("21000"),
        student_loan_rate=Decimal("0.09"),
        postgraduate_loan_rate=Decimal("0.06"),
        # Pension auto-enrolment
        auto_enrolment_lower_limit_annual=Decimal("6240"),
        auto_enrolment_upper_limit_annual=Decimal("50270"),
        auto_enrolment_earnings_threshold_annual=Decimal("10000"),
        minimum_employee_contribution=Decimal("0.05"),
        minimum_employer_contribution=Decimal("0.03"),
        total_minimum_contribution=Decimal("0.08"),
        # Statutory payments
        statutory_sick_pay_weekly=Decimal("116.75"),
        statutory_maternity_pay_weekly=Decimal("184.03"),
        statutory_paternity_pay_weekly=Decimal("184.03"),
        statutory_adoption_pay_weekly=Decimal("184.03"),
        statutory_shared_parental_pay_weekly=Decimal("184.03"),
        statutory_parental_bereavement_pay_weekly=Decimal("184.03"),
        smp_higher_rate=Decimal("0.90"),
        # Apprenticeship levy
        apprenticeship_levy_rate=Decimal("0.005"),
        apprenticeship_levy_allowance=Decimal("15000"),
        apprenticeship_levy_threshold=Decimal("3000000"),
        is_active=True,
    )
