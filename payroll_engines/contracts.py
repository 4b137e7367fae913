"""
Module: payroll_engines.contracts
Responsibility:
    The shared calculator contract (``PeriodCalculator``) and the typed
    declarations (``EngineContract``) for each pure payroll engine.  Each
    contract declares engine name, version, the tax-year configuration
    fields the engine reads, and fingerprint rules used by the tracer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel domain types.

Invariants enforced:
    - Every calculator exposes the same keyword-only ``calculate()``
      signature, so the orchestrator composes them without special cases
      and tests can substitute any object with that method.
    - Every result carries a human-readable ``calculation`` line for the
      audit log.
    - Adding an engine requires only a new EngineContract and registration
      in ``ENGINE_CONTRACTS``.

Failure modes:
    - KeyError when looking up an unregistered engine name in
      ``ENGINE_CONTRACTS``.

Audit relevance:
    ``engine_version`` is recorded in every PAYROLL_ENGINE_TRACE record, so
    a stored payslip can be tied to the engine revision that produced it.

Usage:
    from payroll_engines.contracts import ENGINE_CONTRACTS

    contract = ENGINE_CONTRACTS["tax"]
    assert contract.engine_version == "1.0"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from payroll_kernel.domain.employee import Employee
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.ytd import EmployeeYTDData

if TYPE_CHECKING:
    from payroll_config.schema import TaxYearConfiguration


class CalculationResult(Protocol):
    """Anything a calculator returns: at minimum, its audit log line."""

    @property
    def calculation(self) -> str: ...


ResultT = TypeVar("ResultT", bound=CalculationResult, covariant=True)


@runtime_checkable
class PeriodCalculator(Protocol[ResultT]):
    """One stage of the payroll pipeline.

    Every argument is passed by keyword. Calculators that do not need a
    given argument (student loans ignore ``period_number``) still accept it.
    ``as_of`` is the period end date, used only for age-dependent rules.
    """

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
    ) -> ResultT: ...


@dataclass(frozen=True)
class EngineContract:
    """Declares the contract for a pure payroll calculator.

    Attributes:
        engine_name: Unique engine identifier (used in trace records).
        engine_version: Version of the engine implementation.
        config_fields: ``TaxYearConfiguration`` attributes the engine reads.
        input_fingerprint_rules: Keyword arguments hashed into the input
            fingerprint for replay tracing.
        description: Human-readable purpose of this engine.
    """

    engine_name: str
    engine_version: str
    config_fields: tuple[str, ...] = ()
    input_fingerprint_rules: tuple[str, ...] = ()
    description: str = ""


_COMMON_FINGERPRINT = ("gross_pay", "period_type", "period_number")


# ---------------------------------------------------------------------------
# Income Tax
# ---------------------------------------------------------------------------

TAX_CONTRACT = EngineContract(
    engine_name="tax",
    engine_version="1.0",
    config_fields=(
        "personal_allowance",
        "basic_rate_limit",
        "higher_rate_limit",
        "basic_rate",
        "higher_rate",
        "additional_rate",
        "scottish_starter_rate",
        "scottish_basic_rate",
        "scottish_intermediate_rate",
        "scottish_higher_rate",
        "scottish_top_rate",
        "scottish_bands",
        "welsh_basic_rate",
        "welsh_higher_rate",
        "welsh_additional_rate",
    ),
    input_fingerprint_rules=_COMMON_FINGERPRINT,
    description="PAYE income tax from tax code, cumulative or week1/month1.",
)


# ---------------------------------------------------------------------------
# National Insurance
# ---------------------------------------------------------------------------

NI_CONTRACT = EngineContract(
    engine_name="national_insurance",
    engine_version="1.0",
    config_fields=(
        "ni_primary_threshold_annual",
        "ni_primary_threshold_monthly",
        "ni_primary_threshold_weekly",
        "ni_upper_earnings_limit_annual",
        "ni_upper_earnings_limit_monthly",
        "ni_upper_earnings_limit_weekly",
        "ni_primary_rate",
        "ni_primary_rate_above_uel",
        "ni_secondary_threshold_annual",
        "ni_secondary_threshold_monthly",
        "ni_secondary_threshold_weekly",
        "ni_employer_rate",
    ),
    input_fingerprint_rules=_COMMON_FINGERPRINT + ("as_of",),
    description="Class 1 employee and employer NI by category letter.",
)


# ---------------------------------------------------------------------------
# Student and postgraduate loans
# ---------------------------------------------------------------------------

STUDENT_LOAN_CONTRACT = EngineContract(
    engine_name="student_loan",
    engine_version="1.0",
    config_fields=(
        "student_loan_plan1_threshold_annual",
        "student_loan_plan2_threshold_annual",
        "student_loan_plan4_threshold_annual",
        "postgraduate_loan_threshold_annual",
        "student_loan_rate",
        "postgraduate_loan_rate",
    ),
    input_fingerprint_rules=("gross_pay", "period_type"),
    description="Plan 1/2/4 and postgraduate loan repayments above threshold.",
)


# ---------------------------------------------------------------------------
# Workplace pension
# ---------------------------------------------------------------------------

PENSION_CONTRACT = EngineContract(
    engine_name="pension",
    engine_version="1.0",
    config_fields=(
        "auto_enrolment_lower_limit_annual",
        "auto_enrolment_upper_limit_annual",
        "minimum_employee_contribution",
        "minimum_employer_contribution",
    ),
    input_fingerprint_rules=("gross_pay", "period_type"),
    description="Auto-enrolment contributions on qualifying earnings.",
)


ENGINE_CONTRACTS: dict[str, EngineContract] = {
    contract.engine_name: contract
    for contract in (
        TAX_CONTRACT,
        NI_CONTRACT,
        STUDENT_LOAN_CONTRACT,
        PENSION_CONTRACT,
    )
}
