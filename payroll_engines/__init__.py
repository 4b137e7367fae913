"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the four pure
    payroll calculators.  This is the canonical import surface for higher
    layers (payroll_services, scripts).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel and payroll_config.schema.
    MUST NOT import payroll_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates (period end, for age rules) are passed in as ``as_of``.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.
    - Uniform contract: every calculator implements ``PeriodCalculator``.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from payroll_engines import (
        NICalculationEngine,
        PensionCalculationEngine,
        StudentLoanCalculationEngine,
        TaxCalculationEngine,
    )
"""

from payroll_engines.contracts import (
    ENGINE_CONTRACTS,
    CalculationResult,
    EngineContract,
    PeriodCalculator,
)
from payroll_engines.national_insurance import (
    VALID_NI_CATEGORIES,
    NICalculationEngine,
    NICalculationResult,
    NIRates,
    NIThresholds,
    period_thresholds,
    validate_ni_category,
)
from payroll_engines.pension import (
    PensionCalculationEngine,
    PensionCalculationResult,
    validate_pension_contribution,
)
from payroll_engines.student_loan import (
    VALID_STUDENT_LOAN_PLANS,
    StudentLoanCalculationEngine,
    StudentLoanCalculationResult,
    StudentLoanPlanResult,
    validate_student_loan_plan,
)
from payroll_engines.tax import (
    ParsedTaxCode,
    TaxBandSlice,
    TaxCalculationEngine,
    TaxCalculationResult,
    TaxCodeType,
    TaxRegime,
    parse_tax_code,
    validate_tax_code,
)
from payroll_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "CalculationResult",
    "ENGINE_CONTRACTS",
    "EngineContract",
    "NICalculationEngine",
    "NICalculationResult",
    "NIRates",
    "NIThresholds",
    "ParsedTaxCode",
    "PensionCalculationEngine",
    "PensionCalculationResult",
    "PeriodCalculator",
    "StudentLoanCalculationEngine",
    "StudentLoanCalculationResult",
    "StudentLoanPlanResult",
    "TaxBandSlice",
    "TaxCalculationEngine",
    "TaxCalculationResult",
    "TaxCodeType",
    "TaxRegime",
    "VALID_NI_CATEGORIES",
    "VALID_STUDENT_LOAN_PLANS",
    "compute_input_fingerprint",
    "parse_tax_code",
    "period_thresholds",
    "traced_engine",
    "validate_ni_category",
    "validate_pension_contribution",
    "validate_student_loan_plan",
    "validate_tax_code",
]
