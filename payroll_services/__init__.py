"""
payroll_services -- Package init and public API.

Responsibility:
    Orchestration over the pure calculators: the ``PayrollEngine``
    (validate, calculate, update YTD), the pay-run fan-out service and the
    YTD ledger seam. This is the only layer that holds state between
    calculations or reads the wall clock (through an injected ``Clock``).

Architecture position:
    Services -- orchestration over engines + kernel.

        payroll_services/ -> payroll_engines/  (allowed)
        payroll_services/ -> payroll_config/   (allowed)
        payroll_services/ -> payroll_kernel/   (allowed)
        payroll_engines/  -> payroll_services/ (FORBIDDEN)
        payroll_kernel/   -> payroll_services/ (FORBIDDEN)
"""

from payroll_services.input_validation import normalize_ni_number, validate_ni_number
from payroll_services.ledger import InMemoryYTDLedger, LedgerEntry, YTDLedger
from payroll_services.models import (
    PayrollCalculationInput,
    PayrollCalculationResult,
    ValidationResult,
)
from payroll_services.pay_run import (
    PayRunItem,
    PayRunItemResult,
    PayRunItemStatus,
    PayRunResult,
    PayRunService,
    PayRunStatus,
)
from payroll_services.payroll_engine import PayrollEngine
from payroll_services.sql_ledger import SqlYTDLedger

__all__ = [
    "InMemoryYTDLedger",
    "LedgerEntry",
    "PayRunItem",
    "PayRunItemResult",
    "PayRunItemStatus",
    "PayRunResult",
    "PayRunService",
    "PayRunStatus",
    "PayrollCalculationInput",
    "PayrollCalculationResult",
    "PayrollEngine",
    "SqlYTDLedger",
    "ValidationResult",
    "YTDLedger",
    "normalize_ni_number",
    "validate_ni_number",
]
