"""
Pure domain layer.

Immutable value types and pure helpers with NO dependencies on:
- Configuration files
- Persistence
- Time/clock (except the injectable Clock itself)
- I/O
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.employee import (
    DEFAULT_NI_CATEGORY,
    DEFAULT_TAX_CODE,
    UNDERGRADUATE_PLANS,
    AutoEnrolmentStatus,
    DirectorNIMethod,
    Employee,
    StudentLoanPlan,
    TaxCodeBasis,
)
from payroll_kernel.domain.periods import (
    PeriodType,
    period_number_for_date,
    tax_year_label,
    tax_year_start,
)
from payroll_kernel.domain.validation import FormatCheck
from payroll_kernel.domain.values import (
    PENNY,
    ZERO,
    format_gbp,
    format_percent,
    percent_to_rate,
    round_money,
    to_decimal,
)
from payroll_kernel.domain.ytd import (
    EmployeeYTDData,
    create_default_ytd,
    student_loan_ytd_field,
)

__all__ = [
    "AutoEnrolmentStatus",
    "Clock",
    "DEFAULT_NI_CATEGORY",
    "DEFAULT_TAX_CODE",
    "DeterministicClock",
    "DirectorNIMethod",
    "Employee",
    "EmployeeYTDData",
    "FormatCheck",
    "PENNY",
    "PeriodType",
    "StudentLoanPlan",
    "SystemClock",
    "TaxCodeBasis",
    "UNDERGRADUATE_PLANS",
    "ZERO",
    "create_default_ytd",
    "format_gbp",
    "format_percent",
    "percent_to_rate",
    "period_number_for_date",
    "round_money",
    "student_loan_ytd_field",
    "tax_year_label",
    "tax_year_start",
    "to_decimal",
]
