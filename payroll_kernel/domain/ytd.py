"""
Year-to-date ledger snapshot.

Responsibility:
    ``EmployeeYTDData`` holds one employee's cumulative figures for one tax
    year. Snapshots are immutable: the orchestrator produces a new snapshot
    per pay period and the caller persists it.

Invariants enforced:
    - Every field is a Decimal.
    - Within a tax year each field is non-decreasing; ``regressions()``
      reports the fields where a later snapshot is lower than an earlier one.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any

from payroll_kernel.domain.employee import StudentLoanPlan
from payroll_kernel.domain.values import ZERO, to_decimal


@dataclass(frozen=True)
class EmployeeYTDData:
    """Cumulative pay and deduction figures for one employee and tax year."""

    gross_pay_ytd: Decimal = ZERO
    taxable_pay_ytd: Decimal = ZERO
    tax_paid_ytd: Decimal = ZERO
    niable_pay_ytd: Decimal = ZERO
    employee_ni_paid_ytd: Decimal = ZERO
    employer_ni_paid_ytd: Decimal = ZERO
    pensionable_pay_ytd: Decimal = ZERO
    employee_pension_ytd: Decimal = ZERO
    employer_pension_ytd: Decimal = ZERO
    student_loan_plan1_ytd: Decimal = ZERO
    student_loan_plan2_ytd: Decimal = ZERO
    student_loan_plan4_ytd: Decimal = ZERO
    postgraduate_loan_ytd: Decimal = ZERO

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, f.name, to_decimal(value))

    def student_loan_ytd(self, plan: StudentLoanPlan) -> Decimal:
        """YTD repaid under one loan plan."""
        return getattr(self, _PLAN_FIELDS[StudentLoanPlan(plan)])

    def regressions(self, later: EmployeeYTDData) -> list[str]:
        """Names of fields that are lower in ``later`` than in this snapshot."""
        return [
            f.name
            for f in fields(self)
            if getattr(later, f.name) < getattr(self, f.name)
        ]

    def to_dict(self) -> dict[str, str]:
        return {f.name: str(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmployeeYTDData:
        """Build from a stored record; missing fields default to zero."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: to_decimal(v) for k, v in data.items() if k in known})


_PLAN_FIELDS = {
    StudentLoanPlan.PLAN1: "student_loan_plan1_ytd",
    StudentLoanPlan.PLAN2: "student_loan_plan2_ytd",
    StudentLoanPlan.PLAN4: "student_loan_plan4_ytd",
    StudentLoanPlan.POSTGRADUATE: "postgraduate_loan_ytd",
}


def student_loan_ytd_field(plan: StudentLoanPlan) -> str:
    """Name of the YTD field tracking ``plan``."""
    return _PLAN_FIELDS[StudentLoanPlan(plan)]


def create_default_ytd() -> EmployeeYTDData:
    """All-zero YTD for an employee with no history in the tax year."""
    return EmployeeYTDData()
