"""
Employee snapshot consumed by the payroll engines.

Responsibility:
    The read-only view of an employee record that the calculators need:
    identity, tax code, NI category, student-loan and pension settings.
    The storage schema for employees lives elsewhere; this is only the
    calculation contract.

Invariants enforced:
    - Frozen; the engines never modify it.
    - Coded fields (tax code, NI category, loan plan, enrolment status) are
      held as plain strings so that invalid values reach validation rather
      than failing at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

DEFAULT_TAX_CODE = "1257L"
DEFAULT_NI_CATEGORY = "A"


class TaxCodeBasis(str, Enum):
    """How PAYE is applied across the tax year."""

    CUMULATIVE = "cumulative"
    WEEK1_MONTH1 = "week1month1"


class StudentLoanPlan(str, Enum):
    """Income-contingent loan repayment schemes."""

    NONE = "none"
    PLAN1 = "plan1"
    PLAN2 = "plan2"
    PLAN4 = "plan4"
    POSTGRADUATE = "postgraduate"


UNDERGRADUATE_PLANS = (StudentLoanPlan.PLAN1, StudentLoanPlan.PLAN2, StudentLoanPlan.PLAN4)


class AutoEnrolmentStatus(str, Enum):
    """Workplace pension auto-enrolment status."""

    ELIGIBLE = "eligible"
    ENROLLED = "enrolled"
    OPTED_OUT = "opted_out"
    POSTPONED = "postponed"
    NOT_ELIGIBLE = "not_eligible"


class DirectorNIMethod(str, Enum):
    """Earnings period used for a director's NI."""

    ANNUAL = "annual"
    ALTERNATIVE = "alternative"


@dataclass(frozen=True)
class Employee:
    """An employee as seen by the payroll calculators."""

    id: str
    first_name: str = ""
    last_name: str = ""
    national_insurance_number: str | None = None
    tax_code: str | None = None
    tax_code_basis: TaxCodeBasis = TaxCodeBasis.CUMULATIVE
    ni_category: str | None = None
    is_director: bool = False
    director_ni_method: DirectorNIMethod = DirectorNIMethod.ANNUAL
    date_of_birth: date | None = None
    student_loan_plan: str | None = None
    has_postgraduate_loan: bool = False
    auto_enrolment_status: str | None = None
    pension_contribution_percentage: Decimal | None = None
    employer_pension_contribution_percentage: Decimal | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def age_on(self, on_date: date) -> int | None:
        """Age in whole years on ``on_date``, or None without a date of birth."""
        if self.date_of_birth is None:
            return None
        dob = self.date_of_birth
        age = on_date.year - dob.year
        if (on_date.month, on_date.day) < (dob.month, dob.day):
            age -= 1
        return age
