"""
Student Loan Engine - income-contingent loan repayments.

Responsibility:
    Deduct repayments for at most one undergraduate plan (1, 2 or 4) and,
    independently, a postgraduate loan. Both may apply in the same period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Per-period threshold = annual threshold / periods per year, rounded
      to the penny before use.
    - Deduction = max(0, gross - threshold) x rate, rounded to the penny;
      zero whenever pay is at or below the threshold.
    - Rates come from the tax-year configuration (9% undergraduate, 6%
      postgraduate for 2024/25).
    - Absence of any loan produces an explicit "no student loan" result
      with a zero total, never ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from payroll_config.schema import TaxYearConfiguration
from payroll_engines.contracts import STUDENT_LOAN_CONTRACT
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.employee import UNDERGRADUATE_PLANS, Employee, StudentLoanPlan
from payroll_kernel.domain.periods import PeriodType
from payroll_kernel.domain.validation import FormatCheck
from payroll_kernel.domain.values import ZERO, format_gbp, format_percent, round_money
from payroll_kernel.domain.ytd import EmployeeYTDData
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.student_loan")

VALID_STUDENT_LOAN_PLANS = ("none", "plan1", "plan2", "plan4")

NO_STUDENT_LOAN = "No student loan"

_PLAN_LABELS = {
    StudentLoanPlan.PLAN1: "Plan 1",
    StudentLoanPlan.PLAN2: "Plan 2",
    StudentLoanPlan.PLAN4: "Plan 4",
    StudentLoanPlan.POSTGRADUATE: "Postgraduate Loan",
}


@dataclass(frozen=True)
class StudentLoanPlanResult:
    plan: StudentLoanPlan
    threshold: Decimal
    rate: Decimal
    deduction: Decimal
    ytd: Decimal


@dataclass(frozen=True)
class StudentLoanCalculationResult:
    """All loan repayments for one period."""

    has_student_loan: bool
    plans: tuple[StudentLoanPlanResult, ...] = field(default_factory=tuple)
    total_deduction: Decimal = ZERO
    calculation: str = NO_STUDENT_LOAN

    def plan(self, plan: StudentLoanPlan) -> StudentLoanPlanResult | None:
        """The entry for ``plan``, if it applied this period."""
        for entry in self.plans:
            if entry.plan == plan:
                return entry
        return None


def validate_student_loan_plan(plan: str) -> FormatCheck:
    """Check a plan identifier (case-insensitive)."""
    if plan.strip().lower() not in VALID_STUDENT_LOAN_PLANS:
        return FormatCheck.fail(
            f"Invalid student loan plan. Valid plans: {', '.join(VALID_STUDENT_LOAN_PLANS)}"
        )
    return FormatCheck.ok()


def annual_threshold(plan: StudentLoanPlan, config: TaxYearConfiguration) -> Decimal:
    return {
        StudentLoanPlan.PLAN1: config.student_loan_plan1_threshold_annual,
        StudentLoanPlan.PLAN2: config.student_loan_plan2_threshold_annual,
        StudentLoanPlan.PLAN4: config.student_loan_plan4_threshold_annual,
        StudentLoanPlan.POSTGRADUATE: config.postgraduate_loan_threshold_annual,
    }[plan]


def applicable_plans(employee: Employee) -> list[StudentLoanPlan]:
    """Undergraduate plan (if any) followed by the postgraduate loan (if any)."""
    plans: list[StudentLoanPlan] = []
    raw = (employee.student_loan_plan or StudentLoanPlan.NONE.value).strip().lower()
    try:
        undergraduate = StudentLoanPlan(raw)
    except ValueError:
        logger.warning(
            "student_loan_plan_unknown",
            extra={"student_loan_plan": employee.student_loan_plan},
        )
        undergraduate = StudentLoanPlan.NONE
    if undergraduate is StudentLoanPlan.POSTGRADUATE:
        logger.warning(
            "student_loan_plan_postgraduate_ignored",
            extra={"has_postgraduate_loan": employee.has_postgraduate_loan},
        )
    elif undergraduate in UNDERGRADUATE_PLANS:
        plans.append(undergraduate)
    if employee.has_postgraduate_loan:
        plans.append(StudentLoanPlan.POSTGRADUATE)
    return plans


class StudentLoanCalculationEngine:
    """Student and postgraduate loan repayment calculator."""

    @traced_engine(
        STUDENT_LOAN_CONTRACT.engine_name,
        STUDENT_LOAN_CONTRACT.engine_version,
        STUDENT_LOAN_CONTRACT.input_fingerprint_rules,
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
    ) -> StudentLoanCalculationResult:
        """Compute every applicable loan repayment for the period."""
        plans = applicable_plans(employee)
        if not plans:
            return StudentLoanCalculationResult(has_student_loan=False)

        periods_per_year = PeriodType(period_type).periods_per_year
        entries: list[StudentLoanPlanResult] = []
        lines: list[str] = []
        for plan in plans:
            threshold = round_money(annual_threshold(plan, tax_year_config) / periods_per_year)
            rate = (
                tax_year_config.postgraduate_loan_rate
                if plan is StudentLoanPlan.POSTGRADUATE
                else tax_year_config.student_loan_rate
            )
            deduction = round_money(max(ZERO, gross_pay - threshold) * rate)
            entries.append(
                StudentLoanPlanResult(
                    plan=plan,
                    threshold=threshold,
                    rate=rate,
                    deduction=deduction,
                    ytd=ytd.student_loan_ytd(plan) + deduction,
                )
            )
            lines.append(
                f"{_PLAN_LABELS[plan]}: ({format_gbp(gross_pay)} - {format_gbp(threshold)}) "
                f"x {format_percent(rate, 0)} = {format_gbp(deduction)}"
            )

        total = sum((e.deduction for e in entries), ZERO)
        return StudentLoanCalculationResult(
            has_student_loan=True,
            plans=tuple(entries),
            total_deduction=total,
            calculation="; ".join(lines),
        )
