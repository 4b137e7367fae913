"""
PayrollEngine -- orchestrates one employee's pay-period calculation.

Responsibility:
    Assemble gross pay, run the four calculators in the mandated order
    (tax, National Insurance, student loan, pension), aggregate deductions,
    derive net pay, produce the updated YTD snapshot and the audit
    calculation log. Also provides the pre-calculation validation pass.

Architecture position:
    Services -- composes the pure engines. Holds no state between calls
    and performs no I/O beyond structured logging, so one instance may be
    shared across worker threads.

Invariants enforced:
    - net_pay = gross - total_deductions, rounded half away from zero to
      the penny.
    - The input (including its YTD snapshot) is never mutated; a new
      ``EmployeeYTDData`` is returned.
    - Each calculator is the source of truth for its own YTD figures;
      only the gross-pay YTD fields are incremented here.
    - ``calculate_payroll`` does not validate. ``validate_input`` is a
      separate, explicit step and never raises for bad domain values.

Failure modes:
    - Structurally malformed input (missing config attributes) raises
      ``AttributeError``/``TypeError`` from the engines.

Audit relevance:
    ``calculation_log`` on every result documents each step in
    human-readable form and is stored with the payslip. Each call also
    emits ``payroll_calculated`` and, through the engines,
    PAYROLL_ENGINE_TRACE records.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from payroll_config.defaults import get_default_tax_year_config
from payroll_config.schema import TaxYearConfiguration
from payroll_engines.contracts import PeriodCalculator
from payroll_engines.national_insurance import (
    NICalculationEngine,
    NICalculationResult,
    validate_ni_category,
)
from payroll_engines.pension import (
    PensionCalculationEngine,
    PensionCalculationResult,
    is_enrolled,
    validate_pension_contribution,
)
from payroll_engines.student_loan import (
    StudentLoanCalculationEngine,
    StudentLoanCalculationResult,
    validate_student_loan_plan,
)
from payroll_engines.tax import (
    TaxCalculationEngine,
    TaxCalculationResult,
    validate_tax_code,
)
from payroll_kernel.domain.employee import DEFAULT_TAX_CODE
from payroll_kernel.domain.values import ZERO, format_gbp, round_money
from payroll_kernel.domain.ytd import (
    EmployeeYTDData,
    create_default_ytd,
    student_loan_ytd_field,
)
from payroll_kernel.logging_config import get_logger
from payroll_services.input_validation import validate_ni_number
from payroll_services.models import (
    PayrollCalculationInput,
    PayrollCalculationResult,
    ValidationResult,
)

logger = get_logger("services.payroll_engine")


class PayrollEngine:
    """UK payroll orchestrator.

    Calculators default to the standard engines; pass replacements (any
    object implementing ``PeriodCalculator``) to test the orchestration in
    isolation.
    """

    def __init__(
        self,
        tax_engine: PeriodCalculator[TaxCalculationResult] | None = None,
        ni_engine: PeriodCalculator[NICalculationResult] | None = None,
        student_loan_engine: PeriodCalculator[StudentLoanCalculationResult] | None = None,
        pension_engine: PeriodCalculator[PensionCalculationResult] | None = None,
    ):
        self._tax = tax_engine or TaxCalculationEngine()
        self._ni = ni_engine or NICalculationEngine()
        self._student_loan = student_loan_engine or StudentLoanCalculationEngine()
        self._pension = pension_engine or PensionCalculationEngine()

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def calculate_payroll(self, data: PayrollCalculationInput) -> PayrollCalculationResult:
        """
        Calculate one pay period.

        The caller is expected to have run ``validate_input`` first; invalid
        input flows straight through the arithmetic.
        """
        employee = data.employee
        gross = data.total_gross_pay

        stage_args = dict(
            employee=employee,
            gross_pay=gross,
            period_type=data.period_type,
            period_number=data.period_number,
            tax_year_config=data.tax_year_config,
            ytd=data.ytd,
            as_of=data.period_end_date,
        )
        tax = self._tax.calculate(**stage_args)
        ni = self._ni.calculate(**stage_args)
        student_loan = self._student_loan.calculate(**stage_args)
        pension = self._pension.calculate(**stage_args)

        total_deductions = round_money(
            tax.tax_due_this_period
            + ni.employee_ni_this_period
            + student_loan.total_deduction
            + pension.employee_contribution
        )
        net_pay = round_money(gross - total_deductions)

        updated_ytd = self.update_ytd(data.ytd, gross, tax, ni, student_loan, pension)

        name = employee.full_name or employee.id
        calculation_log = (
            f"=== Payroll Calculation for {name} | {data.period_type.value} period "
            f"{data.period_number} ({data.period_start_date.isoformat()} to "
            f"{data.period_end_date.isoformat()}) ===",
            f"Tax: {tax.calculation}",
            f"NI: {ni.calculation}",
            f"Student Loan: {student_loan.calculation}",
            f"Pension: {pension.calculation}",
            f"Total Deductions: {format_gbp(total_deductions)}",
            f"Net Pay: {format_gbp(net_pay)}",
        )

        logger.info(
            "payroll_calculated",
            extra={
                "employee_id": employee.id,
                "period_type": data.period_type.value,
                "period_number": data.period_number,
                "gross_pay": str(gross),
                "total_deductions": str(total_deductions),
                "net_pay": str(net_pay),
            },
        )

        return PayrollCalculationResult(
            employee_id=employee.id,
            period_type=data.period_type,
            period_number=data.period_number,
            gross_pay=gross,
            taxable_gross_pay=gross,
            niable_gross_pay=gross,
            pensionable_gross_pay=gross,
            tax=tax,
            national_insurance=ni,
            student_loan=student_loan,
            pension=pension,
            total_deductions=total_deductions,
            net_pay=net_pay,
            updated_ytd=updated_ytd,
            calculation_log=calculation_log,
        )

    @staticmethod
    def update_ytd(
        ytd: EmployeeYTDData,
        gross_pay: Decimal,
        tax: TaxCalculationResult,
        ni: NICalculationResult,
        student_loan: StudentLoanCalculationResult,
        pension: PensionCalculationResult,
    ) -> EmployeeYTDData:
        """Return a new YTD snapshot; ``ytd`` itself is left untouched."""
        loan_fields = {
            student_loan_ytd_field(entry.plan): entry.ytd for entry in student_loan.plans
        }
        return replace(
            ytd,
            gross_pay_ytd=ytd.gross_pay_ytd + gross_pay,
            taxable_pay_ytd=ytd.taxable_pay_ytd + gross_pay,
            niable_pay_ytd=ytd.niable_pay_ytd + gross_pay,
            pensionable_pay_ytd=ytd.pensionable_pay_ytd + gross_pay,
            tax_paid_ytd=tax.tax_paid_ytd,
            employee_ni_paid_ytd=ni.employee_ni_ytd,
            employer_ni_paid_ytd=ni.employer_ni_ytd,
            employee_pension_ytd=pension.employee_ytd,
            employer_pension_ytd=pension.employer_ytd,
            **loan_fields,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_input(self, data: PayrollCalculationInput) -> ValidationResult:
        """Collect blocking errors and defaulting warnings. Never raises."""
        employee = data.employee
        errors: list[str] = []
        warnings: list[str] = []

        if not (employee.id or "").strip():
            errors.append("Employee ID is required")

        if not employee.national_insurance_number:
            errors.append("National Insurance number is required")
        else:
            check = validate_ni_number(employee.national_insurance_number)
            if not check.valid:
                errors.append(check.error)

        if not employee.tax_code:
            warnings.append(f"No tax code provided, using default {DEFAULT_TAX_CODE}")
        else:
            check = validate_tax_code(employee.tax_code)
            if not check.valid:
                errors.append(check.error)

        if not employee.ni_category:
            warnings.append("No NI category provided, defaulting to Category A")
        else:
            check = validate_ni_category(employee.ni_category)
            if not check.valid:
                errors.append(check.error)

        if employee.student_loan_plan:
            check = validate_student_loan_plan(employee.student_loan_plan)
            if not check.valid:
                errors.append(check.error)

        if is_enrolled(employee):
            for percentage in (
                employee.pension_contribution_percentage,
                employee.employer_pension_contribution_percentage,
            ):
                if percentage is None:
                    continue
                check = validate_pension_contribution(percentage)
                if not check.valid:
                    errors.append(check.error)

        if data.gross_pay < ZERO:
            errors.append("Gross pay cannot be negative")

        max_period = data.period_type.max_period_number
        if data.period_number < 1:
            errors.append("Period number must be at least 1")
        elif data.period_number > max_period:
            errors.append(
                f"Period number for {data.period_type.value} pay cannot exceed {max_period}"
            )

        result = ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
        logger.info(
            "payroll_input_validated",
            extra={
                "employee_id": employee.id,
                "valid": result.valid,
                "error_count": len(errors),
                "warning_count": len(warnings),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    @staticmethod
    def create_default_ytd() -> EmployeeYTDData:
        """All-zero YTD for an employee with no history this tax year."""
        return create_default_ytd()

    @staticmethod
    def get_default_tax_year_config() -> TaxYearConfiguration:
        """The built-in 2024/25 constants."""
        return get_default_tax_year_config()
