"""
PayRunService -- calculates a whole pay run across many employees.

Responsibility:
    For each pay-run item: resolve the tax-year configuration in force on
    the period end date, fetch the employee's YTD snapshot from the
    ledger, validate, calculate, and store the updated snapshot. A run
    fans employees out across a thread pool.

Architecture position:
    Services -- the validate-then-calculate policy and all persistence
    live here; ``PayrollEngine`` stays pure.

Invariants enforced:
    - No calculation runs on input that failed validation.
    - Items for the same employee run sequentially in period order so
      each period sees the previous period's YTD; different employees run
      concurrently.
    - One item's failure never aborts the run. Later periods for the same
      employee are skipped, since their YTD would be wrong.
    - LogContext carries ``pay_run_id``, ``employee_id`` and ``tax_year``
      for every record emitted while an item is processed.

Failure modes:
    - ``calculate_employee`` raises ``PayrollValidationError``,
      ``TaxYearNotFoundError`` or ``YTDRegressionError``.
    - ``run`` converts those (and unexpected exceptions) into failed
      ``PayRunItemResult`` entries.

Audit relevance:
    ``pay_run_started`` / ``pay_run_completed`` bracket every run and each
    failed item logs ``pay_run_item_failed`` with its error code.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from payroll_config.registry import TaxYearRegistry
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.employee import Employee
from payroll_kernel.domain.periods import PeriodType, period_number_for_date
from payroll_kernel.domain.values import ZERO, to_decimal
from payroll_kernel.domain.ytd import create_default_ytd
from payroll_kernel.exceptions import PayrollKernelError, PayrollValidationError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.ledger import YTDLedger
from payroll_services.models import (
    PayrollCalculationInput,
    PayrollCalculationResult,
)
from payroll_services.payroll_engine import PayrollEngine

logger = get_logger("services.pay_run")

UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"
PRIOR_PERIOD_FAILED = "PRIOR_PERIOD_FAILED"


class PayRunItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # an earlier period for the employee failed


class PayRunStatus(str, Enum):
    COMPLETED = "completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FAILED = "failed"


@dataclass(frozen=True)
class PayRunItem:
    """One employee's pay for one period, as submitted to a run.

    ``period_number`` is derived from ``period_end_date`` when omitted.
    """

    employee: Employee
    gross_pay: Decimal
    period_start_date: date
    period_end_date: date
    period_type: PeriodType = PeriodType.MONTHLY
    period_number: int | None = None
    bonuses: Decimal = ZERO
    commission: Decimal = ZERO
    tronc_payment: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    other_payments: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "period_type", PeriodType(self.period_type))
        object.__setattr__(self, "gross_pay", to_decimal(self.gross_pay))
        if self.period_number is None:
            object.__setattr__(
                self,
                "period_number",
                period_number_for_date(self.period_end_date, self.period_type),
            )


@dataclass(frozen=True)
class PayRunItemResult:
    item_index: int
    employee_id: str
    period_number: int
    status: PayRunItemStatus
    result: PayrollCalculationResult | None = None
    error_code: str | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)
    duration_ms: int = 0


@dataclass(frozen=True)
class PayRunResult:
    """Outcome of a pay run, items in submission order."""

    pay_run_id: str
    items: tuple[PayRunItemResult, ...]
    started_at: datetime
    completed_at: datetime

    @property
    def successes(self) -> tuple[PayRunItemResult, ...]:
        return tuple(i for i in self.items if i.status is PayRunItemStatus.SUCCEEDED)

    @property
    def failures(self) -> tuple[PayRunItemResult, ...]:
        return tuple(i for i in self.items if i.status is not PayRunItemStatus.SUCCEEDED)

    @property
    def status(self) -> PayRunStatus:
        if not self.failures:
            return PayRunStatus.COMPLETED
        if not self.successes:
            return PayRunStatus.FAILED
        return PayRunStatus.PARTIALLY_COMPLETED

    @property
    def total_gross_pay(self) -> Decimal:
        return sum((i.result.gross_pay for i in self.successes), ZERO)

    @property
    def total_deductions(self) -> Decimal:
        return sum((i.result.total_deductions for i in self.successes), ZERO)

    @property
    def total_net_pay(self) -> Decimal:
        return sum((i.result.net_pay for i in self.successes), ZERO)

    @property
    def total_employer_costs(self) -> Decimal:
        return sum((i.result.employer_costs for i in self.successes), ZERO)


class PayRunService:
    """Validate, calculate and persist pay for a batch of employees."""

    def __init__(
        self,
        registry: TaxYearRegistry,
        ledger: YTDLedger,
        engine: PayrollEngine | None = None,
        clock: Clock | None = None,
    ):
        self._registry = registry
        self._ledger = ledger
        self._engine = engine or PayrollEngine()
        self._clock = clock or SystemClock()

    def calculate_employee(
        self,
        item: PayRunItem,
        pay_run_id: str | None = None,
    ) -> PayrollCalculationResult:
        """
        Calculate and persist one item.

        Raises:
            TaxYearNotFoundError: no configuration covers the period end date.
            PayrollValidationError: the input failed validation.
            YTDRegressionError: the ledger refused the new snapshot.
        """
        employee = item.employee
        config = self._registry.for_date(item.period_end_date)
        ytd = self._ledger.get(employee.id, config.tax_year) or create_default_ytd()

        data = PayrollCalculationInput(
            employee=employee,
            gross_pay=item.gross_pay,
            bonuses=item.bonuses,
            commission=item.commission,
            tronc_payment=item.tronc_payment,
            holiday_pay=item.holiday_pay,
            other_payments=item.other_payments,
            period_start_date=item.period_start_date,
            period_end_date=item.period_end_date,
            period_type=item.period_type,
            period_number=item.period_number,
            tax_year_config=config,
            ytd=ytd,
        )

        with LogContext.bind(tax_year=config.tax_year):
            validation = self._engine.validate_input(data)
            for warning in validation.warnings:
                logger.warning(
                    "payroll_input_warning",
                    extra={"employee_id": employee.id, "warning": warning},
                )
            if not validation.valid:
                raise PayrollValidationError(employee.id, list(validation.errors))

            result = self._engine.calculate_payroll(data)
            self._ledger.put(employee.id, config.tax_year, result.updated_ytd, pay_run_id)
        return result

    def run(
        self,
        items: Iterable[PayRunItem],
        pay_run_id: str | None = None,
        max_workers: int = 4,
    ) -> PayRunResult:
        """Calculate every item; employees run in parallel."""
        pay_run_id = pay_run_id or str(uuid4())
        indexed = list(enumerate(items))
        started_at = self._clock.now()

        by_employee: dict[str, list[tuple[int, PayRunItem]]] = {}
        for index, item in indexed:
            by_employee.setdefault(item.employee.id, []).append((index, item))
        for group in by_employee.values():
            group.sort(key=lambda pair: pair[1].period_number)

        logger.info(
            "pay_run_started",
            extra={
                "pay_run_id": pay_run_id,
                "item_count": len(indexed),
                "employee_count": len(by_employee),
                "max_workers": max_workers,
            },
        )

        t0 = time.monotonic()
        results: list[PayRunItemResult] = []
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(self._run_employee, group, pay_run_id)
                for group in by_employee.values()
            ]
            for future in futures:
                results.extend(future.result())
        results.sort(key=lambda r: r.item_index)

        run_result = PayRunResult(
            pay_run_id=pay_run_id,
            items=tuple(results),
            started_at=started_at,
            completed_at=self._clock.now(),
        )
        logger.info(
            "pay_run_completed",
            extra={
                "pay_run_id": pay_run_id,
                "status": run_result.status.value,
                "succeeded": len(run_result.successes),
                "failed": len(run_result.failures),
                "total_gross_pay": str(run_result.total_gross_pay),
                "total_net_pay": str(run_result.total_net_pay),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            },
        )
        return run_result

    def _run_employee(
        self,
        group: Sequence[tuple[int, PayRunItem]],
        pay_run_id: str,
    ) -> list[PayRunItemResult]:
        out: list[PayRunItemResult] = []
        failed = False
        for index, item in group:
            employee_id = item.employee.id
            if failed:
                out.append(
                    PayRunItemResult(
                        item_index=index,
                        employee_id=employee_id,
                        period_number=item.period_number,
                        status=PayRunItemStatus.SKIPPED,
                        error_code=PRIOR_PERIOD_FAILED,
                        errors=("An earlier period for this employee failed",),
                    )
                )
                continue

            item_start = time.monotonic()
            with LogContext.bind(
                pay_run_id=pay_run_id,
                employee_id=employee_id,
                correlation_id=f"{pay_run_id}:{index}",
            ):
                try:
                    result = self.calculate_employee(item, pay_run_id)
                    status = PayRunItemStatus.SUCCEEDED
                    error_code, errors = None, ()
                except PayrollKernelError as exc:
                    result = None
                    status = PayRunItemStatus.FAILED
                    error_code = exc.code
                    errors = (
                        tuple(exc.errors)
                        if isinstance(exc, PayrollValidationError)
                        else (str(exc),)
                    )
                    logger.warning(
                        "pay_run_item_failed",
                        extra={"error_code": error_code, "errors": list(errors)},
                    )
                except Exception as exc:
                    result = None
                    status = PayRunItemStatus.FAILED
                    error_code, errors = UNHANDLED_EXCEPTION, (str(exc),)
                    logger.exception(
                        "pay_run_item_failed", extra={"error_code": error_code}
                    )

            if status is PayRunItemStatus.FAILED:
                failed = True
            out.append(
                PayRunItemResult(
                    item_index=index,
                    employee_id=employee_id,
                    period_number=item.period_number,
                    status=status,
                    result=result,
                    error_code=error_code,
                    errors=errors,
                    duration_ms=int((time.monotonic() - item_start) * 1000),
                )
            )
        return out
