"""
Tests for PayRunService.

Covers:
- Single and multi-employee runs
- Period ordering and YTD carry-forward through the ledger
- Failure isolation: validation, missing tax year, unexpected errors
- Skipping later periods after a failure
- Run totals, status and structured logging
"""

from datetime import date
from decimal import Decimal

import pytest

from payroll_engines.tax import INVALID_TAX_CODE_MESSAGE
from payroll_kernel.domain import PeriodType
from payroll_kernel.exceptions import PayrollValidationError, TaxYearNotFoundError
from payroll_services import (
    InMemoryYTDLedger,
    PayrollEngine,
    PayRunItem,
    PayRunItemStatus,
    PayRunService,
    PayRunStatus,
)


class _ExplodingCalculator:
    def calculate(self, **kwargs):
        raise RuntimeError("calculator offline")


@pytest.fixture
def ledger(clock):
    return InMemoryYTDLedger(clock=clock)


@pytest.fixture
def service(registry, ledger, clock):
    return PayRunService(registry, ledger, clock=clock)


@pytest.fixture
def make_item(make_employee):
    def _make(employee=None, month=1, **overrides):
        if employee is None or isinstance(employee, dict):
            employee = make_employee(**(employee or {}))
        start = date(2024, 3 + month, 6)
        end = date(2024 + (3 + month) // 12, (3 + month) % 12 + 1, 5)
        values = dict(
            employee=employee,
            gross_pay=Decimal("3000"),
            period_start_date=start,
            period_end_date=end,
        )
        values.update(overrides)
        return PayRunItem(**values)

    return _make


class TestPayRunItem:

    def test_period_number_derived_from_end_date(self, make_item):
        assert make_item(month=1).period_number == 1
        assert make_item(month=2).period_number == 2

    def test_explicit_period_number_kept(self, make_item):
        assert make_item(period_number=3).period_number == 3

    def test_period_type_coerced(self, make_employee):
        item = PayRunItem(
            employee=make_employee(),
            gross_pay="500",
            period_start_date=date(2024, 4, 6),
            period_end_date=date(2024, 4, 12),
            period_type="weekly",
        )
        assert item.period_type == PeriodType.WEEKLY
        assert item.gross_pay == Decimal("500")
        assert item.period_number == 1


class TestCalculateEmployee:

    def test_calculates_and_stores_ytd(self, service, ledger, make_item):
        result = service.calculate_employee(make_item(), pay_run_id="run-1")

        assert result.net_pay == Decimal("2375.26")
        stored = ledger.entry("EMP-001", "2024-25")
        assert stored.ytd == result.updated_ytd
        assert stored.pay_run_id == "run-1"

    def test_uses_stored_ytd(self, service, make_item):
        service.calculate_employee(make_item(month=1))
        second = service.calculate_employee(make_item(month=2))

        assert second.tax.tax_due_this_period == Decimal("390.50")
        assert second.updated_ytd.tax_paid_ytd == Decimal("781.00")

    def test_invalid_input_raises_and_is_not_stored(self, service, ledger, make_item):
        with pytest.raises(PayrollValidationError) as exc_info:
            service.calculate_employee(make_item({"tax_code": "XYZ"}))

        assert exc_info.value.errors == [INVALID_TAX_CODE_MESSAGE]
        assert exc_info.value.employee_id == "EMP-001"
        assert len(ledger) == 0

    def test_no_tax_year(self, service, make_item):
        item = make_item(period_start_date=date(2030, 4, 6), period_end_date=date(2030, 5, 5))
        with pytest.raises(TaxYearNotFoundError):
            service.calculate_employee(item)

    def test_warnings_logged_with_tax_year(self, service, make_item, captured_logs):
        service.calculate_employee(make_item({"tax_code": None}))

        warnings = [r for r in captured_logs() if r["message"] == "payroll_input_warning"]
        assert warnings[0]["warning"] == "No tax code provided, using default 1257L"
        assert warnings[0]["tax_year"] == "2024-25"


class TestPayRun:

    def test_single_employee(self, service, make_item, clock):
        run = service.run([make_item()], pay_run_id="run-1")

        assert run.pay_run_id == "run-1"
        assert run.status == PayRunStatus.COMPLETED
        assert len(run.successes) == 1
        assert run.items[0].status == PayRunItemStatus.SUCCEEDED
        assert run.items[0].result.net_pay == Decimal("2375.26")
        assert run.started_at == clock.now()
        assert run.completed_at == clock.now()

    def test_generated_pay_run_id(self, service, make_item):
        run = service.run([make_item()])
        assert len(run.pay_run_id) == 36

    def test_periods_run_in_order(self, service, ledger, make_item):
        """Period 2 submitted first still sees period 1's YTD."""
        items = [make_item(month=2), make_item(month=1)]
        run = service.run(items, max_workers=2)

        assert [i.period_number for i in run.items] == [2, 1]
        assert all(i.status == PayRunItemStatus.SUCCEEDED for i in run.items)
        assert run.items[0].result.updated_ytd.tax_paid_ytd == Decimal("781.00")
        assert ledger.get("EMP-001", "2024-25").gross_pay_ytd == Decimal("6000")

    def test_totals_across_employees(self, service, make_item):
        items = [
            make_item({"id": "EMP-001"}),
            make_item({"id": "EMP-002", "national_insurance_number": "CE654321A"}),
        ]
        run = service.run(items)

        assert run.total_gross_pay == Decimal("6000")
        assert run.total_deductions == Decimal("1249.48")
        assert run.total_net_pay == Decimal("4750.52")
        assert run.total_employer_costs == Decimal("618.80")

    def test_validation_failure_is_isolated(self, service, make_item):
        items = [
            make_item({"id": "EMP-001", "tax_code": "XYZ"}, month=1),
            make_item({"id": "EMP-002"}),
            make_item({"id": "EMP-001", "tax_code": "XYZ"}, month=2),
        ]
        run = service.run(items, pay_run_id="run-2")

        failed, ok, skipped = run.items
        assert failed.status == PayRunItemStatus.FAILED
        assert failed.error_code == "PAYROLL_VALIDATION"
        assert failed.errors == (INVALID_TAX_CODE_MESSAGE,)
        assert failed.result is None
        assert ok.status == PayRunItemStatus.SUCCEEDED
        assert skipped.status == PayRunItemStatus.SKIPPED
        assert skipped.error_code == "PRIOR_PERIOD_FAILED"
        assert run.status == PayRunStatus.PARTIALLY_COMPLETED
        assert len(run.failures) == 2
        assert run.total_gross_pay == Decimal("3000")

    def test_missing_tax_year_fails_item(self, service, make_item):
        item = make_item(period_start_date=date(2030, 4, 6), period_end_date=date(2030, 5, 5))
        run = service.run([item])

        assert run.status == PayRunStatus.FAILED
        assert run.items[0].error_code == "TAX_YEAR_NOT_FOUND"
        assert run.items[0].errors == ("No tax year configuration covers 2030-05-05",)

    def test_unexpected_exception_fails_item(self, registry, ledger, clock, make_item, captured_logs):
        service = PayRunService(
            registry,
            ledger,
            engine=PayrollEngine(tax_engine=_ExplodingCalculator()),
            clock=clock,
        )
        run = service.run([make_item()], pay_run_id="run-3")

        assert run.items[0].status == PayRunItemStatus.FAILED
        assert run.items[0].error_code == "UNHANDLED_EXCEPTION"
        assert run.items[0].errors == ("calculator offline",)

        failures = [r for r in captured_logs() if r["message"] == "pay_run_item_failed"]
        assert failures[0]["exc_type"] == "RuntimeError"
        assert failures[0]["pay_run_id"] == "run-3"

    def test_log_context_bound_per_item(self, service, make_item, captured_logs):
        service.run([make_item()], pay_run_id="run-4")
        logs = captured_logs()

        calculated = [r for r in logs if r["message"] == "payroll_calculated"][0]
        assert calculated["pay_run_id"] == "run-4"
        assert calculated["employee_id"] == "EMP-001"
        assert calculated["tax_year"] == "2024-25"
        assert calculated["correlation_id"] == "run-4:0"

        completed = [r for r in logs if r["message"] == "pay_run_completed"][0]
        assert completed["status"] == "completed"
        assert completed["succeeded"] == 1
        assert completed["total_net_pay"] == "2375.26"
        assert any(r["message"] == "pay_run_started" for r in logs)

    def test_empty_run(self, service):
        run = service.run([])
        assert run.items == ()
        assert run.status == PayRunStatus.COMPLETED
        assert run.total_net_pay == Decimal("0")
