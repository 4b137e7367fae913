"""
Pytest fixtures for the payroll test suite.

Provides:
- Structured logging configuration and log capture
- The 2024/25 default tax-year configuration
- Factories for employees and calculation inputs
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from payroll_config import TaxYearRegistry, get_default_tax_year_config
from payroll_kernel.domain import DeterministicClock, Employee, PeriodType, create_default_ytd
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_services import PayrollCalculationInput, PayrollEngine


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.calculate_payroll(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def config():
    """The built-in 2024/25 tax-year configuration."""
    return get_default_tax_year_config()


@pytest.fixture
def registry(config):
    return TaxYearRegistry([config])


@pytest.fixture
def clock():
    return DeterministicClock()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_employee():
    """
    Build an ``Employee`` with valid defaults.

    Usage::

        employee = make_employee(tax_code="BR", student_loan_plan="plan2")
    """

    def _make(**overrides) -> Employee:
        values = dict(
            id="EMP-001",
            first_name="Alex",
            last_name="Taylor",
            national_insurance_number="AB123456C",
            tax_code="1257L",
            ni_category="A",
            student_loan_plan="none",
            auto_enrolment_status="not_eligible",
        )
        values.update(overrides)
        return Employee(**values)

    return _make


@pytest.fixture
def make_input(config, make_employee):
    """
    Build a ``PayrollCalculationInput`` for a monthly period 1 by default.

    ``employee`` may be an ``Employee`` or a dict of overrides for
    ``make_employee``.
    """

    def _make(employee=None, **overrides) -> PayrollCalculationInput:
        if employee is None or isinstance(employee, dict):
            employee = make_employee(**(employee or {}))
        values = dict(
            employee=employee,
            gross_pay=Decimal("3000"),
            period_start_date=date(2024, 4, 6),
            period_end_date=date(2024, 5, 5),
            period_type=PeriodType.MONTHLY,
            period_number=1,
            tax_year_config=config,
            ytd=create_default_ytd(),
        )
        values.update(overrides)
        return PayrollCalculationInput(**values)

    return _make


@pytest.fixture
def engine():
    return PayrollEngine()
