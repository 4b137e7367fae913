"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll errors must be handled precisely. Callers catch by type and read
structured attributes instead of parsing message strings:

    try:
        service.calculate_employee(item, pay_run_id="run-7")
    except PayrollValidationError as e:
        report(e.employee_id, e.errors)      # Structured data
        api_response(code=e.code)            # Machine-readable

Validation findings on a single calculation are NOT exceptions: the
orchestrator returns them in a ``ValidationResult`` and the format checkers
return ``FormatCheck`` values. Exceptions are reserved for the service and
configuration layers.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- ConfigurationError
    |   +-- TaxYearNotFoundError
    |   +-- TaxYearOverlapError
    |
    +-- PayrollInputError
    |   +-- PayrollValidationError
    |
    +-- LedgerError
        +-- YTDRegressionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When Raised
----------------|------------------------|----------------------------------------
Configuration   | TAX_YEAR_NOT_FOUND     | No tax year covers the requested date
                | TAX_YEAR_OVERLAP       | Two tax years claim the same dates
----------------|------------------------|----------------------------------------
Input           | PAYROLL_VALIDATION     | Input failed validate_input()
----------------|------------------------|----------------------------------------
Ledger          | YTD_REGRESSION         | A YTD figure would decrease in-year
"""

from datetime import date


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Base exception for tax-year configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class TaxYearNotFoundError(ConfigurationError):
    """No registered tax year covers the given date."""

    code: str = "TAX_YEAR_NOT_FOUND"

    def __init__(self, as_of_date: date):
        self.as_of_date = as_of_date
        super().__init__(f"No tax year configuration covers {as_of_date.isoformat()}")


class TaxYearOverlapError(ConfigurationError):
    """A tax year's effective range overlaps one already registered."""

    code: str = "TAX_YEAR_OVERLAP"

    def __init__(self, tax_year: str, existing_tax_year: str):
        self.tax_year = tax_year
        self.existing_tax_year = existing_tax_year
        super().__init__(
            f"Tax year {tax_year} overlaps registered tax year {existing_tax_year}"
        )


# Input exceptions


class PayrollInputError(PayrollKernelError):
    """Base exception for payroll input errors."""

    code: str = "PAYROLL_INPUT_ERROR"


class PayrollValidationError(PayrollInputError):
    """Payroll input failed validation and was not calculated."""

    code: str = "PAYROLL_VALIDATION"

    def __init__(self, employee_id: str | None, errors: list[str]):
        self.employee_id = employee_id
        self.errors = list(errors)
        super().__init__(f"Validation failed: {', '.join(self.errors)}")


# Ledger exceptions


class LedgerError(PayrollKernelError):
    """Base exception for YTD ledger errors."""

    code: str = "LEDGER_ERROR"


class YTDRegressionError(LedgerError):
    """A stored year-to-date figure would decrease within a tax year."""

    code: str = "YTD_REGRESSION"

    def __init__(self, employee_id: str, tax_year: str, field_name: str):
        self.employee_id = employee_id
        self.tax_year = tax_year
        self.field_name = field_name
        super().__init__(
            f"YTD field {field_name} would decrease for employee {employee_id} "
            f"in tax year {tax_year}"
        )
