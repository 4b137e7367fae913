"""ORM models for the payroll kernel."""

from payroll_kernel.models.ytd_ledger import YTD_FIELDS, EmployeeYTDRecord

__all__ = [
    "EmployeeYTDRecord",
    "YTD_FIELDS",
]
