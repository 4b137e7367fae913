"""
Module: payroll_kernel.models.ytd_ledger
Responsibility: ORM persistence for year-to-date snapshots -- one row per
    employee per tax year, rewritten after every processed pay period.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - One row per (employee_id, tax_year) (uq_ytd_employee_tax_year).
    - Amounts are stored exactly (DecimalString), never as float.

Failure modes:
    - IntegrityError if two writers insert the same employee and tax year
      concurrently; the ledger service serializes writes to avoid this.

Non-goals:
    - The monotonic YTD check lives in the ledger service, not here; the
      model will store whatever it is given.
"""

from dataclasses import fields
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base
from payroll_kernel.domain.values import ZERO
from payroll_kernel.domain.ytd import EmployeeYTDData

YTD_FIELDS = tuple(f.name for f in fields(EmployeeYTDData))


class EmployeeYTDRecord(Base):
    """
    Stored YTD snapshot.

    Guarantees:
        - to_ytd() and apply() cover every EmployeeYTDData field.
        - updated_at is set by the caller from an injected clock.
    """

    __tablename__ = "employee_ytd"

    __table_args__ = (
        UniqueConstraint("employee_id", "tax_year", name="uq_ytd_employee_tax_year"),
        Index("idx_ytd_tax_year", "tax_year"),
    )

    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # "2024-25"
    tax_year: Mapped[str] = mapped_column(String(7), nullable=False)

    gross_pay_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    taxable_pay_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    tax_paid_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    niable_pay_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    employee_ni_paid_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    employer_ni_paid_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    pensionable_pay_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    employee_pension_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    employer_pension_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    student_loan_plan1_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    student_loan_plan2_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    student_loan_plan4_ytd: Mapped[Decimal] = mapped_column(default=ZERO)
    postgraduate_loan_ytd: Mapped[Decimal] = mapped_column(default=ZERO)

    # Pay run that last wrote this row
    pay_run_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_ytd(self) -> EmployeeYTDData:
        return EmployeeYTDData(**{name: getattr(self, name) for name in YTD_FIELDS})

    def apply(self, ytd: EmployeeYTDData, updated_at: datetime, pay_run_id: str | None = None) -> None:
        """Overwrite the stored figures with ``ytd``."""
        for name in YTD_FIELDS:
            setattr(self, name, getattr(ytd, name))
        self.updated_at = updated_at
        self.pay_run_id = pay_run_id

    def __repr__(self) -> str:
        return f"<EmployeeYTDRecord {self.employee_id} {self.tax_year}>"
