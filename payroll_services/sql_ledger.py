"""
SqlYTDLedger -- database-backed YTD ledger.

Responsibility:
    Same contract as ``InMemoryYTDLedger``, persisted through SQLAlchemy to
    the ``employee_ytd`` table so that year-to-date figures survive across
    pay runs and processes.

Architecture position:
    Services -- implements the ``YTDLedger`` protocol over
    ``payroll_kernel.models.EmployeeYTDRecord``.

Invariants enforced:
    - YTD never decreases within a tax year: ``put`` rejects a snapshot
      lower than the stored row in any field, and the row is left untouched.
    - Each ``put`` is one transaction (commit on success, rollback on error).
    - ``updated_at`` comes from the injected ``Clock``.

Failure modes:
    - ``YTDRegressionError`` when ``put`` would lower any field.
    - SQLAlchemy errors propagate after rollback.
"""

from __future__ import annotations

import threading
from datetime import timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from payroll_kernel.db.engine import session_scope
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.ytd import EmployeeYTDData
from payroll_kernel.exceptions import YTDRegressionError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models import EmployeeYTDRecord
from payroll_services.ledger import LedgerEntry

logger = get_logger("services.sql_ledger")


class SqlYTDLedger:
    """YTD ledger stored in the ``employee_ytd`` table."""

    def __init__(self, session_factory: sessionmaker[Session], clock: Clock | None = None):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()

    def get(self, employee_id: str, tax_year: str) -> EmployeeYTDData | None:
        entry = self.entry(employee_id, tax_year)
        return entry.ytd if entry else None

    def entry(self, employee_id: str, tax_year: str) -> LedgerEntry | None:
        with self._lock, session_scope(self._session_factory) as session:
            record = self._find(session, employee_id, tax_year)
            if record is None:
                return None
            updated_at = record.updated_at
            # SQLite drops the offset; stored values are always UTC.
            if updated_at.tzinfo is None:
                updated_at = updated_at.replace(tzinfo=timezone.utc)
            return LedgerEntry(
                ytd=record.to_ytd(),
                updated_at=updated_at,
                pay_run_id=record.pay_run_id,
            )

    def put(
        self,
        employee_id: str,
        tax_year: str,
        ytd: EmployeeYTDData,
        pay_run_id: str | None = None,
    ) -> None:
        """
        Store ``ytd`` for the employee and tax year.

        Raises:
            YTDRegressionError: if any field is lower than the stored value.
        """
        with self._lock, session_scope(self._session_factory) as session:
            record = self._find(session, employee_id, tax_year)
            if record is None:
                record = EmployeeYTDRecord(employee_id=employee_id, tax_year=tax_year)
                session.add(record)
            else:
                regressed = record.to_ytd().regressions(ytd)
                if regressed:
                    logger.error(
                        "ytd_regression_rejected",
                        extra={
                            "employee_id": employee_id,
                            "tax_year": tax_year,
                            "fields": regressed,
                        },
                    )
                    raise YTDRegressionError(employee_id, tax_year, regressed[0])
            record.apply(ytd, updated_at=self._clock.now(), pay_run_id=pay_run_id)

        logger.debug(
            "ytd_stored",
            extra={"employee_id": employee_id, "tax_year": tax_year, "pay_run_id": pay_run_id},
        )

    def __len__(self) -> int:
        with self._lock, session_scope(self._session_factory) as session:
            return len(session.scalars(select(EmployeeYTDRecord.id)).all())

    @staticmethod
    def _find(session: Session, employee_id: str, tax_year: str) -> EmployeeYTDRecord | None:
        return session.scalars(
            select(EmployeeYTDRecord).where(
                EmployeeYTDRecord.employee_id == employee_id,
                EmployeeYTDRecord.tax_year == tax_year,
            )
        ).one_or_none()
