"""
YTD ledger -- storage seam for year-to-date snapshots.

Responsibility:
    ``YTDLedger`` is the interface the pay-run service persists through,
    keyed by employee and tax year. ``InMemoryYTDLedger`` is the bundled
    implementation used by the CLI and the tests; a database-backed
    ledger implements the same two methods.

Invariants enforced:
    - A stored snapshot may only be replaced by one whose every field is
      greater than or equal to it (YTD never decreases within a tax year).
    - ``updated_at`` comes from the injected ``Clock``.

Failure modes:
    - ``YTDRegressionError`` when ``put`` would lower any field.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.ytd import EmployeeYTDData
from payroll_kernel.exceptions import YTDRegressionError
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.ledger")


@runtime_checkable
class YTDLedger(Protocol):
    """Persistence for one YTD snapshot per employee per tax year."""

    def get(self, employee_id: str, tax_year: str) -> EmployeeYTDData | None: ...

    def put(
        self,
        employee_id: str,
        tax_year: str,
        ytd: EmployeeYTDData,
        pay_run_id: str | None = None,
    ) -> None: ...


@dataclass(frozen=True)
class LedgerEntry:
    ytd: EmployeeYTDData
    updated_at: datetime
    pay_run_id: str | None = None


class InMemoryYTDLedger:
    """Thread-safe dict-backed ledger."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._entries: dict[tuple[str, str], LedgerEntry] = {}
        self._lock = threading.Lock()

    def get(self, employee_id: str, tax_year: str) -> EmployeeYTDData | None:
        entry = self.entry(employee_id, tax_year)
        return entry.ytd if entry else None

    def entry(self, employee_id: str, tax_year: str) -> LedgerEntry | None:
        with self._lock:
            return self._entries.get((employee_id, tax_year))

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
        key = (employee_id, tax_year)
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                regressed = existing.ytd.regressions(ytd)
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
            self._entries[key] = LedgerEntry(
                ytd=ytd, updated_at=self._clock.now(), pay_run_id=pay_run_id
            )

        logger.debug(
            "ytd_stored",
            extra={"employee_id": employee_id, "tax_year": tax_year, "pay_run_id": pay_run_id},
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
