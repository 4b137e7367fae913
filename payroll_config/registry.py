"""
Tax-year registry: effective-date lookup of configurations.

Holds one ``TaxYearConfiguration`` per tax year and resolves the one in
force on a given date. Registration rejects overlapping effective ranges
so a date can never match two tax years.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from payroll_config.schema import TaxYearConfiguration
from payroll_kernel.exceptions import TaxYearNotFoundError, TaxYearOverlapError
from payroll_kernel.logging_config import get_logger

logger = get_logger("config.registry")


class TaxYearRegistry:
    """In-memory registry of tax-year configurations keyed by tax year."""

    def __init__(self, configs: Iterable[TaxYearConfiguration] = ()):
        self._by_year: dict[str, TaxYearConfiguration] = {}
        for config in configs:
            self.register(config)

    def register(self, config: TaxYearConfiguration) -> None:
        """
        Add a configuration.

        Re-registering the same tax year replaces the previous entry.

        Raises:
            TaxYearOverlapError: if the range overlaps a different tax year.
        """
        for existing in self._by_year.values():
            if existing.tax_year != config.tax_year and existing.overlaps(config):
                raise TaxYearOverlapError(config.tax_year, existing.tax_year)
        self._by_year[config.tax_year] = config
        logger.debug(
            "tax_year_registered",
            extra={
                "tax_year": config.tax_year,
                "effective_from": config.effective_from.isoformat(),
                "effective_to": config.effective_to.isoformat(),
            },
        )

    def get(self, tax_year: str) -> TaxYearConfiguration | None:
        return self._by_year.get(tax_year)

    def for_date(self, on_date: date) -> TaxYearConfiguration:
        """
        Return the configuration whose effective range contains ``on_date``.

        Raises:
            TaxYearNotFoundError: if no registered tax year covers the date.
        """
        for config in self._by_year.values():
            if config.covers(on_date):
                return config
        raise TaxYearNotFoundError(on_date)

    @property
    def tax_years(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_year))

    def __len__(self) -> int:
        return len(self._by_year)
