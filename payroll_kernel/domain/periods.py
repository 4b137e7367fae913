"""
Pay periods and UK tax-year arithmetic.

Responsibility:
    Defines the pay frequencies the engine supports, the number of periods
    each has in a tax year, and date helpers for the UK tax year (which
    runs 6 April to 5 April).

Architecture position:
    Kernel > Domain -- pure functions, zero I/O. Dates are always passed in;
    nothing here reads the wall clock.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6


class PeriodType(str, Enum):
    """Pay frequency."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    FOUR_WEEKLY = "four_weekly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        """Divisor used to pro-rate annual thresholds."""
        return _PERIODS_PER_YEAR[self]

    @property
    def max_period_number(self) -> int:
        """Highest period number a tax year can contain (week 53 etc.)."""
        return _MAX_PERIOD_NUMBER[self]


_PERIODS_PER_YEAR = {
    PeriodType.WEEKLY: 52,
    PeriodType.FORTNIGHTLY: 26,
    PeriodType.FOUR_WEEKLY: 13,
    PeriodType.MONTHLY: 12,
}

_MAX_PERIOD_NUMBER = {
    PeriodType.WEEKLY: 53,
    PeriodType.FORTNIGHTLY: 27,
    PeriodType.FOUR_WEEKLY: 14,
    PeriodType.MONTHLY: 12,
}


def tax_year_start(on_date: date) -> date:
    """Return the 6 April that starts the tax year containing ``on_date``."""
    start = date(on_date.year, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)
    if on_date < start:
        return date(on_date.year - 1, TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)
    return start


def tax_year_label(on_date: date) -> str:
    """Return the tax year label for a date, e.g. ``"2024-25"``."""
    start_year = tax_year_start(on_date).year
    return f"{start_year}-{str(start_year + 1)[-2:]}"


def period_number_for_date(on_date: date, period_type: PeriodType) -> int:
    """
    Return the tax period number that ``on_date`` falls in.

    Monthly periods count calendar months from the tax-year start month;
    the others count whole weeks from 6 April. The result is clamped to the
    valid range for the frequency.
    """
    start = tax_year_start(on_date)
    period_type = PeriodType(period_type)

    if period_type is PeriodType.MONTHLY:
        months = (on_date.year - start.year) * 12 + (on_date.month - start.month)
        if on_date.day < TAX_YEAR_START_DAY:
            months -= 1
        number = months + 1
    else:
        weeks = (on_date - start).days // 7
        weeks_per_period = 52 // period_type.periods_per_year
        number = weeks // weeks_per_period + 1

    return min(max(number, 1), period_type.max_period_number)
