"""
Values -- Decimal money helpers for sterling payroll amounts.

Responsibility:
    Converts caller-supplied amounts to ``Decimal`` and applies the single
    rounding rule used throughout payroll: quantize to the penny with
    ROUND_HALF_UP (half away from zero). Banker's rounding is never used.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the engines, the config schema and the services.

Invariants enforced:
    - Arithmetic is Decimal-only; floats are converted through ``str()``
      so that ``0.1`` becomes ``Decimal("0.1")`` and not its binary
      expansion.
    - Rounding happens only where a caller explicitly asks for it.

Failure modes:
    - ValueError when a value cannot be interpreted as a finite number.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

PENNY = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """
    Convert an amount to Decimal.

    ``None`` is treated as zero so that omitted optional pay components
    add nothing.

    Raises:
        ValueError: If the value is not numeric, or is NaN or infinite.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def round_money(value: Decimal | int | str) -> Decimal:
    """Round to the penny, half away from zero."""
    return to_decimal(value).quantize(PENNY, rounding=ROUND_HALF_UP)


def percent_to_rate(percent: Decimal | int | str) -> Decimal:
    """Convert a percentage (e.g. 5) to a rate (0.05)."""
    return to_decimal(percent) / HUNDRED


def format_gbp(value: Decimal) -> str:
    """Render an amount for the calculation log, e.g. ``£1047.50``."""
    return f"£{round_money(value)}"


def format_percent(rate: Decimal, places: int = 1) -> str:
    """Render a rate as a percentage, e.g. ``Decimal("0.138")`` -> ``13.8%``."""
    quantum = Decimal(1).scaleb(-places)
    return f"{(rate * HUNDRED).quantize(quantum, rounding=ROUND_HALF_UP)}%"
