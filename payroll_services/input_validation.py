"""
Format checks for employee identifiers that no calculator owns.

The calculator-specific validators (tax code, NI category, student loan
plan, pension percentage) live beside their engines; this module holds the
National Insurance number check used by ``PayrollEngine.validate_input``.
"""

from __future__ import annotations

import re

from payroll_kernel.domain.validation import FormatCheck

# Two prefix letters (D, F, I, Q, U, V never used; O never second),
# six digits, suffix A-D.
_NI_NUMBER = re.compile(r"^[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z][0-9]{6}[A-D]$")

INVALID_NI_NUMBER_MESSAGE = "Invalid NI number format. Expected: AB123456C"


def normalize_ni_number(ni_number: str) -> str:
    """Upper-case and strip all whitespace, e.g. ``"ab 12 34 56 c"`` -> ``"AB123456C"``."""
    return re.sub(r"\s+", "", ni_number).upper()


def validate_ni_number(ni_number: str) -> FormatCheck:
    if not _NI_NUMBER.match(normalize_ni_number(ni_number)):
        return FormatCheck.fail(INVALID_NI_NUMBER_MESSAGE)
    return FormatCheck.ok()
