"""
Format-check results shared by the calculators' validators.

Each ``validate_*`` helper returns a ``FormatCheck`` instead of raising, so
the orchestrator's validation pass can collect every finding in one go.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FormatCheck:
    """Outcome of a single format check."""

    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> FormatCheck:
        return _OK

    @classmethod
    def fail(cls, error: str) -> FormatCheck:
        return cls(valid=False, error=error)


_OK = FormatCheck(valid=True)
