"""
Pay-run input parsing.

Turns a JSON pay-run document into ``PayRunItem`` values::

    {
      "pay_run_id": "2024-05-M1",            # optional
      "items": [
        {
          "employee": {"id": "E1", "national_insurance_number": "AB123456C", ...},
          "gross_pay": "3000",
          "period_type": "monthly",
          "period_number": 1,                 # optional, derived from end date
          "period_start_date": "2024-04-06",
          "period_end_date": "2024-05-05"
        }
      ]
    }

Amounts may be strings or numbers; they are converted through ``str()`` to
``Decimal``. Unknown employee keys are ignored.
"""

from __future__ import annotations

import json
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Any

from payroll_kernel.domain.employee import DirectorNIMethod, Employee, TaxCodeBasis
from payroll_kernel.domain.values import to_decimal
from payroll_services.models import PAY_COMPONENT_FIELDS
from payroll_services.pay_run import PayRunItem

_EMPLOYEE_FIELDS = frozenset(f.name for f in fields(Employee))
_OPTIONAL_PERCENTAGES = (
    "pension_contribution_percentage",
    "employer_pension_contribution_percentage",
)


def employee_from_dict(data: dict[str, Any]) -> Employee:
    """
    Build an ``Employee`` from a JSON object.

    Raises:
        KeyError: if ``id`` is missing.
        ValueError: if a date, enum or percentage cannot be parsed.
    """
    values = {k: v for k, v in data.items() if k in _EMPLOYEE_FIELDS}
    values["id"] = str(data["id"])
    if values.get("date_of_birth"):
        values["date_of_birth"] = date.fromisoformat(values["date_of_birth"])
    if "tax_code_basis" in values:
        values["tax_code_basis"] = TaxCodeBasis(values["tax_code_basis"])
    if "director_ni_method" in values:
        values["director_ni_method"] = DirectorNIMethod(values["director_ni_method"])
    for name in _OPTIONAL_PERCENTAGES:
        if values.get(name) is not None:
            values[name] = to_decimal(values[name])
    return Employee(**values)


def pay_run_item_from_dict(data: dict[str, Any]) -> PayRunItem:
    """Build one ``PayRunItem``; omitted pay components are zero."""
    components = {
        name: to_decimal(data.get(name)) for name in PAY_COMPONENT_FIELDS
    }
    return PayRunItem(
        employee=employee_from_dict(data["employee"]),
        period_start_date=date.fromisoformat(data["period_start_date"]),
        period_end_date=date.fromisoformat(data["period_end_date"]),
        period_type=data.get("period_type", "monthly"),
        period_number=data.get("period_number"),
        **components,
    )


def parse_pay_run(document: dict[str, Any]) -> tuple[str | None, list[PayRunItem]]:
    """Return ``(pay_run_id, items)`` from a parsed JSON document."""
    items = [pay_run_item_from_dict(item) for item in document.get("items", [])]
    return document.get("pay_run_id"), items


def load_pay_run(path: Path) -> tuple[str | None, list[PayRunItem]]:
    """Read and parse a pay-run JSON file."""
    with open(path) as f:
        return parse_pay_run(json.load(f))
