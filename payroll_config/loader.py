"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads tax-year YAML files and parses them into the frozen
``TaxYearConfiguration`` schema, and serializes a configuration back to a
plain dict for storage or checksumming.

Architecture position
---------------------
**Config layer** -- infrastructure tooling. Consumed by
``payroll_config.get_tax_year_config()``. Has no dependency on the engines
or services.

Invariants enforced
-------------------
* Every numeric value is converted to ``Decimal`` via ``str()`` so YAML
  floats such as ``0.138`` keep their written digits.
* No silent defaults for required fields: a missing key raises ``KeyError``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date format  -> ``ValueError`` from ``date.fromisoformat``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import ScottishBands, TaxYearConfiguration
from payroll_kernel.domain.values import to_decimal

_SPECIAL_FIELDS = frozenset(
    {"tax_year", "effective_from", "effective_to", "scottish_bands", "is_active"}
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """
    Parse a date from YAML (string or date object).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_scottish_bands(data: dict[str, Any]) -> ScottishBands:
    """Parse the nested Scottish band limits."""
    return ScottishBands(
        starter_limit=to_decimal(data["starter_limit"]),
        basic_limit=to_decimal(data["basic_limit"]),
        intermediate_limit=to_decimal(data["intermediate_limit"]),
        higher_limit=to_decimal(data["higher_limit"]),
    )


def parse_tax_year(data: dict[str, Any]) -> TaxYearConfiguration:
    """
    Parse a ``TaxYearConfiguration`` from a dict.

    Every schema field except ``is_active`` is required.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a date or amount cannot be parsed.
    """
    values: dict[str, Any] = {
        "tax_year": str(data["tax_year"]),
        "effective_from": parse_date(data["effective_from"]),
        "effective_to": parse_date(data["effective_to"]),
        "scottish_bands": parse_scottish_bands(data["scottish_bands"]),
        "is_active": bool(data.get("is_active", True)),
    }
    for f in fields(TaxYearConfiguration):
        if f.name in _SPECIAL_FIELDS:
            continue
        values[f.name] = to_decimal(data[f.name])
    return TaxYearConfiguration(**values)


def load_tax_year_file(path: Path) -> TaxYearConfiguration:
    """Load and parse one tax-year YAML file."""
    return parse_tax_year(load_yaml_file(path))


def load_tax_year_directory(directory: Path) -> list[TaxYearConfiguration]:
    """Load every ``*.yaml`` file in ``directory``, sorted by file name."""
    return [load_tax_year_file(p) for p in sorted(Path(directory).glob("*.yaml"))]


def config_to_dict(config: TaxYearConfiguration) -> dict[str, Any]:
    """
    Serialize a configuration to plain YAML/JSON-safe values.

    Dates become ISO strings and Decimals become strings, so
    ``parse_tax_year(config_to_dict(c)) == c``.
    """
    out: dict[str, Any] = {}
    for f in fields(config):
        value = getattr(config, f.name)
        if f.name == "scottish_bands":
            out[f.name] = {
                sf.name: str(getattr(value, sf.name)) for sf in fields(value)
            }
        elif isinstance(value, date):
            out[f.name] = value.isoformat()
        elif isinstance(value, bool) or isinstance(value, str):
            out[f.name] = value
        else:
            out[f.name] = str(value)
    return out


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def config_checksum(config: TaxYearConfiguration) -> str:
    """Checksum of a parsed configuration."""
    return compute_checksum(config_to_dict(config))
