"""
payroll_config -- single public entrypoint for tax-year configuration.

Responsibility:
    Provides ``get_tax_year_config()``, the runtime way to obtain the
    ``TaxYearConfiguration`` in force on a date, plus the built-in 2024/25
    fixture and the registry used by the pay-run service.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and below
    ``payroll_engines`` / ``payroll_services``. The kernel never imports
    from here.

Failure modes:
    - ``TaxYearNotFoundError`` -- no configuration covers the date.
    - ``TaxYearOverlapError`` -- two YAML files claim the same dates.
    - ``KeyError`` / ``yaml.YAMLError`` -- malformed configuration files.

Audit relevance:
    Every successful ``get_tax_year_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the tax year and a checksum,
    tying each calculation back to the exact constants that governed it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from payroll_config.defaults import get_default_tax_year_config
from payroll_config.loader import (
    config_checksum,
    config_to_dict,
    load_tax_year_directory,
    load_tax_year_file,
    parse_tax_year,
)
from payroll_config.registry import TaxYearRegistry
from payroll_config.schema import ScottishBands, TaxYearConfiguration
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def load_registry(config_dir: Path | None = None) -> TaxYearRegistry:
    """Build a registry from every YAML file in ``config_dir``."""
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    return TaxYearRegistry(load_tax_year_directory(sets_dir))


def get_tax_year_config(
    as_of_date: date,
    config_dir: Path | None = None,
) -> TaxYearConfiguration:
    """
    Return the tax-year configuration in force on ``as_of_date``.

    Args:
        as_of_date: Date to resolve (typically the pay period end date).
        config_dir: Directory of tax-year YAML files. Defaults to the
            bundled ``payroll_config/sets``.

    Raises:
        TaxYearNotFoundError: If no configuration covers the date.
    """
    registry = load_registry(config_dir)
    config = registry.for_date(as_of_date)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "tax_year": config.tax_year,
            "as_of_date": as_of_date.isoformat(),
            "checksum": config_checksum(config),
            "available_tax_years": list(registry.tax_years),
        },
    )
    return config


__all__ = [
    "ScottishBands",
    "TaxYearConfiguration",
    "TaxYearRegistry",
    "config_checksum",
    "config_to_dict",
    "get_default_tax_year_config",
    "get_tax_year_config",
    "load_registry",
    "load_tax_year_directory",
    "load_tax_year_file",
    "parse_tax_year",
]
