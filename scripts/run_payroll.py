#!/usr/bin/env python3
"""
Run a pay run from a JSON file and print the results.

Loads the tax-year configurations (bundled ``payroll_config/sets`` unless
``--config-dir`` is given), calculates every item through
``PayRunService`` with an in-memory YTD ledger (or the database ledger
when ``--database-url`` is given), and prints a summary
table, or the full results as JSON with ``--json``.

Usage:
    python3 scripts/run_payroll.py --input run.json
    python3 scripts/run_payroll.py --input run.json --config-dir my_sets --json
    python3 scripts/run_payroll.py --input run.json --log-level DEBUG
    python3 scripts/run_payroll.py --input run.json --database-url sqlite:///payroll.db
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from payroll_config import load_registry  # noqa: E402
from payroll_kernel.db import create_tables, get_session_factory, init_engine_from_url  # noqa: E402
from payroll_kernel.logging_config import configure_logging  # noqa: E402
from payroll_services import (  # noqa: E402
    InMemoryYTDLedger,
    PayRunResult,
    PayRunService,
    SqlYTDLedger,
)
from payroll_services.run_input import load_pay_run  # noqa: E402


def print_summary(result: PayRunResult) -> None:
    print()
    print(f"  Pay run {result.pay_run_id}: {result.status.value}")
    print("  " + "-" * 72)
    print(f"  {'Employee':<16}{'Period':>8}{'Gross':>14}{'Deductions':>14}{'Net':>14}")
    for item in result.items:
        if item.result is None:
            print(f"  {item.employee_id:<16}{item.period_number:>8}  "
                  f"{item.status.value.upper()} {item.error_code}: {'; '.join(item.errors)}")
            continue
        r = item.result
        print(f"  {item.employee_id:<16}{item.period_number:>8}"
              f"{r.gross_pay:>14,.2f}{r.total_deductions:>14,.2f}{r.net_pay:>14,.2f}")
    print("  " + "-" * 72)
    print(f"  {'Total':<24}{result.total_gross_pay:>14,.2f}"
          f"{result.total_deductions:>14,.2f}{result.total_net_pay:>14,.2f}")
    print(f"  Employer costs (NI + pension): {result.total_employer_costs:,.2f}")
    print()


def main() -> int:
    parser = argparse.ArgumentParser(description="Calculate a UK pay run from JSON.")
    parser.add_argument("--input", type=Path, required=True, help="Pay-run JSON file")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory of tax-year YAML files")
    parser.add_argument("--json", action="store_true", help="Print full results as JSON")
    parser.add_argument("--database-url", default=None,
                        help="Persist YTD figures to this SQLAlchemy URL")
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    configure_logging(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    if args.database_url:
        init_engine_from_url(args.database_url)
        create_tables()
        ledger = SqlYTDLedger(get_session_factory())
    else:
        ledger = InMemoryYTDLedger()

    pay_run_id, items = load_pay_run(args.input)
    service = PayRunService(
        registry=load_registry(args.config_dir),
        ledger=ledger,
    )
    result = service.run(items, pay_run_id=pay_run_id, max_workers=args.workers)

    if args.json:
        payload = {
            "pay_run_id": result.pay_run_id,
            "status": result.status.value,
            "items": [
                {
                    "employee_id": item.employee_id,
                    "period_number": item.period_number,
                    "status": item.status.value,
                    "error_code": item.error_code,
                    "errors": list(item.errors),
                    "result": item.result.to_dict() if item.result else None,
                }
                for item in result.items
            ],
        }
        print(json.dumps(payload, indent=2, default=str))
    else:
        print_summary(result)

    return 0 if not result.failures else 1


if __name__ == "__main__":
    sys.exit(main())
