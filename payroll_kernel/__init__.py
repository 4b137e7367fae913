"""
Payroll Kernel

Shared foundation for the UK payroll calculation engine:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Pure, immutable domain types (employee, periods, YTD ledger snapshot)
- Decimal-only money helpers with explicit penny rounding
"""

__version__ = "0.1.0"
