"""Cash register domain module.

- ``reconcile``: fold entries into a CashSummary (pure, no I/O)
- ``export``: pandas views and CSV export / re-parse
- ``api``: fetch + summarize for a location and period
- ``ledger``: open / close registers and record entries

Example:
    >>> from pdv_core.cash import summarize_register
    >>> summarize_register([], opening_amount=150).expected_balance
    Decimal('150.00')
"""

from pdv_core.cash.api import CashReport, get_cash_report, get_cash_summary, get_daily_cash_summary
from pdv_core.cash.export import export_cash_csv, read_payment_methods_csv, read_summary_csv
from pdv_core.cash.reconcile import (
    BucketTotals,
    CashSummary,
    MethodTotals,
    summarize_cash,
    summarize_cash_by_day,
    summarize_register,
)

__all__ = [
    "BucketTotals",
    "CashReport",
    "CashSummary",
    "MethodTotals",
    "export_cash_csv",
    "get_cash_report",
    "get_cash_summary",
    "get_daily_cash_summary",
    "read_payment_methods_csv",
    "read_summary_csv",
    "summarize_cash",
    "summarize_cash_by_day",
    "summarize_register",
]
