"""Sales domain module.

- ``summarize_sales``: totals, average ticket and top products of PDV sales
- ``summarize_daily_sales``: PDV and delivery totals by payment method
- ``get_sales_report`` / ``get_daily_sales``: fetch + summarize

Example:
    >>> from pdv_core.sales import get_sales_report
    >>> summary, sales = get_sales_report(client, "loja1", DateRange.from_strings("2025-01-01"))
    >>> summary.top_products.head()
"""

from pdv_core.sales.api import get_daily_sales, get_sales_report
from pdv_core.sales.report import (
    DailySalesSummary,
    SalesSummary,
    export_sales_csv,
    summarize_daily_sales,
    summarize_sales,
)

__all__ = [
    "DailySalesSummary",
    "SalesSummary",
    "export_sales_csv",
    "get_daily_sales",
    "get_sales_report",
    "summarize_daily_sales",
    "summarize_sales",
]
