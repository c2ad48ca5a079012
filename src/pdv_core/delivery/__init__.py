"""Delivery orders domain module."""

from pdv_core.delivery.api import get_delivery_report
from pdv_core.delivery.report import (
    DeliverySummary,
    export_delivery_csv,
    filter_orders,
    summarize_orders,
)

__all__ = [
    "DeliverySummary",
    "export_delivery_csv",
    "filter_orders",
    "get_delivery_report",
    "summarize_orders",
]
