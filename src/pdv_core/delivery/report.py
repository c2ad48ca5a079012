"""Delivery orders report.

Totals cover every order of the period, whatever its status, matching the
delivery screen; ``by_status`` shows how much of it was cancelled.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

import pandas as pd

from pdv_core.cash.reconcile import MethodTotals
from pdv_core.config import DEFAULT_TIMEZONE
from pdv_core.formatting import format_brl, format_datetime, order_status_label, payment_method_label
from pdv_core.models import Order
from pdv_core.utils import ZERO, to_money

logger = logging.getLogger(__name__)

# Key used for orders without a neighborhood
NO_NEIGHBORHOOD = "Sem bairro"

ORDER_COLUMNS = [
    "Data/Hora",
    "Cliente",
    "Telefone",
    "Endereço",
    "Bairro",
    "Pagamento",
    "Taxa",
    "Total",
    "Status",
]


@dataclass
class DeliverySummary:
    """Totals of the delivery orders of a period."""

    count: int = 0
    total: Decimal = ZERO
    delivery_fees_total: Decimal = ZERO
    by_status: dict[str, MethodTotals] = field(default_factory=dict)
    by_payment: dict[str, MethodTotals] = field(default_factory=dict)
    by_neighborhood: dict[str, MethodTotals] = field(default_factory=dict)

    @property
    def avg_ticket(self) -> Decimal:
        return to_money(self.total / self.count) if self.count else ZERO

    @property
    def avg_delivery_fee(self) -> Decimal:
        return to_money(self.delivery_fees_total / self.count) if self.count else ZERO


def filter_orders(
    orders: Iterable[Order],
    status: str | None = None,
    payment_method: str | None = None,
    neighborhood: str | None = None,
) -> list[Order]:
    """Keep the orders matching every given criterion (None matches all)."""
    return [
        o
        for o in orders
        if (status is None or o.status == status)
        and (payment_method is None or o.payment_method == payment_method)
        and (neighborhood is None or (o.customer_neighborhood or NO_NEIGHBORHOOD) == neighborhood)
    ]


def summarize_orders(orders: Iterable[Order]) -> DeliverySummary:
    """Fold orders into counts and totals by status, payment and neighborhood.

    Examples:
        >>> summarize_orders([]).avg_ticket
        Decimal('0')

    """
    summary = DeliverySummary()
    for order in orders:
        summary.count += 1
        summary.total += order.total_price
        summary.delivery_fees_total += order.delivery_fee
        summary.by_status.setdefault(order.status, MethodTotals()).add(order.total_price)
        summary.by_payment.setdefault(order.payment_method, MethodTotals()).add(order.total_price)
        hood = order.customer_neighborhood or NO_NEIGHBORHOOD
        summary.by_neighborhood.setdefault(hood, MethodTotals()).add(order.total_price)
    return summary


def orders_frame(orders: Iterable[Order], tz: str = DEFAULT_TIMEZONE) -> pd.DataFrame:
    rows = [
        {
            "Data/Hora": format_datetime(o.created_at, tz),
            "Cliente": o.customer_name,
            "Telefone": o.customer_phone or "",
            "Endereço": o.customer_address or "",
            "Bairro": o.customer_neighborhood or "",
            "Pagamento": payment_method_label(o.payment_method),
            "Taxa": format_brl(o.delivery_fee),
            "Total": format_brl(o.total_price),
            "Status": order_status_label(o.status),
        }
        for o in sorted(orders, key=lambda o: (o.created_at, o.id))
    ]
    return pd.DataFrame(rows, columns=ORDER_COLUMNS)


def export_delivery_csv(
    summary: DeliverySummary,
    orders: Iterable[Order],
    path: str | Path,
    tz: str = DEFAULT_TIMEZONE,
) -> Path:
    """Write the order listing, then totals by status and by payment method."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    listing = orders_frame(orders, tz)
    block = [
        {"Resumo": "Total de pedidos", "Qtd": str(summary.count), "Valor": ""},
        {"Resumo": "Valor Total", "Qtd": "", "Valor": format_brl(summary.total)},
        {"Resumo": "Taxas de entrega", "Qtd": "", "Valor": format_brl(summary.delivery_fees_total)},
    ]
    block += [
        {"Resumo": order_status_label(status), "Qtd": str(t.count), "Valor": format_brl(t.total)}
        for status, t in sorted(summary.by_status.items())
    ]
    block += [
        {"Resumo": payment_method_label(method), "Qtd": str(t.count), "Valor": format_brl(t.total)}
        for method, t in sorted(summary.by_payment.items())
    ]

    with out_path.open("w", encoding="utf-8-sig", newline="") as fh:
        listing.to_csv(fh, index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        fh.write("\n")
        pd.DataFrame(block).to_csv(
            fh, index=False, header=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n"
        )

    logger.info("Wrote %d order(s) to %s", len(listing), out_path)
    return out_path
