"""PDV sales report: totals, average ticket, payment mix and top products."""

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
from pdv_core.formatting import format_brl, format_datetime, payment_method_label
from pdv_core.models import Order, PdvSale
from pdv_core.utils import ZERO, to_money

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10
TOP_PRODUCT_COLUMNS = ["product_name", "quantity", "revenue"]


@dataclass
class ChannelTotals:
    """Count, sum and payment breakdown of one sales channel."""

    count: int = 0
    total: Decimal = ZERO
    by_payment: dict[str, MethodTotals] = field(default_factory=dict)

    def add(self, method: str, amount: Decimal) -> None:
        self.count += 1
        self.total += amount
        self.by_payment.setdefault(method, MethodTotals()).add(amount)


@dataclass
class SalesSummary:
    """Totals of the non-cancelled PDV sales of a period.

    Attributes:
        total_sales: Number of sales.
        total_amount: Revenue.
        avg_ticket: Revenue per sale, 0 when there are no sales.
        cancelled_count: Cancelled sales left out of every total.
        by_payment: Payment type -> count and total.
        top_products: Best sellers by revenue (product_name, quantity, revenue).
    """

    total_sales: int
    total_amount: Decimal
    avg_ticket: Decimal
    cancelled_count: int
    by_payment: dict[str, MethodTotals]
    top_products: pd.DataFrame


@dataclass
class DailySalesSummary:
    pdv: ChannelTotals
    delivery: ChannelTotals

    @property
    def total(self) -> Decimal:
        return self.pdv.total + self.delivery.total

    @property
    def count(self) -> int:
        return self.pdv.count + self.delivery.count


def summarize_sales(sales: Iterable[PdvSale], top_n: int = DEFAULT_TOP_N) -> SalesSummary:
    """Summarize PDV sales, skipping cancelled ones.

    Args:
        sales: Sales of the period.
        top_n: Number of products kept in ``top_products``.

    Returns:
        SalesSummary.

    Examples:
        >>> summary = summarize_sales([])
        >>> summary.total_sales, summary.avg_ticket
        (0, Decimal('0'))

    """
    channel = ChannelTotals()
    cancelled = 0
    products: dict[str, list[Decimal]] = {}

    for sale in sales:
        if sale.is_cancelled:
            cancelled += 1
            continue
        channel.add(sale.payment_type, sale.total_amount)
        for item in sale.items:
            qty_rev = products.setdefault(item.product_name, [ZERO, ZERO])
            qty_rev[0] += item.quantity
            qty_rev[1] += item.subtotal

    avg_ticket = to_money(channel.total / channel.count) if channel.count else ZERO

    ranked = sorted(products.items(), key=lambda kv: (-kv[1][1], kv[0]))[:top_n]
    top = pd.DataFrame(
        [{"product_name": name, "quantity": qty, "revenue": rev} for name, (qty, rev) in ranked],
        columns=TOP_PRODUCT_COLUMNS,
    )

    logger.debug("Summarized %d sale(s), %d cancelled", channel.count, cancelled)
    return SalesSummary(
        total_sales=channel.count,
        total_amount=channel.total,
        avg_ticket=avg_ticket,
        cancelled_count=cancelled,
        by_payment=channel.by_payment,
        top_products=top,
    )


def summarize_daily_sales(sales: Iterable[PdvSale], orders: Iterable[Order]) -> DailySalesSummary:
    """PDV and delivery totals by payment method, cancellations excluded."""
    pdv = ChannelTotals()
    for sale in sales:
        if not sale.is_cancelled:
            pdv.add(sale.payment_type, sale.total_amount)

    delivery = ChannelTotals()
    for order in orders:
        if not order.is_cancelled:
            delivery.add(order.payment_method, order.total_price)

    return DailySalesSummary(pdv=pdv, delivery=delivery)


def sales_frame(sales: Iterable[PdvSale], tz: str = DEFAULT_TIMEZONE) -> pd.DataFrame:
    rows = [
        {
            "Data/Hora": format_datetime(sale.created_at, tz),
            "Venda": "" if sale.sale_number is None else f"#{sale.sale_number}",
            "Forma Pgto": payment_method_label(sale.payment_type),
            "Itens": len(sale.items),
            "Valor": format_brl(sale.total_amount),
            "Cancelada": "Sim" if sale.is_cancelled else "Não",
        }
        for sale in sorted(sales, key=lambda s: (s.created_at, s.id))
    ]
    return pd.DataFrame(rows, columns=["Data/Hora", "Venda", "Forma Pgto", "Itens", "Valor", "Cancelada"])


def export_sales_csv(
    summary: SalesSummary,
    sales: Iterable[PdvSale],
    path: str | Path,
    tz: str = DEFAULT_TIMEZONE,
) -> Path:
    """Write the sales listing followed by the totals block."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    listing = sales_frame(sales, tz)
    block = [
        {"Resumo": "Total de vendas", "Valor": str(summary.total_sales)},
        {"Resumo": "Faturamento", "Valor": format_brl(summary.total_amount)},
        {"Resumo": "Ticket médio", "Valor": format_brl(summary.avg_ticket)},
        {"Resumo": "Canceladas", "Valor": str(summary.cancelled_count)},
    ]
    block += [
        {"Resumo": payment_method_label(method), "Valor": format_brl(t.total)}
        for method, t in sorted(summary.by_payment.items())
    ]

    with out_path.open("w", encoding="utf-8-sig", newline="") as fh:
        listing.to_csv(fh, index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        fh.write("\n")
        pd.DataFrame(block).to_csv(
            fh, index=False, header=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n"
        )

    logger.info("Wrote %d sale(s) to %s", len(listing), out_path)
    return out_path
