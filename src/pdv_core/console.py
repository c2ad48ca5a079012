"""Console output formatting for reports."""

from __future__ import annotations

from pdv_core.cash.export import payment_methods_frame
from pdv_core.cash.reconcile import CashSummary
from pdv_core.delivery.report import DeliverySummary
from pdv_core.formatting import format_brl, order_status_label, payment_method_label
from pdv_core.sales.report import DailySalesSummary, SalesSummary
from pdv_core.utils import DateRange, percentage_of

RULE = "=" * 60


def _money_or_dash(value) -> str:
    return "-" if value is None else format_brl(value)


def format_cash_summary(summary: CashSummary | None, title: str, period: DateRange) -> str:
    """Build a human-readable cash report.

    Args:
        summary: Summary to print, or None when no register was opened.
        title: Heading, usually the location label.
        period: Report period.

    Returns:
        Multi-line text.
    """
    lines = [f"Caixa - {title} - {period.label()}", RULE]
    if summary is None:
        lines.append("Nenhum caixa aberto no período.")
        return "\n".join(lines)

    lines.append(f"Caixas no período:       {summary.register_count}")
    lines.append(f"Saldo inicial:           {format_brl(summary.opening_amount)}")
    lines.append(
        f"Vendas PDV:              {format_brl(summary.pdv.total)} ({summary.pdv.count}) "
        f"{summary.channel_share('pdv')}%"
    )
    lines.append(
        f"Vendas Delivery:         {format_brl(summary.delivery.total)} ({summary.delivery.count}) "
        f"{summary.channel_share('delivery')}%"
    )
    lines.append(f"Entradas manuais:        {format_brl(summary.manual.total)} ({summary.manual.count})")
    lines.append(f"Saídas:                  {format_brl(summary.expense.total)} ({summary.expense.count})")
    lines.append("")
    lines.append(f"Saldo esperado (total):  {format_brl(summary.expected_balance)}")
    lines.append(f"Saldo esperado (gaveta): {format_brl(summary.expected_cash_in_drawer)}")
    lines.append(f"Valor de fechamento:     {_money_or_dash(summary.closing_amount)}")
    lines.append(f"Diferença:               {_money_or_dash(summary.difference)}")
    lines.append(f"Diferença (gaveta):      {_money_or_dash(summary.cash_difference)}")

    methods = payment_methods_frame(summary)
    if not methods.empty:
        lines.append("")
        lines.append("Formas de pagamento:")
        for _, row in methods.iterrows():
            lines.append(f"  {row['label']:<20} {format_brl(row['income']):>14}  {row['share_pct']}%")
    return "\n".join(lines)


def format_sales_summary(summary: SalesSummary, title: str, period: DateRange) -> str:
    lines = [f"Vendas - {title} - {period.label()}", RULE]
    lines.append(f"Total de vendas: {summary.total_sales}")
    lines.append(f"Faturamento:     {format_brl(summary.total_amount)}")
    lines.append(f"Ticket médio:    {format_brl(summary.avg_ticket)}")
    if summary.cancelled_count:
        lines.append(f"Canceladas:      {summary.cancelled_count}")

    if summary.by_payment:
        lines.append("")
        lines.append("Formas de pagamento:")
        for method, totals in sorted(summary.by_payment.items()):
            share = percentage_of(totals.total, summary.total_amount)
            lines.append(
                f"  {payment_method_label(method):<20} {format_brl(totals.total):>14} ({totals.count}) {share}%"
            )

    if not summary.top_products.empty:
        lines.append("")
        lines.append("Produtos mais vendidos:")
        for rank, (_, row) in enumerate(summary.top_products.iterrows(), start=1):
            lines.append(f"  {rank:>2}. {row['product_name']:<30} {row['quantity']:>8} {format_brl(row['revenue']):>14}")
    return "\n".join(lines)


def format_daily_sales(summary: DailySalesSummary, title: str, period: DateRange) -> str:
    lines = [f"Vendas do dia - {title} - {period.label()}", RULE]
    for name, channel in (("PDV", summary.pdv), ("Delivery", summary.delivery)):
        lines.append(f"{name}: {format_brl(channel.total)} ({channel.count})")
        for method, totals in sorted(channel.by_payment.items()):
            lines.append(f"  {payment_method_label(method):<20} {format_brl(totals.total):>14}")
    lines.append("")
    lines.append(f"Total: {format_brl(summary.total)} ({summary.count})")
    return "\n".join(lines)


def format_delivery_summary(summary: DeliverySummary, period: DateRange) -> str:
    lines = [f"Delivery - {period.label()}", RULE]
    lines.append(f"Pedidos:          {summary.count}")
    lines.append(f"Valor total:      {format_brl(summary.total)}")
    lines.append(f"Ticket médio:     {format_brl(summary.avg_ticket)}")
    lines.append(f"Taxas de entrega: {format_brl(summary.delivery_fees_total)}")

    sections = (
        ("Por status:", summary.by_status, order_status_label),
        ("Por pagamento:", summary.by_payment, payment_method_label),
        ("Por bairro:", summary.by_neighborhood, str),
    )
    for heading, table, label in sections:
        if not table:
            continue
        lines.append("")
        lines.append(heading)
        for key, totals in sorted(table.items()):
            lines.append(f"  {label(key):<22} {totals.count:>4} {format_brl(totals.total):>14}")
    return "\n".join(lines)
