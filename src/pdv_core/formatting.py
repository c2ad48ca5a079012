"""Brazilian Portuguese formatting utilities for reports.

This module centralizes currency and datetime formatting plus the display
labels used by every report and CSV export.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from pdv_core.utils import to_money

CURRENCY_SYMBOL = "R$"

# Payment methods recorded by the PDV screens and cash entries
PAYMENT_METHOD_LABELS = {
    "dinheiro": "Dinheiro",
    "pix": "PIX",
    "cartao_credito": "Cartão de Crédito",
    "cartao_debito": "Cartão de Débito",
    "voucher": "Voucher",
    "misto": "Pagamento Misto",
}

# Payment methods recorded by delivery orders
DELIVERY_PAYMENT_LABELS = {
    "money": "Dinheiro",
    "pix": "PIX",
    "card": "Cartão",
}

ORDER_STATUS_LABELS = {
    "pending": "Pendente",
    "confirmed": "Confirmado",
    "preparing": "Em Preparo",
    "out_for_delivery": "Saiu para Entrega",
    "ready_for_pickup": "Pronto para Retirada",
    "delivered": "Entregue",
    "cancelled": "Cancelado",
}

SOURCE_LABELS = {
    "pdv": "PDV",
    "delivery": "Delivery",
    "manual": "Manual",
}

ENTRY_TYPE_LABELS = {
    "income": "Entrada",
    "expense": "Saída",
}

_BRL_RE = re.compile(r"^\s*(-)?\s*R\$\s*([\d.]+(?:,\d+)?)\s*$")


def format_brl(value: Decimal | float | int) -> str:
    """Format an amount as Brazilian reais, e.g. ``R$ 1.234,56``.

    Negative amounts carry a leading minus: ``-R$ 20,00``.

    Examples:
        >>> format_brl(Decimal("1234.5"))
        'R$ 1.234,50'
        >>> format_brl(-20)
        '-R$ 20,00'

    """
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,.2f}"  # 1,234.56
    grouped = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{CURRENCY_SYMBOL} {grouped}"


def parse_brl(text: str) -> Decimal:
    """Parse a string produced by :func:`format_brl` back into a Decimal.

    Raises:
        ValueError: If the text is not a reais amount.

    Examples:
        >>> parse_brl("R$ 1.234,56")
        Decimal('1234.56')
        >>> parse_brl("-R$ 20,00")
        Decimal('-20.00')

    """
    m = _BRL_RE.match(text.replace("\xa0", " "))
    if not m:
        raise ValueError(f"Not a BRL amount: {text!r}")
    sign, number = m.groups()
    amount = to_money(number.replace(".", "").replace(",", "."))
    return -amount if sign else amount


def format_datetime(ts: datetime, tz: str) -> str:
    """Format an instant as ``dd/mm/aaaa, HH:MM:SS`` in the store's timezone."""
    return ts.astimezone(ZoneInfo(tz)).strftime("%d/%m/%Y, %H:%M:%S")


def payment_method_label(method: str) -> str:
    return PAYMENT_METHOD_LABELS.get(method) or DELIVERY_PAYMENT_LABELS.get(method) or method


def order_status_label(status: str) -> str:
    return ORDER_STATUS_LABELS.get(status, status)


def source_label(source: str | None) -> str:
    return SOURCE_LABELS.get(source or "manual", "Manual")


def entry_type_label(entry_type: str) -> str:
    return ENTRY_TYPE_LABELS.get(entry_type, entry_type)
