"""Tabular views and CSV export of cash summaries.

The CSV layout is the one the cash screens download:

1. The entry listing, one row per entry, with the columns
   ``Data/Hora, Tipo, Canal, Descrição, Forma Pgto, Valor`` (plus
   ``Operador`` for multi-register reports).
2. A blank line.
3. The summary block: one ``label, amount`` row per total.
4. A blank line, the ``RESUMO POR FORMA DE PAGAMENTO`` title and one row
   per payment method with its PDV, delivery, other income and expense
   totals, the net total and the number of entries.

Amounts are written as pt-BR currency strings (``R$ 1.234,56``) and files are
UTF-8 with BOM so spreadsheet tools pick up the accents.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

import pandas as pd

from pdv_core.cash.reconcile import BUCKETS, INCOME_BUCKETS, CashSummary
from pdv_core.config import DEFAULT_TIMEZONE
from pdv_core.exceptions import ValidationError
from pdv_core.formatting import (
    entry_type_label,
    format_brl,
    format_datetime,
    parse_brl,
    payment_method_label,
    source_label,
)
from pdv_core.models import CashEntry

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = ["Data/Hora", "Tipo", "Canal", "Descrição", "Forma Pgto", "Valor"]
OPERATOR_COLUMN = "Operador"

# Summary block: CSV label -> key returned by read_summary_csv
SUMMARY_ROWS = {
    "Saldo inicial": "opening_amount",
    "Vendas PDV": "pdv_sales",
    "Vendas Delivery": "delivery_sales",
    "Entradas manuais": "manual_income",
    "Saídas": "expenses",
    "Saldo esperado (total)": "expected_balance",
    "Saldo esperado (gaveta)": "expected_cash_in_drawer",
    "Valor de fechamento": "closing_amount",
    "Diferença": "difference",
    "Diferença (gaveta)": "cash_difference",
}

# Written in place of amounts that do not exist yet (open register)
MISSING_VALUE = "-"

PAYMENT_BLOCK_TITLE = "RESUMO POR FORMA DE PAGAMENTO"

# Payment block: CSV header -> key returned by read_payment_methods_csv
PAYMENT_BLOCK_COLUMNS = {
    "Forma": "label",
    "PDV": "pdv",
    "Delivery": "delivery",
    "Outras Entradas": "manual",
    "Saídas": "expense",
    "Total": "total",
    "Lançamentos": "count",
}


def entries_frame(
    entries: Iterable[CashEntry],
    tz: str = DEFAULT_TIMEZONE,
    include_operator: bool = False,
) -> pd.DataFrame:
    """Build the entry listing, oldest entry first.

    Expense amounts are shown negative.
    """
    ordered = sorted(entries, key=lambda e: (e.created_at, e.id))
    rows = []
    for entry in ordered:
        row = {
            "Data/Hora": format_datetime(entry.created_at, tz),
            "Tipo": entry_type_label(entry.type.value),
            "Canal": source_label(entry.source.value),
            "Descrição": entry.description,
            "Forma Pgto": payment_method_label(entry.payment_method),
            "Valor": format_brl(entry.signed_amount),
        }
        if include_operator:
            row[OPERATOR_COLUMN] = entry.operator_name or ""
        rows.append(row)

    columns = ENTRY_COLUMNS + ([OPERATOR_COLUMN] if include_operator else [])
    return pd.DataFrame(rows, columns=columns)


def _summary_values(summary: CashSummary) -> dict[str, Decimal | None]:
    return {
        "opening_amount": summary.opening_amount,
        "pdv_sales": summary.pdv.total,
        "delivery_sales": summary.delivery.total,
        "manual_income": summary.manual.total,
        "expenses": summary.expense.total,
        "expected_balance": summary.expected_balance,
        "expected_cash_in_drawer": summary.expected_cash_in_drawer,
        "closing_amount": summary.closing_amount,
        "difference": summary.difference,
        "cash_difference": summary.cash_difference,
    }


def summary_frame(summary: CashSummary) -> pd.DataFrame:
    """Two-column (label, formatted amount) view of the summary block."""
    values = _summary_values(summary)
    rows = [
        {
            "Resumo": label,
            "Valor": MISSING_VALUE if values[key] is None else format_brl(values[key]),
        }
        for label, key in SUMMARY_ROWS.items()
    ]
    return pd.DataFrame(rows, columns=["Resumo", "Valor"])


def payment_methods_frame(summary: CashSummary) -> pd.DataFrame:
    """Payment-method breakdown: one row per method, one column per bucket.

    Columns: method, label, pdv, delivery, manual, expense, income, share_pct.
    Amounts stay Decimal; ``share_pct`` is the method's share of total income.
    """
    rows = []
    for method, buckets in summary.payment_methods.items():
        row: dict[str, object] = {"method": method, "label": payment_method_label(method)}
        for name in BUCKETS:
            row[name] = buckets[name].total
        row["income"] = sum((buckets[name].total for name in INCOME_BUCKETS), Decimal("0"))
        row["share_pct"] = summary.payment_share(method)
        rows.append(row)

    columns = ["method", "label", *BUCKETS, "income", "share_pct"]
    return pd.DataFrame(rows, columns=columns)


def payment_block_frame(summary: CashSummary) -> pd.DataFrame:
    """Formatted per-payment-method block written below the summary.

    ``Total`` is income minus expenses for the method; ``Lançamentos`` is the
    number of entries across all buckets.
    """
    rows = []
    for method, buckets in summary.payment_methods.items():
        income = sum((buckets[name].total for name in INCOME_BUCKETS), Decimal("0"))
        rows.append(
            {
                "Forma": payment_method_label(method),
                "PDV": format_brl(buckets["pdv"].total),
                "Delivery": format_brl(buckets["delivery"].total),
                "Outras Entradas": format_brl(buckets["manual"].total),
                "Saídas": format_brl(buckets["expense"].total),
                "Total": format_brl(income - buckets["expense"].total),
                "Lançamentos": sum(buckets[name].count for name in BUCKETS),
            }
        )
    return pd.DataFrame(rows, columns=list(PAYMENT_BLOCK_COLUMNS))


def export_cash_csv(
    summary: CashSummary,
    entries: Iterable[CashEntry],
    path: str | Path,
    tz: str = DEFAULT_TIMEZONE,
    include_operator: bool = False,
) -> Path:
    """Write the entry listing, summary block and payment-method block to a CSV file.

    Args:
        summary: Summary returned by the aggregator.
        entries: Entries to list (normally the ones folded into ``summary``).
        path: Output file; parent directories are created.
        tz: Timezone used for the ``Data/Hora`` column.
        include_operator: Add the ``Operador`` column (multi-register reports).

    Returns:
        Path of the written file.
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    listing = entries_frame(entries, tz=tz, include_operator=include_operator)
    block = summary_frame(summary)
    methods = payment_block_frame(summary)

    with out_path.open("w", encoding="utf-8-sig", newline="") as fh:
        listing.to_csv(fh, index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        fh.write("\n")
        block.to_csv(fh, index=False, header=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        fh.write("\n")
        fh.write(PAYMENT_BLOCK_TITLE + "\n")
        methods.to_csv(fh, index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")

    logger.info(
        "Wrote %d entries, summary and %d payment method(s) to %s", len(listing), len(methods), out_path
    )
    return out_path


def _read_rows(path: str | Path) -> pd.DataFrame:
    return pd.read_csv(
        path,
        encoding="utf-8-sig",
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        names=list(range(len(PAYMENT_BLOCK_COLUMNS))),
    )


def read_summary_csv(path: str | Path) -> dict[str, Decimal | None]:
    """Re-parse the summary block of a file written by :func:`export_cash_csv`.

    Returns:
        Dictionary keyed like :data:`SUMMARY_ROWS` values; amounts that were
        not available (e.g. the difference of an open register) are None.

    Raises:
        ValidationError: If the file holds no summary block or an amount
            cannot be parsed.
    """
    df = _read_rows(path)

    result: dict[str, Decimal | None] = {}
    for label, raw in zip(df[0], df[1]):
        if label == PAYMENT_BLOCK_TITLE:
            break
        key = SUMMARY_ROWS.get(label)
        if key is None:
            continue
        if raw == MISSING_VALUE:
            result[key] = None
            continue
        try:
            result[key] = parse_brl(raw)
        except ValueError as e:
            raise ValidationError(f"Summary row {label!r} has an invalid amount: {raw!r}") from e

    if not result:
        raise ValidationError(f"No summary block found in {path}")
    return result


def read_payment_methods_csv(path: str | Path) -> dict[str, dict[str, Decimal | int]]:
    """Re-parse the payment-method block of a file written by :func:`export_cash_csv`.

    Returns:
        Dictionary {method label: {"pdv", "delivery", "manual", "expense",
        "total": Decimal, "count": int}} in file order. Empty when the
        summary had no entries.

    Raises:
        ValidationError: If the block is missing or a cell cannot be parsed.
    """
    df = _read_rows(path)
    titles = df.index[df[0] == PAYMENT_BLOCK_TITLE]
    if len(titles) == 0:
        raise ValidationError(f"No payment method block found in {path}")
    block = df.loc[titles[0] + 2 :]
    keys = list(PAYMENT_BLOCK_COLUMNS.values())

    result: dict[str, dict[str, Decimal | int]] = {}
    for row in block.itertuples(index=False):
        cells = dict(zip(keys, row))
        label = cells.pop("label")
        try:
            parsed: dict[str, Decimal | int] = {
                key: int(raw) if key == "count" else parse_brl(raw) for key, raw in cells.items()
            }
        except ValueError as e:
            raise ValidationError(f"Payment method row {label!r} is malformed: {row!r}") from e
        result[label] = parsed
    return result
