"""Tests for cash CSV export and re-parse."""

from decimal import Decimal

import pandas as pd

from conftest import make_entry_row, make_register_row
from pdv_core.cash.export import (
    ENTRY_COLUMNS,
    entries_frame,
    export_cash_csv,
    payment_methods_frame,
    payment_block_frame,
    read_payment_methods_csv,
    read_summary_csv,
    summary_frame,
)
from pdv_core.cash.reconcile import summarize_cash, summarize_register
from pdv_core.models import CashEntry


def _entries(rows):
    return [CashEntry.from_row(r) for r in rows]


def test_entries_frame_columns_and_values(scenario_a_entries) -> None:
    df = entries_frame(_entries(scenario_a_entries), tz="America/Sao_Paulo")

    assert list(df.columns) == ENTRY_COLUMNS
    assert len(df) == 3
    withdrawal = df[df["Descrição"] == "Retirada"].iloc[0]
    assert withdrawal["Tipo"] == "Saída"
    assert withdrawal["Valor"] == "-R$ 20,00"
    assert withdrawal["Data/Hora"] == "15/01/2025, 10:00:00"
    assert df.iloc[1]["Canal"] == "Delivery"


def test_entries_frame_with_operator(scenario_a_entries) -> None:
    df = entries_frame(_entries(scenario_a_entries), include_operator=True)
    assert list(df.columns) == ENTRY_COLUMNS + ["Operador"]


def test_summary_frame_marks_missing_difference() -> None:
    df = summary_frame(summarize_register([], opening_amount=150))
    values = dict(zip(df["Resumo"], df["Valor"]))

    assert values["Saldo esperado (total)"] == "R$ 150,00"
    assert values["Diferença"] == "-"


def test_csv_round_trip_reproduces_totals(tmp_path, scenario_a_entries) -> None:
    rows = scenario_a_entries + [
        make_entry_row("e4", "income", "1234.56", "Reforço, moedas", "dinheiro"),
    ]
    registers = [make_register_row(closing_amount="1500.99", closed_at="2025-01-15T22:00:00Z")]
    summary = summarize_cash(rows, registers)

    path = export_cash_csv(summary, _entries(rows), tmp_path / "out" / "caixa.csv")
    parsed = read_summary_csv(path)

    assert parsed["pdv_sales"] == summary.pdv.total
    assert parsed["delivery_sales"] == summary.delivery.total
    assert parsed["manual_income"] == Decimal("1234.56")
    assert parsed["expenses"] == summary.expense.total
    assert parsed["expected_balance"] == summary.expected_balance
    assert parsed["expected_cash_in_drawer"] == summary.expected_cash_in_drawer
    assert parsed["closing_amount"] == Decimal("1500.99")
    assert parsed["difference"] == summary.difference
    assert parsed["cash_difference"] == summary.cash_difference

    methods = read_payment_methods_csv(path)
    assert list(methods) == ["Dinheiro", "PIX"]
    assert methods["Dinheiro"] == {
        "pdv": Decimal("100"),
        "delivery": Decimal("0"),
        "manual": Decimal("1234.56"),
        "expense": Decimal("20"),
        "total": Decimal("1314.56"),
        "count": 3,
    }
    assert methods["PIX"]["delivery"] == Decimal("50")
    assert methods["PIX"]["count"] == 1


def test_csv_is_utf8_with_bom(tmp_path, scenario_a_entries) -> None:
    summary = summarize_register(scenario_a_entries, opening_amount=200)
    path = export_cash_csv(summary, _entries(scenario_a_entries), tmp_path / "caixa.csv")

    raw = path.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    text = raw.decode("utf-8-sig")
    assert text.splitlines()[0] == "Data/Hora,Tipo,Canal,Descrição,Forma Pgto,Valor"
    assert read_summary_csv(path)["difference"] is None


def test_payment_methods_frame(scenario_a_entries) -> None:
    summary = summarize_register(scenario_a_entries, opening_amount=200)
    df = payment_methods_frame(summary)

    assert isinstance(df, pd.DataFrame)
    assert list(df["method"]) == ["dinheiro", "pix"]
    cash = df[df["method"] == "dinheiro"].iloc[0]
    assert cash["income"] == Decimal("100")
    assert cash["expense"] == Decimal("20")
    assert cash["share_pct"] == Decimal("66.7")


def test_payment_block_follows_summary(tmp_path, scenario_a_entries) -> None:
    summary = summarize_register(scenario_a_entries, opening_amount=200)
    path = export_cash_csv(summary, _entries(scenario_a_entries), tmp_path / "caixa.csv")
    lines = path.read_text(encoding="utf-8-sig").splitlines()

    title = lines.index("RESUMO POR FORMA DE PAGAMENTO")
    assert lines[title - 1] == ""
    assert lines[title + 1] == "Forma,PDV,Delivery,Outras Entradas,Saídas,Total,Lançamentos"
    assert lines[title + 2] == 'Dinheiro,"R$ 100,00","R$ 0,00","R$ 0,00","R$ 20,00","R$ 80,00",2'


def test_payment_block_frame_empty_summary() -> None:
    df = payment_block_frame(summarize_register([], opening_amount=150))
    assert df.empty
    assert list(df.columns) == ["Forma", "PDV", "Delivery", "Outras Entradas", "Saídas", "Total", "Lançamentos"]
