"""Tests for the cash reconciliation aggregator."""

import random
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_entry_row, make_register_row
from pdv_core.cash.reconcile import (
    summarize_cash,
    summarize_cash_by_day,
    summarize_register,
)
from pdv_core.exceptions import NotFoundError, ValidationError
from pdv_core.models import CashEntry, CashRegister
from pdv_core.utils import DateRange


def test_scenario_a_buckets_and_balances(scenario_a_entries) -> None:
    """Sale, delivery and withdrawal fold into the expected buckets."""
    summary = summarize_cash(scenario_a_entries, [make_register_row(opening_amount=200)])

    assert summary.pdv.count == 1
    assert summary.pdv.total == Decimal("100")
    assert summary.delivery.total == Decimal("50")
    assert summary.manual.count == 0
    assert summary.expense.total == Decimal("20")
    assert summary.expected_balance == Decimal("330")
    assert summary.expected_total_revenue == summary.expected_balance
    assert summary.expected_cash_in_drawer == Decimal("280")
    assert summary.difference is None
    assert summary.cash_difference is None


def test_scenario_b_no_entries() -> None:
    """A register without entries yields zero totals and no difference."""
    summary = summarize_register([], opening_amount=150)

    assert summary.expected_balance == Decimal("150")
    assert summary.difference is None
    for name in ("pdv", "delivery", "manual", "expense"):
        assert summary.bucket(name).count == 0
        assert summary.bucket(name).total == 0


def test_income_buckets_sum_to_total_income(scenario_a_entries) -> None:
    extra = [
        make_entry_row("e4", "income", "12.35", "Reforço de caixa", "dinheiro"),
        make_entry_row("e5", "income", "7.10", "Venda #2", "cartao_debito"),
    ]
    summary = summarize_register(scenario_a_entries + extra, opening_amount=0)

    income = sum(
        (Decimal(str(r["amount"])) for r in scenario_a_entries + extra if r["type"] == "income"),
        Decimal("0"),
    )
    assert summary.pdv.total + summary.delivery.total + summary.manual.total == income
    assert summary.total_income == income


def test_expected_balance_is_order_independent(scenario_a_entries) -> None:
    rows = scenario_a_entries + [
        make_entry_row(f"x{i}", "income" if i % 3 else "expense", f"{i}.1{i}", f"Venda #{i}")
        for i in range(1, 10)
    ]
    baseline = summarize_register(rows, opening_amount=100)

    rng = random.Random(42)
    for _ in range(5):
        shuffled = rows[:]
        rng.shuffle(shuffled)
        other = summarize_register(shuffled, opening_amount=100)
        assert other.expected_balance == baseline.expected_balance
        assert other.expected_cash_in_drawer == baseline.expected_cash_in_drawer
        assert other.as_dict() == baseline.as_dict()


def test_difference_with_closing_amount(scenario_a_entries) -> None:
    summary = summarize_register(scenario_a_entries, opening_amount=200, closing_amount=300)

    assert summary.difference == Decimal("-30")
    assert summary.cash_difference == Decimal("20")


def test_expense_goes_to_expense_bucket_regardless_of_source() -> None:
    rows = [make_entry_row("e1", "expense", 10, "Venda #3 estornada")]
    summary = summarize_register(rows, opening_amount=0)

    assert summary.pdv.count == 0
    assert summary.expense.count == 1


def test_explicit_source_wins_over_description() -> None:
    rows = [make_entry_row("e1", "income", 10, "Venda #3", source="manual")]
    summary = summarize_register(rows, opening_amount=0)

    assert summary.manual.total == Decimal("10")
    assert summary.pdv.count == 0


def test_unknown_payment_method_is_kept() -> None:
    rows = [make_entry_row("e1", "income", 10, "Venda #1", payment_method="ifood")]
    summary = summarize_register(rows, opening_amount=0)

    assert summary.pdv.by_payment["ifood"].total == Decimal("10")
    assert summary.payment_share("ifood") == Decimal("100.0")


def test_payment_methods_table(scenario_a_entries) -> None:
    summary = summarize_register(scenario_a_entries, opening_amount=200)
    table = summary.payment_methods

    assert list(table) == ["dinheiro", "pix"]
    assert table["dinheiro"]["pdv"].total == Decimal("100")
    assert table["dinheiro"]["expense"].total == Decimal("20")
    assert table["pix"]["delivery"].count == 1
    assert summary.payment_share("pix") == Decimal("33.3")


def test_zero_total_percentages() -> None:
    summary = summarize_register([], opening_amount=0)

    assert summary.payment_share("dinheiro") == Decimal("0")
    assert summary.channel_share("pdv") == Decimal("0")


def test_no_register_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        summarize_cash([], [])


class TestValidation:
    def test_negative_amount(self) -> None:
        with pytest.raises(ValidationError):
            summarize_register([make_entry_row("e1", "income", -5, "Venda #1")], opening_amount=0)

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError, match="type"):
            summarize_register([make_entry_row("e1", "refund", 5, "Venda #1")], opening_amount=0)

    def test_missing_amount(self) -> None:
        row = make_entry_row("e1", "income", None, "Venda #1")
        with pytest.raises(ValidationError, match="amount"):
            summarize_register([row], opening_amount=0)

    def test_non_numeric_amount(self) -> None:
        with pytest.raises(ValidationError):
            summarize_register([make_entry_row("e1", "income", "abc", "x")], opening_amount=0)

    def test_bad_timestamp(self) -> None:
        row = make_entry_row("e1", "income", 5, "x", created_at="not a date")
        with pytest.raises(ValidationError, match="timestamp"):
            summarize_register([row], opening_amount=0)

    def test_wrong_object_type(self) -> None:
        with pytest.raises(ValidationError):
            summarize_register([42], opening_amount=0)

    @pytest.mark.parametrize("amount", ["0.004", "0.005", 1.234])
    def test_amount_finer_than_a_cent(self, amount) -> None:
        with pytest.raises(ValidationError, match="amount"):
            summarize_register([make_entry_row("e1", "income", amount, "Venda #1")], opening_amount=0)

    def test_opening_amount_finer_than_a_cent(self) -> None:
        with pytest.raises(ValidationError):
            summarize_register([], opening_amount="150.001")

    def test_amount_too_large_for_cents(self) -> None:
        with pytest.raises(ValidationError, match="amount"):
            summarize_register([make_entry_row("e1", "income", "1e30", "Venda #1")], opening_amount=0)
        with pytest.raises(ValidationError, match="opening_amount"):
            summarize_cash([], [make_register_row(opening_amount=1e40)])


class TestMultipleRegisters:
    def test_openings_and_closings_are_summed(self) -> None:
        registers = [
            make_register_row("r1", 100, closing_amount=150, closed_at="2025-01-15T18:00:00Z"),
            make_register_row("r2", 50, opened_at="2025-01-15T19:00:00Z", closing_amount=60,
                              closed_at="2025-01-15T23:00:00Z"),
        ]
        entries = [
            make_entry_row("e1", "income", 40, "Venda #1", register_id="r1"),
            make_entry_row("e2", "income", 10, "Venda #2", register_id="r2"),
        ]
        summary = summarize_cash(entries, registers)

        assert summary.register_count == 2
        assert summary.opening_amount == Decimal("150")
        assert summary.closing_amount == Decimal("210")
        assert summary.expected_balance == Decimal("200")
        assert summary.difference == Decimal("10")

    def test_closing_is_none_while_any_register_is_open(self) -> None:
        registers = [
            make_register_row("r1", 100, closing_amount=150, closed_at="2025-01-15T18:00:00Z"),
            make_register_row("r2", 50, opened_at="2025-01-15T19:00:00Z"),
        ]
        summary = summarize_cash([], registers)

        assert summary.closing_amount is None
        assert summary.difference is None

    def test_entries_of_unknown_registers_are_ignored(self) -> None:
        entries = [
            make_entry_row("e1", "income", 40, "Venda #1", register_id="r1"),
            make_entry_row("e2", "income", 99, "Venda #2", register_id="other"),
        ]
        summary = summarize_cash(entries, [make_register_row("r1", 0)])

        assert summary.pdv.total == Decimal("40")


class TestPeriodFiltering:
    def test_period_bounds_use_store_timezone(self) -> None:
        """23:30 local on the 15th is in; 00:00 local on the 16th is out."""
        registers = [
            make_register_row("late", 10, opened_at="2025-01-16T02:30:00Z"),
            make_register_row("next", 99, opened_at="2025-01-16T03:00:00Z"),
        ]
        period = DateRange.single_day(date(2025, 1, 15))
        summary = summarize_cash([], registers, period, tz="America/Sao_Paulo")

        assert summary.register_count == 1
        assert summary.opening_amount == Decimal("10")

    def test_no_register_in_period(self) -> None:
        period = DateRange.single_day(date(2025, 2, 1))
        with pytest.raises(NotFoundError, match="2025-02-01"):
            summarize_cash([], [make_register_row()], period)

    def test_entries_without_register_use_their_timestamp(self) -> None:
        period = DateRange.single_day(date(2025, 1, 15))
        entries = [
            make_entry_row("in", "income", 5, "x", register_id=None, created_at="2025-01-15T15:00:00Z"),
            make_entry_row("out", "income", 7, "x", register_id=None, created_at="2025-01-17T15:00:00Z"),
        ]
        summary = summarize_cash(entries, [make_register_row()], period)

        assert summary.manual.total == Decimal("5")


def test_summarize_cash_by_day() -> None:
    registers = [
        make_register_row("r1", 100, opened_at="2025-01-15T12:00:00Z"),
        make_register_row("r2", 80, opened_at="2025-01-16T12:00:00Z"),
    ]
    entries = [
        make_entry_row("e1", "income", 10, "Venda #1", register_id="r1"),
        make_entry_row("e2", "income", 20, "Venda #2", register_id="r2"),
    ]
    by_day = summarize_cash_by_day(entries, registers)

    assert list(by_day) == [date(2025, 1, 15), date(2025, 1, 16)]
    assert by_day[date(2025, 1, 15)].expected_balance == Decimal("110")
    assert by_day[date(2025, 1, 16)].expected_balance == Decimal("100")


def test_accepts_model_objects(scenario_a_entries) -> None:
    entries = [CashEntry.from_row(r) for r in scenario_a_entries]
    registers = [CashRegister.from_row(make_register_row())]

    assert summarize_cash(entries, registers).expected_balance == Decimal("330")
