"""Tests for cash report fetching and register writes against a fake backend."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from conftest import FakeClient, make_entry_row, make_register_row
from pdv_core.cash.api import get_cash_report, get_cash_summary, get_daily_cash_summary
from pdv_core.cash.ledger import close_register, get_open_register, open_register, record_entry
from pdv_core.exceptions import NotFoundError, ValidationError
from pdv_core.models import EntrySource
from pdv_core.store.sequencing import RequestSequencer
from pdv_core.utils import DateRange

DAY = DateRange.single_day(date(2025, 1, 15))


@pytest.fixture
def client(scenario_a_entries) -> FakeClient:
    return FakeClient(
        {
            "pdv_cash_registers": [make_register_row(pdv_operators={"name": "Ana"})],
            "pdv_cash_entries": scenario_a_entries,
        }
    )


class TestCashApi:
    def test_summary_for_day(self, client) -> None:
        summary = get_cash_summary(client, "loja1", DAY)

        assert summary.expected_balance == Decimal("330")
        assert summary.expected_cash_in_drawer == Decimal("280")

    def test_no_register_returns_none(self) -> None:
        assert get_cash_summary(FakeClient(), "loja2", DAY) is None

    def test_report_carries_rows_and_operator(self, client) -> None:
        report = get_cash_report(client, "loja1", DAY, sequencer=RequestSequencer())

        assert len(report.registers) == 1
        assert not report.is_multi_register
        assert {e.operator_name for e in report.entries} == {"Ana"}

    def test_queries_use_location_tables(self, client) -> None:
        get_cash_summary(client, "loja1", DAY)
        tables = [t for t, _ in client.selects]

        assert tables == ["pdv_cash_registers", "pdv_cash_entries"]
        _, filters = client.selects[0]
        assert ("opened_at", "gte.2025-01-15T00:00:00-03:00") in filters
        assert ("opened_at", "lt.2025-01-16T00:00:00-03:00") in filters

    def test_daily_summary_accepts_string(self, client) -> None:
        assert get_daily_cash_summary(client, "loja1", "2025-01-15").pdv.total == Decimal("100")


class TestLedger:
    def test_open_register(self) -> None:
        client = FakeClient()
        register = open_register(client, "loja2", "150")

        assert register.opening_amount == Decimal("150")
        assert client.inserts == [("pdv2_cash_registers", {"opening_amount": "150.00"})]

    def test_open_register_rejects_second_open(self, client) -> None:
        with pytest.raises(ValidationError, match="already open"):
            open_register(client, "loja1", 100)

    @pytest.mark.parametrize("amount", [0, -10, "abc"])
    def test_open_register_requires_positive_amount(self, amount) -> None:
        with pytest.raises(ValidationError):
            open_register(FakeClient(), "loja1", amount)

    def test_record_entry_stores_inferred_source(self, client) -> None:
        entry = record_entry(client, "loja1", "r1", "income", 25, "Venda #42", payment_method="pix")

        assert entry.source is EntrySource.PDV
        table, row = client.inserts[-1]
        assert table == "pdv_cash_entries"
        assert row["source"] == "pdv"
        assert row["amount"] == "25.00"

    def test_record_entry_explicit_source(self, client) -> None:
        entry = record_entry(client, "loja1", "r1", "income", 5, "Venda #1 ajuste", source="manual")
        assert entry.source is EntrySource.MANUAL

    def test_record_entry_defaults_to_cash(self, client) -> None:
        entry = record_entry(client, "loja1", "r1", "expense", 5, "Gelo")
        assert entry.payment_method == "dinheiro"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"type": "income", "amount": 5, "description": "  "},
            {"type": "income", "amount": 0, "description": "x"},
            {"type": "refund", "amount": 5, "description": "x"},
        ],
    )
    def test_record_entry_validation(self, client, kwargs) -> None:
        with pytest.raises(ValidationError):
            record_entry(client, "loja1", "r1", **kwargs)

    def test_close_register(self, client) -> None:
        now = datetime(2025, 1, 15, 22, 0, tzinfo=timezone.utc)
        summary = close_register(client, "loja1", 290, now=now)

        assert summary.closing_amount == Decimal("290")
        assert summary.cash_difference == Decimal("10")
        assert summary.difference == Decimal("-40")
        table, values, filters = client.updates[0]
        assert table == "pdv_cash_registers"
        assert values == {
            "closing_amount": "290.00",
            "closed_at": "2025-01-15T22:00:00+00:00",
            "difference": "10.00",
        }
        assert filters == [("id", "eq.r1"), ("closed_at", "is.null")]
        assert get_open_register(client, "loja1") is None

    def test_close_without_open_register(self) -> None:
        with pytest.raises(NotFoundError):
            close_register(FakeClient(), "loja1", 100)

    def test_close_does_not_overwrite_a_register_closed_elsewhere(self, client) -> None:
        class ClosedElsewhere(FakeClient):
            """Another terminal closes r1 while this one loads its entries."""

            def select(self, table, *args, **kwargs):
                if table == "pdv_cash_entries":
                    self.tables["pdv_cash_registers"][0].update(
                        closing_amount="500.00", closed_at="2025-01-15T21:00:00+00:00", difference="220.00"
                    )
                return super().select(table, *args, **kwargs)

        racing = ClosedElsewhere(client.tables)

        with pytest.raises(ValidationError, match="already closed"):
            close_register(racing, "loja1", 290)

        stored = racing.tables["pdv_cash_registers"][0]
        assert stored["closing_amount"] == "500.00"
        assert stored["difference"] == "220.00"
