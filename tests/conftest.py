"""Shared fixtures: raw store rows and an in-memory stand-in for RestClient."""

from __future__ import annotations

import itertools
from typing import Any

import pytest

from pdv_core.config import BackendConfig

NOW = "2025-01-15T20:00:00+00:00"


def make_entry_row(
    entry_id: str,
    type: str,
    amount: Any,
    description: str,
    payment_method: str = "dinheiro",
    register_id: str | None = "r1",
    created_at: str = "2025-01-15T13:00:00Z",
    **extra: Any,
) -> dict[str, Any]:
    row = {
        "id": entry_id,
        "type": type,
        "amount": amount,
        "description": description,
        "payment_method": payment_method,
        "created_at": created_at,
        "register_id": register_id,
    }
    row.update(extra)
    return row


def make_register_row(
    register_id: str = "r1",
    opening_amount: Any = 200,
    opened_at: str = "2025-01-15T11:00:00Z",
    closing_amount: Any = None,
    closed_at: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    row = {
        "id": register_id,
        "opening_amount": opening_amount,
        "opened_at": opened_at,
        "closing_amount": closing_amount,
        "closed_at": closed_at,
    }
    row.update(extra)
    return row


def _matches(row: dict[str, Any], column: str, expr: str) -> bool:
    value = row.get(column)
    if expr == "is.null":
        return value is None
    if expr.startswith("eq."):
        return str(value) == expr[3:]
    if expr.startswith("in.("):
        wanted = {v.strip().strip('"') for v in expr[4:-1].split(",")}
        return str(value) in wanted
    # Range filters are left to the code under test
    return True


class FakeClient:
    """In-memory tables answering select/insert/update like RestClient."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.config = BackendConfig(url="https://example.supabase.co", api_key="test-key")
        self.tables: dict[str, list[dict[str, Any]]] = {k: list(v) for k, v in (tables or {}).items()}
        self.selects: list[tuple[str, list[tuple[str, str]]]] = []
        self.inserts: list[tuple[str, dict[str, Any]]] = []
        self.updates: list[tuple[str, dict[str, Any], list[tuple[str, str]]]] = []
        self._ids = itertools.count(1)

    def select(self, table, columns="*", filters=(), order=None, limit=None, ticket=None):
        if ticket is not None:
            ticket.check()
        filters = list(filters)
        self.selects.append((table, filters))
        rows = [
            dict(r) for r in self.tables.get(table, []) if all(_matches(r, c, e) for c, e in filters)
        ]
        return rows if limit is None else rows[:limit]

    def insert(self, table, values):
        row = {"id": f"{table}-{next(self._ids)}", "created_at": NOW, "opened_at": NOW}
        row.update(values)
        self.inserts.append((table, dict(values)))
        self.tables.setdefault(table, []).append(row)
        return [dict(row)]

    def update(self, table, values, filters):
        filters = list(filters)
        self.updates.append((table, dict(values), filters))
        changed = []
        for row in self.tables.get(table, []):
            if all(_matches(row, c, e) for c, e in filters):
                row.update(values)
                changed.append(dict(row))
        return changed


@pytest.fixture
def scenario_a_entries() -> list[dict[str, Any]]:
    """PDV sale, delivery sale and a cash withdrawal on register r1."""
    return [
        make_entry_row("e1", "income", 100, "Venda #1", "dinheiro"),
        make_entry_row("e2", "income", 50, "Delivery #9", "pix"),
        make_entry_row("e3", "expense", 20, "Retirada", "dinheiro"),
    ]


@pytest.fixture
def fake_client_factory():
    return FakeClient
