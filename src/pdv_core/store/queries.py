"""Typed table queries.

Each function reads one table of a store location through a
:class:`~pdv_core.store.client.RestClient` and returns validated model
objects. Periods are resolved to ``[start 00:00, end + 1 day 00:00)`` in the
store's timezone before they reach the backend.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from pdv_core.exceptions import ConfigError
from pdv_core.locations import StoreLocation, get_location
from pdv_core.models import CashEntry, CashRegister, Order, PdvSale
from pdv_core.store.client import RestClient, gte, in_, is_null, lt
from pdv_core.store.sequencing import Ticket
from pdv_core.utils import DateRange

logger = logging.getLogger(__name__)

# Operator shown for registers opened without an identified operator
DEFAULT_OPERATOR_NAME = "Sistema"


def _period_filters(column: str, period: DateRange, tz: str) -> list[tuple[str, str]]:
    lower, upper = period.bounds(tz)
    return [(column, gte(lower.isoformat())), (column, lt(upper.isoformat()))]


def fetch_registers(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    ticket: Ticket | None = None,
) -> list[CashRegister]:
    """Registers opened during ``period``, oldest first, with operator names."""
    loc = get_location(location)
    rows = client.select(
        loc.registers_table,
        columns=f"*,{loc.operators_table}(name)",
        filters=_period_filters("opened_at", period, client.config.timezone),
        order="opened_at.asc",
        ticket=ticket,
    )
    logger.info("Fetched %d register(s) from %s for %s", len(rows), loc.name, period.label())
    return [CashRegister.from_row(row) for row in rows]


def fetch_open_register(
    client: RestClient,
    location: str | StoreLocation,
) -> CashRegister | None:
    """The most recently opened register that has not been closed, if any."""
    loc = get_location(location)
    rows = client.select(
        loc.registers_table,
        columns=f"*,{loc.operators_table}(name)",
        filters=[("closed_at", is_null())],
        order="opened_at.desc",
        limit=1,
    )
    return CashRegister.from_row(rows[0]) if rows else None


def attach_operator_names(
    entries: Iterable[CashEntry],
    registers: Iterable[CashRegister],
) -> list[CashEntry]:
    """Copy each register's operator name onto its entries.

    Entries that already carry an operator name keep it; entries of a
    register without operator get ``"Sistema"``.
    """
    names = {r.id: r.operator_name or DEFAULT_OPERATOR_NAME for r in registers}
    result = []
    for entry in entries:
        if entry.operator_name is None and entry.register_id in names:
            entry = dataclasses.replace(entry, operator_name=names[entry.register_id])
        result.append(entry)
    return result


def fetch_entries(
    client: RestClient,
    location: str | StoreLocation,
    registers: Iterable[CashRegister],
    ticket: Ticket | None = None,
) -> list[CashEntry]:
    """All entries of the given registers, oldest first."""
    loc = get_location(location)
    registers = list(registers)
    if not registers:
        return []
    rows = client.select(
        loc.entries_table,
        filters=[("register_id", in_(r.id for r in registers))],
        order="created_at.asc",
        ticket=ticket,
    )
    logger.info("Fetched %d cash entr(ies) from %s", len(rows), loc.name)
    return attach_operator_names((CashEntry.from_row(row) for row in rows), registers)


def fetch_sales(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    ticket: Ticket | None = None,
) -> list[PdvSale]:
    """PDV sales created during ``period``, with their items embedded."""
    loc = get_location(location)
    rows = client.select(
        loc.sales_table,
        columns=f"*,{loc.sale_items_table}(*)",
        filters=_period_filters("created_at", period, client.config.timezone),
        order="created_at.asc",
        ticket=ticket,
    )
    logger.info("Fetched %d sale(s) from %s for %s", len(rows), loc.name, period.label())
    return [PdvSale.from_row(row) for row in rows]


def fetch_orders(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    ticket: Ticket | None = None,
) -> list[Order]:
    """Delivery orders created during ``period``.

    Raises:
        ConfigError: If the location does not take delivery orders.
    """
    loc = get_location(location)
    if loc.orders_table is None:
        raise ConfigError(f"Location '{loc.name}' does not take delivery orders")
    rows = client.select(
        loc.orders_table,
        filters=_period_filters("created_at", period, client.config.timezone),
        order="created_at.asc",
        ticket=ticket,
    )
    logger.info("Fetched %d order(s) for %s", len(rows), period.label())
    return [Order.from_row(row) for row in rows]
