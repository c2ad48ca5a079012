"""Cash register writes: open, record entries, close.

Every entry is stored with an explicit ``source`` so reports never have to
guess it from the description. Amounts are sent as decimal strings to keep
cents exact.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from pdv_core.cash.reconcile import CashSummary, summarize_register
from pdv_core.exceptions import NotFoundError, TransportError, ValidationError
from pdv_core.locations import StoreLocation, get_location
from pdv_core.models import (
    DEFAULT_PAYMENT_METHOD,
    CashEntry,
    CashRegister,
    EntrySource,
    EntryType,
    classify_source,
)
from pdv_core.store import queries
from pdv_core.store.client import eq, is_null
from pdv_core.utils import to_money

if TYPE_CHECKING:
    from pdv_core.store.client import RestClient

logger = logging.getLogger(__name__)


def _positive(value: Decimal | float | int | str, field: str) -> Decimal:
    try:
        amount = to_money(value, exact=True)
    except ValueError as e:
        raise ValidationError(f"{field} is not a valid amount: {value!r}") from e
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero, got {amount}")
    return amount


def _single_row(rows: list[dict], action: str) -> dict:
    if not rows:
        raise TransportError(f"{action} returned no row", retryable=False)
    return rows[0]


def get_open_register(client: RestClient, location: str | StoreLocation) -> CashRegister | None:
    return queries.fetch_open_register(client, location)


def open_register(
    client: RestClient,
    location: str | StoreLocation,
    opening_amount: Decimal | float | int | str,
    operator_id: str | None = None,
) -> CashRegister:
    """Open a new register with the counted opening float.

    Raises:
        ValidationError: If the amount is not positive or a register is
            already open at the location.
    """
    loc = get_location(location)
    amount = _positive(opening_amount, "opening_amount")
    current = queries.fetch_open_register(client, loc)
    if current is not None:
        raise ValidationError(f"Register {current.id} is already open at {loc.name}")

    row: dict[str, object] = {"opening_amount": str(amount)}
    if operator_id is not None:
        row["operator_id"] = operator_id
    stored = _single_row(client.insert(loc.registers_table, row), "open_register")
    register = CashRegister.from_row(stored)
    logger.info("Opened register %s at %s with %s", register.id, loc.name, amount)
    return register


def record_entry(
    client: RestClient,
    location: str | StoreLocation,
    register_id: str,
    type: EntryType | str,
    amount: Decimal | float | int | str,
    description: str,
    payment_method: str = DEFAULT_PAYMENT_METHOD,
    source: EntrySource | str | None = None,
) -> CashEntry:
    """Record an income or expense against a register.

    Args:
        client: Backend client.
        location: Location of the register.
        register_id: Register the entry belongs to.
        type: ``"income"`` or ``"expense"``.
        amount: Positive amount.
        description: Free text shown in the listing; must not be blank.
        payment_method: Payment method key, ``"dinheiro"`` by default.
        source: Entry source; inferred from ``description`` when omitted.

    Returns:
        The stored entry.

    Raises:
        ValidationError: If the type, amount, description or source is invalid.

    """
    loc = get_location(location)
    try:
        entry_type = EntryType(type)
    except ValueError as e:
        raise ValidationError(f"type must be 'income' or 'expense', got {type!r}") from e
    value = _positive(amount, "amount")
    if not description or not description.strip():
        raise ValidationError("description must not be empty")
    if source is None:
        entry_source = classify_source(description)
    else:
        try:
            entry_source = EntrySource(source)
        except ValueError as e:
            raise ValidationError(f"Unknown entry source {source!r}") from e

    row = {
        "register_id": register_id,
        "type": entry_type.value,
        "amount": str(value),
        "description": description.strip(),
        "payment_method": payment_method or DEFAULT_PAYMENT_METHOD,
        "source": entry_source.value,
    }
    stored = _single_row(client.insert(loc.entries_table, row), "record_entry")
    logger.debug("Recorded %s %s (%s) on register %s", entry_type.value, value, entry_source.value, register_id)
    return CashEntry.from_row(stored)


def close_register(
    client: RestClient,
    location: str | StoreLocation,
    closing_amount: Decimal | float | int | str,
    now: datetime | None = None,
) -> CashSummary:
    """Close the open register of a location with the counted amount.

    The stored ``difference`` column is the drawer figure, i.e. the
    returned summary's ``cash_difference`` and not its total-based
    ``difference``, since the closing count is a drawer count.

    The update only matches a register that is still open, so a register
    closed from another terminal in the meantime is never overwritten.

    Returns:
        Final summary of the closed register.

    Raises:
        ValidationError: If the closing amount is not positive, or the
            register was closed elsewhere before this update landed.
        NotFoundError: If no register is open at the location.
    """
    loc = get_location(location)
    closing = _positive(closing_amount, "closing_amount")
    register = queries.fetch_open_register(client, loc)
    if register is None:
        raise NotFoundError(f"No open register at {loc.name}")

    entries = queries.fetch_entries(client, loc, [register])
    summary = summarize_register(entries, register.opening_amount, closing)

    closed_at = (now or datetime.now(timezone.utc)).isoformat()
    updated = client.update(
        loc.registers_table,
        {
            "closing_amount": str(closing),
            "closed_at": closed_at,
            "difference": str(summary.cash_difference),
        },
        filters=[("id", eq(register.id)), ("closed_at", is_null())],
    )
    if not updated:
        raise ValidationError(f"Register {register.id} at {loc.name} was already closed")
    logger.info(
        "Closed register %s at %s: counted %s, expected in drawer %s, drawer difference %s",
        register.id,
        loc.name,
        closing,
        summary.expected_cash_in_drawer,
        summary.cash_difference,
    )
    return summary
