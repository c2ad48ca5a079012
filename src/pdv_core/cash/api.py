"""Public API for cash reports.

This module provides the entry points that fetch registers and entries for a
location and fold them into a :class:`~pdv_core.cash.reconcile.CashSummary`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from pdv_core.cash.reconcile import CashSummary, summarize_cash
from pdv_core.exceptions import NotFoundError
from pdv_core.locations import StoreLocation, get_location
from pdv_core.models import CashEntry, CashRegister
from pdv_core.store import queries
from pdv_core.utils import DateRange

if TYPE_CHECKING:
    from pdv_core.store.client import RestClient
    from pdv_core.store.sequencing import RequestSequencer, Ticket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CashReport:
    """A cash summary together with the rows it was computed from.

    Attributes:
        location: Location the report belongs to.
        period: Report period.
        summary: Folded totals.
        registers: Registers opened during the period.
        entries: Entries of those registers, oldest first.
    """

    location: StoreLocation
    period: DateRange
    summary: CashSummary
    registers: tuple[CashRegister, ...]
    entries: tuple[CashEntry, ...]

    @property
    def is_multi_register(self) -> bool:
        return len(self.registers) > 1


def _build_report(
    client: RestClient,
    location: StoreLocation,
    period: DateRange,
    ticket: Ticket | None,
) -> CashReport | None:
    registers = queries.fetch_registers(client, location, period, ticket=ticket)
    entries = queries.fetch_entries(client, location, registers, ticket=ticket)
    try:
        summary = summarize_cash(entries, registers, period, tz=client.config.timezone)
    except NotFoundError as e:
        logger.info("%s: %s", location.name, e)
        return None
    return CashReport(location, period, summary, tuple(registers), tuple(entries))


def get_cash_report(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    sequencer: RequestSequencer | None = None,
) -> CashReport | None:
    """Fetch and summarize the cash of a location for a period.

    Args:
        client: Backend client.
        location: Location name (``"loja1"``, ``"loja2"``) or object.
        period: Calendar-day period in the store's timezone.
        sequencer: Optional sequencer; a newer request for the same location
            cancels this one.

    Returns:
        CashReport, or None when no register was opened in the period.

    Raises:
        ConfigError: If the location is unknown.
        TransportError: If the backend cannot be reached.
        ValidationError: If a row returned by the backend is malformed.
        SupersededError: If a newer request for the same report replaced this one.

    Examples:
        >>> report = get_cash_report(client, "loja1", DateRange.from_strings("2025-01-01", "2025-01-31"))
        >>> report.summary.expected_balance if report else None

    """
    loc = get_location(location)
    if sequencer is None:
        return _build_report(client, loc, period, ticket=None)
    return sequencer.run(f"cash:{loc.name}", lambda ticket: _build_report(client, loc, period, ticket))


def get_cash_summary(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    sequencer: RequestSequencer | None = None,
) -> CashSummary | None:
    """Like :func:`get_cash_report` but return only the summary."""
    report = get_cash_report(client, location, period, sequencer=sequencer)
    return report.summary if report else None


def get_daily_cash_summary(
    client: RestClient,
    location: str | StoreLocation,
    day: date | str,
    sequencer: RequestSequencer | None = None,
) -> CashSummary | None:
    """Cash summary of a single calendar day."""
    period = DateRange.from_strings(day) if isinstance(day, str) else DateRange.single_day(day)
    return get_cash_summary(client, location, period, sequencer=sequencer)
