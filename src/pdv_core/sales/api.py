"""Public API for sales reports."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from pdv_core.locations import LocationRegistry, StoreLocation, get_location
from pdv_core.sales.report import (
    DEFAULT_TOP_N,
    DailySalesSummary,
    SalesSummary,
    summarize_daily_sales,
    summarize_sales,
)
from pdv_core.store import queries
from pdv_core.utils import DateRange

if TYPE_CHECKING:
    from pdv_core.models import PdvSale
    from pdv_core.store.client import RestClient
    from pdv_core.store.sequencing import RequestSequencer

logger = logging.getLogger(__name__)


def get_sales_report(
    client: RestClient,
    location: str | StoreLocation,
    period: DateRange,
    top_n: int = DEFAULT_TOP_N,
    sequencer: RequestSequencer | None = None,
) -> tuple[SalesSummary, list[PdvSale]]:
    """Fetch the PDV sales of a period and summarize them.

    Returns:
        Tuple of (summary, sales). Cancelled sales are in the list but not in
        the summary totals.

    Raises:
        ConfigError: If the location is unknown.
        TransportError: If the backend cannot be reached.
        SupersededError: If a newer request for the same report replaced this one.

    """
    loc = get_location(location)

    def build(ticket):
        sales = queries.fetch_sales(client, loc, period, ticket=ticket)
        return summarize_sales(sales, top_n=top_n), sales

    if sequencer is None:
        return build(None)
    return sequencer.run(f"sales:{loc.name}", build)


def get_daily_sales(
    client: RestClient,
    location: str | StoreLocation,
    day: date | str,
) -> DailySalesSummary:
    """PDV sales plus delivery orders of one day.

    Delivery orders are only counted for the location that receives them.
    """
    loc = get_location(location)
    period = DateRange.from_strings(day) if isinstance(day, str) else DateRange.single_day(day)
    sales = queries.fetch_sales(client, loc, period)
    orders = []
    if loc.name == LocationRegistry().delivery_location().name:
        orders = queries.fetch_orders(client, loc, period)
    logger.info("Daily sales for %s on %s: %d sale(s), %d order(s)", loc.name, period.label(), len(sales), len(orders))
    return summarize_daily_sales(sales, orders)
