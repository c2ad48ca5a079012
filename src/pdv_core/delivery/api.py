"""Public API for the delivery orders report."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdv_core.delivery.report import DeliverySummary, summarize_orders
from pdv_core.locations import LocationRegistry
from pdv_core.store import queries

if TYPE_CHECKING:
    from pdv_core.models import Order
    from pdv_core.store.client import RestClient
    from pdv_core.store.sequencing import RequestSequencer
    from pdv_core.utils import DateRange

logger = logging.getLogger(__name__)


def get_delivery_report(
    client: RestClient,
    period: DateRange,
    sequencer: RequestSequencer | None = None,
) -> tuple[DeliverySummary, list[Order]]:
    """Fetch the delivery orders of a period and summarize them.

    Returns:
        Tuple of (summary, orders).

    Raises:
        TransportError: If the backend cannot be reached.
        SupersededError: If a newer request for the same report replaced this one.
    """
    loc = LocationRegistry().delivery_location()

    def build(ticket):
        orders = queries.fetch_orders(client, loc, period, ticket=ticket)
        return summarize_orders(orders), orders

    if sequencer is None:
        return build(None)
    return sequencer.run("delivery", build)
