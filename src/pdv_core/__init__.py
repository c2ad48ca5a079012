"""PDV Core - cash reconciliation and reporting for a two-store food business.

This package turns the rows of a hosted store (cash registers, cash entries,
PDV sales and delivery orders) into per-period financial summaries with
expected-vs-counted balance reconciliation.

Module Structure:
    pdv_core.cash: Cash summaries (cash.reconcile, cash.export, cash.api, cash.ledger)
    pdv_core.sales: PDV sales report
    pdv_core.delivery: Delivery orders report
    pdv_core.store: PostgREST client, request sequencing and table queries
    pdv_core.locations: Store locations and their tables
    pdv_core.settings: Local operator session, sounds and printer settings
    pdv_core.config: BackendConfig

Quick Start:
    >>> from pdv_core import BackendConfig, DateRange
    >>> from pdv_core.cash import get_cash_summary
    >>> from pdv_core.store import RestClient
    >>>
    >>> client = RestClient(BackendConfig.from_env())
    >>> period = DateRange.from_strings("2025-01-01", "2025-01-31")
    >>>
    >>> summary = get_cash_summary(client, "loja1", period)
    >>> if summary is not None:
    ...     print(summary.expected_balance, summary.difference)

Balances:
    expected_total_revenue / expected_balance:
        opening + all income - all expenses, any payment method
    expected_cash_in_drawer:
        opening + cash income - cash expenses
"""

__version__ = "0.1.0"

from pdv_core.config import BackendConfig
from pdv_core.exceptions import (
    ConfigError,
    NotFoundError,
    PdvAPIError,
    SupersededError,
    TransportError,
    ValidationError,
)
from pdv_core.utils import DateRange

__all__ = [
    "BackendConfig",
    "ConfigError",
    "DateRange",
    "NotFoundError",
    "PdvAPIError",
    "SupersededError",
    "TransportError",
    "ValidationError",
    "__version__",
]
