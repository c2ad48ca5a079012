"""Abort-on-supersede sequencing for report fetches.

A report screen may ask for the same report twice in quick succession (the
user picks another day before the first fetch finished). Only the newest
request may publish its result. :class:`RequestSequencer` hands out one
:class:`Ticket` per request and key:

- starting a new ticket for a key cancels the previous ticket for that key;
- paged fetches call :meth:`Ticket.check` between pages and stop early;
- :meth:`RequestSequencer.complete` refuses the result of a stale ticket.

Example:
    >>> seq = RequestSequencer()
    >>> first = seq.start("cash:loja1")
    >>> second = seq.start("cash:loja1")
    >>> first.cancelled, second.cancelled
    (True, False)
    >>> seq.complete(second, "fresh")
    'fresh'

"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from pdv_core.exceptions import SupersededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ticket:
    """Handle of one in-flight request."""

    def __init__(self, key: str, number: int) -> None:
        self.key = key
        self.number = number
        self._cancelled = threading.Event()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"Ticket({self.key!r}, #{self.number}, {state})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def check(self) -> None:
        """Raise SupersededError if a newer request replaced this one."""
        if self.cancelled:
            raise SupersededError(f"Request #{self.number} for {self.key!r} was superseded")


class RequestSequencer:
    """Thread-safe issuer of per-key tickets."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: dict[str, Ticket] = {}
        self._counter = itertools.count(1)

    def start(self, key: str) -> Ticket:
        with self._lock:
            ticket = Ticket(key, next(self._counter))
            previous = self._latest.get(key)
            if previous is not None:
                logger.debug("Cancelling %r in favour of #%d", previous, ticket.number)
                previous.cancel()
            self._latest[key] = ticket
            return ticket

    def is_current(self, ticket: Ticket) -> bool:
        with self._lock:
            return self._latest.get(ticket.key) is ticket and not ticket.cancelled

    def complete(self, ticket: Ticket, value: T) -> T:
        """Publish the result of ``ticket``.

        Raises:
            SupersededError: If the ticket is no longer the newest for its key.
        """
        with self._lock:
            if ticket.cancelled or self._latest.get(ticket.key) is not ticket:
                ticket.cancel()
                raise SupersededError(
                    f"Discarding stale result of request #{ticket.number} for {ticket.key!r}"
                )
            del self._latest[ticket.key]
            return value

    def run(self, key: str, fetch: Callable[[Ticket], T]) -> T:
        """Start a ticket, run ``fetch(ticket)`` and publish its result."""
        ticket = self.start(key)
        return self.complete(ticket, fetch(ticket))
