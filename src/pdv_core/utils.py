"""Shared utilities for PDV Core.

This module provides reusable helpers for report periods and money:

- Date parsing and report periods resolved to timezone-aware bounds
- Timestamp parsing for ISO-8601 strings returned by the store
- Decimal money conversion and percentage-of-total

Examples:
    >>> from datetime import date
    >>> period = DateRange(date(2025, 1, 1), date(2025, 1, 31))
    >>> period.days
    31
    >>> percentage_of(Decimal("0"), Decimal("0"))
    Decimal('0')

"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo

import pandas as pd

CENT = Decimal("0.01")
ZERO = Decimal("0")


def parse_date(s: str) -> date:
    """Parse a date string in YYYY-MM-DD format.

    Args:
        s: Date string in ISO format (YYYY-MM-DD).

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date string is not in YYYY-MM-DD format.

    Examples:
        >>> parse_date("2023-01-15")
        datetime.date(2023, 1, 15)

    """
    return datetime.strptime(s, "%Y-%m-%d").date()


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC, which is how the store serializes
    ``timestamptz`` columns without an explicit offset.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        ts = value
    else:
        try:
            ts = pd.Timestamp(value).to_pydatetime()
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid timestamp {value!r}: {e}") from e
        if ts is None or pd.isna(ts):
            raise ValueError(f"Invalid timestamp {value!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def to_money(value: object, exact: bool = False) -> Decimal:
    """Convert a numeric value (int, float, str, Decimal) to a 2-place Decimal.

    Floats go through ``str`` so 0.1 stays 0.10 instead of its binary
    expansion. Computed figures are rounded half-up; with ``exact=True``
    a value finer than a cent is rejected instead.

    Raises:
        ValueError: If the value is None, a bool, not a finite number, too
            large to hold in cents, or (with ``exact``) finer than a cent.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Monetary amount out of range: {value!r}") from e
    if exact and rounded != amount:
        raise ValueError(f"Monetary amount has more than two decimal places: {value!r}")
    return rounded


def percentage_of(part: Decimal, total: Decimal, places: int = 1) -> Decimal:
    """Return ``part / total * 100`` rounded to ``places`` decimals.

    A zero total yields exactly ``Decimal("0")`` instead of a division error.

    Examples:
        >>> percentage_of(Decimal("25"), Decimal("200"))
        Decimal('12.5')
        >>> percentage_of(Decimal("10"), Decimal("0"))
        Decimal('0')

    """
    if total == 0:
        return ZERO
    quantum = Decimal(1).scaleb(-places)
    return (Decimal(part) / Decimal(total) * 100).quantize(quantum, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DateRange:
    """Calendar-day report period.

    Both dates are inclusive as calendar days. Resolved to instants the
    period is ``[start 00:00:00, (end + 1 day) 00:00:00)`` in the store's
    timezone, so nothing recorded during the last second of ``end`` is lost.

    Attributes:
        start: First day of the period.
        end: Last day of the period.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start date {self.start} is after end date {self.end}")
        if self.end >= date.max:
            raise ValueError(f"end date {self.end} is out of range")

    @classmethod
    def single_day(cls, day: date) -> DateRange:
        return cls(day, day)

    @classmethod
    def from_strings(cls, start_date: str, end_date: str | None = None) -> DateRange:
        """Build a period from YYYY-MM-DD strings (``end_date`` defaults to start)."""
        start = parse_date(start_date)
        end = parse_date(end_date) if end_date else start
        return cls(start, end)

    @classmethod
    def last_days(cls, days: int, today: date | None = None) -> DateRange:
        """Period ending today and covering the previous ``days`` days."""
        today = today or date.today()
        return cls(today - timedelta(days=days), today)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def bounds(self, tz: str) -> tuple[datetime, datetime]:
        """Return ``(inclusive_start, exclusive_end)`` as aware datetimes in ``tz``."""
        zone = ZoneInfo(tz)
        lower = datetime.combine(self.start, time.min, tzinfo=zone)
        upper = datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=zone)
        return lower, upper

    def contains(self, ts: datetime, tz: str) -> bool:
        lower, upper = self.bounds(tz)
        return lower <= ts < upper

    def label(self) -> str:
        if self.start == self.end:
            return self.start.isoformat()
        return f"{self.start.isoformat()} a {self.end.isoformat()}"
