"""Cash reconciliation: fold cash entries into a per-period summary.

This module turns a flat list of cash entries plus the owning cash registers
into a :class:`CashSummary`:

- four buckets (PDV sales, delivery sales, manual income, expenses), each
  with a count, a total and a nested breakdown by payment method;
- the expected balance in two variants, all payment methods
  (``expected_total_revenue``) and cash only (``expected_cash_in_drawer``);
- the difference against the counted closing amount, or None while any
  register is still open.

Bucketing
---------
Expense entries always land in the expense bucket. Income entries land in
the bucket of their source (stored explicitly, or inferred from the
description for legacy rows: "Venda #" -> pdv, "Delivery #" -> delivery,
anything else -> manual).

The fold is a pure function with no I/O. Sums are Decimal, so the result
does not depend on entry order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Union
from zoneinfo import ZoneInfo

from pdv_core.config import DEFAULT_TIMEZONE
from pdv_core.exceptions import NotFoundError, ValidationError
from pdv_core.models import (
    CASH_PAYMENT_METHOD,
    CashEntry,
    CashRegister,
    EntrySource,
    EntryType,
)
from pdv_core.utils import ZERO, DateRange, percentage_of, to_money

logger = logging.getLogger(__name__)

BUCKETS = ("pdv", "delivery", "manual", "expense")
INCOME_BUCKETS = ("pdv", "delivery", "manual")

EntryLike = Union[CashEntry, Mapping[str, Any]]
RegisterLike = Union[CashRegister, Mapping[str, Any]]


@dataclass
class MethodTotals:
    """Count and sum of entries for one payment method."""

    count: int = 0
    total: Decimal = ZERO

    def add(self, amount: Decimal) -> None:
        self.count += 1
        self.total += amount


@dataclass
class BucketTotals:
    """Count, sum and per-payment-method breakdown of one bucket."""

    count: int = 0
    total: Decimal = ZERO
    by_payment: dict[str, MethodTotals] = field(default_factory=dict)

    def add(self, entry: CashEntry) -> None:
        self.count += 1
        self.total += entry.amount
        self.by_payment.setdefault(entry.payment_method, MethodTotals()).add(entry.amount)

    def method_total(self, method: str) -> Decimal:
        totals = self.by_payment.get(method)
        return totals.total if totals else ZERO


@dataclass
class CashSummary:
    """Result of folding cash entries for one or more registers.

    Attributes:
        pdv: Income from PDV sales.
        delivery: Income from delivery orders.
        manual: Any other income (manual adjustments, reinforcements).
        expense: All expense entries regardless of source.
        opening_amount: Sum of the registers' opening floats.
        closing_amount: Sum of the counted closing amounts, or None when at
            least one register is still open.
        cash_income: Income paid in cash (``dinheiro``).
        cash_expense: Expenses paid in cash.
        register_count: Number of registers folded into the summary.
    """

    pdv: BucketTotals = field(default_factory=BucketTotals)
    delivery: BucketTotals = field(default_factory=BucketTotals)
    manual: BucketTotals = field(default_factory=BucketTotals)
    expense: BucketTotals = field(default_factory=BucketTotals)
    opening_amount: Decimal = ZERO
    closing_amount: Decimal | None = None
    cash_income: Decimal = ZERO
    cash_expense: Decimal = ZERO
    register_count: int = 0

    def bucket(self, name: str) -> BucketTotals:
        if name not in BUCKETS:
            raise KeyError(f"Unknown bucket {name!r}; expected one of {BUCKETS}")
        return getattr(self, name)

    @property
    def entry_count(self) -> int:
        return sum(self.bucket(name).count for name in BUCKETS)

    @property
    def total_income(self) -> Decimal:
        return self.pdv.total + self.delivery.total + self.manual.total

    @property
    def total_sales(self) -> Decimal:
        """PDV plus delivery income."""
        return self.pdv.total + self.delivery.total

    @property
    def expected_total_revenue(self) -> Decimal:
        """Opening float plus all income minus all expenses, any payment method."""
        return self.opening_amount + self.total_income - self.expense.total

    @property
    def expected_balance(self) -> Decimal:
        return self.expected_total_revenue

    @property
    def expected_cash_in_drawer(self) -> Decimal:
        """Opening float plus cash income minus cash expenses."""
        return self.opening_amount + self.cash_income - self.cash_expense

    @property
    def difference(self) -> Decimal | None:
        """Closing amount minus ``expected_balance``; None until closed."""
        if self.closing_amount is None:
            return None
        return self.closing_amount - self.expected_balance

    @property
    def cash_difference(self) -> Decimal | None:
        """Closing amount minus ``expected_cash_in_drawer``; None until closed."""
        if self.closing_amount is None:
            return None
        return self.closing_amount - self.expected_cash_in_drawer

    @property
    def payment_methods(self) -> dict[str, dict[str, MethodTotals]]:
        """Payment method -> bucket name -> totals, methods sorted by name."""
        methods = sorted({m for name in BUCKETS for m in self.bucket(name).by_payment})
        return {
            method: {
                name: self.bucket(name).by_payment.get(method, MethodTotals())
                for name in BUCKETS
            }
            for method in methods
        }

    def income_by_method(self, method: str) -> Decimal:
        return sum((self.bucket(name).method_total(method) for name in INCOME_BUCKETS), ZERO)

    def payment_share(self, method: str) -> Decimal:
        """Share (%) of total income received through ``method``."""
        return percentage_of(self.income_by_method(method), self.total_income)

    def channel_share(self, name: str) -> Decimal:
        """Share (%) of PDV or delivery income over PDV + delivery income."""
        return percentage_of(self.bucket(name).total, self.total_sales)

    def as_dict(self) -> dict[str, Any]:
        """Nested plain-dict view, suitable for JSON or templating."""

        def bucket_dict(b: BucketTotals) -> dict[str, Any]:
            return {
                "count": b.count,
                "total": b.total,
                "by_payment": {
                    m: {"count": t.count, "total": t.total} for m, t in sorted(b.by_payment.items())
                },
            }

        return {
            "pdv_sales": bucket_dict(self.pdv),
            "delivery_sales": bucket_dict(self.delivery),
            "manual_income": bucket_dict(self.manual),
            "expenses": bucket_dict(self.expense),
            "opening_amount": self.opening_amount,
            "closing_amount": self.closing_amount,
            "total_income": self.total_income,
            "expected_balance": self.expected_balance,
            "expected_total_revenue": self.expected_total_revenue,
            "expected_cash_in_drawer": self.expected_cash_in_drawer,
            "difference": self.difference,
            "cash_difference": self.cash_difference,
            "register_count": self.register_count,
        }


# ------------------------------------------------------------
# Input coercion
# ------------------------------------------------------------


def _coerce_entry(entry: EntryLike) -> CashEntry:
    if isinstance(entry, CashEntry):
        if entry.amount < 0:
            raise ValidationError(f"CashEntry {entry.id} has a negative amount: {entry.amount}")
        return entry
    if isinstance(entry, Mapping):
        return CashEntry.from_row(entry)
    raise ValidationError(f"Expected a CashEntry or a row mapping, got {type(entry).__name__}")


def _coerce_register(register: RegisterLike) -> CashRegister:
    if isinstance(register, CashRegister):
        if register.opening_amount < 0:
            raise ValidationError(
                f"CashRegister {register.id} has a negative opening amount: {register.opening_amount}"
            )
        return register
    if isinstance(register, Mapping):
        return CashRegister.from_row(register)
    raise ValidationError(f"Expected a CashRegister or a row mapping, got {type(register).__name__}")


# ------------------------------------------------------------
# Fold
# ------------------------------------------------------------


def _bucket_name(entry: CashEntry) -> str:
    if entry.type is EntryType.EXPENSE:
        return "expense"
    if entry.source is EntrySource.PDV:
        return "pdv"
    if entry.source is EntrySource.DELIVERY:
        return "delivery"
    return "manual"


def _fold(
    entries: Iterable[CashEntry],
    opening_amount: Decimal,
    closing_amount: Decimal | None,
    register_count: int,
) -> CashSummary:
    summary = CashSummary(
        opening_amount=opening_amount,
        closing_amount=closing_amount,
        register_count=register_count,
    )
    for entry in entries:
        summary.bucket(_bucket_name(entry)).add(entry)
        if entry.payment_method == CASH_PAYMENT_METHOD:
            if entry.is_income:
                summary.cash_income += entry.amount
            else:
                summary.cash_expense += entry.amount
    return summary


def summarize_register(
    entries: Iterable[EntryLike],
    opening_amount: Decimal | float | int,
    closing_amount: Decimal | float | int | None = None,
) -> CashSummary:
    """Summarize the entries of a single drawer.

    Args:
        entries: Cash entries (model objects or raw rows) of the drawer.
        opening_amount: Opening float.
        closing_amount: Counted closing amount, or None while open.

    Returns:
        CashSummary for the drawer.

    Raises:
        ValidationError: If any entry is malformed or an amount is negative.

    Examples:
        >>> s = summarize_register([], opening_amount=150)
        >>> s.expected_balance, s.difference
        (Decimal('150.00'), None)

    """
    try:
        opening = to_money(opening_amount, exact=True)
        closing = None if closing_amount is None else to_money(closing_amount, exact=True)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if opening < 0 or (closing is not None and closing < 0):
        raise ValidationError("Opening and closing amounts must not be negative")

    checked = [_coerce_entry(e) for e in entries]
    return _fold(checked, opening, closing, register_count=1)


def summarize_cash(
    entries: Iterable[EntryLike],
    registers: Iterable[RegisterLike],
    period: DateRange | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> CashSummary:
    """Summarize cash entries across the registers of a period.

    Registers opened outside ``period`` are dropped, then only entries that
    belong to a remaining register are folded. Entries without a register id
    are kept when their own timestamp falls in the period.

    Args:
        entries: Cash entries (model objects or raw rows).
        registers: Cash registers (model objects or raw rows).
        period: Optional calendar-day period, resolved in ``tz``.
        tz: Timezone of the store.

    Returns:
        CashSummary over all selected registers. Opening amounts are summed;
        the closing amount is summed only when every register is closed.

    Raises:
        NotFoundError: If no register remains; a register with zero entries
            still yields an all-zero summary.
        ValidationError: If any row is malformed.

    """
    selected = [_coerce_register(r) for r in registers]
    if period is not None:
        selected = [r for r in selected if period.contains(r.opened_at, tz)]
    if not selected:
        where = f" for {period.label()}" if period is not None else ""
        raise NotFoundError(f"No cash register found{where}")

    register_ids = {r.id for r in selected}
    checked = [_coerce_entry(e) for e in entries]
    kept = []
    for entry in checked:
        if entry.register_id is not None:
            if entry.register_id not in register_ids:
                continue
        elif period is not None and not period.contains(entry.created_at, tz):
            continue
        kept.append(entry)

    opening = sum((r.opening_amount for r in selected), ZERO)
    closings = [r.closing_amount for r in selected]
    closing = None if any(c is None for c in closings) else sum(closings, ZERO)

    logger.debug(
        "Folding %d of %d entries over %d register(s)", len(kept), len(checked), len(selected)
    )
    return _fold(kept, opening, closing, register_count=len(selected))


def summarize_cash_by_day(
    entries: Iterable[EntryLike],
    registers: Iterable[RegisterLike],
    tz: str = DEFAULT_TIMEZONE,
) -> dict[date, CashSummary]:
    """One summary per local calendar day on which registers were opened.

    Returns:
        Dictionary {day: CashSummary}, sorted by day. Empty when no
        registers are given.
    """
    zone = ZoneInfo(tz)
    selected = [_coerce_register(r) for r in registers]
    checked = [_coerce_entry(e) for e in entries]

    by_day: dict[date, list[CashRegister]] = {}
    for register in selected:
        by_day.setdefault(register.opened_at.astimezone(zone).date(), []).append(register)

    result: dict[date, CashSummary] = {}
    for day in sorted(by_day):
        day_registers = by_day[day]
        ids = {r.id for r in day_registers}
        day_entries = [
            e
            for e in checked
            if (e.register_id in ids)
            or (e.register_id is None and e.created_at.astimezone(zone).date() == day)
        ]
        result[day] = summarize_cash(day_entries, day_registers, tz=tz)
    return result
