"""Record types for cash registers, cash entries, PDV sales and delivery orders.

Every type has a ``from_row`` constructor that validates a row as returned by
the store (a JSON object) and raises :class:`ValidationError` on malformed
input instead of coercing it. Payment methods and order statuses are kept as
opaque strings: unknown values pass through untouched.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from pdv_core.exceptions import ValidationError
from pdv_core.utils import parse_timestamp, to_money

CASH_PAYMENT_METHOD = "dinheiro"
DEFAULT_PAYMENT_METHOD = CASH_PAYMENT_METHOD

KNOWN_PAYMENT_METHODS = (
    "dinheiro",
    "pix",
    "cartao_credito",
    "cartao_debito",
    "voucher",
    "misto",
)

# Description markers written by the sale and delivery flows
PDV_DESCRIPTION_MARKER = "Venda #"
DELIVERY_DESCRIPTION_MARKER = "Delivery #"


class EntryType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class EntrySource(str, enum.Enum):
    PDV = "pdv"
    DELIVERY = "delivery"
    MANUAL = "manual"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    READY_FOR_PICKUP = "ready_for_pickup"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def classify_source(description: str) -> EntrySource:
    """Infer the source of a legacy cash entry from its description.

    ``"Venda #"`` wins over ``"Delivery #"`` when both appear; anything else
    is manual.

    Examples:
        >>> classify_source("Venda #12 - Loja 2")
        <EntrySource.PDV: 'pdv'>
        >>> classify_source("Retirada para troco")
        <EntrySource.MANUAL: 'manual'>

    """
    if PDV_DESCRIPTION_MARKER in description:
        return EntrySource.PDV
    if DELIVERY_DESCRIPTION_MARKER in description:
        return EntrySource.DELIVERY
    return EntrySource.MANUAL


# ------------------------------------------------------------
# Row helpers
# ------------------------------------------------------------


def _require(row: Mapping[str, Any], key: str, kind: str) -> Any:
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{kind} row is missing required field {key!r}: {dict(row)!r}")
    return value


def _amount(row: Mapping[str, Any], key: str, kind: str, required: bool = True) -> Decimal | None:
    value = _require(row, key, kind) if required else row.get(key)
    if value is None:
        return None
    try:
        amount = to_money(value, exact=True)
    except ValueError as e:
        raise ValidationError(f"{kind} field {key!r} is not a valid amount: {value!r}") from e
    if amount < 0:
        raise ValidationError(f"{kind} field {key!r} must not be negative: {amount}")
    return amount


def _timestamp(row: Mapping[str, Any], key: str, kind: str, required: bool = True) -> datetime | None:
    value = _require(row, key, kind) if required else row.get(key)
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValidationError(f"{kind} field {key!r} is not a timestamp: {value!r}") from e


def _optional_str(row: Mapping[str, Any], key: str) -> str | None:
    value = row.get(key)
    return None if value is None else str(value)


# ------------------------------------------------------------
# Cash register + entries
# ------------------------------------------------------------


@dataclass(frozen=True)
class CashRegister:
    """One open/close cycle of a drawer at a location.

    Attributes:
        id: Register identifier.
        opening_amount: Float counted into the drawer on shift open.
        opened_at: When the shift was opened.
        closing_amount: Amount counted on close; None while open.
        closed_at: When the shift was closed; None while open.
        operator_id: Operator who opened the register, if recorded.
        operator_name: Operator display name, when joined in the query.
        difference: Drawer difference stored by the close operation (closing
            amount minus expected cash in drawer, i.e.
            ``CashSummary.cash_difference``), if any. Not the total-based
            ``CashSummary.difference``.
    """

    id: str
    opening_amount: Decimal
    opened_at: datetime
    closing_amount: Decimal | None = None
    closed_at: datetime | None = None
    operator_id: str | None = None
    operator_name: str | None = None
    difference: Decimal | None = None

    @property
    def is_open(self) -> bool:
        return self.closed_at is None and self.closing_amount is None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CashRegister:
        kind = "CashRegister"
        stored_difference = row.get("difference")
        try:
            difference = None if stored_difference is None else to_money(stored_difference, exact=True)
        except ValueError as e:
            raise ValidationError(f"{kind} field 'difference' is not a valid amount: {stored_difference!r}") from e

        operator = row.get("pdv_operators") or row.get("pdv2_operators") or {}
        operator_name = row.get("operator_name") or (
            operator.get("name") if isinstance(operator, Mapping) else None
        )
        return cls(
            id=str(_require(row, "id", kind)),
            opening_amount=_amount(row, "opening_amount", kind),
            opened_at=_timestamp(row, "opened_at", kind),
            closing_amount=_amount(row, "closing_amount", kind, required=False),
            closed_at=_timestamp(row, "closed_at", kind, required=False),
            operator_id=_optional_str(row, "operator_id"),
            operator_name=operator_name,
            difference=difference,
        )


@dataclass(frozen=True)
class CashEntry:
    """A single income or expense line recorded against a cash register.

    ``source`` is taken from the row when the store provides it; legacy rows
    without it are classified by :func:`classify_source`.
    """

    id: str
    type: EntryType
    amount: Decimal
    description: str
    payment_method: str
    created_at: datetime
    source: EntrySource
    register_id: str | None = None
    operator_name: str | None = None

    @property
    def is_income(self) -> bool:
        return self.type is EntryType.INCOME

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_income else -self.amount

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> CashEntry:
        kind = "CashEntry"
        raw_type = _require(row, "type", kind)
        try:
            entry_type = EntryType(raw_type)
        except ValueError as e:
            raise ValidationError(
                f"{kind} field 'type' must be 'income' or 'expense', got {raw_type!r}"
            ) from e

        description = row.get("description")
        if description is None:
            raise ValidationError(f"{kind} row is missing required field 'description': {dict(row)!r}")
        description = str(description)

        raw_source = row.get("source")
        if raw_source is None:
            source = classify_source(description)
        else:
            try:
                source = EntrySource(raw_source)
            except ValueError as e:
                raise ValidationError(f"{kind} field 'source' is not a known source: {raw_source!r}") from e

        return cls(
            id=str(_require(row, "id", kind)),
            type=entry_type,
            amount=_amount(row, "amount", kind),
            description=description,
            payment_method=str(row.get("payment_method") or DEFAULT_PAYMENT_METHOD),
            created_at=_timestamp(row, "created_at", kind),
            source=source,
            register_id=_optional_str(row, "register_id"),
            operator_name=_optional_str(row, "operator_name"),
        )


# ------------------------------------------------------------
# Sales + delivery orders
# ------------------------------------------------------------


@dataclass(frozen=True)
class PdvSaleItem:
    product_name: str
    quantity: Decimal
    subtotal: Decimal

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PdvSaleItem:
        kind = "PdvSaleItem"
        quantity = row.get("quantity")
        try:
            qty = Decimal(str(_require(row, "quantity", kind)))
        except ArithmeticError as e:
            raise ValidationError(f"{kind} field 'quantity' is not a number: {quantity!r}") from e
        if not qty.is_finite() or qty < 0:
            raise ValidationError(f"{kind} field 'quantity' must be a non-negative number: {quantity!r}")
        return cls(
            product_name=str(_require(row, "product_name", kind)),
            quantity=qty,
            subtotal=_amount(row, "subtotal", kind),
        )


@dataclass(frozen=True)
class PdvSale:
    """A completed point-of-sale transaction."""

    id: str
    total_amount: Decimal
    payment_type: str
    created_at: datetime
    is_cancelled: bool = False
    sale_number: int | None = None
    channel: str | None = None
    items: tuple[PdvSaleItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PdvSale:
        kind = "PdvSale"
        raw_items = row.get("items") or row.get("pdv_sale_items") or row.get("store2_sale_items") or []
        sale_number = row.get("sale_number")
        if sale_number is not None:
            try:
                sale_number = int(sale_number)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"{kind} field 'sale_number' is not an integer: {sale_number!r}") from e
        return cls(
            id=str(_require(row, "id", kind)),
            total_amount=_amount(row, "total_amount", kind),
            payment_type=str(_require(row, "payment_type", kind)),
            created_at=_timestamp(row, "created_at", kind),
            is_cancelled=bool(row.get("is_cancelled", False)),
            sale_number=sale_number,
            channel=_optional_str(row, "channel"),
            items=tuple(PdvSaleItem.from_row(item) for item in raw_items),
        )


@dataclass(frozen=True)
class Order:
    """A delivery order.

    Status lifecycle: pending -> confirmed -> (preparing) -> out_for_delivery
    -> delivered, or cancelled at any point.
    """

    id: str
    customer_name: str
    payment_method: str
    total_price: Decimal
    status: str
    created_at: datetime
    customer_phone: str | None = None
    customer_address: str | None = None
    customer_neighborhood: str | None = None
    delivery_fee: Decimal = Decimal("0.00")
    channel: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Order:
        kind = "Order"
        return cls(
            id=str(_require(row, "id", kind)),
            customer_name=str(row.get("customer_name") or ""),
            payment_method=str(_require(row, "payment_method", kind)),
            total_price=_amount(row, "total_price", kind),
            status=str(_require(row, "status", kind)),
            created_at=_timestamp(row, "created_at", kind),
            customer_phone=_optional_str(row, "customer_phone"),
            customer_address=_optional_str(row, "customer_address"),
            customer_neighborhood=_optional_str(row, "customer_neighborhood"),
            delivery_fee=_amount(row, "delivery_fee", kind, required=False) or Decimal("0.00"),
            channel=_optional_str(row, "channel"),
        )
