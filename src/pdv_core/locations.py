"""Store location registry.

Each physical store keeps its own cash registers, cash entries, sales and
operators in separately named tables. This module maps a location name to
those tables so the query layer never hardcodes a table name.
"""

from __future__ import annotations

from dataclasses import dataclass

from pdv_core.exceptions import ConfigError

ORDERS_TABLE = "orders"


@dataclass(frozen=True)
class StoreLocation:
    """Table names for one store location.

    Attributes:
        name: Location key, e.g. ``"loja1"``.
        label: Display name.
        registers_table: Cash register table.
        entries_table: Cash entry table.
        sales_table: PDV sales table.
        sale_items_table: PDV sale items table (embedded in sales selects).
        operators_table: Operators table (embedded in register selects).
        orders_table: Delivery orders table, or None when the location does
            not take delivery orders.
    """

    name: str
    label: str
    registers_table: str
    entries_table: str
    sales_table: str
    sale_items_table: str
    operators_table: str
    orders_table: str | None = None

    @property
    def has_delivery(self) -> bool:
        return self.orders_table is not None


LOJA1 = StoreLocation(
    name="loja1",
    label="Loja 1",
    registers_table="pdv_cash_registers",
    entries_table="pdv_cash_entries",
    sales_table="pdv_sales",
    sale_items_table="pdv_sale_items",
    operators_table="pdv_operators",
    orders_table=ORDERS_TABLE,
)

LOJA2 = StoreLocation(
    name="loja2",
    label="Loja 2",
    registers_table="pdv2_cash_registers",
    entries_table="pdv2_cash_entries",
    sales_table="store2_sales",
    sale_items_table="store2_sale_items",
    operators_table="pdv2_operators",
)

DEFAULT_LOCATIONS = (LOJA1, LOJA2)


class LocationRegistry:
    """Registry of known store locations.

    Example:
        >>> registry = LocationRegistry()
        >>> registry.get("loja2").registers_table
        'pdv2_cash_registers'
        >>> registry.list_locations()
        ['loja1', 'loja2']

    """

    def __init__(self, locations: tuple[StoreLocation, ...] = DEFAULT_LOCATIONS) -> None:
        self._locations = {loc.name: loc for loc in locations}

    def list_locations(self) -> list[str]:
        return sorted(self._locations)

    def get(self, name: str | StoreLocation) -> StoreLocation:
        """Resolve a location by name.

        Raises:
            ConfigError: If the location is not registered.
        """
        if isinstance(name, StoreLocation):
            return name
        try:
            return self._locations[name]
        except KeyError:
            raise ConfigError(
                f"Unknown location '{name}'. Available: {', '.join(self.list_locations())}"
            ) from None

    def delivery_location(self) -> StoreLocation:
        """The location that receives delivery orders."""
        for loc in self._locations.values():
            if loc.has_delivery:
                return loc
        raise ConfigError("No location is configured for delivery orders")


def get_location(name: str | StoreLocation) -> StoreLocation:
    return LocationRegistry().get(name)
