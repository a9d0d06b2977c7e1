"""
Inventory -- Immutable, self-validating stock value objects.

Responsibility:
    Defines the nouns the engine works on: ``Lot`` (a batch of one item on
    one mobile unit, tagged with the invoice it moved under) and
    ``InventoryItem`` (catalog identity, pricing, threshold, warehouse
    quantity and the ordered lots deployed to units).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by engines and services. No outward dependencies except
    fieldstock_kernel.exceptions.

Invariants enforced:
    - Lot quantity is strictly positive; a zero lot can never be built.
    - Warehouse quantity, minimum stock and unit price are non-negative.
    - At most one lot per (unit_id, invoice_number) composite key.
    - Blank invoice numbers are normalised to None, so "" and None key the
      same lot.

Failure modes:
    - ValidationError on construction with any of the above violated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple

from fieldstock_kernel.exceptions import ValidationError
from fieldstock_kernel.logging_config import get_logger

logger = get_logger("domain.inventory")

WAREHOUSE = "warehouse"


def is_warehouse(location: str) -> bool:
    """True if ``location`` is the reserved warehouse sentinel."""
    return location == WAREHOUSE


def normalize_invoice_number(invoice_number: str | None) -> str | None:
    """Strip an invoice number; blank strings become None."""
    if invoice_number is None:
        return None
    stripped = str(invoice_number).strip()
    return stripped or None


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a price-like value to a finite Decimal through its string form."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got {value!r}", field=field_name)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(
            f"{field_name} must be a number, got {value!r}", field=field_name
        ) from exc
    if not result.is_finite():
        raise ValidationError(
            f"{field_name} must be a finite number, got {value!r}", field=field_name
        )
    return result


def is_whole_number(value: Any) -> bool:
    """True for ints, excluding bool."""
    return isinstance(value, int) and not isinstance(value, bool)


def require_whole_number(value: Any, field_name: str) -> int:
    if not is_whole_number(value):
        raise ValidationError(
            f"{field_name} must be a whole number, got {value!r}", field=field_name
        )
    return value


class LotKey(NamedTuple):
    """Composite key of a lot within one item's allocations."""

    unit_id: str
    invoice_number: str | None


@dataclass(frozen=True, slots=True)
class Lot:
    """
    A quantity of one item sitting on one mobile unit.

    Contract:
        Immutable. ``quantity`` > 0. ``invoice_number`` is normalised.
    """

    unit_id: str
    quantity: int
    invoice_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "invoice_number", normalize_invoice_number(self.invoice_number)
        )
        if not self.unit_id:
            raise ValidationError("Lot unit_id is required", field="unit_id")
        require_whole_number(self.quantity, "quantity")
        if self.quantity <= 0:
            logger.error("lot_invalid_quantity", extra={
                "unit_id": self.unit_id,
                "invoice_number": self.invoice_number,
                "quantity": self.quantity,
            })
            raise ValidationError(
                f"Lot quantity must be positive, got {self.quantity}",
                field="quantity",
            )

    @property
    def key(self) -> LotKey:
        return LotKey(self.unit_id, self.invoice_number)

    def with_quantity(self, quantity: int) -> Lot:
        return Lot(
            unit_id=self.unit_id,
            quantity=quantity,
            invoice_number=self.invoice_number,
        )


@dataclass(frozen=True, slots=True)
class InventoryItem:
    """
    A stock-keeping item and its per-location breakdown.

    Contract:
        Immutable value object. Engines derive new items with
        ``dataclasses.replace``; they never mutate one in place.
        ``mobile_allocations`` preserves allocation order: the lot placed on
        a unit first appears first.

    Guarantees:
        - ``unit_price`` is a Decimal >= 0.
        - ``min_stock`` >= 0 and ``warehouse_quantity`` >= 0.
        - Lot keys are unique.
    """

    id: str
    sku: str
    name: str
    category: str
    unit_price: Decimal
    min_stock: int
    warehouse_quantity: int
    mobile_allocations: tuple[Lot, ...] = field(default_factory=tuple)
    description: str = ""
    supplier: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        object.__setattr__(self, "mobile_allocations", tuple(self.mobile_allocations))

        if not self.id:
            raise ValidationError("Item id is required", field="id")
        if not self.sku or not self.sku.strip():
            raise ValidationError("SKU is required", field="sku")
        if not self.name or not self.name.strip():
            raise ValidationError("Item name is required", field="name")

        require_whole_number(self.min_stock, "min_stock")
        require_whole_number(self.warehouse_quantity, "warehouse_quantity")
        for field_name in ("unit_price", "min_stock", "warehouse_quantity"):
            value = getattr(self, field_name)
            if value < 0:
                logger.warning("item_negative_field", extra={
                    "item_id": self.id,
                    "field": field_name,
                    "value": str(value),
                })
                raise ValidationError(
                    f"{field_name} cannot be negative (got {value})",
                    field=field_name,
                )

        seen: set[LotKey] = set()
        for lot in self.mobile_allocations:
            if lot.key in seen:
                raise ValidationError(
                    f"Duplicate lot for unit {lot.unit_id} "
                    f"invoice {lot.invoice_number} on item {self.id}",
                    field="mobile_allocations",
                )
            seen.add(lot.key)

    @property
    def has_allocations(self) -> bool:
        return bool(self.mobile_allocations)
