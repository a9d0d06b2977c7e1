"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow in and out of the
    engine: ItemSpec (catalog input), TransferRequest / TransferLineRequest
    and RemovalRequest (coordinator input), TransferRecord / TransferLine
    (the append-only audit entry), and the TransferResult / RemovalResult
    outputs.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies. ``TransferRecord`` is converted to and from
    rows only inside fieldstock_services.

Invariants enforced:
    - TransferRecord is frozen and its lines are a tuple: once built it
      cannot be edited in memory.
    - Invoice numbers are normalised the same way as on ``Lot``.

Data flow:
    TransferRequest -> (engines.transfer) -> TransferRecord + new items
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from fieldstock_kernel.domain.inventory import (
    InventoryItem,
    is_whole_number,
    normalize_invoice_number,
    to_decimal,
)
from fieldstock_kernel.exceptions import ValidationError


def _whole_from_payload(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if is_whole_number(value):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{key} must be a whole number, got {value!r}", field=key)


@dataclass(frozen=True, slots=True)
class ItemSpec:
    """Input for ``InventoryCatalog.add_item``."""

    sku: str
    name: str
    category: str = ""
    unit_price: Decimal = Decimal("0")
    min_stock: int = 0
    initial_quantity: int = 0
    id: str | None = None
    description: str = ""
    supplier: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ItemSpec:
        """
        Build a spec from a loosely typed mapping (host API payloads).

        Numeric strings are accepted. Anything else malformed, including a
        missing sku or name, raises ValidationError.
        """
        for required in ("sku", "name"):
            if required not in data:
                raise ValidationError(f"{required} is required", field=required)
        return cls(
            sku=data["sku"],
            name=data["name"],
            category=data.get("category", ""),
            unit_price=to_decimal(data.get("unit_price", "0"), "unit_price"),
            min_stock=_whole_from_payload(data, "min_stock"),
            initial_quantity=_whole_from_payload(data, "initial_quantity"),
            id=data.get("id"),
            description=data.get("description", ""),
            supplier=data.get("supplier", ""),
        )


@dataclass(frozen=True, slots=True)
class TransferLineRequest:
    """One line of a transfer request."""

    item_id: str
    quantity: int
    invoice_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "invoice_number", normalize_invoice_number(self.invoice_number)
        )


@dataclass(frozen=True, slots=True)
class TransferRequest:
    """A batch move of one or more items between two locations."""

    source_location: str
    destination_location: str
    items: tuple[TransferLineRequest, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def item_ids(self) -> tuple[str, ...]:
        """Distinct item ids in the request, in first-seen order."""
        return tuple(dict.fromkeys(line.item_id for line in self.items))


@dataclass(frozen=True, slots=True)
class RemovalRequest:
    """Consumption of stock from a unit's lot."""

    unit_id: str
    item_id: str
    quantity: int
    invoice_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "invoice_number", normalize_invoice_number(self.invoice_number)
        )


@dataclass(frozen=True, slots=True)
class TransferLine:
    """One moved item inside a TransferRecord."""

    item_id: str
    item_name: str
    quantity: int
    invoice_number: str | None = None


@dataclass(frozen=True, slots=True)
class TransferRecord:
    """
    Append-only audit entry for one executed transfer.

    Contract:
        Created only by the transfer coordinator; never edited or deleted.
    """

    id: str
    timestamp: datetime
    source_location: str
    destination_location: str
    items: tuple[TransferLine, ...]
    performed_by: str

    def involves(self, location: str) -> bool:
        """True if ``location`` is this transfer's source or destination."""
        return location in (self.source_location, self.destination_location)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.items)


@dataclass(frozen=True, slots=True)
class TransferResult:
    """Outcome of a committed transfer: the record plus updated items."""

    record: TransferRecord
    items: tuple[InventoryItem, ...]

    def item(self, item_id: str) -> InventoryItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise KeyError(item_id)


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """
    Outcome of a removal.

    ``full`` is True when the whole lot was deleted, in which case
    ``remaining_quantity`` is 0.
    """

    item_id: str
    unit_id: str
    invoice_number: str | None
    removed_quantity: int
    remaining_quantity: int
    full: bool
