"""
fieldstock_engines.ledger -- Read-only location ledger queries.

Responsibility:
    Answer "how much of this item is where" from an ``InventoryItem``:
    warehouse quantity, per-unit totals across invoices, lot listings for
    display, and the per-unit invoice grouping shown on a truck's stock
    sheet.

Architecture position:
    Engines -- pure calculation layer, zero I/O. Never mutates its inputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fieldstock_kernel.domain.inventory import (
    InventoryItem,
    Lot,
    LotKey,
    is_warehouse,
    normalize_invoice_number,
)
from fieldstock_engines.lots import invoice_sort_key


def quantity_at(item: InventoryItem, location: str) -> int:
    """Quantity of ``item`` held at ``location`` (warehouse or unit id)."""
    if is_warehouse(location):
        return item.warehouse_quantity
    return sum(lot.quantity for lot in item.mobile_allocations if lot.unit_id == location)


def lots_at(item: InventoryItem, unit_id: str) -> list[Lot]:
    """Lots of ``item`` on ``unit_id``, ordered by invoice number (None last)."""
    lots = [lot for lot in item.mobile_allocations if lot.unit_id == unit_id]
    return sorted(lots, key=invoice_sort_key)


def mobile_quantity(item: InventoryItem) -> int:
    """Quantity deployed across all units."""
    return sum(lot.quantity for lot in item.mobile_allocations)


def total_quantity(item: InventoryItem) -> int:
    """Warehouse plus all deployed lots."""
    return item.warehouse_quantity + mobile_quantity(item)


def units_holding(item: InventoryItem) -> list[str]:
    """Unit ids holding ``item``, in first-allocation order."""
    return list(dict.fromkeys(lot.unit_id for lot in item.mobile_allocations))


def find_lot(
    item: InventoryItem,
    unit_id: str,
    invoice_number: str | None = None,
    *,
    any_invoice: bool = False,
) -> Lot | None:
    """Locate a lot on ``unit_id``.

    With ``any_invoice`` the first lot on the unit in allocation order is
    returned regardless of invoice; otherwise the exact
    ``(unit_id, invoice_number)`` lot.
    """
    if any_invoice:
        for lot in item.mobile_allocations:
            if lot.unit_id == unit_id:
                return lot
        return None
    key = LotKey(unit_id, normalize_invoice_number(invoice_number))
    for lot in item.mobile_allocations:
        if lot.key == key:
            return lot
    return None


@dataclass(frozen=True, slots=True)
class InvoiceGroupLine:
    item: InventoryItem
    quantity: int


@dataclass(frozen=True, slots=True)
class InvoiceGroup:
    """Stock on one unit that moved there under one invoice."""

    invoice_number: str
    lines: tuple[InvoiceGroupLine, ...]

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)


def invoice_groups_for_unit(
    items: Iterable[InventoryItem],
    unit_id: str,
) -> list[InvoiceGroup]:
    """Group everything on ``unit_id`` by invoice number.

    Lots without an invoice are not part of any group. Groups are ordered by
    invoice number; lines keep the order of ``items``.
    """
    grouped: dict[str, list[InvoiceGroupLine]] = {}
    for item in items:
        for lot in item.mobile_allocations:
            if lot.unit_id != unit_id or lot.invoice_number is None:
                continue
            grouped.setdefault(lot.invoice_number, []).append(
                InvoiceGroupLine(item=item, quantity=lot.quantity)
            )
    return [
        InvoiceGroup(invoice_number=invoice, lines=tuple(lines))
        for invoice, lines in sorted(grouped.items())
    ]
