"""
fieldstock_engines.removal -- Pure planning of lot consumption on a unit.

Responsibility:
    Compute the effect of consuming stock from one lot on a mobile unit
    (parts installed on a job). This is not a transfer: the quantity leaves
    the ledger entirely and the warehouse is never touched.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A request covering the whole lot deletes it; no zero lot remains.
    - A smaller request shrinks the lot in place (allocation order kept).
    - Warehouse quantity is unchanged.

Failure modes:
    - InvalidQuantityError: requested quantity <= 0.
    - NotFoundError: unknown unit, or no matching lot on the unit.
"""

from __future__ import annotations

import dataclasses

from fieldstock_kernel.domain.dtos import RemovalResult
from fieldstock_kernel.domain.inventory import (
    InventoryItem,
    is_whole_number,
    normalize_invoice_number,
)
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.exceptions import InvalidQuantityError, NotFoundError
from fieldstock_engines.ledger import find_lot
from fieldstock_engines.lots import shrink_lot
from fieldstock_engines.tracer import traced_engine


@traced_engine(
    "removal", "1.0",
    fingerprint_fields=("unit_id", "invoice_number", "requested_quantity"),
)
def plan_removal(
    *,
    item: InventoryItem,
    unit_id: str,
    invoice_number: str | None,
    requested_quantity: int,
    units: UnitRegistry,
) -> tuple[InventoryItem, RemovalResult]:
    """Consume ``requested_quantity`` from a lot on ``unit_id``.

    When ``invoice_number`` is None the first lot on the unit, in allocation
    order, is used.

    Postconditions:
        Returns the new item and a RemovalResult. ``removed_quantity`` is
        ``min(requested_quantity, lot.quantity)``.
    """
    if not is_whole_number(requested_quantity) or requested_quantity <= 0:
        raise InvalidQuantityError(requested_quantity, item.id)
    units.get(unit_id)

    invoice_number = normalize_invoice_number(invoice_number)
    lot = find_lot(item, unit_id, invoice_number, any_invoice=invoice_number is None)
    if lot is None:
        label = f"{item.id}@{unit_id}" + (f"/{invoice_number}" if invoice_number else "")
        raise NotFoundError("Lot", label)

    allocations, removed, remaining = shrink_lot(
        item.mobile_allocations, lot.key, requested_quantity
    )
    new_item = dataclasses.replace(item, mobile_allocations=allocations)
    return new_item, RemovalResult(
        item_id=item.id,
        unit_id=unit_id,
        invoice_number=lot.invoice_number,
        removed_quantity=removed,
        remaining_quantity=remaining,
        full=remaining == 0,
    )
