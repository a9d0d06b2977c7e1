"""
fieldstock_engines.transfer -- Pure planning of multi-item stock transfers.

Responsibility:
    Validate a ``TransferRequest`` against the current items and compute the
    items as they will look after the transfer, plus the ``TransferLine``s
    that go into the audit record. Nothing is written here: the coordinator
    in fieldstock_services commits the plan.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Inputs are immutable ``InventoryItem`` snapshots; outputs are new items.

Invariants enforced:
    - Pre-flight first: every line is checked (same location, positive
      quantity, known locations and items, sufficient stock) before the plan
      is returned. A failing line yields an exception and no plan, so a
      multi-item transfer is all-or-nothing.
    - Cumulative availability: lines naming the same item are applied to a
      staged copy in order, so the second line sees what the first took.
    - Source availability is location-level: a unit source may draw from
      several of its lots regardless of invoice.
    - Destination lots are upserted by (unit_id, invoice_number).

Failure modes:
    - ValidationError: empty request or a line without an item id.
    - InvalidTransferError: source equals destination.
    - InvalidQuantityError: a line quantity <= 0.
    - NotFoundError: unknown unit or item.
    - InactiveUnitError: destination unit is inactive.
    - InsufficientStockError: source holds less than requested.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass

from fieldstock_kernel.domain.dtos import TransferLine, TransferRequest
from fieldstock_kernel.domain.inventory import InventoryItem, is_warehouse, is_whole_number
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidTransferError,
    NotFoundError,
    ValidationError,
)
from fieldstock_kernel.logging_config import get_logger
from fieldstock_engines.ledger import quantity_at
from fieldstock_engines.lots import LotDrainOrder, drain_unit, upsert_lot
from fieldstock_engines.tracer import traced_engine

logger = get_logger("engines.transfer")


@dataclass(frozen=True, slots=True)
class TransferPlan:
    """Items after the transfer (request order) and the record lines."""

    items: tuple[InventoryItem, ...]
    lines: tuple[TransferLine, ...]


def apply_transfer_line(
    item: InventoryItem,
    source_location: str,
    destination_location: str,
    quantity: int,
    invoice_number: str | None,
    drain_order: LotDrainOrder = LotDrainOrder.FIFO,
) -> InventoryItem:
    """Move ``quantity`` of one item and return the new item.

    Preconditions:
        quantity > 0, source != destination, and the source holds at least
        ``quantity``.
    """
    allocations = item.mobile_allocations
    warehouse = item.warehouse_quantity

    if is_warehouse(source_location):
        warehouse -= quantity
    else:
        allocations, _ = drain_unit(allocations, source_location, quantity, drain_order)

    if is_warehouse(destination_location):
        warehouse += quantity
    else:
        allocations = upsert_lot(allocations, destination_location, invoice_number, quantity)

    return dataclasses.replace(
        item,
        warehouse_quantity=warehouse,
        mobile_allocations=allocations,
    )


def validate_request_shape(request: TransferRequest) -> None:
    """Checks that need no item state."""
    if request.source_location == request.destination_location:
        raise InvalidTransferError(request.source_location)
    if not request.items:
        raise ValidationError("A transfer needs at least one item", field="items")
    for line in request.items:
        if not line.item_id:
            raise ValidationError("All items must be selected", field="item_id")
    for line in request.items:
        if not is_whole_number(line.quantity) or line.quantity <= 0:
            raise InvalidQuantityError(line.quantity, line.item_id)


@traced_engine("transfer", "1.0", fingerprint_fields=("request", "drain_order"))
def plan_transfer(
    *,
    request: TransferRequest,
    items: Mapping[str, InventoryItem],
    units: UnitRegistry,
    drain_order: LotDrainOrder = LotDrainOrder.FIFO,
) -> TransferPlan:
    """Validate ``request`` and compute the post-transfer items.

    Postconditions:
        Returned items satisfy every item invariant (no negative quantity,
        no zero lot, unique lot keys). Items not named in the request are
        not included.
    """
    validate_request_shape(request)
    units.require_location(request.source_location)
    units.require_destination(request.destination_location)

    for item_id in request.item_ids:
        if item_id not in items:
            raise NotFoundError("InventoryItem", item_id)

    staged: dict[str, InventoryItem] = {}
    lines: list[TransferLine] = []
    for line in request.items:
        current = staged.get(line.item_id, items[line.item_id])
        available = quantity_at(current, request.source_location)
        if available < line.quantity:
            logger.info("transfer_insufficient_stock", extra={
                "item_id": line.item_id,
                "location": request.source_location,
                "requested": line.quantity,
                "available": available,
            })
            raise InsufficientStockError(
                item_id=line.item_id,
                location=request.source_location,
                requested=line.quantity,
                available=available,
                item_name=current.name,
            )
        staged[line.item_id] = apply_transfer_line(
            current,
            request.source_location,
            request.destination_location,
            line.quantity,
            line.invoice_number,
            drain_order,
        )
        lines.append(TransferLine(
            item_id=line.item_id,
            item_name=current.name,
            quantity=line.quantity,
            invoice_number=line.invoice_number,
        ))

    return TransferPlan(
        items=tuple(staged[item_id] for item_id in request.item_ids),
        lines=tuple(lines),
    )
