"""
fieldstock_engines.lots -- Lot upsert and drain over an item's allocations.

Responsibility:
    Express the two lot mutations the engine needs as explicit operations on
    an index keyed by ``(unit_id, invoice_number)``:

    * ``upsert_lot``  -- add quantity to the matching lot, or append a new
      lot when none exists.
    * ``drain_unit``  -- remove a quantity from one unit across its lots in
      a deterministic order, dropping any lot that reaches zero.
    * ``shrink_lot``  -- remove up to a quantity from one specific lot.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Operates on tuples of ``Lot`` and returns new tuples; inputs are never
    mutated.

Invariants enforced:
    - Merge, never duplicate: the index holds one lot per composite key.
    - No zero lots: a lot drained to zero is removed, never kept at 0.
    - Allocation order is preserved: merged lots keep their position,
      new lots are appended.
    - Deterministic drain: the same allocations and order always drain the
      same lots.

Failure modes:
    - ValueError from ``drain_unit`` if the unit holds less than requested.
      Callers (engines.transfer) check availability first and raise the
      typed InsufficientStockError; reaching this is a programming error.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from fieldstock_kernel.domain.inventory import Lot, LotKey, normalize_invoice_number
from fieldstock_kernel.logging_config import get_logger

logger = get_logger("engines.lots")


class LotDrainOrder(str, Enum):
    """Order in which a unit's lots are consumed by an outbound transfer."""

    FIFO = "fifo"        # Lot placed on the unit first drains first
    LIFO = "lifo"        # Most recently placed lot drains first
    INVOICE = "invoice"  # Ascending invoice number, invoice-less lots last


def index_lots(allocations: Iterable[Lot]) -> dict[LotKey, Lot]:
    """Key lots by composite key, preserving allocation order."""
    return {lot.key: lot for lot in allocations}


def invoice_sort_key(lot: Lot) -> tuple[bool, str]:
    return (lot.invoice_number is None, lot.invoice_number or "")


def upsert_lot(
    allocations: tuple[Lot, ...],
    unit_id: str,
    invoice_number: str | None,
    quantity: int,
) -> tuple[Lot, ...]:
    """Merge ``quantity`` into the (unit, invoice) lot or append a new one.

    Preconditions:
        quantity > 0.

    Postconditions:
        Exactly one lot with the key exists and its quantity grew by
        ``quantity``. Every other lot is unchanged and in place.
    """
    key = LotKey(unit_id, normalize_invoice_number(invoice_number))
    index = index_lots(allocations)
    existing = index.get(key)
    if existing is not None:
        index[key] = existing.with_quantity(existing.quantity + quantity)
    else:
        index[key] = Lot(unit_id=key.unit_id, quantity=quantity, invoice_number=key.invoice_number)
    return tuple(index.values())


def drain_sequence(lots: list[Lot], order: LotDrainOrder) -> list[Lot]:
    """Return ``lots`` (already in allocation order) in drain order."""
    if order is LotDrainOrder.LIFO:
        return list(reversed(lots))
    if order is LotDrainOrder.INVOICE:
        return sorted(lots, key=invoice_sort_key)
    return list(lots)


def drain_unit(
    allocations: tuple[Lot, ...],
    unit_id: str,
    quantity: int,
    order: LotDrainOrder = LotDrainOrder.FIFO,
) -> tuple[tuple[Lot, ...], tuple[tuple[Lot, int], ...]]:
    """Take ``quantity`` off ``unit_id`` across its lots.

    Preconditions:
        quantity > 0 and the unit holds at least ``quantity``.

    Postconditions:
        Returns ``(new_allocations, taken)`` where ``taken`` lists each
        source lot touched with the amount taken from it, in drain order.
        Lots on other units are untouched.

    Raises:
        ValueError: if the unit holds less than ``quantity``.
    """
    index = index_lots(allocations)
    unit_lots = [lot for lot in index.values() if lot.unit_id == unit_id]
    held = sum(lot.quantity for lot in unit_lots)
    if held < quantity:
        logger.error("drain_unit_overdraw", extra={
            "unit_id": unit_id,
            "requested": quantity,
            "held": held,
        })
        raise ValueError(
            f"Unit {unit_id} holds {held}, cannot drain {quantity}"
        )

    remaining = quantity
    taken: list[tuple[Lot, int]] = []
    for lot in drain_sequence(unit_lots, order):
        if remaining == 0:
            break
        take = min(lot.quantity, remaining)
        remaining -= take
        taken.append((lot, take))
        if take == lot.quantity:
            del index[lot.key]
        else:
            index[lot.key] = lot.with_quantity(lot.quantity - take)

    return tuple(index.values()), tuple(taken)


def shrink_lot(
    allocations: tuple[Lot, ...],
    key: LotKey,
    quantity: int,
) -> tuple[tuple[Lot, ...], int, int]:
    """Remove up to ``quantity`` from the lot at ``key``.

    Postconditions:
        Returns ``(new_allocations, removed, remaining)``. When ``quantity``
        covers the whole lot the lot is deleted and ``remaining`` is 0.

    Raises:
        KeyError: if no lot has ``key``.
    """
    index = index_lots(allocations)
    lot = index[key]
    if quantity >= lot.quantity:
        del index[key]
        return tuple(index.values()), lot.quantity, 0
    index[key] = lot.with_quantity(lot.quantity - quantity)
    return tuple(index.values()), quantity, lot.quantity - quantity
