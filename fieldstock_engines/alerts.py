"""
fieldstock_engines.alerts -- Low-stock, out-of-stock and valuation signals.

Responsibility:
    Derive dashboard badge figures from current item state. Pure read-side
    projection: nothing is stored, every call recomputes from the items it
    is given.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only warehouse stock counts. Reorder decisions are made against the
      warehouse, so deployed lots neither lift an item out of low stock
      nor add to the valuation figure.
    - Valuation uses Decimal arithmetic, quantised to cents.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from fieldstock_kernel.domain.inventory import InventoryItem

_CENTS = Decimal("0.01")


def is_low_stock(item: InventoryItem) -> bool:
    return item.warehouse_quantity < item.min_stock


def is_out_of_stock(item: InventoryItem) -> bool:
    return item.warehouse_quantity == 0


def total_valuation(items: Iterable[InventoryItem]) -> Decimal:
    """Sum of warehouse_quantity * unit_price, rounded half-up to cents."""
    total = sum(
        (item.unit_price * item.warehouse_quantity for item in items),
        Decimal("0"),
    )
    return total.quantize(_CENTS, rounding=ROUND_HALF_UP)


def low_stock_count(items: Iterable[InventoryItem]) -> int:
    return sum(1 for item in items if is_low_stock(item))


def out_of_stock_count(items: Iterable[InventoryItem]) -> int:
    return sum(1 for item in items if is_out_of_stock(item))


def low_stock_items(items: Iterable[InventoryItem]) -> list[InventoryItem]:
    """Items below threshold that still have some warehouse stock.

    Out-of-stock items are listed separately by ``out_of_stock_items``.
    """
    return [item for item in items if is_low_stock(item) and not is_out_of_stock(item)]


def out_of_stock_items(items: Iterable[InventoryItem]) -> list[InventoryItem]:
    return [item for item in items if is_out_of_stock(item)]


@dataclass(frozen=True, slots=True)
class AlertSummary:
    """Badge figures for one render/query cycle."""

    item_count: int
    low_stock_count: int
    out_of_stock_count: int
    total_valuation: Decimal


def summarize(items: Iterable[InventoryItem]) -> AlertSummary:
    items = list(items)
    return AlertSummary(
        item_count=len(items),
        low_stock_count=low_stock_count(items),
        out_of_stock_count=out_of_stock_count(items),
        total_valuation=total_valuation(items),
    )
