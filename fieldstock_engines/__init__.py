"""
Module: fieldstock_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the canonical import surface for
    fieldstock_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldstock_kernel (domain, exceptions, logging) and
    sibling engine modules. MUST NOT import fieldstock_services.

Invariants enforced:
    - Purity: engines never read the clock, never touch a store, and never
      mutate the items they are given.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from fieldstock_engines import plan_transfer, quantity_at, summarize
"""

from fieldstock_engines.alerts import (
    AlertSummary,
    is_low_stock,
    is_out_of_stock,
    low_stock_count,
    low_stock_items,
    out_of_stock_count,
    out_of_stock_items,
    summarize,
    total_valuation,
)
from fieldstock_engines.ledger import (
    InvoiceGroup,
    InvoiceGroupLine,
    find_lot,
    invoice_groups_for_unit,
    lots_at,
    mobile_quantity,
    quantity_at,
    total_quantity,
    units_holding,
)
from fieldstock_engines.lots import LotDrainOrder, drain_unit, shrink_lot, upsert_lot
from fieldstock_engines.removal import plan_removal
from fieldstock_engines.transfer import TransferPlan, apply_transfer_line, plan_transfer

__all__ = [
    # Alerts
    "AlertSummary",
    "is_low_stock",
    "is_out_of_stock",
    "low_stock_count",
    "low_stock_items",
    "out_of_stock_count",
    "out_of_stock_items",
    "summarize",
    "total_valuation",
    # Ledger
    "InvoiceGroup",
    "InvoiceGroupLine",
    "find_lot",
    "invoice_groups_for_unit",
    "lots_at",
    "mobile_quantity",
    "quantity_at",
    "total_quantity",
    "units_holding",
    # Lots
    "LotDrainOrder",
    "drain_unit",
    "shrink_lot",
    "upsert_lot",
    # Planning
    "plan_removal",
    "TransferPlan",
    "apply_transfer_line",
    "plan_transfer",
]
