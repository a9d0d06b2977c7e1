"""
Pure domain layer.

This module contains immutable value objects and DTOs with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock interface)
- I/O
"""

from fieldstock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fieldstock_kernel.domain.dtos import (
    ItemSpec,
    RemovalRequest,
    RemovalResult,
    TransferLine,
    TransferLineRequest,
    TransferRecord,
    TransferRequest,
    TransferResult,
)
from fieldstock_kernel.domain.inventory import (
    WAREHOUSE,
    InventoryItem,
    Lot,
    LotKey,
    is_warehouse,
    normalize_invoice_number,
)
from fieldstock_kernel.domain.units import MobileUnit, UnitRegistry, UnitStatus

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ItemSpec",
    "RemovalRequest",
    "RemovalResult",
    "TransferLine",
    "TransferLineRequest",
    "TransferRecord",
    "TransferRequest",
    "TransferResult",
    "WAREHOUSE",
    "InventoryItem",
    "Lot",
    "LotKey",
    "is_warehouse",
    "normalize_invoice_number",
    "MobileUnit",
    "UnitRegistry",
    "UnitStatus",
]
