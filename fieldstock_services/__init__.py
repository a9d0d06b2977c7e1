"""
Module: fieldstock_services
Responsibility:
    Stateful orchestration over the pure engines: inventory stores,
    the item catalog, transfer and removal coordinators, transfer history,
    and the ``FieldStockOrchestrator`` composition root.

Architecture position:
    Services -- may import fieldstock_kernel, fieldstock_engines and
    fieldstock_config.
"""

from fieldstock_services.catalog import InventoryCatalog
from fieldstock_services.history import TransferHistory, location_name
from fieldstock_services.orchestrator import FieldStockOrchestrator
from fieldstock_services.removal_coordinator import RemovalCoordinator
from fieldstock_services.sql_store import SqlInventoryStore
from fieldstock_services.store import (
    InMemoryInventoryStore,
    InventorySnapshot,
    InventoryStore,
    UnitOfWork,
)
from fieldstock_services.transfer_coordinator import TransferCoordinator

__all__ = [
    "FieldStockOrchestrator",
    "InMemoryInventoryStore",
    "InventoryCatalog",
    "InventorySnapshot",
    "InventoryStore",
    "RemovalCoordinator",
    "SqlInventoryStore",
    "TransferCoordinator",
    "TransferHistory",
    "UnitOfWork",
    "location_name",
]
