"""
fieldstock_services.orchestrator -- Central DI container for field stock services.

Responsibility:
    Build every service exactly once from a ``FieldStockConfig`` and a store,
    and expose them as attributes. No service constructs another service.

Architecture position:
    Services -- top of the service layer; the composition root a host
    application uses.

Invariants enforced:
    - All services share one store, one unit registry and one clock.
    - The unit registry comes from configuration unless injected.

Usage:
    from fieldstock_config import get_active_config
    from fieldstock_services.orchestrator import FieldStockOrchestrator

    stock = FieldStockOrchestrator.in_memory(get_active_config())
    item = stock.catalog.add_item(spec)
    stock.transfers.transfer_item(item.id, "warehouse", "MU001", 6,
                                  invoice_number="INV-1", actor="dispatch")
    stock.alerts().low_stock_count
"""

from __future__ import annotations

from fieldstock_config.schema import FieldStockConfig
from fieldstock_engines.alerts import AlertSummary, summarize
from fieldstock_kernel.db.engine import build_engine, create_tables, make_session_factory
from fieldstock_kernel.domain.clock import Clock, SystemClock
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.logging_config import get_logger
from fieldstock_services.catalog import InventoryCatalog
from fieldstock_services.history import TransferHistory
from fieldstock_services.removal_coordinator import RemovalCoordinator
from fieldstock_services.sql_store import SqlInventoryStore
from fieldstock_services.store import InMemoryInventoryStore, InventoryStore
from fieldstock_services.transfer_coordinator import TransferCoordinator

logger = get_logger("services.orchestrator")


class FieldStockOrchestrator:
    """
    Central factory for field stock services.

    Contract:
        Receives a configuration and a store, plus an optional clock and
        unit registry. Exposes ``catalog``, ``transfers``, ``removals`` and
        ``history``.

    Non-goals:
        - Does NOT own the database engine lifecycle when a store is
          injected.
    """

    def __init__(
        self,
        config: FieldStockConfig,
        store: InventoryStore,
        clock: Clock | None = None,
        units: UnitRegistry | None = None,
    ):
        self.config = config
        self.store = store
        self.clock = clock or SystemClock()
        self.units = units if units is not None else config.unit_registry()

        self.catalog = InventoryCatalog(store)
        self.transfers = TransferCoordinator(
            store, self.units, clock=self.clock, config=config.transfers,
        )
        self.removals = RemovalCoordinator(store, self.units)
        self.history = TransferHistory(store, self.units, warehouse=config.warehouse)

        logger.info("orchestrator_initialized", extra={
            "store": type(store).__name__,
            "unit_count": len(self.units),
        })

    @classmethod
    def in_memory(
        cls,
        config: FieldStockConfig,
        clock: Clock | None = None,
    ) -> FieldStockOrchestrator:
        return cls(config, InMemoryInventoryStore(), clock=clock)

    @classmethod
    def with_database(
        cls,
        config: FieldStockConfig,
        clock: Clock | None = None,
        create_schema: bool = True,
    ) -> FieldStockOrchestrator:
        """Build a SQL-backed orchestrator from ``config.database``."""
        engine = build_engine(config.database.url, echo=config.database.echo)
        if create_schema:
            create_tables(engine)
        return cls(config, SqlInventoryStore(make_session_factory(engine)), clock=clock)

    def alerts(self) -> AlertSummary:
        """Badge figures recomputed from a fresh snapshot."""
        return summarize(self.store.list_items())
