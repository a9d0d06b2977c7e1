"""Tests for FieldStockOrchestrator wiring on both backends."""

from decimal import Decimal

import pytest

from fieldstock_config import DEFAULT_CONFIG_PATH, load_config
from fieldstock_config.schema import FieldStockConfig, TransferConfig, WarehouseConfig
from fieldstock_engines.lots import LotDrainOrder
from fieldstock_kernel.domain.dtos import ItemSpec
from fieldstock_kernel.domain.inventory import Lot
from fieldstock_kernel.exceptions import InactiveUnitError
from fieldstock_services.orchestrator import FieldStockOrchestrator
from fieldstock_services.sql_store import SqlInventoryStore
from fieldstock_services.store import InMemoryInventoryStore


@pytest.fixture(params=["memory", "sql"])
def stock(request, deterministic_clock):
    config = load_config(DEFAULT_CONFIG_PATH)
    if request.param == "memory":
        return FieldStockOrchestrator.in_memory(config, clock=deterministic_clock)
    return FieldStockOrchestrator.with_database(config, clock=deterministic_clock)


def test_backends(stock):
    assert isinstance(stock.store, (InMemoryInventoryStore, SqlInventoryStore))
    assert len(stock.units) == 4


def test_end_to_end(stock):
    item = stock.catalog.add_item(ItemSpec(
        sku="HVAC-FLT-001", name="Air Filter", category="HVAC",
        unit_price=Decimal("24.99"), min_stock=5, initial_quantity=10,
    ))
    stock.transfers.transfer_item(item.id, "warehouse", "MU001", 6, "INV-1", actor="dispatch")

    summary = stock.alerts()
    assert summary.low_stock_count == 1
    assert summary.total_valuation == Decimal("99.96")

    stock.removals.remove_from_unit(item.id, "MU001", "INV-1", 2)
    assert stock.catalog.get_item(item.id).mobile_allocations == (Lot("MU001", 4, "INV-1"),)

    (record,) = stock.history.list("MU001")
    assert stock.history.location_name(record.destination_location) == "Truck 1"

    with pytest.raises(InactiveUnitError):
        stock.transfers.transfer_item(item.id, "warehouse", "MU004", 1, actor="dispatch")


def test_config_flows_into_services(deterministic_clock):
    config = FieldStockConfig(
        warehouse=WarehouseConfig(label="Depot"),
        transfers=TransferConfig(id_prefix="MV", id_width=2, lot_drain_order=LotDrainOrder.LIFO),
        units=load_config(DEFAULT_CONFIG_PATH).units,
    )
    stock = FieldStockOrchestrator.in_memory(config, clock=deterministic_clock)
    item = stock.catalog.add_item(ItemSpec(sku="S", name="Sealant", initial_quantity=5))
    stock.transfers.transfer_item(item.id, "warehouse", "MU001", 1, "A", actor="d")
    stock.transfers.transfer_item(item.id, "warehouse", "MU001", 1, "B", actor="d")
    result = stock.transfers.transfer_item(item.id, "MU001", "warehouse", 1, actor="d")

    assert result.record.id == "MV03"
    # LIFO: the most recently placed lot (B) drained first
    assert result.item(item.id).mobile_allocations == (Lot("MU001", 1, "A"),)
    assert stock.history.location_name("warehouse") == "Depot"
