"""
Pytest fixtures for the field stock test suite.

Provides:
- Structured logging configured once per session, plus ``captured_logs``
- A deterministic clock and the reference unit registry (Trucks 1-4)
- Seeded stores: in-memory by default, SQLite-backed through ``sql_store``
- Wired catalog / coordinators / history over the ``store`` fixture

The ``store`` fixture is parametrized over both backends, so every service
test runs against the in-memory store and the SQLAlchemy store.
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from fieldstock_config.schema import TransferConfig, WarehouseConfig
from fieldstock_kernel.db.engine import build_engine, create_tables, make_session_factory
from fieldstock_kernel.domain.clock import DeterministicClock
from fieldstock_kernel.domain.inventory import InventoryItem
from fieldstock_kernel.domain.units import MobileUnit, UnitRegistry, UnitStatus
from fieldstock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from fieldstock_services.catalog import InventoryCatalog
from fieldstock_services.history import TransferHistory
from fieldstock_services.removal_coordinator import RemovalCoordinator
from fieldstock_services.sql_store import SqlInventoryStore
from fieldstock_services.store import InMemoryInventoryStore
from fieldstock_services.transfer_coordinator import TransferCoordinator

TEST_ACTOR = "dispatcher@test"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fieldstock logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, transfers):
            transfers.transfer_item(...)
            logs = captured_logs()
            assert any(r["message"] == "transfer_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fieldstock")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Reference data
# =============================================================================


def make_item(
    item_id: str = "1",
    sku: str = "HVAC-FLT-001",
    name: str = "Air Filter",
    warehouse_quantity: int = 10,
    min_stock: int = 5,
    unit_price: str = "24.99",
    category: str = "HVAC",
    lots=(),
) -> InventoryItem:
    return InventoryItem(
        id=item_id,
        sku=sku,
        name=name,
        category=category,
        unit_price=Decimal(unit_price),
        min_stock=min_stock,
        warehouse_quantity=warehouse_quantity,
        mobile_allocations=tuple(lots),
    )


def reference_items() -> list[InventoryItem]:
    return [
        make_item("1", "HVAC-FLT-001", "Air Filter", 10, 5, "24.99", "HVAC"),
        make_item("2", "PLB-VLV-002", "Ball Valve", 40, 20, "12.50", "Plumbing"),
        make_item("3", "ELC-BRK-003", "Circuit Breaker", 0, 10, "45.00", "Electrical"),
    ]


@pytest.fixture
def item_factory():
    """The ``make_item`` builder, for tests that need ad-hoc items."""
    return make_item


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def units() -> UnitRegistry:
    return UnitRegistry([
        MobileUnit("MU001", "Truck 1", "David Martinez", UnitStatus.ACTIVE),
        MobileUnit("MU002", "Truck 2", "Lisa Wong", UnitStatus.ACTIVE),
        MobileUnit("MU003", "Truck 3", "Robert Johnson", UnitStatus.MAINTENANCE),
        MobileUnit("MU004", "Truck 4", "Unassigned", UnitStatus.INACTIVE),
    ])


@pytest.fixture
def test_actor() -> str:
    return TEST_ACTOR


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield make_session_factory(engine)
    engine.dispose()


def seed_sql_store(factory, items) -> SqlInventoryStore:
    store = SqlInventoryStore(factory)
    for item in items:
        with store.unit_of_work([item.id], catalog=True) as uow:
            uow.put(item)
    return store


@pytest.fixture
def memory_store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore(reference_items())


@pytest.fixture
def sql_store(session_factory) -> SqlInventoryStore:
    return seed_sql_store(session_factory, reference_items())


@pytest.fixture(params=["memory", "sql"])
def build_store(request):
    """Callable seeding a fresh store of each backend with the given items."""
    if request.param == "memory":
        return InMemoryInventoryStore
    factory = request.getfixturevalue("session_factory")
    return lambda items: seed_sql_store(factory, items)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Seeded store, once per backend."""
    if request.param == "memory":
        return request.getfixturevalue("memory_store")
    return request.getfixturevalue("sql_store")


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def catalog(store) -> InventoryCatalog:
    return InventoryCatalog(store)


@pytest.fixture
def transfers(store, units, deterministic_clock) -> TransferCoordinator:
    return TransferCoordinator(store, units, clock=deterministic_clock, config=TransferConfig())


@pytest.fixture
def removals(store, units) -> RemovalCoordinator:
    return RemovalCoordinator(store, units)


@pytest.fixture
def history(store, units) -> TransferHistory:
    return TransferHistory(store, units, warehouse=WarehouseConfig())


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as exercising thread contention"
    )
