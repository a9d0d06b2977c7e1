"""
Concurrency tests for both inventory stores.

These run real threads against one store per backend (in-memory and
SQLite) and verify that per-item serialization, sorted lock acquisition
and snapshot reads keep every invariant under contention.

Skip with: pytest -m "not slow_locks"
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from threading import Barrier, Event
from time import sleep

import pytest

from fieldstock_engines.ledger import total_quantity
from fieldstock_kernel.domain.dtos import ItemSpec, TransferLineRequest, TransferRequest
from fieldstock_kernel.exceptions import InsufficientStockError, ValidationError
from fieldstock_services.catalog import InventoryCatalog
from fieldstock_services.removal_coordinator import RemovalCoordinator
from fieldstock_services.transfer_coordinator import TransferCoordinator

pytestmark = pytest.mark.slow_locks

WORKERS = 16


@pytest.fixture
def stock_store(build_store, item_factory):
    return build_store([
        item_factory("A", "SKU-A", "Alpha", warehouse_quantity=100),
        item_factory("B", "SKU-B", "Bravo", warehouse_quantity=100),
    ])


@pytest.fixture
def coordinator(stock_store, units, deterministic_clock):
    return TransferCoordinator(stock_store, units, clock=deterministic_clock)


def _run(count, fn):
    """Run ``fn(i)`` for i in range(count) on a pool, started together."""
    barrier = Barrier(min(count, WORKERS))
    outcomes = []

    def task(i):
        if i < WORKERS:
            barrier.wait()
        try:
            return ("ok", fn(i))
        except Exception as exc:  # collected for assertions below
            return ("err", exc)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(task, i) for i in range(count)]
        for future in as_completed(futures):
            outcomes.append(future.result())
    return outcomes


class TestSerializedMutation:

    def test_parallel_transfers_conserve_stock(self, coordinator, stock_store):
        outcomes = _run(
            50,
            lambda i: coordinator.transfer_item("A", "warehouse", "MU001", 1, "INV-1", actor=f"w{i}"),
        )
        assert all(status == "ok" for status, _ in outcomes)

        item = stock_store.get_item("A")
        assert item.warehouse_quantity == 50
        assert item.mobile_allocations[0].quantity == 50
        assert len(item.mobile_allocations) == 1

        ids = sorted(record.id for record in stock_store.list_transfers())
        assert ids == [f"TR{n:03d}" for n in range(1, 51)]

    def test_oversubscription_exactly_available_succeeds(
        self, build_store, item_factory, units, deterministic_clock,
    ):
        stock_store = build_store([
            item_factory("C", "SKU-C", "Charlie", warehouse_quantity=10),
        ])
        coordinator = TransferCoordinator(stock_store, units, clock=deterministic_clock)

        outcomes = _run(
            30,
            lambda i: coordinator.transfer_item("C", "warehouse", "MU002", 1, actor="w"),
        )
        ok = [r for status, r in outcomes if status == "ok"]
        errors = [r for status, r in outcomes if status == "err"]

        assert len(ok) == 10
        assert len(errors) == 20
        assert all(isinstance(e, InsufficientStockError) for e in errors)
        assert stock_store.get_item("C").warehouse_quantity == 0
        assert len(stock_store.list_transfers()) == 10

    def test_competing_large_transfers_have_one_winner(
        self, build_store, item_factory, units, deterministic_clock,
    ):
        stock_store = build_store([
            item_factory("A", "SKU-A", "Alpha", warehouse_quantity=10),
        ])
        coordinator = TransferCoordinator(stock_store, units, clock=deterministic_clock)

        outcomes = _run(
            8,
            lambda i: coordinator.transfer_item("A", "warehouse", "MU001", 6, f"INV-{i}", actor="w"),
        )
        ok = [r for status, r in outcomes if status == "ok"]
        errors = [r for status, r in outcomes if status == "err"]

        assert len(ok) == 1
        assert len(errors) == 7
        assert all(isinstance(e, InsufficientStockError) for e in errors)

        item = stock_store.get_item("A")
        assert item.warehouse_quantity == 4
        assert total_quantity(item) == 10
        assert len(item.mobile_allocations) == 1
        assert len(stock_store.list_transfers()) == 1

    def test_lock_table_empties_after_contention(self, coordinator, stock_store):
        _run(
            20,
            lambda i: coordinator.transfer_item(
                "A" if i % 2 else f"missing-{i}", "warehouse", "MU001", 1, "INV-1", actor="w",
            ),
        )
        assert len(stock_store.locks) == 0

    def test_opposing_multi_item_transfers_do_not_deadlock(self, coordinator, stock_store):
        def move(i):
            first, second = ("A", "B") if i % 2 else ("B", "A")
            request = TransferRequest("warehouse", "MU001", (
                TransferLineRequest(first, 1),
                TransferLineRequest(second, 1),
            ))
            return coordinator.transfer(request, "w")

        outcomes = _run(40, move)
        assert all(status == "ok" for status, _ in outcomes)
        for item_id in ("A", "B"):
            item = stock_store.get_item(item_id)
            assert item.warehouse_quantity == 60
            assert total_quantity(item) == 100

    def test_removals_and_returns_race(self, coordinator, stock_store, units):
        coordinator.transfer_item("A", "warehouse", "MU001", 40, "INV-1", actor="setup")
        removals = RemovalCoordinator(stock_store, units)

        def work(i):
            if i % 2:
                return removals.remove_from_unit("A", "MU001", "INV-1", 1)
            return coordinator.transfer_item("A", "MU001", "warehouse", 1, actor="w")

        outcomes = _run(40, work)
        assert all(status == "ok" for status, _ in outcomes)
        item = stock_store.get_item("A")
        # 20 consumed, 20 returned
        assert item.warehouse_quantity == 80
        assert item.mobile_allocations == ()


class TestSnapshotReads:

    def test_readers_never_see_partial_transfer(self, coordinator, stock_store):
        stop = Event()
        violations = []

        def reader():
            while not stop.is_set():
                snapshot = stock_store.snapshot()
                totals = sum(total_quantity(item) for item in snapshot.items.values())
                if totals != 200:
                    violations.append(totals)
                sleep(0.001)

        def writer(i):
            source, dest = ("warehouse", "MU002") if i % 3 else ("MU002", "warehouse")
            request = TransferRequest(source, dest, (
                TransferLineRequest("A", 1),
                TransferLineRequest("B", 1),
            ))
            try:
                coordinator.transfer(request, "w")
            except InsufficientStockError:
                pass

        with ThreadPoolExecutor(max_workers=4) as readers:
            futures = [readers.submit(reader) for _ in range(4)]
            _run(60, writer)
            stop.set()
            for future in futures:
                future.result()

        assert violations == []


class TestCatalogContention:

    def test_duplicate_sku_race_has_one_winner(self, stock_store):
        catalog = InventoryCatalog(stock_store)
        outcomes = _run(20, lambda i: catalog.add_item(ItemSpec(sku="SKU-NEW", name=f"n{i}")))

        winners = [r for status, r in outcomes if status == "ok"]
        losers = [r for status, r in outcomes if status == "err"]
        assert len(winners) == 1
        assert all(isinstance(e, ValidationError) for e in losers)
        assert stock_store.find_by_sku("SKU-NEW").id == winners[0].id
