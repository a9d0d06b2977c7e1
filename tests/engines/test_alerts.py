"""Tests for alert evaluation (fieldstock_engines.alerts)."""

from decimal import Decimal

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
from fieldstock_kernel.domain.inventory import Lot


class TestThresholds:

    def test_low_stock_is_strictly_below_min(self, item_factory):
        assert is_low_stock(item_factory(warehouse_quantity=4, min_stock=5))
        assert not is_low_stock(item_factory(warehouse_quantity=5, min_stock=5))

    def test_out_of_stock(self, item_factory):
        assert is_out_of_stock(item_factory(warehouse_quantity=0))
        assert not is_out_of_stock(item_factory(warehouse_quantity=1))

    def test_deployed_lots_do_not_lift_low_stock(self, item_factory):
        item = item_factory(warehouse_quantity=1, min_stock=5, lots=[Lot("MU001", 50, "INV-1")])
        assert is_low_stock(item)

    def test_zero_min_stock_never_low(self, item_factory):
        assert not is_low_stock(item_factory(warehouse_quantity=0, min_stock=0))


class TestValuation:

    def test_warehouse_only(self, item_factory):
        items = [
            item_factory("1", "A", warehouse_quantity=10, unit_price="24.99",
                         lots=[Lot("MU001", 100, None)]),
            item_factory("2", "B", warehouse_quantity=3, unit_price="0.335"),
        ]
        # 249.90 + 1.005 -> 250.905 -> 250.91 (half up)
        assert total_valuation(items) == Decimal("250.91")

    def test_empty(self):
        assert total_valuation([]) == Decimal("0.00")


class TestCountsAndLists:

    def test_counts_and_tabs(self, item_factory):
        low = item_factory("1", "A", warehouse_quantity=4, min_stock=5)
        out = item_factory("2", "B", warehouse_quantity=0, min_stock=10)
        fine = item_factory("3", "C", warehouse_quantity=50, min_stock=10)
        items = [low, out, fine]

        assert low_stock_count(items) == 2
        assert out_of_stock_count(items) == 1
        assert low_stock_items(items) == [low]
        assert out_of_stock_items(items) == [out]

    def test_summarize_accepts_generators(self, item_factory):
        items = [
            item_factory("1", "A", warehouse_quantity=4, min_stock=5, unit_price="2.50"),
            item_factory("2", "B", warehouse_quantity=0, min_stock=1),
        ]
        summary = summarize(item for item in items)
        assert summary == AlertSummary(
            item_count=2,
            low_stock_count=2,
            out_of_stock_count=1,
            total_valuation=Decimal("10.00"),
        )
