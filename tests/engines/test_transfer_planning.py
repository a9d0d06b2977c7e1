"""
Tests for pure transfer planning (fieldstock_engines.transfer).

Tests cover:
- Warehouse -> unit, unit -> warehouse, unit -> unit
- Rejection order: same location, empty list, blank item, bad quantity
- Unknown / inactive locations, unknown items
- Insufficient stock with shortfall, checked cumulatively across lines
- Drain order forwarded to the unit source
- Inputs never mutated
"""

import pytest

from fieldstock_engines.lots import LotDrainOrder
from fieldstock_engines.transfer import (
    apply_transfer_line,
    plan_transfer,
    validate_request_shape,
)
from fieldstock_kernel.domain.dtos import TransferLineRequest, TransferRequest
from fieldstock_kernel.domain.inventory import Lot
from fieldstock_kernel.exceptions import (
    InactiveUnitError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidTransferError,
    NotFoundError,
    ValidationError,
)


def _request(source, destination, *lines):
    return TransferRequest(
        source_location=source,
        destination_location=destination,
        items=tuple(TransferLineRequest(*line) for line in lines),
    )


@pytest.fixture
def items(item_factory):
    return {
        "1": item_factory("1", "HVAC-FLT-001", "Air Filter", warehouse_quantity=10),
        "2": item_factory(
            "2", "PLB-VLV-002", "Ball Valve", warehouse_quantity=40,
            lots=[Lot("MU001", 3, "INV-1"), Lot("MU001", 5, "INV-2")],
        ),
    }


class TestHappyPaths:

    def test_warehouse_to_unit(self, items, units):
        plan = plan_transfer(
            request=_request("warehouse", "MU001", ("1", 6, "INV-1")),
            items=items, units=units,
        )
        (item,) = plan.items
        assert item.warehouse_quantity == 4
        assert item.mobile_allocations == (Lot("MU001", 6, "INV-1"),)
        assert plan.lines[0].item_name == "Air Filter"
        assert plan.lines[0].invoice_number == "INV-1"

    def test_unit_to_warehouse_drains_fifo(self, items, units):
        plan = plan_transfer(
            request=_request("MU001", "warehouse", ("2", 4)),
            items=items, units=units,
        )
        (item,) = plan.items
        assert item.warehouse_quantity == 44
        assert item.mobile_allocations == (Lot("MU001", 4, "INV-2"),)

    def test_unit_to_unit_with_lifo(self, items, units):
        plan = plan_transfer(
            request=_request("MU001", "MU002", ("2", 6, "INV-7")),
            items=items, units=units, drain_order=LotDrainOrder.LIFO,
        )
        (item,) = plan.items
        assert item.warehouse_quantity == 40
        assert item.mobile_allocations == (
            Lot("MU001", 2, "INV-1"),
            Lot("MU002", 6, "INV-7"),
        )

    def test_maintenance_unit_can_receive(self, items, units):
        plan = plan_transfer(
            request=_request("warehouse", "MU003", ("1", 1)),
            items=items, units=units,
        )
        assert plan.items[0].mobile_allocations == (Lot("MU003", 1, None),)

    def test_inactive_unit_can_send_back(self, item_factory, units):
        parked = {"1": item_factory(lots=[Lot("MU004", 2, None)])}
        plan = plan_transfer(
            request=_request("MU004", "warehouse", ("1", 2)),
            items=parked, units=units,
        )
        assert plan.items[0].mobile_allocations == ()

    def test_multi_line_returns_items_in_request_order(self, items, units):
        plan = plan_transfer(
            request=_request("warehouse", "MU002", ("2", 1), ("1", 1), ("2", 1)),
            items=items, units=units,
        )
        assert [item.id for item in plan.items] == ["2", "1"]
        assert len(plan.lines) == 3
        assert plan.items[0].mobile_allocations[-1] == Lot("MU002", 2, None)

    def test_inputs_not_mutated(self, items, units):
        before = dict(items)
        plan_transfer(
            request=_request("warehouse", "MU001", ("1", 6)),
            items=items, units=units,
        )
        assert items == before


class TestShapeValidation:

    def test_same_location_checked_first(self):
        with pytest.raises(InvalidTransferError):
            validate_request_shape(_request("MU001", "MU001"))

    def test_empty_items(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request_shape(_request("warehouse", "MU001"))
        assert exc_info.value.field == "items"

    def test_blank_item_id(self):
        with pytest.raises(ValidationError):
            validate_request_shape(_request("warehouse", "MU001", ("", 1)))

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity(self, quantity):
        with pytest.raises(InvalidQuantityError) as exc_info:
            validate_request_shape(_request("warehouse", "MU001", ("1", quantity)))
        assert exc_info.value.quantity == quantity


class TestRejections:

    def test_unknown_source_unit(self, items, units):
        with pytest.raises(NotFoundError):
            plan_transfer(request=_request("MU999", "warehouse", ("1", 1)), items=items, units=units)

    def test_inactive_destination(self, items, units):
        with pytest.raises(InactiveUnitError) as exc_info:
            plan_transfer(request=_request("warehouse", "MU004", ("1", 1)), items=items, units=units)
        assert exc_info.value.unit_id == "MU004"
        assert isinstance(exc_info.value, ValidationError)

    def test_unknown_item(self, items, units):
        with pytest.raises(NotFoundError) as exc_info:
            plan_transfer(request=_request("warehouse", "MU001", ("42", 1)), items=items, units=units)
        assert exc_info.value.entity_id == "42"

    def test_insufficient_warehouse_stock(self, items, units):
        with pytest.raises(InsufficientStockError) as exc_info:
            plan_transfer(request=_request("warehouse", "MU001", ("1", 11)), items=items, units=units)
        err = exc_info.value
        assert (err.item_id, err.location, err.requested, err.available, err.shortfall) == (
            "1", "warehouse", 11, 10, 1,
        )

    def test_unit_availability_is_location_level(self, items, units):
        # 3 + 5 on MU001 across two invoices
        with pytest.raises(InsufficientStockError) as exc_info:
            plan_transfer(request=_request("MU001", "warehouse", ("2", 9)), items=items, units=units)
        assert exc_info.value.available == 8

    def test_duplicate_lines_checked_cumulatively(self, items, units):
        with pytest.raises(InsufficientStockError) as exc_info:
            plan_transfer(
                request=_request("warehouse", "MU001", ("1", 6), ("1", 6)),
                items=items, units=units,
            )
        assert exc_info.value.available == 4
        assert exc_info.value.requested == 6


def test_apply_transfer_line_merges_existing_lot(item_factory):
    item = item_factory(lots=[Lot("MU001", 2, "INV-1")])
    moved = apply_transfer_line(item, "warehouse", "MU001", 3, "INV-1")
    assert moved.mobile_allocations == (Lot("MU001", 5, "INV-1"),)
    assert moved.warehouse_quantity == 7


def test_plan_emits_engine_trace(items, units, captured_logs):
    plan_transfer(request=_request("warehouse", "MU001", ("1", 1)), items=items, units=units)
    traces = [r for r in captured_logs() if r["message"] == "ENGINE_TRACE"]
    assert traces and traces[0]["engine_name"] == "transfer"
    assert len(traces[0]["input_fingerprint"]) == 16
