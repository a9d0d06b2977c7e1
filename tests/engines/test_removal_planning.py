"""Tests for pure removal planning (fieldstock_engines.removal)."""

import pytest

from fieldstock_engines.removal import plan_removal
from fieldstock_kernel.domain.inventory import Lot
from fieldstock_kernel.exceptions import InvalidQuantityError, NotFoundError


@pytest.fixture
def deployed(item_factory):
    return item_factory(
        warehouse_quantity=4,
        lots=[Lot("MU001", 6, "INV-1"), Lot("MU001", 2, None), Lot("MU002", 1, "INV-1")],
    )


def test_partial_removal(deployed, units):
    item, result = plan_removal(
        item=deployed, unit_id="MU001", invoice_number="INV-1",
        requested_quantity=2, units=units,
    )
    assert item.mobile_allocations[0] == Lot("MU001", 4, "INV-1")
    assert (result.removed_quantity, result.remaining_quantity, result.full) == (2, 4, False)


def test_full_removal_deletes_lot(deployed, units):
    item, result = plan_removal(
        item=deployed, unit_id="MU001", invoice_number="INV-1",
        requested_quantity=6, units=units,
    )
    assert Lot("MU001", 6, "INV-1") not in item.mobile_allocations
    assert result.full
    assert result.remaining_quantity == 0


def test_request_above_lot_is_capped(deployed, units):
    _, result = plan_removal(
        item=deployed, unit_id="MU001", invoice_number="INV-1",
        requested_quantity=100, units=units,
    )
    assert result.removed_quantity == 6


def test_omitted_invoice_takes_first_lot_on_unit(deployed, units):
    _, result = plan_removal(
        item=deployed, unit_id="MU001", invoice_number=None,
        requested_quantity=1, units=units,
    )
    assert result.invoice_number == "INV-1"


def test_warehouse_untouched(deployed, units):
    item, _ = plan_removal(
        item=deployed, unit_id="MU002", invoice_number="INV-1",
        requested_quantity=1, units=units,
    )
    assert item.warehouse_quantity == 4


@pytest.mark.parametrize("quantity", [0, -1])
def test_non_positive_quantity(deployed, units, quantity):
    with pytest.raises(InvalidQuantityError):
        plan_removal(
            item=deployed, unit_id="MU001", invoice_number="INV-1",
            requested_quantity=quantity, units=units,
        )


def test_unknown_unit(deployed, units):
    with pytest.raises(NotFoundError) as exc_info:
        plan_removal(
            item=deployed, unit_id="MU999", invoice_number=None,
            requested_quantity=1, units=units,
        )
    assert exc_info.value.entity_type == "MobileUnit"


def test_missing_lot(deployed, units):
    with pytest.raises(NotFoundError) as exc_info:
        plan_removal(
            item=deployed, unit_id="MU002", invoice_number="INV-2",
            requested_quantity=1, units=units,
        )
    assert exc_info.value.entity_type == "Lot"
