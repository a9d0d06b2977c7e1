"""Read-side queries over the append-only transfer history."""

from __future__ import annotations

from fieldstock_config.schema import WarehouseConfig
from fieldstock_kernel.domain.dtos import TransferRecord
from fieldstock_kernel.domain.inventory import is_warehouse
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.exceptions import NotFoundError
from fieldstock_services.store import InventoryStore


def location_name(
    location: str,
    units: UnitRegistry,
    warehouse_label: str = WarehouseConfig.label,
) -> str:
    """Display name for a location id; unknown ids are returned as-is."""
    if is_warehouse(location):
        return warehouse_label
    if location in units:
        return units.get(location).display_name
    return location


class TransferHistory:
    """Newest-first views of committed TransferRecords."""

    def __init__(
        self,
        store: InventoryStore,
        units: UnitRegistry,
        warehouse: WarehouseConfig | None = None,
    ):
        self._store = store
        self._units = units
        self._warehouse = warehouse or WarehouseConfig()

    def list(self, unit_id: str | None = None) -> list[TransferRecord]:
        records = reversed(self._store.list_transfers())
        if unit_id is None:
            return list(records)
        return [record for record in records if record.involves(unit_id)]

    def get(self, record_id: str) -> TransferRecord:
        record = self._store.get_transfer(record_id)
        if record is None:
            raise NotFoundError("TransferRecord", record_id)
        return record

    def location_name(self, location: str) -> str:
        return location_name(location, self._units, self._warehouse.label)
