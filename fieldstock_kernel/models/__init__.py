"""ORM models for the field stock kernel."""

from fieldstock_kernel.models.inventory import InventoryItemModel, InventoryLotModel
from fieldstock_kernel.models.transfer import TransferRecordLineModel, TransferRecordModel

__all__ = [
    "InventoryItemModel",
    "InventoryLotModel",
    "TransferRecordModel",
    "TransferRecordLineModel",
]
