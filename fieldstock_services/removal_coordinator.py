"""
fieldstock_services.removal_coordinator -- Consumption of stock on units.

Responsibility:
    Remove stock from a lot on a mobile unit when parts are used on a job.
    Planning is delegated to ``fieldstock_engines.removal.plan_removal``.

Invariants enforced:
    - Only the targeted lot changes; warehouse quantity never does.
    - No TransferRecord is written.
    - Per-item serialization via the store's unit of work.

Failure modes:
    - InvalidQuantityError, NotFoundError: logged at WARNING and re-raised.
"""

from __future__ import annotations

from fieldstock_engines.removal import plan_removal
from fieldstock_kernel.domain.dtos import RemovalRequest, RemovalResult
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.exceptions import FieldStockError
from fieldstock_kernel.logging_config import LogContext, get_logger
from fieldstock_services.store import InventoryStore

logger = get_logger("services.removal")


class RemovalCoordinator:
    """Consumes lot stock through an ``InventoryStore``."""

    def __init__(self, store: InventoryStore, units: UnitRegistry):
        self._store = store
        self._units = units

    def remove_from_unit(
        self,
        item_id: str,
        unit_id: str,
        invoice_number: str | None,
        requested_quantity: int,
        *,
        actor: str | None = None,
    ) -> RemovalResult:
        """
        Remove ``requested_quantity`` from the matching lot.

        A request at or above the lot quantity deletes the lot and reports
        ``full=True``.
        """
        with LogContext.bind(actor_id=actor, item_id=item_id, unit_id=unit_id):
            try:
                with self._store.unit_of_work([item_id]) as uow:
                    new_item, result = plan_removal(
                        item=uow.require(item_id),
                        unit_id=unit_id,
                        invoice_number=invoice_number,
                        requested_quantity=requested_quantity,
                        units=self._units,
                    )
                    uow.put(new_item)
            except FieldStockError as exc:
                logger.warning("removal_rejected", extra={
                    "error_code": exc.code,
                    "invoice_number": invoice_number,
                    "requested_quantity": requested_quantity,
                    "detail": str(exc),
                })
                raise

            logger.info("lot_removed", extra={
                "invoice_number": result.invoice_number,
                "removed_quantity": result.removed_quantity,
                "remaining_quantity": result.remaining_quantity,
                "full": result.full,
            })
        return result

    def remove(self, request: RemovalRequest, actor: str | None = None) -> RemovalResult:
        return self.remove_from_unit(
            request.item_id,
            request.unit_id,
            request.invoice_number,
            request.quantity,
            actor=actor,
        )
