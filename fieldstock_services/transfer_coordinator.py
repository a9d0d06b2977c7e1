"""
fieldstock_services.transfer_coordinator -- Atomic stock transfers.

Responsibility:
    Move stock between the warehouse and mobile units (or between units)
    and write the TransferRecord. Planning is delegated to the pure
    ``fieldstock_engines.transfer.plan_transfer``; this module supplies the
    locks, the clock, the record id and the commit.

Architecture position:
    Services -- stateful orchestration over engines + store.

Invariants enforced:
    - All-or-nothing: the plan is computed on locked snapshots and only
      committed if every line passed. A rejected transfer writes nothing and
      consumes no record number.
    - Exactly one TransferRecord per committed transfer, covering all lines.
    - Per-item serialization via the store's unit of work.

Failure modes:
    - Every planning error (InvalidTransferError, InvalidQuantityError,
      ValidationError, InactiveUnitError, NotFoundError,
      InsufficientStockError) is logged at WARNING with its code and
      re-raised unchanged.

Usage:
    coordinator = TransferCoordinator(store, config.unit_registry())
    result = coordinator.transfer_item(
        "1", "warehouse", "MU001", 6, invoice_number="INV-1", actor="dispatch",
    )
    result.record.id  # "TR001"
"""

from __future__ import annotations

from fieldstock_config.schema import TransferConfig
from fieldstock_engines.transfer import plan_transfer, validate_request_shape
from fieldstock_kernel.domain.clock import Clock, SystemClock
from fieldstock_kernel.domain.dtos import (
    TransferLineRequest,
    TransferRecord,
    TransferRequest,
    TransferResult,
)
from fieldstock_kernel.domain.units import UnitRegistry
from fieldstock_kernel.exceptions import FieldStockError, ValidationError
from fieldstock_kernel.logging_config import LogContext, get_logger
from fieldstock_services.store import InventoryStore

logger = get_logger("services.transfer")


class TransferCoordinator:
    """
    Executes transfer requests against an ``InventoryStore``.

    Contract:
        Receives store, unit registry, clock and transfer settings via
        constructor injection. ``transfer`` returns a ``TransferResult``
        holding the committed record and the updated item snapshots.
    """

    def __init__(
        self,
        store: InventoryStore,
        units: UnitRegistry,
        clock: Clock | None = None,
        config: TransferConfig | None = None,
    ):
        self._store = store
        self._units = units
        self._clock = clock or SystemClock()
        self._config = config or TransferConfig()

    def transfer(self, request: TransferRequest, actor: str) -> TransferResult:
        """Execute ``request`` on behalf of ``actor``."""
        with LogContext.bind(actor_id=actor):
            try:
                if not actor or not actor.strip():
                    raise ValidationError("Transfers require an actor", field="actor")
                validate_request_shape(request)

                with self._store.unit_of_work(request.item_ids) as uow:
                    plan = plan_transfer(
                        request=request,
                        items=uow.items,
                        units=self._units,
                        drain_order=self._config.lot_drain_order,
                    )
                    for item in plan.items:
                        uow.put(item)

                    timestamp = self._clock.now()

                    def build_record(sequence: int) -> TransferRecord:
                        return TransferRecord(
                            id=self._config.format_id(sequence),
                            timestamp=timestamp,
                            source_location=request.source_location,
                            destination_location=request.destination_location,
                            items=plan.lines,
                            performed_by=actor,
                        )

                    uow.append_transfer(build_record)
            except FieldStockError as exc:
                logger.warning("transfer_rejected", extra={
                    "error_code": exc.code,
                    "source_location": request.source_location,
                    "destination_location": request.destination_location,
                    "line_count": len(request.items),
                    "detail": str(exc),
                })
                raise

            record = uow.records[0]
            with LogContext.bind(transfer_id=record.id):
                logger.info("transfer_committed", extra={
                    "source_location": record.source_location,
                    "destination_location": record.destination_location,
                    "line_count": len(record.items),
                    "total_quantity": record.total_quantity,
                })
        return TransferResult(record=record, items=plan.items)

    def transfer_item(
        self,
        item_id: str,
        source_location: str,
        destination_location: str,
        quantity: int,
        invoice_number: str | None = None,
        *,
        actor: str,
    ) -> TransferResult:
        """Single-line convenience form of ``transfer``."""
        request = TransferRequest(
            source_location=source_location,
            destination_location=destination_location,
            items=(TransferLineRequest(item_id, quantity, invoice_number),),
        )
        return self.transfer(request, actor)
