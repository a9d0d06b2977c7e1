"""
SqlInventoryStore -- SQLAlchemy-backed implementation of InventoryStore.

Responsibility:
    Persist items, lots and the transfer history in the tables declared in
    ``fieldstock_kernel.models`` while honouring the same unit-of-work
    contract as the in-memory store.

Architecture position:
    Services -- the only module that converts between ORM rows and frozen
    domain objects. Engines and coordinators never see a row.

Invariants enforced:
    - One database transaction per unit of work (``transactional``):
      staged changes and appended records commit together or not at all.
    - Units of work in one process hold the same item and catalog locks as
      the in-memory store (``ItemLockManager``). Item rows are also read
      ``SELECT ... FOR UPDATE`` in sorted id order, so on PostgreSQL writers
      in other processes serialize on the row locks too.
    - On SQLite every session of this store runs under one connection lock.
      SQLite ignores FOR UPDATE, and in-memory databases share a single
      connection whose transaction any session could commit or roll back.
    - Transfer rows are append-only; the ORM immutability listeners are
      registered on construction.

Failure modes:
    - sqlalchemy.exc.IntegrityError if two PostgreSQL transactions race for
      the same record sequence; the losing transaction is rolled back.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import threading
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import UTC
from types import MappingProxyType

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from fieldstock_kernel.db.engine import transactional
from fieldstock_kernel.db.immutability import register_immutability_listeners
from fieldstock_kernel.domain.dtos import TransferLine, TransferRecord
from fieldstock_kernel.domain.inventory import InventoryItem, Lot
from fieldstock_kernel.logging_config import get_logger
from fieldstock_kernel.models.inventory import InventoryItemModel, InventoryLotModel
from fieldstock_kernel.models.transfer import TransferRecordLineModel, TransferRecordModel
from fieldstock_services.locking import ItemLockManager
from fieldstock_services.store import InventorySnapshot, InventoryStore, UnitOfWork

logger = get_logger("services.sql_store")


# ----------------------------------------------------------------------
# Row <-> domain conversion
# ----------------------------------------------------------------------


def item_from_row(row: InventoryItemModel) -> InventoryItem:
    return InventoryItem(
        id=row.id,
        sku=row.sku,
        name=row.name,
        category=row.category,
        unit_price=row.unit_price,
        min_stock=row.min_stock,
        warehouse_quantity=row.warehouse_quantity,
        mobile_allocations=tuple(
            Lot(unit_id=lot.unit_id, quantity=lot.quantity, invoice_number=lot.invoice_number)
            for lot in row.lots
        ),
        description=row.description,
        supplier=row.supplier,
    )


def _lot_rows(item: InventoryItem) -> list[InventoryLotModel]:
    return [
        InventoryLotModel(
            unit_id=lot.unit_id,
            invoice_number=lot.invoice_number,
            quantity=lot.quantity,
            position=position,
        )
        for position, lot in enumerate(item.mobile_allocations)
    ]


def _write_item(row: InventoryItemModel, item: InventoryItem) -> None:
    row.sku = item.sku
    row.name = item.name
    row.category = item.category
    row.unit_price = item.unit_price
    row.min_stock = item.min_stock
    row.warehouse_quantity = item.warehouse_quantity
    row.description = item.description
    row.supplier = item.supplier
    row.lots = _lot_rows(item)


def record_from_row(row: TransferRecordModel) -> TransferRecord:
    timestamp = row.timestamp
    # SQLite drops the offset on round trip; stored values are always UTC.
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return TransferRecord(
        id=row.id,
        timestamp=timestamp,
        source_location=row.source_location,
        destination_location=row.destination_location,
        items=tuple(
            TransferLine(
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                invoice_number=line.invoice_number,
            )
            for line in row.lines
        ),
        performed_by=row.performed_by,
    )


def record_to_row(record: TransferRecord, sequence: int) -> TransferRecordModel:
    timestamp = record.timestamp
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(UTC)
    return TransferRecordModel(
        id=record.id,
        sequence=sequence,
        timestamp=timestamp,
        source_location=record.source_location,
        destination_location=record.destination_location,
        performed_by=record.performed_by,
        lines=[
            TransferRecordLineModel(
                line_no=line_no,
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                invoice_number=line.invoice_number,
            )
            for line_no, line in enumerate(record.items, start=1)
        ],
    )


def _items_query():
    return (
        select(InventoryItemModel)
        .options(selectinload(InventoryItemModel.lots))
        .order_by(InventoryItemModel.catalog_position)
    )


def _records_query():
    return (
        select(TransferRecordModel)
        .options(selectinload(TransferRecordModel.lines))
        .order_by(TransferRecordModel.sequence)
    )


class SqlInventoryStore(InventoryStore):
    """
    Inventory store over a SQLAlchemy session factory.

    The factory should be built with ``expire_on_commit=False`` (as
    ``fieldstock_kernel.db.engine`` does); rows are converted to domain
    objects before the session closes either way.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._factory = session_factory
        self.locks = ItemLockManager()
        with session_factory() as session:
            self.dialect = session.get_bind().dialect.name
        self._connection_lock: AbstractContextManager = (
            threading.RLock() if self.dialect == "sqlite" else nullcontext()
        )
        register_immutability_listeners()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._connection_lock, transactional(self._factory) as session:
            yield session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> InventorySnapshot:
        with self._session() as session:
            items = {
                row.id: item_from_row(row)
                for row in session.scalars(_items_query()).all()
            }
            transfers = tuple(
                record_from_row(row) for row in session.scalars(_records_query()).all()
            )
        return InventorySnapshot(items=MappingProxyType(items), transfers=transfers)

    def get_item(self, item_id: str) -> InventoryItem | None:
        with self._session() as session:
            row = session.get(InventoryItemModel, item_id)
            return item_from_row(row) if row is not None else None

    def find_by_sku(self, sku: str) -> InventoryItem | None:
        with self._session() as session:
            return self._find_by_sku(session, sku)

    @staticmethod
    def _find_by_sku(session: Session, sku: str) -> InventoryItem | None:
        row = session.scalars(
            select(InventoryItemModel).where(InventoryItemModel.sku == sku)
        ).first()
        return item_from_row(row) if row is not None else None

    def list_transfers(self) -> list[TransferRecord]:
        with self._session() as session:
            return [record_from_row(row) for row in session.scalars(_records_query()).all()]

    def get_transfer(self, record_id: str) -> TransferRecord | None:
        with self._session() as session:
            row = session.get(TransferRecordModel, record_id)
            return record_from_row(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @contextmanager
    def unit_of_work(
        self,
        item_ids: Iterable[str],
        *,
        catalog: bool = False,
    ) -> Iterator[UnitOfWork]:
        with self.locks.hold(item_ids, catalog=catalog) as ids, self._session() as session:
            rows: dict[str, InventoryItemModel] = {}
            if ids:
                locked = session.scalars(
                    select(InventoryItemModel)
                    .where(InventoryItemModel.id.in_(ids))
                    .order_by(InventoryItemModel.id)
                    .with_for_update()
                ).all()
                rows = {row.id: row for row in locked}

            uow = UnitOfWork(
                items=MappingProxyType({i: item_from_row(r) for i, r in rows.items()}),
                locked_ids=frozenset(ids),
                sku_lookup=lambda sku: self._find_by_sku(session, sku),
            )
            yield uow
            self._apply(session, rows, uow)

        logger.debug("unit_of_work_committed", extra={
            "items_written": len(uow.staged),
            "records_appended": len(uow.records),
        })

    def _apply(
        self,
        session: Session,
        rows: dict[str, InventoryItemModel],
        uow: UnitOfWork,
    ) -> None:
        next_position = None
        for item_id, item in uow.staged.items():
            row = rows.get(item_id)
            if item is None:
                if row is not None:
                    session.delete(row)
            elif row is None:
                if next_position is None:
                    next_position = (
                        session.scalar(select(func.max(InventoryItemModel.catalog_position)))
                        or 0
                    ) + 1
                row = InventoryItemModel(id=item.id, catalog_position=next_position)
                next_position += 1
                _write_item(row, item)
                session.add(row)
            else:
                _write_item(row, item)
        session.flush()

        if uow.pending_transfers:
            last = session.scalar(select(func.max(TransferRecordModel.sequence))) or 0
            for offset, builder in enumerate(uow.pending_transfers, start=1):
                sequence = last + offset
                record = builder(sequence)
                session.add(record_to_row(record, sequence))
                uow.records.append(record)
            session.flush()
