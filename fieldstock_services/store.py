"""
fieldstock_services.store -- Inventory state ownership and units of work.

Responsibility:
    Own the item collection and the transfer history, and give writers a
    ``UnitOfWork`` that stages changes against locked items and commits them
    together. ``InMemoryInventoryStore`` is the reference implementation;
    ``fieldstock_services.sql_store.SqlInventoryStore`` honours the same
    contract on a database.

Architecture position:
    Services -- stateful layer. Catalog and coordinators receive a store by
    constructor injection and never reach for global state.

Invariants enforced:
    - Per-item serialization: a unit of work holds the lock of every item it
      names for its whole duration (``ItemLockManager``). Operations that
      create items or change SKUs also hold the catalog lock.
    - Atomic commit: staged items, deletions and transfer records are
      applied under one commit lock. Nothing is applied if the body raises.
    - Consistent reads: readers copy state under the commit lock and so
      never observe a half-applied transfer.
    - Transfer sequences are assigned at commit time, so a rejected
      transfer never consumes a record number.

Failure modes:
    - NotFoundError from ``UnitOfWork.require`` for unknown ids.
    - RuntimeError if a unit of work stages an item it did not lock.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType

from fieldstock_kernel.domain.dtos import TransferRecord
from fieldstock_kernel.domain.inventory import InventoryItem
from fieldstock_kernel.exceptions import NotFoundError
from fieldstock_kernel.logging_config import get_logger
from fieldstock_services.locking import ItemLockManager

logger = get_logger("services.store")

RecordBuilder = Callable[[int], TransferRecord]


@dataclass(frozen=True)
class InventorySnapshot:
    """A consistent read of every item and the full transfer history."""

    items: Mapping[str, InventoryItem]
    transfers: tuple[TransferRecord, ...]

    def item_list(self) -> list[InventoryItem]:
        return list(self.items.values())


@dataclass
class UnitOfWork:
    """
    Staged changes against a set of locked items.

    Contract:
        ``items`` holds the committed state of every locked item that
        exists. ``put``/``delete`` stage changes; ``append_transfer`` stages
        a record builder that receives its sequence number at commit.
        After a successful commit ``records`` holds the built records.
    """

    items: Mapping[str, InventoryItem]
    locked_ids: frozenset[str]
    sku_lookup: Callable[[str], InventoryItem | None]
    staged: dict[str, InventoryItem | None] = field(default_factory=dict)
    pending_transfers: list[RecordBuilder] = field(default_factory=list)
    records: list[TransferRecord] = field(default_factory=list)

    def get(self, item_id: str) -> InventoryItem | None:
        if item_id in self.staged:
            return self.staged[item_id]
        return self.items.get(item_id)

    def require(self, item_id: str) -> InventoryItem:
        item = self.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return item

    def find_by_sku(self, sku: str) -> InventoryItem | None:
        for item in self.staged.values():
            if item is not None and item.sku == sku:
                return item
        found = self.sku_lookup(sku)
        if found is not None and self.staged.get(found.id, found) is None:
            return None
        return found

    def _check_locked(self, item_id: str) -> None:
        if item_id not in self.locked_ids:
            raise RuntimeError(f"Item {item_id} is not locked by this unit of work")

    def put(self, item: InventoryItem) -> None:
        self._check_locked(item.id)
        self.staged[item.id] = item

    def delete(self, item_id: str) -> None:
        self._check_locked(item_id)
        self.staged[item_id] = None

    def append_transfer(self, builder: RecordBuilder) -> None:
        self.pending_transfers.append(builder)


class InventoryStore(ABC):
    """
    Abstract owner of inventory state.

    Contract:
        Read methods return immutable domain objects. ``unit_of_work`` is
        the only write path.
    """

    @abstractmethod
    def snapshot(self) -> InventorySnapshot:
        ...

    @abstractmethod
    def get_item(self, item_id: str) -> InventoryItem | None:
        ...

    @abstractmethod
    def find_by_sku(self, sku: str) -> InventoryItem | None:
        ...

    @abstractmethod
    def list_transfers(self) -> list[TransferRecord]:
        """All records in creation order."""
        ...

    @abstractmethod
    def get_transfer(self, record_id: str) -> TransferRecord | None:
        ...

    @abstractmethod
    def unit_of_work(
        self,
        item_ids: Iterable[str],
        *,
        catalog: bool = False,
    ) -> Iterator[UnitOfWork]:
        """Context manager locking ``item_ids`` and committing on clean exit."""
        ...

    def list_items(self) -> list[InventoryItem]:
        return self.snapshot().item_list()


class InMemoryInventoryStore(InventoryStore):
    """
    Thread-safe in-process store.

    Guarantees:
        - Item dict preserves insertion order (catalog order).
        - Readers never block on item locks, only briefly on the commit lock.
    """

    def __init__(
        self,
        items: Iterable[InventoryItem] = (),
        transfers: Iterable[TransferRecord] = (),
    ):
        self._items: dict[str, InventoryItem] = {}
        for item in items:
            self._items[item.id] = item
        self._transfers: list[TransferRecord] = list(transfers)

        self._commit_lock = threading.Lock()
        self.locks = ItemLockManager()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> InventorySnapshot:
        with self._commit_lock:
            return InventorySnapshot(
                items=MappingProxyType(dict(self._items)),
                transfers=tuple(self._transfers),
            )

    def get_item(self, item_id: str) -> InventoryItem | None:
        with self._commit_lock:
            return self._items.get(item_id)

    def find_by_sku(self, sku: str) -> InventoryItem | None:
        with self._commit_lock:
            for item in self._items.values():
                if item.sku == sku:
                    return item
        return None

    def list_transfers(self) -> list[TransferRecord]:
        with self._commit_lock:
            return list(self._transfers)

    def get_transfer(self, record_id: str) -> TransferRecord | None:
        with self._commit_lock:
            for record in self._transfers:
                if record.id == record_id:
                    return record
        return None

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
        with self.locks.hold(item_ids, catalog=catalog) as ids:
            with self._commit_lock:
                current = {i: self._items[i] for i in ids if i in self._items}

            uow = UnitOfWork(
                items=MappingProxyType(current),
                locked_ids=frozenset(ids),
                sku_lookup=self.find_by_sku,
            )
            yield uow
            self._commit(uow)

    def _commit(self, uow: UnitOfWork) -> None:
        with self._commit_lock:
            for item_id, item in uow.staged.items():
                if item is None:
                    self._items.pop(item_id, None)
                else:
                    self._items[item_id] = item
            for builder in uow.pending_transfers:
                record = builder(len(self._transfers) + 1)
                self._transfers.append(record)
                uow.records.append(record)

        logger.debug("unit_of_work_committed", extra={
            "items_written": len(uow.staged),
            "records_appended": len(uow.records),
        })
