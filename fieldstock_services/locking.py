"""
fieldstock_services.locking -- In-process item and catalog locks.

Responsibility:
    Serialize units of work that touch the same items. Both inventory stores
    hold these locks for the whole unit of work; the SQL store adds row
    locks on top where the database provides them.

Invariants enforced:
    - Item locks are acquired in sorted id order, after the catalog lock
      when one is requested. Two units of work can never wait on each other
      in a cycle.
    - An item lock exists only while some thread holds or waits for it.
      The table does not grow with every id ever named, including unknown
      ids from rejected requests and ids of deleted items.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field


@dataclass
class _ItemLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ItemLockManager:
    """Reference-counted per-item locks plus one catalog lock."""

    def __init__(self):
        self._guard = threading.Lock()
        self._catalog_lock = threading.Lock()
        self._locks: dict[str, _ItemLock] = {}

    def __len__(self) -> int:
        """Number of item locks currently held or awaited."""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, item_ids: Iterable[str], *, catalog: bool = False) -> Iterator[list[str]]:
        """Hold the locks of ``item_ids`` (and the catalog lock) for the block.

        Yields the distinct ids in acquisition order.
        """
        ids = sorted(set(item_ids))
        with ExitStack() as stack:
            if catalog:
                stack.enter_context(self._catalog_lock)
            for item_id in ids:
                stack.enter_context(self._item(item_id))
            yield ids

    @contextmanager
    def _item(self, item_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(item_id)
            if entry is None:
                entry = self._locks[item_id] = _ItemLock()
            entry.users += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[item_id]
