"""
fieldstock_services.catalog -- Item master data management.

Responsibility:
    Add, update, delete and look up inventory items. The only write path for
    item attributes; lots are never touched here.

Architecture position:
    Services -- stateful orchestration over the store.

Invariants enforced:
    - SKU uniqueness (case-sensitive exact match), checked under the
      catalog lock so two concurrent adds cannot both win.
    - Non-negative numerics and non-blank sku/name, via
      ``InventoryItem.__post_init__``.
    - Items with deployed lots cannot be deleted.
    - ``id`` and ``mobile_allocations`` are not updatable.

Failure modes:
    - ValidationError: duplicate SKU or id, blank text, negative numbers,
      unknown or forbidden update fields.
    - NotFoundError: unknown item id.
    - ConflictError: deleting an item that still has lots on units.

Usage:
    catalog = InventoryCatalog(store)
    item = catalog.add_item(ItemSpec(sku="HVAC-FLT-001", name="Air Filter",
                                     unit_price=Decimal("24.99"), min_stock=50,
                                     initial_quantity=150))
    catalog.update_item(item.id, min_stock=60)
"""

from __future__ import annotations

import dataclasses
from typing import Any
from uuid import uuid4

from fieldstock_engines.ledger import units_holding
from fieldstock_kernel.domain.dtos import ItemSpec
from fieldstock_kernel.domain.inventory import InventoryItem
from fieldstock_kernel.exceptions import (
    ConflictError,
    FieldStockError,
    NotFoundError,
    ValidationError,
)
from fieldstock_kernel.logging_config import LogContext, get_logger
from fieldstock_services.store import InventoryStore

logger = get_logger("services.catalog")

UPDATABLE_FIELDS = frozenset({
    "sku",
    "name",
    "category",
    "unit_price",
    "min_stock",
    "warehouse_quantity",
    "description",
    "supplier",
})


class InventoryCatalog:
    """
    Item master data over an ``InventoryStore``.

    Contract:
        Receives the store via constructor injection. Returns frozen
        ``InventoryItem`` snapshots; callers never hold live state.
    """

    def __init__(self, store: InventoryStore):
        self._store = store

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_item(self, spec: ItemSpec) -> InventoryItem:
        """
        Create an item with ``spec.initial_quantity`` in the warehouse.

        Raises:
            ValidationError: duplicate SKU or id, or invalid field values.
        """
        item_id = spec.id or str(uuid4())
        try:
            with self._store.unit_of_work([item_id], catalog=True) as uow:
                if uow.get(item_id) is not None:
                    raise ValidationError(f"Item id already exists: {item_id}", field="id")
                if uow.find_by_sku(spec.sku) is not None:
                    raise ValidationError(f"SKU already exists: {spec.sku}", field="sku")

                item = InventoryItem(
                    id=item_id,
                    sku=spec.sku,
                    name=spec.name,
                    category=spec.category,
                    unit_price=spec.unit_price,
                    min_stock=spec.min_stock,
                    warehouse_quantity=spec.initial_quantity,
                    description=spec.description,
                    supplier=spec.supplier,
                )
                uow.put(item)
        except FieldStockError as exc:
            logger.warning("item_add_rejected", extra={
                "error_code": exc.code,
                "sku": spec.sku,
                "detail": str(exc),
            })
            raise

        logger.info("item_added", extra={
            "item_id": item.id,
            "sku": item.sku,
            "warehouse_quantity": item.warehouse_quantity,
        })
        return item

    def update_item(self, item_id: str, **changes: Any) -> InventoryItem:
        """
        Merge ``changes`` into an existing item.

        Setting ``warehouse_quantity`` here is an administrative stock
        correction and is logged at WARNING.

        Raises:
            NotFoundError: unknown item.
            ValidationError: unknown/forbidden fields, invalid values, SKU
                collision.
        """
        with LogContext.bind(item_id=item_id):
            try:
                unknown = set(changes) - UPDATABLE_FIELDS
                if unknown:
                    raise ValidationError(
                        f"Cannot update fields: {', '.join(sorted(unknown))}",
                        field=sorted(unknown)[0],
                    )

                with self._store.unit_of_work([item_id], catalog="sku" in changes) as uow:
                    current = uow.require(item_id)
                    if "sku" in changes and changes["sku"] != current.sku:
                        clash = uow.find_by_sku(changes["sku"])
                        if clash is not None and clash.id != item_id:
                            raise ValidationError(
                                f"SKU already exists: {changes['sku']}", field="sku"
                            )
                    updated = dataclasses.replace(current, **changes)
                    uow.put(updated)
            except FieldStockError as exc:
                logger.warning("item_update_rejected", extra={
                    "error_code": exc.code,
                    "fields": sorted(changes),
                    "detail": str(exc),
                })
                raise

            if (
                "warehouse_quantity" in changes
                and updated.warehouse_quantity != current.warehouse_quantity
            ):
                logger.warning("warehouse_quantity_overwritten", extra={
                    "previous_quantity": current.warehouse_quantity,
                    "new_quantity": updated.warehouse_quantity,
                })
            logger.info("item_updated", extra={"fields": sorted(changes)})
        return updated

    def delete_item(self, item_id: str) -> InventoryItem:
        """
        Remove an item from the catalog and return its last snapshot.

        Raises:
            NotFoundError: unknown item.
            ConflictError: the item still has lots on mobile units.
        """
        with LogContext.bind(item_id=item_id):
            try:
                with self._store.unit_of_work([item_id]) as uow:
                    item = uow.require(item_id)
                    if item.has_allocations:
                        raise ConflictError(
                            item_id,
                            "stock is still deployed on units "
                            + ", ".join(units_holding(item)),
                        )
                    uow.delete(item_id)
            except FieldStockError as exc:
                logger.warning("item_delete_rejected", extra={
                    "error_code": exc.code,
                    "detail": str(exc),
                })
                raise

            logger.info("item_deleted", extra={"sku": item.sku})
        return item

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_item(self, item_id: str) -> InventoryItem:
        """Raises NotFoundError for unknown ids."""
        item = self._store.get_item(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return item

    def find_by_sku(self, sku: str) -> InventoryItem | None:
        return self._store.find_by_sku(sku)

    def list_items(self) -> list[InventoryItem]:
        return self._store.list_items()

    def search(self, query: str) -> list[InventoryItem]:
        """Case-insensitive substring match over name, SKU and category."""
        needle = query.strip().lower()
        items = self._store.list_items()
        if not needle:
            return items
        return [
            item for item in items
            if needle in item.name.lower()
            or needle in item.sku.lower()
            or needle in item.category.lower()
        ]
