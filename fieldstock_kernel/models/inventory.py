"""
Module: fieldstock_kernel.models.inventory
Responsibility: ORM persistence for inventory items and the lots deployed to
    mobile units.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - SKU is unique (UNIQUE constraint).
    - warehouse_quantity, min_stock and unit_price are non-negative and lot
      quantity is positive (CHECK constraints backing the domain checks).
    - Lot allocation order is kept in ``position``; the relationship loads
      lots ordered by it.
    - ``catalog_position`` records insertion order so catalog listings are
      stable across backends.

Non-goals:
    - At most one lot per (item, unit, invoice) is enforced by the engine,
      not by a UNIQUE constraint: NULL invoice numbers never collide in SQL.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldstock_kernel.db.base import Base


class InventoryItemModel(Base):
    """One catalog item and its warehouse quantity."""

    __tablename__ = "inventory_items"

    __table_args__ = (
        CheckConstraint("warehouse_quantity >= 0", name="ck_item_warehouse_nonneg"),
        CheckConstraint("min_stock >= 0", name="ck_item_min_stock_nonneg"),
        CheckConstraint("unit_price >= 0", name="ck_item_price_nonneg"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    min_stock: Mapped[int] = mapped_column(default=0, nullable=False)
    warehouse_quantity: Mapped[int] = mapped_column(default=0, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    supplier: Mapped[str] = mapped_column(default="", nullable=False)
    catalog_position: Mapped[int] = mapped_column(nullable=False, index=True)

    lots: Mapped[list[InventoryLotModel]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="InventoryLotModel.position",
    )


class InventoryLotModel(Base):
    """A lot of one item on one mobile unit."""

    __tablename__ = "inventory_lots"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_lot_quantity_positive"),
        # Query: everything on a unit (truck stock sheet)
        Index("idx_lot_unit", "unit_id"),
        Index("idx_lot_item_unit", "item_id", "unit_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    item_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    quantity: Mapped[int] = mapped_column(nullable=False)
    position: Mapped[int] = mapped_column(nullable=False)

    item: Mapped[InventoryItemModel] = relationship(back_populates="lots")
