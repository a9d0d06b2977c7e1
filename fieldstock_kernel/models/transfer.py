"""
Module: fieldstock_kernel.models.transfer
Responsibility: ORM persistence for the append-only transfer history.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - Records and their lines are immutable from creation (db/immutability.py
      registers before_update / before_delete listeners).
    - ``sequence`` is unique and drives the human-facing record id.
    - Lines keep item_id and item_name as plain columns, not a foreign key,
      so history survives deletion of the item from the catalog.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldstock_kernel.db.base import Base


class TransferRecordModel(Base):
    """One executed transfer."""

    __tablename__ = "transfer_records"

    __table_args__ = (
        Index("idx_transfer_source", "source_location"),
        Index("idx_transfer_destination", "destination_location"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    sequence: Mapped[int] = mapped_column(unique=True, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    source_location: Mapped[str] = mapped_column(String(64), nullable=False)
    destination_location: Mapped[str] = mapped_column(String(64), nullable=False)
    performed_by: Mapped[str] = mapped_column(nullable=False)

    lines: Mapped[list[TransferRecordLineModel]] = relationship(
        back_populates="record",
        order_by="TransferRecordLineModel.line_no",
    )


class TransferRecordLineModel(Base):
    """One item moved by a transfer."""

    __tablename__ = "transfer_record_lines"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("transfer_records.id"),
        nullable=False,
        index=True,
    )
    line_no: Mapped[int] = mapped_column(nullable=False)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_name: Mapped[str] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    record: Mapped[TransferRecordModel] = relationship(back_populates="lines")
