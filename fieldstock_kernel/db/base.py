"""
Module: fieldstock_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models, with a
    type annotation map for consistent column types.
Architecture position: Kernel > DB. This is the lowest-level import target
    within the kernel. ALL model files import from here. This module MUST NOT
    import from models/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(18, 4). Prices are never stored as float.
    - Timestamps are timezone-aware.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(18, 4).
        - datetime maps to DateTime(timezone=True).
        - int maps to Integer (portable autoincrement on SQLite and PostgreSQL).
        - str maps to String(255) unless a model narrows it.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 4),
        datetime: DateTime(timezone=True),
        int: Integer,
        str: String(255),
    }
