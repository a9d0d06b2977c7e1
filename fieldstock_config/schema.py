"""
Field stock configuration schema.

Frozen dataclasses the YAML loader parses into. A parsed
``FieldStockConfig`` is the only runtime configuration artifact: services
receive the pieces they need from it by constructor injection.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fieldstock_engines.lots import LotDrainOrder
from fieldstock_kernel.domain.units import MobileUnit, UnitRegistry


@dataclass(frozen=True)
class WarehouseConfig:
    """How the warehouse sentinel is rendered for display."""

    label: str = "Main Warehouse"


@dataclass(frozen=True)
class TransferConfig:
    """Transfer record numbering and unit-source drain order."""

    id_prefix: str = "TR"
    id_width: int = 3
    lot_drain_order: LotDrainOrder = LotDrainOrder.FIFO

    def format_id(self, sequence: int) -> str:
        """Record id for the ``sequence``-th transfer (1-based)."""
        return f"{self.id_prefix}{sequence:0{self.id_width}d}"


@dataclass(frozen=True)
class DatabaseConfig:
    """SQL backend connection settings."""

    url: str = "sqlite://"
    echo: bool = False


@dataclass(frozen=True)
class FieldStockConfig:
    """Complete engine configuration."""

    warehouse: WarehouseConfig = field(default_factory=WarehouseConfig)
    transfers: TransferConfig = field(default_factory=TransferConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    units: tuple[MobileUnit, ...] = ()

    def unit_registry(self) -> UnitRegistry:
        return UnitRegistry(self.units)
