"""
Units -- Mobile service unit reference data.

Responsibility:
    ``MobileUnit`` describes a service vehicle that can hold stock.
    ``UnitRegistry`` is the read-only lookup the engine consults to validate
    location identifiers. Units are owned by the host application (or by
    configuration); the engine never creates or edits them.

Architecture position:
    Kernel > Domain -- pure, zero I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from fieldstock_kernel.domain.inventory import WAREHOUSE, is_warehouse
from fieldstock_kernel.exceptions import InactiveUnitError, NotFoundError, ValidationError


class UnitStatus(str, Enum):
    """Operational status of a mobile unit."""

    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


@dataclass(frozen=True, slots=True)
class MobileUnit:
    """A service vehicle. Read-only reference data."""

    id: str
    display_name: str
    assigned_technician: str = "Unassigned"
    operational_status: UnitStatus = UnitStatus.ACTIVE

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Mobile unit id is required", field="id")
        if is_warehouse(self.id):
            raise ValidationError(
                f"'{WAREHOUSE}' is reserved and cannot be used as a unit id",
                field="id",
            )
        object.__setattr__(
            self, "operational_status", UnitStatus(self.operational_status)
        )

    @property
    def is_inactive(self) -> bool:
        return self.operational_status is UnitStatus.INACTIVE


class UnitRegistry:
    """
    Immutable lookup of known mobile units.

    Contract:
        Built once from an iterable of units; duplicate ids are rejected.
        ``require_location`` accepts the warehouse sentinel or a known id.
    """

    def __init__(self, units: Iterable[MobileUnit] = ()):
        by_id: dict[str, MobileUnit] = {}
        for unit in units:
            if unit.id in by_id:
                raise ValidationError(f"Duplicate mobile unit id: {unit.id}", field="id")
            by_id[unit.id] = unit
        self._units: Mapping[str, MobileUnit] = MappingProxyType(by_id)

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._units

    def __iter__(self) -> Iterator[MobileUnit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)

    def get(self, unit_id: str) -> MobileUnit:
        """Return the unit or raise NotFoundError."""
        try:
            return self._units[unit_id]
        except KeyError:
            raise NotFoundError("MobileUnit", unit_id) from None

    def require_location(self, location: str) -> None:
        """Raise NotFoundError unless ``location`` is the warehouse or a known unit."""
        if not is_warehouse(location):
            self.get(location)

    def require_destination(self, location: str) -> None:
        """Like ``require_location`` but also rejects inactive units."""
        if is_warehouse(location):
            return
        unit = self.get(location)
        if unit.is_inactive:
            raise InactiveUnitError(unit.id)

    def active_units(self) -> list[MobileUnit]:
        """Units that can receive stock, in registration order."""
        return [u for u in self._units.values() if not u.is_inactive]
