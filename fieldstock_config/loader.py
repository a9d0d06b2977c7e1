"""
Configuration Loader (``fieldstock_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``fieldstock_config.schema`` dataclasses. Runtime callers go through
``fieldstock_config.get_active_config()``; tests call ``parse_config``
directly with a dict.

Invariants enforced
-------------------
* Unknown top-level sections and unknown keys inside a section are
  rejected, so a typo never silently falls back to a default.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad value, unknown key, duplicate unit -> ``ConfigurationError``.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from fieldstock_config.schema import (
    DatabaseConfig,
    FieldStockConfig,
    TransferConfig,
    WarehouseConfig,
)
from fieldstock_engines.lots import LotDrainOrder
from fieldstock_kernel.domain.units import MobileUnit, UnitRegistry, UnitStatus
from fieldstock_kernel.exceptions import ConfigurationError, ValidationError

_SECTIONS = frozenset({"warehouse", "transfers", "database", "units"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _section(data: dict[str, Any], name: str, allowed: frozenset[str]) -> dict[str, Any]:
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(name, "must be a mapping")
    unknown = set(raw) - allowed
    if unknown:
        raise ConfigurationError(name, f"unknown keys {sorted(unknown)}")
    return raw


def parse_warehouse(data: dict[str, Any]) -> WarehouseConfig:
    raw = _section(data, "warehouse", frozenset({"label"}))
    label = raw.get("label", WarehouseConfig.label)
    if not isinstance(label, str) or not label.strip():
        raise ConfigurationError("warehouse.label", "must be a non-empty string")
    return WarehouseConfig(label=label)


def parse_transfers(data: dict[str, Any]) -> TransferConfig:
    raw = _section(data, "transfers", frozenset({"id_prefix", "id_width", "lot_drain_order"}))
    prefix = raw.get("id_prefix", TransferConfig.id_prefix)
    width = raw.get("id_width", TransferConfig.id_width)
    order = raw.get("lot_drain_order", TransferConfig.lot_drain_order.value)

    if not isinstance(prefix, str):
        raise ConfigurationError("transfers.id_prefix", "must be a string")
    if not isinstance(width, int) or isinstance(width, bool) or width < 1:
        raise ConfigurationError("transfers.id_width", "must be a positive integer")
    try:
        drain_order = LotDrainOrder(str(order).lower())
    except ValueError:
        allowed = ", ".join(o.value for o in LotDrainOrder)
        raise ConfigurationError(
            "transfers.lot_drain_order", f"must be one of {allowed}, got {order!r}"
        ) from None
    return TransferConfig(id_prefix=prefix, id_width=width, lot_drain_order=drain_order)


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    raw = _section(data, "database", frozenset({"url", "echo"}))
    url = raw.get("url", DatabaseConfig.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError("database.url", "must be a non-empty string")
    return DatabaseConfig(url=url, echo=bool(raw.get("echo", False)))


def parse_unit(data: dict[str, Any]) -> MobileUnit:
    """Parse one MobileUnit from a dict."""
    try:
        status = UnitStatus(str(data.get("operational_status", "active")).lower())
    except ValueError:
        raise ConfigurationError(
            "units.operational_status",
            f"unknown status {data.get('operational_status')!r}",
        ) from None
    try:
        return MobileUnit(
            id=str(data["id"]),
            display_name=str(data.get("display_name") or data["id"]),
            assigned_technician=str(data.get("assigned_technician", "Unassigned")),
            operational_status=status,
        )
    except KeyError as exc:
        raise ConfigurationError("units", f"missing key {exc.args[0]!r}") from None
    except ValidationError as exc:
        raise ConfigurationError("units", str(exc)) from exc


def parse_units(data: dict[str, Any]) -> tuple[MobileUnit, ...]:
    raw = data.get("units") or []
    if not isinstance(raw, list):
        raise ConfigurationError("units", "must be a list")
    units = tuple(parse_unit(entry) for entry in raw)
    try:
        UnitRegistry(units)
    except ValidationError as exc:
        raise ConfigurationError("units", str(exc)) from exc
    return units


def parse_config(data: dict[str, Any]) -> FieldStockConfig:
    """
    Parse a complete ``FieldStockConfig`` from a dict.

    Raises:
        ConfigurationError: on unknown sections or invalid values.
    """
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ConfigurationError("<root>", f"unknown sections {sorted(unknown)}")
    return FieldStockConfig(
        warehouse=parse_warehouse(data),
        transfers=parse_transfers(data),
        database=parse_database(data),
        units=parse_units(data),
    )


def load_config(path: Path) -> FieldStockConfig:
    """Load and parse a YAML configuration file."""
    return parse_config(load_yaml_file(Path(path)))


def compute_checksum(config: FieldStockConfig) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON serialization.

    Identical configurations always produce identical checksums.
    """
    canonical = json.dumps(dataclasses.asdict(config), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
