"""
fieldstock_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the runtime way to obtain configuration through
    ``get_active_config()``. Services never read files or environment
    variables themselves; they receive the parsed pieces by injection.

Failure modes:
    - ``FileNotFoundError`` -- the file named by FIELDSTOCK_CONFIG is missing.
    - ``ConfigurationError`` -- a value fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a ``CONFIG_TRACE``
    log entry with the source path and checksum, tying recorded transfers
    back to the configuration that numbered them.
"""

from __future__ import annotations

import os
from pathlib import Path

from fieldstock_config.loader import compute_checksum, load_config, parse_config
from fieldstock_config.schema import (
    DatabaseConfig,
    FieldStockConfig,
    TransferConfig,
    WarehouseConfig,
)
from fieldstock_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "FIELDSTOCK_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | None = None) -> FieldStockConfig:
    """Load the active configuration.

    Resolution order: explicit ``path``, then the ``FIELDSTOCK_CONFIG``
    environment variable, then the packaged ``defaults.yaml``.
    """
    source = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = load_config(source)
    _logger.info(
        "CONFIG_TRACE",
        extra={
            "trace_type": "CONFIG_TRACE",
            "source": str(source),
            "checksum": compute_checksum(config),
            "unit_count": len(config.units),
            "lot_drain_order": config.transfers.lot_drain_order.value,
        },
    )
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "FieldStockConfig",
    "TransferConfig",
    "WarehouseConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "parse_config",
]
