"""
fieldstock_engines.tracer -- ENGINE_TRACE records for planning engines.

``@traced_engine`` wraps a pure planner (transfer, removal) and emits one
DEBUG record per call:

    ENGINE_TRACE  engine_name=transfer engine_version=1.0
                  input_fingerprint=3f1c...  outcome=planned|rejected
                  duration_ms=0.12  [error_code=INSUFFICIENT_STOCK]

A planner that rejects a request with a FieldStockError is still traced,
with ``outcome="rejected"`` and the error code, and the error propagates
unchanged. Any other exception is a bug and is not traced.

The fingerprint is a SHA-256 prefix over the selected keyword arguments.
Two calls with equal requests produce equal fingerprints, so a rejected
transfer can be matched with its retry in the logs.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, TypeVar

from fieldstock_kernel.exceptions import FieldStockError
from fieldstock_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, (str, int)):
        return repr(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}={_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({body})"
    if isinstance(value, Mapping):
        entries = sorted((str(k), _canonicalize(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in entries) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """Stable hex digest prefix of ``kwargs`` restricted to ``fingerprint_fields``."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace: dict[str, Any] = {
                "trace_type": "ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields else ""
                ),
                "function": func.__qualname__,
            }
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except FieldStockError as exc:
                trace.update(outcome="rejected", error_code=exc.code)
                raise
            else:
                trace["outcome"] = "planned"
                return result
            finally:
                if "outcome" in trace:
                    trace["duration_ms"] = round((time.perf_counter() - started) * 1000, 3)
                    _logger.debug("ENGINE_TRACE", extra=trace)

        return wrapper  # type: ignore[return-value]

    return decorator
