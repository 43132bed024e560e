"""
invoicing_engines.tracer -- INVOICING_ENGINE_TRACE records for pure engines.

``@traced_engine`` logs one DEBUG record per call with the engine name and
version, a fingerprint of the named keyword arguments, whether the engine
produced a result, and the elapsed time.  Two calls with the same inputs
share a fingerprint, so a disputed split can be matched to the exact
calculation that produced it.

Engines stay pure: the decorator only reads arguments and emits a record.
The logger lives under ``invoicing_kernel`` so the kernel's JSON formatter
renders it.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

TRACE_MESSAGE = "INVOICING_ENGINE_TRACE"

_logger = logging.getLogger("invoicing_kernel.engines.trace")


def _canonical(value: Any) -> str:
    """Stable text form: sorted mappings, dataclasses by field, None as null."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        inner = ",".join(f"{k}:{_canonical(value[k])}" for k in sorted(value))
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(fields: tuple[str, ...], kwargs: Mapping[str, Any]) -> str:
    """First 16 hex chars of SHA-256 over ``field=value`` pairs, in order."""
    canonical = "|".join(f"{name}={_canonical(kwargs.get(name))}" for name in fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.monotonic() - started) * 1000, 2)

            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    TRACE_MESSAGE,
                    extra={
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": compute_input_fingerprint(
                            fingerprint_fields, kwargs,
                        ),
                        "produced_result": result is not None,
                        "duration_ms": elapsed_ms,
                    },
                )
            return result

        return wrapper

    return decorator
