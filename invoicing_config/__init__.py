"""
invoicing_config -- single public entrypoint for invoicing configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way runtime code obtains global
    configuration (default quorum, equity bounds, fee schedule, numbering,
    database settings).  Per-company settings are read from the company row
    by ``invoicing_kernel.services.company_settings`` at the start of each
    operation and never cached here.

Failure modes:
    - ``FileNotFoundError`` -- configured file does not exist.
    - ``ValueError`` -- schema validation failures.

Audit relevance:
    Every load emits an ``invoicing_config_loaded`` log entry with the file
    path and checksum.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from invoicing_config.loader import load_config, parse_config
from invoicing_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    EquityBounds,
    FeeSchedule,
    InvoicingConfig,
    NumberingSettings,
)

_logger = logging.getLogger("invoicing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
CONFIG_PATH_ENV = "INVOICING_CONFIG_PATH"

_active: InvoicingConfig | None = None
_lock = threading.Lock()


def get_active_config() -> InvoicingConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _active
    with _lock:
        if _active is None:
            path = Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
            _active = load_config(path)
            _logger.info(
                "invoicing_config_loaded",
                extra={"path": str(path), "checksum": _active.checksum},
            )
        return _active


def reset_active_config() -> None:
    """Drop the cached configuration. FOR TESTING ONLY."""
    global _active
    with _lock:
        _active = None


__all__ = [
    "ApprovalSettings",
    "DatabaseSettings",
    "EquityBounds",
    "FeeSchedule",
    "InvoicingConfig",
    "NumberingSettings",
    "get_active_config",
    "load_config",
    "parse_config",
    "reset_active_config",
]
