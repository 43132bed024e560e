"""
Configuration loader (``invoicing_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``invoicing_config.schema`` dataclasses.  Callers obtain configuration
through ``invoicing_config.get_active_config()``; this module is the
parsing step behind it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing section / unknown key / wrong type  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from invoicing_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    EquityBounds,
    FeeSchedule,
    InvoicingConfig,
    NumberingSettings,
)

_SECTIONS: dict[str, type] = {
    "approvals": ApprovalSettings,
    "equity": EquityBounds,
    "fees": FeeSchedule,
    "numbering": NumberingSettings,
    "database": DatabaseSettings,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _build_section(name: str, cls: type, raw: Any) -> Any:
    if not isinstance(raw, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")

    allowed = {f.name: f for f in fields(cls)}
    unknown = set(raw) - set(allowed)
    if unknown:
        raise ValueError(
            f"Unknown key(s) in config section '{name}': {sorted(unknown)}"
        )

    for key, value in raw.items():
        expected = allowed[key].type
        if expected == "int" and (not isinstance(value, int) or isinstance(value, bool)):
            raise ValueError(f"{name}.{key} must be an integer, got {value!r}")
        if expected == "str" and not isinstance(value, str):
            raise ValueError(f"{name}.{key} must be a string, got {value!r}")

    return cls(**raw)


def parse_config(data: dict[str, Any]) -> InvoicingConfig:
    """
    Parse a raw config mapping into an ``InvoicingConfig``.

    ``DATABASE_URL`` in the environment overrides ``database.url``.
    """
    missing = [name for name in _SECTIONS if name not in data]
    if missing:
        raise ValueError(f"Missing config section(s): {missing}")

    sections = {
        name: _build_section(name, cls, data[name])
        for name, cls in _SECTIONS.items()
    }

    env_url = os.environ.get("DATABASE_URL")
    if env_url:
        db = sections["database"]
        sections["database"] = DatabaseSettings(
            url=env_url,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
        )

    return InvoicingConfig(**sections, checksum=compute_checksum(data))


def load_config(path: Path) -> InvoicingConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path))
