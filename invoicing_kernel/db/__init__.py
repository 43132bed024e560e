"""Database layer - engine, base classes, and column types."""

from invoicing_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from invoicing_kernel.db.engine import (
    get_session_factory,
    init_engine_from_config,
    session_scope,
)
from invoicing_kernel.db.types import Cents, ExternalId, Percentage

__all__ = [
    "init_engine_from_config",
    "get_session_factory",
    "session_scope",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Cents",
    "ExternalId",
    "Percentage",
]
