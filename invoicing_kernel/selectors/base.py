"""
Module: invoicing_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/,
    domain/ DTOs and the read-only lookups in services.authority and
    services.company_settings.  MUST NOT call any write service.

Invariants enforced:
    - Read-only access: selectors never call session.add(), flush(),
      commit() or delete().
    - DTO return convention: selectors return frozen dataclasses, never
      ORM instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from invoicing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Base class for all selectors; subclasses add domain-specific queries."""

    def __init__(self, session: Session):
        self.session = session
