"""ORM persistence for users (contractors and administrators alike)."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from invoicing_kernel.db.base import TrackedBase
from invoicing_kernel.db.types import ExternalId, generate_external_id


class UserModel(TrackedBase):
    """A person; roles come from administrator / contractor rows."""

    __tablename__ = "users"

    external_id: Mapped[ExternalId] = mapped_column(
        unique=True, nullable=False, default=generate_external_id,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    legal_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preferred_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def display_name(self) -> str:
        return self.legal_name or self.preferred_name or self.email

    def __repr__(self) -> str:
        return f"<User {self.external_id} {self.email}>"
