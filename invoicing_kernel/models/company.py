"""
Module: invoicing_kernel.models.company
Responsibility: ORM persistence for companies and their administrators.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - required_invoice_approval_count >= 1 when set (check constraint).
      NULL means "use the configured default".
    - One administrator row per (company, user).

Failure modes:
    - IntegrityError on a quorum below 1.
    - IntegrityError on a duplicate administrator row.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoicing_kernel.db.base import TrackedBase, UUIDString
from invoicing_kernel.db.types import ExternalId, SharePrice, generate_external_id


class CompanyModel(TrackedBase):
    """A company that receives contractor invoices."""

    __tablename__ = "companies"

    __table_args__ = (
        CheckConstraint(
            "required_invoice_approval_count IS NULL "
            "OR required_invoice_approval_count >= 1",
            name="ck_companies_quorum_positive",
        ),
    )

    external_id: Mapped[ExternalId] = mapped_column(
        unique=True, nullable=False, default=generate_external_id,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    required_invoice_approval_count: Mapped[int | None] = mapped_column(nullable=True)
    is_trusted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_method_ready: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )
    equity_compensation_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )
    fmv_per_share_usd: Mapped[SharePrice | None] = mapped_column(nullable=True)

    administrators: Mapped[list["CompanyAdministratorModel"]] = relationship(
        back_populates="company",
    )

    def __repr__(self) -> str:
        return f"<Company {self.external_id} {self.name}>"


class CompanyAdministratorModel(TrackedBase):
    """Grants a user the administrator role within one company."""

    __tablename__ = "company_administrators"

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_administrators"),
    )

    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False, index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False, index=True,
    )

    company: Mapped[CompanyModel] = relationship(back_populates="administrators")
    user: Mapped["UserModel"] = relationship()

    def __repr__(self) -> str:
        return f"<CompanyAdministrator company={self.company_id} user={self.user_id}>"
