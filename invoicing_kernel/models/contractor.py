"""
Module: invoicing_kernel.models.contractor
Responsibility: ORM persistence for company contractors and their equity
    grants.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One contractor row per (company, user).
    - One equity grant per (contractor, year); unvested_options >= 0.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoicing_kernel.db.base import TrackedBase, UUIDString
from invoicing_kernel.db.types import ExternalId, SharePrice, generate_external_id


class CompanyContractorModel(TrackedBase):
    """A user's engagement as a contractor of one company."""

    __tablename__ = "company_contractors"

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_contractors"),
    )

    external_id: Mapped[ExternalId] = mapped_column(
        unique=True, nullable=False, default=generate_external_id,
    )
    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False, index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False, index=True,
    )
    role: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)

    user: Mapped["UserModel"] = relationship()
    equity_grants: Mapped[list["EquityGrantModel"]] = relationship(
        back_populates="contractor",
        order_by="EquityGrantModel.year",
    )

    def grant_for_year(self, year: int) -> "EquityGrantModel | None":
        for grant in self.equity_grants:
            if grant.year == year:
                return grant
        return None

    def __repr__(self) -> str:
        return f"<CompanyContractor {self.external_id} user={self.user_id}>"


class EquityGrantModel(TrackedBase):
    """Options granted to a contractor for one calendar year."""

    __tablename__ = "equity_grants"

    __table_args__ = (
        UniqueConstraint(
            "company_contractor_id", "year", name="uq_equity_grants_contractor_year",
        ),
        CheckConstraint(
            "unvested_options >= 0", name="ck_equity_grants_unvested_non_negative",
        ),
    )

    company_contractor_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("company_contractors.id"), nullable=False,
    )
    year: Mapped[int] = mapped_column(nullable=False)
    share_price_usd: Mapped[SharePrice] = mapped_column(nullable=False)
    unvested_options: Mapped[int] = mapped_column(nullable=False)

    contractor: Mapped[CompanyContractorModel] = relationship(
        back_populates="equity_grants",
    )

    def __repr__(self) -> str:
        return (
            f"<EquityGrant contractor={self.company_contractor_id} "
            f"year={self.year} unvested={self.unvested_options}>"
        )
