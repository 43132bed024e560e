"""
Module: invoicing_kernel.models.consolidated_invoice
Responsibility: ORM persistence for consolidated payment batches.
Architecture position: Kernel > Models.

Invariants enforced:
    - Exactly one batch per (company_id, batch_key): UNIQUE constraint.
      A retried bulk approval with the same key finds the existing batch
      instead of creating a second one.
    - A given invoice appears at most once per batch.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoicing_kernel.db.base import TrackedBase, UUIDString
from invoicing_kernel.db.types import Cents, ExternalId, generate_external_id

if TYPE_CHECKING:
    from invoicing_kernel.domain.dtos import ConsolidatedInvoiceInfo


class ConsolidatedInvoiceModel(TrackedBase):
    """One payment batch covering one or more approved invoices."""

    __tablename__ = "consolidated_invoices"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "batch_key", name="uq_consolidated_invoices_batch",
        ),
    )

    external_id: Mapped[ExternalId] = mapped_column(
        unique=True, nullable=False, default=generate_external_id,
    )
    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False, index=True,
    )
    batch_key: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="received")
    invoice_amount_cents: Mapped[Cents] = mapped_column(nullable=False)
    platform_fee_cents: Mapped[Cents] = mapped_column(nullable=False)
    total_cents: Mapped[Cents] = mapped_column(nullable=False)

    items: Mapped[list["ConsolidatedInvoiceItemModel"]] = relationship(
        back_populates="consolidated_invoice",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<ConsolidatedInvoice {self.external_id} batch={self.batch_key}>"

    def to_dto(self) -> ConsolidatedInvoiceInfo:
        from invoicing_kernel.domain.dtos import (
            ConsolidatedInvoiceInfo as ConsolidatedInvoiceDTO,
        )

        return ConsolidatedInvoiceDTO(
            id=self.id,
            company_id=self.company_id,
            batch_key=self.batch_key,
            invoice_date=self.invoice_date,
            invoice_count=len(self.items),
            total_cents=self.total_cents,
            total_fees_cents=self.platform_fee_cents,
            invoice_ids=tuple(sorted((item.invoice_id for item in self.items), key=str)),
        )


class ConsolidatedInvoiceItemModel(TrackedBase):
    """Links one invoice into one consolidated batch."""

    __tablename__ = "consolidated_invoice_items"

    __table_args__ = (
        UniqueConstraint(
            "consolidated_invoice_id", "invoice_id",
            name="uq_consolidated_invoice_items_invoice",
        ),
    )

    consolidated_invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("consolidated_invoices.id"), nullable=False,
    )
    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False, index=True,
    )

    consolidated_invoice: Mapped[ConsolidatedInvoiceModel] = relationship(
        back_populates="items",
    )
