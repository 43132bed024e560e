"""
Module: invoicing_kernel.models.invoice
Responsibility: ORM persistence for invoices, their line items, expenses
    and approvals.
Architecture position: Kernel > Models.  May import from db/ and
    exceptions only (domain DTO imports are deferred into ``to_dto``).

Invariants enforced:
    - Status values limited to the status machine (check constraint).
    - cash_amount_in_cents + equity_amount_in_cents == total_amount_in_usd_cents
      (check constraint).
    - equity_percentage within 0..100 (check constraint).
    - Soft deletion: ``deleted_at`` marks a row as gone.  Active queries
      filter on ``deleted_at IS NULL``; rows are never physically removed.
    - At most one approval per (invoice, approver): UNIQUE constraint.
    - Approvals are append-only: ORM listeners reject UPDATE / DELETE.

Failure modes:
    - IntegrityError on an out-of-machine status or unbalanced split.
    - IntegrityError on a duplicate (invoice, approver) approval.
    - ImmutabilityViolationError on approval UPDATE / DELETE.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoicing_kernel.db.base import Base, TrackedBase, UUIDString
from invoicing_kernel.db.types import (
    Cents,
    ExternalId,
    LongText,
    Percentage,
    generate_external_id,
)
from invoicing_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from invoicing_kernel.domain.dtos import (
        ApprovalInfo,
        ExpenseInfo,
        InvoiceInfo,
        LineItemInfo,
    )


_STATUS_VALUES = (
    "'received', 'approved', 'processing', 'payment_pending', "
    "'paid', 'rejected', 'failed'"
)


class InvoiceModel(TrackedBase):
    """A contractor invoice.

    Contract:
        Status changes go through the invoice lifecycle service, which
        validates them against the status machine under a row lock.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        CheckConstraint(
            f"status IN ({_STATUS_VALUES})",
            name="ck_invoices_valid_status",
        ),
        CheckConstraint(
            "invoice_type IN ('services', 'other')",
            name="ck_invoices_valid_type",
        ),
        CheckConstraint(
            "cash_amount_in_cents + equity_amount_in_cents = total_amount_in_usd_cents",
            name="ck_invoices_split_balances",
        ),
        CheckConstraint(
            "equity_percentage >= 0 AND equity_percentage <= 100",
            name="ck_invoices_equity_percentage_range",
        ),
        Index("ix_invoices_company_active", "company_id", "deleted_at"),
        Index(
            "ix_invoices_contractor_type_number",
            "company_contractor_id", "invoice_type", "invoice_number",
        ),
    )

    external_id: Mapped[ExternalId] = mapped_column(
        unique=True, nullable=False, default=generate_external_id,
    )
    company_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("companies.id"), nullable=False,
    )
    company_contractor_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("company_contractors.id"), nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )

    invoice_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="services",
    )
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="received",
    )
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_on: Mapped[date] = mapped_column(Date, nullable=False)

    bill_from: Mapped[str] = mapped_column(String(255), nullable=False)
    bill_to: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_amount_in_usd_cents: Mapped[Cents] = mapped_column(nullable=False)
    cash_amount_in_cents: Mapped[Cents] = mapped_column(nullable=False)
    equity_amount_in_cents: Mapped[Cents] = mapped_column(nullable=False, default=0)
    equity_percentage: Mapped[Percentage] = mapped_column(nullable=False, default=0)
    equity_amount_in_options: Mapped[int] = mapped_column(nullable=False, default=0)
    min_allowed_equity_percentage: Mapped[Percentage | None] = mapped_column(
        nullable=True,
    )
    max_allowed_equity_percentage: Mapped[Percentage | None] = mapped_column(
        nullable=True,
    )
    platform_fee_cents: Mapped[Cents] = mapped_column(nullable=False, default=0)

    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    rejection_reason: Mapped[LongText | None] = mapped_column(nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    deleted_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )

    contractor: Mapped["CompanyContractorModel"] = relationship(
        foreign_keys=[company_contractor_id],
    )
    line_items: Mapped[list["InvoiceLineItemModel"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceLineItemModel.created_at",
    )
    expenses: Mapped[list["InvoiceExpenseModel"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceExpenseModel.created_at",
    )
    approvals: Mapped[list["InvoiceApprovalModel"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceApprovalModel.approved_at",
        lazy="selectin",
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Invoice {self.external_id} {self.invoice_number} status={self.status}>"

    def to_dto(self) -> InvoiceInfo:
        """Convert ORM model to frozen domain DTO."""
        from invoicing_kernel.domain.dtos import InvoiceInfo as InvoiceInfoDTO
        from invoicing_kernel.domain.invoice import InvoiceStatus, InvoiceType

        return InvoiceInfoDTO(
            id=self.id,
            external_id=self.external_id,
            company_id=self.company_id,
            company_contractor_id=self.company_contractor_id,
            user_id=self.user_id,
            created_by_id=self.created_by_id,
            invoice_type=InvoiceType(self.invoice_type),
            invoice_number=self.invoice_number,
            status=InvoiceStatus(self.status),
            invoice_date=self.invoice_date,
            due_on=self.due_on,
            total_amount_in_usd_cents=self.total_amount_in_usd_cents,
            cash_amount_in_cents=self.cash_amount_in_cents,
            equity_amount_in_cents=self.equity_amount_in_cents,
            equity_percentage=self.equity_percentage,
            equity_amount_in_options=self.equity_amount_in_options,
            platform_fee_cents=self.platform_fee_cents,
            min_allowed_equity_percentage=self.min_allowed_equity_percentage,
            max_allowed_equity_percentage=self.max_allowed_equity_percentage,
            accepted_at=self.accepted_at,
            paid_at=self.paid_at,
            rejected_at=self.rejected_at,
            rejected_by_id=self.rejected_by_id,
            rejection_reason=self.rejection_reason,
            deleted_at=self.deleted_at,
        )


class InvoiceLineItemModel(TrackedBase):
    """One billed line; owned exclusively by its invoice."""

    __tablename__ = "invoice_line_items"

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False, index=True,
    )
    description: Mapped[LongText] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("1"),
    )
    pay_rate_in_subunits: Mapped[Cents] = mapped_column(nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="line_items")

    @property
    def total_amount_cents(self) -> int:
        from invoicing_kernel.db.types import round_to_cents

        return round_to_cents(Decimal(self.pay_rate_in_subunits) * Decimal(self.quantity))

    def to_dto(self) -> LineItemInfo:
        from invoicing_kernel.domain.dtos import LineItemInfo as LineItemDTO

        return LineItemDTO(
            line_item_id=self.id,
            description=self.description,
            quantity=Decimal(self.quantity),
            pay_rate_in_subunits=self.pay_rate_in_subunits,
            total_amount_cents=self.total_amount_cents,
        )


class InvoiceExpenseModel(TrackedBase):
    """A reimbursable expense attached to an invoice."""

    __tablename__ = "invoice_expenses"

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False, index=True,
    )
    description: Mapped[LongText] = mapped_column(nullable=False)
    total_amount_in_cents: Mapped[Cents] = mapped_column(nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="expenses")

    def to_dto(self) -> ExpenseInfo:
        from invoicing_kernel.domain.dtos import ExpenseInfo as ExpenseDTO

        return ExpenseDTO(
            expense_id=self.id,
            description=self.description,
            total_amount_in_cents=self.total_amount_in_cents,
        )


class InvoiceApprovalModel(Base):
    """One administrator's approval of one invoice. Append-only.

    Contract:
        Approvals are immutable once created -- no UPDATE, no DELETE.
        Rejection and soft deletion of the invoice keep them as history.
    """

    __tablename__ = "invoice_approvals"

    __table_args__ = (
        UniqueConstraint(
            "invoice_id", "approver_id",
            name="uq_invoice_approvals_approver",
        ),
        Index("ix_invoice_approvals_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False,
    )
    approver_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    approved_at: Mapped[datetime] = mapped_column(nullable=False)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="approvals")
    approver: Mapped["UserModel"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<InvoiceApproval invoice={self.invoice_id} approver={self.approver_id}>"

    def to_dto(self) -> ApprovalInfo:
        """Convert ORM model to frozen domain DTO."""
        from invoicing_kernel.domain.dtos import ApprovalInfo as ApprovalDTO

        return ApprovalDTO(
            approval_id=self.id,
            invoice_id=self.invoice_id,
            approver_id=self.approver_id,
            approver_name=self.approver.display_name if self.approver else None,
            approved_at=self.approved_at,
        )


# =============================================================================
# ORM-Level Immutability for Approvals (Append-Only)
# =============================================================================


@event.listens_for(InvoiceApprovalModel, "before_update")
def prevent_approval_update(mapper, connection, target):
    """Prevent updates to invoice approval records."""
    raise ImmutabilityViolationError(
        entity_type="InvoiceApproval",
        entity_id=str(target.id),
        reason="Invoice approvals are immutable -- cannot modify",
    )


@event.listens_for(InvoiceApprovalModel, "before_delete")
def prevent_approval_delete(mapper, connection, target):
    """Prevent deletion of invoice approval records."""
    raise ImmutabilityViolationError(
        entity_type="InvoiceApproval",
        entity_id=str(target.id),
        reason="Invoice approvals are immutable -- cannot delete",
    )
