"""
Data Transfer Objects for the invoicing kernel.

Each query and each mutation returns an explicit frozen record.  Callers
never receive ORM instances, so nothing outside a service can lazily load
or mutate persistent state after the transaction closes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from invoicing_kernel.domain.invoice import InvoiceStatus, InvoiceType


@dataclass(frozen=True)
class ApprovalInfo:
    """One administrator's approval of one invoice."""

    approval_id: UUID
    invoice_id: UUID
    approver_id: UUID
    approver_name: str | None
    approved_at: datetime


@dataclass(frozen=True)
class LineItemInfo:
    line_item_id: UUID
    description: str
    quantity: Decimal
    pay_rate_in_subunits: int
    total_amount_cents: int


@dataclass(frozen=True)
class ExpenseInfo:
    expense_id: UUID
    description: str
    total_amount_in_cents: int


@dataclass(frozen=True)
class InvoiceInfo:
    """Core invoice snapshot returned by mutating services."""

    id: UUID
    external_id: str
    company_id: UUID
    company_contractor_id: UUID
    user_id: UUID
    created_by_id: UUID
    invoice_type: InvoiceType
    invoice_number: str
    status: InvoiceStatus
    invoice_date: date
    due_on: date
    total_amount_in_usd_cents: int
    cash_amount_in_cents: int
    equity_amount_in_cents: int
    equity_percentage: int
    equity_amount_in_options: int
    platform_fee_cents: int
    min_allowed_equity_percentage: int | None = None
    max_allowed_equity_percentage: int | None = None
    accepted_at: datetime | None = None
    paid_at: datetime | None = None
    rejected_at: datetime | None = None
    rejected_by_id: UUID | None = None
    rejection_reason: str | None = None
    deleted_at: datetime | None = None

    @property
    def requires_payee_acceptance(self) -> bool:
        return self.created_by_id != self.user_id and self.accepted_at is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class ApprovalProgress:
    """The "(n/N)" view of an invoice's approvals."""

    approval_count: int
    required_count: int

    @property
    def remaining(self) -> int:
        return max(self.required_count - self.approval_count, 0)

    @property
    def label(self) -> str:
        return f"({self.approval_count}/{self.required_count})"


@dataclass(frozen=True)
class InvoiceListItem:
    """Row of the invoice list projection."""

    id: UUID
    external_id: str
    invoice_number: str
    invoice_date: date
    due_on: date
    created_at: datetime | None
    status: InvoiceStatus
    invoice_type: InvoiceType
    bill_from: str
    total_amount_in_usd_cents: int
    cash_amount_in_cents: int
    equity_amount_in_cents: int
    equity_percentage: int
    paid_at: datetime | None
    rejected_at: datetime | None
    rejection_reason: str | None
    rejected_by_id: UUID | None
    requires_payee_acceptance: bool
    contractor_user_id: UUID
    contractor_role: str | None
    approvals: tuple[ApprovalInfo, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class InvoiceDetail:
    """Single-invoice projection with dependents."""

    invoice: InvoiceInfo
    bill_from: str
    bill_to: str
    notes: str | None
    contractor_role: str | None
    line_items: tuple[LineItemInfo, ...]
    expenses: tuple[ExpenseInfo, ...]
    approvals: tuple[ApprovalInfo, ...]
    progress: ApprovalProgress

    @property
    def requires_payee_acceptance(self) -> bool:
        return self.invoice.requires_payee_acceptance


@dataclass(frozen=True)
class ConsolidatedInvoiceInfo:
    """One payment batch handed to the payment collaborator."""

    id: UUID
    company_id: UUID
    batch_key: str
    invoice_date: date
    invoice_count: int
    total_cents: int
    total_fees_cents: int
    invoice_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of applying one approval to one invoice."""

    invoice_id: UUID
    external_id: str
    approval_inserted: bool
    approval_count: int
    required_count: int
    status: InvoiceStatus
    became_approved: bool
    payable_now: bool


@dataclass(frozen=True)
class BulkApprovalResult:
    """Result of one ``approve_invoices`` request."""

    outcomes: tuple[ApprovalOutcome, ...]
    payment_invoice_ids: tuple[UUID, ...]
    consolidated_invoice: ConsolidatedInvoiceInfo | None

    @property
    def approved_count(self) -> int:
        return sum(1 for o in self.outcomes if o.approval_inserted)


@dataclass(frozen=True)
class InvoiceCreatedEvent:
    """Payload handed to the notifier after a one-off invoice is created."""

    invoice_id: UUID
    invoice_external_id: str
    company_name: str
    payee_user_id: UUID
    payee_email: str
    payee_name: str
    total_amount_in_usd_cents: int
    descriptions: tuple[str, ...]
