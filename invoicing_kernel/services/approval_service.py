"""
invoicing_kernel.services.approval_service -- Invoice approval and rejection.

Responsibility:
    Records one administrator's approval of one invoice, advances the
    invoice to ``approved`` when the company quorum is reached, and
    rejects invoices.  Quorum and payable-now decisions are delegated to
    the pure ``invoicing_engines.approval`` engine.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/, engines.

Invariants enforced:
    - One approval per (invoice, approver): checked here and by the
      UNIQUE constraint.  A second approval by the same administrator is
      an error, never a silent no-op, so a retried request cannot count
      twice toward quorum.
    - Status becomes ``approved`` exactly when the approval count first
      reaches the quorum, never before.
    - Approvals survive rejection as history.
    - Callers pass invoices already locked via InvoiceLifecycleService.

Failure modes:
    - DuplicateApprovalError on a repeated approval.
    - InvalidInvoiceTransitionError when the invoice is not approvable /
      rejectable (or is soft-deleted).
"""

from __future__ import annotations

from uuid import UUID

from invoicing_engines.approval import (
    evaluate_quorum,
    is_payable_now,
    requires_payee_acceptance,
)
from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import ApprovalOutcome
from invoicing_kernel.domain.invoice import (
    InvoiceStatus,
    is_approvable,
    is_rejectable,
    normalize_rejection_reason,
)
from invoicing_kernel.exceptions import (
    DuplicateApprovalError,
    InvalidInvoiceTransitionError,
)
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.invoice import InvoiceApprovalModel, InvoiceModel
from invoicing_kernel.services.base import BaseService
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService

logger = get_logger("services.approval")


def has_approved(invoice: InvoiceModel, approver_id: UUID) -> bool:
    return any(a.approver_id == approver_id for a in invoice.approvals)


def awaiting_payee(invoice: InvoiceModel) -> bool:
    return requires_payee_acceptance(
        invoice.created_by_id, invoice.user_id, invoice.accepted_at,
    )


def payable_now_for(
    invoice: InvoiceModel, approver_id: UUID, settings: CompanySettings,
) -> bool:
    """Payable-now predicate from ``approver_id``'s point of view."""
    return is_payable_now(
        invoice.status,
        approval_count=len(invoice.approvals),
        required_count=settings.required_approval_count,
        approved_by_actor=has_approved(invoice, approver_id),
        awaiting_payee_acceptance=awaiting_payee(invoice),
    )


class InvoiceApprovalService(BaseService[InvoiceModel]):
    """Approves and rejects locked invoices."""

    def __init__(self, session, clock=None, lifecycle: InvoiceLifecycleService | None = None):
        super().__init__(session, clock)
        self.lifecycle = lifecycle or InvoiceLifecycleService(session, self.clock)

    def check_approvable(self, invoice: InvoiceModel, approver_id: UUID) -> None:
        """Raise unless ``approver_id`` may add an approval to ``invoice``."""
        if invoice.is_deleted or not is_approvable(invoice.status):
            raise InvalidInvoiceTransitionError(
                invoice.external_id, invoice.status, InvoiceStatus.APPROVED.value,
            )
        if has_approved(invoice, approver_id):
            raise DuplicateApprovalError(invoice.external_id, str(approver_id))

    def approve(
        self,
        invoice: InvoiceModel,
        approver_id: UUID,
        settings: CompanySettings,
    ) -> ApprovalOutcome:
        """Record ``approver_id``'s approval of a locked invoice.

        Postconditions:
            One new approval row stamped with the clock's time; status is
            ``approved`` iff the count has reached the quorum.
        """
        self.check_approvable(invoice, approver_id)

        invoice.approvals.append(
            InvoiceApprovalModel(approver_id=approver_id, approved_at=self.clock.now())
        )
        self.session.flush()

        quorum = evaluate_quorum(len(invoice.approvals), settings.required_approval_count)
        became_approved = False
        if quorum.reached and invoice.status == InvoiceStatus.RECEIVED.value:
            self.lifecycle.transition(invoice, InvoiceStatus.APPROVED)
            became_approved = True
            self.session.flush()

        payable = payable_now_for(invoice, approver_id, settings)

        logger.info(
            "invoice_approved",
            extra={
                "invoice_id": str(invoice.id),
                "approver_id": str(approver_id),
                "approval_count": quorum.approval_count,
                "required_count": quorum.required_count,
                "status": invoice.status,
                "payable_now": payable,
            },
        )

        return ApprovalOutcome(
            invoice_id=invoice.id,
            external_id=invoice.external_id,
            approval_inserted=True,
            approval_count=quorum.approval_count,
            required_count=quorum.required_count,
            status=InvoiceStatus(invoice.status),
            became_approved=became_approved,
            payable_now=payable,
        )

    def check_rejectable(self, invoice: InvoiceModel) -> None:
        if invoice.is_deleted or not is_rejectable(invoice.status):
            raise InvalidInvoiceTransitionError(
                invoice.external_id, invoice.status, InvoiceStatus.REJECTED.value,
            )

    def reject(
        self,
        invoice: InvoiceModel,
        rejected_by_id: UUID,
        reason: str | None = None,
    ) -> None:
        """Reject a locked invoice; a missing or empty ``reason`` is stored as NULL."""
        self.check_rejectable(invoice)
        self.lifecycle.transition(invoice, InvoiceStatus.REJECTED)
        invoice.rejected_at = self.clock.now()
        invoice.rejected_by_id = rejected_by_id
        invoice.rejection_reason = normalize_rejection_reason(reason)
        self.session.flush()

        logger.info(
            "invoice_rejected",
            extra={
                "invoice_id": str(invoice.id),
                "rejected_by_id": str(rejected_by_id),
                "has_reason": invoice.rejection_reason is not None,
            },
        )
