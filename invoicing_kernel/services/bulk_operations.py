"""
invoicing_kernel.services.bulk_operations -- Bulk approve / reject / delete.

Responsibility:
    Entry point for the administrator actions that take a list of invoice
    external ids.  Resolves every id within the company, locks the rows,
    validates the whole request, and only then applies the per-invoice
    services.

Architecture position:
    Kernel > Services.  Orchestrates InvoiceApprovalService,
    DeleteInvoiceService, InvoiceLifecycleService and the payment
    collaborator.

Invariants enforced:
    - Validate-then-act: a missing id, a foreign-company id, an invoice
      outside its allowed states or a duplicate approval fails the whole
      request before anything is written.
    - Rows are locked one at a time in ascending primary-key order, inside
      the caller's transaction; disjoint batches never wait on each other.
    - Invoices that become payable in one ``approve_invoices`` call go to
      exactly ONE consolidated invoice, keyed by the batch key.
    - ``delete_many([])`` performs no deletions and no per-invoice calls.

Failure modes:
    - InvoiceNotFoundError listing every id that did not resolve.
    - ForbiddenError when the actor is not a company administrator.
    - DuplicateApprovalError / InvalidInvoiceTransitionError /
      InvoiceNotPayableError from validation.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID, uuid4

from sqlalchemy import select

from invoicing_config import get_active_config
from invoicing_config.schema import InvoicingConfig
from invoicing_kernel.domain.collaborators import IntegrationSync, PaymentCollaborator
from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import (
    ApprovalOutcome,
    BulkApprovalResult,
    InvoiceInfo,
)
from invoicing_kernel.domain.invoice import InvoiceStatus
from invoicing_kernel.exceptions import InvoiceNotFoundError, InvoiceNotPayableError
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_kernel.models.invoice import InvoiceModel
from invoicing_kernel.services.approval_service import (
    InvoiceApprovalService,
    awaiting_payee,
    has_approved,
    payable_now_for,
)
from invoicing_kernel.services.authority import AuthorityService
from invoicing_kernel.services.base import BaseService
from invoicing_kernel.services.company_settings import load_company_settings
from invoicing_kernel.services.consolidated_invoice_service import (
    ConsolidatedInvoiceService,
)
from invoicing_kernel.services.delete_invoice import DeleteInvoiceService
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService

logger = get_logger("services.bulk_operations")


class BulkInvoiceOperations(BaseService[InvoiceModel]):
    """Company-scoped bulk actions over invoice external ids."""

    def __init__(
        self,
        session,
        clock=None,
        config: InvoicingConfig | None = None,
        payment_collaborator: PaymentCollaborator | None = None,
        integration_sync: IntegrationSync | None = None,
        delete_service: DeleteInvoiceService | None = None,
    ):
        super().__init__(session, clock)
        self.config = config or get_active_config()
        self.authority = AuthorityService(session)
        self.lifecycle = InvoiceLifecycleService(session, self.clock)
        self.approvals = InvoiceApprovalService(session, self.clock, self.lifecycle)
        self.payment_collaborator = payment_collaborator or ConsolidatedInvoiceService(
            session, self.clock,
        )
        self.delete_service = delete_service or DeleteInvoiceService(
            session, self.clock, integration_sync,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_invoice_ids(
        self, company_id: UUID, external_ids: Sequence[str],
    ) -> dict[str, UUID]:
        """Map external ids to primary keys among the company's active invoices.

        Raises:
            InvoiceNotFoundError: listing every id that is missing,
                soft-deleted, or owned by another company.
        """
        wanted = set(external_ids)
        if not wanted:
            return {}
        rows = self.session.execute(
            select(InvoiceModel.external_id, InvoiceModel.id).where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.external_id.in_(sorted(wanted)),
                InvoiceModel.deleted_at.is_(None),
            )
        ).all()
        resolved = {external_id: pk for external_id, pk in rows}
        missing = wanted - resolved.keys()
        if missing:
            logger.warning(
                "invoice_ids_not_resolved",
                extra={"company_id": str(company_id), "missing": sorted(missing)},
            )
            raise InvoiceNotFoundError(sorted(missing))
        return resolved

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_many(
        self,
        company_id: UUID,
        invoice_ids: Sequence[str],
        deleted_by_id: UUID,
    ) -> int:
        """Delete every listed invoice that is deletable.

        Every id must resolve before anything is deleted.  Per-invoice
        no-ops (non-deletable status) do not abort the batch.

        Returns:
            Number of invoices actually deleted.
        """
        if not invoice_ids:
            return 0

        self.authority.require_administrator(company_id, deleted_by_id)
        resolved = self.resolve_invoice_ids(company_id, invoice_ids)

        with LogContext.bind(company_id=str(company_id), actor_id=str(deleted_by_id)):
            deleted = 0
            for invoice_id in sorted(resolved.values(), key=str):
                if self.delete_service.delete(invoice_id, deleted_by_id):
                    deleted += 1

            logger.info(
                "invoices_deleted",
                extra={"requested": len(resolved), "deleted": deleted},
            )
        return deleted

    # ------------------------------------------------------------------
    # Rejection
    # ------------------------------------------------------------------

    def reject_invoices(
        self,
        company_id: UUID,
        rejected_by_id: UUID,
        invoice_ids: Sequence[str],
        reason: str | None = None,
    ) -> tuple[InvoiceInfo, ...]:
        """Reject every listed invoice, or none of them."""
        if not invoice_ids:
            return ()

        self.authority.require_administrator(company_id, rejected_by_id)
        resolved = self.resolve_invoice_ids(company_id, invoice_ids)
        invoices = self.lifecycle.lock_invoices(resolved.values())

        for invoice in invoices:
            self.approvals.check_rejectable(invoice)

        with LogContext.bind(company_id=str(company_id), actor_id=str(rejected_by_id)):
            for invoice in invoices:
                self.approvals.reject(invoice, rejected_by_id, reason)

        return tuple(invoice.to_dto() for invoice in invoices)

    # ------------------------------------------------------------------
    # Approval
    # ------------------------------------------------------------------

    def approve_invoices(
        self,
        company_id: UUID,
        approver_id: UUID,
        approve_ids: Sequence[str] = (),
        pay_ids: Sequence[str] = (),
        batch_key: str | None = None,
    ) -> BulkApprovalResult:
        """Approve ``approve_ids`` and send ``pay_ids`` to payment.

        ``approve_ids`` must each be approvable and not yet approved by
        ``approver_id``.  ``pay_ids`` must each be payable now from the
        approver's point of view; the approver's approval is added to them
        when missing.  Every invoice that ends up payable now, and that the
        company pays immediately (or that is listed in ``pay_ids``), moves
        to ``payment_pending`` and joins ONE consolidated invoice.

        ``batch_key`` makes the consolidated invoice creation idempotent;
        when omitted a fresh key is generated.
        """
        approve_set = set(approve_ids)
        pay_set = set(pay_ids)
        if not approve_set and not pay_set:
            return BulkApprovalResult(outcomes=(), payment_invoice_ids=(), consolidated_invoice=None)

        settings = load_company_settings(self.session, company_id, self.config)
        self.authority.require_administrator(company_id, approver_id)
        resolved = self.resolve_invoice_ids(company_id, sorted(approve_set | pay_set))
        invoices = self.lifecycle.lock_invoices(resolved.values())
        batch_key = batch_key or uuid4().hex

        with LogContext.bind(
            company_id=str(company_id), actor_id=str(approver_id), batch_id=batch_key,
        ):
            to_approve, to_pay = self._validate_approval_request(
                invoices, approver_id, approve_set, pay_set, settings,
            )

            outcomes: list[ApprovalOutcome] = []
            for invoice in invoices:
                if invoice.id in to_approve:
                    outcomes.append(self.approvals.approve(invoice, approver_id, settings))

            payment_ids: list[UUID] = []
            for outcome in outcomes:
                if outcome.payable_now and settings.pays_immediately:
                    to_pay.add(outcome.invoice_id)
            for invoice in invoices:
                if invoice.id in to_pay:
                    if invoice.status == InvoiceStatus.RECEIVED.value:
                        # quorum lowered after the last approval
                        self.lifecycle.transition(invoice, InvoiceStatus.APPROVED)
                    self.lifecycle.transition(invoice, InvoiceStatus.PAYMENT_PENDING)
                    payment_ids.append(invoice.id)
            self.session.flush()

            consolidated = None
            if payment_ids:
                consolidated = self.payment_collaborator.create_consolidated_invoice(
                    settings, payment_ids, batch_key,
                )

            logger.info(
                "invoices_approved",
                extra={
                    "approved": len(outcomes),
                    "sent_to_payment": len(payment_ids),
                    "consolidated_invoice_id": str(consolidated.id) if consolidated else None,
                },
            )

        return BulkApprovalResult(
            outcomes=tuple(outcomes),
            payment_invoice_ids=tuple(payment_ids),
            consolidated_invoice=consolidated,
        )

    def _validate_approval_request(
        self,
        invoices: list[InvoiceModel],
        approver_id: UUID,
        approve_set: set[str],
        pay_set: set[str],
        settings: CompanySettings,
    ) -> tuple[set[UUID], set[UUID]]:
        """Check every invoice before any write; return (approve, pay) id sets."""
        to_approve: set[UUID] = set()
        to_pay: set[UUID] = set()

        for invoice in invoices:
            wants_pay = invoice.external_id in pay_set
            wants_approve = invoice.external_id in approve_set

            if wants_pay:
                if not settings.payment_method_ready:
                    raise InvoiceNotPayableError(
                        invoice.external_id, "company payment method is not ready",
                    )
                if awaiting_payee(invoice):
                    raise InvoiceNotPayableError(
                        invoice.external_id, "awaiting payee acceptance",
                    )
                if not payable_now_for(invoice, approver_id, settings):
                    raise InvoiceNotPayableError(
                        invoice.external_id,
                        f"status '{invoice.status}' with "
                        f"{len(invoice.approvals)}/{settings.required_approval_count} approvals",
                    )
                to_pay.add(invoice.id)
                needs_approval = (
                    invoice.status != InvoiceStatus.FAILED.value
                    and not has_approved(invoice, approver_id)
                )
                if needs_approval:
                    to_approve.add(invoice.id)
            elif wants_approve:
                self.approvals.check_approvable(invoice, approver_id)
                to_approve.add(invoice.id)

        return to_approve, to_pay
