"""
Module: invoicing_kernel.selectors.invoice_selector
Responsibility: Read-side projections of invoices for administrators and
    contractors: the invoice list, a single invoice with its dependents,
    and approval progress.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Soft-deleted invoices, line items and expenses never appear.
    - Administrators see every invoice of their company; a contractor
      sees only their own.
    - Every query returns explicit frozen records (InvoiceListItem,
      InvoiceDetail, ApprovalProgress).

Failure modes:
    - ForbiddenError when the viewer has no right to the requested view.
    - InvoiceNotFoundError for a missing, deleted or out-of-scope invoice.
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from invoicing_engines.approval import evaluate_quorum, requires_payee_acceptance
from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import (
    ApprovalProgress,
    InvoiceDetail,
    InvoiceListItem,
)
from invoicing_kernel.domain.invoice import InvoiceStatus, InvoiceType
from invoicing_kernel.exceptions import ForbiddenError, InvoiceNotFoundError
from invoicing_kernel.models.contractor import CompanyContractorModel
from invoicing_kernel.models.invoice import InvoiceModel
from invoicing_kernel.selectors.base import BaseSelector
from invoicing_kernel.services.authority import AuthorityService
from invoicing_kernel.services.company_settings import load_company_settings


def approval_progress(invoice: InvoiceModel, settings: CompanySettings) -> ApprovalProgress:
    """The "(n/N)" approval counter for one invoice."""
    quorum = evaluate_quorum(len(invoice.approvals), settings.required_approval_count)
    return ApprovalProgress(
        approval_count=quorum.approval_count,
        required_count=quorum.required_count,
    )


class InvoiceSelector(BaseSelector[InvoiceModel]):
    """Invoice queries scoped to one company and one viewer."""

    def __init__(self, session):
        super().__init__(session)
        self.authority = AuthorityService(session)

    def _active(self, company_id: UUID):
        return (
            select(InvoiceModel)
            .where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.deleted_at.is_(None),
            )
            .options(
                selectinload(InvoiceModel.contractor),
                selectinload(InvoiceModel.line_items),
                selectinload(InvoiceModel.expenses),
            )
        )

    def list_invoices(
        self,
        company_id: UUID,
        viewer_id: UUID,
        contractor_external_id: str | None = None,
        statuses: Iterable[InvoiceStatus | str] | None = None,
    ) -> tuple[InvoiceListItem, ...]:
        """Active invoices, newest invoice date first, then newest created.

        Administrators may list everything; a contractor may only list
        their own invoices by passing their own contractor external id.
        """
        is_admin = self.authority.is_administrator(company_id, viewer_id)
        if not is_admin:
            own = self.authority.contractor_for_user(company_id, viewer_id)
            if own is None or own.external_id != contractor_external_id:
                raise ForbiddenError(str(viewer_id), "administrator", str(company_id))

        stmt = self._active(company_id)
        if contractor_external_id is not None:
            stmt = stmt.join(
                CompanyContractorModel,
                CompanyContractorModel.id == InvoiceModel.company_contractor_id,
            ).where(CompanyContractorModel.external_id == contractor_external_id)
        if statuses is not None:
            stmt = stmt.where(
                InvoiceModel.status.in_([InvoiceStatus(s).value for s in statuses])
            )
        stmt = stmt.order_by(
            InvoiceModel.invoice_date.desc(),
            InvoiceModel.created_at.desc(),
            InvoiceModel.id,
        )

        return tuple(
            self._to_list_item(invoice)
            for invoice in self.session.execute(stmt).scalars().all()
        )

    def get_invoice(
        self,
        company_id: UUID,
        external_id: str,
        viewer_id: UUID,
    ) -> InvoiceDetail:
        """One active invoice with non-deleted line items and expenses."""
        stmt = self._active(company_id).where(InvoiceModel.external_id == external_id)

        if not self.authority.is_administrator(company_id, viewer_id):
            own = self.authority.contractor_for_user(company_id, viewer_id)
            if own is None:
                raise ForbiddenError(str(viewer_id), "administrator", str(company_id))
            stmt = stmt.where(InvoiceModel.company_contractor_id == own.id)

        invoice = self.session.execute(stmt).scalar_one_or_none()
        if invoice is None:
            raise InvoiceNotFoundError(external_id)

        settings = load_company_settings(self.session, company_id)
        return InvoiceDetail(
            invoice=invoice.to_dto(),
            bill_from=invoice.bill_from,
            bill_to=invoice.bill_to,
            notes=invoice.notes,
            contractor_role=invoice.contractor.role,
            line_items=tuple(
                item.to_dto() for item in invoice.line_items if item.deleted_at is None
            ),
            expenses=tuple(
                expense.to_dto() for expense in invoice.expenses if expense.deleted_at is None
            ),
            approvals=tuple(a.to_dto() for a in invoice.approvals),
            progress=approval_progress(invoice, settings),
        )

    def _to_list_item(self, invoice: InvoiceModel) -> InvoiceListItem:
        return InvoiceListItem(
            id=invoice.id,
            external_id=invoice.external_id,
            invoice_number=invoice.invoice_number,
            invoice_date=invoice.invoice_date,
            due_on=invoice.due_on,
            created_at=invoice.created_at,
            status=InvoiceStatus(invoice.status),
            invoice_type=InvoiceType(invoice.invoice_type),
            bill_from=invoice.bill_from,
            total_amount_in_usd_cents=invoice.total_amount_in_usd_cents,
            cash_amount_in_cents=invoice.cash_amount_in_cents,
            equity_amount_in_cents=invoice.equity_amount_in_cents,
            equity_percentage=invoice.equity_percentage,
            paid_at=invoice.paid_at,
            rejected_at=invoice.rejected_at,
            rejection_reason=invoice.rejection_reason,
            rejected_by_id=invoice.rejected_by_id,
            requires_payee_acceptance=requires_payee_acceptance(
                invoice.created_by_id, invoice.user_id, invoice.accepted_at,
            ),
            contractor_user_id=invoice.user_id,
            contractor_role=invoice.contractor.role,
            approvals=tuple(a.to_dto() for a in invoice.approvals),
        )
