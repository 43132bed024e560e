"""
invoicing_kernel.services.delete_invoice -- Status-gated soft deletion.

Responsibility:
    Soft-deletes one invoice together with its line items and expenses,
    and hands its integration records to the integration-sync
    collaborator.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - The status check and the writes run under one exclusive row lock,
      so an approval or payment racing the delete either sees the invoice
      deleted or makes it non-deletable first.
    - Deletable iff the status is on the allow-list (received, approved,
      rejected).  Anything else, including statuses added later, is a
      silent no-op so retries are safe.
    - Rows are never physically removed; approvals stay as history.
      Integration records are marked deleted, never destroyed.

Failure modes:
    - InvoiceNotFoundError if the row does not exist at all.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update

from invoicing_kernel.domain.collaborators import IntegrationSync
from invoicing_kernel.domain.invoice import is_deletable
from invoicing_kernel.exceptions import InvoiceNotFoundError
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.integration_record import IntegrationRecordModel
from invoicing_kernel.models.invoice import (
    InvoiceExpenseModel,
    InvoiceLineItemModel,
    InvoiceModel,
)
from invoicing_kernel.services.base import BaseService
from invoicing_kernel.services.integration_sync import DatabaseIntegrationSync
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService

logger = get_logger("services.delete_invoice")


class DeleteInvoiceService(BaseService[InvoiceModel]):
    """Deletes a single invoice if, and only if, its status allows it."""

    def __init__(
        self,
        session,
        clock=None,
        integration_sync: IntegrationSync | None = None,
    ):
        super().__init__(session, clock)
        self.lifecycle = InvoiceLifecycleService(session, self.clock)
        self.integration_sync = integration_sync or DatabaseIntegrationSync(
            session, self.clock,
        )

    def delete(self, invoice_id: UUID, deleted_by_id: UUID) -> bool:
        """Soft-delete the invoice.

        Returns:
            True if the invoice was deleted by this call, False when the
            call was a no-op (already deleted, or status not deletable).
        """
        invoice = self.lifecycle.lock_invoice(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))

        if invoice.is_deleted or not is_deletable(invoice.status):
            logger.info(
                "invoice_delete_skipped",
                extra={
                    "invoice_id": str(invoice.id),
                    "status": invoice.status,
                    "already_deleted": invoice.is_deleted,
                },
            )
            return False

        now = self.clock.now()
        invoice.deleted_at = now
        invoice.deleted_by_id = deleted_by_id

        for model in (InvoiceLineItemModel, InvoiceExpenseModel):
            self.session.execute(
                update(model)
                .where(model.invoice_id == invoice.id, model.deleted_at.is_(None))
                .values(deleted_at=now)
            )

        record_ids = self.session.execute(
            select(IntegrationRecordModel.id)
            .where(
                IntegrationRecordModel.invoice_id == invoice.id,
                IntegrationRecordModel.deleted_at.is_(None),
            )
            .order_by(IntegrationRecordModel.id)
        ).scalars().all()
        for record_id in record_ids:
            self.integration_sync.mark_record_deleted(record_id)

        self.session.flush()

        logger.info(
            "invoice_deleted",
            extra={
                "invoice_id": str(invoice.id),
                "deleted_by_id": str(deleted_by_id),
                "integration_records": len(record_ids),
            },
        )
        return True
