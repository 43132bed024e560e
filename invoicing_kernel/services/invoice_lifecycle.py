"""
invoicing_kernel.services.invoice_lifecycle -- Row locks and status changes.

Responsibility:
    The single place where invoice rows are locked and where invoice
    status is written.  Every approve / reject / delete / payment
    callback goes through ``lock_invoice`` and ``transition``.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Conflicting operations on one invoice serialize on its row
      (``SELECT ... FOR UPDATE``); no company-wide or global lock.
    - Sets of invoices are locked one row at a time in ascending
      primary-key order, so two overlapping batches cannot deadlock.
    - Locked rows are re-read from the database (``populate_existing``):
      decisions never use a stale identity-map copy.
    - Every status write is validated against ``INVOICE_TRANSITIONS``.

Failure modes:
    - InvoiceNotFoundError when a row is missing or soft-deleted.
    - InvalidInvoiceTransitionError on an edge outside the machine.
"""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from sqlalchemy import select

from invoicing_kernel.domain.dtos import InvoiceInfo
from invoicing_kernel.domain.invoice import (
    InvoiceStatus,
    can_transition,
)
from invoicing_kernel.exceptions import (
    InvalidInvoiceTransitionError,
    InvoiceNotFoundError,
)
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.invoice import InvoiceModel
from invoicing_kernel.services.base import BaseService

logger = get_logger("services.invoice_lifecycle")

_PAYMENT_SOURCE_STATUSES = frozenset({
    InvoiceStatus.PAYMENT_PENDING,
    InvoiceStatus.PROCESSING,
    InvoiceStatus.FAILED,
})


def lock_order(invoice_ids: Iterable[UUID]) -> list[UUID]:
    """Ascending primary-key order, matching the database's string order."""
    return sorted(set(invoice_ids), key=str)


class InvoiceLifecycleService(BaseService[InvoiceModel]):
    """Locks invoice rows and applies validated status transitions."""

    def lock_invoice(self, invoice_id: UUID) -> InvoiceModel | None:
        """Get the invoice with an exclusive row lock, refreshed from the DB."""
        return self.session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_active_invoice(self, invoice_id: UUID) -> InvoiceModel:
        invoice = self.lock_invoice(invoice_id)
        if invoice is None or invoice.is_deleted:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def lock_invoices(self, invoice_ids: Iterable[UUID]) -> list[InvoiceModel]:
        """Lock active invoices one at a time in ascending primary-key order."""
        return [self.lock_active_invoice(i) for i in lock_order(invoice_ids)]

    def transition(self, invoice: InvoiceModel, to_status: InvoiceStatus) -> None:
        """Move a locked invoice to ``to_status`` if the machine allows it."""
        from_status = invoice.status
        if invoice.is_deleted or not can_transition(from_status, to_status):
            raise InvalidInvoiceTransitionError(
                str(invoice.external_id), from_status, to_status.value,
            )
        invoice.status = to_status.value
        logger.info(
            "invoice_status_changed",
            extra={
                "invoice_id": str(invoice.id),
                "from_status": from_status,
                "to_status": to_status.value,
            },
        )

    def record_payment_status(
        self, invoice_id: UUID, new_status: InvoiceStatus | str,
    ) -> InvoiceInfo:
        """Apply a payment-collaborator callback.

        Only invoices already handed to payment move here:
        ``payment_pending -> processing -> paid | failed`` and
        ``failed -> payment_pending``.  ``paid`` stamps ``paid_at``.
        """
        target = InvoiceStatus(new_status)
        invoice = self.lock_active_invoice(invoice_id)

        if InvoiceStatus(invoice.status) not in _PAYMENT_SOURCE_STATUSES:
            raise InvalidInvoiceTransitionError(
                str(invoice.external_id), invoice.status, target.value,
            )

        self.transition(invoice, target)
        if target == InvoiceStatus.PAID:
            invoice.paid_at = self.clock.now()
        self.session.flush()
        return invoice.to_dto()
