"""
Outbound collaborator interfaces.

The kernel talks to email delivery, payment consolidation and accounting
integrations only through these narrow protocols.  Services accept them
as constructor arguments; defaults live in ``invoicing_kernel.services``.
"""

from __future__ import annotations

from typing import Protocol, Sequence
from uuid import UUID

from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import ConsolidatedInvoiceInfo, InvoiceCreatedEvent


class Notifier(Protocol):
    """Delivers "invoice created" notifications to the payee."""

    def invoice_created(self, event: InvoiceCreatedEvent) -> None: ...


class PaymentCollaborator(Protocol):
    """
    Creates one consolidated payment batch.

    Implementations must be idempotent on ``(company, batch_key)``: a second
    call with the same key returns the batch created by the first.
    """

    def create_consolidated_invoice(
        self,
        settings: CompanySettings,
        invoice_ids: Sequence[UUID],
        batch_key: str,
    ) -> ConsolidatedInvoiceInfo: ...


class IntegrationSync(Protocol):
    """Propagates deletions to external accounting integrations."""

    def mark_record_deleted(self, record_id: UUID) -> None: ...
