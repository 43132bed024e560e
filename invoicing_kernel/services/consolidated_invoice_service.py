"""
invoicing_kernel.services.consolidated_invoice_service -- Payment batches.

Responsibility:
    Default payment collaborator: records one consolidated invoice for a
    company covering the invoices that became payable in one operation.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.

Invariants enforced:
    - Exactly one consolidated invoice per (company, batch_key).  The key
      is checked first; a concurrent insert with the same key loses the
      UNIQUE race inside a savepoint and returns the winner's row.
    - amount = sum of the invoices' cash amounts; fees = sum of their
      platform fees; total = amount + fees.

Failure modes:
    - InvoiceNotFoundError if an invoice id does not belong to the company.
    - ValueError on an empty invoice set.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import ConsolidatedInvoiceInfo
from invoicing_kernel.exceptions import InvoiceNotFoundError
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.consolidated_invoice import (
    ConsolidatedInvoiceItemModel,
    ConsolidatedInvoiceModel,
)
from invoicing_kernel.models.invoice import InvoiceModel
from invoicing_kernel.services.base import BaseService

logger = get_logger("services.consolidated_invoice")


class ConsolidatedInvoiceService(BaseService[ConsolidatedInvoiceModel]):

    def _find(self, company_id: UUID, batch_key: str) -> ConsolidatedInvoiceModel | None:
        return self.session.execute(
            select(ConsolidatedInvoiceModel).where(
                ConsolidatedInvoiceModel.company_id == company_id,
                ConsolidatedInvoiceModel.batch_key == batch_key,
            )
        ).scalar_one_or_none()

    def create_consolidated_invoice(
        self,
        settings: CompanySettings,
        invoice_ids: Sequence[UUID],
        batch_key: str,
    ) -> ConsolidatedInvoiceInfo:
        """Create (or return the existing) batch for ``batch_key``."""
        if not invoice_ids:
            raise ValueError("A consolidated invoice needs at least one invoice")

        existing = self._find(settings.company_id, batch_key)
        if existing is not None:
            logger.info(
                "consolidated_invoice_reused",
                extra={"batch_key": batch_key, "company_id": str(settings.company_id)},
            )
            return existing.to_dto()

        invoices = self.session.execute(
            select(InvoiceModel).where(
                InvoiceModel.id.in_(list(invoice_ids)),
                InvoiceModel.company_id == settings.company_id,
            )
        ).scalars().all()
        found = {i.id for i in invoices}
        missing = [str(i) for i in invoice_ids if i not in found]
        if missing:
            raise InvoiceNotFoundError(missing)

        amount = sum(i.cash_amount_in_cents for i in invoices)
        fees = sum(i.platform_fee_cents for i in invoices)

        consolidated = ConsolidatedInvoiceModel(
            company_id=settings.company_id,
            batch_key=batch_key,
            invoice_date=self.clock.today(),
            invoice_amount_cents=amount,
            platform_fee_cents=fees,
            total_cents=amount + fees,
        )
        consolidated.items = [
            ConsolidatedInvoiceItemModel(invoice_id=i.id)
            for i in sorted(invoices, key=lambda i: str(i.id))
        ]

        try:
            with self.session.begin_nested():
                self.session.add(consolidated)
                self.session.flush()
        except IntegrityError:
            winner = self._find(settings.company_id, batch_key)
            if winner is None:
                raise
            logger.warning(
                "consolidated_invoice_batch_conflict",
                extra={"batch_key": batch_key, "company_id": str(settings.company_id)},
            )
            return winner.to_dto()

        logger.info(
            "consolidated_invoice_created",
            extra={
                "consolidated_invoice_id": str(consolidated.id),
                "company_id": str(settings.company_id),
                "batch_key": batch_key,
                "invoice_count": len(invoices),
                "total_cents": amount + fees,
            },
        )
        return consolidated.to_dto()
