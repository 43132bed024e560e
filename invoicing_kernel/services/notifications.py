"""Default notifier: records "invoice created" events in the structured log."""

from __future__ import annotations

from invoicing_kernel.domain.dtos import InvoiceCreatedEvent
from invoicing_kernel.logging_config import get_logger

logger = get_logger("services.notifications")


class LoggingNotifier:
    """Stand-in for email delivery, which lives outside the kernel."""

    def invoice_created(self, event: InvoiceCreatedEvent) -> None:
        logger.info(
            "invoice_created_notification",
            extra={
                "invoice_id": str(event.invoice_id),
                "invoice_external_id": event.invoice_external_id,
                "company_name": event.company_name,
                "payee_user_id": str(event.payee_user_id),
                "payee_email": event.payee_email,
                "descriptions": list(event.descriptions),
            },
        )
