"""
Default integration-sync collaborator.

Marks integration records deleted in-database.  A separate sync job reads
``deleted_at`` and removes the counterpart from the external system; the
row itself is kept so that job can still find it.
"""

from __future__ import annotations

from uuid import UUID

from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.integration_record import IntegrationRecordModel
from invoicing_kernel.services.base import BaseService

logger = get_logger("services.integration_sync")


class DatabaseIntegrationSync(BaseService[IntegrationRecordModel]):

    def mark_record_deleted(self, record_id: UUID) -> None:
        record = self.session.get(IntegrationRecordModel, record_id)
        if record is None or record.deleted_at is not None:
            return
        record.deleted_at = self.clock.now()
        self.session.flush()
        logger.info(
            "integration_record_marked_deleted",
            extra={
                "record_id": str(record_id),
                "integration_name": record.integration_name,
                "invoice_id": str(record.invoice_id),
            },
        )
