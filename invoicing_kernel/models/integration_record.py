"""
ORM persistence for accounting-integration sync records.

A record ties one invoice to its counterpart in an external system
(e.g. a bill in an accounting product).  Records are never physically
removed: a deleted invoice's records get ``deleted_at`` and an external
sync job propagates the removal.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from invoicing_kernel.db.base import TrackedBase, UUIDString


class IntegrationRecordModel(TrackedBase):
    __tablename__ = "integration_records"

    integration_name: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("invoices.id"), nullable=False, index=True,
    )
    integration_external_id: Mapped[str] = mapped_column(String(255), nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<IntegrationRecord {self.integration_name}:"
            f"{self.integration_external_id} invoice={self.invoice_id}>"
        )
