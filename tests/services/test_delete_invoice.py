"""
Tests for DeleteInvoiceService.

Tests cover:
- Status allow-list: received, approved and rejected are deletable
- Every other status is a silent no-op that leaves the row untouched
- Line items, expenses and integration records are soft-deleted with it
- Approvals survive deletion
- Repeated deletes are idempotent
"""

from uuid import uuid4

import pytest

from invoicing_kernel.domain.invoice import InvoiceStatus
from invoicing_kernel.exceptions import InvoiceNotFoundError
from invoicing_kernel.services.delete_invoice import DeleteInvoiceService

DELETABLE = [InvoiceStatus.RECEIVED, InvoiceStatus.APPROVED, InvoiceStatus.REJECTED]
NOT_DELETABLE = [
    InvoiceStatus.PAYMENT_PENDING,
    InvoiceStatus.PROCESSING,
    InvoiceStatus.PAID,
    InvoiceStatus.FAILED,
]


class RecordingIntegrationSync:
    """Collects the integration record ids handed to it."""

    def __init__(self):
        self.marked = []

    def mark_record_deleted(self, record_id):
        self.marked.append(record_id)


@pytest.fixture
def delete_service(session, deterministic_clock):
    return DeleteInvoiceService(session, deterministic_clock)


class TestStatusGate:

    @pytest.mark.parametrize("status", DELETABLE)
    def test_deletable_statuses(self, delete_service, factories, company, admin, status):
        invoice = factories.invoice(company, status=status)

        assert delete_service.delete(invoice.id, admin.id) is True

        assert invoice.deleted_at is not None
        assert invoice.deleted_by_id == admin.id
        assert invoice.status == status.value

    @pytest.mark.parametrize("status", NOT_DELETABLE)
    def test_other_statuses_are_noops(self, delete_service, factories, company, admin, status):
        invoice = factories.invoice(company, status=status, expenses=1)

        assert delete_service.delete(invoice.id, admin.id) is False

        assert invoice.deleted_at is None
        assert invoice.deleted_by_id is None
        assert invoice.status == status.value
        assert all(item.deleted_at is None for item in invoice.line_items)
        assert all(expense.deleted_at is None for expense in invoice.expenses)

    def test_noop_is_logged(self, delete_service, factories, company, admin, captured_logs):
        invoice = factories.invoice(company, status=InvoiceStatus.PAID)

        delete_service.delete(invoice.id, admin.id)

        skipped = [r for r in captured_logs() if r["message"] == "invoice_delete_skipped"]
        assert len(skipped) == 1
        assert skipped[0]["status"] == "paid"
        assert skipped[0]["already_deleted"] is False

    def test_missing_invoice(self, delete_service, admin):
        with pytest.raises(InvoiceNotFoundError):
            delete_service.delete(uuid4(), admin.id)


class TestDependents:

    def test_line_items_and_expenses_soft_deleted(
        self, session, delete_service, factories, company, admin,
    ):
        invoice = factories.invoice(company, line_items=2, expenses=2)

        delete_service.delete(invoice.id, admin.id)

        for child in [*invoice.line_items, *invoice.expenses]:
            session.refresh(child)
            assert child.deleted_at is not None

    def test_integration_records_marked_deleted(
        self, session, delete_service, factories, company, admin, captured_logs,
    ):
        invoice = factories.invoice(company)
        record = factories.integration_record(invoice)

        delete_service.delete(invoice.id, admin.id)

        session.refresh(record)
        assert record.deleted_at is not None
        assert any(
            r["message"] == "integration_record_marked_deleted" for r in captured_logs()
        )

    def test_integration_sync_receives_only_active_records(
        self, session, deterministic_clock, factories, company, admin,
    ):
        sync = RecordingIntegrationSync()
        service = DeleteInvoiceService(session, deterministic_clock, integration_sync=sync)
        invoice = factories.invoice(company)
        active = factories.integration_record(invoice)
        stale = factories.integration_record(invoice, integration_name="xero")
        stale.deleted_at = deterministic_clock.now()
        session.flush()

        service.delete(invoice.id, admin.id)

        assert sync.marked == [active.id]

    def test_no_integration_calls_for_noop(
        self, session, deterministic_clock, factories, company, admin,
    ):
        sync = RecordingIntegrationSync()
        service = DeleteInvoiceService(session, deterministic_clock, integration_sync=sync)
        invoice = factories.invoice(company, status=InvoiceStatus.PROCESSING)
        factories.integration_record(invoice)

        service.delete(invoice.id, admin.id)

        assert sync.marked == []

    def test_approvals_survive(self, session, delete_service, factories, company, admin):
        invoice = factories.invoice(company, status=InvoiceStatus.APPROVED)
        factories.approval(invoice, admin)

        delete_service.delete(invoice.id, admin.id)

        session.refresh(invoice)
        assert [a.approver_id for a in invoice.approvals] == [admin.id]


class TestIdempotency:

    def test_second_delete_is_noop(self, delete_service, factories, company, admin, deterministic_clock):
        invoice = factories.invoice(company)
        delete_service.delete(invoice.id, admin.id)

        deterministic_clock.advance(60)
        other_admin = factories.administrator(company)

        assert delete_service.delete(invoice.id, other_admin.id) is False
        assert invoice.deleted_at is not None
        assert invoice.deleted_by_id == admin.id
