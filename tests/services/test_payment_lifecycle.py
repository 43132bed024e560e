"""
Tests for payment-side status changes and consolidated invoices.

Tests cover:
- record_payment_status: payment_pending -> processing -> paid | failed,
  failed -> payment_pending, and refusal of everything else
- ConsolidatedInvoiceService: totals, idempotency by batch key, scope
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from invoicing_kernel.domain.invoice import InvoiceStatus
from invoicing_kernel.exceptions import InvalidInvoiceTransitionError, InvoiceNotFoundError
from invoicing_kernel.models.consolidated_invoice import ConsolidatedInvoiceModel
from invoicing_kernel.services.company_settings import load_company_settings
from invoicing_kernel.services.consolidated_invoice_service import ConsolidatedInvoiceService
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService, lock_order


@pytest.fixture
def lifecycle(session, deterministic_clock):
    return InvoiceLifecycleService(session, deterministic_clock)


class TestPaymentCallbacks:

    def test_happy_path_to_paid(self, lifecycle, factories, company):
        invoice = factories.invoice(company, status=InvoiceStatus.PAYMENT_PENDING)

        lifecycle.record_payment_status(invoice.id, InvoiceStatus.PROCESSING)
        info = lifecycle.record_payment_status(invoice.id, "paid")

        assert info.status is InvoiceStatus.PAID
        assert info.paid_at is not None

    def test_failure_and_retry(self, lifecycle, factories, company):
        invoice = factories.invoice(company, status=InvoiceStatus.PROCESSING)

        lifecycle.record_payment_status(invoice.id, InvoiceStatus.FAILED)
        info = lifecycle.record_payment_status(invoice.id, InvoiceStatus.PAYMENT_PENDING)

        assert info.status is InvoiceStatus.PAYMENT_PENDING
        assert info.paid_at is None

    @pytest.mark.parametrize(
        "source,target",
        [
            (InvoiceStatus.RECEIVED, InvoiceStatus.PROCESSING),
            (InvoiceStatus.APPROVED, InvoiceStatus.PAID),
            (InvoiceStatus.PAYMENT_PENDING, InvoiceStatus.PAID),
            (InvoiceStatus.PAID, InvoiceStatus.FAILED),
            (InvoiceStatus.REJECTED, InvoiceStatus.PAYMENT_PENDING),
        ],
    )
    def test_illegal_callbacks_refused(self, lifecycle, factories, company, source, target):
        invoice = factories.invoice(company, status=source)

        with pytest.raises(InvalidInvoiceTransitionError):
            lifecycle.record_payment_status(invoice.id, target)

        assert invoice.status == source.value

    def test_deleted_invoice_not_found(self, lifecycle, factories, company, deterministic_clock):
        invoice = factories.invoice(
            company, status=InvoiceStatus.PAYMENT_PENDING, deleted_at=deterministic_clock.now(),
        )

        with pytest.raises(InvoiceNotFoundError):
            lifecycle.record_payment_status(invoice.id, InvoiceStatus.PROCESSING)

    def test_status_change_logged(self, lifecycle, factories, company, captured_logs):
        invoice = factories.invoice(company, status=InvoiceStatus.PAYMENT_PENDING)

        lifecycle.record_payment_status(invoice.id, InvoiceStatus.PROCESSING)

        changes = [r for r in captured_logs() if r["message"] == "invoice_status_changed"]
        assert changes[0]["from_status"] == "payment_pending"
        assert changes[0]["to_status"] == "processing"


class TestLockOrder:

    def test_sorted_and_deduplicated(self):
        ids = [uuid4() for _ in range(5)]

        ordered = lock_order(ids + ids[:2])

        assert ordered == sorted(ids, key=str)


class TestConsolidatedInvoice:

    @pytest.fixture
    def service(self, session, deterministic_clock):
        return ConsolidatedInvoiceService(session, deterministic_clock)

    def test_totals(self, service, session, factories, company, test_config, deterministic_clock):
        invoices = [
            factories.invoice(company, total_amount_cents=1_000, platform_fee_cents=65),
            factories.invoice(company, total_amount_cents=2_000, platform_fee_cents=80),
        ]
        settings = load_company_settings(session, company.id, test_config)

        info = service.create_consolidated_invoice(settings, [i.id for i in invoices], "k1")

        assert info.invoice_count == 2
        assert info.total_fees_cents == 145
        assert info.total_cents == 3_145
        assert info.invoice_date == deterministic_clock.today()
        assert info.invoice_ids == tuple(sorted((i.id for i in invoices), key=str))

    def test_same_batch_key_returns_existing(self, service, session, factories, company, test_config):
        first = factories.invoice(company)
        second = factories.invoice(company)
        settings = load_company_settings(session, company.id, test_config)

        original = service.create_consolidated_invoice(settings, [first.id], "retry-key")
        again = service.create_consolidated_invoice(settings, [first.id, second.id], "retry-key")

        assert again.id == original.id
        assert again.invoice_count == 1
        count = session.execute(
            select(func.count()).select_from(ConsolidatedInvoiceModel).where(
                ConsolidatedInvoiceModel.batch_key == "retry-key",
            )
        ).scalar_one()
        assert count == 1

    def test_foreign_invoice_refused(self, service, session, factories, company, test_config):
        foreign = factories.invoice(factories.company())
        settings = load_company_settings(session, company.id, test_config)

        with pytest.raises(InvoiceNotFoundError):
            service.create_consolidated_invoice(settings, [foreign.id], "k2")

    def test_empty_batch_refused(self, service, session, company, test_config):
        settings = load_company_settings(session, company.id, test_config)

        with pytest.raises(ValueError):
            service.create_consolidated_invoice(settings, [], "k3")
