"""
Tests for the pure approval quorum engine.

Tests cover:
- evaluate_quorum: reached / remaining, argument validation
- requires_payee_acceptance: admin-created invoices wait for the payee
- is_payable_now: status gate, pending approval allowance, failed retries
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from invoicing_engines.approval import (
    evaluate_quorum,
    has_reached_quorum,
    is_payable_now,
    requires_payee_acceptance,
)
from invoicing_kernel.domain.invoice import InvoiceStatus


class TestEvaluateQuorum:

    @pytest.mark.parametrize(
        "count,required,reached,remaining",
        [
            (0, 1, False, 1),
            (1, 1, True, 0),
            (1, 2, False, 1),
            (2, 2, True, 0),
            (3, 2, True, 0),
        ],
    )
    def test_quorum_thresholds(self, count, required, reached, remaining):
        evaluation = evaluate_quorum(count, required)

        assert evaluation.reached is reached
        assert evaluation.remaining == remaining
        assert has_reached_quorum(count, required) is reached

    def test_zero_required_rejected(self):
        with pytest.raises(ValueError, match="required_count"):
            evaluate_quorum(0, 0)

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError, match="approval_count"):
            evaluate_quorum(-1, 1)


class TestPayeeAcceptance:

    def test_self_submitted_invoice_needs_no_acceptance(self):
        user = uuid4()
        assert requires_payee_acceptance(user, user, None) is False

    def test_admin_created_invoice_waits_for_payee(self):
        assert requires_payee_acceptance(uuid4(), uuid4(), None) is True

    def test_accepted_invoice_no_longer_waits(self):
        accepted = datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert requires_payee_acceptance(uuid4(), uuid4(), accepted) is False


def payable(status, approval_count=0, required_count=1, approved_by_actor=False,
            awaiting_payee_acceptance=False):
    return is_payable_now(
        status,
        approval_count=approval_count,
        required_count=required_count,
        approved_by_actor=approved_by_actor,
        awaiting_payee_acceptance=awaiting_payee_acceptance,
    )


class TestIsPayableNow:

    def test_actor_approval_completes_quorum_of_one(self):
        assert payable(InvoiceStatus.RECEIVED) is True

    def test_actor_approval_completes_quorum_of_two(self):
        assert payable(InvoiceStatus.RECEIVED, approval_count=1, required_count=2) is True

    def test_two_missing_approvals_not_payable(self):
        assert payable(InvoiceStatus.RECEIVED, approval_count=0, required_count=2) is False

    def test_actor_already_approved_needs_full_quorum(self):
        assert payable(
            InvoiceStatus.RECEIVED,
            approval_count=1,
            required_count=2,
            approved_by_actor=True,
        ) is False

    def test_approved_invoice_with_quorum_is_payable(self):
        assert payable(
            InvoiceStatus.APPROVED,
            approval_count=2,
            required_count=2,
            approved_by_actor=True,
        ) is True

    def test_awaiting_payee_blocks_payment(self):
        assert payable(InvoiceStatus.RECEIVED, awaiting_payee_acceptance=True) is False

    def test_failed_invoice_can_be_retried(self):
        assert payable(InvoiceStatus.FAILED, approval_count=0, required_count=3) is True

    @pytest.mark.parametrize(
        "status",
        [
            InvoiceStatus.PAYMENT_PENDING,
            InvoiceStatus.PROCESSING,
            InvoiceStatus.PAID,
            InvoiceStatus.REJECTED,
        ],
    )
    def test_other_statuses_not_payable(self, status):
        assert payable(status, approval_count=5, required_count=1, approved_by_actor=True) is False

    def test_accepts_status_string(self):
        assert payable("received") is True
