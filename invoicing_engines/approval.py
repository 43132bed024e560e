"""
invoicing_engines.approval -- Pure quorum and payable-now evaluation.

Responsibility:
    Decide, from counts and flags alone, whether an invoice has reached
    its approval quorum and whether it can be paid right now from a given
    administrator's point of view.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoicing_kernel.domain types.

Invariants enforced:
    - Quorum counts approvals only; which administrators approved and in
      what order does not matter.
    - ``failed`` invoices are always payable now (payment retry).
    - Invoices awaiting payee acceptance are never payable now.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from invoicing_kernel.domain.invoice import InvoiceStatus

_PAYABLE_PRE_PAYMENT = frozenset({InvoiceStatus.RECEIVED, InvoiceStatus.APPROVED})


@dataclass(frozen=True)
class QuorumEvaluation:
    """Result of evaluating approvals against a quorum."""

    approval_count: int
    required_count: int

    @property
    def reached(self) -> bool:
        return self.approval_count >= self.required_count

    @property
    def remaining(self) -> int:
        return max(self.required_count - self.approval_count, 0)


def evaluate_quorum(approval_count: int, required_count: int) -> QuorumEvaluation:
    """Evaluate ``approval_count`` against ``required_count`` (>= 1)."""
    if required_count < 1:
        raise ValueError(f"required_count must be >= 1, got {required_count}")
    if approval_count < 0:
        raise ValueError(f"approval_count must be >= 0, got {approval_count}")
    return QuorumEvaluation(approval_count=approval_count, required_count=required_count)


def has_reached_quorum(approval_count: int, required_count: int) -> bool:
    return evaluate_quorum(approval_count, required_count).reached


def requires_payee_acceptance(
    created_by_id: UUID,
    payee_user_id: UUID,
    accepted_at: datetime | None,
) -> bool:
    """An admin-created invoice waits for the payee until accepted."""
    return created_by_id != payee_user_id and accepted_at is None


def is_payable_now(
    status: InvoiceStatus | str,
    *,
    approval_count: int,
    required_count: int,
    approved_by_actor: bool,
    awaiting_payee_acceptance: bool,
) -> bool:
    """Whether an administrator can send the invoice to payment right now.

    An administrator who has not approved yet counts as the approval
    their pay-now action would add, so a single missing approval is
    enough in that case.
    """
    status = InvoiceStatus(status)
    if status == InvoiceStatus.FAILED:
        return True
    if status not in _PAYABLE_PRE_PAYMENT:
        return False
    if awaiting_payee_acceptance:
        return False
    allowance = 0 if approved_by_actor else 1
    return required_count - approval_count <= allowance
