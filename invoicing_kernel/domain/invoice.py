"""
Invoice domain types (``invoicing_kernel.domain.invoice``).

Responsibility
--------------
The invoice status machine: the set of statuses, the only legal
transitions between them, and the status gates used by approval,
rejection, deletion and payment.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``INVOICE_TRANSITIONS`` defines every legal status change.  ``paid`` has
  no outgoing edge; ``payment_pending`` / ``processing`` only move on
  payment-collaborator callbacks, never on approve / reject / delete.
* Deletion is gated by an ALLOW-list.  A status added later is
  non-deletable until it is listed here explicitly.
* Soft deletion is not a status: it is the ``deleted_at`` stamp, and no
  transition applies to a deleted invoice.
"""

from __future__ import annotations

from enum import Enum


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""

    RECEIVED = "received"
    APPROVED = "approved"
    PROCESSING = "processing"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    REJECTED = "rejected"
    FAILED = "failed"


class InvoiceType(str, Enum):
    """Submitted by the contractor, or created on their behalf by an admin."""

    SERVICES = "services"
    OTHER = "other"


INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.RECEIVED: frozenset({
        InvoiceStatus.APPROVED,
        InvoiceStatus.REJECTED,
    }),
    InvoiceStatus.APPROVED: frozenset({
        InvoiceStatus.PAYMENT_PENDING,
        InvoiceStatus.REJECTED,
    }),
    InvoiceStatus.PAYMENT_PENDING: frozenset({
        InvoiceStatus.PROCESSING,
    }),
    InvoiceStatus.PROCESSING: frozenset({
        InvoiceStatus.PAID,
        InvoiceStatus.FAILED,
    }),
    InvoiceStatus.FAILED: frozenset({
        InvoiceStatus.PAYMENT_PENDING,
    }),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.REJECTED: frozenset(),
}

APPROVABLE_STATUSES: frozenset[InvoiceStatus] = frozenset({
    InvoiceStatus.RECEIVED,
    InvoiceStatus.APPROVED,
})

REJECTABLE_STATUSES: frozenset[InvoiceStatus] = frozenset({
    InvoiceStatus.RECEIVED,
    InvoiceStatus.APPROVED,
})

DELETABLE_STATUSES: frozenset[InvoiceStatus] = frozenset({
    InvoiceStatus.RECEIVED,
    InvoiceStatus.APPROVED,
    InvoiceStatus.REJECTED,
})

# Statuses the payment collaborator reports back
PAYMENT_CALLBACK_STATUSES: frozenset[InvoiceStatus] = frozenset({
    InvoiceStatus.PROCESSING,
    InvoiceStatus.PAID,
    InvoiceStatus.FAILED,
    InvoiceStatus.PAYMENT_PENDING,
})


def _coerce(status: InvoiceStatus | str) -> InvoiceStatus | None:
    try:
        return InvoiceStatus(status)
    except ValueError:
        return None


def can_transition(from_status: InvoiceStatus | str, to_status: InvoiceStatus | str) -> bool:
    """True iff ``from_status -> to_status`` is an edge of the machine."""
    source = _coerce(from_status)
    target = _coerce(to_status)
    if source is None or target is None:
        return False
    return target in INVOICE_TRANSITIONS.get(source, frozenset())


def is_deletable(status: InvoiceStatus | str) -> bool:
    """Allow-list check; unknown statuses are never deletable."""
    return _coerce(status) in DELETABLE_STATUSES


def is_approvable(status: InvoiceStatus | str) -> bool:
    return _coerce(status) in APPROVABLE_STATUSES


def is_rejectable(status: InvoiceStatus | str) -> bool:
    return _coerce(status) in REJECTABLE_STATUSES


def normalize_rejection_reason(reason: str | None) -> str | None:
    """A missing or empty reason is stored as NULL, never as ''; any other string verbatim."""
    if not reason:
        return None
    return reason
