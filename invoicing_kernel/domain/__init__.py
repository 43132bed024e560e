"""Pure domain types for the invoicing kernel."""

from invoicing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invoicing_kernel.domain.collaborators import (
    IntegrationSync,
    Notifier,
    PaymentCollaborator,
)
from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.domain.dtos import (
    ApprovalInfo,
    ApprovalOutcome,
    ApprovalProgress,
    BulkApprovalResult,
    ConsolidatedInvoiceInfo,
    ExpenseInfo,
    InvoiceCreatedEvent,
    InvoiceDetail,
    InvoiceInfo,
    InvoiceListItem,
    LineItemInfo,
)
from invoicing_kernel.domain.invoice import (
    APPROVABLE_STATUSES,
    DELETABLE_STATUSES,
    INVOICE_TRANSITIONS,
    REJECTABLE_STATUSES,
    InvoiceStatus,
    InvoiceType,
    can_transition,
    is_approvable,
    is_deletable,
    is_rejectable,
    normalize_rejection_reason,
)

__all__ = [
    "APPROVABLE_STATUSES",
    "ApprovalInfo",
    "ApprovalOutcome",
    "ApprovalProgress",
    "BulkApprovalResult",
    "Clock",
    "CompanySettings",
    "ConsolidatedInvoiceInfo",
    "DELETABLE_STATUSES",
    "DeterministicClock",
    "ExpenseInfo",
    "INVOICE_TRANSITIONS",
    "IntegrationSync",
    "InvoiceCreatedEvent",
    "InvoiceDetail",
    "InvoiceInfo",
    "InvoiceListItem",
    "InvoiceStatus",
    "InvoiceType",
    "LineItemInfo",
    "Notifier",
    "PaymentCollaborator",
    "REJECTABLE_STATUSES",
    "SystemClock",
    "can_transition",
    "is_approvable",
    "is_deletable",
    "is_rejectable",
    "normalize_rejection_reason",
]
