"""
Kernel services -- the imperative shell.

All write services are flush-only: the caller owns the transaction.
"""

from invoicing_kernel.services.approval_service import InvoiceApprovalService
from invoicing_kernel.services.authority import AuthorityService
from invoicing_kernel.services.base import BaseService
from invoicing_kernel.services.bulk_operations import BulkInvoiceOperations
from invoicing_kernel.services.company_settings import load_company_settings
from invoicing_kernel.services.consolidated_invoice_service import (
    ConsolidatedInvoiceService,
)
from invoicing_kernel.services.delete_invoice import DeleteInvoiceService
from invoicing_kernel.services.integration_sync import DatabaseIntegrationSync
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService
from invoicing_kernel.services.notifications import LoggingNotifier
from invoicing_kernel.services.one_off_invoice_service import OneOffInvoiceService

__all__ = [
    "AuthorityService",
    "BaseService",
    "BulkInvoiceOperations",
    "ConsolidatedInvoiceService",
    "DatabaseIntegrationSync",
    "DeleteInvoiceService",
    "InvoiceApprovalService",
    "InvoiceLifecycleService",
    "LoggingNotifier",
    "OneOffInvoiceService",
    "load_company_settings",
]
