"""Read-only selectors for the invoicing kernel."""

from invoicing_kernel.selectors.base import BaseSelector
from invoicing_kernel.selectors.invoice_selector import InvoiceSelector, approval_progress

__all__ = ["BaseSelector", "InvoiceSelector", "approval_progress"]
