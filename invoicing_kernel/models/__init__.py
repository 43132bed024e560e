"""SQLAlchemy ORM models for the invoicing kernel."""

from invoicing_kernel.models.company import CompanyAdministratorModel, CompanyModel
from invoicing_kernel.models.consolidated_invoice import (
    ConsolidatedInvoiceItemModel,
    ConsolidatedInvoiceModel,
)
from invoicing_kernel.models.contractor import CompanyContractorModel, EquityGrantModel
from invoicing_kernel.models.integration_record import IntegrationRecordModel
from invoicing_kernel.models.invoice import (
    InvoiceApprovalModel,
    InvoiceExpenseModel,
    InvoiceLineItemModel,
    InvoiceModel,
)
from invoicing_kernel.models.user import UserModel

__all__ = [
    "CompanyAdministratorModel",
    "CompanyContractorModel",
    "CompanyModel",
    "ConsolidatedInvoiceItemModel",
    "ConsolidatedInvoiceModel",
    "EquityGrantModel",
    "IntegrationRecordModel",
    "InvoiceApprovalModel",
    "InvoiceExpenseModel",
    "InvoiceLineItemModel",
    "InvoiceModel",
    "UserModel",
]
