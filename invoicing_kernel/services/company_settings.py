"""
Per-operation company settings loader.

Reads the company row and snapshots its invoicing configuration into a
``CompanySettings`` value.  Every top-level operation calls this once and
passes the result down explicitly.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from invoicing_config import get_active_config
from invoicing_config.schema import InvoicingConfig
from invoicing_kernel.domain.company import CompanySettings
from invoicing_kernel.exceptions import CompanyNotFoundError
from invoicing_kernel.models.company import CompanyModel


def effective_quorum(configured: int | None, config: InvoicingConfig) -> int:
    """Company quorum, falling back to the configured default; never below 1."""
    if configured is None or configured < 1:
        return max(config.approvals.default_required_approval_count, 1)
    return configured


def settings_from_company(
    company: CompanyModel, config: InvoicingConfig | None = None,
) -> CompanySettings:
    config = config or get_active_config()
    return CompanySettings(
        company_id=company.id,
        name=company.name,
        email=company.email,
        required_approval_count=effective_quorum(
            company.required_invoice_approval_count, config,
        ),
        is_trusted=company.is_trusted,
        payment_method_ready=company.payment_method_ready,
        equity_compensation_enabled=company.equity_compensation_enabled,
    )


def load_company_settings(
    session: Session,
    company_id: UUID,
    config: InvoicingConfig | None = None,
) -> CompanySettings:
    """Load ``CompanySettings`` for ``company_id``.

    Raises:
        CompanyNotFoundError: no such company.
    """
    company = session.get(CompanyModel, company_id)
    if company is None:
        raise CompanyNotFoundError(str(company_id))
    return settings_from_company(company, config)
