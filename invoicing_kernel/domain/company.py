"""
Company settings snapshot (``invoicing_kernel.domain.company``).

Company-wide configuration (quorum, trust, payment setup, equity flag) is
read from the company row once at the start of every operation and passed
explicitly through the call chain.  There is no module-level cache, so two
concurrent requests for different companies can never see each other's
settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class CompanySettings:
    """Immutable per-operation view of a company's invoicing configuration."""

    company_id: UUID
    name: str
    email: str | None
    required_approval_count: int
    is_trusted: bool
    payment_method_ready: bool
    equity_compensation_enabled: bool

    def __post_init__(self) -> None:
        if self.required_approval_count < 1:
            raise ValueError(
                f"required_approval_count must be >= 1, got {self.required_approval_count}"
            )

    @property
    def pays_immediately(self) -> bool:
        """Approved-and-payable invoices move straight to payment."""
        return self.is_trusted and self.payment_method_ready
