"""
Configuration schema (``invoicing_config.schema``).

Frozen dataclasses describing the parsed configuration.  Every section is
validated in ``__post_init__`` so an ``InvoicingConfig`` that exists is a
valid one.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ApprovalSettings:
    default_required_approval_count: int = 1

    def __post_init__(self) -> None:
        if self.default_required_approval_count < 1:
            raise ValueError(
                "approvals.default_required_approval_count must be >= 1, "
                f"got {self.default_required_approval_count}"
            )


@dataclass(frozen=True)
class EquityBounds:
    minimum_percentage: int = 0
    maximum_percentage: int = 100

    def __post_init__(self) -> None:
        if not 0 <= self.minimum_percentage <= self.maximum_percentage <= 100:
            raise ValueError(
                "equity bounds must satisfy 0 <= minimum <= maximum <= 100, got "
                f"{self.minimum_percentage}..{self.maximum_percentage}"
            )

    def contains(self, percentage: int) -> bool:
        return self.minimum_percentage <= percentage <= self.maximum_percentage


@dataclass(frozen=True)
class FeeSchedule:
    """Platform fee: base + total * basis points / 10000, capped."""

    base_cents: int = 50
    percent_basis_points: int = 150
    max_cents: int = 1500

    def __post_init__(self) -> None:
        if self.base_cents < 0 or self.percent_basis_points < 0:
            raise ValueError("fee schedule values must be non-negative")
        if self.max_cents < self.base_cents:
            raise ValueError("fees.max_cents must be >= fees.base_cents")


@dataclass(frozen=True)
class NumberingSettings:
    initial_admin_invoice_number: str = "O-0001"

    def __post_init__(self) -> None:
        if not any(ch.isdigit() for ch in self.initial_admin_invoice_number):
            raise ValueError(
                "numbering.initial_admin_invoice_number must contain digits"
            )


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class InvoicingConfig:
    """Complete, validated invoicing configuration."""

    approvals: ApprovalSettings
    equity: EquityBounds
    fees: FeeSchedule
    numbering: NumberingSettings
    database: DatabaseSettings
    checksum: str = ""
