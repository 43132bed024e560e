"""
invoicing_engines.equity -- Pure cash / equity split calculator.

Responsibility:
    Convert an invoice's service amount and the contractor's equity
    election into equity cents, whole options and the remaining cash.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoicing_kernel.db.types helpers.

Invariants enforced:
    - Equity disabled company-wide: zero equity, full cash, whatever the
      requested percentage.
    - The returned percentage is the requested one, except that it drops
      to 0 when not even one whole option would be granted.  Callers
      compare it to the request and refuse on mismatch.
    - Insufficient unvested options returns ``None``; the calculator never
      clamps the election to what the grant can cover.
    - equity_cents + cash_cents == service_amount_cents.
    - Decimal arithmetic with explicit ROUND_HALF_UP; no floats.

Failure modes:
    - ValueError on a negative amount or a percentage outside 0..100.
    - ``None`` when the contractor's unvested equity cannot cover the
      election, or no share price is known for the invoice year.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from invoicing_engines.tracer import traced_engine
from invoicing_kernel.db.types import round_to_cents

ONE_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class EquityGrantSnapshot:
    """The contractor's grant for one year, as the calculator sees it."""

    year: int
    share_price_usd: Decimal
    unvested_options: int


@dataclass(frozen=True)
class EquitySplit:
    """Cash / equity breakdown of one invoice."""

    equity_percentage: int
    equity_cents: int
    equity_options: int
    cash_cents: int
    share_price_usd: Decimal | None = None

    @classmethod
    def all_cash(cls, service_amount_cents: int) -> EquitySplit:
        return cls(
            equity_percentage=0,
            equity_cents=0,
            equity_options=0,
            cash_cents=service_amount_cents,
        )


@traced_engine(
    "equity_split",
    "1.0",
    fingerprint_fields=(
        "service_amount_cents",
        "invoice_year",
        "equity_compensation_enabled",
        "equity_percentage",
        "grant",
        "fallback_share_price_usd",
    ),
)
def calculate_invoice_equity(
    *,
    service_amount_cents: int,
    invoice_year: int,
    equity_compensation_enabled: bool,
    equity_percentage: int,
    grant: EquityGrantSnapshot | None = None,
    fallback_share_price_usd: Decimal | None = None,
) -> EquitySplit | None:
    """Compute the split for ``equity_percentage`` of ``service_amount_cents``.

    The share price comes from the contractor's grant for ``invoice_year``
    (a grant for any other year is ignored) or, without one, from the
    company's fair market value ``fallback_share_price_usd``.  Without a
    grant there is no unvested pool to cap against.

    Returns:
        EquitySplit, or None when the unvested grant is too small or no
        price is available.
    """
    if service_amount_cents < 0:
        raise ValueError(
            f"service_amount_cents must be non-negative, got {service_amount_cents}"
        )
    if not 0 <= equity_percentage <= 100:
        raise ValueError(
            f"equity_percentage must be within 0..100, got {equity_percentage}"
        )

    if not equity_compensation_enabled or equity_percentage == 0:
        return EquitySplit.all_cash(service_amount_cents)

    if grant is not None and grant.year != invoice_year:
        grant = None

    share_price = grant.share_price_usd if grant is not None else fallback_share_price_usd
    if share_price is None or share_price <= 0:
        return None

    equity_cents = round_to_cents(
        Decimal(service_amount_cents) * Decimal(equity_percentage) / ONE_HUNDRED
    )
    equity_options = round_to_cents(Decimal(equity_cents) / (share_price * ONE_HUNDRED))

    if equity_options <= 0:
        # Not a single whole option: report zero so the caller can refuse
        return EquitySplit(
            equity_percentage=0,
            equity_cents=0,
            equity_options=0,
            cash_cents=service_amount_cents,
            share_price_usd=share_price,
        )

    if grant is not None and equity_options > grant.unvested_options:
        return None

    return EquitySplit(
        equity_percentage=equity_percentage,
        equity_cents=equity_cents,
        equity_options=equity_options,
        cash_cents=service_amount_cents - equity_cents,
        share_price_usd=share_price,
    )
