"""
invoicing_engines.fees -- Platform fee schedule.

    fee = min(base + total * basis_points // 10000, cap)

Integer arithmetic only; the fractional cent of the percentage part is
truncated.
"""

from __future__ import annotations

from invoicing_config.schema import FeeSchedule

BASIS_POINTS_DENOMINATOR = 10_000


def platform_fee_cents(total_amount_cents: int, schedule: FeeSchedule) -> int:
    """Fee charged for paying one invoice of ``total_amount_cents``."""
    if total_amount_cents < 0:
        raise ValueError(
            f"total_amount_cents must be non-negative, got {total_amount_cents}"
        )
    variable = total_amount_cents * schedule.percent_basis_points // BASIS_POINTS_DENOMINATOR
    return min(schedule.base_cents + variable, schedule.max_cents)
