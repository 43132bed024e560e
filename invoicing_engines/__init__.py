"""
Module: invoicing_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by
    the invoicing kernel's services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import invoicing_kernel.domain / invoicing_kernel.db.types
    and invoicing_config.schema.  MUST NOT import services or models.

Invariants enforced:
    - Purity: engines NEVER read the clock; dates and years are passed in.
    - Integer minor units in and out; Decimal with explicit rounding inside.
    - Determinism: identical inputs always produce identical outputs.
"""

from invoicing_engines.approval import (
    QuorumEvaluation,
    evaluate_quorum,
    has_reached_quorum,
    is_payable_now,
    requires_payee_acceptance,
)
from invoicing_engines.equity import (
    EquityGrantSnapshot,
    EquitySplit,
    calculate_invoice_equity,
)
from invoicing_engines.fees import platform_fee_cents
from invoicing_engines.numbering import highest_invoice_number, next_admin_invoice_number
from invoicing_engines.tracer import traced_engine

__all__ = [
    "EquityGrantSnapshot",
    "EquitySplit",
    "QuorumEvaluation",
    "calculate_invoice_equity",
    "evaluate_quorum",
    "has_reached_quorum",
    "highest_invoice_number",
    "is_payable_now",
    "next_admin_invoice_number",
    "platform_fee_cents",
    "requires_payee_acceptance",
    "traced_engine",
]
