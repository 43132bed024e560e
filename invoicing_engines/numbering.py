"""
invoicing_engines.numbering -- Next number for admin-created invoices.

Takes the contractor's highest existing admin invoice number, ranked by
the value of its last digit run so "O-10000" outranks "O-9999".  That
run is incremented keeping its zero-padded width; every other character
is left untouched:

    "O-0009"     -> "O-0010"
    "INV-7-099"  -> "INV-7-100"
    "O-9999"     -> "O-10000"

With no previous number, no digits, or a digit run that is all zeros, the
configured initial number is used.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_LAST_DIGIT_RUN = re.compile(r"(\d+)(?!.*\d)")


def next_admin_invoice_number(last_number: str | None, initial: str = "O-0001") -> str:
    if not last_number:
        return initial
    match = _LAST_DIGIT_RUN.search(last_number)
    if match is None:
        return initial
    digits = match.group(1)
    value = int(digits)
    if value == 0:
        return initial
    incremented = str(value + 1).zfill(len(digits))
    return last_number[: match.start(1)] + incremented + last_number[match.end(1):]


def _numeric_rank(number: str) -> tuple[int, str]:
    match = _LAST_DIGIT_RUN.search(number)
    return (int(match.group(1)) if match else -1, number)


def highest_invoice_number(numbers: Iterable[str]) -> str | None:
    """The number with the largest last digit run; None for no numbers."""
    return max(numbers, key=_numeric_rank, default=None)
