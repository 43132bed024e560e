"""
Module: invoicing_kernel.db.types
Responsibility: Annotated column type aliases and minor-unit money helpers.
    Centralizes precision and rounding so every model and engine converts
    between cents and Decimal the same way.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and engines.  MUST NOT import from any of those.

Invariants enforced:
    - Money is stored as integer minor units (cents).  No floats anywhere.
    - round_to_cents() is the ONLY sanctioned Decimal -> cents conversion,
      always ROUND_HALF_UP, so repeated calls with identical inputs agree.
"""

import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import BigInteger, Integer, Numeric, String

# Monetary amount in minor currency units
Cents = Annotated[int, BigInteger]

# Whole-number percentage (0-100)
Percentage = Annotated[int, Integer]

# Share price in major units with sub-cent precision
SharePrice = Annotated[Decimal, Numeric(20, 10)]

# Opaque client-facing identifier
ExternalId = Annotated[str, String(32)]

# Long text for descriptions / reasons
LongText = Annotated[str, String(4000)]


DEFAULT_ROUNDING = ROUND_HALF_UP
EXTERNAL_ID_BYTES = 12


def round_to_cents(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> int:
    """
    Round a Decimal amount already expressed in minor units to an int.

    Preconditions: value is a Decimal (never a float).
    Postconditions: Returns an int using the given rounding mode.

    Example:
        round_to_cents(Decimal("1234.5")) -> 1235
    """
    if not isinstance(value, Decimal):
        raise TypeError(f"round_to_cents requires Decimal, got {type(value).__name__}")
    return int(value.quantize(Decimal("1"), rounding=rounding))


def generate_external_id() -> str:
    """Return a new opaque, URL-safe external identifier."""
    return secrets.token_urlsafe(EXTERNAL_ID_BYTES)
