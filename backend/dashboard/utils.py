"""
Shared utility functions.
"""

import logging
import uuid as uuid_mod
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def new_id() -> str:
    """Caller-assigned primary key for every entity."""
    return str(uuid_mod.uuid4())


def safe_error_detail(exc: Exception, fallback: str = "An internal error occurred. Please try again later.") -> str:
    """
    Return a sanitized error message safe for client consumption.
    Logs the real exception detail server-side.
    """
    logger.error(f"Operation failed: {exc}", exc_info=True)
    return fallback


def utcnow() -> datetime:
    """
    Return the current UTC time as a naive datetime (no tzinfo).
    Naive datetimes are used because our DB columns are TIMESTAMP WITHOUT TIME ZONE.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Convert a JSON number to a 2-place decimal, rounding half up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def safe_ratio(numerator: float | Decimal, denominator: float | Decimal) -> Decimal:
    """numerator / denominator as Decimal, or 0 when the denominator is 0."""
    if not denominator:
        return Decimal("0")
    return Decimal(str(numerator)) / Decimal(str(denominator))


# Largest value a Numeric(10, 2) column holds
NUMERIC_MAX = Decimal("99999999.99")


def fits_numeric(value: Decimal) -> bool:
    return value.is_finite() and abs(value) <= NUMERIC_MAX
