"""
Utility functions shared by the billing models and services.

Centralizes money rounding, calendar-month arithmetic and identifier parsing
so services do not each reimplement them.
"""

import uuid
from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional, Union

from dateutil.relativedelta import relativedelta
from django.utils import timezone

ZERO = Decimal('0.00')


def now() -> datetime:
    """
    Returns the current (naive, USE_TZ=False) timestamp. Useful for mocking/testing.
    """
    return timezone.now()


def round_decimal(value: Decimal, precision: str = '0.01') -> Decimal:
    """
    Rounds a Decimal to given precision using ROUND_HALF_UP method.

    Args:
        value (Decimal): The decimal number to round.
        precision (str): The decimal precision (default: 2 places).

    Returns:
        Decimal: Rounded decimal.
    """
    return value.quantize(Decimal(precision), rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Safely converts a number to Decimal for financial calculations.

    Args:
        value: Float, int, str or Decimal value.

    Returns:
        Decimal: Converted Decimal value, 0.00 when the value cannot be parsed.
    """
    try:
        return Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    except (ValueError, TypeError, InvalidOperation):
        return ZERO


def as_datetime(value: Union[date, datetime]) -> datetime:
    """
    Normalizes a date or datetime to a datetime (dates become midnight).
    """
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def add_months(value: Union[date, datetime], months: int) -> datetime:
    """
    Adds calendar months to a timestamp.

    The day is clamped to the end of the target month, so 2023-01-31 + 1 month
    is 2023-02-28 rather than rolling into March.
    """
    return as_datetime(value) + relativedelta(months=months)


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """
    Returns the UUID for value, or None when value is not a valid UUID.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None
