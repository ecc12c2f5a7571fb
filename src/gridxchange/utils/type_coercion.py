"""Type coercion utilities for records coming from stores, JSON and forms."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def safe_decimal(
    value: Any,
    default: Optional[Decimal] = None
) -> Optional[Decimal]:
    """
    Safely convert value to Decimal.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Decimal value or default

    Examples:
        >>> safe_decimal("4.0")
        Decimal('4.0')
        >>> safe_decimal(0.15)
        Decimal('0.15')
        >>> safe_decimal("abc")
        None
    """
    if value is None or value == "":
        return default

    if isinstance(value, Decimal):
        return value

    if isinstance(value, bool):
        return default

    try:
        if isinstance(value, float):
            # Convert to string first to avoid float precision issues
            return Decimal(str(value))
        elif isinstance(value, (int, str)):
            return Decimal(value)
        else:
            return Decimal(str(value))
    except (ValueError, TypeError, InvalidOperation):
        return default


def safe_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Safely convert value to float.

    Examples:
        >>> safe_float("40.7128")
        40.7128
        >>> safe_float(None)
        None
    """
    if value is None or value == "":
        return default

    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Naive values are taken to be UTC. A trailing "Z" is accepted.

    Raises:
        ValueError: If the value is not a datetime or ISO-8601 string
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Cannot parse timestamp from {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
