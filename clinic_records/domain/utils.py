"""Domain Utilities - date arithmetic and lenient input coercion.

These helpers are shared by the record models, the kind schemas and the
statistics aggregator. All timestamps in the domain are naive UTC.
"""

import math
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return the current time as a naive UTC datetime.

    Storage backends keep TIMESTAMP columns without a zone, so the domain
    drops tzinfo once here instead of at every comparison.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def add_years(value: datetime, years: int) -> datetime:
    """Add calendar years to a timestamp.

    February 29 maps to February 28 when the target year is not a leap year.

    Parameters:
        value: Starting timestamp
        years: Number of years to add (may be negative)

    Returns:
        Shifted timestamp with the same time of day
    """
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def coerce_count(value: Any) -> Any:
    """Parse a numeric form value, falling back to zero when unparsable.

    ``None`` is returned unchanged so that required/optional semantics stay
    with the model. Range checks (``ge=0`` etc.) run after this coercion.

    Parameters:
        value: Raw input (int, float, numeric string, or anything else)

    Returns:
        int parsed from the input, 0 when it cannot be parsed, or None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return 0
    if isinstance(value, float):
        # inf and nan are floats but not counts
        if not math.isfinite(value):
            return 0
        return int(value)
    return 0
