"""Parsing of loosely-typed store values into amounts and dates."""

import math
from datetime import date, datetime
from typing import Any

from findash.errors import InvalidAmount, InvalidDate


def parse_amount(value: Any, field: str = "amount") -> float | None:
    """Parse a monetary amount.

    Args:
        value: Number, numeric string (thousands separators allowed) or None
        field: Field name used in the error message

    Returns:
        The amount as float, or None when the value is missing (None or blank)

    Raises:
        InvalidAmount: If the value is present but not a finite number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} is not a valid amount: {value!r}", field=field)
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise InvalidAmount(f"{field} is not a valid amount: {value!r}", field=field) from None
    else:
        raise InvalidAmount(f"{field} is not a valid amount: {value!r}", field=field)

    if math.isnan(number) or math.isinf(number):
        raise InvalidAmount(f"{field} is not a finite amount: {value!r}", field=field)
    return number


def parse_date(value: Any, field: str = "date") -> date | None:
    """Parse a calendar date.

    Accepts ``date``, ``datetime`` and ISO 8601 strings (``YYYY-MM-DD`` or a
    full timestamp, in which case the date part is used).

    Returns:
        The date, or None when the value is missing (None or blank)

    Raises:
        InvalidDate: If the value is present but not a valid date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"{field} is not a valid date: {value!r}", field=field)

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidDate(f"{field} is not a valid date: {value!r}", field=field) from None
