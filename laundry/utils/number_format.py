"""Number parsing utilities for form and JSON input."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal('0.01')


def to_decimal(value, default='0') -> Decimal:
    """
    Coerce user input (str, int, float, Decimal, None) to Decimal.

    Empty, unparsable or non-finite values (NaN, Infinity) fall back to
    ``default``. Floats go through ``str()`` first so 0.1 stays 0.1 instead
    of its binary expansion.

    Examples:
        to_decimal('12.5') -> Decimal('12.5')
        to_decimal(None) -> Decimal('0')
        to_decimal('NaN') -> Decimal('0')
        to_decimal('abc', default=None) -> None
    """
    fallback = Decimal(default) if default is not None else None

    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        return fallback

    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return fallback

    return number if number.is_finite() else fallback


def to_int(value, default=0) -> int:
    """Coerce input to int; floats and numeric strings are truncated, non-finite values give ``default``."""
    number = to_decimal(value, default=None)
    if number is None:
        return default
    return int(number)


def money(value) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# BIGINT primary keys
MAX_ID = 2 ** 63 - 1


def to_id(value):
    """Positive row id within BIGINT range, else None."""
    number = to_int(value, default=0)
    return number if 0 < number <= MAX_ID else None
