"""
Formatting helpers for invoices and API output.
Amounts use Indian digit grouping (12,34,567.89) and the rupee sign.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


def num_in(value: Union[int, float, Decimal, str, None], decimals: int = 2) -> str:
    """
    Format a number with Indian grouping: last three digits, then pairs.

    Examples:
        num_in(1500) -> "1,500.00"
        num_in(1234567.5) -> "12,34,567.50"
        num_in(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    num = num.quantize(Decimal(10) ** -decimals)
    negative = num < 0
    integer_part, _, decimal_part = f"{abs(num):f}".partition('.')

    if len(integer_part) > 3:
        head, tail = integer_part[:-3], integer_part[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        integer_part = ','.join(pairs + [tail])

    result = f"{integer_part}.{decimal_part}" if decimals else integer_part
    return f"-{result}" if negative else result


def money_in(value: Union[int, float, Decimal, str, None], symbol: str = "₹") -> str:
    """Format an amount in rupees: money_in(1500) -> "₹1,500.00"."""
    formatted = num_in(value)
    if formatted == "-":
        return formatted
    if formatted.startswith('-'):
        return f"-{symbol}{formatted[1:]}"
    return f"{symbol}{formatted}"


def date_in(value: Optional[Union[date, datetime]]) -> str:
    """Format as dd/mm/yyyy."""
    if not value:
        return "-"
    return value.strftime('%d/%m/%Y')


def weight_kg(value: Union[int, float, Decimal, str, None]) -> str:
    """Format a weight without trailing zeros: weight_kg(Decimal('5.50')) -> "5.5kg"."""
    if value is None or value == "":
        return "-"
    try:
        num = Decimal(str(value)).normalize()
    except (InvalidOperation, ValueError, TypeError):
        return "-"
    return f"{num:f}kg"
