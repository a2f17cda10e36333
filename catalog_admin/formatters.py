"""Number and price formatting for display values."""
import math
from typing import Optional, Union


def format_number(value: Union[int, float, str, None]) -> str:
    """Thousands-separated number; anything unparseable renders as '0'."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return '0'
    if math.isnan(number):
        return '0'
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.3f}".rstrip('0').rstrip('.')


def format_currency(value: Union[int, float], currency: str = '원') -> str:
    return f"{format_number(value)}{currency}"


def format_price(value: Optional[Union[int, float]]) -> str:
    """Price cell for listings; missing prices render as '-'."""
    if value is None:
        return '-'
    return format_currency(value)
