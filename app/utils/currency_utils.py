"""
Currency Utilities
Exact conversions between wei (stored as decimal strings) and ether
"""

from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_FLOOR, ROUND_UP, localcontext
from typing import Any, Optional, Union

from web3 import Web3

from app.core.exceptions import ValidationError

WEI_PER_ETHER = 10 ** 18

# uint256 max has 78 decimal digits
WEI_KEY_WIDTH = 78
MAX_WEI = 2 ** 256 - 1

# MAX_WEI is about 1.16e59 ether
MAX_ETHER_EXPONENT = 59
WEI_EXPONENT = 18


def normalize_wei(value: Any, field_name: str = 'price_in_wei') -> str:
    """
    Validate a wei amount and return its canonical decimal string

    Args:
        value: int or string of digits
        field_name: Name used in error messages

    Returns:
        Decimal string without leading zeros

    Raises:
        ValidationError: If the value is not a non-negative integer in uint256 range
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a non-negative integer")

    if isinstance(value, int):
        amount = value
    else:
        text = str(value).strip()
        if not text.isdigit():
            raise ValidationError(f"{field_name} must be a non-negative integer")
        amount = int(text)

    if amount < 0 or amount > MAX_WEI:
        raise ValidationError(f"{field_name} is out of range")

    return str(amount)


def wei_sort_key(wei: Union[int, str]) -> str:
    """Fixed-width key whose lexicographic order matches numeric order"""
    return str(int(wei)).zfill(WEI_KEY_WIDTH)


def ether_to_wei(value: Any, rounding: str = ROUND_FLOOR, field_name: str = 'amount') -> int:
    """
    Convert a human ether amount into wei without floating point

    Args:
        value: Ether amount as string, int or Decimal
        rounding: Decimal rounding mode for sub-wei fractions
        field_name: Name used in error messages

    Returns:
        Integer wei amount
    """
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")

    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")

    if not amount:
        return 0

    # Bound the exponent before any arithmetic
    if amount.adjusted() > MAX_ETHER_EXPONENT:
        raise ValidationError(f"{field_name} is out of range")
    if amount.adjusted() < -WEI_EXPONENT:
        return 1 if rounding in (ROUND_CEILING, ROUND_UP) else 0

    try:
        with localcontext() as ctx:
            ctx.prec = 120
            wei = int((amount * WEI_PER_ETHER).to_integral_value(rounding=rounding))
    except (InvalidOperation, ArithmeticError):
        raise ValidationError(f"{field_name} is out of range")

    if wei > MAX_WEI:
        raise ValidationError(f"{field_name} is out of range")
    return wei


def ether_range_to_wei_keys(min_value: Optional[Any], max_value: Optional[Any]) -> dict:
    """
    Build an inclusive range condition on a padded wei key

    The lower bound rounds up and the upper bound rounds down so that
    sub-wei fractions never widen the range.
    """
    condition = {}
    if min_value not in (None, ''):
        condition['$gte'] = wei_sort_key(ether_to_wei(min_value, ROUND_CEILING, 'min_price'))
    if max_value not in (None, ''):
        condition['$lte'] = wei_sort_key(ether_to_wei(max_value, ROUND_FLOOR, 'max_price'))
    return condition


def wei_to_ether(wei: Union[int, str, None]) -> str:
    """Convert wei into a plain decimal ether string"""
    if wei in (None, ''):
        return '0'
    amount = Decimal(Web3.from_wei(int(wei), 'ether'))
    if amount == 0:
        return '0'
    return format(amount.normalize(), 'f')


def mean_wei(total: int, count: int) -> int:
    """Integer mean rounded half up"""
    if count <= 0:
        return 0
    return (2 * total + count) // (2 * count)
