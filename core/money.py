"""
Money helpers. All fee and payment amounts are Decimal from the API boundary to the database.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings

from .exceptions import InvalidAmount

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')
# Matches DecimalField(max_digits=12, decimal_places=2)
MAX_AMOUNT = Decimal('9999999999.99')


def to_decimal(value, allow_negative=False, field='amount'):
    """
    Parse a string/int/Decimal amount into a 2dp Decimal. Floats go through str(),
    so 1999.99 stays 1999.99.
    Raises InvalidAmount for non-numeric input, more than two decimal places,
    out-of-range values, or (unless allowed) a negative value.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f'{field} must be a number')
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            raise InvalidAmount(f'{field} must be a number')
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f'{field} must be a number')
    if not result.is_finite():
        raise InvalidAmount(f'{field} must be a number')
    if result < 0 and not allow_negative:
        raise InvalidAmount(f'{field} must not be negative')
    if abs(result) > MAX_AMOUNT:
        raise InvalidAmount(f'{field} is too large')
    quantized = result.quantize(TWO_PLACES)
    if quantized != result:
        raise InvalidAmount(f'{field} must have at most 2 decimal places')
    return quantized


def quantize(amount):
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_currency(amount, prefix=None):
    """'Rs. 1500.00' style string used on invoices and in emails."""
    if prefix is None:
        prefix = getattr(settings, 'CURRENCY_PREFIX', 'Rs.')
    return f"{prefix} {quantize(amount):.2f}"
