"""
Money helpers
The platform takes integer minor units (cents); everything shown to people is
dollars. Conversions go through Decimal so no float error reaches either side.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENT = Decimal('0.01')


def to_decimal(value):
    """Parse a price (int, float, str or Decimal) into Decimal"""
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    try:
        # str() first so 0.1 becomes Decimal('0.1'), not its binary expansion
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid price: {value!r}")


def to_cents(price):
    """
    Convert a decimal currency amount to a non-negative integer number of cents

    Fractional cents are rounded half-up before conversion.

    Raises:
        ValueError: If the price is not numeric or is negative
    """
    amount = to_decimal(price)
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {price!r}")
    if amount < 0:
        raise ValueError(f"Price cannot be negative: {price!r}")
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_cents(amount):
    """Convert integer cents (or None) to Decimal dollars"""
    if amount is None:
        return None
    return (Decimal(int(amount)) / 100).quantize(CENT)


def money(amount_cents, currency):
    """Platform money object"""
    return {'amount': int(amount_cents), 'currency': currency}


def format_currency(amount_cents):
    """Format integer cents as $1,234.56"""
    return f"${from_cents(amount_cents):,.2f}"


def money_amount(money_obj):
    """Dollar amount of a platform money object, or None"""
    if not money_obj or money_obj.get('amount') is None:
        return None
    return from_cents(money_obj['amount'])
