"""
Core utilities: hour and money arithmetic shared by the ledger services.
Hours and amounts are Decimals quantized to 0.01, like the database columns.
"""
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value):
    """Decimal(value) rounded half-up to 2 places. None -> 0.00."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def minutes_to_hours(minutes):
    """45 -> Decimal('0.75'); 50 -> Decimal('0.83')."""
    return quantize(Decimal(minutes or 0) / Decimal(60))


def amount_for_minutes(minutes, hour_price):
    """Price of `minutes` at `hour_price` per hour, computed before rounding."""
    return quantize(Decimal(minutes or 0) / Decimal(60) * Decimal(str(hour_price or 0)))
