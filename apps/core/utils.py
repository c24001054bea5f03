"""
Core utility functions for the AquaTrack billing service.

Contains the billing arithmetic used across the application.
All money and meter values use Python's Decimal for precision.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext

from django.conf import settings

# Set high precision for intermediate financial calculations
getcontext().prec = 28

TWO_PLACES = Decimal('0.01')


def to_decimal(value) -> Decimal:
    """
    Coerce a reading, rate or amount to Decimal.

    Floats go through ``str`` so 1.5 becomes Decimal('1.5'), not its
    binary expansion.

    Raises:
        ValueError: If the value is not numeric (NaN and infinity included).
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a number: {value!r}")
    return result


def standard_rate() -> Decimal:
    """The configured price per cubic metre."""
    return to_decimal(settings.BILLING['STANDARD_RATE'])


def calculate_consumption(previous_reading, current_reading) -> Decimal:
    """
    Consumption between two meter readings.

    consumption = current_reading - previous_reading

    Raises:
        ValueError: If the current reading does not exceed the previous one.
    """
    previous_reading = to_decimal(previous_reading)
    current_reading = to_decimal(current_reading)
    if current_reading <= previous_reading:
        raise ValueError(
            f"New reading ({current_reading}) is not greater than "
            f"the last reading ({previous_reading})."
        )
    return current_reading - previous_reading


def calculate_amount_due(consumption, rate) -> Decimal:
    """
    Amount owed for a consumption at a rate.

    amount_due = consumption * rate, quantized to 2 decimal places
    (ROUND_HALF_UP).
    """
    consumption = to_decimal(consumption)
    rate = to_decimal(rate)
    if rate < 0:
        raise ValueError("Rate cannot be negative.")
    return (consumption * rate).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_money(amount) -> str:
    """Render an amount with two decimals, e.g. 97.5 -> '97.50'."""
    return str(to_decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


# Largest value a numeric(12, 2) meter reading column holds
MAX_READING = Decimal('9999999999.99')


def to_reading(value) -> Decimal:
    """
    A meter reading as it is stored: rounded half-up to 2 decimal places.

    Raises:
        ValueError: If the value is not numeric or does not fit 12 digits.
    """
    reading = to_decimal(value)
    if abs(reading) > MAX_READING:
        raise ValueError(f"Reading {value} is out of range (maximum {MAX_READING}).")
    return reading.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
