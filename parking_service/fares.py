from datetime import datetime, timedelta
from decimal import Decimal

from .errors import InvalidInterval

# flat fee added to every parking booking
BOOKING_FEE = Decimal("1.5")

# private (non-shared) rides cost this much on top of the base rate
PRIVATE_RIDE_PREMIUM = Decimal("4")

ONE_HOUR = timedelta(hours=1)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def billable_hours(start: datetime, end: datetime) -> int:
    """Whole hours between start and end, partial hours rounded up."""
    duration = end - start
    if duration < timedelta(0):
        raise InvalidInterval("Duration cannot be negative")
    hours, remainder = divmod(duration, ONE_HOUR)
    return hours + (1 if remainder else 0)


def fare(hours: int, hourly_rate) -> Decimal:
    if hours < 0:
        raise InvalidInterval("Duration cannot be negative")
    return hours * to_decimal(hourly_rate) + BOOKING_FEE


def compute_fare(start: datetime, end: datetime, hourly_rate) -> Decimal:
    return fare(billable_hours(start, end), hourly_rate)


def transport_fare(base_rate, is_shared: bool) -> Decimal:
    rate = to_decimal(base_rate)
    if is_shared:
        return rate
    return rate + PRIVATE_RIDE_PREMIUM
