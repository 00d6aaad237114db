import logging
from datetime import datetime
from typing import Union

from dateutil import parser

from .entities import ACTIVE_STATUSES, Booking, Spot, as_utc
from .errors import InvalidInterval
from .store import Store

logger = logging.getLogger(__name__)

TimeInput = Union[str, datetime]


def parse_time(value: TimeInput) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(parser.isoparse(value))
    except (TypeError, ValueError):
        raise InvalidInterval(f"Invalid datetime: {value!r}") from None


def parse_interval(start: TimeInput, end: TimeInput) -> tuple[datetime, datetime]:
    s = parse_time(start)
    e = parse_time(end)
    if e <= s:
        raise InvalidInterval("end_time must be after start_time")
    return s, e


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def conflicts(booking: Booking, start: datetime, end: datetime) -> bool:
    """
    Whether an existing booking blocks [start, end) on its spot.

    Stricter than ``overlaps``: a booking that ends exactly when the request
    starts (or starts exactly when it ends) still counts.
    """
    return booking.start_time <= end and booking.end_time >= start


async def find_available_spots(
    store: Store,
    location_id: int,
    start: datetime,
    end: datetime,
) -> list[Spot]:
    """
    Spots at ``location_id`` with no conflicting active booking, in creation
    order. The cached ``is_available`` flag is never trusted for the decision.
    """
    spots = await store.get_all_where(Spot, location_id=location_id)
    if not spots:
        return []

    bookings = await store.get_all_where(
        Booking, location_id=location_id, status=ACTIVE_STATUSES
    )
    blocked = {b.spot_id for b in bookings if conflicts(b, start, end)}

    free = []
    for spot in spots:
        if spot.id in blocked:
            continue
        if not spot.is_available:
            logger.debug("spot %s flagged unavailable but free for %s..%s", spot.id, start, end)
        free.append(spot)
    return free
