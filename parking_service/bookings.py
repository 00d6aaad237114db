import logging
import secrets

from .availability import TimeInput, conflicts, find_available_spots, parse_interval, parse_time
from .entities import ACTIVE_STATUSES, CONFIRMED, CANCELED, Booking, Location, Spot
from .errors import BookingNotActive, Forbidden, InvalidInterval, InvalidRecord, LocationNotFound, NoAvailability, NotFound
from .fares import compute_fare
from .locks import LocalLocks, location_key
from .store import Store

logger = logging.getLogger(__name__)

MODIFIABLE_FIELDS = {"start_time", "end_time", "status", "is_favorite", "vehicle_id"}


def generate_booking_code() -> str:
    # shown to the user only; never used as a key
    return f"PARK-{secrets.token_hex(3).upper()}"


def booking_event(booking: Booking) -> dict:
    return {
        "booking_id": booking.id,
        "user_id": booking.user_id,
        "spot_id": booking.spot_id,
        "location_id": booking.location_id,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
        "status": booking.status,
        "booking_code": booking.booking_code,
        "total_amount": str(booking.total_amount),
    }


class BookingService:
    """
    Turns availability answers into bookings.

    Every mutation of a location's bookings or spot flags happens while the
    location's lock is held and inside one store transaction, so two callers
    can never both claim the same spot and a failed step leaves nothing
    behind. Events are published only after the transaction has committed.
    """

    def __init__(self, store: Store, locks=None, publisher=None):
        self.store = store
        self.locks = locks or LocalLocks()
        self.publisher = publisher

    async def list_available_spots(self, location_id: int, start_time: TimeInput, end_time: TimeInput) -> list[Spot]:
        start, end = parse_interval(start_time, end_time)
        return await find_available_spots(self.store, location_id, start, end)

    async def create_booking(
        self,
        user_id: int,
        vehicle_id: int,
        location_id: int,
        start_time: TimeInput,
        end_time: TimeInput,
    ) -> Booking:
        start, end = parse_interval(start_time, end_time)

        async with self.locks.hold(location_key(location_id)):
            async with self.store.transaction():
                await self.store.lock_location(location_id)

                spots = await find_available_spots(self.store, location_id, start, end)
                if not spots:
                    raise NoAvailability("No available parking spots for the selected time")
                spot = spots[0]

                try:
                    location = await self.store.get(Location, location_id)
                except NotFound:
                    raise LocationNotFound(f"Parking location {location_id} not found") from None

                booking = await self.store.create(
                    Booking,
                    {
                        "user_id": user_id,
                        "vehicle_id": vehicle_id,
                        "spot_id": spot.id,
                        "location_id": location_id,
                        "start_time": start,
                        "end_time": end,
                        "status": CONFIRMED,
                        "booking_code": generate_booking_code(),
                        "total_amount": compute_fare(start, end, location.hourly_rate),
                    },
                )
                await self.store.update(Spot, spot.id, {"is_available": False})

        logger.info(
            "booking %s confirmed: user=%s location=%s spot=%s %s..%s amount=%s",
            booking.id, user_id, location_id, spot.id, start.isoformat(), end.isoformat(), booking.total_amount,
        )
        await self._publish("parking_booking.created", booking)
        return booking

    async def get_booking(self, booking_id: int, user_id: int) -> Booking:
        booking = await self.store.get(Booking, booking_id)
        if booking.user_id != user_id:
            raise Forbidden("Not authorized to access this booking")
        return booking

    async def list_user_bookings(self, user_id: int) -> list[Booking]:
        return await self.store.get_all_where(Booking, user_id=user_id)

    async def cancel_booking(self, booking_id: int, user_id: int) -> Booking:
        booking = await self.get_booking(booking_id, user_id)

        async with self.locks.hold(location_key(booking.location_id)):
            async with self.store.transaction():
                # re-read under the lock; a concurrent cancel may have won
                booking = await self.store.get(Booking, booking_id)
                if not booking.is_active:
                    raise BookingNotActive(f"Booking {booking_id} is already {booking.status}")

                booking = await self.store.update(Booking, booking_id, {"status": CANCELED})
                await self._refresh_spot_flag(booking.spot_id)

        logger.info("booking %s canceled by user %s; spot %s released", booking_id, user_id, booking.spot_id)
        await self._publish("parking_booking.canceled", booking)
        return booking

    async def modify_booking(self, booking_id: int, user_id: int, fields: dict) -> Booking:
        """
        Partial update of a booking owned by ``user_id``.

        Moving the interval does not re-check availability and does not
        recompute the fare. Reactivating a canceled or completed booking
        fails with NoAvailability when its spot has been taken meanwhile.
        """
        booking = await self.get_booking(booking_id, user_id)

        disallowed = set(fields) - MODIFIABLE_FIELDS
        if disallowed:
            raise InvalidRecord(f"Booking field(s) cannot be modified: {', '.join(sorted(disallowed))}")

        changes = dict(fields)
        for key in ("start_time", "end_time"):
            if key in changes:
                changes[key] = parse_time(changes[key])
        start = changes.get("start_time", booking.start_time)
        end = changes.get("end_time", booking.end_time)
        if end <= start:
            raise InvalidInterval("end_time must be after start_time")

        async with self.locks.hold(location_key(booking.location_id)):
            async with self.store.transaction():
                await self.store.lock_location(booking.location_id)
                current = await self.store.get(Booking, booking_id)
                if not current.is_active and changes.get("status") in ACTIVE_STATUSES:
                    await self._check_spot_free(current, start, end)
                updated = await self.store.update(Booking, booking_id, changes)
                if "status" in changes:
                    await self._refresh_spot_flag(updated.spot_id)

        if "start_time" in changes or "end_time" in changes:
            logger.warning(
                "booking %s moved to %s..%s without an availability re-check",
                booking_id, start.isoformat(), end.isoformat(),
            )
        await self._publish("parking_booking.updated", updated)
        return updated

    async def _check_spot_free(self, booking: Booking, start, end) -> None:
        others = await self.store.get_all_where(Booking, spot_id=booking.spot_id, status=ACTIVE_STATUSES)
        if any(b.id != booking.id and conflicts(b, start, end) for b in others):
            raise NoAvailability(f"Spot {booking.spot_id} was re-booked; booking {booking.id} cannot be reactivated")

    async def _refresh_spot_flag(self, spot_id: int) -> None:
        active = await self.store.get_all_where(Booking, spot_id=spot_id, status=ACTIVE_STATUSES)
        await self.store.update(Spot, spot_id, {"is_available": not active})

    async def _publish(self, event_type: str, booking: Booking) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher.publish_event(event_type, booking_event(booking))
        except Exception:
            logger.exception("failed to publish %s for booking %s", event_type, booking.id)
