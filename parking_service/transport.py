import logging

from .availability import parse_time
from .entities import CANCELED, Booking, TransportationBooking, TransportationType
from .errors import BookingNotActive, Forbidden, InvalidInterval, InvalidRecord
from .fares import transport_fare
from .store import Store

logger = logging.getLogger(__name__)


class TransportService:
    """
    Last-mile rides booked alongside (or independently of) parking.

    Vehicle capacity is not modelled: any number of bookings may share a
    transport type and pickup time.
    """

    def __init__(self, store: Store, publisher=None):
        self.store = store
        self.publisher = publisher

    async def create_type(self, data: dict) -> TransportationType:
        return await self.store.create(TransportationType, data)

    async def list_types(self) -> list[TransportationType]:
        return await self.store.get_all_where(TransportationType)

    async def create_booking(self, user_id: int, data: dict) -> TransportationBooking:
        missing = [key for key in ("transport_type_id", "pickup_time") if data.get(key) is None]
        if missing:
            raise InvalidRecord(f"Missing TransportationBooking field(s): {', '.join(missing)}")
        try:
            pickup_time = parse_time(data["pickup_time"])
        except InvalidInterval:
            raise InvalidRecord(f"Invalid pickup_time: {data['pickup_time']!r}") from None

        ttype = await self.store.get(TransportationType, data["transport_type_id"])

        parking_booking_id = data.get("parking_booking_id")
        if parking_booking_id is not None:
            parking = await self.store.get(Booking, parking_booking_id)
            if parking.user_id != user_id:
                raise Forbidden("Parking booking belongs to another user")

        record = dict(data)
        record["user_id"] = user_id
        record["pickup_time"] = pickup_time
        if record.get("amount") is None:
            record["amount"] = transport_fare(ttype.base_rate, bool(data.get("is_shared")))

        booking = await self.store.create(TransportationBooking, record)
        logger.info(
            "transport booking %s: user=%s type=%s shared=%s amount=%s",
            booking.id, user_id, ttype.name, booking.is_shared, booking.amount,
        )
        await self._publish(
            "transport_booking.created",
            {"booking_id": booking.id, "user_id": user_id, "transport_type_id": ttype.id},
        )
        return booking

    async def list_user_bookings(self, user_id: int) -> list[TransportationBooking]:
        return await self.store.get_all_where(TransportationBooking, user_id=user_id)

    async def cancel_booking(self, booking_id: int, user_id: int) -> TransportationBooking:
        booking = await self.store.get(TransportationBooking, booking_id)
        if booking.user_id != user_id:
            raise Forbidden("Not authorized to cancel this booking")
        if not booking.is_active:
            raise BookingNotActive(f"Transport booking {booking_id} is already {booking.status}")
        return await self.store.update(TransportationBooking, booking_id, {"status": CANCELED})

    async def _publish(self, event_type: str, data: dict) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher.publish_event(event_type, data)
        except Exception:
            logger.exception("failed to publish %s", event_type)
