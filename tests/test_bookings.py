import asyncio
import itertools
import unittest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from parking_service.availability import overlaps
from parking_service.bookings import BookingService
from parking_service.entities import Booking, Spot
from parking_service.errors import (
    BookingNotActive,
    Forbidden,
    InvalidInterval,
    InvalidRecord,
    LocationNotFound,
    NoAvailability,
    NotFound,
)

from tests.support import StoreBackendMixin, at


class BookingScenarios:
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.publisher = AsyncMock()
        self.bookings = BookingService(self.store, publisher=self.publisher)

    async def spot(self, spot_id):
        return await self.store.get(Spot, spot_id)

    async def test_book_single_spot_then_conflict(self):
        location, spots = await self.make_location(spots=1, hourly_rate=5)

        booking = await self.bookings.create_booking(1, 10, location.id, at(14), at(17))

        self.assertEqual(booking.total_amount, Decimal("16.5"))
        self.assertEqual(booking.status, "confirmed")
        self.assertEqual(booking.spot_id, spots[0].id)
        self.assertTrue(booking.booking_code.startswith("PARK-"))
        self.assertFalse((await self.spot(spots[0].id)).is_available)

        with self.assertRaises(NoAvailability):
            await self.bookings.create_booking(2, 20, location.id, at(15), at(16))

    async def test_cancel_releases_spot_for_new_booking(self):
        location, spots = await self.make_location(spots=1, hourly_rate=5)
        booking = await self.bookings.create_booking(1, 10, location.id, at(14), at(17))

        canceled = await self.bookings.cancel_booking(booking.id, 1)

        self.assertEqual(canceled.status, "canceled")
        self.assertTrue((await self.spot(spots[0].id)).is_available)
        again = await self.bookings.create_booking(2, 20, location.id, at(15), at(16))
        self.assertEqual(again.spot_id, spots[0].id)

    async def test_availability_excludes_booked_spot(self):
        location, (spot_a, spot_b) = await self.make_location(spots=2)
        first = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        self.assertEqual(first.spot_id, spot_a.id)

        free = await self.bookings.list_available_spots(location.id, at(9, 30), at(9, 45))

        self.assertEqual([s.id for s in free], [spot_b.id])

    async def test_empty_interval_is_rejected(self):
        location, _ = await self.make_location(spots=1)
        with self.assertRaises(InvalidInterval):
            await self.bookings.create_booking(1, 10, location.id, at(14), at(14))
        with self.assertRaises(InvalidInterval):
            await self.bookings.create_booking(1, 10, location.id, at(15), at(14))
        self.assertEqual(await self.store.get_all_where(Booking), [])

    async def test_iso_strings_are_accepted(self):
        location, _ = await self.make_location(spots=1, hourly_rate=4)
        booking = await self.bookings.create_booking(
            1, 10, location.id, "2030-05-01T08:00:00Z", "2030-05-01T09:15:00+00:00"
        )
        self.assertEqual(booking.start_time, at(8))
        self.assertEqual(booking.total_amount, Decimal("9.5"))

    async def test_concurrent_requests_claim_spot_once(self):
        location, _ = await self.make_location(spots=1)

        results = await asyncio.gather(
            self.bookings.create_booking(1, 10, location.id, at(14), at(17)),
            self.bookings.create_booking(2, 20, location.id, at(15), at(16)),
            return_exceptions=True,
        )

        confirmed = [r for r in results if isinstance(r, Booking)]
        rejected = [r for r in results if isinstance(r, NoAvailability)]
        self.assertEqual(len(confirmed), 1)
        self.assertEqual(len(rejected), 1)
        self.assertEqual(len(await self.store.get_all_where(Booking)), 1)

    async def test_many_concurrent_requests_fill_each_spot_once(self):
        location, spots = await self.make_location(spots=3)

        results = await asyncio.gather(
            *(self.bookings.create_booking(u, u, location.id, at(9), at(11)) for u in range(1, 7)),
            return_exceptions=True,
        )

        confirmed = [r for r in results if isinstance(r, Booking)]
        self.assertEqual(sorted(b.spot_id for b in confirmed), [s.id for s in spots])
        self.assertEqual(sum(isinstance(r, NoAvailability) for r in results), 3)

    async def test_touching_bookings_conflict(self):
        location, _ = await self.make_location(spots=1)
        await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        with self.assertRaises(NoAvailability):
            await self.bookings.create_booking(2, 20, location.id, at(10), at(11))
        with self.assertRaises(NoAvailability):
            await self.bookings.create_booking(2, 20, location.id, at(8), at(9))

        later = await self.bookings.create_booking(2, 20, location.id, at(10, 1), at(11))
        self.assertEqual(later.status, "confirmed")

    async def test_first_free_spot_in_creation_order(self):
        location, spots = await self.make_location(spots=3)
        picked = [
            (await self.bookings.create_booking(u, u, location.id, at(9), at(10))).spot_id
            for u in (1, 2, 3)
        ]
        self.assertEqual(picked, [s.id for s in spots])

    async def test_unknown_location_without_spots_has_no_availability(self):
        self.assertEqual(await self.bookings.list_available_spots(999, at(9), at(10)), [])
        with self.assertRaises(NoAvailability):
            await self.bookings.create_booking(1, 10, 999, at(9), at(10))

    async def test_spot_pointing_at_missing_location(self):
        orphan = await self.store.create(Spot, {"location_id": 42, "spot_number": "Z1"})

        with self.assertRaises(LocationNotFound):
            await self.bookings.create_booking(1, 10, 42, at(9), at(10))

        self.assertEqual(await self.store.get_all_where(Booking), [])
        self.assertTrue((await self.spot(orphan.id)).is_available)

    async def test_failed_flag_write_leaves_no_booking(self):
        location, spots = await self.make_location(spots=1)
        real_update = self.store.update

        async def failing_update(entity, record_id, fields):
            if entity is Spot:
                raise RuntimeError("disk full")
            return await real_update(entity, record_id, fields)

        with patch.object(self.store, "update", side_effect=failing_update):
            with self.assertRaises(RuntimeError):
                await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        self.assertEqual(await self.store.get_all_where(Booking), [])
        self.assertTrue((await self.spot(spots[0].id)).is_available)
        self.publisher.publish_event.assert_not_awaited()

    async def test_vehicle_is_not_validated(self):
        location, _ = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 123456, location.id, at(9), at(10))
        self.assertEqual(booking.vehicle_id, 123456)

    async def test_past_intervals_are_accepted(self):
        location, _ = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(
            1, 10, location.id, "2001-01-01T09:00:00Z", "2001-01-01T10:00:00Z"
        )
        self.assertEqual(booking.status, "confirmed")

    async def test_stale_flag_does_not_hide_free_spot(self):
        location, spots = await self.make_location(spots=1)
        await self.store.update(Spot, spots[0].id, {"is_available": False})

        free = await self.bookings.list_available_spots(location.id, at(9), at(10))
        self.assertEqual([s.id for s in free], [spots[0].id])

        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        self.assertEqual(booking.spot_id, spots[0].id)

    async def test_stale_true_flag_does_not_allow_double_booking(self):
        location, spots = await self.make_location(spots=1)
        await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.store.update(Spot, spots[0].id, {"is_available": True})

        with self.assertRaises(NoAvailability):
            await self.bookings.create_booking(2, 20, location.id, at(9, 30), at(10, 30))

    async def test_cancel_keeps_flag_while_other_bookings_remain(self):
        location, spots = await self.make_location(spots=1)
        morning = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        evening = await self.bookings.create_booking(1, 10, location.id, at(18), at(19))

        await self.bookings.cancel_booking(morning.id, 1)
        self.assertFalse((await self.spot(spots[0].id)).is_available)

        await self.bookings.cancel_booking(evening.id, 1)
        self.assertTrue((await self.spot(spots[0].id)).is_available)

    async def test_cancel_checks_existence_and_owner(self):
        location, spots = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        with self.assertRaises(NotFound):
            await self.bookings.cancel_booking(booking.id + 100, 1)
        with self.assertRaises(Forbidden):
            await self.bookings.cancel_booking(booking.id, 2)

        self.assertEqual((await self.store.get(Booking, booking.id)).status, "confirmed")
        self.assertFalse((await self.spot(spots[0].id)).is_available)

    async def test_second_cancel_fails_without_releasing_again(self):
        location, spots = await self.make_location(spots=1)
        first = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.cancel_booking(first.id, 1)
        second = await self.bookings.create_booking(2, 20, location.id, at(9), at(10))

        with self.assertRaises(BookingNotActive) as ctx:
            await self.bookings.cancel_booking(first.id, 1)

        self.assertIsInstance(ctx.exception, NotFound)
        self.assertFalse((await self.spot(spots[0].id)).is_available)
        self.assertEqual((await self.store.get(Booking, second.id)).status, "confirmed")

    async def test_modify_booking(self):
        location, _ = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        updated = await self.bookings.modify_booking(booking.id, 1, {"is_favorite": True, "vehicle_id": 11})

        self.assertTrue(updated.is_favorite)
        self.assertEqual(updated.vehicle_id, 11)
        self.assertEqual(updated.total_amount, booking.total_amount)

    async def test_modify_guards(self):
        location, _ = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        with self.assertRaises(Forbidden):
            await self.bookings.modify_booking(booking.id, 2, {"is_favorite": True})
        with self.assertRaises(InvalidRecord):
            await self.bookings.modify_booking(booking.id, 1, {"spot_id": 99})
        with self.assertRaises(InvalidRecord):
            await self.bookings.modify_booking(booking.id, 1, {"status": "lost"})
        with self.assertRaises(InvalidInterval):
            await self.bookings.modify_booking(booking.id, 1, {"end_time": at(8)})

    async def test_modify_times_skips_availability_check(self):
        location, _ = await self.make_location(spots=1)
        morning = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.create_booking(2, 20, location.id, at(12), at(13))

        moved = await self.bookings.modify_booking(morning.id, 1, {"start_time": at(12, 30), "end_time": at(13, 30)})

        self.assertEqual(moved.start_time, at(12, 30))
        self.assertEqual(moved.total_amount, morning.total_amount)

    async def test_modify_status_recomputes_flag(self):
        location, spots = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        await self.bookings.modify_booking(booking.id, 1, {"status": "completed"})

        self.assertTrue((await self.spot(spots[0].id)).is_available)
        free = await self.bookings.list_available_spots(location.id, at(9), at(10))
        self.assertEqual(len(free), 1)

    async def test_reactivating_rebooked_spot_is_refused(self):
        location, spots = await self.make_location(spots=1)
        first = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.cancel_booking(first.id, 1)
        second = await self.bookings.create_booking(2, 20, location.id, at(9), at(10))

        with self.assertRaises(NoAvailability):
            await self.bookings.modify_booking(first.id, 1, {"status": "confirmed"})

        self.assertEqual((await self.store.get(Booking, first.id)).status, "canceled")
        active = await self.store.get_all_where(Booking, spot_id=spots[0].id, status=("pending", "confirmed"))
        self.assertEqual([b.id for b in active], [second.id])
        self.assertFalse((await self.spot(spots[0].id)).is_available)

    async def test_reactivating_free_spot(self):
        location, spots = await self.make_location(spots=1)
        first = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.cancel_booking(first.id, 1)
        await self.bookings.create_booking(2, 20, location.id, at(14), at(15))

        restored = await self.bookings.modify_booking(first.id, 1, {"status": "confirmed"})

        self.assertEqual(restored.status, "confirmed")
        self.assertFalse((await self.spot(spots[0].id)).is_available)

        await self.bookings.cancel_booking(first.id, 1)
        with self.assertRaises(NoAvailability):
            await self.bookings.modify_booking(
                first.id, 1, {"status": "pending", "start_time": at(14, 30), "end_time": at(16)}
            )
        self.assertEqual((await self.store.get(Booking, first.id)).start_time, at(9))

    async def test_active_bookings_never_overlap(self):
        location, spots = await self.make_location(spots=2)
        windows = [(h, h + d) for h in range(6, 20, 2) for d in (1, 3)]
        for user, (start, end) in enumerate(windows, start=1):
            try:
                await self.bookings.create_booking(user, user, location.id, at(start), at(end))
            except NoAvailability:
                pass

        for spot in spots:
            active = [
                b for b in await self.store.get_all_where(Booking, spot_id=spot.id)
                if b.is_active
            ]
            self.assertTrue(active)
            for b1, b2 in itertools.combinations(active, 2):
                self.assertFalse(overlaps(b1.start_time, b1.end_time, b2.start_time, b2.end_time))

    async def test_events_published_after_commit(self):
        location, _ = await self.make_location(spots=1)
        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.cancel_booking(booking.id, 1)

        event_types = [c.args[0] for c in self.publisher.publish_event.await_args_list]
        self.assertEqual(event_types, ["parking_booking.created", "parking_booking.canceled"])
        payload = self.publisher.publish_event.await_args_list[0].args[1]
        self.assertEqual(payload["booking_id"], booking.id)
        self.assertEqual(payload["total_amount"], str(booking.total_amount))

    async def test_publish_failure_does_not_undo_booking(self):
        self.publisher.publish_event.side_effect = RuntimeError("broker down")
        location, _ = await self.make_location(spots=1)

        booking = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))

        self.assertEqual((await self.store.get(Booking, booking.id)).status, "confirmed")

    async def test_list_user_bookings(self):
        location, _ = await self.make_location(spots=2)
        mine = await self.bookings.create_booking(1, 10, location.id, at(9), at(10))
        await self.bookings.create_booking(2, 20, location.id, at(9), at(10))

        self.assertEqual([b.id for b in await self.bookings.list_user_bookings(1)], [mine.id])
        self.assertEqual((await self.bookings.get_booking(mine.id, 1)).id, mine.id)
        with self.assertRaises(Forbidden):
            await self.bookings.get_booking(mine.id, 2)


class TestBookingsInMemory(BookingScenarios, StoreBackendMixin, unittest.IsolatedAsyncioTestCase):
    backend = "memory"


class TestBookingsSql(BookingScenarios, StoreBackendMixin, unittest.IsolatedAsyncioTestCase):
    backend = "sql"


if __name__ == "__main__":
    unittest.main()
