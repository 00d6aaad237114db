import asyncio
import tempfile
from datetime import datetime, timezone

from parking_shared.database import get_engine
from parking_service.catalog import CatalogService
from parking_service.memory_store import MemoryStore
from parking_service.sql_store import SqlStore


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2030, 5, day, hour, minute, tzinfo=timezone.utc)


class SlowMemoryStore(MemoryStore):
    """Returns each read only after yielding to the event loop, so results can go stale."""

    async def get_all_where(self, entity, **filters):
        rows = await super().get_all_where(entity, **filters)
        await asyncio.sleep(0.01)
        return rows


class StoreBackendMixin:
    """Gives each test a fresh store of the class's ``backend`` kind."""

    backend = "memory"

    async def asyncSetUp(self):
        self._tmp = None
        if self.backend == "memory":
            self.store = SlowMemoryStore()
        else:
            self._tmp = tempfile.TemporaryDirectory()
            engine = get_engine(f"sqlite+aiosqlite:///{self._tmp.name}/parking.db")
            self.store = SqlStore(engine)
            await self.store.create_all()
        self.catalog = CatalogService(self.store)

    async def asyncTearDown(self):
        await self.store.close()
        if self._tmp is not None:
            self._tmp.cleanup()

    async def make_location(self, spots: int = 1, hourly_rate=5, **overrides):
        data = {
            "name": "Central Metro Parking",
            "address": "123 Main Street, City Center",
            "latitude": 37.7749,
            "longitude": -122.4194,
            "total_spots": spots,
            "hourly_rate": hourly_rate,
        }
        data.update(overrides)
        location = await self.catalog.create_location(data)
        created = []
        for i in range(1, spots + 1):
            created.append(
                await self.catalog.create_spot(
                    {"location_id": location.id, "spot_number": f"A{i}", "level": "1", "section": "A"}
                )
            )
        return location, created
