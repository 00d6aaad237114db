import logging
from typing import Optional

from .entities import Location, Spot
from .errors import InvalidRecord, LocationNotFound, NotFound
from .store import Store

logger = logging.getLogger(__name__)

# everything else about a location is fixed once provisioned
UPDATABLE_LOCATION_FIELDS = {"hourly_rate", "rating", "review_count"}


class CatalogService:
    def __init__(self, store: Store):
        self.store = store

    async def create_location(self, data: dict) -> Location:
        location = await self.store.create(Location, data)
        logger.info("location %s provisioned: %s", location.id, location.name)
        return location

    async def list_locations(self) -> list[Location]:
        return await self.store.get_all_where(Location)

    async def get_location(self, location_id: int) -> Location:
        try:
            return await self.store.get(Location, location_id)
        except NotFound:
            raise LocationNotFound(f"Parking location {location_id} not found") from None

    async def update_location(self, location_id: int, fields: dict) -> Location:
        disallowed = set(fields) - UPDATABLE_LOCATION_FIELDS
        if disallowed:
            raise InvalidRecord(f"Location field(s) cannot be updated: {', '.join(sorted(disallowed))}")
        await self.get_location(location_id)
        return await self.store.update(Location, location_id, fields)

    async def create_spot(self, data: dict) -> Spot:
        if "location_id" in data:
            await self.get_location(data["location_id"])
        return await self.store.create(Spot, data)

    async def list_spots(self, location_id: Optional[int] = None) -> list[Spot]:
        if location_id is None:
            return await self.store.get_all_where(Spot)
        return await self.store.get_all_where(Spot, location_id=location_id)

    async def get_spot(self, spot_id: int) -> Spot:
        return await self.store.get(Spot, spot_id)
