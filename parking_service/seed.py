import logging

from .catalog import CatalogService
from .transport import TransportService

logger = logging.getLogger(__name__)

DEMO_LOCATIONS = [
    {
        "location": {
            "name": "Central Metro Parking",
            "address": "123 Main Street, City Center",
            "latitude": 37.7749,
            "longitude": -122.4194,
            "total_spots": 50,
            "hourly_rate": 5,
            "rating": 4.5,
            "review_count": 128,
            "has_metro_access": True,
        },
        "prefix": "A", "count": 10, "level": "1",
    },
    {
        "location": {
            "name": "Westside Metro Parking",
            "address": "456 West Avenue, Downtown",
            "latitude": 37.7734,
            "longitude": -122.4314,
            "total_spots": 75,
            "hourly_rate": 4.5,
            "rating": 4.2,
            "review_count": 95,
            "has_metro_access": True,
        },
        "prefix": "B", "count": 15, "level": "2",
    },
    {
        "location": {
            "name": "Eastside Metro Parking",
            "address": "789 East Boulevard, City East",
            "latitude": 37.7854,
            "longitude": -122.4054,
            "total_spots": 40,
            "hourly_rate": 6,
            "rating": 4.7,
            "review_count": 112,
            "has_metro_access": True,
        },
        "prefix": "C", "count": 8, "level": "1",
    },
]

DEMO_TRANSPORT_TYPES = [
    {"name": "Cab", "icon": "car-side", "base_rate": 8, "per_km_rate": 2},
    {"name": "Shuttle", "icon": "shuttle-van", "base_rate": 4, "per_km_rate": 1},
    {"name": "E-Rickshaw", "icon": "bicycle", "base_rate": 3, "per_km_rate": 1},
]


async def seed_demo_data(catalog: CatalogService, transport: TransportService) -> bool:
    """Populate an empty store with demo locations, spots and ride types."""
    if await catalog.list_locations():
        return False

    for demo in DEMO_LOCATIONS:
        location = await catalog.create_location(demo["location"])
        for i in range(1, demo["count"] + 1):
            await catalog.create_spot(
                {
                    "location_id": location.id,
                    "spot_number": f"{demo['prefix']}{i}",
                    "level": demo["level"],
                    "section": demo["prefix"],
                    "is_available": True,
                    "spot_type": "standard",
                }
            )

    for ttype in DEMO_TRANSPORT_TYPES:
        await transport.create_type(ttype)

    logger.info("seeded %d demo locations", len(DEMO_LOCATIONS))
    return True
