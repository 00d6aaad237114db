from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status

from .availability import parse_interval
from .bookings import BookingService
from .catalog import CatalogService
from .entities import Booking, Location, Spot, TransportationBooking, TransportationType
from .fares import BOOKING_FEE, billable_hours, fare
from .schemas import (
    CreateBookingRequest,
    CreateLocation,
    CreateSpot,
    CreateTransportBooking,
    FareQuote,
    UpdateBookingRequest,
    UpdateLocation,
)
from .transport import TransportService

router = APIRouter()


def get_bookings(request: Request) -> BookingService:
    return request.app.state.bookings


def get_catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


def get_transport(request: Request) -> TransportService:
    return request.app.state.transport


def get_user_id(request: Request, x_user_sub: Optional[str] = Header(None)) -> int:
    # set by the API gateway after it has verified the token
    if not x_user_sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    try:
        user_id = int(x_user_sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user identity")
    request.state.user_sub = user_id
    return user_id


# ================= LOCATIONS =================

@router.get("/parking/locations", response_model=List[Location])
async def list_locations(catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_locations()


@router.post("/parking/locations", response_model=Location, status_code=201)
async def create_location(data: CreateLocation, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.create_location(data.model_dump())


@router.get("/parking/locations/{location_id}", response_model=Location)
async def get_location(location_id: int, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get_location(location_id)


@router.patch("/parking/locations/{location_id}", response_model=Location)
async def update_location(location_id: int, data: UpdateLocation, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.update_location(location_id, data.model_dump(exclude_unset=True))


@router.get("/parking/locations/{location_id}/availability", response_model=List[Spot])
async def location_availability(
    location_id: int,
    start_time: str,
    end_time: str,
    bookings: BookingService = Depends(get_bookings),
):
    return await bookings.list_available_spots(location_id, start_time, end_time)


# ================= SPOTS =================

@router.get("/parking/spots", response_model=List[Spot])
async def list_spots(location_id: Optional[int] = None, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.list_spots(location_id)


@router.post("/parking/spots", response_model=Spot, status_code=201)
async def create_spot(data: CreateSpot, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.create_spot(data.model_dump())


@router.get("/parking/spots/{spot_id}", response_model=Spot)
async def get_spot(spot_id: int, catalog: CatalogService = Depends(get_catalog)):
    return await catalog.get_spot(spot_id)


# ================= BOOKINGS =================

@router.get("/bookings", response_model=List[Booking])
async def list_bookings(user_id: int = Depends(get_user_id), bookings: BookingService = Depends(get_bookings)):
    return await bookings.list_user_bookings(user_id)


@router.post("/bookings", response_model=Booking, status_code=201)
async def create_booking(
    data: CreateBookingRequest,
    user_id: int = Depends(get_user_id),
    bookings: BookingService = Depends(get_bookings),
):
    return await bookings.create_booking(
        user_id, data.vehicle_id, data.location_id, data.start_time, data.end_time
    )


@router.get("/bookings/{booking_id}", response_model=Booking)
async def get_booking(booking_id: int, user_id: int = Depends(get_user_id), bookings: BookingService = Depends(get_bookings)):
    return await bookings.get_booking(booking_id, user_id)


@router.patch("/bookings/{booking_id}", response_model=Booking)
async def modify_booking(
    booking_id: int,
    data: UpdateBookingRequest,
    user_id: int = Depends(get_user_id),
    bookings: BookingService = Depends(get_bookings),
):
    return await bookings.modify_booking(booking_id, user_id, data.model_dump(exclude_unset=True))


@router.delete("/bookings/{booking_id}", status_code=204)
async def cancel_booking(booking_id: int, user_id: int = Depends(get_user_id), bookings: BookingService = Depends(get_bookings)):
    await bookings.cancel_booking(booking_id, user_id)
    return Response(status_code=204)


# ================= TRANSPORTATION =================

@router.get("/transportation/types", response_model=List[TransportationType])
async def list_transport_types(transport: TransportService = Depends(get_transport)):
    return await transport.list_types()


@router.get("/transportation/bookings", response_model=List[TransportationBooking])
async def list_transport_bookings(user_id: int = Depends(get_user_id), transport: TransportService = Depends(get_transport)):
    return await transport.list_user_bookings(user_id)


@router.post("/transportation/bookings", response_model=TransportationBooking, status_code=201)
async def create_transport_booking(
    data: CreateTransportBooking,
    user_id: int = Depends(get_user_id),
    transport: TransportService = Depends(get_transport),
):
    return await transport.create_booking(user_id, data.model_dump())


@router.delete("/transportation/bookings/{booking_id}", status_code=204)
async def cancel_transport_booking(
    booking_id: int,
    user_id: int = Depends(get_user_id),
    transport: TransportService = Depends(get_transport),
):
    await transport.cancel_booking(booking_id, user_id)
    return Response(status_code=204)


# ================= FARES =================

@router.get("/fares", response_model=FareQuote)
async def quote_fare(start_time: str, end_time: str, hourly_rate: Decimal):
    start, end = parse_interval(start_time, end_time)
    hours = billable_hours(start, end)
    return FareQuote(
        hours=hours,
        hourly_rate=hourly_rate,
        booking_fee=BOOKING_FEE,
        total_amount=fare(hours, hourly_rate),
    )
