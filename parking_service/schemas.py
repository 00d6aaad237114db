from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel


class CreateLocation(BaseModel):
    name: str
    address: str
    latitude: float
    longitude: float
    total_spots: int
    hourly_rate: Decimal
    rating: Optional[float] = None
    review_count: int = 0
    has_metro_access: bool = True


class UpdateLocation(BaseModel):
    hourly_rate: Optional[Decimal] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None


class CreateSpot(BaseModel):
    location_id: int
    spot_number: str
    level: Optional[str] = None
    section: Optional[str] = None
    is_available: bool = True
    spot_type: Literal["standard", "accessible", "ev"] = "standard"


class CreateBookingRequest(BaseModel):
    location_id: int
    vehicle_id: int
    start_time: datetime
    end_time: datetime


class UpdateBookingRequest(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[Literal["pending", "confirmed", "canceled", "completed"]] = None
    is_favorite: Optional[bool] = None
    vehicle_id: Optional[int] = None


class CreateTransportBooking(BaseModel):
    transport_type_id: int
    parking_booking_id: Optional[int] = None
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    is_shared: bool = False
    amount: Optional[Decimal] = None


class FareQuote(BaseModel):
    hours: int
    hourly_rate: Decimal
    booking_fee: Decimal
    total_amount: Decimal
