from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PENDING = "pending"
CONFIRMED = "confirmed"
IN_PROGRESS = "in_progress"
CANCELED = "canceled"
COMPLETED = "completed"

# only these count toward spot conflicts
ACTIVE_STATUSES = (PENDING, CONFIRMED)

BookingStatus = Literal["pending", "confirmed", "canceled", "completed"]
TransportStatus = Literal["pending", "confirmed", "in_progress", "completed", "canceled"]
SpotType = Literal["standard", "accessible", "ev"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive values; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Record(BaseModel):
    """
    A stored entity. Every record gets its integer id from the store that
    created it; the remaining fields are validated on create and on update.
    """

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: int

    @field_validator("*", mode="after")
    @classmethod
    def _normalize_datetimes(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class Location(Record):
    name: str
    address: str
    latitude: float
    longitude: float
    total_spots: int
    hourly_rate: Decimal
    rating: Optional[float] = None
    review_count: int = 0
    has_metro_access: bool = True


class Spot(Record):
    location_id: int
    spot_number: str
    level: Optional[str] = None
    section: Optional[str] = None
    is_available: bool = True
    spot_type: SpotType = "standard"


class Vehicle(Record):
    user_id: int
    license_plate: str
    vehicle_type: str
    nickname: Optional[str] = None


class Booking(Record):
    user_id: int
    vehicle_id: int
    spot_id: int
    location_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus = PENDING
    booking_code: str
    total_amount: Decimal
    created_at: datetime = Field(default_factory=utcnow)
    is_favorite: bool = False

    @model_validator(mode="after")
    def _check_interval(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class TransportationType(Record):
    name: str
    icon: str
    base_rate: Decimal
    per_km_rate: Decimal


class TransportationBooking(Record):
    user_id: int
    transport_type_id: int
    parking_booking_id: Optional[int] = None
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    is_shared: bool = False
    status: TransportStatus = PENDING
    amount: Decimal
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status not in (CANCELED, COMPLETED)


ENTITIES = (Location, Spot, Vehicle, Booking, TransportationType, TransportationBooking)
