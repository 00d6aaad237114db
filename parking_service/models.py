from sqlalchemy import Boolean, Column, DateTime, Float, Integer, Numeric, String

from parking_shared.database import Base


class ParkingLocation(Base):
    __tablename__ = "parking_locations"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    total_spots = Column(Integer, nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    has_metro_access = Column(Boolean, nullable=False, default=True)


class ParkingSpot(Base):
    __tablename__ = "parking_spots"

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, nullable=False, index=True)
    spot_number = Column(String, nullable=False)
    level = Column(String, nullable=True)
    section = Column(String, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    spot_type = Column(String, nullable=False, default="standard")


class VehicleRow(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    license_plate = Column(String, nullable=False)
    vehicle_type = Column(String, nullable=False)
    nickname = Column(String, nullable=True)


class ParkingBooking(Base):
    __tablename__ = "parking_bookings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    vehicle_id = Column(Integer, nullable=False)
    spot_id = Column(Integer, nullable=False, index=True)
    location_id = Column(Integer, nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    status = Column(String, nullable=False, index=True)  # pending/confirmed/canceled/completed
    booking_code = Column(String, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    is_favorite = Column(Boolean, nullable=False, default=False)


class TransportationTypeRow(Base):
    __tablename__ = "transportation_types"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    base_rate = Column(Numeric(10, 2), nullable=False)
    per_km_rate = Column(Numeric(10, 2), nullable=False)


class TransportationBookingRow(Base):
    __tablename__ = "transportation_bookings"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    transport_type_id = Column(Integer, nullable=False)
    parking_booking_id = Column(Integer, nullable=True)
    pickup_location = Column(String, nullable=False)
    dropoff_location = Column(String, nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=False)
    is_shared = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False)  # pending/confirmed/in_progress/completed/canceled
    amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
