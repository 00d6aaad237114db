from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "parking_locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("total_spots", sa.Integer(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=False),
        sa.Column("has_metro_access", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "parking_spots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("spot_number", sa.String(), nullable=False),
        sa.Column("level", sa.String(), nullable=True),
        sa.Column("section", sa.String(), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False),
        sa.Column("spot_type", sa.String(), nullable=False),
    )
    op.create_index("ix_parking_spots_location_id", "parking_spots", ["location_id"], unique=False)

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("license_plate", sa.String(), nullable=False),
        sa.Column("vehicle_type", sa.String(), nullable=False),
        sa.Column("nickname", sa.String(), nullable=True),
    )
    op.create_index("ix_vehicles_user_id", "vehicles", ["user_id"], unique=False)

    op.create_table(
        "parking_bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("spot_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("booking_code", sa.String(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_parking_bookings_user_id", "parking_bookings", ["user_id"], unique=False)
    op.create_index("ix_parking_bookings_spot_id", "parking_bookings", ["spot_id"], unique=False)
    op.create_index("ix_parking_bookings_location_id", "parking_bookings", ["location_id"], unique=False)
    op.create_index("ix_parking_bookings_status", "parking_bookings", ["status"], unique=False)

    op.create_table(
        "transportation_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("icon", sa.String(), nullable=False),
        sa.Column("base_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("per_km_rate", sa.Numeric(10, 2), nullable=False),
    )

    op.create_table(
        "transportation_bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("transport_type_id", sa.Integer(), nullable=False),
        sa.Column("parking_booking_id", sa.Integer(), nullable=True),
        sa.Column("pickup_location", sa.String(), nullable=False),
        sa.Column("dropoff_location", sa.String(), nullable=False),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_shared", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_transportation_bookings_user_id", "transportation_bookings", ["user_id"], unique=False)


def downgrade():
    op.drop_index("ix_transportation_bookings_user_id", table_name="transportation_bookings")
    op.drop_table("transportation_bookings")
    op.drop_table("transportation_types")
    op.drop_index("ix_parking_bookings_status", table_name="parking_bookings")
    op.drop_index("ix_parking_bookings_location_id", table_name="parking_bookings")
    op.drop_index("ix_parking_bookings_spot_id", table_name="parking_bookings")
    op.drop_index("ix_parking_bookings_user_id", table_name="parking_bookings")
    op.drop_table("parking_bookings")
    op.drop_index("ix_vehicles_user_id", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_index("ix_parking_spots_location_id", table_name="parking_spots")
    op.drop_table("parking_spots")
    op.drop_table("parking_locations")
