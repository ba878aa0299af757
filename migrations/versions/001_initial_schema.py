"""Initial schema: users, vehicles, vehicle features and bookings.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("external_uid", sa.String(128), unique=True, nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False, server_default=""),
        sa.Column(
            "role",
            _enum("userrole", "passenger", "driver", "admin"),
            nullable=False,
            server_default="passenger",
        ),
        sa.Column(
            "auth_provider",
            _enum("authprovider", "email", "google"),
            nullable=False,
            server_default="email",
        ),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "profile_complete", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("driver_details", sa.JSON, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("idx_users_role", "users", ["role"])

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "type",
            _enum("vehicletype", "car", "ambulance", "truck", "motorcycle", "bus"),
            nullable=False,
        ),
        sa.Column("brand", sa.String(60), nullable=False),
        sa.Column("model", sa.String(60), nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("plate_number", sa.String(20), unique=True, nullable=False),
        sa.Column("color", sa.String(30), nullable=False),
        sa.Column("passenger_capacity", sa.Integer, nullable=False),
        sa.Column(
            "luggage_size",
            _enum("luggagesize", "small", "medium", "large", "extra-large"),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("base_price", sa.Float, nullable=False),
        sa.Column("price_per_km", sa.Float, nullable=False),
        sa.Column("price_per_hour", sa.Float, nullable=False),
        sa.Column("minimum_fare", sa.Float, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="BDT"),
        sa.Column("city", sa.String(80), nullable=False),
        sa.Column("area", sa.String(80), nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "is_available", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column("available_days", sa.JSON, nullable=False),
        sa.Column(
            "available_hours_start",
            sa.String(5),
            nullable=False,
            server_default="06:00",
        ),
        sa.Column(
            "available_hours_end", sa.String(5), nullable=False, server_default="22:00"
        ),
        sa.Column(
            "status",
            _enum("vehiclestatus", "pending", "approved", "rejected", "suspended"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_trips", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_earnings", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_distance", sa.Float, nullable=False, server_default="0"),
        sa.Column("rating_average", sa.Float, nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("documents", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("images", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("idx_vehicles_type", "vehicles", ["type"])
    op.create_index("idx_vehicles_location", "vehicles", ["city", "area"])
    op.create_index(
        "idx_vehicles_availability", "vehicles", ["is_active", "is_available"]
    )
    op.create_index("idx_vehicles_status", "vehicles", ["status"])
    op.create_index("idx_vehicles_driver", "vehicles", ["driver_id"])
    op.create_index("idx_vehicles_rating", "vehicles", ["rating_average"])
    op.create_index("idx_vehicles_price_per_km", "vehicles", ["price_per_km"])

    # ── vehicle_features ──────────────────────────────────────────────
    op.create_table(
        "vehicle_features",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id",
            sa.Integer,
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("feature", sa.String(32), nullable=False),
    )
    op.create_index("idx_vehicle_features_feature", "vehicle_features", ["feature"])
    op.create_index("idx_vehicle_features_vehicle", "vehicle_features", ["vehicle_id"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("pickup_address", sa.String(255), nullable=False),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("dropoff_address", sa.String(255), nullable=False),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("estimated_duration_min", sa.Float, nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("base_price", sa.Float, nullable=False),
        sa.Column("distance_price", sa.Float, nullable=False),
        sa.Column("time_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_price", sa.Float, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="BDT"),
        sa.Column(
            "status",
            _enum(
                "bookingstatus",
                "pending",
                "confirmed",
                "rejected",
                "started",
                "completed",
                "cancelled",
                "no_show",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("trip_start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("trip_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_distance_km", sa.Float, nullable=True),
        sa.Column("actual_duration_min", sa.Float, nullable=True),
        sa.Column("route", sa.JSON, nullable=False),
        sa.Column(
            "payment_method",
            _enum("paymentmethod", "cash", "card", "mobile_banking", "wallet"),
            nullable=False,
            server_default="cash",
        ),
        sa.Column(
            "payment_status",
            _enum("paymentstatus", "pending", "paid", "refunded", "failed"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("special_requests", sa.String(500), nullable=True),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("user_rating", sa.JSON, nullable=True),
        sa.Column("driver_rating", sa.JSON, nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column(
            "cancelled_by",
            _enum("cancelledby", "user", "driver", "admin"),
            nullable=True,
        ),
        sa.Column("booked_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("idx_bookings_user", "bookings", ["user_id", "created_at"])
    op.create_index("idx_bookings_driver", "bookings", ["driver_id", "created_at"])
    op.create_index(
        "idx_bookings_vehicle_schedule", "bookings", ["vehicle_id", "scheduled_at"]
    )
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_scheduled", "bookings", ["scheduled_at"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("vehicle_features")
    op.drop_table("vehicles")
    op.drop_table("users")
    for enum_name in (
        "cancelledby",
        "paymentstatus",
        "paymentmethod",
        "bookingstatus",
        "vehiclestatus",
        "luggagesize",
        "vehicletype",
        "authprovider",
        "userrole",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
