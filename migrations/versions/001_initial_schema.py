"""Initial schema: service categories, bookings, ratings.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


BOOKING_STATUSES = ("pending", "accepted", "in_progress", "completed", "cancelled")
SERVICE_KINDS = ("ride", "delivery", "errands", "moving")


def upgrade() -> None:
    # ── service_categories ────────────────────────────────────────────
    op.create_table(
        "service_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(*SERVICE_KINDS, name="service_kind"),
            nullable=False,
        ),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("base_price", sa.Float, nullable=False, server_default="0"),
        sa.Column("price_per_km", sa.Float, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=True),
        sa.Column(
            "service_category_id",
            sa.String(36),
            sa.ForeignKey("service_categories.id"),
            nullable=False,
        ),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("pickup_address", sa.String(255), nullable=False),
        sa.Column("pickup_h3_cell", sa.String(20), nullable=True),
        sa.Column("dropoff_lat", sa.Float, nullable=True),
        sa.Column("dropoff_lng", sa.Float, nullable=True),
        sa.Column("dropoff_address", sa.String(255), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*BOOKING_STATUSES, name="booking_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("distance_km", sa.Float, nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("surge_multiplier", sa.Float, nullable=False, server_default="1"),
        sa.Column("estimated_price", sa.Float, nullable=True),
        sa.Column("final_price", sa.Float, nullable=True),
        sa.Column("special_instructions", sa.Text, nullable=True),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("idempotency_key", sa.String(64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "(dropoff_lat IS NULL AND dropoff_lng IS NULL AND dropoff_address IS NULL)"
            " OR (dropoff_lat IS NOT NULL AND dropoff_lng IS NOT NULL"
            " AND dropoff_address IS NOT NULL)",
            name="ck_bookings_dropoff_all_or_nothing",
        ),
        sa.UniqueConstraint(
            "customer_id", "idempotency_key", name="uq_bookings_customer_idempotency"
        ),
    )
    op.create_index(
        "idx_bookings_status_created", "bookings", ["status", "created_at"]
    )
    op.create_index("idx_bookings_pickup_cell", "bookings", ["pickup_h3_cell"])
    op.create_index("idx_bookings_customer", "bookings", ["customer_id"])
    op.create_index("idx_bookings_provider", "bookings", ["provider_id"])

    # ── ratings ───────────────────────────────────────────────────────
    op.create_table(
        "ratings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "booking_id",
            sa.String(36),
            sa.ForeignKey("bookings.id"),
            nullable=False,
        ),
        sa.Column("rated_by", sa.String(64), nullable=False),
        sa.Column("rated_user", sa.String(64), nullable=False),
        sa.Column("score", sa.Integer, nullable=False),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("booking_id", "rated_by", name="uq_ratings_booking_rater"),
        sa.CheckConstraint("score BETWEEN 1 AND 5", name="ck_ratings_score_range"),
    )
    op.create_index("idx_ratings_rated_user", "ratings", ["rated_user"])


def downgrade() -> None:
    op.drop_table("ratings")
    op.drop_table("bookings")
    op.drop_table("service_categories")
    op.execute("DROP TYPE IF EXISTS booking_status")
    op.execute("DROP TYPE IF EXISTS service_kind")
