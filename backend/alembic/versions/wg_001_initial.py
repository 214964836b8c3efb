"""Initial schema: students, bookings, reschedule events, weather alerts

Revision ID: wg_001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "wg_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- students ---
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(50)),
        sa.Column("training_level", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- bookings ---
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("student_id", sa.Uuid, sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("aircraft_type", sa.String(100)),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("departure_lat", sa.Float, nullable=False),
        sa.Column("departure_lon", sa.Float, nullable=False),
        sa.Column("departure_name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_scheduled_date", "bookings", ["scheduled_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    # --- reschedule_events ---
    op.create_table(
        "reschedule_events",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("original_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("new_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("suggested_by", sa.String(20), nullable=False),
        sa.Column("ai_suggestions", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_reschedule_events_booking_id", "reschedule_events", ["booking_id"])

    # --- weather_alerts ---
    op.create_table(
        "weather_alerts",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_id", sa.Uuid, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=False),
        sa.Column("original_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("dismissed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_weather_alerts_booking_id", "weather_alerts", ["booking_id"])
    op.create_index("ix_weather_alerts_created_at", "weather_alerts", ["created_at"])


def downgrade() -> None:
    op.drop_table("weather_alerts")
    op.drop_table("reschedule_events")
    op.drop_table("bookings")
    op.drop_table("students")
