import uuid
from datetime import datetime

from sqlalchemy import JSON, Enum, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from weatherguard.database import Base, UTCDateTime
from weatherguard.enums import BookingStatus, SuggestedBy
from weatherguard.utils import utcnow


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    aircraft_type: Mapped[str | None] = mapped_column(String(100))
    scheduled_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    departure_lat: Mapped[float] = mapped_column(Float, nullable=False)
    departure_lon: Mapped[float] = mapped_column(Float, nullable=False)
    departure_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.SCHEDULED,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    @property
    def location_key(self) -> tuple[float, float]:
        return (self.departure_lat, self.departure_lon)

    @property
    def location_label(self) -> str:
        return f"({self.departure_lat:.4f}, {self.departure_lon:.4f})"


class RescheduleEvent(Base):
    __tablename__ = "reschedule_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    original_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    new_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    suggested_by: Mapped[SuggestedBy] = mapped_column(
        Enum(SuggestedBy, native_enum=False, length=20), nullable=False
    )
    ai_suggestions: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
