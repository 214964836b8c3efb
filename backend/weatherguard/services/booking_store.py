"""Booking store: queries and state transitions for bookings, students and alerts."""

import logging
import uuid
from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from weatherguard.enums import AlertSeverity, BookingStatus, SuggestedBy, TrainingLevel
from weatherguard.models import Booking, RescheduleEvent, Student, WeatherAlert
from weatherguard.services.exceptions import DataNotFoundError
from weatherguard.utils import as_utc, utcnow

logger = logging.getLogger(__name__)

BUSY_SCHEDULE_LIMIT = 50
ALERT_LIST_LIMIT = 100


class BookingStore:
    """Persistence operations. Every method takes the caller's session."""

    # ─── Students ───

    async def get_student(self, db: AsyncSession, student_id: uuid.UUID) -> Student:
        student = await db.get(Student, student_id)
        if student is None:
            raise DataNotFoundError("Student", student_id)
        return student

    async def list_students(self, db: AsyncSession) -> list[Student]:
        result = await db.execute(select(Student).order_by(Student.name))
        return list(result.scalars().all())

    async def create_student(
        self,
        db: AsyncSession,
        *,
        name: str,
        email: str,
        phone: str | None,
        training_level: TrainingLevel,
    ) -> Student:
        student = Student(name=name, email=email, phone=phone, training_level=training_level)
        db.add(student)
        await db.commit()
        return student

    # ─── Bookings ───

    async def get_booking(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        booking = await db.get(Booking, booking_id)
        if booking is None:
            raise DataNotFoundError("Booking", booking_id)
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        statuses: Sequence[BookingStatus],
        start: datetime,
        end: datetime,
    ) -> list[Booking]:
        """Bookings in any of `statuses` scheduled within [start, end]."""
        result = await db.execute(
            select(Booking)
            .where(
                Booking.status.in_(list(statuses)),
                Booking.scheduled_date >= start,
                Booking.scheduled_date <= end,
            )
            .order_by(Booking.scheduled_date)
        )
        return list(result.scalars().all())

    async def list_bookings_page(
        self, db: AsyncSession, *, page: int, limit: int
    ) -> tuple[list[Booking], int]:
        total = (await db.execute(select(func.count(Booking.id)))).scalar() or 0
        result = await db.execute(
            select(Booking)
            .order_by(Booking.scheduled_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_upcoming_scheduled(
        self, db: AsyncSession, *, after: datetime | None = None, limit: int = BUSY_SCHEDULE_LIMIT
    ) -> list[Booking]:
        """The busy schedule: future SCHEDULED bookings, soonest first."""
        result = await db.execute(
            select(Booking)
            .where(
                Booking.status == BookingStatus.SCHEDULED,
                Booking.scheduled_date > (after or utcnow()),
            )
            .order_by(Booking.scheduled_date)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_booking(
        self,
        db: AsyncSession,
        *,
        student_id: uuid.UUID,
        scheduled_date: datetime,
        lat: float,
        lon: float,
        location_name: str,
        aircraft_type: str | None = None,
    ) -> Booking:
        await self.get_student(db, student_id)
        booking = Booking(
            student_id=student_id,
            scheduled_date=as_utc(scheduled_date),
            departure_lat=lat,
            departure_lon=lon,
            departure_name=location_name,
            aircraft_type=aircraft_type,
            status=BookingStatus.SCHEDULED,
        )
        db.add(booking)
        await db.commit()
        return booking

    async def update_booking_status(
        self, db: AsyncSession, booking_id: uuid.UUID, status: BookingStatus
    ) -> Booking:
        booking = await self.get_booking(db, booking_id)
        booking.status = status
        await db.commit()
        return booking

    async def add_reschedule_event(
        self,
        db: AsyncSession,
        *,
        booking_id: uuid.UUID,
        original_date: datetime,
        new_date: datetime,
        suggested_by: SuggestedBy,
        ai_suggestions: dict | None = None,
        commit: bool = True,
    ) -> RescheduleEvent:
        event = RescheduleEvent(
            booking_id=booking_id,
            original_date=original_date,
            new_date=new_date,
            suggested_by=suggested_by,
            ai_suggestions=ai_suggestions,
        )
        db.add(event)
        if commit:
            await db.commit()
        return event

    async def cancel_for_weather(self, db: AsyncSession, booking: Booking) -> RescheduleEvent:
        """Cancel a booking and record a placeholder reschedule event in one transaction.

        The event's new_date equals the original date until the student picks a new slot.
        """
        booking.status = BookingStatus.CANCELLED
        db.add(booking)
        event = await self.add_reschedule_event(
            db,
            booking_id=booking.id,
            original_date=booking.scheduled_date,
            new_date=booking.scheduled_date,
            suggested_by=SuggestedBy.SYSTEM,
            commit=False,
        )
        await db.commit()
        return event

    async def reschedule_booking(
        self,
        db: AsyncSession,
        booking_id: uuid.UUID,
        new_date: datetime,
        *,
        suggested_by: SuggestedBy = SuggestedBy.STUDENT,
        ai_suggestions: dict | None = None,
    ) -> tuple[Booking, RescheduleEvent]:
        booking = await self.get_booking(db, booking_id)
        original_date = booking.scheduled_date
        new_date = as_utc(new_date)

        booking.scheduled_date = new_date
        booking.status = BookingStatus.RESCHEDULED
        event = await self.add_reschedule_event(
            db,
            booking_id=booking.id,
            original_date=original_date,
            new_date=new_date,
            suggested_by=suggested_by,
            ai_suggestions=ai_suggestions,
            commit=False,
        )
        await db.commit()
        return booking, event

    # ─── Alerts ───

    async def add_alert(
        self,
        db: AsyncSession,
        *,
        booking_id: uuid.UUID,
        severity: AlertSeverity,
        message: str,
        location: str,
        student_name: str,
        original_date: datetime,
    ) -> WeatherAlert:
        alert = WeatherAlert(
            booking_id=booking_id,
            severity=severity,
            message=message,
            location=location,
            student_name=student_name,
            original_date=original_date,
            created_at=utcnow(),
        )
        db.add(alert)
        await db.commit()
        return alert

    async def list_active_alerts(self, db: AsyncSession, limit: int = ALERT_LIST_LIMIT) -> list[WeatherAlert]:
        result = await db.execute(
            select(WeatherAlert)
            .where(WeatherAlert.dismissed_at.is_(None))
            .order_by(WeatherAlert.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def dismiss_alert(self, db: AsyncSession, alert_id: uuid.UUID) -> WeatherAlert:
        alert = await db.get(WeatherAlert, alert_id)
        if alert is None:
            raise DataNotFoundError("Alert", alert_id)
        if alert.dismissed_at is None:
            alert.dismissed_at = utcnow()
            await db.commit()
        return alert


# Singleton
booking_store = BookingStore()
