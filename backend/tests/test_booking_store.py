"""
Booking Store Tests

Persistence operations against in-memory SQLite.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import NOW, build_booking, build_student
from weatherguard.enums import AlertSeverity, BookingStatus, SuggestedBy, TrainingLevel
from weatherguard.models import RescheduleEvent
from weatherguard.services.booking_store import BookingStore
from weatherguard.services.exceptions import DataNotFoundError
from weatherguard.utils import utcnow


@pytest.fixture
def store():
    return BookingStore()


class TestBookingStore:
    """Tests for BookingStore."""

    async def test_create_and_fetch_booking(self, store, db):
        student = await store.create_student(
            db, name="Ana Ruiz", email="ana@example.com", phone=None, training_level=TrainingLevel.STUDENT_PILOT
        )
        booking = await store.create_booking(
            db,
            student_id=student.id,
            scheduled_date=NOW + timedelta(days=1),
            lat=40.0,
            lon=-105.0,
            location_name="Boulder (KBDU)",
            aircraft_type="C172",
        )

        fetched = await store.get_booking(db, booking.id)

        assert fetched.status is BookingStatus.SCHEDULED
        assert fetched.scheduled_date == NOW + timedelta(days=1)
        assert fetched.location_key == (40.0, -105.0)

    async def test_create_booking_for_unknown_student(self, store, db):
        with pytest.raises(DataNotFoundError):
            await store.create_booking(
                db, student_id=uuid.uuid4(), scheduled_date=NOW, lat=0, lon=0, location_name="Nowhere"
            )

    async def test_missing_records_raise_not_found(self, store, db):
        with pytest.raises(DataNotFoundError) as exc_info:
            await store.get_booking(db, uuid.uuid4())
        assert exc_info.value.to_dict()["error"] == "NOT_FOUND"

        with pytest.raises(DataNotFoundError):
            await store.get_student(db, uuid.uuid4())

    async def test_list_bookings_filters_status_and_window(self, store, db):
        student = build_student()
        early = build_booking(student, scheduled_date=NOW + timedelta(hours=1))
        late = build_booking(student, scheduled_date=NOW + timedelta(hours=30))
        cancelled = build_booking(student, scheduled_date=NOW + timedelta(hours=2), status=BookingStatus.CANCELLED)
        rescheduled = build_booking(student, scheduled_date=NOW + timedelta(hours=3), status=BookingStatus.RESCHEDULED)
        db.add_all([student, early, late, cancelled, rescheduled])
        await db.commit()

        scheduled = await store.list_bookings(db, [BookingStatus.SCHEDULED], NOW, NOW + timedelta(hours=24))
        active = await store.list_bookings(
            db, [BookingStatus.SCHEDULED, BookingStatus.RESCHEDULED], NOW, NOW + timedelta(hours=48)
        )

        assert [b.id for b in scheduled] == [early.id]
        assert [b.id for b in active] == [early.id, rescheduled.id, late.id]

    async def test_update_booking_status(self, store, db):
        student = build_student()
        booking = build_booking(student)
        db.add_all([student, booking])
        await db.commit()

        updated = await store.update_booking_status(db, booking.id, BookingStatus.COMPLETED)

        assert updated.status is BookingStatus.COMPLETED

    async def test_cancel_for_weather_records_placeholder_event(self, store, db):
        student = build_student()
        booking = build_booking(student)
        db.add_all([student, booking])
        await db.commit()

        event = await store.cancel_for_weather(db, booking)

        assert booking.status is BookingStatus.CANCELLED
        assert event.original_date == event.new_date == booking.scheduled_date
        assert event.suggested_by is SuggestedBy.SYSTEM

    async def test_reschedule_booking(self, store, db):
        student = build_student()
        booking = build_booking(student)
        original = booking.scheduled_date
        db.add_all([student, booking])
        await db.commit()

        updated, event = await store.reschedule_booking(db, booking.id, original + timedelta(days=2))

        assert updated.status is BookingStatus.RESCHEDULED
        assert updated.scheduled_date == original + timedelta(days=2)
        assert event.original_date == original
        assert event.suggested_by is SuggestedBy.STUDENT
        events = (await db.execute(select(RescheduleEvent))).scalars().all()
        assert len(events) == 1

    async def test_busy_schedule_is_future_scheduled_only(self, store, db):
        student = build_student()
        now = utcnow()
        future = [build_booking(student, scheduled_date=now + timedelta(hours=h)) for h in (5, 1, 3)]
        past = build_booking(student, scheduled_date=now - timedelta(hours=1))
        cancelled = build_booking(student, scheduled_date=now + timedelta(hours=2), status=BookingStatus.CANCELLED)
        db.add_all([student, past, cancelled, *future])
        await db.commit()

        busy = await store.list_upcoming_scheduled(db, limit=2)

        assert [b.scheduled_date for b in busy] == [now + timedelta(hours=1), now + timedelta(hours=3)]

    async def test_alerts_listed_newest_first_and_dismissible(self, store, db):
        student = build_student()
        booking = build_booking(student)
        db.add_all([student, booking])
        await db.commit()

        first = await store.add_alert(
            db, booking_id=booking.id, severity=AlertSeverity.LOW, message="first",
            location="(0.0000, 0.0000)", student_name=student.name, original_date=booking.scheduled_date,
        )
        second = await store.add_alert(
            db, booking_id=booking.id, severity=AlertSeverity.HIGH, message="second",
            location="(0.0000, 0.0000)", student_name=student.name, original_date=booking.scheduled_date,
        )

        assert [a.id for a in await store.list_active_alerts(db)] == [second.id, first.id]

        dismissed = await store.dismiss_alert(db, second.id)

        assert dismissed.dismissed_at is not None
        assert [a.id for a in await store.list_active_alerts(db)] == [first.id]
        with pytest.raises(DataNotFoundError):
            await store.dismiss_alert(db, uuid.uuid4())
