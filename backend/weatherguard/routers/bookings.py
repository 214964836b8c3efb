"""Bookings router: CRUD, reschedule suggestions and explicit rescheduling."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from weatherguard.database import get_db
from weatherguard.dependencies import (
    get_notification_bus,
    get_reschedule_service,
    get_store,
    get_weather_client,
)
from weatherguard.enums import SuggestedBy
from weatherguard.models import Booking
from weatherguard.schemas.booking import BookingResponse, CreateBooking, DepartureLocation
from weatherguard.schemas.reschedule import RescheduleRequest
from weatherguard.services.booking_store import BookingStore
from weatherguard.services.exceptions import ExternalServiceError
from weatherguard.services.notification_bus import NotificationBus
from weatherguard.services.reschedule_service import RescheduleService
from weatherguard.services.weather_client import WeatherClient
from weatherguard.utils import as_utc

logger = logging.getLogger(__name__)

router = APIRouter()


def _booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        student_id=booking.student_id,
        aircraft_type=booking.aircraft_type,
        scheduled_date=booking.scheduled_date,
        departure_location=DepartureLocation(
            lat=booking.departure_lat,
            lon=booking.departure_lon,
            name=booking.departure_name,
        ),
        status=booking.status,
        created_at=booking.created_at,
    )


@router.get("")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    bookings, total = await store.list_bookings_page(db, page=page, limit=limit)
    return {
        "bookings": [_booking_response(b) for b in bookings],
        "total": total,
        "page": page,
        "limit": limit,
    }


@router.post("", status_code=201, response_model=BookingResponse)
async def create_booking(
    req: CreateBooking,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    booking = await store.create_booking(
        db,
        student_id=req.student_id,
        scheduled_date=req.scheduled_date,
        lat=req.departure_location.lat,
        lon=req.departure_location.lon,
        location_name=req.departure_location.name,
        aircraft_type=req.aircraft_type,
    )
    logger.info(f"Booking {booking.id} created for {booking.scheduled_date.isoformat()}")
    return _booking_response(booking)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    return _booking_response(await store.get_booking(db, booking_id))


@router.get("/{booking_id}/reschedule-suggestions")
async def get_reschedule_suggestions(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
    weather: WeatherClient = Depends(get_weather_client),
    service: RescheduleService = Depends(get_reschedule_service),
):
    """Three alternative slots for a booking. Missing booking or student is a 404."""
    booking = await store.get_booking(db, booking_id)
    student = await store.get_student(db, booking.student_id)

    try:
        forecast = await weather.fetch_forecast(booking.departure_lat, booking.departure_lon)
    except ExternalServiceError as e:
        logger.warning(f"Forecast unavailable for booking {booking_id}, suggesting without it: {e}")
        forecast = []

    busy_schedule = await store.list_upcoming_scheduled(db)
    options = await service.suggest(booking, student, forecast, busy_schedule)
    return {"booking_id": str(booking.id), "options": [o.model_dump(mode="json") for o in options]}


@router.patch("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: uuid.UUID,
    req: RescheduleRequest,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
    bus: NotificationBus = Depends(get_notification_bus),
):
    booking = await store.get_booking(db, booking_id)
    student = await store.get_student(db, booking.student_id)

    suggested_by = SuggestedBy.STUDENT
    ai_suggestions = None
    if req.offered_options:
        new_date = as_utc(req.new_scheduled_date)
        if any(as_utc(o.date_time) == new_date for o in req.offered_options):
            suggested_by = SuggestedBy.AI
        ai_suggestions = {"options": [o.model_dump(mode="json") for o in req.offered_options]}

    booking, event = await store.reschedule_booking(
        db,
        booking_id,
        req.new_scheduled_date,
        suggested_by=suggested_by,
        ai_suggestions=ai_suggestions,
    )

    bus.publish_json({
        "type": "booking_rescheduled",
        "booking_id": str(booking.id),
        "old_date": event.original_date.isoformat(),
        "new_date": event.new_date.isoformat(),
        "student_name": student.name,
    })
    logger.info(f"Booking {booking.id} rescheduled to {event.new_date.isoformat()}")
    return _booking_response(booking)
