"""Weather monitoring sweeps: conflict cancellation and graded alerts.

Two periodic sweeps share the booking store and the notification bus:

- check_all_flights: SCHEDULED bookings in the next 48h are re-evaluated
  against current weather; unsafe ones are cancelled and announced.
- generate_weather_alerts: SCHEDULED and RESCHEDULED bookings in the next
  24h are scored; anything below "clear" is persisted and broadcast.

Each booking is its own unit of work with its own session. A failure on one
booking is logged and the sweep moves on.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from weatherguard.config import settings
from weatherguard.data.weather_minimums import get_minimums
from weatherguard.database import async_session_factory
from weatherguard.enums import AlertSeverity, BookingStatus, TrainingLevel
from weatherguard.models import Booking
from weatherguard.services.booking_store import BookingStore, booking_store
from weatherguard.services.notification_bus import NotificationBus, notification_bus
from weatherguard.services.safety_engine import evaluate_safety, score_weather
from weatherguard.services.weather_client import WeatherClient, WeatherSample, weather_client
from weatherguard.utils import utcnow

logger = logging.getLogger(__name__)

SEVERE_VISIBILITY_MI = 1.0
SEVERE_SCORE = 4.0
HIGH_SCORE = 6.0
MODERATE_SCORE = 7.5
LOW_SCORE = 9.0

WEATHER_CONFLICT = "WEATHER_CONFLICT"
WEATHER_ALERT = "weather_alert"


@dataclass
class ConflictSummary:
    total_checked: int = 0
    conflicts_found: int = 0
    errors: int = 0


def classify_severity(score: float, sample: WeatherSample) -> AlertSeverity:
    if sample.has_thunderstorms or sample.visibility_miles < SEVERE_VISIBILITY_MI:
        return AlertSeverity.SEVERE
    if score < SEVERE_SCORE:
        return AlertSeverity.SEVERE
    if score < HIGH_SCORE:
        return AlertSeverity.HIGH
    if score < MODERATE_SCORE:
        return AlertSeverity.MODERATE
    if score < LOW_SCORE:
        return AlertSeverity.LOW
    return AlertSeverity.CLEAR


def build_alert_message(
    severity: AlertSeverity,
    sample: WeatherSample,
    level: TrainingLevel,
    score: float,
) -> str:
    vis = sample.visibility_miles
    wind = sample.wind_speed_knots

    if severity is AlertSeverity.SEVERE:
        if sample.has_thunderstorms:
            return (
                f"SEVERE WEATHER ALERT: Thunderstorms reported. Flight not safe for {level.label}. "
                "Consider rescheduling."
            )
        if vis < SEVERE_VISIBILITY_MI:
            return (
                f"SEVERE WEATHER ALERT: Visibility {vis:.1f} miles, below safe minimums. "
                "Flight cancelled for safety."
            )
        return (
            f"SEVERE WEATHER ALERT: Dangerous conditions detected (score: {score:.1f}/10). "
            "Flight should be cancelled."
        )
    if severity is AlertSeverity.HIGH:
        return (
            f"HIGH ALERT: Poor weather conditions (score: {score:.1f}/10). "
            f"Visibility {vis:.1f} miles, winds {wind:.0f} kt. Not recommended for {level.label}."
        )
    if severity is AlertSeverity.MODERATE:
        return (
            f"MODERATE ALERT: Marginal weather conditions (score: {score:.1f}/10). "
            f"Winds {wind:.0f} kt, visibility {vis:.1f} miles. Use caution."
        )
    if severity is AlertSeverity.LOW:
        return (
            f"Weather advisory: Conditions may be challenging (score: {score:.1f}/10). "
            f"Winds {wind:.0f} kt. Monitor before departure."
        )
    return "Weather conditions are favorable for flight."


class WeatherMonitor:
    def __init__(
        self,
        *,
        session_factory=None,
        store: BookingStore | None = None,
        weather: WeatherClient | None = None,
        bus: NotificationBus | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory or async_session_factory
        self.store = store or booking_store
        self.weather = weather or weather_client
        self.bus = bus or notification_bus
        self.clock = clock

    # ─── Hourly conflict sweep ───

    async def check_all_flights(self) -> ConflictSummary:
        now = self.clock()
        async with self.session_factory() as db:
            bookings = await self.store.list_bookings(
                db,
                [BookingStatus.SCHEDULED],
                now,
                now + timedelta(hours=settings.conflict_window_hours),
            )

        summary = ConflictSummary(total_checked=len(bookings))
        logger.info(f"Checking {len(bookings)} scheduled flights")

        for booking in bookings:
            try:
                if await self._check_booking(booking):
                    summary.conflicts_found += 1
            except Exception as e:
                summary.errors += 1
                logger.error(f"Error checking booking {booking.id}: {e}")

        logger.info(
            f"Weather check completed: {summary.total_checked} flights checked, "
            f"{summary.conflicts_found} conflicts found"
        )
        return summary

    async def _check_booking(self, booking: Booking) -> bool:
        """Cancel the booking if current weather is unsafe. Returns True on conflict."""
        async with self.session_factory() as db:
            student = await self.store.get_student(db, booking.student_id)
            sample = await self.weather.fetch_current(booking.departure_lat, booking.departure_lon)
            minimums = get_minimums(student.training_level)
            result = evaluate_safety(student.training_level, sample, minimums)
            if result.is_safe:
                return False

            current = await self.store.get_booking(db, booking.id)
            if current.status is not BookingStatus.SCHEDULED:
                logger.info(f"Booking {booking.id} changed to {current.status.value} during sweep, skipping")
                return False

            logger.warning(f"Unsafe weather for booking {booking.id}: {result.reason}")
            await self.store.cancel_for_weather(db, current)

        self.bus.publish_json({
            "type": WEATHER_CONFLICT,
            "booking_id": str(booking.id),
            "message": f"Flight cancelled: {result.reason}",
            "student_name": student.name,
            "original_date": booking.scheduled_date.isoformat(),
        })
        logger.info(f"Sent conflict notification for booking {booking.id}")
        return True

    # ─── Five-minute alert sweep ───

    async def generate_weather_alerts(self) -> int:
        now = self.clock()
        async with self.session_factory() as db:
            bookings = await self.store.list_bookings(
                db,
                [BookingStatus.SCHEDULED, BookingStatus.RESCHEDULED],
                now,
                now + timedelta(hours=settings.alert_window_hours),
            )

        if not bookings:
            logger.debug("No upcoming bookings to check for alerts")
            return 0

        logger.info(f"Checking weather alerts for {len(bookings)} upcoming bookings")
        location_cache: dict[tuple[float, float], WeatherSample] = {}
        alert_count = 0

        for booking in bookings:
            try:
                if await self._alert_booking(booking, location_cache):
                    alert_count += 1
            except Exception as e:
                logger.error(f"Error generating alert for booking {booking.id}: {e}")

        return alert_count

    async def _alert_booking(
        self,
        booking: Booking,
        location_cache: dict[tuple[float, float], WeatherSample],
    ) -> bool:
        async with self.session_factory() as db:
            student = await self.store.get_student(db, booking.student_id)

            sample = location_cache.get(booking.location_key)
            if sample is None:
                sample = await self.weather.fetch_current(booking.departure_lat, booking.departure_lon)
                location_cache[booking.location_key] = sample

            score = score_weather(student.training_level, sample)
            severity = classify_severity(score, sample)
            if severity is AlertSeverity.CLEAR:
                return False

            alert = await self.store.add_alert(
                db,
                booking_id=booking.id,
                severity=severity,
                message=build_alert_message(severity, sample, student.training_level, score),
                location=booking.location_label,
                student_name=student.name,
                original_date=booking.scheduled_date,
            )

        self.bus.publish_json({
            "type": WEATHER_ALERT,
            "id": str(alert.id),
            "booking_id": str(booking.id),
            "message": alert.message,
            "severity": severity.value,
            "location": alert.location,
            "timestamp": alert.created_at.isoformat(),
            "student_name": student.name,
            "original_date": booking.scheduled_date.isoformat(),
        })
        logger.info(f"Sent {severity.value} alert for booking {booking.id} (score: {score:.1f})")
        return True


# Singleton
weather_monitor = WeatherMonitor()
