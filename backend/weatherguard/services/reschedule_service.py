"""Reschedule suggestions: generated text first, deterministic fallback always.

suggest() returns exactly three options. A generated response is cached per
booking and original time; fallback results are never cached.
"""

import logging
from datetime import datetime, timedelta
from typing import Sequence

from pydantic import ValidationError

from weatherguard.data.weather_minimums import get_minimums
from weatherguard.models import Booking, Student
from weatherguard.schemas.reschedule import RescheduleOption, RescheduleResponse
from weatherguard.services.exceptions import ExternalServiceError
from weatherguard.services.llm_client import LLMClient, llm_client
from weatherguard.services.safety_engine import evaluate_safety, score_weather
from weatherguard.services.suggestion_cache import SuggestionCache, cache_key, suggestion_cache
from weatherguard.services.weather_client import WeatherSample
from weatherguard.utils import as_utc

logger = logging.getLogger(__name__)

OPTION_COUNT = 3
PROMPT_FORECAST_SAMPLES = 7
FALLBACK_SCAN_SAMPLES = 14
LESSON_DURATION = timedelta(hours=2)
PLACEHOLDER_SCORE = 5.0
PLACEHOLDER_REASON = "Please contact your instructor to schedule - limited weather data available"
GENERATION_TEMPERATURE = 0.7

SYSTEM_PROMPT = (
    "You are a flight scheduling assistant. Always return valid JSON with exactly 3 reschedule "
    "options. Each option must have: date_time (ISO 8601 format), reason (string explaining why "
    "this time is good), weather_score (float 0-10), and instructor_available (boolean)."
)

USER_PROMPT_TEMPLATE = """Flight booking needs rescheduling due to weather conflict.

Student: {student_name} (Training Level: {training_level})
Original booking: {original_date}
Departure location: {location}

7-day weather forecast:
{forecast}

Please suggest 3 alternative times for rescheduling this flight lesson. Consider:
1. Weather conditions suitable for {training_level} training level
2. Time of day (prefer daylight hours)
3. Spread options across different days
4. Avoid these times already booked: {busy}

Return JSON with this exact structure:
{{
  "options": [
    {{
      "date_time": "2024-01-15T14:00:00Z",
      "reason": "Clear skies with light winds, excellent training conditions",
      "weather_score": 9.5,
      "instructor_available": true
    }}
  ]
}}
"""


def format_forecast_line(sample: WeatherSample) -> str:
    return (
        f"{sample.observed_at:%Y-%m-%d %H:%M}: vis {sample.visibility_miles:.1f}mi, "
        f"wind {sample.wind_speed_knots:.1f}kt, temp {sample.temperature_f:.0f}°F, {sample.conditions}"
    )


def build_user_prompt(
    booking: Booking,
    student: Student,
    forecast: Sequence[WeatherSample],
    busy_schedule: Sequence[Booking],
) -> str:
    busy = ", ".join(f"{b.scheduled_date:%Y-%m-%d %H:%M}" for b in busy_schedule) or "none"
    return USER_PROMPT_TEMPLATE.format(
        student_name=student.name,
        training_level=student.training_level.value,
        original_date=f"{booking.scheduled_date:%Y-%m-%d %H:%M UTC}",
        location=booking.departure_name,
        forecast="\n".join(format_forecast_line(s) for s in forecast[:PROMPT_FORECAST_SAMPLES]),
        busy=busy,
    )


def instructor_free(when: datetime, busy_schedule: Sequence[Booking], exclude_id=None) -> bool:
    """True when no other booking starts within one lesson of `when`."""
    for other in busy_schedule:
        if exclude_id is not None and other.id == exclude_id:
            continue
        if abs(other.scheduled_date - when) < LESSON_DURATION:
            return False
    return True


class RescheduleService:
    def __init__(self, llm: LLMClient | None = None, cache: SuggestionCache | None = None):
        self.llm = llm if llm is not None else llm_client
        self.cache = cache if cache is not None else suggestion_cache

    async def suggest(
        self,
        booking: Booking,
        student: Student,
        forecast: Sequence[WeatherSample],
        busy_schedule: Sequence[Booking] = (),
    ) -> list[RescheduleOption]:
        """Return exactly three reschedule options for a booking."""
        key = cache_key(booking.id, booking.scheduled_date)
        cached = await self.cache.get(key)
        if cached is not None and len(cached.options) >= OPTION_COUNT:
            logger.debug(f"Suggestion cache hit for booking {booking.id}")
            return cached.options[:OPTION_COUNT]

        try:
            options = await self._generate(booking, student, forecast, busy_schedule)
        except (ExternalServiceError, ValidationError, ValueError) as e:
            logger.warning(f"Suggestion generation failed for booking {booking.id}, using fallback: {e}")
            options = []

        if len(options) >= OPTION_COUNT:
            options = options[:OPTION_COUNT]
            await self.cache.set(key, RescheduleResponse(options=options))
            return options

        if options:
            logger.warning(
                f"Suggestion generation returned {len(options)} distinct options for booking {booking.id}, using fallback"
            )
        return self.fallback_options(booking, student, forecast, busy_schedule)

    async def _generate(
        self,
        booking: Booking,
        student: Student,
        forecast: Sequence[WeatherSample],
        busy_schedule: Sequence[Booking],
    ) -> list[RescheduleOption]:
        raw = await self.llm.complete(
            SYSTEM_PROMPT,
            build_user_prompt(booking, student, forecast, busy_schedule),
            temperature=GENERATION_TEMPERATURE,
            json_mode=True,
        )
        response = RescheduleResponse.model_validate_json(raw)

        # Repeated slots count once
        options: list[RescheduleOption] = []
        seen: set[datetime] = set()
        for option in response.options:
            when = as_utc(option.date_time)
            if when in seen:
                continue
            seen.add(when)
            options.append(option.model_copy(update={"date_time": when}))
        return options

    def fallback_options(
        self,
        booking: Booking,
        student: Student,
        forecast: Sequence[WeatherSample],
        busy_schedule: Sequence[Booking] = (),
    ) -> list[RescheduleOption]:
        """Rule-based options: safe samples, then marginal samples, then placeholders."""
        level = student.training_level
        minimums = get_minimums(level)
        samples = sorted(forecast, key=lambda s: s.observed_at)

        options: list[RescheduleOption] = []
        used: set[int] = set()

        for idx, sample in enumerate(samples[:FALLBACK_SCAN_SAMPLES]):
            if len(options) >= OPTION_COUNT:
                break
            if evaluate_safety(level, sample, minimums).is_safe:
                used.add(idx)
                options.append(RescheduleOption(
                    date_time=sample.observed_at,
                    reason=f"Good weather conditions: {sample.conditions} with {sample.wind_speed_knots:.0f}kt winds",
                    weather_score=score_weather(level, sample),
                    instructor_available=instructor_free(sample.observed_at, busy_schedule, booking.id),
                ))

        for idx, sample in enumerate(samples):
            if len(options) >= OPTION_COUNT:
                break
            if idx in used:
                continue
            used.add(idx)
            options.append(RescheduleOption(
                date_time=sample.observed_at,
                reason=f"Marginal conditions: {sample.conditions}",
                weather_score=score_weather(level, sample),
                instructor_available=instructor_free(sample.observed_at, busy_schedule, booking.id),
            ))

        days_ahead = 1
        while len(options) < OPTION_COUNT:
            options.append(RescheduleOption(
                date_time=booking.scheduled_date + timedelta(days=days_ahead),
                reason=PLACEHOLDER_REASON,
                weather_score=PLACEHOLDER_SCORE,
                instructor_available=False,
            ))
            days_ahead += 1

        return options


# Singleton
reschedule_service = RescheduleService()
