"""
Pytest Configuration and Fixtures

Shared fixtures for WeatherGuard tests: weather samples, an in-memory
SQLite database, and fakes for the weather and text-generation providers.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import weatherguard.models  # noqa: F401
from weatherguard.database import Base
from weatherguard.enums import BookingStatus, TrainingLevel
from weatherguard.models import Booking, Student
from weatherguard.services.exceptions import ExternalServiceError
from weatherguard.services.weather_client import WeatherSample

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Weather Fixtures
# =============================================================================

def build_weather_sample(**overrides) -> WeatherSample:
    """Clear VFR day unless overridden."""
    values = {
        "visibility_miles": 10.0,
        "wind_speed_knots": 5.0,
        "ceiling_ft": None,
        "temperature_f": 65.0,
        "conditions": "clear sky",
        "has_thunderstorms": False,
        "has_icing": False,
        "observed_at": NOW,
    }
    values.update(overrides)
    return WeatherSample(**values)


@pytest.fixture
def make_sample():
    return build_weather_sample


@pytest.fixture
def clear_sample():
    return build_weather_sample()


@pytest.fixture
def storm_sample():
    return build_weather_sample(
        visibility_miles=2.0,
        wind_speed_knots=28.0,
        ceiling_ft=2000.0,
        conditions="thunderstorm with heavy rain",
        has_thunderstorms=True,
    )


class FakeWeatherClient:
    """Returns canned samples per (lat, lon); an Exception value is raised instead."""

    def __init__(self, current=None, forecast=None, default=None):
        self.current = dict(current or {})
        self.forecast = dict(forecast or {})
        self.default = default
        self.current_calls: list[tuple[float, float]] = []
        self.forecast_calls: list[tuple[float, float]] = []

    async def fetch_current(self, lat: float, lon: float) -> WeatherSample:
        self.current_calls.append((lat, lon))
        value = self.current.get((lat, lon), self.default)
        if value is None:
            raise ExternalServiceError("openweathermap", f"no data for ({lat}, {lon})")
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_forecast(self, lat: float, lon: float) -> list[WeatherSample]:
        self.forecast_calls.append((lat, lon))
        value = self.forecast.get((lat, lon), [])
        if isinstance(value, Exception):
            raise value
        return value


class FakeLLM:
    """Stands in for LLMClient.complete; replays a response or raises."""

    def __init__(self, response: str | Exception = ""):
        self.response = response
        self.calls: list[dict] = []

    async def complete(self, system: str, user: str, **kwargs) -> str:
        self.calls.append({"system": system, "user": user, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def fake_weather():
    return FakeWeatherClient()


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Model Fixtures
# =============================================================================

def build_student(level: TrainingLevel = TrainingLevel.PRIVATE_PILOT, **overrides) -> Student:
    values = {
        "id": uuid.uuid4(),
        "name": "Jane Doe",
        "email": f"{uuid.uuid4().hex[:8]}@example.com",
        "phone": "+15555550100",
        "training_level": level,
    }
    values.update(overrides)
    return Student(**values)


def build_booking(student: Student, scheduled_date: datetime = NOW + timedelta(hours=6), **overrides) -> Booking:
    values = {
        "id": uuid.uuid4(),
        "student_id": student.id,
        "scheduled_date": scheduled_date,
        "departure_lat": 33.8113,
        "departure_lon": -118.1515,
        "departure_name": "Long Beach (KLGB)",
        "status": BookingStatus.SCHEDULED,
    }
    values.update(overrides)
    return Booking(**values)


@pytest.fixture
def student():
    return build_student()


@pytest.fixture
def booking(student):
    return build_booking(student)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
