"""OpenWeatherMap client for current conditions and forecasts normalized to aviation units."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from weatherguard.config import settings
from weatherguard.services.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

METERS_TO_MILES = 0.000621371
MS_TO_KNOTS = 1.94384
DEFAULT_VISIBILITY_M = 10000.0
FORECAST_COUNT = 56

# Cloud cover (%) thresholds used to estimate a ceiling
LOW_CLOUD_COVER = 80.0
MID_CLOUD_COVER = 50.0
LOW_CLOUD_CEILING_FT = 2000.0
MID_CLOUD_CEILING_FT = 5000.0
FREEZING_F = 32.0


@dataclass(frozen=True)
class WeatherSample:
    visibility_miles: float
    wind_speed_knots: float
    ceiling_ft: float | None
    temperature_f: float
    conditions: str
    has_thunderstorms: bool
    has_icing: bool
    observed_at: datetime


def kelvin_to_fahrenheit(kelvin: float) -> float:
    return (kelvin - 273.15) * 9.0 / 5.0 + 32.0


def estimate_ceiling(cloud_cover: float | None) -> float | None:
    """Rough ceiling from total cloud cover; None means clear or scattered."""
    if cloud_cover is None:
        return None
    if cloud_cover > LOW_CLOUD_COVER:
        return LOW_CLOUD_CEILING_FT
    if cloud_cover > MID_CLOUD_COVER:
        return MID_CLOUD_CEILING_FT
    return None


def build_sample(
    *,
    dt: int,
    temp_k: float,
    wind_ms: float,
    visibility_m: float | None,
    cloud_cover: float | None,
    weather: list[dict],
) -> WeatherSample:
    temperature_f = kelvin_to_fahrenheit(temp_k)
    conditions = weather[0].get("description", "Unknown") if weather else "Unknown"
    has_thunderstorms = any("thunderstorm" in w.get("main", "").lower() for w in weather)
    has_icing = temperature_f < FREEZING_F and cloud_cover is not None and cloud_cover > MID_CLOUD_COVER

    return WeatherSample(
        visibility_miles=(visibility_m if visibility_m is not None else DEFAULT_VISIBILITY_M) * METERS_TO_MILES,
        wind_speed_knots=wind_ms * MS_TO_KNOTS,
        ceiling_ft=estimate_ceiling(cloud_cover),
        temperature_f=temperature_f,
        conditions=conditions,
        has_thunderstorms=has_thunderstorms,
        has_icing=has_icing,
        observed_at=datetime.fromtimestamp(dt, tz=timezone.utc),
    )


def parse_owm_entry(data: dict[str, Any]) -> WeatherSample:
    """Parse a /weather response or one /forecast list item."""
    clouds = data.get("clouds") or {}
    return build_sample(
        dt=data["dt"],
        temp_k=data["main"]["temp"],
        wind_ms=data["wind"]["speed"],
        visibility_m=data.get("visibility"),
        cloud_cover=clouds.get("all"),
        weather=data.get("weather", []),
    )


def parse_onecall_hour(data: dict[str, Any]) -> WeatherSample:
    """Parse one hourly entry of a One Call response."""
    return build_sample(
        dt=data["dt"],
        temp_k=data["temp"],
        wind_ms=data["wind_speed"],
        visibility_m=data.get("visibility"),
        cloud_cover=data.get("clouds"),
        weather=data.get("weather", []),
    )


class WeatherClient:
    """Adapter for the OpenWeatherMap API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        retry_initial_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.weather_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.weather_base_url).rstrip("/")
        self.timeout = timeout or settings.weather_timeout_seconds
        self.retry_attempts = retry_attempts or settings.weather_retry_attempts
        self.retry_initial_delay = (
            settings.weather_retry_initial_delay if retry_initial_delay is None else retry_initial_delay
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _with_retry(self, operation: Callable[[], Awaitable[T]], what: str) -> T:
        """Run an operation, retrying with exponential backoff between attempts."""
        last_error: Exception | None = None
        for attempt in range(self.retry_attempts):
            try:
                return await operation()
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                last_error = e
                if attempt < self.retry_attempts - 1:
                    delay = self.retry_initial_delay * (2 ** attempt)
                    logger.warning(f"{what} attempt {attempt + 1} failed, retrying in {delay:.2f}s: {e}")
                    await asyncio.sleep(delay)

        raise ExternalServiceError(
            "openweathermap",
            f"{what} failed after {self.retry_attempts} attempts: {last_error}",
        ) from last_error

    async def _get_json(self, path: str, params: dict) -> dict:
        client = await self._get_client()
        resp = await client.get(path, params={**params, "appid": self.api_key})
        resp.raise_for_status()
        return resp.json()

    def _require_key(self) -> None:
        if not self.api_key:
            raise ExternalServiceError("openweathermap", "WEATHER_API_KEY is not configured")

    async def fetch_current(self, lat: float, lon: float) -> WeatherSample:
        """Current conditions at a location."""
        self._require_key()

        async def _fetch() -> WeatherSample:
            data = await self._get_json("/weather", {"lat": lat, "lon": lon})
            return parse_owm_entry(data)

        return await self._with_retry(_fetch, f"Current weather ({lat}, {lon})")

    async def fetch_forecast(self, lat: float, lon: float) -> list[WeatherSample]:
        """Forecast samples, hourly where One Call is available, otherwise 3-hourly."""
        self._require_key()

        try:
            data = await self._get_json("/onecall", {"lat": lat, "lon": lon})
            return [parse_onecall_hour(h) for h in data["hourly"]]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.debug(f"One Call unavailable for ({lat}, {lon}), using 2.5 forecast: {e}")

        async def _fetch() -> list[WeatherSample]:
            data = await self._get_json(
                "/forecast", {"lat": lat, "lon": lon, "cnt": FORECAST_COUNT}
            )
            return [parse_owm_entry(item) for item in data["list"]]

        return await self._with_retry(_fetch, f"Forecast ({lat}, {lon})")


# Singleton
weather_client = WeatherClient()
