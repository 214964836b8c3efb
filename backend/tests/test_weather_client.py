"""
Weather Client Tests

Unit normalization and retry behaviour against a mocked OpenWeatherMap.
"""

import httpx
import pytest

from weatherguard.services.exceptions import ExternalServiceError
from weatherguard.services.weather_client import WeatherClient, estimate_ceiling, kelvin_to_fahrenheit

BASE_URL = "https://owm.test/data/2.5"


def _owm_entry(**overrides) -> dict:
    entry = {
        "dt": 1792324800,
        "weather": [{"main": "Clouds", "description": "broken clouds"}],
        "main": {"temp": 293.15},
        "visibility": 8046.72,
        "wind": {"speed": 5.0},
        "clouds": {"all": 40},
    }
    entry.update(overrides)
    return entry


def _client(handler, **kwargs) -> WeatherClient:
    return WeatherClient(
        api_key="test-key",
        base_url=BASE_URL,
        retry_initial_delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


# =============================================================================
# Normalization
# =============================================================================

class TestNormalization:
    """Tests for unit conversion and derived flags."""

    def test_kelvin_to_fahrenheit(self):
        assert kelvin_to_fahrenheit(273.15) == pytest.approx(32.0)
        assert kelvin_to_fahrenheit(293.15) == pytest.approx(68.0)

    @pytest.mark.parametrize(
        "cover, ceiling",
        [(None, None), (0, None), (50, None), (51, 5000.0), (80, 5000.0), (81, 2000.0), (100, 2000.0)],
    )
    def test_ceiling_estimate(self, cover, ceiling):
        assert estimate_ceiling(cover) == ceiling

    async def test_current_weather_is_normalized(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_owm_entry())

        sample = await _client(handler).fetch_current(33.8, -118.1)

        assert requests[0].url.path == "/data/2.5/weather"
        assert requests[0].url.params["appid"] == "test-key"
        assert requests[0].url.params["lat"] == "33.8"
        assert sample.visibility_miles == pytest.approx(5.0, abs=1e-3)
        assert sample.wind_speed_knots == pytest.approx(9.7192)
        assert sample.temperature_f == pytest.approx(68.0)
        assert sample.ceiling_ft is None
        assert sample.conditions == "broken clouds"
        assert not sample.has_thunderstorms
        assert not sample.has_icing
        assert sample.observed_at.tzinfo is not None

    async def test_missing_visibility_defaults_to_ten_km(self):
        entry = _owm_entry()
        del entry["visibility"]

        sample = await _client(lambda r: httpx.Response(200, json=entry)).fetch_current(0, 0)

        assert sample.visibility_miles == pytest.approx(6.21371)

    async def test_thunderstorm_and_icing_flags(self):
        entry = _owm_entry(
            weather=[{"main": "Rain", "description": "light rain"}, {"main": "Thunderstorm", "description": "storm"}],
            main={"temp": 270.0},
            clouds={"all": 90},
        )

        sample = await _client(lambda r: httpx.Response(200, json=entry)).fetch_current(0, 0)

        assert sample.has_thunderstorms
        assert sample.has_icing
        assert sample.ceiling_ft == 2000.0
        assert sample.conditions == "light rain"

    async def test_empty_weather_list_is_unknown(self):
        entry = _owm_entry(weather=[])

        sample = await _client(lambda r: httpx.Response(200, json=entry)).fetch_current(0, 0)

        assert sample.conditions == "Unknown"


# =============================================================================
# Forecast
# =============================================================================

class TestForecast:
    """Tests for fetch_forecast."""

    async def test_one_call_hourly_preferred(self):
        hourly = [
            {"dt": 1792324800 + i * 3600, "temp": 280.0, "clouds": 20, "wind_speed": 3.0,
             "weather": [{"main": "Clear", "description": "clear sky"}]}
            for i in range(48)
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/onecall")
            return httpx.Response(200, json={"hourly": hourly})

        forecast = await _client(handler).fetch_forecast(1.0, 2.0)

        assert len(forecast) == 48
        assert forecast[1].observed_at > forecast[0].observed_at

    async def test_falls_back_to_three_hourly_forecast(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("/onecall"):
                return httpx.Response(401, json={"message": "Invalid API key"})
            assert request.url.params["cnt"] == "56"
            return httpx.Response(200, json={"list": [_owm_entry(dt=1792324800 + i * 10800) for i in range(5)]})

        forecast = await _client(handler).fetch_forecast(1.0, 2.0)

        assert len(forecast) == 5
        assert paths == ["/data/2.5/onecall", "/data/2.5/forecast"]


# =============================================================================
# Retry and Errors
# =============================================================================

class TestRetry:
    """Tests for the retry policy."""

    async def test_transient_failures_are_retried(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(503)
            return httpx.Response(200, json=_owm_entry())

        sample = await _client(handler).fetch_current(0, 0)

        assert calls == 3
        assert sample.conditions == "broken clouds"

    async def test_gives_up_after_three_attempts(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(handler).fetch_current(0, 0)

        assert calls == 3
        assert exc_info.value.service == "openweathermap"

    async def test_malformed_payload_is_an_external_error(self):
        with pytest.raises(ExternalServiceError):
            await _client(lambda r: httpx.Response(200, json={"unexpected": True})).fetch_current(0, 0)

    async def test_backoff_doubles(self, monkeypatch):
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        monkeypatch.setattr("weatherguard.services.weather_client.asyncio.sleep", fake_sleep)
        client = WeatherClient(
            api_key="k",
            base_url=BASE_URL,
            retry_initial_delay=0.1,
            transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        )

        with pytest.raises(ExternalServiceError):
            await client.fetch_current(0, 0)

        assert delays == pytest.approx([0.1, 0.2])

    async def test_missing_api_key_fails_without_request(self):
        calls = []

        client = WeatherClient(
            api_key="",
            base_url=BASE_URL,
            transport=httpx.MockTransport(lambda r: calls.append(r) or httpx.Response(200)),
        )

        with pytest.raises(ExternalServiceError):
            await client.fetch_forecast(0, 0)
        assert calls == []
