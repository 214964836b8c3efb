"""Current weather lookup with per-level safety verdicts."""

from fastapi import APIRouter, Depends, Query

from weatherguard.data.weather_minimums import get_minimums
from weatherguard.dependencies import get_weather_client
from weatherguard.enums import TrainingLevel
from weatherguard.services.safety_engine import evaluate_safety, score_weather
from weatherguard.services.weather_client import WeatherClient

router = APIRouter()


@router.get("")
async def current_weather(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    weather: WeatherClient = Depends(get_weather_client),
):
    sample = await weather.fetch_current(lat, lon)

    safety = {}
    for level in TrainingLevel.by_strictness():
        result = evaluate_safety(level, sample, get_minimums(level))
        safety[level.value] = {
            "is_safe": result.is_safe,
            "reason": result.reason,
            "score": round(score_weather(level, sample), 2),
        }

    return {
        "location": {"lat": lat, "lon": lon},
        "visibility_miles": round(sample.visibility_miles, 2),
        "wind_speed_knots": round(sample.wind_speed_knots, 2),
        "ceiling_ft": sample.ceiling_ft,
        "temperature_f": round(sample.temperature_f, 1),
        "conditions": sample.conditions,
        "has_thunderstorms": sample.has_thunderstorms,
        "has_icing": sample.has_icing,
        "observed_at": sample.observed_at.isoformat(),
        "safety": safety,
    }
