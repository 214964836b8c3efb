"""Static weather minimums per training level.

Loaded once at import; the table is read-only afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType

from weatherguard.enums import TrainingLevel
from weatherguard.services.exceptions import ConfigurationError


@dataclass(frozen=True)
class WeatherMinimum:
    training_level: TrainingLevel
    min_visibility_sm: float
    max_wind_speed_kt: float
    min_ceiling_ft: float | None
    allow_imc: bool
    no_thunderstorms: bool = True
    no_icing: bool = True


WEATHER_MINIMUMS: MappingProxyType = MappingProxyType({
    TrainingLevel.STUDENT_PILOT: WeatherMinimum(
        training_level=TrainingLevel.STUDENT_PILOT,
        min_visibility_sm=5.0,
        max_wind_speed_kt=12.0,
        min_ceiling_ft=3000.0,
        allow_imc=False,
    ),
    TrainingLevel.PRIVATE_PILOT: WeatherMinimum(
        training_level=TrainingLevel.PRIVATE_PILOT,
        min_visibility_sm=3.0,
        max_wind_speed_kt=20.0,
        min_ceiling_ft=1000.0,
        allow_imc=False,
    ),
    TrainingLevel.INSTRUMENT_RATED: WeatherMinimum(
        training_level=TrainingLevel.INSTRUMENT_RATED,
        min_visibility_sm=1.0,
        max_wind_speed_kt=30.0,
        min_ceiling_ft=None,
        allow_imc=True,
    ),
})


def get_minimums(level: TrainingLevel) -> WeatherMinimum:
    try:
        return WEATHER_MINIMUMS[level]
    except KeyError:
        raise ConfigurationError(
            f"No weather minimums configured for {level}",
            details={"training_level": str(level)},
        ) from None
