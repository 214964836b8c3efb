"""Flight safety evaluation and weather scoring per training level.

Both functions are pure: they take a normalized WeatherSample and return a
verdict or a 0-10 score. Every violated rule is reported, not just the first.
"""

from dataclasses import dataclass, field

from weatherguard.data.weather_minimums import WeatherMinimum
from weatherguard.enums import TrainingLevel
from weatherguard.services.weather_client import WeatherSample

# Scoring constants
PERFECT_SCORE = 10.0
THUNDERSTORM_PENALTY = 5.0
ICING_PENALTY = 3.0
IDEAL_VISIBILITY_MI = 10.0
VISIBILITY_PENALTY_FACTOR = 2.0
CALM_WIND_KT = 5.0
MAX_WIND_PENALTY_KT = 15.0
WIND_PENALTY_FACTOR = 2.0
IDEAL_CEILING_FT = 5000.0
CEILING_PENALTY_FACTOR = 2.0
STUDENT_HIGH_WIND_THRESHOLD_KT = 10.0
STUDENT_HIGH_WIND_PENALTY = 2.0

# Hard floors independent of the minimums table
STUDENT_CEILING_FLOOR_FT = 3000.0
IMC_CEILING_FT = 1000.0
IMC_VISIBILITY_MI = 3.0


@dataclass(frozen=True)
class SafetyResult:
    is_safe: bool
    reasons: list[str] = field(default_factory=list)

    @property
    def reason(self) -> str | None:
        return "; ".join(self.reasons) if self.reasons else None


def evaluate_safety(
    level: TrainingLevel,
    sample: WeatherSample,
    minimums: WeatherMinimum,
) -> SafetyResult:
    """Check a weather sample against the minimums for a training level."""
    reasons: list[str] = []
    ceiling = sample.ceiling_ft

    if minimums.no_thunderstorms and sample.has_thunderstorms:
        reasons.append("Thunderstorms present")

    if minimums.no_icing and sample.has_icing:
        reasons.append("Icing conditions present")

    if sample.visibility_miles < minimums.min_visibility_sm:
        reasons.append(
            f"Visibility {sample.visibility_miles:.1f}mi below minimum "
            f"{minimums.min_visibility_sm:.1f}mi for {level.label}"
        )

    if sample.wind_speed_knots > minimums.max_wind_speed_kt:
        reasons.append(
            f"Wind speed {sample.wind_speed_knots:.1f}kt exceeds maximum "
            f"{minimums.max_wind_speed_kt:.1f}kt for {level.label}"
        )

    # An unreported ceiling is treated as unlimited, even when IMC is disallowed.
    if minimums.min_ceiling_ft is not None and ceiling is not None and ceiling < minimums.min_ceiling_ft:
        reasons.append(
            f"Ceiling {ceiling:.0f}ft below minimum {minimums.min_ceiling_ft:.0f}ft for {level.label}"
        )

    if level is TrainingLevel.STUDENT_PILOT and ceiling is not None and ceiling < STUDENT_CEILING_FLOOR_FT:
        reasons.append(
            f"Ceiling {ceiling:.0f}ft too low for student pilot (minimum {STUDENT_CEILING_FLOOR_FT:.0f}ft)"
        )

    # IMC proxy only applies when a ceiling was reported
    if not minimums.allow_imc and ceiling is not None:
        if ceiling < IMC_CEILING_FT or sample.visibility_miles < IMC_VISIBILITY_MI:
            reasons.append("IMC conditions not allowed for this training level")

    return SafetyResult(is_safe=not reasons, reasons=reasons)


def score_weather(level: TrainingLevel, sample: WeatherSample) -> float:
    """Score flying conditions from 0 (terrible) to 10 (perfect)."""
    score = PERFECT_SCORE

    if sample.has_thunderstorms:
        score -= THUNDERSTORM_PENALTY
    if sample.has_icing:
        score -= ICING_PENALTY

    if sample.visibility_miles < IDEAL_VISIBILITY_MI:
        score -= (IDEAL_VISIBILITY_MI - sample.visibility_miles) / IDEAL_VISIBILITY_MI * VISIBILITY_PENALTY_FACTOR

    if sample.wind_speed_knots > CALM_WIND_KT:
        excess = min(sample.wind_speed_knots - CALM_WIND_KT, MAX_WIND_PENALTY_KT)
        score -= excess / MAX_WIND_PENALTY_KT * WIND_PENALTY_FACTOR

    if sample.ceiling_ft is not None and sample.ceiling_ft < IDEAL_CEILING_FT:
        score -= (IDEAL_CEILING_FT - sample.ceiling_ft) / IDEAL_CEILING_FT * CEILING_PENALTY_FACTOR

    if level is TrainingLevel.STUDENT_PILOT and sample.wind_speed_knots > STUDENT_HIGH_WIND_THRESHOLD_KT:
        score -= STUDENT_HIGH_WIND_PENALTY

    return max(0.0, min(PERFECT_SCORE, score))
