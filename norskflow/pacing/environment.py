"""Environmental pace corrections.

Both models return an additive sec/km delta that is applied uniformly to
every pace of a plan through apply_environmental_correction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from norskflow.config.settings import settings
from norskflow.pacing.clock import round_half_up

COMFORT_CEILING_C = 12.0
COMFORT_FLOOR_C = 5.0
HEAT_PENALTY_PER_C = 0.5
COLD_PENALTY_PER_C = 0.25
HUMIDITY_MIN_TEMP_C = 18.0
HUMIDITY_THRESHOLD_PCT = 60.0
HUMIDITY_PENALTY_PER_10PCT = 0.6
WIND_THRESHOLD_KMH = 12.0
WIND_PENALTY_PER_KMH = 0.12
WEATHER_DELTA_MIN = -5.0
WEATHER_DELTA_MAX = 20.0

DEFAULT_TREADMILL_BASE_PACE = 300.0


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions at the athlete's location."""

    temperature_c: float
    dew_point_c: float
    humidity_pct: float
    wind_kmh: float


def _finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def apply_environmental_correction(pace_sec: float, delta_sec: float) -> float:
    """Add a correction to a pace, never going below 1 s/km.

    An undeterminable pace (0, negative, non-finite) stays 0 so it keeps
    reading as "0:00" downstream.
    """
    if not _finite(pace_sec) or pace_sec <= 0:
        return 0.0
    if not _finite(delta_sec):
        delta_sec = 0.0
    return max(1.0, pace_sec + delta_sec)


def weather_pace_delta(temperature_c: float, humidity_pct: float, wind_kmh: float) -> int:
    """Seconds per km to add for heat, cold, humidity and wind.

    Linear penalties outside a 5-12 °C comfort window, humidity only counts
    in warm weather, and the sum is clamped to [-5, 20] then rounded.
    """
    delta = 0.0

    if _finite(temperature_c):
        if temperature_c > COMFORT_CEILING_C:
            delta += (temperature_c - COMFORT_CEILING_C) * HEAT_PENALTY_PER_C
        if temperature_c < COMFORT_FLOOR_C:
            delta += (COMFORT_FLOOR_C - temperature_c) * COLD_PENALTY_PER_C

        if temperature_c >= HUMIDITY_MIN_TEMP_C and _finite(humidity_pct) and humidity_pct > HUMIDITY_THRESHOLD_PCT:
            delta += ((humidity_pct - HUMIDITY_THRESHOLD_PCT) / 10) * HUMIDITY_PENALTY_PER_10PCT

    if _finite(wind_kmh) and wind_kmh > WIND_THRESHOLD_KMH:
        delta += (wind_kmh - WIND_THRESHOLD_KMH) * WIND_PENALTY_PER_KMH

    bounded = max(WEATHER_DELTA_MIN, min(WEATHER_DELTA_MAX, delta))
    return int(round_half_up(bounded))


def weather_delta_for(snapshot: WeatherSnapshot | None) -> int:
    """Weather correction for a snapshot; no weather means no correction."""
    if snapshot is None:
        return 0
    return weather_pace_delta(snapshot.temperature_c, snapshot.humidity_pct, snapshot.wind_kmh)


def clamp_incline(incline_pct: float | None) -> float:
    """Clamp a treadmill incline into the configured range (default when unusable)."""
    if incline_pct is None or not _finite(incline_pct):
        incline_pct = settings.treadmill_incline_default
    return min(settings.treadmill_incline_max, max(settings.treadmill_incline_min, incline_pct))


def treadmill_grade_delta(incline_pct: float | None, base_pace_sec: float = DEFAULT_TREADMILL_BASE_PACE) -> int:
    """Pace delta (sec/km) for running at an incline with the same oxygen cost.

    Uses the ACSM running-equation terms 0.2 * v_flat = (0.2 + 0.9 * grade) * v_grade.
    """
    if not _finite(base_pace_sec) or base_pace_sec <= 0:
        return 0

    grade = clamp_incline(incline_pct) / 100
    v_flat = 1000 / (base_pace_sec / 60)  # m/min
    v_grade = (0.2 * v_flat) / (0.2 + 0.9 * grade)
    if not _finite(v_grade) or v_grade <= 0:
        return 0

    grade_pace = (1000 / v_grade) * 60
    return int(round_half_up(grade_pace - base_pace_sec))
