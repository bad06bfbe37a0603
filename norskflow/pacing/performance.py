"""Race performance model.

Predicts equivalent performances from one benchmark (Riegel power law) or two
benchmarks (linear critical-speed model) and derives the 60-minute threshold
pace that anchors every training target downstream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from loguru import logger

from norskflow.pacing.clock import round_half_up

if TYPE_CHECKING:
    from norskflow.planning.models import AthleteProfile

RIEGEL_EXPONENT = 1.06

THRESHOLD_TARGET_SECONDS = 3600
THRESHOLD_NEAR_TARGET_SECONDS = 30
THRESHOLD_SEARCH_LOW_M = 6000.0
THRESHOLD_SEARCH_HIGH_M = 30000.0
THRESHOLD_SEARCH_ITERATIONS = 30

CRITICAL_SPEED_CONSERVATISM = 1.01
MODEL_DISAGREEMENT_WARN = 0.03


@dataclass(frozen=True)
class Benchmark:
    """A race result: distance in metres, duration in seconds."""

    distance_m: float
    duration_s: float

    @property
    def is_valid(self) -> bool:
        return _positive(self.distance_m) and _positive(self.duration_s)

    @property
    def pace(self) -> float:
        if not self.is_valid:
            return 0.0
        return self.duration_s / (self.distance_m / 1000)


class ThresholdSource(StrEnum):
    CRITICAL_SPEED = "critical_speed"
    RIEGEL = "riegel"
    NONE = "none"


ThresholdModel = Literal["auto", "critical_speed", "riegel"]


@dataclass(frozen=True)
class ThresholdEstimate:
    """60-minute threshold pace plus which model produced it.

    Attributes:
        pace: Threshold pace in sec/km (0 when undeterminable)
        source: Model that produced `pace`
        alternate_pace: Pace from the other model when both were computable
        disagreement: |pace - alternate| / pace, 0 when only one model applies
    """

    pace: float
    source: ThresholdSource
    alternate_pace: float = 0.0
    disagreement: float = 0.0


def _positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def predict_duration(benchmark_distance: float, benchmark_duration: float, target_distance: float) -> float:
    """Predict the time (seconds) for target_distance from one benchmark.

    Returns 0 when any input is zero or missing, meaning "cannot predict".
    """
    if not (_positive(benchmark_distance) and _positive(benchmark_duration) and _positive(target_distance)):
        return 0.0
    return benchmark_duration * math.pow(target_distance / benchmark_distance, RIEGEL_EXPONENT)


def predict_pace(benchmark_distance: float, benchmark_duration: float, target_distance: float) -> float:
    """Predicted pace (sec/km) at target_distance; 0 when not predictable."""
    predicted = predict_duration(benchmark_distance, benchmark_duration, target_distance)
    if predicted == 0:
        return 0.0
    return predicted / (target_distance / 1000)


def estimate_vo2_score(benchmark_distance: float, benchmark_duration: float) -> float:
    """VDOT-style fitness index from a single race result, one decimal."""
    if not (_positive(benchmark_distance) and _positive(benchmark_duration)):
        return 0.0

    time_min = benchmark_duration / 60
    velocity = benchmark_distance / time_min  # m/min

    vo2 = -4.60 + 0.182258 * velocity + 0.000104 * velocity * velocity
    percent_max = (
        0.80
        + 0.1894393 * math.exp(-0.012778 * time_min)
        + 0.2989558 * math.exp(-0.1932605 * time_min)
    )
    if vo2 <= 0 or percent_max <= 0:
        return 0.0
    return round_half_up(vo2 / percent_max, 1)


def riegel_threshold_pace(benchmark: Benchmark | None) -> float:
    """Threshold pace by inverting the power law for a 60-minute effort."""
    if benchmark is None or not benchmark.is_valid:
        return 0.0

    if abs(benchmark.duration_s - THRESHOLD_TARGET_SECONDS) <= THRESHOLD_NEAR_TARGET_SECONDS:
        return benchmark.pace

    low, high = THRESHOLD_SEARCH_LOW_M, THRESHOLD_SEARCH_HIGH_M
    for _ in range(THRESHOLD_SEARCH_ITERATIONS):
        mid = (low + high) / 2
        predicted = predict_duration(benchmark.distance_m, benchmark.duration_s, mid)
        if predicted == 0:
            break
        # Longer than an hour means the distance is too long.
        if predicted > THRESHOLD_TARGET_SECONDS:
            high = mid
        else:
            low = mid

    distance_at_hour = (low + high) / 2
    if not _positive(distance_at_hour):
        return 0.0
    return THRESHOLD_TARGET_SECONDS / (distance_at_hour / 1000)


def critical_speed_threshold_pace(first: Benchmark | None, second: Benchmark | None) -> float:
    """Threshold pace from the two-point distance/time model.

    Both benchmarks must be valid and the second must be strictly longer in
    distance and duration; otherwise 0.
    """
    if first is None or second is None or not first.is_valid or not second.is_valid:
        return 0.0
    if second.duration_s <= first.duration_s or second.distance_m <= first.distance_m:
        return 0.0

    critical_speed = (second.distance_m - first.distance_m) / (second.duration_s - first.duration_s)
    if not _positive(critical_speed):
        return 0.0
    return (1000 / critical_speed) * CRITICAL_SPEED_CONSERVATISM


def estimate_threshold(profile: AthleteProfile, model: ThresholdModel = "auto") -> ThresholdEstimate:
    """Estimate the 60-minute threshold pace for a profile.

    Args:
        profile: Athlete profile holding one or two benchmark results
        model: "auto" prefers critical speed when a valid second benchmark
            exists, "riegel" and "critical_speed" force one model

    Returns:
        ThresholdEstimate; pace 0 with source NONE when nothing is derivable
    """
    primary = profile.primary_benchmark()
    secondary = profile.secondary_benchmark()

    riegel_pace = riegel_threshold_pace(primary)
    cs_pace = critical_speed_threshold_pace(primary, secondary)

    if model == "riegel":
        chosen, source, alternate = riegel_pace, ThresholdSource.RIEGEL, cs_pace
    elif model == "critical_speed":
        chosen, source, alternate = cs_pace, ThresholdSource.CRITICAL_SPEED, riegel_pace
    elif cs_pace > 0:
        chosen, source, alternate = cs_pace, ThresholdSource.CRITICAL_SPEED, riegel_pace
    else:
        chosen, source, alternate = riegel_pace, ThresholdSource.RIEGEL, 0.0

    if chosen <= 0:
        return ThresholdEstimate(pace=0.0, source=ThresholdSource.NONE, alternate_pace=alternate)

    disagreement = abs(chosen - alternate) / chosen if alternate > 0 else 0.0
    if disagreement > MODEL_DISAGREEMENT_WARN:
        logger.warning(
            "Threshold models disagree",
            chosen_source=source.value,
            chosen_pace=round(chosen, 1),
            alternate_pace=round(alternate, 1),
            disagreement_pct=round(disagreement * 100, 1),
        )

    return ThresholdEstimate(pace=chosen, source=source, alternate_pace=alternate, disagreement=disagreement)


def estimate_sixty_minute_threshold_pace(profile: AthleteProfile, model: ThresholdModel = "auto") -> float:
    """Threshold pace (sec/km) for a profile, 0 when no valid benchmark exists."""
    return estimate_threshold(profile, model).pace
