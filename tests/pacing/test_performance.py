"""Tests for the race performance model and threshold estimation."""

import pytest

from norskflow.pacing.performance import (
    Benchmark,
    ThresholdSource,
    critical_speed_threshold_pace,
    estimate_sixty_minute_threshold_pace,
    estimate_threshold,
    estimate_vo2_score,
    predict_duration,
    predict_pace,
    riegel_threshold_pace,
)
from norskflow.planning.models import AthleteProfile

FIVE_K_PACE = 1147 / 5


def test_predict_duration_power_law() -> None:
    """Doubling the distance costs 2^1.06 times the time."""
    assert predict_duration(5000, 1200, 10000) == pytest.approx(1200 * 2**1.06)
    assert predict_duration(5000, 1200, 5000) == pytest.approx(1200)


def test_predict_returns_zero_when_not_predictable() -> None:
    assert predict_duration(0, 1200, 10000) == 0
    assert predict_duration(5000, 0, 10000) == 0
    assert predict_pace(5000, 1200, 0) == 0


def test_predict_pace_is_monotonic_beyond_benchmark() -> None:
    """Pace never gets faster as the target distance grows."""
    paces = [predict_pace(5000, 1147, d) for d in (5000, 8000, 10000, 15000, 21097, 30000, 42195)]
    assert paces == sorted(paces)
    assert paces[0] == pytest.approx(FIVE_K_PACE)


def test_riegel_threshold_from_5k() -> None:
    """A 19:07 5K gives a threshold slower than 5K pace, about 4:05/km."""
    pace = riegel_threshold_pace(Benchmark(5000, 1147))
    assert FIVE_K_PACE < pace < 250
    assert pace == pytest.approx(244.7, abs=0.5)


def test_riegel_threshold_near_one_hour_uses_race_pace() -> None:
    """A result within 30 s of an hour is already the threshold."""
    assert riegel_threshold_pace(Benchmark(15000, 3620)) == pytest.approx(3620 / 15)


def test_riegel_threshold_invalid_benchmark() -> None:
    assert riegel_threshold_pace(None) == 0
    assert riegel_threshold_pace(Benchmark(0, 1147)) == 0


def test_critical_speed_requires_longer_second_benchmark() -> None:
    first = Benchmark(5000, 1147)
    assert critical_speed_threshold_pace(first, Benchmark(10000, 2400)) == pytest.approx(
        1000 / (5000 / 1253) * 1.01
    )
    assert critical_speed_threshold_pace(first, Benchmark(3000, 600)) == 0
    assert critical_speed_threshold_pace(first, Benchmark(10000, 1000)) == 0
    assert critical_speed_threshold_pace(first, None) == 0


def test_estimate_threshold_prefers_critical_speed(threshold_week_profile: AthleteProfile) -> None:
    """With a valid second benchmark, auto picks critical speed and records the alternate."""
    profile = threshold_week_profile.model_copy(update={"race_distance_2": 10000, "race_time_2": "40:00"})

    estimate = estimate_threshold(profile)
    assert estimate.source == ThresholdSource.CRITICAL_SPEED
    assert estimate.alternate_pace == pytest.approx(riegel_threshold_pace(Benchmark(5000, 1147)))
    assert estimate.disagreement > 0.03

    forced = estimate_threshold(profile, "riegel")
    assert forced.source == ThresholdSource.RIEGEL
    assert forced.pace == pytest.approx(estimate.alternate_pace)


def test_estimate_threshold_single_benchmark(threshold_week_profile: AthleteProfile) -> None:
    estimate = estimate_threshold(threshold_week_profile)
    assert estimate.source == ThresholdSource.RIEGEL
    assert estimate.disagreement == 0


def test_estimate_threshold_without_benchmark(empty_race_profile: AthleteProfile) -> None:
    """No race time means no threshold, and nothing raises."""
    estimate = estimate_threshold(empty_race_profile)
    assert estimate.pace == 0
    assert estimate.source == ThresholdSource.NONE
    assert estimate_sixty_minute_threshold_pace(empty_race_profile) == 0


def test_forced_critical_speed_without_second_benchmark(threshold_week_profile: AthleteProfile) -> None:
    assert estimate_sixty_minute_threshold_pace(threshold_week_profile, "critical_speed") == 0


def test_vo2_score() -> None:
    assert 52 < estimate_vo2_score(5000, 1147) < 53
    assert estimate_vo2_score(0, 1147) == 0
