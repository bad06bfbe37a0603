"""Tests for the plan data model and its persisted JSON layout."""

import pytest
from pydantic import ValidationError

from norskflow.planning.models import WEEKDAYS, AthleteProfile, DayType, Interval, Sport


def test_profile_accepts_camel_case_document() -> None:
    """Stored profiles use camelCase keys; missing days default to rest."""
    profile = AthleteProfile.model_validate(
        {
            "raceDistance": 5000,
            "raceTime": "19:07",
            "maxHR": 185,
            "weeklyVolume": 50,
            "warmupDist": 2,
            "schedule": {"Tuesday": "Threshold", "Sunday": "Long Run"},
            "scheduleSport": {"Sunday": "bike"},
        }
    )

    assert profile.max_hr == 185
    assert profile.warmup_dist == 2
    assert list(profile.schedule) == list(WEEKDAYS)
    assert profile.day_type("Monday") == DayType.REST
    assert profile.day_type("Tuesday") == DayType.THRESHOLD
    assert profile.sport_for("Sunday") == Sport.BIKE
    assert profile.sport_for("Tuesday") == Sport.RUN


def test_profile_rejects_unknown_days() -> None:
    with pytest.raises(ValidationError):
        AthleteProfile(schedule={"Funday": DayType.EASY})


def test_profile_round_trips_through_json(threshold_week_profile: AthleteProfile) -> None:
    data = threshold_week_profile.to_json_dict()
    assert data["raceTime"] == "19:07"
    assert data["maxHR"] == 0
    assert AthleteProfile.model_validate(data) == threshold_week_profile


def test_profile_ignores_display_settings(threshold_week_profile: AthleteProfile) -> None:
    """Documents saved with a display unit still load; the unit is not carried."""
    data = {**threshold_week_profile.to_json_dict(), "unit": "mi"}
    profile = AthleteProfile.model_validate(data)

    assert profile == threshold_week_profile
    assert "unit" not in profile.to_json_dict()


def test_days_of_type_filters_by_sport(bike_profile: AthleteProfile) -> None:
    assert bike_profile.days_of_type(DayType.THRESHOLD) == ["Tuesday", "Thursday"]
    assert bike_profile.days_of_type(DayType.THRESHOLD, Sport.RUN) == ["Tuesday"]


def test_benchmarks(threshold_week_profile: AthleteProfile) -> None:
    primary = threshold_week_profile.primary_benchmark()
    assert primary is not None
    assert primary.duration_s == 1147
    assert threshold_week_profile.secondary_benchmark() is None
    assert threshold_week_profile.model_copy(update={"race_time": ""}).primary_benchmark() is None


@pytest.mark.parametrize(("raw", "expected"), [(0, 1), (-3, 1), (5, 5), ("7", 7), (None, 1)])
def test_interval_count_is_at_least_one(raw: object, expected: int) -> None:
    assert Interval(count=raw).count == expected
