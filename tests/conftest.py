"""Root conftest for all tests.

Shared athlete profiles used across pacing, planning and encoding tests.
"""

import pytest

from norskflow.planning.models import AthleteProfile, DayType, Sport


@pytest.fixture
def threshold_week_profile() -> AthleteProfile:
    """5K in 19:07, 80 km/week, three threshold days and three easy days."""
    return AthleteProfile(
        uid="athlete-1",
        name="Test Athlete",
        race_distance=5000,
        race_time="19:07",
        weekly_volume=80,
        schedule={
            "Monday": DayType.EASY,
            "Tuesday": DayType.THRESHOLD,
            "Wednesday": DayType.EASY,
            "Thursday": DayType.THRESHOLD,
            "Friday": DayType.EASY,
            "Saturday": DayType.REST,
            "Sunday": DayType.THRESHOLD,
        },
        warmup_dist=2.0,
        cooldown_dist=1.0,
    )


@pytest.fixture
def long_run_profile() -> AthleteProfile:
    """Classic week with a Sunday long run, 60 km/week."""
    return AthleteProfile(
        uid="athlete-2",
        race_distance=10000,
        race_time="40:00",
        weekly_volume=60,
        schedule={
            "Monday": DayType.EASY,
            "Tuesday": DayType.THRESHOLD,
            "Wednesday": DayType.REST,
            "Thursday": DayType.THRESHOLD,
            "Friday": DayType.REST,
            "Saturday": DayType.REST,
            "Sunday": DayType.LONG_RUN,
        },
        warmup_dist=2.0,
        cooldown_dist=1.0,
    )


@pytest.fixture
def empty_race_profile(threshold_week_profile: AthleteProfile) -> AthleteProfile:
    """Half-filled profile: no benchmark time yet."""
    return threshold_week_profile.model_copy(update={"race_time": ""})


@pytest.fixture
def bike_profile(long_run_profile: AthleteProfile) -> AthleteProfile:
    """Long-run profile with Thursday and Sunday moved to the bike."""
    return long_run_profile.model_copy(
        update={
            "ftp": 250,
            "max_hr": 190,
            "schedule_sport": {"Thursday": Sport.BIKE, "Sunday": Sport.BIKE},
        }
    )
