"""Tests for session edits applied after plan generation."""

import pytest

from norskflow.pacing.clock import parse_clock_to_seconds
from norskflow.planning.editing import (
    clamp_rep_count,
    recalculate_session,
    select_variant,
    set_environment,
    update_easy_distance,
    update_interval,
)
from norskflow.planning.errors import PlanEditError
from norskflow.planning.models import AthleteProfile, Environment, LongRunVariant
from norskflow.planning.sessions import PacingContext
from norskflow.planning.synthesizer import generate_plan


def _fast_end(pace_text: str) -> int:
    return parse_clock_to_seconds(pace_text.split("-")[0])


@pytest.mark.parametrize(
    ("distance", "count", "expected"),
    [
        (400, 25, 20),
        (400, 3, 8),
        (400, None, 10),
        (2000, 3, 4),
        (2000, 9, 6),
        (3000, 7, 4),
        (5000, 1, 2),
        (1500, 7, 7),
        (1500, 0, 1),
    ],
)
def test_clamp_rep_count(distance: float, count: int | None, expected: int) -> None:
    assert clamp_rep_count(distance, count) == expected


def test_select_variant(long_run_profile: AthleteProfile) -> None:
    long_run = generate_plan(long_run_profile).day("Sunday").session
    long_run = long_run.model_copy(update={"icu_event_id": 42})

    blocks = select_variant(long_run, "sunday-blocks")
    assert blocks.variant == LongRunVariant.BLOCKS
    assert len(blocks.variants) == 3
    assert blocks.icu_event_id == 42
    assert long_run.variant == LongRunVariant.EASY

    back = select_variant(blocks, "sunday-easy")
    assert back.distance == long_run.distance


def test_select_unknown_variant(long_run_profile: AthleteProfile) -> None:
    long_run = generate_plan(long_run_profile).day("Sunday").session
    with pytest.raises(PlanEditError) as exc_info:
        select_variant(long_run, "sunday-hills")
    assert exc_info.value.code == "UNKNOWN_VARIANT"


def test_update_interval_count(threshold_week_profile: AthleteProfile) -> None:
    """Counts are clamped to the band for the rep distance and derived fields follow."""
    tuesday = generate_plan(threshold_week_profile).day("Tuesday").session

    edited = update_interval(tuesday, threshold_week_profile, 0, count=10)
    assert edited.intervals[0].count == 6
    assert edited.distance == pytest.approx(15)
    assert edited.title == "SubT 6x2km"
    assert edited.duration > tuesday.duration
    assert tuesday.intervals[0].count == 5


def test_update_interval_distance_repaces(threshold_week_profile: AthleteProfile) -> None:
    tuesday = generate_plan(threshold_week_profile).day("Tuesday").session

    edited = update_interval(tuesday, threshold_week_profile, 0, distance=400, rest="45s")
    interval = edited.intervals[0]
    assert interval.count == 8
    assert interval.rest == "45s"
    assert interval.description == "400m Pace"
    assert _fast_end(interval.pace) < _fast_end(tuesday.intervals[0].pace)
    assert edited.title == "SubT 8x400m"


def test_update_interval_errors(threshold_week_profile: AthleteProfile) -> None:
    plan = generate_plan(threshold_week_profile)

    with pytest.raises(PlanEditError) as exc_info:
        update_interval(plan.day("Tuesday").session, threshold_week_profile, 3, count=5)
    assert exc_info.value.code == "INTERVAL_OUT_OF_RANGE"

    with pytest.raises(PlanEditError) as exc_info:
        update_interval(plan.day("Monday").session, threshold_week_profile, 0, count=5)
    assert exc_info.value.code == "NOT_EDITABLE"


def test_update_easy_distance(threshold_week_profile: AthleteProfile) -> None:
    monday = generate_plan(threshold_week_profile).day("Monday").session
    edited = update_easy_distance(monday, threshold_week_profile, 10)

    assert edited.distance == 10
    assert edited.duration == PacingContext.for_profile(threshold_week_profile).easy_minutes(10)


def test_recalculate_with_correction(threshold_week_profile: AthleteProfile) -> None:
    monday = generate_plan(threshold_week_profile).day("Monday").session
    corrected = recalculate_session(monday, threshold_week_profile, 10)
    assert _fast_end(corrected.target_pace) == _fast_end(monday.target_pace) + 10


def test_treadmill_slows_threshold_targets(threshold_week_profile: AthleteProfile) -> None:
    tuesday = generate_plan(threshold_week_profile).day("Tuesday").session

    treadmill = set_environment(tuesday, threshold_week_profile, Environment.TREADMILL, incline_pct=3)
    assert treadmill.environment == Environment.TREADMILL
    assert treadmill.treadmill_incline_pct == 3
    assert _fast_end(treadmill.intervals[0].pace) > _fast_end(tuesday.intervals[0].pace)

    road = set_environment(treadmill, threshold_week_profile, Environment.ROAD)
    assert road.intervals[0].pace == tuesday.intervals[0].pace


def test_edits_keep_treadmill_pacing(threshold_week_profile: AthleteProfile) -> None:
    plan = generate_plan(threshold_week_profile)
    treadmill = set_environment(plan.day("Tuesday").session, threshold_week_profile, Environment.TREADMILL, incline_pct=5)

    edited = update_interval(treadmill, threshold_week_profile, 0, rest="90s")
    assert edited.environment == Environment.TREADMILL
    assert edited.intervals[0].rest == "90s"
    assert edited.intervals[0].pace == treadmill.intervals[0].pace

    easy = set_environment(plan.day("Monday").session, threshold_week_profile, Environment.TREADMILL, incline_pct=5)
    longer = update_easy_distance(easy, threshold_week_profile, easy.distance + 2)
    assert longer.target_pace == easy.target_pace
    assert longer.target_pace != plan.day("Monday").session.target_pace


def test_treadmill_long_run_keeps_selected_variant(long_run_profile: AthleteProfile) -> None:
    blocks = select_variant(generate_plan(long_run_profile).day("Sunday").session, "sunday-blocks")

    moved = set_environment(blocks, long_run_profile, Environment.TREADMILL, incline_pct=20)
    assert moved.variant == LongRunVariant.BLOCKS
    assert moved.treadmill_incline_pct == 15
    assert all(v.environment == Environment.TREADMILL for v in moved.variants)
    assert _fast_end(moved.intervals[0].pace) > _fast_end(blocks.intervals[0].pace)


def test_environment_applies_to_runs_only(bike_profile: AthleteProfile) -> None:
    ride = generate_plan(bike_profile).day("Thursday").session
    with pytest.raises(PlanEditError) as exc_info:
        set_environment(ride, bike_profile, Environment.TREADMILL)
    assert exc_info.value.code == "NOT_EDITABLE"
    assert recalculate_session(ride, bike_profile, 10) is ride
