"""Tests for session encoding (title, text, FIT hand-off)."""

import pytest

from norskflow.planning.models import AthleteProfile, Interval, Sport, WorkoutSession, WorkoutType
from norskflow.planning.synthesizer import generate_plan
from norskflow.workouts.encoder import derive_title, encode_session, get_exporter


def test_threshold_title_follows_first_interval(threshold_week_profile: AthleteProfile) -> None:
    """A stale stored title is rebuilt from the interval at encode time."""
    tuesday = generate_plan(threshold_week_profile).day("Tuesday").session
    stale = tuesday.model_copy(update={"intervals": [tuesday.intervals[0].model_copy(update={"count": 6})]})

    assert stale.title == "SubT 5x2km"
    assert derive_title(stale) == "SubT 6x2km"


def test_time_based_threshold_title() -> None:
    session = WorkoutSession(
        id="t",
        title="Old",
        type=WorkoutType.THRESHOLD,
        intervals=[Interval(duration_seconds=300, count=5)],
    )
    assert derive_title(session) == "SubT 5x5min"


def test_other_titles_are_kept(threshold_week_profile: AthleteProfile) -> None:
    monday = generate_plan(threshold_week_profile).day("Monday").session
    assert derive_title(monday) == "Easy Run"


def test_encode_without_fit(threshold_week_profile: AthleteProfile) -> None:
    tuesday = generate_plan(threshold_week_profile).day("Tuesday").session
    encoded = encode_session(tuesday, include_fit=False)

    assert encoded.fit_bytes is None
    assert encoded.title == "SubT 5x2km"
    assert encoded.moving_time_s == tuesday.duration * 60
    assert encoded.sport == Sport.RUN
    assert "Main Set 5x" in encoded.text
    assert encoded.fit_filename == "subt-5x2km.fit"


def test_unknown_exporter() -> None:
    with pytest.raises(ValueError, match="Unsupported export type"):
        get_exporter("zwo")


def test_fit_filename_falls_back_for_symbol_titles() -> None:
    exporter = get_exporter("fit")

    assert exporter.filename_for("Long Run (Blocks)") == "long-run-blocks.fit"
    assert exporter.filename_for("!!!") == "workout.fit"
