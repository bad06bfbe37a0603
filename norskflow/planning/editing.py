"""Session edits applied after a plan was generated.

Every edit returns a new WorkoutSession; inputs are never mutated. Derived
fields (pace bands, distance, duration, title) are recomputed from the
profile so an edited session reads the same as a freshly generated one.
"""

from __future__ import annotations

from loguru import logger

from norskflow.pacing.clock import round_half_up
from norskflow.pacing.environment import DEFAULT_TREADMILL_BASE_PACE, clamp_incline, treadmill_grade_delta
from norskflow.planning.errors import PlanEditError
from norskflow.planning.models import AthleteProfile, Environment, Interval, LongRunVariant, Sport, WorkoutSession, WorkoutType
from norskflow.planning.sessions import (
    THRESHOLD_DURATION_FACTOR,
    PacingContext,
    build_long_run,
    format_threshold_title,
)


def clamp_rep_count(distance_m: float, count: int | None) -> int:
    """Keep the repetition count inside the band that suits the rep distance.

    Up to 1000 m: 8-20 reps. Exactly 2000 m: 4-6. From 3000 m: 2-4. Other
    distances keep the requested count. A missing count takes the band default.
    """
    if distance_m <= 1000:
        low, high, default = 8, 20, 10
    elif distance_m == 2000:
        low, high, default = 4, 6, 5
    elif distance_m >= 3000:
        low, high, default = 2, 4, 3
    else:
        return max(1, count or 1)
    return min(high, max(low, count or default))


def select_variant(session: WorkoutSession, variant_id: str) -> WorkoutSession:
    """Switch a long-run slot to one of its alternates.

    Raises:
        PlanEditError: If the session has no variant with that id
    """
    variants = session.variants or []
    match = next((v for v in variants if v.id == variant_id), None)
    if match is None:
        raise PlanEditError(
            "UNKNOWN_VARIANT",
            [f"Session '{session.id}' has no variant '{variant_id}'", f"Available: {[v.id for v in variants]}"],
        )
    return match.model_copy(update={"variants": variants, "icu_event_id": session.icu_event_id})


def _require(session: WorkoutSession, workout_type: WorkoutType) -> None:
    if session.type != workout_type or session.sport != Sport.RUN:
        raise PlanEditError(
            "NOT_EDITABLE",
            [f"Session '{session.id}' is a {session.sport} {session.type} session, expected a run {workout_type}"],
        )


def _recalculate_threshold(session: WorkoutSession, pacing: PacingContext) -> WorkoutSession:
    profile = pacing.profile
    intervals: list[Interval] = []
    for interval in session.intervals:
        zone = pacing.interval_zone(interval.distance)
        intervals.append(interval.model_copy(update={"pace": zone.text, "description": zone.label}))

    work_km = sum(i.distance * i.count for i in intervals) / 1000
    session_km = profile.warmup_dist + profile.cooldown_dist + work_km
    update: dict = {
        "intervals": intervals,
        "distance": round_half_up(session_km, 1),
        "duration": int(round_half_up(session_km * (pacing.threshold_pace / 60) * THRESHOLD_DURATION_FACTOR)),
    }
    if intervals:
        update["title"] = format_threshold_title(intervals[0].count, intervals[0].distance)
    return session.model_copy(update=update)


def _recalculate_easy(session: WorkoutSession, pacing: PacingContext) -> WorkoutSession:
    return session.model_copy(
        update={
            "duration": pacing.easy_minutes(session.distance),
            "target_pace": pacing.easy.text,
            "description": f"Target Pace: {pacing.easy.text}/km",
        }
    )


def _recalculate_long_run(session: WorkoutSession, pacing: PacingContext) -> WorkoutSession:
    variants = session.variants or [session]
    easy = next((v for v in variants if v.variant == LongRunVariant.EASY), variants[0])
    base_id = session.id.rsplit("-", 1)[0] if session.variant is not None else session.id

    rebuilt = build_long_run(base_id, easy.distance, pacing)
    keep = {"environment": session.environment, "treadmill_incline_pct": session.treadmill_incline_pct}
    rebuilt_variants = [v.model_copy(update=keep) for v in rebuilt.variants or []]
    selected = next((v for v in rebuilt_variants if v.variant == session.variant), rebuilt_variants[0])
    return selected.model_copy(update={"variants": rebuilt_variants, "icu_event_id": session.icu_event_id})


def environment_correction(
    session: WorkoutSession,
    profile: AthleteProfile,
    correction_sec: float = 0,
) -> float:
    """Total pace correction for a session, including the treadmill grade delta."""
    if session.environment != Environment.TREADMILL:
        return correction_sec

    pacing = PacingContext.for_profile(profile, correction_sec)
    base_pace = pacing.threshold_pace if session.type == WorkoutType.THRESHOLD else pacing.easy.center
    delta = treadmill_grade_delta(session.treadmill_incline_pct, base_pace or DEFAULT_TREADMILL_BASE_PACE)
    return correction_sec + delta


def recalculate_session(
    session: WorkoutSession,
    profile: AthleteProfile,
    correction_sec: float = 0,
) -> WorkoutSession:
    """Re-derive paces, distance and duration of a run session from the profile.

    correction_sec is the weather or manual correction; the session's own
    treadmill grade delta is added on top. Rides and rest entries come back
    unchanged.
    """
    if session.sport != Sport.RUN:
        return session

    pacing = PacingContext.for_profile(profile, environment_correction(session, profile, correction_sec))
    if session.type == WorkoutType.THRESHOLD:
        return _recalculate_threshold(session, pacing)
    if session.type == WorkoutType.EASY:
        return _recalculate_easy(session, pacing)
    if session.type == WorkoutType.LONG_RUN:
        return _recalculate_long_run(session, pacing)
    return session


def update_interval(
    session: WorkoutSession,
    profile: AthleteProfile,
    index: int,
    *,
    distance: float | None = None,
    count: int | None = None,
    rest: str | None = None,
    correction_sec: float = 0,
) -> WorkoutSession:
    """Edit one interval of a run threshold session.

    Raises:
        PlanEditError: If the session is not a run threshold session or the
            index does not exist
    """
    _require(session, WorkoutType.THRESHOLD)
    if index < 0 or index >= len(session.intervals):
        raise PlanEditError(
            "INTERVAL_OUT_OF_RANGE",
            [f"Interval index {index} out of range for session '{session.id}' ({len(session.intervals)} intervals)"],
        )

    current = session.intervals[index]
    new_distance = current.distance if distance is None else max(0.0, float(distance))
    update: dict = {"distance": new_distance}
    if rest is not None:
        update["rest"] = rest
    if distance is not None or count is not None:
        update["count"] = clamp_rep_count(new_distance, current.count if count is None else count)

    intervals = list(session.intervals)
    intervals[index] = current.model_copy(update=update)
    logger.debug(f"Updated interval {index} of {session.id}: {update}")

    return recalculate_session(session.model_copy(update={"intervals": intervals}), profile, correction_sec)


def update_easy_distance(
    session: WorkoutSession,
    profile: AthleteProfile,
    distance_km: float,
    correction_sec: float = 0,
) -> WorkoutSession:
    """Change the distance of a run easy session; duration follows."""
    _require(session, WorkoutType.EASY)
    edited = session.model_copy(update={"distance": max(0.0, float(distance_km))})
    return recalculate_session(edited, profile, correction_sec)


def set_environment(
    session: WorkoutSession,
    profile: AthleteProfile,
    environment: Environment,
    incline_pct: float | None = None,
    correction_sec: float = 0,
) -> WorkoutSession:
    """Move a run session to road, trail or treadmill and re-pace it.

    Treadmill sessions are paced with the grade-equivalent delta for the
    (clamped) incline added to the correction.
    """
    if session.sport != Sport.RUN:
        raise PlanEditError("NOT_EDITABLE", [f"Session '{session.id}' is a ride, environment applies to runs only"])

    incline = clamp_incline(incline_pct if incline_pct is not None else session.treadmill_incline_pct)
    moved = session.model_copy(update={"environment": environment, "treadmill_incline_pct": incline})
    return recalculate_session(moved, profile, correction_sec)
