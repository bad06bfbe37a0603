"""Weekly plan synthesis.

generate_plan is a pure function of the profile and the pace correction:
calling it twice with the same inputs yields identical plans.

Order of work:
1. Resolve corrected pace anchors (threshold, easy band, marathon pace)
2. Allocate the weekly target across threshold, long-run and easy days
3. Build one session per scheduled day (run or ride)
4. Reconcile run easy days so the realized total matches the target
"""

from __future__ import annotations

from loguru import logger

from norskflow.pacing.clock import round_half_up
from norskflow.pacing.performance import ThresholdModel
from norskflow.planning.allocation import EASY_FLOOR_KM, EASY_MIN_SESSION_KM, VolumeAllocation, allocate_volume
from norskflow.planning.bike import build_easy_ride, build_long_ride, build_threshold_ride
from norskflow.planning.models import (
    WEEKDAYS,
    AthleteProfile,
    DailyPlan,
    DayType,
    Sport,
    WeeklyPlan,
    WorkoutSession,
    WorkoutType,
)
from norskflow.planning.sessions import PacingContext, build_easy_run, build_long_run, build_threshold_session
from norskflow.planning.templates import SessionCatalog, load_catalog

SHORTFALL_TOLERANCE_KM = 0.05


def _build_session(
    day: str,
    profile: AthleteProfile,
    allocation: VolumeAllocation,
    pacing: PacingContext,
    catalog: SessionCatalog,
) -> WorkoutSession | None:
    day_type = profile.day_type(day)
    session_id = day.lower()
    on_bike = profile.sport_for(day) == Sport.BIKE

    if day_type == DayType.THRESHOLD:
        template = allocation.template_for(day)
        if on_bike:
            return build_threshold_ride(session_id, template, pacing, catalog)
        return build_threshold_session(session_id, template, pacing)

    if day_type == DayType.LONG_RUN:
        if on_bike:
            return build_long_ride(session_id, allocation.long_run_km, pacing, catalog)
        return build_long_run(session_id, allocation.long_run_km, pacing)

    if day_type == DayType.EASY:
        if on_bike:
            return build_easy_ride(session_id, allocation.easy_km or EASY_FLOOR_KM, pacing, catalog)
        if allocation.easy_km >= EASY_MIN_SESSION_KM:
            return build_easy_run(session_id, allocation.easy_km, pacing)
        return None

    return None


def run_distance(days: list[DailyPlan]) -> float:
    """Sum of run session distances in km."""
    return sum(d.session.distance for d in days if d.session is not None and d.session.sport == Sport.RUN)


def ride_distance(days: list[DailyPlan]) -> float:
    return sum(d.session.distance for d in days if d.session is not None and d.session.sport == Sport.BIKE)


def _is_run_easy(session: WorkoutSession | None) -> bool:
    return session is not None and session.type == WorkoutType.EASY and session.sport == Sport.RUN


def reconcile_easy_days(days: list[DailyPlan], target_km: float, pacing: PacingContext) -> list[DailyPlan]:
    """Spread the gap between realized and target volume over run easy days.

    Each adjusted day is floored at 4 km and rounded to 0.1 km, and its
    duration follows the new distance. Plans without run easy sessions are
    returned unchanged.
    """
    easy_count = sum(1 for d in days if _is_run_easy(d.session))
    actual = run_distance(days)
    if easy_count == 0 or round_half_up(actual, 1) == round_half_up(target_km, 1):
        return days

    per_day = (target_km - actual) / easy_count
    reconciled: list[DailyPlan] = []
    for day in days:
        session = day.session
        if session is not None and _is_run_easy(session):
            distance = max(EASY_MIN_SESSION_KM, round_half_up(session.distance + per_day, 1))
            session = session.model_copy(update={"distance": distance, "duration": pacing.easy_minutes(distance)})
            day = day.model_copy(update={"session": session})
        reconciled.append(day)
    return reconciled


def generate_plan(
    profile: AthleteProfile,
    correction_sec: float = 0,
    model: ThresholdModel = "auto",
    catalog: SessionCatalog | None = None,
) -> WeeklyPlan:
    """Build a seven-day plan for the profile.

    Args:
        profile: Athlete profile with schedule, benchmark and weekly volume
        correction_sec: Environmental pace correction applied to every pace
        model: Threshold model selection (see estimate_threshold)
        catalog: Session template catalog, defaults to the packaged one

    Returns:
        WeeklyPlan with one DailyPlan per weekday, Monday first
    """
    catalog = catalog or load_catalog()
    pacing = PacingContext.for_profile(profile, correction_sec, model)

    if pacing.threshold_pace <= 0:
        logger.info("No benchmark pace derivable, plan targets will read 0:00")

    allocation = allocate_volume(profile, catalog)
    logger.debug(
        f"Allocated volume: target={allocation.target_km}km long_run={allocation.long_run_km}km "
        f"easy={allocation.easy_km}km x{len(allocation.easy_days)} remaining={allocation.remaining_km:.1f}km"
    )

    days = [
        DailyPlan(
            day=day,
            type=profile.day_type(day),
            session=_build_session(day, profile, allocation, pacing, catalog),
        )
        for day in WEEKDAYS
    ]
    days = reconcile_easy_days(days, allocation.target_km, pacing)

    total = round_half_up(run_distance(days), 1)
    shortfall = round_half_up(allocation.target_km - total, 1)
    if abs(shortfall) > SHORTFALL_TOLERANCE_KM + 0.1 * len(allocation.easy_days):
        logger.warning(
            "Weekly plan misses its running target",
            target_km=allocation.target_km,
            total_km=total,
            shortfall_km=shortfall,
            easy_days=len(allocation.easy_days),
        )

    return WeeklyPlan(
        days=days,
        total_distance=total,
        target_distance=allocation.target_km,
        shortfall=shortfall,
        bike_distance=round_half_up(ride_distance(days), 1),
    )
