"""Weekly plan summaries."""

from __future__ import annotations

from norskflow.pacing.clock import round_half_up
from norskflow.planning.models import LongRunVariant, Sport, WeeklyPlan, WorkoutType


def subthreshold_volume_km(plan: WeeklyPlan) -> float:
    """Running km at subthreshold or marathon effort.

    Counts the work reps of run threshold sessions plus the marathon-pace
    blocks of a long run when the blocks variant is selected.
    """
    total = 0.0
    for session in plan.sessions():
        if session.sport != Sport.RUN:
            continue
        if session.type == WorkoutType.THRESHOLD:
            total += session.interval_distance_km()
        elif session.type == WorkoutType.LONG_RUN and session.variant == LongRunVariant.BLOCKS:
            total += session.interval_distance_km()
    return round_half_up(total, 1)


def subthreshold_share_pct(plan: WeeklyPlan) -> float:
    """Subthreshold volume as a percentage of the week's running total."""
    if plan.total_distance <= 0:
        return 0.0
    return round_half_up(subthreshold_volume_km(plan) / plan.total_distance * 100, 1)
