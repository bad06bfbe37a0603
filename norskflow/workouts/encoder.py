"""Workout encoding entry point.

Turns one WorkoutSession into everything a calendar upload needs: title,
description, Intervals.icu workout text, the step plan and (optionally) a
FIT binary built from that same plan.
"""

from __future__ import annotations

from dataclasses import dataclass

from norskflow.pacing.clock import round_half_up
from norskflow.planning.models import Sport, WorkoutSession, WorkoutType
from norskflow.planning.sessions import format_threshold_title
from norskflow.workouts.exporters.base import WorkoutExporter
from norskflow.workouts.exporters.fit_exporter import FitWorkoutExporter
from norskflow.workouts.steps import StepOptions, StepPlan, build_step_plan
from norskflow.workouts.text import render_workout_text

# Export type to exporter class mapping
EXPORTER_REGISTRY: dict[str, type[WorkoutExporter]] = {
    "fit": FitWorkoutExporter,
}


def get_exporter(export_type: str) -> WorkoutExporter:
    """Get exporter instance for export type.

    Raises:
        ValueError: If export_type is not supported
    """
    exporter_class = EXPORTER_REGISTRY.get(export_type)
    if exporter_class is None:
        raise ValueError(f"Unsupported export type: {export_type}")
    return exporter_class()


@dataclass(frozen=True)
class EncodedWorkout:
    title: str
    description: str
    text: str
    step_plan: StepPlan
    moving_time_s: int
    sport: Sport
    fit_bytes: bytes | None = None

    @property
    def fit_filename(self) -> str:
        return get_exporter("fit").filename_for(self.title)


def _time_label(seconds: float) -> str:
    total = int(round_half_up(seconds))
    if total >= 60 and total % 60 == 0:
        return f"{total // 60}min"
    return f"{total}s"


def derive_title(session: WorkoutSession) -> str:
    """Title for upload; threshold titles are rebuilt from the first interval.

    Stored threshold titles go stale after interval edits, so the rep count
    and rep length are read back from the interval itself.
    """
    if session.type != WorkoutType.THRESHOLD or not session.intervals:
        return session.title

    first = session.intervals[0]
    if first.duration_seconds:
        return f"SubT {first.count}x{_time_label(first.duration_seconds)}"
    return format_threshold_title(first.count, first.distance)


def encode_session(
    session: WorkoutSession,
    options: StepOptions | None = None,
    include_fit: bool = True,
) -> EncodedWorkout:
    """Encode a session as ICU text plus an optional FIT file.

    Args:
        session: Session to encode
        options: Step encoding switches (heart-rate preference)
        include_fit: Also build the FIT binary

    Returns:
        EncodedWorkout sharing one step plan across both encodings
    """
    title = derive_title(session)
    step_plan = build_step_plan(session, options)
    fit_bytes = get_exporter("fit").build(step_plan, title, session.sport) if include_fit else None

    return EncodedWorkout(
        title=title,
        description=session.description,
        text=render_workout_text(step_plan),
        step_plan=step_plan,
        moving_time_s=max(0, session.duration) * 60,
        sport=session.sport,
        fit_bytes=fit_bytes,
    )
