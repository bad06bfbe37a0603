"""Intervals.icu structured workout text.

Rendered from the same StepPlan as the FIT file, so both encodings always
agree on structure: elided warm-ups, singleton main sets and repeat blocks.
"""

from __future__ import annotations

from norskflow.pacing.clock import format_seconds_to_clock, round_half_up
from norskflow.workouts.steps import DurationKind, DurationSpec, EncodedStep, StepIntensity, StepPlan, TargetKind, TargetSpec


def format_duration(duration: DurationSpec) -> str:
    """Render a step length as "2km", "400mtr", "10m" or "90s"; empty when open."""
    if duration.kind == DurationKind.DISTANCE:
        meters = duration.meters
        if meters >= 1000:
            return f"{round_half_up(meters / 1000, 3):g}km"
        return f"{int(round_half_up(meters))}mtr"
    if duration.kind == DurationKind.TIME:
        seconds = int(round_half_up(duration.seconds))
        if seconds >= 60 and seconds % 60 == 0:
            return f"{seconds // 60}m"
        return f"{seconds}s"
    return ""


def _pace_from_speed(mm_per_s: int) -> str:
    return format_seconds_to_clock(1_000_000 / mm_per_s) if mm_per_s > 0 else "0:00"


def format_target(target: TargetSpec) -> str:
    if target.kind == TargetKind.SPEED:
        # high speed is the fast end of the band
        return f"{_pace_from_speed(target.high)}-{_pace_from_speed(target.low)}/km Pace"
    if target.kind == TargetKind.POWER:
        return f"{target.low}-{target.high}w"
    if target.kind == TargetKind.HEART_RATE:
        return f"{target.low}-{target.high}bpm HR"
    return ""


def format_step(step: EncodedStep) -> str:
    parts = ["-"]
    if step.intensity == StepIntensity.REST:
        parts.append("Rest")
    duration = format_duration(step.duration)
    if duration:
        parts.append(duration)
    elif step.notes:
        parts.append(step.notes)
    target = format_target(step.target)
    if target:
        parts.append(target)
    return " ".join(parts)


def render_workout_text(plan: StepPlan) -> str:
    """Render a step plan as Warmup / Main Set / Cooldown sections.

    Each repeat block gets its own "Main Set Nx" section; consecutive steps
    outside any block share one "Main Set" section.
    """
    sections: list[list[str]] = []
    current_key: object = None

    for idx, step in enumerate(plan.steps):
        if step.intensity == StepIntensity.WARMUP:
            key, header = "warmup", "Warmup"
        elif step.intensity == StepIntensity.COOLDOWN:
            key, header = "cooldown", "Cooldown"
        else:
            marker = plan.repeat_for(idx)
            if marker is not None:
                key, header = marker, f"Main Set {marker.count}x"
            else:
                key, header = "main", "Main Set"

        if key != current_key or not sections:
            sections.append([header])
            current_key = key
        sections[-1].append(format_step(step))

    return "\n\n".join("\n".join(lines) for lines in sections)
