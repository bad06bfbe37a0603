"""Run session builders.

Each builder turns an allocated distance plus the athlete's pacing into a
WorkoutSession. Paces are resolved once per plan into a PacingContext so
every session of a week shares the same corrected anchors.
"""

from __future__ import annotations

from dataclasses import dataclass

from norskflow.config.settings import settings
from norskflow.pacing.clock import format_km, format_seconds_to_clock, round_half_up
from norskflow.pacing.performance import ThresholdModel
from norskflow.pacing.zones import PaceZone, get_easy_pace_range, get_interval_pace_range, get_marathon_pace, get_threshold_pace
from norskflow.planning.models import AthleteProfile, Interval, LongRunVariant, WorkoutSession, WorkoutType
from norskflow.planning.templates import ThresholdTemplate

THRESHOLD_DURATION_FACTOR = 1.05
MP_BLOCK_KM = 5
MP_BLOCK_COUNT = 3
PROGRESSION_SPLIT = (0.5, 0.3, 0.2)

THRESHOLD_DESCRIPTION = "Strictly controlled sub-threshold. Stay below lactate turnpoint."


@dataclass(frozen=True)
class PacingContext:
    """Corrected pace anchors shared by every session of one plan."""

    profile: AthleteProfile
    correction_sec: float
    threshold_pace: float
    easy: PaceZone
    marathon_pace: float
    model: ThresholdModel = "auto"

    @classmethod
    def for_profile(
        cls,
        profile: AthleteProfile,
        correction_sec: float = 0,
        model: ThresholdModel = "auto",
    ) -> PacingContext:
        return cls(
            profile=profile,
            correction_sec=correction_sec,
            threshold_pace=get_threshold_pace(profile, correction_sec, model),
            easy=get_easy_pace_range(profile, correction_sec, model),
            marathon_pace=get_marathon_pace(profile, correction_sec),
            model=model,
        )

    def interval_zone(self, rep_distance_m: float) -> PaceZone:
        return get_interval_pace_range(self.profile, rep_distance_m, self.correction_sec, self.model)

    def easy_minutes(self, distance_km: float) -> int:
        return int(round_half_up(distance_km * self.easy.center / 60))


def format_threshold_title(reps: int, distance_m: float) -> str:
    """Threshold title such as "SubT 5x2km" or "SubT 8x400m"."""
    safe_reps = max(1, int(round_half_up(reps or 1)))
    distance = max(0.0, distance_m or 0.0)
    label = f"{format_km(distance / 1000)}km" if distance >= 1000 else f"{int(round_half_up(distance))}m"
    return f"SubT {safe_reps}x{label}"


def _buffer_text(distance_km: float, effort: str) -> str:
    """Warm-up or cool-down text; "N/A" when there is no buffer to run."""
    return f"{format_km(distance_km)}km {effort}" if distance_km > 0 else "N/A"


def build_threshold_session(session_id: str, template: ThresholdTemplate, pacing: PacingContext) -> WorkoutSession:
    profile = pacing.profile
    zone = pacing.interval_zone(template.distance_m)
    session_km = profile.warmup_dist + profile.cooldown_dist + template.work_km

    return WorkoutSession(
        id=session_id,
        title=format_threshold_title(template.reps, template.distance_m),
        type=WorkoutType.THRESHOLD,
        treadmill_incline_pct=settings.treadmill_incline_default,
        distance=round_half_up(session_km, 1),
        duration=int(round_half_up(session_km * (pacing.threshold_pace / 60) * THRESHOLD_DURATION_FACTOR)),
        description=THRESHOLD_DESCRIPTION,
        intervals=[
            Interval(
                distance=template.distance_m,
                count=template.reps,
                pace=zone.text,
                rest=template.rest,
                description=zone.label,
            )
        ],
        warmup=_buffer_text(profile.warmup_dist, "easy pace"),
        cooldown=_buffer_text(profile.cooldown_dist, "easy pace"),
    )


def _easy_long_run(session_id: str, distance_km: float, pacing: PacingContext) -> WorkoutSession:
    return WorkoutSession(
        id=f"{session_id}-easy",
        title="Easy Long Run",
        type=WorkoutType.LONG_RUN,
        treadmill_incline_pct=settings.treadmill_incline_default,
        distance=distance_km,
        duration=pacing.easy_minutes(distance_km),
        description="Continuous easy endurance run.",
        intervals=[Interval(distance=distance_km * 1000, count=1, pace=pacing.easy.text, rest="0", description="Easy")],
        warmup="Direct start",
        cooldown="Walk off",
        variant=LongRunVariant.EASY,
    )


def _progressive_long_run(session_id: str, distance_km: float, pacing: PacingContext) -> WorkoutSession:
    steady_pace = (pacing.easy.center + pacing.marathon_pace) / 2
    easy_share, steady_share, mp_share = PROGRESSION_SPLIT
    segments = (
        (easy_share, pacing.easy.center, "Easy"),
        (steady_share, steady_pace, "Steady"),
        (mp_share, pacing.marathon_pace, "MP"),
    )

    return WorkoutSession(
        id=f"{session_id}-prog",
        title="Progressive Long Run",
        type=WorkoutType.LONG_RUN,
        treadmill_incline_pct=settings.treadmill_incline_default,
        distance=distance_km,
        duration=int(round_half_up(distance_km * (steady_pace / 60))),
        description="Build: 50% Easy, 30% Steady, 20% Marathon Pace.",
        intervals=[
            Interval(
                distance=round_half_up(distance_km * share * 1000),
                count=1,
                pace=format_seconds_to_clock(pace),
                rest="0",
                description=label,
            )
            for share, pace, label in segments
        ],
        warmup="Direct start",
        cooldown="Walk off",
        variant=LongRunVariant.PROGRESSIVE,
    )


def _block_long_run(session_id: str, pacing: PacingContext) -> WorkoutSession:
    profile = pacing.profile
    buffer_km = profile.warmup_dist + profile.cooldown_dist
    block_km = MP_BLOCK_KM * MP_BLOCK_COUNT

    return WorkoutSession(
        id=f"{session_id}-blocks",
        title=f"{MP_BLOCK_COUNT}x{MP_BLOCK_KM}km MP Long Run",
        type=WorkoutType.LONG_RUN,
        treadmill_incline_pct=settings.treadmill_incline_default,
        distance=round_half_up(buffer_km + block_km, 1),
        duration=int(round_half_up(block_km * (pacing.marathon_pace / 60) + buffer_km * (pacing.easy.center / 60))),
        description=f"High specificity. {MP_BLOCK_COUNT} blocks of {MP_BLOCK_KM}km at Marathon Pace.",
        intervals=[
            Interval(
                distance=MP_BLOCK_KM * 1000,
                count=MP_BLOCK_COUNT,
                pace=format_seconds_to_clock(pacing.marathon_pace),
                rest="1km float",
                description="Marathon Pace",
            )
        ],
        warmup=_buffer_text(profile.warmup_dist, "Easy"),
        cooldown=_buffer_text(profile.cooldown_dist, "Easy"),
        variant=LongRunVariant.BLOCKS,
    )


def build_long_run(session_id: str, distance_km: float, pacing: PacingContext) -> WorkoutSession:
    """Long run defaulting to the easy variant, carrying all three alternates."""
    variants = [
        _easy_long_run(session_id, distance_km, pacing),
        _progressive_long_run(session_id, distance_km, pacing),
        _block_long_run(session_id, pacing),
    ]
    return variants[0].model_copy(update={"variants": variants})


def build_easy_run(session_id: str, distance_km: float, pacing: PacingContext) -> WorkoutSession:
    return WorkoutSession(
        id=session_id,
        title="Easy Run",
        type=WorkoutType.EASY,
        treadmill_incline_pct=settings.treadmill_incline_default,
        target_pace=pacing.easy.text,
        distance=distance_km,
        duration=pacing.easy_minutes(distance_km),
        description=f"Target Pace: {pacing.easy.text}/km",
        warmup="N/A",
        cooldown="N/A",
    )
