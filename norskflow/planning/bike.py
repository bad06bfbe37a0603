"""Ride session builders for days scheduled on the bike.

Rides are sized from the run they replace: the run-equivalent time is turned
into distance at an assumed cruising speed. Targets are power bands when the
athlete's FTP is known, heart-rate bands when only max HR is known, and open
zones otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass

from norskflow.pacing.clock import format_km, parse_clock_to_seconds, round_half_up
from norskflow.planning.models import Interval, LongRunVariant, Sport, WorkoutSession, WorkoutType
from norskflow.planning.sessions import PacingContext
from norskflow.planning.templates import SessionCatalog, ThresholdTemplate

EASY_RIDE_MIN_KM = 20
THRESHOLD_REP_MIN_M = 1000
THRESHOLD_WARMUP_MIN = 15
THRESHOLD_COOLDOWN_MIN = 10
THRESHOLD_REST_S = 120
LONG_RIDE_FALLBACK_MIN = 120
TEMPO_BLOCK_MIN = 20
TEMPO_BLOCK_COUNT = 3
TEMPO_REST_S = 300
TEMPO_RIDE_MIN_DURATION = 95


@dataclass(frozen=True)
class RideTargets:
    """Resolved targets for one ride zone."""

    zone: str
    power_low: int | None = None
    power_high: int | None = None
    hr_low: int | None = None
    hr_high: int | None = None

    @property
    def label(self) -> str:
        if self.power_low is not None:
            return f"{self.power_low}-{self.power_high}w"
        if self.hr_low is not None:
            return f"{self.hr_low}-{self.hr_high}bpm"
        return ""

    def interval(self, distance_m: float, count: int = 1, rest: str = "0", fallback: str = "") -> Interval:
        return Interval(
            distance=distance_m,
            count=count,
            pace="",
            rest=rest,
            description=self.label or fallback,
            target_zone=self.zone,
            target_power_low=self.power_low,
            target_power_high=self.power_high,
            target_hr_low=self.hr_low,
            target_hr_high=self.hr_high,
        )


def ride_targets(pacing: PacingContext, catalog: SessionCatalog, zone: str, catalog_zone: str | None = None) -> RideTargets:
    """Power band from FTP, else heart-rate band from max HR, else open."""
    band = catalog.zone(catalog_zone or zone)
    profile = pacing.profile
    ftp = profile.ftp or 0

    if ftp > 0:
        return RideTargets(
            zone=zone,
            power_low=int(round_half_up(ftp * band.power[0])),
            power_high=int(round_half_up(ftp * band.power[1])),
        )
    if profile.max_hr > 0:
        return RideTargets(
            zone=zone,
            hr_low=int(round_half_up(profile.max_hr * band.heart_rate[0])),
            hr_high=int(round_half_up(profile.max_hr * band.heart_rate[1])),
        )
    return RideTargets(zone=zone)


def _ride_km(minutes: float, speed_kmh: float) -> float:
    return minutes / 60 * speed_kmh


def _with_label(text: str, targets: RideTargets) -> str:
    return f"{text} ({targets.label})." if targets.label else f"{text}."


def build_easy_ride(session_id: str, run_equivalent_km: float, pacing: PacingContext, catalog: SessionCatalog) -> WorkoutSession:
    """Zone 2 ride lasting as long as the easy run it replaces."""
    minutes = pacing.easy_minutes(run_equivalent_km)
    distance_km = max(EASY_RIDE_MIN_KM, round_half_up(_ride_km(minutes, catalog.bike_speed(WorkoutType.EASY))))
    targets = ride_targets(pacing, catalog, "Z2")

    return WorkoutSession(
        id=session_id,
        title="Easy Ride",
        type=WorkoutType.EASY,
        sport=Sport.BIKE,
        treadmill_incline_pct=0,
        use_heart_rate_target=True,
        target_hr_low=targets.hr_low,
        target_hr_high=targets.hr_high,
        distance=distance_km,
        duration=minutes,
        description=_with_label("Zone 2 endurance ride", targets),
        intervals=[targets.interval(distance_km * 1000, fallback="Zone 2")],
        warmup="10m easy spin",
        cooldown="5m easy spin",
    )


def build_threshold_ride(
    session_id: str,
    template: ThresholdTemplate,
    pacing: PacingContext,
    catalog: SessionCatalog,
) -> WorkoutSession:
    """Subthreshold ride with the same rep count and rep time as the run template."""
    run_pace = parse_clock_to_seconds(pacing.interval_zone(template.distance_m).text.split("-")[0])
    run_rep_s = run_pace * (template.distance_m / 1000)
    rep_m = max(THRESHOLD_REP_MIN_M, round_half_up(_ride_km(run_rep_s / 60, catalog.bike_speed(WorkoutType.THRESHOLD)) * 1000))

    work_min = round_half_up(run_rep_s * template.reps / 60)
    duration = THRESHOLD_WARMUP_MIN + work_min + max(0, template.reps - 1) * (THRESHOLD_REST_S // 60) + THRESHOLD_COOLDOWN_MIN
    targets = ride_targets(pacing, catalog, "Z3")

    if targets.power_low is not None:
        description = f"Subthreshold cycling. {targets.label} (92-98% FTP)."
    elif targets.hr_low is not None:
        description = f"Subthreshold cycling. Zone 3 effort ({targets.label})."
    else:
        description = "Subthreshold cycling. Zone 3 effort."

    return WorkoutSession(
        id=session_id,
        title=f"SubT {template.reps}x{format_km(rep_m / 1000)}km",
        type=WorkoutType.THRESHOLD,
        sport=Sport.BIKE,
        use_heart_rate_target=True,
        target_hr_low=targets.hr_low,
        target_hr_high=targets.hr_high,
        distance=round_half_up(rep_m * template.reps / 1000, 1),
        duration=int(duration),
        description=description,
        intervals=[targets.interval(rep_m, count=template.reps, rest=f"{THRESHOLD_REST_S}s", fallback="Zone 3")],
        warmup=f"{THRESHOLD_WARMUP_MIN}m easy spin",
        cooldown=f"{THRESHOLD_COOLDOWN_MIN}m easy spin",
    )


def build_long_ride(
    session_id: str,
    run_equivalent_km: float,
    pacing: PacingContext,
    catalog: SessionCatalog,
) -> WorkoutSession:
    """Long ride defaulting to the easy variant, carrying all three alternates."""
    speed = catalog.bike_speed(WorkoutType.LONG_RUN)
    minutes = pacing.easy_minutes(run_equivalent_km) or LONG_RIDE_FALLBACK_MIN

    z2 = ride_targets(pacing, catalog, "Z2")
    progression = ride_targets(pacing, catalog, "Z3", catalog_zone="progression")
    tempo = ride_targets(pacing, catalog, "Z3", catalog_zone="tempo")

    easy_km = round_half_up(_ride_km(minutes, speed), 1)
    easy_ride = WorkoutSession(
        id=f"{session_id}-easy",
        title="Easy Long Ride",
        type=WorkoutType.LONG_RUN,
        sport=Sport.BIKE,
        use_heart_rate_target=True,
        target_hr_low=z2.hr_low,
        target_hr_high=z2.hr_high,
        distance=easy_km,
        duration=minutes,
        description=_with_label("Aerobic long ride in Zone 2", z2),
        intervals=[z2.interval(easy_km * 1000, fallback="Zone 2")],
        warmup="10m easy spin",
        cooldown="5m easy spin",
        variant=LongRunVariant.EASY,
    )

    split = (0.5, 0.3, 0.2)
    prog_ride = WorkoutSession(
        id=f"{session_id}-prog",
        title="Progressive Long Ride",
        type=WorkoutType.LONG_RUN,
        sport=Sport.BIKE,
        use_heart_rate_target=True,
        target_hr_low=z2.hr_low,
        target_hr_high=z2.hr_high,
        distance=easy_km,
        duration=minutes,
        description=_with_label("Progressive ride with tempo finish", progression),
        intervals=[
            z2.interval(round_half_up(_ride_km(minutes * split[0], speed) * 1000), fallback="Zone 2"),
            progression.interval(round_half_up(_ride_km(minutes * split[1], speed) * 1000), fallback="Zone 3"),
            z2.interval(round_half_up(_ride_km(minutes * split[2], speed) * 1000), fallback="Zone 2"),
        ],
        warmup="10m easy spin",
        cooldown="5m easy spin",
        variant=LongRunVariant.PROGRESSIVE,
    )

    block_minutes = max(minutes, TEMPO_RIDE_MIN_DURATION)
    block_ride = WorkoutSession(
        id=f"{session_id}-blocks",
        title=f"{TEMPO_BLOCK_COUNT}x{TEMPO_BLOCK_MIN}min Tempo Ride",
        type=WorkoutType.LONG_RUN,
        sport=Sport.BIKE,
        use_heart_rate_target=True,
        target_hr_low=tempo.hr_low,
        target_hr_high=tempo.hr_high,
        distance=round_half_up(_ride_km(block_minutes, speed), 1),
        duration=block_minutes,
        description=_with_label(f"{TEMPO_BLOCK_COUNT}x{TEMPO_BLOCK_MIN} min tempo", tempo),
        intervals=[
            tempo.interval(
                round_half_up(_ride_km(TEMPO_BLOCK_MIN, speed) * 1000),
                count=TEMPO_BLOCK_COUNT,
                rest=f"{TEMPO_REST_S}s",
                fallback="Zone 3",
            )
        ],
        warmup="15m easy spin",
        cooldown="10m easy spin",
        variant=LongRunVariant.BLOCKS,
    )

    variants = [easy_ride, prog_ride, block_ride]
    return easy_ride.model_copy(update={"variants": variants})
