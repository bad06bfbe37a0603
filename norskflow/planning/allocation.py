"""Weekly volume allocation.

Splits the weekly running target into threshold, long-run and easy-day
distances before any session is built. Only run days draw from the running
budget; ride days are sized from run-equivalent time instead.
"""

from __future__ import annotations

from dataclasses import dataclass

from norskflow.pacing.clock import round_half_up
from norskflow.planning.models import AthleteProfile, DayType, Sport
from norskflow.planning.templates import SessionCatalog, ThresholdTemplate

LONG_RUN_MIN_KM = 15
LONG_RUN_SHARE = 0.28
LONG_RUN_MARGIN_KM = 1
EASY_FLOOR_KM = 6
EASY_MIN_SESSION_KM = 4


@dataclass(frozen=True)
class VolumeAllocation:
    """Distances (km) assigned to each kind of training day.

    Attributes:
        target_km: Requested weekly running volume
        threshold_days: Threshold weekdays in week order (run and ride)
        threshold_templates: Template per threshold day, same order
        threshold_km: Session distance per threshold day (run days only, 0 for rides)
        long_run_km: Distance of the long run
        easy_floor_km: Minimum easy-day distance (0 when there are no run easy days)
        easy_km: Distance of every run easy day
        remaining_km: Budget left after the fixed sessions and easy floors
    """

    target_km: float
    threshold_days: tuple[str, ...]
    threshold_templates: tuple[ThresholdTemplate, ...]
    threshold_km: tuple[float, ...]
    long_run_km: float
    easy_days: tuple[str, ...]
    easy_floor_km: float
    easy_km: float
    remaining_km: float

    def template_for(self, day: str) -> ThresholdTemplate:
        return self.threshold_templates[self.threshold_days.index(day)]

    @property
    def run_threshold_total_km(self) -> float:
        return sum(self.threshold_km)

    @property
    def max_threshold_km(self) -> float:
        return max(self.threshold_km, default=0.0)


def threshold_session_km(profile: AthleteProfile, template: ThresholdTemplate) -> float:
    """Warm-up + cool-down + all work repetitions, in km."""
    return profile.warmup_dist + profile.cooldown_dist + template.work_km


def long_run_km(target_km: float, max_threshold_km: float, easy_floor_km: float) -> float:
    """Long run = max(15, 28% of target), kept longer than any threshold or easy day."""
    distance = max(LONG_RUN_MIN_KM, round_half_up(target_km * LONG_RUN_SHARE))
    distance = max(distance, max_threshold_km + LONG_RUN_MARGIN_KM)
    return float(max(distance, easy_floor_km + LONG_RUN_MARGIN_KM))


def allocate_volume(profile: AthleteProfile, catalog: SessionCatalog) -> VolumeAllocation:
    """Allocate the weekly running target across the scheduled days."""
    target_km = max(0.0, profile.weekly_volume)

    threshold_days = tuple(profile.days_of_type(DayType.THRESHOLD))
    templates = tuple(catalog.threshold_template(i) for i in range(len(threshold_days)))
    threshold_km = tuple(
        threshold_session_km(profile, template) if profile.sport_for(day) == Sport.RUN else 0.0
        for day, template in zip(threshold_days, templates)
    )
    max_threshold = max(threshold_km, default=0.0)

    easy_days = tuple(profile.days_of_type(DayType.EASY, Sport.RUN))
    easy_floor = EASY_FLOOR_KM if easy_days else 0

    long_km = long_run_km(target_km, max_threshold, easy_floor)
    run_long_days = len(profile.days_of_type(DayType.LONG_RUN, Sport.RUN))

    fixed_km = sum(threshold_km) + long_km * run_long_days + easy_floor * len(easy_days)
    remaining = max(0.0, target_km - fixed_km)

    easy_km = 0.0
    if easy_days:
        bonus = remaining / len(easy_days)
        easy_km = max(easy_floor, round_half_up(easy_floor + bonus, 1))

    return VolumeAllocation(
        target_km=target_km,
        threshold_days=threshold_days,
        threshold_templates=templates,
        threshold_km=threshold_km,
        long_run_km=long_km,
        easy_days=easy_days,
        easy_floor_km=easy_floor,
        easy_km=easy_km,
        remaining_km=remaining,
    )
