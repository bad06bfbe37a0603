"""Training pace zones derived from an athlete's benchmark result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from norskflow.pacing.clock import format_pace_band, format_seconds_to_clock
from norskflow.pacing.environment import apply_environmental_correction
from norskflow.pacing.performance import ThresholdModel, estimate_sixty_minute_threshold_pace, predict_pace

if TYPE_CHECKING:
    from norskflow.planning.models import AthleteProfile

REFERENCE_DISTANCES: dict[str, float] = {
    "15K": 15000,
    "Half Marathon": 21097,
    "30K": 30000,
    "Marathon": 42195,
}

EASY_OFFSET_LOW_S = 74
EASY_OFFSET_HIGH_S = 104
EASY_THRESHOLD_FACTOR_LOW = 1.32
EASY_THRESHOLD_FACTOR_HIGH = 1.44

INTERVAL_BAND_WIDTH_S = 10
SUBTHRESHOLD_LABEL = "Subthreshold Pace"
NO_THRESHOLD_LABEL = "NSA Singles"

EQUIVALENT_RACES: tuple[tuple[str, float], ...] = (
    ("1 Mile", 1609),
    ("3K", 3000),
    ("5K", 5000),
    ("8K", 8000),
    ("10K", 10000),
    ("15K", 15000),
    ("Half Marathon", 21097),
    ("Marathon", 42195),
)


@dataclass(frozen=True)
class PaceZone:
    """A pace band in sec/km; low is the faster end."""

    label: str
    low: float
    high: float

    @property
    def center(self) -> float:
        return (self.low + self.high) / 2

    @property
    def text(self) -> str:
        return format_pace_band(self.low, self.high)


@dataclass(frozen=True)
class RaceEquivalentPaces:
    p15k: float
    p_half: float
    p30k: float
    p_marathon: float


@dataclass(frozen=True)
class EquivalentRace:
    """One row of the equivalent-performance table."""

    label: str
    distance_m: float
    pace: float
    finish_s: float

    @property
    def pace_text(self) -> str:
        return format_seconds_to_clock(self.pace)

    @property
    def finish_text(self) -> str:
        return format_seconds_to_clock(self.finish_s)


def _benchmark_pace_at(profile: AthleteProfile, distance_m: float) -> float:
    benchmark = profile.primary_benchmark()
    if benchmark is None:
        return 0.0
    return predict_pace(benchmark.distance_m, benchmark.duration_s, distance_m)


def get_race_equivalent_paces(profile: AthleteProfile) -> RaceEquivalentPaces:
    """Predicted paces at the four reference distances; 0 where not derivable."""
    return RaceEquivalentPaces(
        p15k=_benchmark_pace_at(profile, REFERENCE_DISTANCES["15K"]),
        p_half=_benchmark_pace_at(profile, REFERENCE_DISTANCES["Half Marathon"]),
        p30k=_benchmark_pace_at(profile, REFERENCE_DISTANCES["30K"]),
        p_marathon=_benchmark_pace_at(profile, REFERENCE_DISTANCES["Marathon"]),
    )


def get_threshold_pace(profile: AthleteProfile, correction_sec: float = 0, model: ThresholdModel = "auto") -> float:
    """Corrected 60-minute threshold pace (sec/km)."""
    return apply_environmental_correction(estimate_sixty_minute_threshold_pace(profile, model), correction_sec)


def get_marathon_pace(profile: AthleteProfile, correction_sec: float = 0) -> float:
    """Corrected marathon-equivalent pace (sec/km)."""
    return apply_environmental_correction(get_race_equivalent_paces(profile).p_marathon, correction_sec)


def get_easy_pace_range(profile: AthleteProfile, correction_sec: float = 0, model: ThresholdModel = "auto") -> PaceZone:
    """Easy band anchored to marathon pace + 74..104 s/km.

    Falls back to 1.32-1.44 x threshold pace when marathon pace cannot be
    predicted. Both ends are corrected; the zone reads 0:00-0:00 when neither
    anchor exists.
    """
    marathon = get_race_equivalent_paces(profile).p_marathon
    if marathon > 0:
        low, high = marathon + EASY_OFFSET_LOW_S, marathon + EASY_OFFSET_HIGH_S
    else:
        threshold = estimate_sixty_minute_threshold_pace(profile, model)
        low, high = threshold * EASY_THRESHOLD_FACTOR_LOW, threshold * EASY_THRESHOLD_FACTOR_HIGH

    return PaceZone(
        label="Easy",
        low=apply_environmental_correction(low, correction_sec),
        high=apply_environmental_correction(high, correction_sec),
    )


def _singles_anchor(paces: RaceEquivalentPaces, rep_distance_m: float) -> tuple[float, str] | None:
    if rep_distance_m <= 450 and paces.p15k > 0:
        return paces.p15k - 9, "400m Pace"
    if rep_distance_m <= 650 and paces.p15k > 0:
        return paces.p15k - 6, "600m Pace"
    if rep_distance_m <= 850 and paces.p15k > 0:
        return paces.p15k - 3, "800m Pace"
    if rep_distance_m <= 1000 and paces.p15k > 0:
        return paces.p15k, "1K Pace"
    if rep_distance_m <= 2000 and paces.p_half > 0:
        return paces.p_half, "Half Marathon Pace"
    if rep_distance_m <= 3500 and paces.p30k > 0:
        return paces.p30k, "30K Pace"
    if paces.p_marathon > 0:
        return paces.p_marathon, "Marathon Pace"
    return None


def get_interval_pace_range(
    profile: AthleteProfile,
    rep_distance_m: float,
    correction_sec: float = 0,
    model: ThresholdModel = "auto",
) -> PaceZone:
    """Target band and effort label for one repetition distance.

    The band is always [pace, pace + 10 s] after correction. Without a
    race-equivalent anchor the raw threshold pace is used; without a
    threshold the band is all zeros.
    """
    threshold = estimate_sixty_minute_threshold_pace(profile, model)
    if threshold <= 0:
        return PaceZone(label=NO_THRESHOLD_LABEL, low=0.0, high=0.0)

    anchor = _singles_anchor(get_race_equivalent_paces(profile), rep_distance_m)
    base, label = anchor if anchor is not None else (threshold, SUBTHRESHOLD_LABEL)

    pace = apply_environmental_correction(base, correction_sec)
    if pace <= 0:
        return PaceZone(label=label, low=0.0, high=0.0)
    return PaceZone(label=label, low=pace, high=pace + INTERVAL_BAND_WIDTH_S)


def equivalent_race_table(profile: AthleteProfile, correction_sec: float = 0) -> list[EquivalentRace]:
    """Predicted pace and finish time at common race distances."""
    rows: list[EquivalentRace] = []
    for label, distance in EQUIVALENT_RACES:
        pace = apply_environmental_correction(_benchmark_pace_at(profile, distance), correction_sec)
        rows.append(
            EquivalentRace(label=label, distance_m=distance, pace=pace, finish_s=pace * distance / 1000)
        )
    return rows
