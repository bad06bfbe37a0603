"""Training insights computed from raw Intervals.icu activity and wellness rows.

Metrics:
- Running economy: metres per heartbeat on steady runs (pace 3:00-8:00/km),
  normalized to a sub-threshold heart rate and indexed to 100 at the
  median of the first 28 days with data
- Recovery: HRV and resting-HR deviation from their medians blended with
  the acute:chronic load ratio (7 vs 28 rows)
- Threshold progress: weekly HR-normalized speed of sub-threshold runs and
  their share of total running time

Raw payloads differ between endpoints and devices, so every field is read
from a list of candidate keys. Rows missing a date are skipped.

Properties:
- Deterministic: same input rows always give the same dataset
- Never raises on malformed rows; unreadable values count as absent
"""

from __future__ import annotations

import math
import re
import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from loguru import logger

from norskflow.insights.models import (
    InsightsDataset,
    RecoveryPoint,
    RunningEconomyPoint,
    ThresholdContext,
    ThresholdProgressPoint,
)
from norskflow.pacing.clock import round_half_up

ECONOMY_PACE_MIN_S = 180
ECONOMY_PACE_MAX_S = 480
ECONOMY_BASELINE_DAYS = 28

ACUTE_WINDOW = 7
CHRONIC_WINDOW = 28

NEAR_THRESHOLD_TOLERANCE = 0.05
SUBTHRESHOLD_PACE_FACTORS = (1.02, 1.10)
SUBTHRESHOLD_HR_FACTORS = (0.88, 0.95)
NORMALIZATION_HR_FACTOR = 0.92
DEFAULT_NORMALIZATION_HR = 150
MIN_SUBTHRESHOLD_MINUTES = 25
TARGET_SUBTHRESHOLD_SHARE_PCT = 40

_SUBTHRESHOLD_TAG = re.compile(r"(subt|sub[-\s]?threshold|threshold|norwegian)", re.IGNORECASE)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def as_number(value: object) -> float | None:
    """Finite float or None; booleans are not numbers."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _first_number(row: dict, *keys: str) -> float | None:
    for key in keys:
        number = as_number(row.get(key))
        if number is not None:
            return number
    return None


def _first_present(*values: object) -> object:
    return next((v for v in values if v is not None), None)


def _nested(row: dict | None, *path: str) -> object:
    current: object = row
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def parse_pace_token(value: object) -> float | None:
    """Pace in sec/km from 245, 4.1 (min/km), "4:05", "4:05/km" or "1:04:05"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        if 120 < value < 1000:
            return float(value)
        if 2 < value < 12:
            return float(round_half_up(value * 60))

    raw = str(value).strip().lower().replace("/km", "")
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        return None
    seconds = 0.0
    for number in numbers:
        seconds = seconds * 60 + number
    return seconds


def to_iso_date(value: object) -> str | None:
    """Local calendar date (YYYY-MM-DD) of a date or timestamp value."""
    if not value:
        return None
    text = str(value)
    if _ISO_DATE.match(text):
        return text
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return None


def week_start(iso_date: str) -> str:
    """Monday of the week containing the date."""
    try:
        day = date.fromisoformat(iso_date)
    except ValueError:
        return iso_date
    return (day - timedelta(days=day.weekday())).isoformat()


def is_run_activity(activity: dict) -> bool:
    sport = str(activity.get("sport") or activity.get("type") or activity.get("activity_type") or "").lower()
    subtype = str(activity.get("sub_type") or activity.get("subtype") or "").lower()
    return "run" in sport or "run" in subtype or sport in ("trail", "treadmill")


def is_subthreshold_activity(activity: dict) -> bool:
    """Named or described as a sub-threshold / Norwegian session."""
    fields = ("name", "title", "description", "workout_name", "notes", "subtype")
    haystack = " ".join(str(activity.get(key) or "") for key in fields)
    return _SUBTHRESHOLD_TAG.search(haystack) is not None


def activity_distance_m(activity: dict) -> float:
    """Distance in metres; small values are taken as kilometres."""
    direct = _first_number(activity, "distance", "distance_m", "moving_distance")
    if direct is not None and direct > 300:
        return direct
    if direct is not None and 0 < direct <= 300:
        return direct * 1000
    km = _first_number(activity, "distance_km", "km")
    if km is not None and km > 0:
        return km * 1000
    return 0.0


def activity_moving_s(activity: dict) -> float:
    seconds = _first_number(activity, "moving_time", "elapsed_time", "duration")
    return seconds if seconds is not None and seconds > 0 else 0.0


def activity_speed_mps(activity: dict, distance_m: float, moving_s: float) -> float:
    speed = _first_number(activity, "average_speed", "avg_speed", "speed_avg")
    if speed is not None and 0 < speed < 20:
        return speed
    if distance_m > 0 and moving_s > 0:
        return distance_m / moving_s
    return 0.0


def _mean(values: list[float]) -> float:
    return statistics.fmean(values) if values else 0.0


def _median(values: list[float]) -> float:
    return statistics.median(values) if values else 0.0


def percentile(values: list[float], pct: float) -> float:
    """Linear-interpolated percentile; 0 for no values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    rank = _clamp(pct / 100 * (len(ordered) - 1), 0, len(ordered) - 1)
    low, high = math.floor(rank), math.ceil(rank)
    if low == high:
        return ordered[low]
    weight = rank - low
    return ordered[low] * (1 - weight) + ordered[high] * weight


def _optional_mean(values: list[float], ndigits: int) -> float | None:
    return round_half_up(_mean(values), ndigits) if values else None


@dataclass(frozen=True)
class RunSample:
    date: str
    speed_mps: float
    avg_hr: float
    moving_minutes: float
    tagged_subthreshold: bool


@dataclass
class _EconomyBucket:
    scores: list[float] = field(default_factory=list)
    paces: list[float] = field(default_factory=list)
    hrs: list[float] = field(default_factory=list)
    cadences: list[float] = field(default_factory=list)
    stride_lengths: list[float] = field(default_factory=list)
    vertical_oscillations: list[float] = field(default_factory=list)
    contact_times: list[float] = field(default_factory=list)


@dataclass
class _WeekBucket:
    speeds: list[float] = field(default_factory=list)
    subthreshold_minutes: float = 0.0
    total_minutes: float = 0.0


@dataclass(frozen=True)
class _Thresholds:
    pace_s: float | None
    hr: float | None
    normalization_hr: float
    pace_band: tuple[float, float] | None
    hr_band: tuple[float, float] | None
    speed_p55: float
    hr_p70: float
    hr_p90: float

    def context(self) -> ThresholdContext:
        return ThresholdContext(
            threshold_pace_sec_per_km=round_half_up(self.pace_s, 1) if self.pace_s else None,
            threshold_hr_bpm=int(round_half_up(self.hr)) if self.hr else None,
            sub_t_pace_low_sec_per_km=round_half_up(self.pace_band[0], 1) if self.pace_band else None,
            sub_t_pace_high_sec_per_km=round_half_up(self.pace_band[1], 1) if self.pace_band else None,
            sub_t_hr_low_bpm=int(round_half_up(self.hr_band[0])) if self.hr_band else None,
            sub_t_hr_high_bpm=int(round_half_up(self.hr_band[1])) if self.hr_band else None,
        )

    def is_subthreshold(self, sample: RunSample) -> bool:
        if sample.tagged_subthreshold:
            return True
        pace_s = 1000 / sample.speed_mps
        if self.pace_band is not None:
            matches_pace = self.pace_band[0] <= pace_s <= self.pace_band[1]
        else:
            matches_pace = sample.speed_mps >= self.speed_p55 and sample.avg_hr >= self.hr_p70
        if self.hr_band is not None:
            matches_hr = self.hr_band[0] <= sample.avg_hr <= self.hr_band[1]
        else:
            matches_hr = self.hr_p70 <= sample.avg_hr <= self.hr_p90
        return matches_pace and matches_hr and sample.moving_minutes >= MIN_SUBTHRESHOLD_MINUTES


def _profile_threshold_pace(profile: dict | None) -> float | None:
    if not isinstance(profile, dict):
        return None
    raw = _first_present(
        profile.get("threshold_pace"),
        profile.get("thresholdPace"),
        profile.get("run_threshold_pace"),
        _nested(profile, "zones", "run", "threshold_pace"),
        _nested(profile, "zones", "pace", "threshold"),
    )
    pace = parse_pace_token(raw)
    return pace if pace and pace > 0 else None


def _profile_threshold_hr(profile: dict | None) -> float | None:
    if not isinstance(profile, dict):
        return None
    raw = _first_present(
        profile.get("threshold_hr"),
        profile.get("thresholdHr"),
        profile.get("run_threshold_hr"),
        _nested(profile, "zones", "heart_rate", "threshold"),
        _nested(profile, "zones", "run", "threshold_hr"),
    )
    hr = as_number(raw)
    return hr if hr and hr > 0 else None


def derive_thresholds(samples: list[RunSample], athlete_profile: dict | None) -> _Thresholds:
    """Threshold pace/HR from the athlete profile, HR inferred from runs near that pace."""
    hrs = [s.avg_hr for s in samples if s.avg_hr > 0]
    speeds = [s.speed_mps for s in samples if s.speed_mps > 0]
    hr_p50, hr_p70, hr_p90 = percentile(hrs, 50), percentile(hrs, 70), percentile(hrs, 90)

    pace_s = _profile_threshold_pace(athlete_profile)
    threshold_hr = _profile_threshold_hr(athlete_profile)
    if threshold_hr is None and pace_s:
        near = [
            s.avg_hr
            for s in samples
            if s.avg_hr > 0 and abs((1000 / s.speed_mps - pace_s) / pace_s) <= NEAR_THRESHOLD_TOLERANCE
        ]
        threshold_hr = _median(near) or None

    if threshold_hr:
        normalization_hr = threshold_hr * NORMALIZATION_HR_FACTOR
    else:
        normalization_hr = hr_p70 or hr_p50 or DEFAULT_NORMALIZATION_HR

    return _Thresholds(
        pace_s=pace_s,
        hr=threshold_hr,
        normalization_hr=normalization_hr,
        pace_band=(pace_s * SUBTHRESHOLD_PACE_FACTORS[0], pace_s * SUBTHRESHOLD_PACE_FACTORS[1]) if pace_s else None,
        hr_band=(
            (threshold_hr * SUBTHRESHOLD_HR_FACTORS[0], threshold_hr * SUBTHRESHOLD_HR_FACTORS[1])
            if threshold_hr
            else None
        ),
        speed_p55=percentile(speeds, 55),
        hr_p70=hr_p70,
        hr_p90=hr_p90,
    )


def _activity_load(activity: dict, moving_s: float, distance_m: float) -> float:
    load = _first_number(activity, "icu_training_load", "training_load", "load", "trimp")
    if load is None:
        load = moving_s / 60 if moving_s > 0 else distance_m / 1000
    return max(0.0, load)


def _economy_points(buckets: dict[str, _EconomyBucket], normalization_hr: float) -> list[RunningEconomyPoint]:
    raw: list[RunningEconomyPoint] = []
    for day in sorted(buckets):
        bucket = buckets[day]
        if not bucket.scores:
            continue
        normalized = [
            (1000 / pace) * (normalization_hr / hr) * 100 for pace, hr in zip(bucket.paces, bucket.hrs) if pace > 0 and hr > 0
        ]
        raw.append(
            RunningEconomyPoint(
                date=day,
                economy_score=round_half_up(_mean(normalized or bucket.scores), 2),
                pace_sec_per_km=round_half_up(_mean(bucket.paces), 2),
                avg_hr=round_half_up(_mean(bucket.hrs), 1),
                cadence=_optional_mean(bucket.cadences, 1),
                stride_length_m=_optional_mean(bucket.stride_lengths, 2),
                vertical_oscillation_cm=_optional_mean(bucket.vertical_oscillations, 2),
                ground_contact_ms=_optional_mean(bucket.contact_times, 1),
                sample_count=len(bucket.scores),
            )
        )

    baseline = _median([p.economy_score for p in raw[:ECONOMY_BASELINE_DAYS]])
    if baseline <= 0:
        return raw
    return [p.model_copy(update={"economy_score": round_half_up(p.economy_score / baseline * 100, 1)}) for p in raw]


def recovery_points(load_by_date: dict[str, float], wellness_rows: list[dict]) -> list[RecoveryPoint]:
    """Daily recovery score over every date with load or wellness data.

    Acute and chronic loads are rolling means over the last 7 and 28 rows.
    The score weights HRV 45 %, resting HR 35 % and load 20 %, dropping
    whichever wellness inputs are missing.
    """
    wellness: dict[str, tuple[float | None, float | None]] = {}
    for row in wellness_rows:
        day = to_iso_date(row.get("id") or row.get("date") or row.get("localDate") or row.get("start_date_local"))
        if day is None:
            continue
        hrv = _first_number(row, "hrv", "hrv_rmssd", "rmssd")
        resting_hr = _first_number(row, "restingHR", "resting_hr", "restingHeartrate", "rhr")
        wellness[day] = (hrv if hrv and hrv > 0 else None, resting_hr if resting_hr and resting_hr > 0 else None)

    dates = sorted(set(load_by_date) | set(wellness))
    loads = [load_by_date.get(day, 0.0) for day in dates]
    baseline_hrv = _median([w[0] for w in wellness.values() if w[0] is not None])
    baseline_rhr = _median([w[1] for w in wellness.values() if w[1] is not None])

    points: list[RecoveryPoint] = []
    for index, day in enumerate(dates):
        acute = _mean(loads[max(0, index - ACUTE_WINDOW + 1) : index + 1])
        chronic = _mean(loads[max(0, index - CHRONIC_WINDOW + 1) : index + 1])
        ratio = acute / chronic if chronic > 0 else None
        hrv, resting_hr = wellness.get(day, (None, None))

        weighted = [(_clamp(100 - max(0.0, (ratio - 1) * 60), 20, 100) if ratio else 70, 0.20)]
        if hrv and baseline_hrv > 0:
            weighted.append((_clamp(50 + (hrv - baseline_hrv) / baseline_hrv * 80, 0, 100), 0.45))
        if resting_hr and baseline_rhr > 0:
            weighted.append((_clamp(50 + (baseline_rhr - resting_hr) / baseline_rhr * 80, 0, 100), 0.35))
        score = sum(value * weight for value, weight in weighted) / sum(weight for _, weight in weighted)

        points.append(
            RecoveryPoint(
                date=day,
                recovery_score=round_half_up(_clamp(score, 0, 100), 1),
                hrv=hrv,
                resting_hr=resting_hr,
                acute_load_7=round_half_up(acute, 2),
                chronic_load_28=round_half_up(chronic, 2),
                load_ratio=round_half_up(ratio, 2) if ratio else None,
            )
        )
    return points


def threshold_progress_points(samples: list[RunSample], thresholds: _Thresholds) -> list[ThresholdProgressPoint]:
    """Weekly sub-threshold speed (HR-normalized) and time share.

    The Norwegian-method score is 100 at a 40 % share and loses 3 points per
    percentage point away from it.
    """
    weeks: dict[str, _WeekBucket] = defaultdict(_WeekBucket)
    for sample in samples:
        bucket = weeks[week_start(sample.date)]
        bucket.total_minutes += sample.moving_minutes
        if thresholds.is_subthreshold(sample):
            bucket.subthreshold_minutes += sample.moving_minutes
            bucket.speeds.append(sample.speed_mps * thresholds.normalization_hr / max(1.0, sample.avg_hr))

    points: list[ThresholdProgressPoint] = []
    for week in sorted(weeks):
        bucket = weeks[week]
        if bucket.total_minutes <= 0 or bucket.subthreshold_minutes <= 0 or not bucket.speeds:
            continue
        speed = _mean(bucket.speeds)
        share = bucket.subthreshold_minutes / bucket.total_minutes * 100
        points.append(
            ThresholdProgressPoint(
                date=week,
                threshold_speed_kmh=round_half_up(speed * 3.6, 2),
                threshold_pace_sec_per_km=round_half_up(1000 / speed, 1),
                norwegian_method_score=round_half_up(_clamp(100 - abs(share - TARGET_SUBTHRESHOLD_SHARE_PCT) * 3, 0, 100), 1),
                subthreshold_share_pct=round_half_up(share, 1),
                subthreshold_minutes=round_half_up(bucket.subthreshold_minutes, 1),
                total_run_minutes=round_half_up(bucket.total_minutes, 1),
            )
        )
    return points


def build_insights_dataset(
    activities: list[dict],
    wellness: list[dict],
    athlete_profile: dict | None = None,
    fetched_at: datetime | None = None,
) -> InsightsDataset:
    """Economy, recovery and threshold-progress series from raw rows."""
    samples: list[RunSample] = []
    economy: dict[str, _EconomyBucket] = defaultdict(_EconomyBucket)
    load_by_date: dict[str, float] = defaultdict(float)

    runs = [a for a in activities if is_run_activity(a)]
    for activity in runs:
        day = to_iso_date(activity.get("start_date_local") or activity.get("start_date") or activity.get("id"))
        if day is None:
            continue

        distance_m = activity_distance_m(activity)
        moving_s = activity_moving_s(activity)
        speed = activity_speed_mps(activity, distance_m, moving_s)
        avg_hr = _first_number(activity, "average_heartrate", "avg_hr", "average_hr", "hr_avg") or 0.0
        pace_s = 1000 / speed if speed > 0 else 0.0

        if speed > 0 and avg_hr > 0 and ECONOMY_PACE_MIN_S < pace_s < ECONOMY_PACE_MAX_S:
            bucket = economy[day]
            bucket.scores.append(speed * 60 / avg_hr * 100)
            bucket.paces.append(pace_s)
            bucket.hrs.append(avg_hr)
            optional = (
                (bucket.cadences, ("average_run_cadence", "cadence")),
                (bucket.stride_lengths, ("average_stride_length", "stride_length")),
                (bucket.vertical_oscillations, ("average_vertical_oscillation", "vertical_oscillation")),
                (bucket.contact_times, ("average_ground_contact_time", "ground_contact_time")),
            )
            for values, keys in optional:
                value = _first_number(activity, *keys)
                if value is not None and value > 0:
                    values.append(value)

        if speed > 0 and avg_hr > 0 and moving_s > 0:
            samples.append(RunSample(day, speed, avg_hr, moving_s / 60, is_subthreshold_activity(activity)))

        load_by_date[day] += _activity_load(activity, moving_s, distance_m)

    thresholds = derive_thresholds(samples, athlete_profile)
    logger.debug(
        f"Built insights from {len(runs)}/{len(activities)} runs and {len(wellness)} wellness rows",
        threshold_pace=thresholds.pace_s,
        threshold_hr=thresholds.hr,
    )

    return InsightsDataset(
        economy=_economy_points(economy, thresholds.normalization_hr),
        recovery=recovery_points(load_by_date, wellness),
        threshold_progress=threshold_progress_points(samples, thresholds),
        threshold_context=thresholds.context(),
        fetched_at=fetched_at or datetime.now(timezone.utc),
    )
