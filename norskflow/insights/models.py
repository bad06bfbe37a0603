"""Insights dataset types and date-range helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InsightsRange(StrEnum):
    ONE_YEAR = "1y"
    SIX_MONTHS = "6m"
    THREE_MONTHS = "3m"
    ONE_MONTH = "1m"
    ONE_WEEK = "1w"
    ONE_DAY = "1d"

    @property
    def days(self) -> int:
        return RANGE_DAYS[self]


RANGE_DAYS: dict[InsightsRange, int] = {
    InsightsRange.ONE_YEAR: 366,
    InsightsRange.SIX_MONTHS: 183,
    InsightsRange.THREE_MONTHS: 92,
    InsightsRange.ONE_MONTH: 31,
    InsightsRange.ONE_WEEK: 7,
    InsightsRange.ONE_DAY: 1,
}


class _InsightsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RunningEconomyPoint(_InsightsModel):
    """Daily running-economy proxy, indexed to 100 at the early-season baseline."""

    date: str
    economy_score: float
    pace_sec_per_km: float
    avg_hr: float
    cadence: float | None = None
    stride_length_m: float | None = None
    vertical_oscillation_cm: float | None = None
    ground_contact_ms: float | None = None
    sample_count: int


class RecoveryPoint(_InsightsModel):
    date: str
    recovery_score: float
    hrv: float | None = None
    resting_hr: float | None = None
    acute_load_7: float = Field(alias="acuteLoad7")
    chronic_load_28: float = Field(alias="chronicLoad28")
    load_ratio: float | None = None


class ThresholdProgressPoint(_InsightsModel):
    """One training week (keyed by its Monday) of subthreshold work."""

    date: str
    threshold_speed_kmh: float
    threshold_pace_sec_per_km: float
    norwegian_method_score: float
    subthreshold_share_pct: float
    subthreshold_minutes: float
    total_run_minutes: float


class ThresholdContext(_InsightsModel):
    threshold_pace_sec_per_km: float | None = None
    threshold_hr_bpm: int | None = None
    sub_t_pace_low_sec_per_km: float | None = Field(default=None, alias="subTPaceLowSecPerKm")
    sub_t_pace_high_sec_per_km: float | None = Field(default=None, alias="subTPaceHighSecPerKm")
    sub_t_hr_low_bpm: int | None = Field(default=None, alias="subTHrLowBpm")
    sub_t_hr_high_bpm: int | None = Field(default=None, alias="subTHrHighBpm")


class InsightsDataset(_InsightsModel):
    economy: list[RunningEconomyPoint] = Field(default_factory=list)
    recovery: list[RecoveryPoint] = Field(default_factory=list)
    threshold_progress: list[ThresholdProgressPoint] = Field(default_factory=list)
    threshold_context: ThresholdContext = Field(default_factory=ThresholdContext)
    fetched_at: datetime


def range_to_days(range_key: InsightsRange | str) -> int:
    """Days covered by a range key; unknown keys cover a year."""
    try:
        return InsightsRange(range_key).days
    except ValueError:
        return RANGE_DAYS[InsightsRange.ONE_YEAR]


Row = TypeVar("Row", RunningEconomyPoint, RecoveryPoint, ThresholdProgressPoint)


def filter_by_range(rows: list[Row], range_key: InsightsRange | str, today: date | None = None) -> list[Row]:
    """Rows dated within the last N days of the range, today included."""
    if not rows:
        return rows
    today = today or date.today()
    cutoff = (today - timedelta(days=range_to_days(range_key) - 1)).isoformat()
    return [row for row in rows if row.date >= cutoff]
