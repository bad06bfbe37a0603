"""Plan data model.

Profiles, sessions and plans are pydantic models so they serialize to the
persisted JSON layout (camelCase keys) and validate on the way back in.
Snake_case field names are accepted as well.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from norskflow.pacing.clock import parse_clock_to_seconds
from norskflow.pacing.performance import Benchmark

WEEKDAYS: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class DayType(StrEnum):
    REST = "Rest"
    EASY = "Easy Run"
    THRESHOLD = "Threshold"
    LONG_RUN = "Long Run"


class WorkoutType(StrEnum):
    EASY = "Easy"
    THRESHOLD = "Threshold"
    LONG_RUN = "Long Run"
    REST = "Rest"
    RACE = "Race"


class Sport(StrEnum):
    RUN = "run"
    BIKE = "bike"


class Environment(StrEnum):
    ROAD = "road"
    TREADMILL = "treadmill"
    TRAIL = "trail"


class LongRunVariant(StrEnum):
    """Discriminator for the alternate forms of one long-run slot."""

    EASY = "easy"
    PROGRESSIVE = "progressive"
    BLOCKS = "blocks"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AthleteProfile(_CamelModel):
    """Everything the planner needs to know about one athlete."""

    uid: str | None = None
    email: str | None = None
    name: str = ""

    race_distance: float = Field(default=5000, ge=0, description="Primary benchmark distance in metres")
    race_time: str = Field(default="", description="Primary benchmark time as clock text")
    race_distance_2: float | None = Field(default=None, ge=0, description="Optional second benchmark distance")
    race_time_2: str | None = None

    max_hr: int = Field(default=0, ge=0, alias="maxHR")
    ftp: float | None = Field(default=None, ge=0)

    weekly_volume: float = Field(default=0, ge=0, description="Weekly running target in km")
    schedule: dict[str, DayType] = Field(default_factory=dict)
    schedule_sport: dict[str, Sport] = Field(default_factory=dict)

    warmup_dist: float = Field(default=0, ge=0, description="Warm-up buffer in km")
    cooldown_dist: float = Field(default=0, ge=0, description="Cool-down buffer in km")

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, value: dict[str, DayType]) -> dict[str, DayType]:
        """Schedule keys are exactly the seven weekdays; missing days rest."""
        unknown = sorted(set(value) - set(WEEKDAYS))
        if unknown:
            raise ValueError(f"Unknown schedule days: {', '.join(unknown)}")
        return {day: value.get(day, DayType.REST) for day in WEEKDAYS}

    @field_validator("schedule_sport")
    @classmethod
    def validate_schedule_sport(cls, value: dict[str, Sport]) -> dict[str, Sport]:
        unknown = sorted(set(value) - set(WEEKDAYS))
        if unknown:
            raise ValueError(f"Unknown schedule days: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def fill_schedule(self) -> AthleteProfile:
        if len(self.schedule) != len(WEEKDAYS):
            self.schedule = {day: self.schedule.get(day, DayType.REST) for day in WEEKDAYS}
        return self

    def day_type(self, day: str) -> DayType:
        return self.schedule.get(day, DayType.REST)

    def sport_for(self, day: str) -> Sport:
        return self.schedule_sport.get(day, Sport.RUN)

    def days_of_type(self, day_type: DayType, sport: Sport | None = None) -> list[str]:
        """Weekdays (in week order) scheduled as day_type, optionally for one sport."""
        return [
            day
            for day in WEEKDAYS
            if self.day_type(day) == day_type and (sport is None or self.sport_for(day) == sport)
        ]

    def primary_benchmark(self) -> Benchmark | None:
        seconds = parse_clock_to_seconds(self.race_time)
        if not self.race_distance or not seconds:
            return None
        return Benchmark(distance_m=float(self.race_distance), duration_s=float(seconds))

    def secondary_benchmark(self) -> Benchmark | None:
        seconds = parse_clock_to_seconds(self.race_time_2)
        if not self.race_distance_2 or not seconds:
            return None
        return Benchmark(distance_m=float(self.race_distance_2), duration_s=float(seconds))


class Interval(_CamelModel):
    """One repeated work segment of a session."""

    distance: float = Field(default=0, ge=0, description="Per-rep distance in metres")
    duration_seconds: float | None = Field(default=None, ge=0, description="Per-rep duration when time-based")
    count: int = Field(default=1, description="Repetitions, always >= 1")
    pace: str = ""
    rest: str = ""
    description: str = ""
    target_zone: str | None = None
    target_power_low: int | None = None
    target_power_high: int | None = None
    target_hr_low: int | None = None
    target_hr_high: int | None = None

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, value: object) -> int:
        try:
            count = round(float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 1
        return max(1, count)


class WorkoutSession(_CamelModel):
    """One day's training content."""

    id: str
    title: str
    type: WorkoutType
    sport: Sport = Sport.RUN
    environment: Environment = Environment.ROAD
    treadmill_incline_pct: float | None = None
    use_heart_rate_target: bool = False
    target_hr_low: int | None = None
    target_hr_high: int | None = None
    target_pace: str | None = Field(default=None, description="Pace band for continuous sessions")
    distance: float = Field(default=0, description="Total distance in km")
    duration: int = Field(default=0, description="Estimated duration in minutes")
    description: str = ""
    intervals: list[Interval] = Field(default_factory=list)
    warmup: str | None = None
    cooldown: str | None = None
    variant: LongRunVariant | None = None
    variants: list[WorkoutSession] | None = None
    icu_event_id: int | None = None

    def interval_distance_km(self) -> float:
        """Total work distance of the interval table in km."""
        return sum(i.distance * i.count for i in self.intervals) / 1000


class DailyPlan(_CamelModel):
    day: str
    date: str | None = None
    type: DayType
    session: WorkoutSession | None = None
    icu_event_id: int | None = None


class WeeklyPlan(_CamelModel):
    days: list[DailyPlan]
    total_distance: float = Field(description="Realized running distance in km")
    target_distance: float = 0
    shortfall: float = Field(default=0, description="target_distance - total_distance, signed")
    bike_distance: float = 0

    def day(self, name: str) -> DailyPlan | None:
        return next((d for d in self.days if d.day == name), None)

    def sessions(self) -> list[WorkoutSession]:
        return [d.session for d in self.days if d.session is not None]
