"""Device-ready workout steps.

A StepPlan is a flat list of real steps plus a separate list of repeat
markers. flatten() interleaves the markers as repeat pseudo-steps in the
order a FIT workout expects: the pseudo-step follows the last step of its
block and points back at the block's first step by index.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from loguru import logger

from norskflow.pacing.clock import round_half_up
from norskflow.planning.models import Interval, WorkoutSession
from norskflow.workouts.parsing import (
    Distance,
    Time,
    Unrecognized,
    is_placeholder,
    is_zero_duration,
    parse_duration_text,
    parse_pace_text,
)


class StepIntensity(StrEnum):
    WARMUP = "warmup"
    ACTIVE = "active"
    REST = "rest"
    COOLDOWN = "cooldown"


class DurationKind(StrEnum):
    DISTANCE = "distance"
    TIME = "time"
    OPEN = "open"


class TargetKind(StrEnum):
    SPEED = "speed"
    POWER = "power"
    HEART_RATE = "heart_rate"
    OPEN = "open"


@dataclass(frozen=True)
class DurationSpec:
    """Step length: centimetres for distance, milliseconds for time."""

    kind: DurationKind
    value: int = 0

    @classmethod
    def distance_m(cls, meters: float) -> DurationSpec:
        return cls(DurationKind.DISTANCE, int(round_half_up(meters * 100)))

    @classmethod
    def time_s(cls, seconds: float) -> DurationSpec:
        return cls(DurationKind.TIME, int(round_half_up(seconds * 1000)))

    @classmethod
    def open(cls) -> DurationSpec:
        return cls(DurationKind.OPEN)

    @property
    def meters(self) -> float:
        return self.value / 100 if self.kind == DurationKind.DISTANCE else 0.0

    @property
    def seconds(self) -> float:
        return self.value / 1000 if self.kind == DurationKind.TIME else 0.0


@dataclass(frozen=True)
class TargetSpec:
    """Step target: speed in mm/s, power in W, heart rate in bpm."""

    kind: TargetKind
    low: int = 0
    high: int = 0

    @classmethod
    def open(cls) -> TargetSpec:
        return cls(TargetKind.OPEN)


@dataclass(frozen=True)
class EncodedStep:
    name: str
    duration: DurationSpec
    target: TargetSpec
    intensity: StepIntensity
    notes: str = ""


@dataclass(frozen=True)
class RepeatMarker:
    """Repeat steps[from_index..after_index] count times in total."""

    from_index: int
    after_index: int
    count: int


@dataclass(frozen=True)
class RepeatStep:
    """Repeat pseudo-step in flattened order; back_to is a flattened index."""

    back_to: int
    count: int


@dataclass(frozen=True)
class StepOptions:
    """Encoding switches.

    Attributes:
        use_heart_rate: Prefer heart-rate targets over pace; None follows the
            session's own use_heart_rate_target flag
    """

    use_heart_rate: bool | None = None


@dataclass(frozen=True)
class StepPlan:
    steps: tuple[EncodedStep, ...] = ()
    repeats: tuple[RepeatMarker, ...] = ()

    def flatten(self) -> list[EncodedStep | RepeatStep]:
        """Steps in device order with repeat pseudo-steps interleaved."""
        markers_after: dict[int, list[RepeatMarker]] = {}
        for marker in self.repeats:
            markers_after.setdefault(marker.after_index, []).append(marker)

        flat: list[EncodedStep | RepeatStep] = []
        position: dict[int, int] = {}
        for idx, step in enumerate(self.steps):
            position[idx] = len(flat)
            flat.append(step)
            for marker in markers_after.get(idx, []):
                flat.append(RepeatStep(back_to=position[marker.from_index], count=marker.count))
        return flat

    def repeat_for(self, index: int) -> RepeatMarker | None:
        """Marker whose block contains step index, if any."""
        return next((m for m in self.repeats if m.from_index <= index <= m.after_index), None)


def duration_from_text(text: str | None) -> DurationSpec:
    parsed = parse_duration_text(text)
    if isinstance(parsed, Distance):
        return DurationSpec.distance_m(parsed.meters)
    if isinstance(parsed, Time):
        return DurationSpec.time_s(parsed.seconds)
    if isinstance(parsed, Unrecognized) and parsed.text.strip():
        logger.info(f"Unrecognized duration text '{parsed.text}', using an open step")
    return DurationSpec.open()


def _pace_target(text: str | None) -> TargetSpec | None:
    band = parse_pace_text(text)
    if band is None:
        return None
    low, high = band.to_speed_range()
    return TargetSpec(TargetKind.SPEED, low, high)


def _range_target(kind: TargetKind, low: int | None, high: int | None) -> TargetSpec | None:
    if not low and not high:
        return None
    low = low or high or 0
    high = high or low
    return TargetSpec(kind, min(low, high), max(low, high))


def resolve_target(
    pace: str | None,
    *,
    power: tuple[int | None, int | None] = (None, None),
    heart_rate: tuple[int | None, int | None] = (None, None),
    use_heart_rate: bool = False,
) -> TargetSpec:
    """Pick the step target: power, then heart rate (if enabled), then pace, else open."""
    target = _range_target(TargetKind.POWER, *power)
    if target is None and use_heart_rate:
        target = _range_target(TargetKind.HEART_RATE, *heart_rate)
    if target is None:
        target = _pace_target(pace)
    return target or TargetSpec.open()


def _interval_duration(interval: Interval) -> DurationSpec:
    if interval.duration_seconds:
        return DurationSpec.time_s(interval.duration_seconds)
    if interval.distance > 0:
        return DurationSpec.distance_m(interval.distance)
    return DurationSpec.open()


def _interval_target(interval: Interval, session: WorkoutSession, use_heart_rate: bool) -> TargetSpec:
    return resolve_target(
        interval.pace,
        power=(interval.target_power_low, interval.target_power_high),
        heart_rate=(
            interval.target_hr_low or session.target_hr_low,
            interval.target_hr_high or session.target_hr_high,
        ),
        use_heart_rate=use_heart_rate,
    )


def _bracket_step(text: str | None, name: str, intensity: StepIntensity) -> EncodedStep | None:
    if is_placeholder(text):
        return None
    return EncodedStep(
        name=name,
        duration=duration_from_text(text),
        target=TargetSpec.open(),
        intensity=intensity,
        notes=(text or "").strip(),
    )


def build_step_plan(session: WorkoutSession, options: StepOptions | None = None) -> StepPlan:
    """Turn a session into steps plus repeat markers.

    Placeholder warm-up/cool-down text produces no step. Each interval
    becomes a work step, a rest step when rest is set and non-zero, and a repeat marker
    when it repeats more than once. A session without intervals becomes one
    continuous step.
    """
    options = options or StepOptions()
    use_heart_rate = session.use_heart_rate_target if options.use_heart_rate is None else options.use_heart_rate

    steps: list[EncodedStep] = []
    repeats: list[RepeatMarker] = []

    warmup = _bracket_step(session.warmup, "Warmup", StepIntensity.WARMUP)
    if warmup is not None:
        steps.append(warmup)

    if not session.intervals:
        duration = DurationSpec.distance_m(session.distance * 1000) if session.distance > 0 else DurationSpec.open()
        target = resolve_target(
            session.target_pace,
            heart_rate=(session.target_hr_low, session.target_hr_high),
            use_heart_rate=use_heart_rate,
        )
        steps.append(EncodedStep(name=session.title, duration=duration, target=target, intensity=StepIntensity.ACTIVE))

    for interval in session.intervals:
        start = len(steps)
        steps.append(
            EncodedStep(
                name=interval.description or "Work",
                duration=_interval_duration(interval),
                target=_interval_target(interval, session, use_heart_rate),
                intensity=StepIntensity.ACTIVE,
            )
        )
        if not is_placeholder(interval.rest) and not is_zero_duration(interval.rest):
            steps.append(
                EncodedStep(
                    name="Rest",
                    duration=duration_from_text(interval.rest),
                    target=TargetSpec.open(),
                    intensity=StepIntensity.REST,
                    notes=interval.rest.strip(),
                )
            )
        if interval.count > 1:
            repeats.append(RepeatMarker(from_index=start, after_index=len(steps) - 1, count=interval.count))

    cooldown = _bracket_step(session.cooldown, "Cooldown", StepIntensity.COOLDOWN)
    if cooldown is not None:
        steps.append(cooldown)

    return StepPlan(steps=tuple(steps), repeats=tuple(repeats))
