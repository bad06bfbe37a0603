"""Free-text duration and pace parsing.

Warm-up, rest and pace fields are typed by hand ("2km easy pace", "60s",
"1km float", "4:10-4:20/km"). Parsing is total: every input maps to a
Distance, a Time or Unrecognized, and callers decide what Unrecognized means
(usually an open step).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from norskflow.pacing.clock import parse_clock_to_seconds, round_half_up

PLACEHOLDER_VALUES: frozenset[str] = frozenset({"", "0", "n/a", "na", "direct start", "walk off", "none"})

SINGLE_PACE_SPREAD_S = 5

_NUMBER = r"(\d+(?:[.,]\d+)?)"

# Order matters: "km" and "mtr" must be tried before the bare "m" of minutes.
_KM = re.compile(rf"{_NUMBER}\s*(?:km|kms|kilometers?|kilometres?)\b", re.IGNORECASE)
_METRES = re.compile(rf"{_NUMBER}\s*(?:mtr|mtrs|meters?|metres?)\b", re.IGNORECASE)
_SECONDS = re.compile(rf"{_NUMBER}\s*(?:s|sec|secs|seconds?)\b", re.IGNORECASE)
_MINUTES = re.compile(rf"{_NUMBER}\s*(?:m|min|mins|minutes?)\b", re.IGNORECASE)
_CLOCK = re.compile(r"\b(\d{1,2}(?::\d{2}){1,2})\b")
_ZERO_DURATION = re.compile(
    r"^0+(?:[.,:]0+)*\s*(?:s|sec|secs|seconds?|m|min|mins|minutes?|km|mtr|mtrs|meters?|metres?)?$", re.IGNORECASE
)

_PACE_BAND = re.compile(r"(\d{1,2}:\d{2})\s*(?:-|–|to)\s*(\d{1,2}:\d{2})", re.IGNORECASE)
_PACE_SINGLE = re.compile(r"(\d{1,2}:\d{2})")


@dataclass(frozen=True)
class Distance:
    meters: float


@dataclass(frozen=True)
class Time:
    seconds: float


@dataclass(frozen=True)
class Unrecognized:
    text: str


ParseResult = Distance | Time | Unrecognized


@dataclass(frozen=True)
class PaceBand:
    """Pace bounds in sec/km; fast <= slow regardless of input order."""

    fast: float
    slow: float

    def to_speed_range(self) -> tuple[int, int]:
        """(low, high) speed in mm/s; the slower pace gives the low bound.

        A single pace is widened by 5 s/km either side so the watch has a band.
        """
        fast, slow = self.fast, self.slow
        if fast == slow:
            fast, slow = max(1.0, fast - SINGLE_PACE_SPREAD_S), slow + SINGLE_PACE_SPREAD_S
        return _mm_per_s(slow), _mm_per_s(fast)


def _mm_per_s(pace_sec: float) -> int:
    return int(round_half_up(1_000_000 / pace_sec))


def _number(raw: str) -> float:
    return float(raw.replace(",", "."))


def is_placeholder(text: str | None) -> bool:
    """True for warm-up/cool-down text that means "no step"."""
    if text is None:
        return True
    return text.strip().lower() in PLACEHOLDER_VALUES


def is_zero_duration(text: str | None) -> bool:
    """True for an explicit zero length such as "0s", "0:00" or "0 km"."""
    return bool(text) and _ZERO_DURATION.match(text.strip()) is not None


def parse_duration_text(text: str | None) -> ParseResult:
    """Read the first duration in free text.

    Cascade: kilometres, metres ("mtr"), seconds, minutes ("10m"), then a
    clock value ("1:30" is 90 s). Zero-valued matches are Unrecognized.
    """
    if not text or is_placeholder(text):
        return Unrecognized(text or "")

    if match := _KM.search(text):
        value = _number(match.group(1)) * 1000
        return Distance(value) if value > 0 else Unrecognized(text)
    if match := _METRES.search(text):
        value = _number(match.group(1))
        return Distance(value) if value > 0 else Unrecognized(text)
    if match := _SECONDS.search(text):
        value = _number(match.group(1))
        return Time(value) if value > 0 else Unrecognized(text)
    if match := _MINUTES.search(text):
        value = _number(match.group(1)) * 60
        return Time(value) if value > 0 else Unrecognized(text)
    if match := _CLOCK.search(text):
        value = parse_clock_to_seconds(match.group(1))
        return Time(value) if value > 0 else Unrecognized(text)

    return Unrecognized(text)


def parse_pace_text(text: str | None) -> PaceBand | None:
    """Parse "4:10-4:20/km" or a single "4:21"; None when no usable pace."""
    if not text:
        return None

    if match := _PACE_BAND.search(text):
        first = parse_clock_to_seconds(match.group(1))
        second = parse_clock_to_seconds(match.group(2))
        if first <= 0 or second <= 0:
            return None
        return PaceBand(fast=min(first, second), slow=max(first, second))

    if match := _PACE_SINGLE.search(text):
        pace = parse_clock_to_seconds(match.group(1))
        if pace <= 0:
            return None
        return PaceBand(fast=pace, slow=pace)

    return None
