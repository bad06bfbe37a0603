"""Clock-time and pace/speed conversions.

Every function here is total: malformed or undeterminable input maps to 0
(or "0:00") instead of raising, so a half-filled profile flows through the
planner as visible zero targets.
"""

from __future__ import annotations

import math
import re

_LEADING_INT = re.compile(r"^\s*(\d+)")


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (Math.round semantics).

    Python's round() is banker's rounding; plan distances and durations are
    rounded the way athletes expect (14.65 -> 14.7, 22.5 -> 23).
    """
    if not math.isfinite(value):
        return value
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def format_km(value: float) -> str:
    """Render a kilometre figure without a trailing ".0" (2.0 -> "2", 1.5 -> "1.5")."""
    return f"{round_half_up(value, 1):g}"


def _parse_component(part: str) -> int:
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else 0


def parse_clock_to_seconds(text: str | None) -> int:
    """Parse "M:S" or "H:M:S" into total seconds.

    Components are parsed permissively: leading digits are used and anything
    non-numeric counts as 0. A single component is read as seconds.
    """
    if not text:
        return 0
    parts = [_parse_component(p) for p in str(text).split(":")]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    return parts[0]


def format_seconds_to_clock(seconds: float | None) -> str:
    """Format seconds as "M:SS" or "H:MM:SS"; non-finite or <= 0 renders "0:00"."""
    if seconds is None or not math.isfinite(seconds) or seconds <= 0:
        return "0:00"

    total = int(round_half_up(seconds))
    if total <= 0:
        return "0:00"
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def pace_to_speed(pace_sec_per_km: float | None) -> float:
    """Convert pace (sec/km) to speed (m/s); 0.0 when the pace is unusable."""
    if pace_sec_per_km is None or not math.isfinite(pace_sec_per_km) or pace_sec_per_km <= 0:
        return 0.0
    return 1000.0 / pace_sec_per_km


def speed_to_pace(speed_mps: float | None) -> float:
    """Convert speed (m/s) to pace (sec/km); 0.0 when the speed is unusable."""
    if speed_mps is None or not math.isfinite(speed_mps) or speed_mps <= 0:
        return 0.0
    return 1000.0 / speed_mps


def format_pace_band(low: float, high: float) -> str:
    """Render a pace band as "M:SS-M:SS"."""
    return f"{format_seconds_to_clock(low)}-{format_seconds_to_clock(high)}"
