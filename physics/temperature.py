"""Clock parsing and the Red Giant temperature curve.

All times are ``HH:MM`` strings on a 24 hour clock.  Elapsed time is counted
from 03:00, the moment the player wakes up; the giant rises at 05:00.
"""

from __future__ import annotations

import re

from errors import TimeParseError

REFERENCE_MINUTES = 3 * 60
HAZARD_THRESHOLD_MINUTES = 120

START_TEMPERATURE = 28
SUNRISE_TEMPERATURE = 60
POST_SUNRISE_RATE = 0.5

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_clock(value: str) -> int:
    """Return minutes since midnight for an ``HH:MM`` string.

    Raises :class:`errors.TimeParseError` for anything else, including
    out-of-range hours or minutes.
    """

    if not isinstance(value, str):
        raise TimeParseError(value)
    match = _CLOCK_RE.match(value)
    if match is None:
        raise TimeParseError(value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise TimeParseError(value)
    return hours * 60 + minutes


def format_clock(minutes_of_day: int) -> str:
    """Inverse of :func:`parse_clock`; wraps past midnight."""

    minutes_of_day %= 24 * 60
    return f"{minutes_of_day // 60:02d}:{minutes_of_day % 60:02d}"


def elapsed_minutes(clock: str) -> int:
    """Minutes elapsed since 03:00 for *clock* (negative before 03:00)."""

    return parse_clock(clock) - REFERENCE_MINUTES


def temperature_at(elapsed: float) -> int:
    """Ambient temperature in degrees after *elapsed* in-game minutes.

    Quadratic ramp from 28 to 60 until sunrise, then +0.5 degrees per
    minute.  The result is truncated toward zero.
    """

    if elapsed >= HAZARD_THRESHOLD_MINUTES:
        temp = SUNRISE_TEMPERATURE + POST_SUNRISE_RATE * (elapsed - HAZARD_THRESHOLD_MINUTES)
    else:
        progress = max(0.0, min(1.0, elapsed / HAZARD_THRESHOLD_MINUTES))
        temp = START_TEMPERATURE + progress * progress * (SUNRISE_TEMPERATURE - START_TEMPERATURE)
    return int(temp)
