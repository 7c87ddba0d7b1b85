"""Rounding and time/pace formatting helpers shared by the prescription engines."""
from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, with halves rounding up.

    The builtin ``round`` uses banker's rounding (``round(52.5) == 52``), which
    would shift published pace targets by a second.

    Example:
        >>> round_half_up(52.5)
        53
    """
    return int(math.floor(value + 0.5))


def format_pace(seconds: float) -> str:
    """Format a duration in seconds as ``M:SS``."""

    total = round_half_up(seconds)
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


def format_pace_per_unit(seconds: float, unit: str) -> str:
    """Format a pace for display, e.g. ``2:09/500m``."""

    return f"{format_pace(seconds)}/{unit}"


def parse_time_to_seconds(value: str | None) -> int | None:
    """
    Parse ``M:SS`` or ``H:MM:SS`` into total seconds.

    Returns None for anything that is not a well-formed time.
    """
    if not value or not isinstance(value, str):
        return None

    parts = value.strip().split(":")
    if len(parts) == 2:
        hours_str, (mins_str, secs_str) = "0", parts
    elif len(parts) == 3:
        hours_str, mins_str, secs_str = parts
    else:
        return None

    try:
        hours = int(hours_str)
        mins = int(mins_str)
        secs = int(secs_str)
    except ValueError:
        return None

    if hours < 0 or mins < 0 or secs < 0 or secs >= 60:
        return None
    if len(parts) == 3 and mins >= 60:
        return None

    return hours * 3600 + mins * 60 + secs
