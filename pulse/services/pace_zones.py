"""Training paces derived from time-trial benchmarks, and workout template filling."""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping

from pulse.models.schemas import AthleteProfile, EstimationResult
from pulse.services.conversions import format_pace_per_unit, round_half_up
from pulse.services.hr_zones import calculate_hr_zones, format_hr_zone
from pulse.services.max_estimation import coerce_profile, estimate_missing_maxes


logger = logging.getLogger(__name__)

MILES_PER_5K = 3.10686

# Offsets are the midpoints of the usual race-pace deltas (sec/mile, sec/500m).
ZONE2_OFFSET_PER_MILE = 67.5
TEMPO_OFFSET_PER_MILE = 25
ROW_AEROBIC_OFFSET_500M = 9
ROW_SPRINT_OFFSET_500M = 15

TEMPLATE_TOKEN = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")


def calculate_5k_derived_paces(k5_time_sec: float) -> dict[str, int]:
    """
    Calculate Zone 2 and tempo paces (seconds per mile) from a 5k time.

    Zone 2 = 5k pace + 60-75 sec/mile (midpoint 67.5)
    Tempo = 5k pace + 20-30 sec/mile (midpoint 25)

    Example:
        >>> calculate_5k_derived_paces(1440)
        {'zone2_pace_per_mile': 531, 'tempo_pace_per_mile': 488}
    """
    pace_per_mile = k5_time_sec / MILES_PER_5K
    return {
        "zone2_pace_per_mile": round_half_up(pace_per_mile + ZONE2_OFFSET_PER_MILE),
        "tempo_pace_per_mile": round_half_up(pace_per_mile + TEMPO_OFFSET_PER_MILE),
    }


def calculate_2k_row_derived_paces(row_2k_sec: float) -> dict[str, int]:
    """
    Calculate rowing interval paces from a 2k row time.

    Aerobic intervals = 2k split + 9 sec/500m.
    Anaerobic sprints = (2k split - 15 sec) halved for 250m.

    Example:
        >>> calculate_2k_row_derived_paces(480)
        {'aerobic_interval_500m': 129, 'anaerobic_sprint_250m': 53}
    """
    pace_500m = row_2k_sec / 4
    return {
        "aerobic_interval_500m": round_half_up(pace_500m + ROW_AEROBIC_OFFSET_500M),
        "anaerobic_sprint_250m": round_half_up((pace_500m - ROW_SPRINT_OFFSET_500M) / 2),
    }


def calculate_400m_pace_from_mile(mile_time_sec: float) -> int:
    """400m interval target: quarter of the mile time, minus 10 seconds."""

    return round_half_up(mile_time_sec / 4 - 10)


def _run_zone2(profile: EstimationResult) -> str | None:
    if not profile.has("k5_time_sec"):
        return None
    pace = calculate_5k_derived_paces(profile.k5_time_sec)["zone2_pace_per_mile"]
    return format_pace_per_unit(pace, "mile")


def _run_tempo(profile: EstimationResult) -> str | None:
    if not profile.has("k5_time_sec"):
        return None
    pace = calculate_5k_derived_paces(profile.k5_time_sec)["tempo_pace_per_mile"]
    return format_pace_per_unit(pace, "mile")


def _run_400m(profile: EstimationResult) -> str | None:
    if not profile.has("mile_time_sec"):
        return None
    return format_pace_per_unit(calculate_400m_pace_from_mile(profile.mile_time_sec), "400m")


def _row_interval(profile: EstimationResult) -> str | None:
    if not profile.has("row_2k_sec"):
        return None
    pace = calculate_2k_row_derived_paces(profile.row_2k_sec)["aerobic_interval_500m"]
    return format_pace_per_unit(pace, "500m")


def _row_sprint(profile: EstimationResult) -> str | None:
    if not profile.has("row_2k_sec"):
        return None
    pace = calculate_2k_row_derived_paces(profile.row_2k_sec)["anaerobic_sprint_250m"]
    return format_pace_per_unit(pace, "250m")


def _hr_zone(zone_key: str) -> Callable[[EstimationResult], str | None]:
    def render(profile: EstimationResult) -> str | None:
        zones = calculate_hr_zones(max_hr=profile.max_hr)
        return format_hr_zone(zones[zone_key])

    return render


def _max_hr(profile: EstimationResult) -> str | None:
    zones = calculate_hr_zones(max_hr=profile.max_hr)
    return f"{zones['zone_5']['max']} bpm"


TEMPLATE_RESOLVERS: dict[str, Callable[[EstimationResult], str | None]] = {
    "row_interval_pace_500m": _row_interval,
    "row_sprint_pace_250m": _row_sprint,
    "run_zone2_pace_mile": _run_zone2,
    "run_tempo_pace_mile": _run_tempo,
    "run_400m_pace": _run_400m,
    "zone_1_hr": _hr_zone("zone_1"),
    "zone_2_hr": _hr_zone("zone_2"),
    "zone_3_hr": _hr_zone("zone_3"),
    "zone_4_hr": _hr_zone("zone_4"),
    "zone_5_hr": _hr_zone("zone_5"),
    "max_hr": _max_hr,
}


def parse_workout_template(
    text: str,
    profile: AthleteProfile | Mapping[str, Any] | None,
) -> str:
    """
    Replace ``{{token}}`` placeholders in workout text with personal targets.

    Unknown tokens, and known tokens whose benchmark is missing, are left in
    place verbatim so a broken template stays visibly broken.

    Args:
        text: Free-form workout text
        profile: Athlete profile; None leaves the text untouched

    Returns:
        Text with resolvable placeholders substituted

    Example:
        >>> parse_workout_template("Row 5x500m @ {{row_interval_pace_500m}}", {"row_2k_sec": 480})
        'Row 5x500m @ 2:09/500m'
    """
    if profile is None or not text or "{{" not in text:
        return text

    estimated = estimate_missing_maxes(coerce_profile(profile))

    def substitute(match: re.Match[str]) -> str:
        token = match.group(1).lower()
        resolver = TEMPLATE_RESOLVERS.get(token)
        if resolver is None:
            logger.warning("Unknown workout template token left in place: %s", match.group(0))
            return match.group(0)
        value = resolver(estimated)
        return value if value is not None else match.group(0)

    return TEMPLATE_TOKEN.sub(substitute, text)
