"""Heart rate zone calculation for workout prescriptions."""

from __future__ import annotations

import logging
from typing import Any

from pulse.services.conversions import round_half_up


logger = logging.getLogger(__name__)

DEFAULT_MAX_HR = 196

# zone -> (lower fraction, upper fraction, name, description) of max HR
MAX_HR_ZONE_BANDS: dict[str, tuple[float, float, str, str]] = {
    "zone_1": (0.65, 0.72, "Recovery", "Easy aerobic, recovery work"),
    "zone_2": (0.73, 0.82, "Aerobic", "Base building, long steady efforts"),
    "zone_3": (0.83, 0.86, "Tempo", "Tempo work, moderate effort"),
    "zone_4": (0.87, 0.94, "Threshold", "Lactate threshold intervals"),
    "zone_5": (0.95, 1.00, "VO2 Max", "Max efforts, short bursts only"),
}


def calculate_max_hr_from_age(age: int) -> int:
    """
    Calculate estimated maximum heart rate from age.

    Uses the traditional formula: 220 - age.

    Example:
        >>> calculate_max_hr_from_age(30)
        190
    """
    return 220 - age


def calculate_hr_zones(
    max_hr: int | None = None,
    age: int | None = None,
) -> dict[str, dict[str, int | str]]:
    """
    Calculate heart rate zones as fixed percentage bands of max heart rate.

    Zone definitions:
        - Zone 1 (Recovery): 65-72% of max HR
        - Zone 2 (Aerobic): 73-82% of max HR
        - Zone 3 (Tempo): 83-86% of max HR
        - Zone 4 (Threshold): 87-94% of max HR
        - Zone 5 (VO2 Max): 95% of max HR and above

    Max HR comes from ``max_hr`` when given, otherwise from ``age``, otherwise
    DEFAULT_MAX_HR.

    Args:
        max_hr: Maximum heart rate in bpm
        age: Athlete's age in years (used only when max_hr is missing)

    Returns:
        Dictionary mapping zone keys to min/max bpm, name and description:
        {
            "zone_2": {"min": 146, "max": 164, "name": "Aerobic", "description": "..."},
            ...
        }

    Raises:
        ValueError: If age is given but outside 10-100 years

    Example:
        >>> calculate_hr_zones(max_hr=200)["zone_2"]["min"]
        146
    """
    if max_hr is not None and max_hr <= 0:
        logger.warning(
            "Invalid max HR value (%d) - must be positive. Falling back to default %d bpm.",
            max_hr,
            DEFAULT_MAX_HR,
        )
        max_hr = None

    if max_hr is None:
        if age is not None:
            if not (10 <= age <= 100):
                raise ValueError(f"Age {age} outside valid range (10-100 years)")
            max_hr = calculate_max_hr_from_age(age)
            logger.info("Calculated max HR from age: %d bpm (age=%d)", max_hr, age)
        else:
            max_hr = DEFAULT_MAX_HR

    zones: dict[str, dict[str, int | str]] = {}
    for zone_key, (low, high, name, description) in MAX_HR_ZONE_BANDS.items():
        zones[zone_key] = {
            "min": round_half_up(max_hr * low),
            "max": round_half_up(max_hr * high),
            "name": name,
            "description": description,
        }

    return zones


def format_hr_zone(zone: dict[str, Any]) -> str:
    """Format a single zone as ``146-164 bpm``."""

    return f"{zone['min']}-{zone['max']} bpm"


def format_hr_zones_for_prompt(zones: dict[str, dict[str, Any]]) -> str:
    """
    Format HR zones into human-readable string for AI prompt.

    Returns:
        Multi-line formatted string:
            Zone 1 (Recovery): 127-141 bpm - Easy aerobic, recovery work
            Zone 2 (Aerobic): 143-161 bpm - Base building, long steady efforts
            ...
    """
    lines = []
    for zone_num in range(1, 6):
        zone_key = f"zone_{zone_num}"
        if zone_key not in zones:
            continue

        zone = zones[zone_key]
        name = zone.get("name", f"Zone {zone_num}")
        line = f"Zone {zone_num} ({name}): {format_hr_zone(zone)}"
        if zone.get("description"):
            line += f" - {zone['description']}"
        lines.append(line)

    return "\n".join(lines)
