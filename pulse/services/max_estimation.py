"""Benchmark estimation and working-set prescription.

Turns a sparse athlete profile into a complete set of strength and cardio
benchmarks, then prescribes loads for named exercises. Every function here is
total: an unusable profile or an unknown exercise shows up as
``needs_calibration`` on the result, never as an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pulse.models.schemas import (
    AthleteProfile,
    EstimationResult,
    LiftCategory,
    Provenance,
    WorkingSetResult,
)
from pulse.services.conversions import round_half_up


logger = logging.getLogger(__name__)


# Seeded when neither anchor (bench, squat) is known.
BASELINE_PROFILE: dict[str, int] = {
    "bench_max": 95,
    "squat_max": 135,
    "deadlift_max": 185,
    "ohp_max": 65,
    "front_squat_max": 115,
    "clean_jerk_max": 115,
    "snatch_max": 95,
    "mile_time_sec": 540,
    "row_2k_sec": 540,
    "bike_max_watts": 200,
}

# (target, anchor, ratio), applied in order; a rule fires only when the target
# is still missing and the anchor is known at that point.
ESTIMATION_RULES: tuple[tuple[str, str, float], ...] = (
    # Cross-anchor recovery
    ("squat_max", "bench_max", 1.35),
    ("bench_max", "squat_max", 0.75),
    # Lower body
    ("deadlift_max", "squat_max", 1.20),
    ("front_squat_max", "squat_max", 0.85),
    # Upper body / Olympic
    ("ohp_max", "bench_max", 0.60),
    ("clean_jerk_max", "bench_max", 1.10),
    ("snatch_max", "clean_jerk_max", 0.80),
    # Power
    ("bike_max_watts", "squat_max", 3.0),
)

DEFAULT_CARDIO_TIMES: dict[str, int] = {
    "mile_time_sec": 480,
    "row_2k_sec": 480,
}

FIELD_LABELS: dict[str, str] = {
    "squat_max": "Back Squat",
    "bench_max": "Bench Press",
    "deadlift_max": "Deadlift",
    "front_squat_max": "Front Squat",
    "ohp_max": "Overhead Press",
    "clean_jerk_max": "Clean & Jerk",
    "snatch_max": "Snatch",
}

CLEAN_FROM_CLEAN_JERK = 0.85


@dataclass(frozen=True)
class LiftRule:
    """Maps exercise names matching ``matches`` to a lift category."""

    category: LiftCategory
    matches: Callable[[str], bool]


# Evaluated top to bottom against the lower-cased exercise name; first match wins.
LIFT_RULES: tuple[LiftRule, ...] = (
    LiftRule(LiftCategory.CLEAN_AND_JERK, lambda n: "clean" in n and "jerk" in n),
    LiftRule(LiftCategory.CLEAN, lambda n: "clean" in n),
    LiftRule(LiftCategory.SNATCH, lambda n: "snatch" in n),
    LiftRule(LiftCategory.FRONT_SQUAT, lambda n: "front squat" in n),
    LiftRule(LiftCategory.SQUAT, lambda n: "squat" in n and "split" not in n),
    LiftRule(
        LiftCategory.OVERHEAD_PRESS,
        lambda n: ("overhead" in n or "ohp" in n or "press" in n) and "bench" not in n,
    ),
    LiftRule(LiftCategory.BENCH, lambda n: "bench" in n),
    LiftRule(LiftCategory.DEADLIFT, lambda n: "deadlift" in n),
)

# Category -> (profile field holding its base max, fraction of that max)
LIFT_BASES: dict[LiftCategory, tuple[str, float]] = {
    LiftCategory.CLEAN_AND_JERK: ("clean_jerk_max", 1.0),
    LiftCategory.CLEAN: ("clean_jerk_max", CLEAN_FROM_CLEAN_JERK),
    LiftCategory.SNATCH: ("snatch_max", 1.0),
    LiftCategory.FRONT_SQUAT: ("front_squat_max", 1.0),
    LiftCategory.SQUAT: ("squat_max", 1.0),
    LiftCategory.OVERHEAD_PRESS: ("ohp_max", 1.0),
    LiftCategory.BENCH: ("bench_max", 1.0),
    LiftCategory.DEADLIFT: ("deadlift_max", 1.0),
}


def coerce_profile(profile: AthleteProfile | Mapping[str, Any] | None) -> AthleteProfile:
    """Accept a profile model, a plain mapping, or None."""

    if profile is None:
        return AthleteProfile()
    if isinstance(profile, AthleteProfile):
        return profile
    return AthleteProfile.model_validate(dict(profile))


def _is_missing(values: dict[str, Any], field: str) -> bool:
    value = values.get(field)
    return value is None or value <= 0


def estimate_missing_maxes(
    profile: AthleteProfile | Mapping[str, Any] | None,
) -> EstimationResult:
    """
    Fill every missing benchmark from the ones that are known.

    Stages run in order and each only touches fields that are still empty:
    baseline seeding (when neither bench nor squat is known), cross-anchor
    recovery, lower/upper body cascades, snatch from clean & jerk, bike watts
    from squat, then fixed mile / 2k row defaults. Values present in the
    input are never overwritten and the input is never mutated.

    Args:
        profile: Partial profile (model or mapping)

    Returns:
        EstimationResult with the filled profile and per-field provenance

    Example:
        >>> estimate_missing_maxes({"bench_max": 200}).squat_max
        270.0
    """
    source = coerce_profile(profile)
    values: dict[str, Any] = {
        field: getattr(source, field) for field in AthleteProfile.model_fields
    }
    provenance = {
        field: Provenance.DIRECT for field in AthleteProfile.model_fields if source.has(field)
    }
    derived_from: dict[str, str] = {}

    if _is_missing(values, "bench_max") and _is_missing(values, "squat_max"):
        logger.info("No bench or squat anchor present - seeding baseline estimates")
        for field, baseline in BASELINE_PROFILE.items():
            if _is_missing(values, field):
                values[field] = baseline
                provenance[field] = Provenance.BASELINE

    for target, anchor, ratio in ESTIMATION_RULES:
        if _is_missing(values, target) and not _is_missing(values, anchor):
            values[target] = round_half_up(values[anchor] * ratio)
            provenance[target] = Provenance.ESTIMATED
            derived_from[target] = anchor

    for field, default in DEFAULT_CARDIO_TIMES.items():
        if _is_missing(values, field):
            values[field] = default
            provenance[field] = Provenance.BASELINE

    return EstimationResult(**values, provenance=provenance, derived_from=derived_from)


def resolve_lift(exercise_name: str) -> LiftCategory | None:
    """Return the lift category for an exercise name, or None if unrecognised."""

    name = (exercise_name or "").lower()
    for rule in LIFT_RULES:
        if rule.matches(name):
            return rule.category
    return None


def _describe_source(estimated: EstimationResult, field: str, category: LiftCategory) -> str:
    origin = estimated.provenance.get(field)
    if origin is Provenance.DIRECT:
        label = "Personal Record"
    elif origin is Provenance.ESTIMATED:
        anchor = estimated.derived_from.get(field, "")
        label = f"Estimated from {FIELD_LABELS.get(anchor, anchor)}"
    else:
        label = "Baseline Estimate"

    if category is LiftCategory.CLEAN:
        return f"85% of Clean & Jerk ({label})"
    return label


def calculate_working_set(
    exercise_name: str,
    percent_of_1rm: float,
    profile: AthleteProfile | Mapping[str, Any] | None,
) -> WorkingSetResult:
    """
    Prescribe a working weight for ``exercise_name`` at ``percent_of_1rm``.

    Args:
        exercise_name: Name as written in the plan (case-insensitive)
        percent_of_1rm: Decimal percentage (0.80 = 80%)
        profile: Athlete profile, possibly partial

    Returns:
        WorkingSetResult; ``needs_calibration`` is set when no base max
        could be resolved (unknown exercise name)

    Example:
        >>> calculate_working_set("Bench Press", 0.80, {"bench_max": 200, "squat_max": 300}).weight
        160
    """
    original = coerce_profile(profile)
    estimated = estimate_missing_maxes(original)
    category = resolve_lift(exercise_name)

    if category is None:
        logger.debug("No lift rule matched %r - calibration required", exercise_name)
        return WorkingSetResult(weight=0, is_estimate=False, source=None, needs_calibration=True)

    field, fraction = LIFT_BASES[category]
    base = (getattr(estimated, field) or 0) * fraction
    weight = round_half_up(base * percent_of_1rm)

    logger.debug(
        "Working set %s -> %s: %.1f x %.2f = %d lbs",
        exercise_name,
        category.value,
        base,
        percent_of_1rm,
        weight,
    )

    return WorkingSetResult(
        weight=weight,
        is_estimate=not original.has(field),
        source=_describe_source(estimated, field, category),
        needs_calibration=base <= 0,
        lift=category,
    )


def get_exercise_max(exercise_name: str, profile: AthleteProfile | Mapping[str, Any] | None) -> int:
    """Return the (estimated) 1RM backing an exercise, or 0 when unrecognised."""

    category = resolve_lift(exercise_name)
    if category is None:
        return 0
    field, fraction = LIFT_BASES[category]
    estimated = estimate_missing_maxes(profile)
    return round_half_up((getattr(estimated, field) or 0) * fraction)


def estimate_one_rm(weight: float, reps: int, formula: str = "epley") -> int:
    """
    Estimate a one-rep max from a rep max.

    Epley (``w * (1 + reps/30)``) suits 5-10 reps; Brzycki
    (``w * 36 / (37 - reps)``) suits 1-5 reps.

    Raises:
        ValueError: If reps < 1, the formula is unknown, or Brzycki is asked
            for 37+ reps
    """
    if reps < 1:
        raise ValueError(f"Reps must be at least 1 (got {reps})")
    if reps == 1:
        return round_half_up(weight)

    if formula == "epley":
        return round_half_up(weight * (1 + reps / 30))
    if formula == "brzycki":
        if reps >= 37:
            raise ValueError("Brzycki formula is undefined for 37 or more reps")
        return round_half_up(weight * (36 / (37 - reps)))
    raise ValueError(f"Unknown 1RM formula: {formula}")


def estimate_one_rm_auto(weight: float, reps: int) -> int:
    """Pick Brzycki for low reps (<= 5) and Epley otherwise."""

    return estimate_one_rm(weight, reps, "brzycki" if reps <= 5 else "epley")


def calculate_working_weight(one_rm: float, target_reps: int) -> int:
    """Reverse Epley: the weight that should allow ``target_reps`` reps."""

    return round_half_up(one_rm / (1 + target_reps / 30))
