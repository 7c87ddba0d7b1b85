"""Program calendar: training phases and checkpoint (re-test) weeks."""
from __future__ import annotations

from dataclasses import dataclass, field


CHECKPOINT_WEEKS: tuple[int, ...] = (8, 20, 37, 44, 51)

# Phase 5 weeks that run real testing instead of re-entering phase 1 work.
TESTING_WEEKS: tuple[int, ...] = (37, 44, 51)

TRAINING_PHASES: dict[int, dict[str, object]] = {
    1: {"name": "Foundation", "weeks": (1, 8)},
    2: {"name": "Build", "weeks": (9, 20)},
    3: {"name": "Peak", "weeks": (21, 37)},
    4: {"name": "Maintain", "weeks": (38, 44)},
    5: {"name": "Test", "weeks": (45, 52)},
}


@dataclass(frozen=True)
class CheckpointTest:
    """One benchmark test and the profile fields it recalibrates."""

    name: str
    kind: str  # "strength" or "cardio"
    updates: tuple[str, ...]
    instructions: str = ""


@dataclass(frozen=True)
class Checkpoint:
    week: int
    instructions: str
    tests: tuple[CheckpointTest, ...]
    schedule: dict[str, tuple[str, ...]] = field(default_factory=dict)


CHECKPOINTS: dict[int, Checkpoint] = {
    8: Checkpoint(
        week=8,
        instructions=(
            "Saturday of Week 8: 5k time trial, full recovery, then a 2k row time trial. "
            "These recalculate Zone 2 and tempo paces for Phase 2."
        ),
        tests=(
            CheckpointTest("5k Run Time Trial", "cardio", ("k5_time_sec",),
                           "Run 5k as fast as possible. Record total time."),
            CheckpointTest("2k Row Time Trial", "cardio", ("row_2k_sec",),
                           "Row 2000m as fast as possible. Record total time."),
        ),
    ),
    20: Checkpoint(
        week=20,
        instructions=(
            "Saturday of Week 20: test the major lifts (a heavy 3RM is fine), "
            "then 1 mile run and 500m row. Recalibrates Phase 3 targets."
        ),
        tests=(
            CheckpointTest("Back Squat 1RM or 3RM", "strength", ("squat_max",),
                           "Build to a true 1RM or a heavy 3RM (1RM is estimated)."),
            CheckpointTest("Bench Press 1RM or 3RM", "strength", ("bench_max",)),
            CheckpointTest("Deadlift 1RM or 3RM", "strength", ("deadlift_max",)),
            CheckpointTest("1 Mile Run Time Trial", "cardio", ("mile_time_sec", "sprint_400m_sec"),
                           "Sets the 400m interval pace."),
            CheckpointTest("500m Row Max Effort", "cardio", ("row_500m_sec",)),
        ),
    ),
    37: Checkpoint(
        week=37,
        instructions="Testing Week 1: Mon (Olympic), Wed (Structural), Fri (Absolute), Sat (Cardio)",
        schedule={
            "monday": ("Clean & Jerk 1RM", "Snatch 1RM"),
            "wednesday": ("Front Squat 1RM", "Bench Press 1RM"),
            "friday": ("Back Squat 1RM", "Deadlift 1RM"),
            "saturday": ("1 Mile Run", "500m Row"),
        },
        tests=(
            CheckpointTest("Clean & Jerk 1RM", "strength", ("clean_jerk_max",)),
            CheckpointTest("Snatch 1RM", "strength", ("snatch_max",)),
            CheckpointTest("Front Squat 1RM", "strength", ("front_squat_max",)),
            CheckpointTest("Bench Press 1RM", "strength", ("bench_max",)),
            CheckpointTest("Back Squat 1RM", "strength", ("squat_max",)),
            CheckpointTest("Deadlift 1RM", "strength", ("deadlift_max",)),
            CheckpointTest("1 Mile Run", "cardio", ("mile_time_sec",)),
            CheckpointTest("500m Row", "cardio", ("row_500m_sec",)),
        ),
    ),
    44: Checkpoint(
        week=44,
        instructions="Testing Week 2: Mon/Wed/Fri repeat strength tests, Sat 5k + bike",
        schedule={"saturday": ("5k Run", "Assault Bike 30-sec Max Watts")},
        tests=(
            CheckpointTest("5k Run", "cardio", ("k5_time_sec",)),
            CheckpointTest("Assault Bike Max Watts", "cardio", ("bike_max_watts",),
                           "30-second all-out test. Record max wattage."),
        ),
    ),
    51: Checkpoint(
        week=51,
        instructions="Final Testing Week: Mon/Wed/Fri strength, Sat multi-modal endurance",
        schedule={"saturday": ("8 x 400m Repeats", "2k Row", "1k Ski Erg")},
        tests=(
            CheckpointTest("8 x 400m Repeats (average pace)", "cardio", ("sprint_400m_sec",),
                           "Run 8 x 400m with 2:00 rest. Record average pace."),
            CheckpointTest("2k Row", "cardio", ("row_2k_sec",)),
            CheckpointTest("1k Ski Erg", "cardio", ("ski_1k_sec",)),
        ),
    ),
}


def is_checkpoint_week(week: int) -> bool:
    return week in CHECKPOINTS


def is_testing_week(week: int) -> bool:
    return week in TESTING_WEEKS


def get_checkpoint(week: int) -> Checkpoint | None:
    return CHECKPOINTS.get(week)


def get_next_checkpoint_week(current_week: int) -> int | None:
    """Return the first checkpoint week after ``current_week``, if any."""

    return next((week for week in CHECKPOINT_WEEKS if week > current_week), None)


def phase_for_week(week: int) -> int:
    """Map an absolute program week to its phase (weeks past 52 stay in phase 5)."""

    for phase, info in TRAINING_PHASES.items():
        start, end = info["weeks"]
        if start <= week <= end:
            return phase
    return 1 if week < 1 else 5
