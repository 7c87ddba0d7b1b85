"""
Exercise-name normalisation.

Maps free-form user input ("squirt", "DL", "c&j") onto canonical exercise
keys so tool calls can be grouped and filtered consistently.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher, get_close_matches


logger = logging.getLogger(__name__)

FUZZY_CUTOFF = 0.6
PARTIAL_CONFIDENCE = 0.85
MIN_PARTIAL_LENGTH = 4

# Canonical key -> aliases, including common abbreviations and typos.
EXERCISE_ALIASES: dict[str, tuple[str, ...]] = {
    "squat": (
        "squat", "squats", "back squat", "bs", "bsq", "low bar", "high bar",
        "squat max", "squat pr", "squat 1rm",
        "squirt", "sqat", "sqaut", "squt", "squot", "bakc squat", "back sqat",
    ),
    "front_squat": (
        "front squat", "front squats", "fsq", "fs", "front", "frontsquat",
        "front squat max", "frnt squat", "fron squat", "front sqat",
    ),
    "deadlift": (
        "deadlift", "deadlifts", "dead lift", "dl", "conventional", "sumo", "deads",
        "deadlift max", "deadlit", "deedlift", "dedlift", "deadlif",
    ),
    "rdl": ("rdl", "romanian deadlift", "romanian", "stiff leg", "sldl"),
    "lunge": ("lunge", "lunges", "walking lunge", "walking lunges", "split squat", "lumge"),
    "bench_press": (
        "bench", "bench press", "bp", "benchpress", "flat bench", "barbell bench",
        "bench max", "bench pr", "benhc", "bnech", "bech press", "bnch",
    ),
    "overhead_press": (
        "ohp", "overhead press", "press", "shoulder press", "military press", "strict press",
        "ohp max", "shoudler press", "ovherhead press",
    ),
    "pull_up": (
        "pull up", "pullup", "pullups", "pull-up", "chin up", "chinup",
        "weighted pullup", "pul up", "pulup",
    ),
    "row": ("barbell row", "bent over row", "pendlay", "pendlay row", "bb row", "pendley"),
    "clean": ("clean", "cleans", "power clean", "hang clean", "squat clean", "pc", "cleen", "claen"),
    "clean_and_jerk": (
        "clean and jerk", "cnj", "c&j", "clean jerk", "cj", "clean & jerk", "clean an jerk",
    ),
    "snatch": ("snatch", "snatches", "power snatch", "hang snatch", "sntach", "snacth"),
    "run": ("run", "running", "jog", "jogging", "sprint"),
    "zone2_run": ("zone 2 run", "zone2 run", "z2 run", "easy run", "zone 2", "z2", "zone2"),
    "tempo_run": ("tempo run", "tempo", "threshold run", "tempo pace", "tepmo"),
    "5k_run": ("5k", "5k run", "five k", "5k time trial", "5k tt"),
    "mile": ("mile", "1 mile", "mile run", "mile time", "mile time trial", "miel", "mlie"),
    "400m": ("400m", "400m repeats", "400 repeats", "quarters", "400s", "400m intervals"),
    "row_erg": ("row erg", "rowing", "erg row", "rower", "concept 2", "c2", "erg", "rowign"),
    "2k_row": ("2k row", "2000m row", "2k erg", "2k test"),
    "500m_row": ("500m row", "500m", "500 row"),
    "assault_bike": ("assault bike", "assault", "air bike", "echo bike", "assualt", "assult bike"),
    "ski_erg": ("ski erg", "ski", "skierg", "1k ski"),
    "metcon": ("metcon", "conditioning", "wod", "amrap", "emom", "for time"),
    "stretch": ("stretch", "stretching", "mobility", "foam roll", "yoga"),
    "warmup": ("warmup", "warm up", "warm-up", "activation"),
    "rest": ("rest", "rest day", "off day", "recovery day"),
}

COMMON_EXERCISES: tuple[str, ...] = (
    "Squat", "Deadlift", "Bench Press", "Run", "Row",
    "Overhead Press", "Pull Up", "Front Squat", "Clean", "Bike",
)

_ALIAS_INDEX: dict[str, str] = {
    alias: canonical
    for canonical, aliases in EXERCISE_ALIASES.items()
    for alias in aliases
}


@dataclass(frozen=True)
class NormalizationResult:
    normalized: str
    original: str
    confidence: float
    was_corrected: bool
    suggestions: list[str] = field(default_factory=list)


def get_top_exercises(count: int = 5) -> list[str]:
    return list(COMMON_EXERCISES[:count])


def _partial_match(text: str) -> str | None:
    """Canonical key of the longest alias contained in ``text`` (or containing it)."""

    if len(text) < MIN_PARTIAL_LENGTH:
        return None

    best: tuple[int, str] | None = None
    for alias, canonical in _ALIAS_INDEX.items():
        if len(alias) < MIN_PARTIAL_LENGTH:
            continue
        if alias in text or text in alias:
            if best is None or len(alias) > best[0]:
                best = (len(alias), canonical)
    return best[1] if best else None


def normalize_exercise(user_input: str) -> NormalizationResult:
    """
    Normalise an exercise name from user input.

    Tries, in order: exact alias (confidence 1.0), partial containment
    (0.85), then a fuzzy match scored by ``difflib`` similarity. Input that
    matches nothing is returned lower-cased with confidence 0 and a list of
    common exercises as suggestions.

    Example:
        >>> normalize_exercise("DL").normalized
        'deadlift'
    """
    text = (user_input or "").lower().strip()
    if not text:
        return NormalizationResult(normalized="", original=user_input or "", confidence=0.0, was_corrected=False)

    canonical = _ALIAS_INDEX.get(text)
    if canonical:
        return NormalizationResult(canonical, user_input, 1.0, was_corrected=canonical != text)

    canonical = _partial_match(text)
    if canonical:
        return NormalizationResult(canonical, user_input, PARTIAL_CONFIDENCE, was_corrected=True)

    close = get_close_matches(text, list(_ALIAS_INDEX), n=1, cutoff=FUZZY_CUTOFF)
    if close:
        alias = close[0]
        confidence = round(SequenceMatcher(None, text, alias).ratio(), 2)
        logger.debug("Fuzzy exercise match %r -> %r (%.2f)", text, alias, confidence)
        return NormalizationResult(_ALIAS_INDEX[alias], user_input, confidence, was_corrected=True)

    return NormalizationResult(
        normalized=text,
        original=user_input,
        confidence=0.0,
        was_corrected=False,
        suggestions=get_top_exercises(5),
    )
