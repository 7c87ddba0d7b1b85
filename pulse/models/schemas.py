"""Pydantic models describing profiles, prescriptions and coach payloads."""
from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


STRENGTH_FIELDS: tuple[str, ...] = (
    "squat_max",
    "bench_max",
    "deadlift_max",
    "front_squat_max",
    "ohp_max",
    "clean_jerk_max",
    "snatch_max",
)

CARDIO_FIELDS: tuple[str, ...] = (
    "mile_time_sec",
    "k5_time_sec",
    "sprint_400m_sec",
    "row_2k_sec",
    "row_500m_sec",
    "ski_1k_sec",
    "bike_max_watts",
)


class Provenance(str, Enum):
    """Where a benchmark value came from."""

    DIRECT = "direct"
    ESTIMATED = "estimated"
    BASELINE = "baseline"


class LiftCategory(str, Enum):
    """Canonical lifts a prescribed exercise name can resolve to."""

    CLEAN_AND_JERK = "clean_and_jerk"
    CLEAN = "clean"
    SNATCH = "snatch"
    FRONT_SQUAT = "front_squat"
    SQUAT = "squat"
    OVERHEAD_PRESS = "overhead_press"
    BENCH = "bench"
    DEADLIFT = "deadlift"


class IntentType(str, Enum):
    """Conversational intent of the latest chat turn."""

    INJURY = "INJURY"
    PROGRESS = "PROGRESS"
    LOGISTICS = "LOGISTICS"
    GENERAL = "GENERAL"


class AthleteProfile(BaseModel):
    """Partial benchmark profile. Any field may be missing; zero counts as missing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Strength maxes (lbs)
    squat_max: float | None = None
    bench_max: float | None = None
    deadlift_max: float | None = None
    front_squat_max: float | None = None
    ohp_max: float | None = None
    clean_jerk_max: float | None = None
    snatch_max: float | None = None

    # Cardio / power benchmarks (seconds, bike in watts)
    mile_time_sec: float | None = None
    k5_time_sec: float | None = None
    sprint_400m_sec: float | None = None
    row_2k_sec: float | None = None
    row_500m_sec: float | None = None
    ski_1k_sec: float | None = None
    bike_max_watts: float | None = None

    max_hr: int | None = Field(default=None, description="Max heart rate in bpm")

    def has(self, field: str) -> bool:
        """Return True when ``field`` holds a usable (positive) value."""

        value = getattr(self, field, None)
        return value is not None and value > 0


class EstimationResult(AthleteProfile):
    """Profile with gaps filled, plus per-field provenance."""

    provenance: dict[str, Provenance] = Field(default_factory=dict)
    derived_from: dict[str, str] = Field(default_factory=dict)


class WorkingSetResult(BaseModel):
    """Prescribed load for one exercise at a percentage of its estimated max."""

    weight: int
    is_estimate: bool
    source: str | None = None
    needs_calibration: bool
    lift: LiftCategory | None = None


class ConversationMessage(BaseModel):
    """One chat message; content may be plain text or structured parts."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["user", "assistant", "system", "tool"]
    content: str | list[Any] | None = None
    parts: list[Any] | None = None


class ContextPayload(BaseModel):
    """Per-turn system prompt fragment assembled by the context router."""

    intent: IntentType
    system_prompt_additions: str = ""
    suggested_tools: list[str] = []
    token_estimate: int = 0


# Request / response bodies
class WorkingSetRequest(BaseModel):
    """Schema for a working-set prescription request."""

    exercise_name: str
    percent_of_1rm: float = Field(ge=0, le=1.5, description="Decimal, 0.80 = 80%")
    profile: AthleteProfile = Field(default_factory=AthleteProfile)


class PaceRequest(BaseModel):
    """Benchmarks used to derive training paces."""

    k5_time_sec: float | None = Field(default=None, gt=0)
    row_2k_sec: float | None = Field(default=None, gt=0)
    mile_time_sec: float | None = Field(default=None, gt=0)


class PaceResponse(BaseModel):
    """Derived paces in seconds plus display strings."""

    zone2_pace_per_mile: int | None = None
    tempo_pace_per_mile: int | None = None
    aerobic_interval_500m: int | None = None
    anaerobic_sprint_250m: int | None = None
    interval_400m: int | None = None
    formatted: dict[str, str] = {}


class TemplateRequest(BaseModel):
    """Workout text containing ``{{token}}`` placeholders."""

    text: str
    profile: AthleteProfile | None = None


class TemplateResponse(BaseModel):
    text: str


class CoachRequest(BaseModel):
    """Chat history plus the athlete's program position."""

    messages: list[ConversationMessage]
    current_phase: int = Field(ge=1, le=5)
    current_week: int = Field(ge=1, le=60)
    user_day: str | None = None
    profile: AthleteProfile | None = None


class IntentResponse(BaseModel):
    intent: IntentType


class ToolCall(BaseModel):
    """A data-retrieval tool the model asked the caller to run."""

    id: str | None = None
    name: str
    input: dict[str, Any] = {}


class CoachReply(BaseModel):
    """Schema for the coach chat response."""

    intent: IntentType
    text: str
    tool_calls: list[ToolCall] = []
    token_estimate: int = 0
    cost_usd: float = 0.0
