"""Intent detection and token-budgeted context assembly for the AI coach.

Each chat turn is classified into one of four intents (INJURY, PROGRESS,
LOGISTICS, GENERAL) from the message history alone, then a system-prompt
fragment is assembled from the master plan document:

- a core routine block for today (always present, capped at its own budget)
- recently discussed exercise lines from the last assistant replies
- an intent-specific block, each intent with its own token budget

INJURY always wins when it appears in the current message; it is never
replaced by carry-over from earlier turns.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import yaml
from pydantic import BaseModel

from pulse.config import RESOURCES_DIR
from pulse.models.schemas import AthleteProfile, ContextPayload, ConversationMessage, IntentType
from pulse.services.checkpoints import is_testing_week
from pulse.services.max_estimation import calculate_working_set
from pulse.services.pace_zones import parse_workout_template
from pulse.services.plan_document import EXERCISE_LINE, PlanDay, PlanPhase, load_plan_document
from pulse.services.token_utils import (
    MAX_CONTEXT_TOKENS,
    estimate_tokens,
    log_token_usage,
    truncate_to_token_limit,
)


logger = logging.getLogger(__name__)

DEFAULT_PLAN_PATH = RESOURCES_DIR / "master_plan.md"
DEFAULT_ROUTER_CONFIG_PATH = RESOURCES_DIR / "context_router.yaml"

Message = ConversationMessage | Mapping[str, Any]
Profile = AthleteProfile | Mapping[str, Any]

PERCENT_TARGET = re.compile(r"@\s*(\d+(?:\.\d+)?)\s*%")
LINE_MARKER = re.compile(r"^(?:[-*]|\d+\.)\s+")
# Exercise name ends at the first set/rep count, "@" target or colon.
NAME_END = re.compile(r"\s+(?:\d|@)|:")
SHORT_KEYWORD_LENGTH = 3


@dataclass(frozen=True)
class RouterConfig:
    """Compiled keyword matchers, budgets and tool lists."""

    injury: tuple[re.Pattern[str], ...]
    progress: tuple[re.Pattern[str], ...]
    logistics: tuple[re.Pattern[str], ...]
    continuation: tuple[re.Pattern[str], ...]
    follow_up_max_chars: int
    recent_assistant_messages: int
    recent_max_lines: int
    core_routine_budget: int
    recent_exercises_budget: int
    intent_budgets: dict[IntentType, int]
    intent_tools: dict[IntentType, tuple[str, ...]]
    tool_descriptions: dict[str, str]


def _compile_keywords(words: Iterable[str], *, anywhere: bool = False) -> tuple[re.Pattern[str], ...]:
    """
    Compile keywords into matchers.

    Short keywords (three characters or fewer) start at a word boundary, so
    "ill" never matches "will". Otherwise ``anywhere`` keywords match as plain
    substrings ("ache" in "headache"); the rest start at a word boundary and
    short ones also accept a plural ending ("prs", "maxes", "logs").
    """
    patterns = []
    for word in words:
        raw = str(word).lower().strip()
        keyword = re.escape(raw)
        if len(raw) <= SHORT_KEYWORD_LENGTH:
            pattern = r"\b" + keyword if anywhere else r"\b" + keyword + r"(?:s|es)?\b"
        else:
            pattern = keyword if anywhere else r"\b" + keyword
        patterns.append(re.compile(pattern))
    return tuple(patterns)


@lru_cache(maxsize=4)
def load_router_config(path: Path | str = DEFAULT_ROUTER_CONFIG_PATH) -> RouterConfig:
    """Load and compile the router YAML config."""

    with Path(path).open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    keywords = raw["keywords"]
    budgets = raw["budgets"]
    recent = raw.get("recent_exercises", {})
    tools = raw.get("tools", {})

    return RouterConfig(
        injury=_compile_keywords(keywords["injury"], anywhere=True),
        progress=_compile_keywords(keywords["progress"]),
        logistics=_compile_keywords(keywords["logistics"]),
        continuation=_compile_keywords(keywords["continuation"]),
        follow_up_max_chars=int(raw.get("follow_up_max_chars", 20)),
        recent_assistant_messages=int(recent.get("assistant_messages", 2)),
        recent_max_lines=int(recent.get("max_lines", 5)),
        core_routine_budget=int(budgets["core_routine"]),
        recent_exercises_budget=int(budgets["recent_exercises"]),
        intent_budgets={IntentType(k): int(v) for k, v in budgets["intents"].items()},
        intent_tools={IntentType(k): tuple(v or ()) for k, v in tools.items()},
        tool_descriptions=dict(raw.get("tool_descriptions", {})),
    )


def _field(message: Any, name: str) -> Any:
    if isinstance(message, BaseModel):
        return getattr(message, name, None)
    if isinstance(message, Mapping):
        return message.get(name)
    return None


def extract_message_content(message: Message | None) -> str:
    """Return the plain text of a message whose content may be structured parts."""

    if message is None:
        return ""

    content = _field(message, "content")
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        texts = []
        for part in content:
            if isinstance(part, str):
                texts.append(part)
            elif isinstance(part, Mapping) and part.get("type") == "text" and isinstance(part.get("text"), str):
                texts.append(part["text"])
        return "\n".join(t for t in texts if t)

    parts = _field(message, "parts")
    if isinstance(parts, list):
        texts = []
        for part in parts:
            if not isinstance(part, Mapping):
                continue
            if part.get("type") == "text" and isinstance(part.get("text"), str):
                texts.append(part["text"])
            elif part.get("type") == "reasoning" and isinstance(part.get("reasoning"), str):
                texts.append(part["reasoning"])
        return "\n".join(t for t in texts if t)

    return ""


def _hits(text: str, patterns: Sequence[re.Pattern[str]]) -> int:
    return sum(1 for pattern in patterns if pattern.search(text))


def calculate_intent(content: Any, config: RouterConfig | None = None) -> IntentType:
    """
    Classify a single message by keyword scan.

    INJURY keywords win outright. Otherwise PROGRESS and LOGISTICS hits are
    counted; ties with at least one hit go to PROGRESS.
    """
    config = config or load_router_config()
    text = content if isinstance(content, str) else extract_message_content({"content": content})
    text = text.lower()
    if not text.strip():
        return IntentType.GENERAL

    if any(pattern.search(text) for pattern in config.injury):
        return IntentType.INJURY

    progress = _hits(text, config.progress)
    logistics = _hits(text, config.logistics)

    if progress > 0 and progress >= logistics:
        return IntentType.PROGRESS
    if logistics > 0 and logistics > progress:
        return IntentType.LOGISTICS
    return IntentType.GENERAL


def detect_intent(messages: Sequence[Message] | None, config: RouterConfig | None = None) -> IntentType:
    """
    Classify the latest user turn, carrying intent over for short follow-ups.

    A GENERAL message that contains a continuation word or is under the
    follow-up length takes the intent of the most recent earlier user message
    that was not GENERAL.
    """
    config = config or load_router_config()
    user_messages = [m for m in messages or () if _field(m, "role") == "user"]
    if not user_messages:
        return IntentType.GENERAL

    last_content = extract_message_content(user_messages[-1])
    current = calculate_intent(last_content, config)
    if current is not IntentType.GENERAL or len(user_messages) < 2:
        return current

    text = last_content.lower().strip()
    is_follow_up = _hits(text, config.continuation) > 0 or len(text) < config.follow_up_max_chars
    if not is_follow_up:
        return current

    for previous in reversed(user_messages[:-1]):
        previous_intent = calculate_intent(extract_message_content(previous), config)
        if previous_intent is not IntentType.GENERAL:
            logger.info("Carry-over intent %s for follow-up %r", previous_intent.value, text[:60])
            return previous_intent

    return current


def resolve_target_phase(current_phase: int, current_week: int) -> int:
    """Phase 5 re-enters phase 1 content except during testing weeks."""

    if current_phase == 5 and not is_testing_week(current_week):
        logger.info(
            "Phase 5 re-entry for week %d - using Phase 1 context", current_week
        )
        return 1
    return current_phase


def prescribe_plan_line(line: str, profile: Profile | None) -> str:
    """
    Personalise one plan line for the athlete.

    ``{{token}}`` placeholders are filled from the profile, and a line with an
    ``@ N%`` target gets the working weight appended. Lines for unrecognised
    exercises keep their percentage only. Without a profile the line is
    returned unchanged.

    Example:
        >>> prescribe_plan_line("- Back Squat 5x5 @ 70%", {"squat_max": 300})
        '- Back Squat 5x5 @ 70% -> 210 lbs'
    """
    if profile is None:
        return line

    text = parse_workout_template(line, profile)
    target = PERCENT_TARGET.search(text)
    if target is None:
        return text

    name = NAME_END.split(LINE_MARKER.sub("", text, count=1), maxsplit=1)[0].strip()
    result = calculate_working_set(name, float(target.group(1)) / 100, profile)
    if result.needs_calibration or result.weight <= 0:
        return text
    return f"{text} -> {result.weight} lbs" + (" (Est)" if result.is_estimate else "")


def _prescribe(lines: Iterable[str], profile: Profile | None) -> list[str]:
    return [prescribe_plan_line(line, profile) for line in lines]


def _core_routine(day: PlanDay | None, today: str, phase: int, week: int, profile: Profile | None) -> str:
    if day is None:
        return f"### STATUS (Week {week}, Phase {phase})\nRest or recovery focused day."

    body = "\n".join(_prescribe(day.exercises, profile)) or "No exercises listed."
    return f"### CORE ROUTINE - {day.title} ({today}, Week {week}, Phase {phase})\n{body}"


def _recent_exercises(messages: Sequence[Message], config: RouterConfig) -> str:
    replies = [
        extract_message_content(m) for m in messages if _field(m, "role") == "assistant"
    ][-config.recent_assistant_messages:]

    lines = [
        line.strip()
        for reply in replies
        for line in reply.splitlines()
        if EXERCISE_LINE.match(line.strip())
    ][-config.recent_max_lines:]

    if not lines:
        return ""
    block = "### RECENTLY DISCUSSED EXERCISES\n" + "\n".join(lines)
    return truncate_to_token_limit(block, config.recent_exercises_budget)


def _fit_block(head: str, content: str, tail: str, budget: int) -> str:
    """Join head/content/tail, truncating only ``content`` so the block fits ``budget``."""

    # Each join adds at most one character after whitespace collapsing.
    remaining = budget - estimate_tokens(head) - estimate_tokens(tail) - 1
    fitted = truncate_to_token_limit(content, remaining) if content and remaining > 0 else ""
    return "\n\n".join(part for part in (head, fitted, tail) if part)


def _intent_block(
    intent: IntentType,
    phase: PlanPhase | None,
    day: PlanDay | None,
    current_phase: int,
    current_week: int,
    config: RouterConfig,
    profile: Profile | None,
) -> str:
    budget = config.intent_budgets[intent]
    position = f"Week {current_week}, Phase {current_phase}"

    if intent is IntentType.INJURY:
        head = (
            "*** URGENT: USER REPORTED POTENTIAL INJURY OR MODIFICATION REQUEST ***\n"
            f"Current {position}\n"
            "Phase exercises available for substitutions:"
        )
        tail = (
            "INSTRUCTION:\n"
            "- Prioritize pain management and longevity.\n"
            "- Suggest regressions or distinct alternatives from the phase exercises.\n"
            "- Do not push through sharp pain.\n"
            "- Ask clarifying questions about the pain location and intensity."
        )
        outline = phase.outline(lambda line: prescribe_plan_line(line, profile)) if phase else ""
        return _fit_block(head, outline, tail, budget)

    if intent is IntentType.PROGRESS:
        tool_lines = [
            f"- {name}: {config.tool_descriptions.get(name, '')}".rstrip(": ")
            for name in config.intent_tools.get(intent, ())
        ]
        head = f"*** PROGRESS & ANALYTICS - {position} ***\nAvailable Tools:\n" + "\n".join(tool_lines)
        tail = (
            "INSTRUCTION:\n"
            "- Use the appropriate tool above to get actual data before answering.\n"
            "- Analyze trends in the user's logs.\n"
            "- Compare against prescribed targets.\n"
            "- Handle exercise-name typos gracefully."
        )
        return _fit_block(head, phase.summary() if phase else "", tail, budget)

    if intent is IntentType.LOGISTICS:
        if day is not None and day.exercises:
            head = f"*** TODAY'S WORKOUT - {position} ***"
            tail = (
                "INSTRUCTION:\n"
                "- Explain the workout details above. Be precise with the calculated weights.\n"
                "- Provide warmup tips if asked.\n"
                "- Clarify RPE/percentages if asked."
            )
            return _fit_block(head, "\n".join(_prescribe(day.exercises, profile)), tail, budget)

        head = (
            f"*** {position} ***\n"
            "No specific routine found for today. This is likely a rest or recovery day."
        )
        tail = (
            "INSTRUCTION:\n"
            "- Confirm if today is a scheduled rest day.\n"
            "- Suggest recovery activities if appropriate."
        )
        return _fit_block(head, "", tail, budget)

    head = f"*** CURRENT PHASE OVERVIEW - {position} ***"
    tail = (
        "INSTRUCTION:\n"
        "- Answer general questions about the training program.\n"
        "- Use tools if the user asks about their data."
    )
    summary = phase.summary() if phase else f"Current Phase: {current_phase}"
    return _fit_block(head, summary, tail, budget)


async def build_dynamic_context(
    intent: IntentType | str,
    current_phase: int,
    current_week: int,
    messages: Sequence[Message] | None = None,
    user_day: str | None = None,
    *,
    profile: Profile | None = None,
    plan_path: Path | str | None = None,
    max_context_tokens: int = MAX_CONTEXT_TOKENS,
    config: RouterConfig | None = None,
) -> ContextPayload:
    """
    Assemble the per-turn system prompt additions for ``intent``.

    Args:
        intent: Intent detected for this turn
        current_phase: Program phase (1-5)
        current_week: Absolute program week
        messages: Chat history (only assistant replies are read here)
        user_day: Weekday override; defaults to today's weekday
        profile: Athlete benchmarks used to fill paces, HR zones and
            working weights into plan lines; None leaves lines as written
        plan_path: Master plan markdown; defaults to the bundled plan
        max_context_tokens: Ceiling used when logging token usage
        config: Router config; defaults to the bundled YAML

    Returns:
        ContextPayload. If the plan document cannot be read, an empty
        GENERAL payload is returned instead of raising.
    """
    config = config or load_router_config()
    intent = IntentType(intent)
    messages = messages or ()

    try:
        document = await load_plan_document(plan_path or DEFAULT_PLAN_PATH)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Plan document unavailable - using minimal context: %s", exc, exc_info=True)
        return ContextPayload(intent=IntentType.GENERAL)

    today = (user_day or datetime.now().strftime("%A")).strip().upper()
    target_phase = resolve_target_phase(current_phase, current_week)
    phase = document.phase(target_phase)
    day = phase.day(today) if phase else None
    if phase is None:
        logger.warning("Plan document has no PHASE %d section", target_phase)

    core = truncate_to_token_limit(
        _core_routine(day, today, current_phase, current_week, profile),
        config.core_routine_budget,
    )
    recent = _recent_exercises(messages, config)
    block = _intent_block(intent, phase, day, current_phase, current_week, config, profile)

    additions = "\n\n".join(part for part in (core, recent, block) if part).strip()
    token_estimate = estimate_tokens(additions)
    log_token_usage(f"context_{intent.value}", token_estimate, max_context_tokens)

    return ContextPayload(
        intent=intent,
        system_prompt_additions=additions,
        suggested_tools=list(config.intent_tools.get(intent, ())),
        token_estimate=token_estimate,
    )
