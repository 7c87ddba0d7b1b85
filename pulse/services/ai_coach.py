"""Claude-backed conversational coach."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from anthropic import Anthropic

from pulse.config import get_settings
from pulse.models.schemas import AthleteProfile, CoachReply, ConversationMessage, ToolCall
from pulse.services.context_router import (
    build_dynamic_context,
    detect_intent,
    extract_message_content,
    load_router_config,
)
from pulse.services.exercise_normalization import normalize_exercise
from pulse.services.hr_zones import calculate_hr_zones, format_hr_zones_for_prompt
from pulse.services.query_analytics import QueryAnalytics, QueryLogEntry
from pulse.services.token_utils import (
    calculate_cost,
    create_token_report,
    estimate_json_tokens,
    estimate_tokens,
    truncate_list_to_token_limit,
)


logger = logging.getLogger(__name__)

COACH_PERSONA = (
    "You are Pulse, a hybrid-athlete strength and conditioning coach. "
    "You follow a 52-week periodised program mixing barbell strength, "
    "Olympic lifting and running/erg conditioning. Be concise and specific, "
    "quote prescribed weights and paces exactly, and never invent workout "
    "history: request a tool when you need the athlete's data."
)

_DAYS_PARAM = {
    "type": "integer",
    "minimum": 1,
    "maximum": 30,
    "description": "Number of days to look back (default 7)",
}
_EXERCISE_PARAM = {"type": "string", "description": "Exercise name as the athlete wrote it"}

TOOL_INPUT_SCHEMAS: dict[str, dict[str, Any]] = {
    "getRecentLogs": {
        "type": "object",
        "properties": {"days": _DAYS_PARAM, "exercise": _EXERCISE_PARAM},
    },
    "getBiometrics": {"type": "object", "properties": {"days": _DAYS_PARAM}},
    "findLastLog": {
        "type": "object",
        "properties": {"exercise": _EXERCISE_PARAM},
        "required": ["exercise"],
    },
    "getExercisePR": {"type": "object", "properties": {"exercise": _EXERCISE_PARAM}},
    "getRecoveryMetrics": {"type": "object", "properties": {"days": _DAYS_PARAM}},
    "getComplianceReport": {"type": "object", "properties": {"days": _DAYS_PARAM}},
    "getTrendAnalysis": {
        "type": "object",
        "properties": {"exercise": _EXERCISE_PARAM, "days": _DAYS_PARAM},
        "required": ["exercise"],
    },
}


class CoachUnavailableError(RuntimeError):
    """Raised when the model request fails."""


class AICoach:
    """Routes a chat turn through the context router and asks Claude for a reply."""

    def __init__(self, analytics: QueryAnalytics | None = None) -> None:
        settings = get_settings()
        self.client = Anthropic(api_key=settings.anthropic_api_key)
        self.model = settings.anthropic_model
        self.max_tokens = settings.coach_max_tokens
        self.max_context_tokens = settings.max_context_tokens
        self.history_max_tokens = settings.history_max_tokens
        self.plan_path = settings.plan_document_path
        self.router_config = load_router_config(settings.router_config_path)
        self.analytics = analytics

    def _tool_definitions(self, names: Sequence[str]) -> list[dict[str, Any]]:
        return [
            {
                "name": name,
                "description": self.router_config.tool_descriptions.get(name, name),
                "input_schema": TOOL_INPUT_SCHEMAS.get(name, {"type": "object", "properties": {}}),
            }
            for name in names
        ]

    @staticmethod
    def _build_system_prompt(context: str, profile: AthleteProfile | None) -> str:
        sections = [COACH_PERSONA]
        if context:
            sections.append(context)
        if profile is not None and profile.max_hr:
            zones = calculate_hr_zones(max_hr=profile.max_hr)
            sections.append("### HEART RATE ZONES\n" + format_hr_zones_for_prompt(zones))
        return "\n\n".join(sections)

    @staticmethod
    def _api_messages(messages: Sequence[ConversationMessage]) -> list[dict[str, str]]:
        """User/assistant turns as plain text; leading assistant turns are dropped."""

        api_messages: list[dict[str, str]] = []
        for message in messages:
            if message.role not in ("user", "assistant"):
                continue
            text = extract_message_content(message).strip()
            if not text:
                continue
            if not api_messages and message.role != "user":
                continue
            api_messages.append({"role": message.role, "content": text})
        return api_messages

    def _trim_history(self, api_messages: list[dict[str, str]]) -> list[dict[str, str]]:
        """Drop the oldest turns beyond the history budget; the latest turn is always kept."""

        if not api_messages:
            return api_messages

        *earlier, latest = api_messages
        budget = max(self.history_max_tokens - estimate_tokens(latest["content"]), 0)
        kept = truncate_list_to_token_limit(reversed(earlier), budget, to_str=lambda m: m["content"])

        history = list(reversed(kept)) + [latest]
        while history and history[0]["role"] != "user":
            history.pop(0)
        if len(history) < len(api_messages):
            logger.info("Trimmed chat history from %d to %d messages", len(api_messages), len(history))
        return history

    def _record_tool_call(self, call: ToolCall) -> None:
        if self.analytics is None:
            return

        exercise = call.input.get("exercise") or call.input.get("exercise_name")
        normalized = normalize_exercise(exercise) if isinstance(exercise, str) and exercise else None
        days = call.input.get("days")
        self.analytics.record(
            QueryLogEntry(
                tool_name=call.name,
                exercise_name=exercise if normalized else None,
                normalized_name=normalized.normalized if normalized else None,
                was_corrected=normalized.was_corrected if normalized else False,
                days=days if isinstance(days, int) else None,
            )
        )

    async def reply(
        self,
        messages: Sequence[ConversationMessage],
        current_phase: int,
        current_week: int,
        user_day: str | None = None,
        profile: AthleteProfile | None = None,
    ) -> CoachReply:
        """
        Produce the coach's reply to the latest user message.

        Tool calls requested by the model are returned to the caller rather
        than executed here.

        Raises:
            CoachUnavailableError: If the Anthropic request fails
        """
        intent = detect_intent(messages, self.router_config)
        context = await build_dynamic_context(
            intent,
            current_phase,
            current_week,
            messages,
            user_day,
            profile=profile,
            plan_path=self.plan_path,
            max_context_tokens=self.max_context_tokens,
            config=self.router_config,
        )

        system_prompt = self._build_system_prompt(context.system_prompt_additions, profile)
        api_messages = self._trim_history(self._api_messages(messages))
        if not api_messages:
            raise ValueError("Conversation has no user message to answer")

        request_payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": api_messages,
        }
        tools = self._tool_definitions(context.suggested_tools)
        if tools:
            request_payload["tools"] = tools

        logger.info(
            "Coach request | intent=%s phase=%d week=%d context_tokens=%d tools=%d (%d tokens)",
            context.intent.value,
            current_phase,
            current_week,
            context.token_estimate,
            len(tools),
            estimate_json_tokens(tools),
        )
        if logger.isEnabledFor(logging.DEBUG):
            report = create_token_report(
                {"system": system_prompt, "messages": api_messages, "tools": tools}
            )
            logger.debug("Coach prompt token report: %s", report)

        try:
            response = await asyncio.to_thread(self.client.messages.create, **request_payload)
        except Exception as exc:
            logger.exception("Claude coach request failed")
            raise CoachUnavailableError("Coach is unavailable, try again shortly") from exc

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            block_type = getattr(block, "type", "text")
            if block_type == "tool_use":
                call = ToolCall(
                    id=getattr(block, "id", None),
                    name=block.name,
                    input=dict(getattr(block, "input", None) or {}),
                )
                tool_calls.append(call)
                self._record_tool_call(call)
            elif block_type == "text":
                texts.append(block.text)

        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "input_tokens", None) or estimate_tokens(system_prompt)
        completion_tokens = getattr(usage, "output_tokens", None) or 0

        return CoachReply(
            intent=context.intent,
            text="\n".join(texts).strip(),
            tool_calls=tool_calls,
            token_estimate=context.token_estimate,
            cost_usd=calculate_cost(self.model, prompt_tokens, completion_tokens),
        )
