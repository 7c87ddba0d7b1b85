"""Unit tests for the AI coach with a stubbed Anthropic client."""
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from pulse.config import RESOURCES_DIR
from pulse.models.schemas import AthleteProfile, ConversationMessage, IntentType
from pulse.services.ai_coach import COACH_PERSONA, AICoach, CoachUnavailableError
from pulse.services.query_analytics import QueryAnalytics

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture()
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Patch settings and Anthropic; return the kwargs of the last create() call."""

    class DummySettings:
        anthropic_api_key = "test-key"
        anthropic_model = "claude-sonnet-4-5-20250929"
        coach_max_tokens = 512
        max_context_tokens = 2000
        history_max_tokens = 2000
        plan_document_path = FIXTURES_DIR / "master_plan.md"
        router_config_path = RESOURCES_DIR / "context_router.yaml"

    monkeypatch.setattr("pulse.services.ai_coach.get_settings", lambda: DummySettings())

    calls: dict[str, Any] = {}

    class DummyMessages:
        def create(self, **kwargs):
            calls.update(kwargs)
            return SimpleNamespace(
                content=[
                    SimpleNamespace(type="text", text="Let me pull your squat numbers."),
                    SimpleNamespace(
                        type="tool_use",
                        id="toolu_01",
                        name="getExercisePR",
                        input={"exercise": "squirt"},
                    ),
                ],
                usage=SimpleNamespace(input_tokens=1000, output_tokens=100),
            )

    class DummyAnthropic:
        def __init__(self, api_key: str):
            self.messages = DummyMessages()

    monkeypatch.setattr("pulse.services.ai_coach.Anthropic", DummyAnthropic)
    return calls


def _messages(*pairs: tuple[str, str]) -> list[ConversationMessage]:
    return [ConversationMessage(role=role, content=text) for role, text in pairs]


@pytest.mark.asyncio
async def test_reply_builds_prompt_and_returns_tool_calls(captured):
    analytics = QueryAnalytics()
    coach = AICoach(analytics=analytics)

    reply = await coach.reply(
        _messages(("user", "What's my max squat? Show my progress")),
        current_phase=1,
        current_week=3,
        user_day="MONDAY",
        profile=AthleteProfile(max_hr=200),
    )

    assert reply.intent is IntentType.PROGRESS
    assert reply.text == "Let me pull your squat numbers."
    assert [call.name for call in reply.tool_calls] == ["getExercisePR"]
    assert reply.tool_calls[0].input == {"exercise": "squirt"}
    assert reply.token_estimate > 0
    assert reply.cost_usd == pytest.approx(0.0045)

    system = captured["system"]
    assert system.startswith(COACH_PERSONA)
    assert "### CORE ROUTINE - Heavy Lower (MONDAY, Week 3, Phase 1)" in system
    assert "Zone 2 (Aerobic): 146-164 bpm" in system

    assert captured["max_tokens"] == 512
    assert len(captured["tools"]) == 7
    assert captured["tools"][0]["input_schema"]["type"] == "object"
    assert captured["messages"] == [{"role": "user", "content": "What's my max squat? Show my progress"}]


@pytest.mark.asyncio
async def test_tool_calls_recorded_with_normalised_names(captured):
    analytics = QueryAnalytics()
    coach = AICoach(analytics=analytics)

    await coach.reply(_messages(("user", "Show my squat progress")), 1, 3, "MONDAY")

    [entry] = analytics.snapshot()
    assert entry.tool_name == "getExercisePR"
    assert entry.exercise_name == "squirt"
    assert entry.normalized_name == "squat"
    assert entry.was_corrected is True


@pytest.mark.asyncio
async def test_no_tools_sent_for_logistics(captured):
    coach = AICoach()

    await coach.reply(_messages(("user", "What's my workout today?")), 1, 3, "MONDAY")

    assert "tools" not in captured
    assert "HEART RATE ZONES" not in captured["system"]


@pytest.mark.asyncio
async def test_history_filtering(captured):
    coach = AICoach()
    messages = _messages(
        ("assistant", "Welcome back!"),
        ("system", "ignored"),
        ("user", "My knee hurts"),
        ("assistant", "Sorry to hear that."),
        ("user", "What else can I do?"),
    )

    reply = await coach.reply(messages, 1, 3, "MONDAY")

    assert reply.intent is IntentType.INJURY
    assert [m["role"] for m in captured["messages"]] == ["user", "assistant", "user"]


@pytest.mark.asyncio
async def test_api_failure_raises_coach_unavailable(captured, monkeypatch):
    coach = AICoach()

    def boom(**kwargs):
        raise RuntimeError("overloaded")

    monkeypatch.setattr(coach.client.messages, "create", boom)

    with pytest.raises(CoachUnavailableError):
        await coach.reply(_messages(("user", "Hello!")), 1, 3, "MONDAY")


@pytest.mark.asyncio
async def test_conversation_without_user_message(captured):
    coach = AICoach()

    with pytest.raises(ValueError):
        await coach.reply(_messages(("assistant", "Hi there")), 1, 3, "MONDAY")


@pytest.mark.asyncio
async def test_profile_personalises_system_prompt(captured):
    coach = AICoach()

    await coach.reply(
        _messages(("user", "What's my workout today?")),
        1,
        3,
        "MONDAY",
        profile=AthleteProfile(squat_max=300, k5_time_sec=1440),
    )

    assert "- Back Squat 5x5 @ 70% -> 210 lbs" in captured["system"]
    assert "{{" not in captured["system"]


@pytest.mark.asyncio
async def test_oldest_history_trimmed_to_budget(captured):
    coach = AICoach()
    coach.history_max_tokens = 1100
    messages = _messages(
        ("user", "A" * 2000),
        ("assistant", "B" * 2000),
        ("user", "C" * 2000),
        ("assistant", "D" * 2000),
        ("user", "Anything else?"),
    )

    await coach.reply(messages, 1, 3, "MONDAY")

    sent = captured["messages"]
    assert [m["role"] for m in sent] == ["user", "assistant", "user"]
    assert sent[0]["content"].startswith("C")
    assert sent[-1]["content"] == "Anything else?"


@pytest.mark.asyncio
async def test_latest_message_kept_when_over_budget(captured):
    coach = AICoach()
    coach.history_max_tokens = 100

    await coach.reply(_messages(("user", "Hi"), ("assistant", "Hello"), ("user", "x" * 2000)), 1, 3, "MONDAY")

    assert captured["messages"] == [{"role": "user", "content": "x" * 2000}]


@pytest.mark.asyncio
async def test_token_report_logged_at_debug(captured, caplog):
    caplog.set_level("DEBUG", logger="pulse.services.ai_coach")
    coach = AICoach()

    await coach.reply(_messages(("user", "Show my squat progress")), 1, 3, "MONDAY")

    assert "Coach prompt token report" in caplog.text
    assert "'tools': {'tokens':" in caplog.text
