"""API endpoints for the conversational coach."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

from pulse.config import get_settings
from pulse.models.schemas import CoachReply, CoachRequest, ContextPayload, IntentResponse
from pulse.services.ai_coach import AICoach, CoachUnavailableError
from pulse.services.context_router import build_dynamic_context, detect_intent, load_router_config
from pulse.services.query_analytics import summarize_queries, typo_patterns


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coach", tags=["coach"])


@router.post("/intent", response_model=IntentResponse)
async def classify_intent(request: CoachRequest) -> IntentResponse:
    """Classify the latest user message (with follow-up carry-over)."""

    config = load_router_config(get_settings().router_config_path)
    return IntentResponse(intent=detect_intent(request.messages, config))


@router.post("/context", response_model=ContextPayload)
async def preview_context(request: CoachRequest) -> ContextPayload:
    """Return the system prompt additions the coach would receive for this turn."""

    settings = get_settings()
    config = load_router_config(settings.router_config_path)
    try:
        intent = detect_intent(request.messages, config)
        return await build_dynamic_context(
            intent,
            request.current_phase,
            request.current_week,
            request.messages,
            request.user_day,
            profile=request.profile,
            plan_path=settings.plan_document_path,
            max_context_tokens=settings.max_context_tokens,
            config=config,
        )
    except Exception as e:
        logger.exception("Failed to build coach context")
        raise HTTPException(status_code=500, detail=f"Failed to build context: {str(e)}")


@router.post("/chat", response_model=CoachReply)
async def chat(request: Request, body: CoachRequest) -> CoachReply:
    """
    Answer the latest user message.

    Tool calls the model requests are returned in ``tool_calls`` for the
    client to execute; they are also recorded in query analytics.
    """
    try:
        coach = AICoach(analytics=request.app.state.query_analytics)
        return await coach.reply(
            body.messages,
            body.current_phase,
            body.current_week,
            user_day=body.user_day,
            profile=body.profile,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CoachUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Coach chat failed")
        raise HTTPException(status_code=500, detail=f"Coach chat failed: {str(e)}")


@router.get("/analytics")
async def get_query_analytics(request: Request) -> dict:
    """Summary of recent coach tool calls and common exercise-name typos."""

    entries = request.app.state.query_analytics.snapshot()
    summary = summarize_queries(entries)
    summary["typo_patterns"] = typo_patterns(entries)
    return summary
