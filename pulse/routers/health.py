"""Router exposing basic system endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from pulse.config import get_settings
from pulse.services.plan_document import load_plan_document


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/plan")
async def get_plan_status() -> dict:
    """
    Check that the master plan document can be read.

    Returns:
        dict: {"path": str, "phases": [int, ...], "days": {phase: [WEEKDAY, ...]}}
    """
    path = get_settings().plan_document_path
    try:
        document = await load_plan_document(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Plan document check failed for %s: %s", path, e)
        raise HTTPException(status_code=503, detail="Plan document unavailable")

    return {
        "path": str(path),
        "phases": sorted(document.phases),
        "days": {str(n): list(phase.order) for n, phase in sorted(document.phases.items())},
    }
