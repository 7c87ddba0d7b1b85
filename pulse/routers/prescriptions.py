"""API endpoints for benchmark estimation and workout prescriptions."""
from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from pulse.models.schemas import (
    AthleteProfile,
    EstimationResult,
    PaceRequest,
    PaceResponse,
    TemplateRequest,
    TemplateResponse,
    WorkingSetRequest,
    WorkingSetResult,
)
from pulse.services.checkpoints import get_checkpoint, get_next_checkpoint_week, phase_for_week
from pulse.services.conversions import format_pace_per_unit
from pulse.services.max_estimation import calculate_working_set, estimate_missing_maxes
from pulse.services.pace_zones import (
    calculate_2k_row_derived_paces,
    calculate_400m_pace_from_mile,
    calculate_5k_derived_paces,
    parse_workout_template,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/prescriptions", tags=["prescriptions"])

_PACE_UNITS = {
    "zone2_pace_per_mile": "mile",
    "tempo_pace_per_mile": "mile",
    "aerobic_interval_500m": "500m",
    "anaerobic_sprint_250m": "250m",
    "interval_400m": "400m",
}


@router.post("/estimate", response_model=EstimationResult)
async def estimate_profile(profile: AthleteProfile) -> EstimationResult:
    """Fill every missing benchmark and report where each value came from."""

    try:
        return estimate_missing_maxes(profile)
    except Exception as e:
        logger.exception("Failed to estimate benchmarks")
        raise HTTPException(status_code=500, detail=f"Failed to estimate benchmarks: {str(e)}")


@router.post("/working-set", response_model=WorkingSetResult)
async def working_set(request: WorkingSetRequest) -> WorkingSetResult:
    """
    Prescribe a working weight.

    Unknown exercise names are not an error: the result comes back with
    ``needs_calibration`` set and a weight of 0.
    """
    try:
        result = calculate_working_set(request.exercise_name, request.percent_of_1rm, request.profile)
    except Exception as e:
        logger.exception("Failed to calculate working set for %s", request.exercise_name)
        raise HTTPException(status_code=500, detail=f"Failed to calculate working set: {str(e)}")

    logger.info(
        "Working set %s @ %.0f%% -> %d lbs (estimate=%s)",
        request.exercise_name,
        request.percent_of_1rm * 100,
        result.weight,
        result.is_estimate,
    )
    return result


@router.post("/paces", response_model=PaceResponse)
async def derived_paces(request: PaceRequest) -> PaceResponse:
    """Derive training paces from whichever time trials were supplied."""

    paces: dict[str, int] = {}
    if request.k5_time_sec:
        paces.update(calculate_5k_derived_paces(request.k5_time_sec))
    if request.row_2k_sec:
        paces.update(calculate_2k_row_derived_paces(request.row_2k_sec))
    if request.mile_time_sec:
        paces["interval_400m"] = calculate_400m_pace_from_mile(request.mile_time_sec)

    if not paces:
        raise HTTPException(
            status_code=400,
            detail="Provide at least one of k5_time_sec, row_2k_sec or mile_time_sec",
        )

    formatted = {key: format_pace_per_unit(value, _PACE_UNITS[key]) for key, value in paces.items()}
    return PaceResponse(**paces, formatted=formatted)


@router.post("/template", response_model=TemplateResponse)
async def fill_template(request: TemplateRequest) -> TemplateResponse:
    """Substitute ``{{token}}`` placeholders with the athlete's targets."""

    return TemplateResponse(text=parse_workout_template(request.text, request.profile))


@router.get("/checkpoints/{week}")
async def get_checkpoint_week(week: int) -> dict:
    """
    Describe the benchmark tests scheduled for a checkpoint week.

    Args:
        week: Absolute program week

    Returns:
        dict: Checkpoint details plus the phase and next checkpoint week
    """
    if week < 1:
        raise HTTPException(status_code=400, detail="Week must be at least 1")

    checkpoint = get_checkpoint(week)
    if checkpoint is None:
        raise HTTPException(
            status_code=404,
            detail=f"Week {week} is not a checkpoint week",
        )

    payload = asdict(checkpoint)
    payload["phase"] = phase_for_week(week)
    payload["next_checkpoint_week"] = get_next_checkpoint_week(week)
    return payload
