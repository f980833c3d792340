import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import ai_service
from ai_fallback import AIFallback, get_ai
from errors import GenerationFailed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/survivalplan")

REQUIRED_FIELDS = ("skills", "stressLevel", "timeAvailable", "examDates", "goals")


# Fields accept any JSON value so that a missing or odd one yields our own 400 body, never a 422.
class SurvivalPlanRequest(BaseModel):
    skills: Optional[Any] = None
    stressLevel: Optional[Any] = None
    timeAvailable: Optional[Any] = None
    examDates: Optional[Any] = None
    goals: Optional[Any] = None
    deadline: Optional[Any] = None

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]


def _missing_fields_response(request: Optional[SurvivalPlanRequest]) -> Optional[JSONResponse]:
    missing = list(REQUIRED_FIELDS) if request is None else request.missing_fields()
    if missing:
        logger.warning(f"Survival plan request missing fields: {missing}")
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})
    return None


@router.post("")
async def survival_plan(request: Optional[SurvivalPlanRequest] = Body(None), ai: AIFallback = Depends(get_ai)):
    error_response = _missing_fields_response(request)
    if error_response is not None:
        return error_response

    try:
        plan = await ai_service.generate_survival_plan_text(
            request.skills,
            request.stressLevel,
            request.timeAvailable,
            request.examDates,
            request.goals,
            ai=ai,
        )
    except GenerationFailed as e:
        logger.error(f"AI request failed: {e}")
        return JSONResponse(status_code=500, content={"error": "AI request failed"})

    return {"plan": plan}


@router.post("/structured")
async def structured_survival_plan(request: Optional[SurvivalPlanRequest] = Body(None), ai: AIFallback = Depends(get_ai)):
    error_response = _missing_fields_response(request)
    if error_response is not None:
        return error_response

    try:
        result = await ai_service.generate_survival_plan(
            request.skills,
            request.stressLevel,
            request.timeAvailable,
            request.examDates,
            request.goals,
            deadline=request.deadline,
            ai=ai,
        )
    except GenerationFailed as e:
        logger.error(f"AI request failed: {e}")
        return JSONResponse(status_code=500, content={"error": "AI request failed"})

    return {"success": True, "plan": result.payload}
