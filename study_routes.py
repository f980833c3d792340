import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import ai_service
import config
from ai_fallback import AIFallback, get_ai
from errors import GenerationFailed
from file_extraction import IMAGE_MIME_TYPES, TOO_LARGE_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Pydantic Models ---
class RevisionPlanRequest(BaseModel):
    syllabusText: str = ""
    preferences: Dict[str, Any] = {}


class DoubtRequest(BaseModel):
    question: str = ""
    context: str = ""


class StructuredExtractionRequest(BaseModel):
    text: str = ""
    extractionPrompt: str = ""


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


def _generation_failed(e: GenerationFailed, message: str) -> JSONResponse:
    logger.error(f"{message}: {e}")
    return JSONResponse(status_code=500, content={"error": message})


@router.post("/revisionplan")
async def revision_plan(request: RevisionPlanRequest, ai: AIFallback = Depends(get_ai)):
    if not request.syllabusText.strip():
        return _bad_request("No syllabus text provided")
    try:
        result = await ai_service.generate_revision_plan(request.syllabusText, request.preferences, ai=ai)
    except GenerationFailed as e:
        return _generation_failed(e, "Failed to generate revision plan")
    return {"success": True, "plan": result.payload}


@router.post("/doubts/solve")
async def solve_doubt(request: DoubtRequest, ai: AIFallback = Depends(get_ai)):
    if not request.question.strip():
        return _bad_request("No question provided")
    try:
        answer = await ai_service.doubt_solver(request.question.strip(), request.context, ai=ai)
    except GenerationFailed as e:
        return _generation_failed(e, "Failed to solve doubt")
    return {"answer": answer.strip()}


@router.post("/extract-structured")
async def extract_structured(request: StructuredExtractionRequest, ai: AIFallback = Depends(get_ai)):
    if not request.text.strip() or not request.extractionPrompt.strip():
        return _bad_request("Both text and extractionPrompt are required")
    try:
        result = await ai_service.extract_structured_data(request.text, request.extractionPrompt, ai=ai)
    except GenerationFailed as e:
        return _generation_failed(e, "Failed to extract structured data")
    return {"success": True, "data": result.payload}


@router.post("/vision/extract-text")
async def vision_extract_text(
    file: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    ai: AIFallback = Depends(get_ai),
):
    if file is None:
        return _bad_request("No file uploaded")
    if file.content_type not in IMAGE_MIME_TYPES:
        return _bad_request("Only JPG and PNG images are supported")

    image_bytes = await file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(image_bytes) > config.MAX_UPLOAD_BYTES:
        return _bad_request(TOO_LARGE_MESSAGE)
    try:
        text = await ai_service.extract_text_from_image(
            image_bytes, file.content_type, prompt or ai_service.DEFAULT_OCR_PROMPT, ai=ai
        )
    except GenerationFailed as e:
        return _generation_failed(e, "Failed to extract text from image")
    return {"text": text}
