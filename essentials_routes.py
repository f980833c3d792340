import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

import ai_service
from ai_fallback import AIFallback, get_ai
from file_extraction import UploadRejected, read_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/essentials")


# Errors are reported in the body with HTTP 200; the front end checks `success`.
@router.post("/extract")
async def extract_essentials(file: Optional[UploadFile] = File(None), ai: AIFallback = Depends(get_ai)):
    if file is None:
        return {"success": False, "error": "No file uploaded"}

    try:
        upload = await read_upload(file)
    except UploadRejected as e:
        logger.warning(f"Rejected upload '{file.filename}': {e}")
        return {"success": False, "error": str(e)}

    logger.info(f"Processing file: {upload.name} ({upload.mime_type})")
    try:
        document_text = await ai_service.read_document_text(upload, ai=ai)
        result = await ai_service.extract_essentials_from_file(document_text, upload.name, ai=ai)
    except Exception as e:
        logger.error(f"Error processing file '{upload.name}': {e}")
        return {"success": False, "error": "Failed to extract essentials", "details": str(e)}

    return {
        "success": True,
        "essentials": result.payload,
        "raw": result.raw_text or None,
        "fileName": upload.name,
    }
