from contextlib import asynccontextmanager
import os
import psutil
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from ai_fallback import AIFallback, get_ai
from essentials_routes import router as essentials_router
from gemini_client import gemini
from groq_client import groq
from study_routes import router as study_router
from survival_plan_routes import router as survival_plan_router

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Gemini handles are created once here and shared by all requests
    gemini.initialize()
    if not groq.is_configured():
        logger.warning("GROQ_API_KEY environment variable not set.")
    yield


# Initialize FastAPI app
app = FastAPI(title="Study Companion AI Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(essentials_router)
app.include_router(survival_plan_router)
app.include_router(study_router)


# --- Utility function to get memory usage (retained for health check) ---
def get_memory_usage():
    """Get current memory usage"""
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024  # in MB


@app.get("/health")
async def health_check(ai: AIFallback = Depends(get_ai)):
    """Health check endpoint"""
    memory_usage = get_memory_usage()
    return {
        "status": "healthy",
        "memory_usage_mb": f"{memory_usage:.2f}",
        "primary_available": ai.primary_available(),
    }


@app.get("/")
async def root():
    return {"message": "Study Companion AI Backend is running. Visit /docs for API documentation."}


@app.get("/v1/models")
async def get_available_models():
    """
    Returns the primary model and the fallback used when it fails.
    """
    return {
        "models": [
            {"id": config.GEMINI_MODEL, "role": "primary", "description": "Text generation and image OCR."},
            {"id": config.GROQ_MODEL, "role": "fallback", "description": "Text generation when the primary model fails."},
        ]
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
