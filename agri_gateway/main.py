"""
Application entry point.
Wires together all components and registers routes.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import uvicorn

from agri_gateway.adapters import (
    build_ai_provider,
    build_storage,
    build_synthesizer,
    build_transcription_backend,
)
from agri_gateway.adapters.openweather import WeatherService
from agri_gateway.config import get_settings
from agri_gateway.core.logging import configure_logging, get_logger
from agri_gateway.gateway.routes import router
from agri_gateway.services.ai_gateway import AIGateway
from agri_gateway.services.speech_gateway import SpeechGateway
from agri_gateway.services.transcription import TranscriptionJobController

# ── Bootstrap logging before anything else ────────────────────────────────────
configure_logging()
logger = get_logger(__name__)

# ── Singletons (provider chosen once, here) ────────────────────────────────────
settings = get_settings()

storage = build_storage(settings)
transcription_backend = build_transcription_backend()
weather_service = WeatherService()
ai_gateway = AIGateway(provider=build_ai_provider(settings), weather=weather_service)
speech_gateway = SpeechGateway(
    transcription=TranscriptionJobController(backend=transcription_backend, storage=storage),
    synthesizer=build_synthesizer(),
    storage=storage,
    ai_gateway=ai_gateway,
)


# ── Application lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Agri gateway started",
        extra={
            "ai_provider": ai_gateway.provider_name,
            "storage": type(storage).__name__,
            "max_retries": settings.ai_max_retries,
            "transcribe_deadline_s": settings.transcribe_poll_interval_seconds * settings.transcribe_max_polls,
        },
    )
    yield
    await transcription_backend.aclose()
    await weather_service.aclose()
    logger.info("Agri gateway shut down")


# ── FastAPI app ────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Agri Advisory Gateway",
    description="Provider-agnostic agricultural advisory, soil vision and voice endpoints",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.ai_gateway = ai_gateway
app.state.speech_gateway = speech_gateway
app.state.weather_service = weather_service

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict in production
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

if not settings.s3_bucket_name:
    os.makedirs(settings.upload_path, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.upload_path), name="uploads")


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "ai_provider": ai_gateway.provider_name,
        "storage": type(storage).__name__,
    }


def run() -> None:
    uvicorn.run("agri_gateway.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
