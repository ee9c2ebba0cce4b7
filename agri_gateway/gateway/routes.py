"""
HTTP Gateway Routes
===================
Thin FastAPI edge over the AI and Speech gateways. NO provider logic lives
here. This layer only:
  1. Binds and sanity-checks request input.
  2. Delegates to AIGateway / SpeechGateway (taken from app.state).
  3. Maps typed core errors to user-facing messages and status codes.

GET /api/weather is the one route with no error mapping: WeatherService
always answers, falling back to "Weather data unavailable".

Error mapping
-------------
  EmptyTranscriptError → 422  "Could not understand the audio. Please try again."
  JobTimedOutError     → 504
  other GatewayError   → 502
  bad input            → 400
"""

import os
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from agri_gateway.adapters.openweather import WeatherService
from agri_gateway.core.logging import get_logger, new_request_id
from agri_gateway.errors import EmptyTranscriptError, GatewayError, JobTimedOutError
from agri_gateway.models import FarmerContext
from agri_gateway.services.ai_gateway import AIGateway
from agri_gateway.services.speech_gateway import SpeechGateway

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

DEFAULT_AUDIO_EXTENSION = ".wav"


# ── Request / response bodies ──────────────────────────────────────────────────

class FarmerContextBody(BaseModel):
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    soil_type: str = Field(default="Unknown", alias="soilType")

    model_config = {"populate_by_name": True}

    def to_context(self) -> FarmerContext:
        return FarmerContext(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            soil_type=self.soil_type,
        )


class AdvisoryBody(BaseModel):
    message: str
    context: Optional[FarmerContextBody] = None


class ChatBody(BaseModel):
    message: str


class TTSBody(BaseModel):
    text: str


# ── Dependencies ───────────────────────────────────────────────────────────────

def _ai(request: Request) -> AIGateway:
    return request.app.state.ai_gateway


def _speech(request: Request) -> SpeechGateway:
    return request.app.state.speech_gateway


def _weather(request: Request) -> WeatherService:
    return request.app.state.weather_service


def _require_text(value: str, field_name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field_name} cannot be empty")
    return value


async def _read_upload(upload: UploadFile, field_name: str) -> bytes:
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"'{field_name}' file is empty")
    return data


def _audio_extension(upload: UploadFile) -> str:
    ext = os.path.splitext(upload.filename or "")[1].lower()
    return ext or DEFAULT_AUDIO_EXTENSION


def _image_mime(upload: UploadFile) -> str:
    mime = upload.content_type or ""
    if not mime.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file must be an image")
    return mime


# ── Error mapping ──────────────────────────────────────────────────────────────

def gateway_error_response(exc: GatewayError, user_message: str) -> JSONResponse:
    if isinstance(exc, EmptyTranscriptError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
        user_message = "Could not understand the audio. Please try again."
    elif isinstance(exc, JobTimedOutError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    logger.error(
        "Gateway error",
        extra={"kind": type(exc).__name__, "error": str(exc), "attempts": exc.attempts, "status": code},
    )
    return JSONResponse(status_code=code, content={"error": user_message})


# ── Advisory routes ────────────────────────────────────────────────────────────

@router.post("/soil/analyze")
async def analyze_soil(request: Request, image: UploadFile = File(...)):
    new_request_id()
    mime = _image_mime(image)
    data = await _read_upload(image, "image")
    try:
        label = await _ai(request).analyze_image(data, mime)
    except GatewayError as exc:
        return gateway_error_response(exc, "AI soil analysis is temporarily unavailable. Please try again later.")
    return {"soilType": label}


@router.post("/advisory")
async def advisory(request: Request, body: AdvisoryBody):
    new_request_id()
    question = _require_text(body.message, "message")
    context = body.context.to_context() if body.context else None
    try:
        reply = await _ai(request).advise(question, context)
    except GatewayError as exc:
        return gateway_error_response(exc, "AI service is temporarily unavailable. Please try again later.")
    return {"reply": reply}


@router.post("/advisory/image")
async def advisory_with_image(
    request: Request,
    message: str = Form(...),
    image: UploadFile = File(...),
):
    new_request_id()
    question = _require_text(message, "message")
    mime = _image_mime(image)
    data = await _read_upload(image, "image")
    try:
        reply = await _ai(request).advise(question, image=data, mime_type=mime)
    except GatewayError as exc:
        return gateway_error_response(exc, "AI service is temporarily unavailable. Please try again later.")
    return {"reply": reply}


@router.post("/chat")
async def farming_chat(request: Request, body: ChatBody):
    new_request_id()
    message = _require_text(body.message, "message")
    try:
        reply = await _ai(request).chat(message)
    except GatewayError as exc:
        return gateway_error_response(exc, "AI service is temporarily unavailable. Please try again later.")
    return {"reply": reply}


@router.get("/weather")
async def current_weather(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    new_request_id()
    return {"weather": await _weather(request).current_summary(lat, lon)}


# ── Voice routes ───────────────────────────────────────────────────────────────

@router.post("/voice/tts")
async def text_to_speech(request: Request, body: TTSBody):
    new_request_id()
    text = _require_text(body.text, "text")
    try:
        audio_url = await _speech(request).text_to_speech(text)
    except GatewayError as exc:
        return gateway_error_response(exc, "Text-to-Speech service is temporarily unavailable.")
    return {"audioUrl": audio_url}


@router.post("/voice/stt")
async def speech_to_text(request: Request, audio: UploadFile = File(...)):
    new_request_id()
    data = await _read_upload(audio, "audio")
    ext = _audio_extension(audio)
    logger.info("STT request", extra={"audio_filename": audio.filename, "bytes": len(data), "ext": ext})
    try:
        text = await _speech(request).speech_to_text(data, ext)
    except GatewayError as exc:
        return gateway_error_response(exc, "Speech-to-Text service failed. Please try again.")
    return {"text": text}


@router.post("/voice/chat")
async def voice_chat(request: Request, audio: UploadFile = File(...)):
    request_id = new_request_id()
    data = await _read_upload(audio, "audio")
    ext = _audio_extension(audio)
    try:
        result = await _speech(request).voice_chat(data, ext, request_id=request_id)
    except GatewayError as exc:
        return gateway_error_response(exc, "Could not complete the voice conversation. Please try again.")

    payload = {
        "userText": result.transcript,
        "reply": result.reply,
        "audioUrl": result.audio_url,
    }
    if result.is_partial:
        payload["error"] = result.error
    return payload
