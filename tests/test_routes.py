"""
HTTP edge tests.

A bare FastAPI app with the router mounted and AsyncMock gateways on
app.state; no provider is constructed.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agri_gateway.errors import (
    EmptyTranscriptError,
    JobFailedError,
    JobTimedOutError,
    SynthesisError,
    TransportError,
)
from agri_gateway.gateway.routes import router
from agri_gateway.models import WEATHER_UNAVAILABLE, VoiceChatResult
from agri_gateway.services.speech_gateway import AUDIO_UNAVAILABLE_MESSAGE

JPEG = ("leaf.jpg", b"\xff\xd8\xffimg", "image/jpeg")
WAV = ("question.wav", b"RIFFaudio", "audio/wav")


@pytest.fixture
def gateways():
    ai_gateway = AsyncMock()
    speech_gateway = AsyncMock()
    return ai_gateway, speech_gateway


@pytest.fixture
def weather_service():
    return AsyncMock()


@pytest.fixture
def client(gateways, weather_service):
    app = FastAPI()
    app.state.ai_gateway, app.state.speech_gateway = gateways
    app.state.weather_service = weather_service
    app.include_router(router)
    return TestClient(app)


# ── Advisory ───────────────────────────────────────────────────────────────────

def test_soil_analyze_returns_label(client, gateways):
    ai_gateway, _ = gateways
    ai_gateway.analyze_image.return_value = "Red Soil"

    response = client.post("/api/soil/analyze", files={"image": JPEG})

    assert response.status_code == 200
    assert response.json() == {"soilType": "Red Soil"}
    ai_gateway.analyze_image.assert_awaited_once_with(JPEG[1], "image/jpeg")


def test_soil_analyze_rejects_non_image(client):
    response = client.post("/api/soil/analyze", files={"image": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400


def test_soil_analyze_rejects_empty_file(client):
    response = client.post("/api/soil/analyze", files={"image": ("leaf.jpg", b"", "image/jpeg")})

    assert response.status_code == 400


def test_advisory_passes_context(client, gateways):
    ai_gateway, _ = gateways
    ai_gateway.advise.return_value = "Sow mustard in October."

    response = client.post(
        "/api/advisory",
        json={
            "message": "What should I sow?",
            "context": {"name": "Sita", "latitude": 26.85, "longitude": 80.95, "soilType": "Alluvial Soil"},
        },
    )

    assert response.status_code == 200
    assert response.json() == {"reply": "Sow mustard in October."}
    question, context = ai_gateway.advise.call_args.args
    assert question == "What should I sow?"
    assert context.soil_type == "Alluvial Soil"
    assert context.weather == WEATHER_UNAVAILABLE


def test_advisory_rejects_blank_message(client):
    response = client.post("/api/advisory", json={"message": "   "})

    assert response.status_code == 400


def test_advisory_image_forwards_image(client, gateways):
    ai_gateway, _ = gateways
    ai_gateway.advise.return_value = "Early blight."

    response = client.post("/api/advisory/image", data={"message": "What is this?"}, files={"image": JPEG})

    assert response.status_code == 200
    assert ai_gateway.advise.call_args.kwargs == {"image": JPEG[1], "mime_type": "image/jpeg"}


def test_chat_provider_failure_maps_to_502(client, gateways):
    ai_gateway, _ = gateways
    error = TransportError("throttled")
    error.attempts = 3
    ai_gateway.chat.side_effect = error

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 502
    assert "temporarily unavailable" in response.json()["error"]



def test_advisory_ignores_caller_weather(client, gateways):
    ai_gateway, _ = gateways
    ai_gateway.advise.return_value = "ok"

    client.post(
        "/api/advisory",
        json={"message": "Rain?", "context": {"latitude": 21.1, "longitude": 79.0, "weather": "Sunny"}},
    )

    _, context = ai_gateway.advise.call_args.args
    assert context.weather == WEATHER_UNAVAILABLE


def test_weather_returns_summary(client, weather_service):
    weather_service.current_summary.return_value = "Location: Nagpur | Condition: clear sky"

    response = client.get("/api/weather", params={"lat": 21.1458, "lon": 79.0882})

    assert response.status_code == 200
    assert response.json() == {"weather": "Location: Nagpur | Condition: clear sky"}
    weather_service.current_summary.assert_awaited_once_with(21.1458, 79.0882)


def test_weather_rejects_out_of_range_latitude(client, weather_service):
    response = client.get("/api/weather", params={"lat": 95, "lon": 79.0})

    assert response.status_code == 422
    weather_service.current_summary.assert_not_awaited()


# ── Voice ──────────────────────────────────────────────────────────────────────

def test_tts_returns_audio_url(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.text_to_speech.return_value = "/uploads/audio/a.mp3"

    response = client.post("/api/voice/tts", json={"text": "Namaste"})

    assert response.status_code == 200
    assert response.json() == {"audioUrl": "/uploads/audio/a.mp3"}


def test_tts_failure_maps_to_502(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.text_to_speech.side_effect = SynthesisError("voice down")

    response = client.post("/api/voice/tts", json={"text": "Namaste"})

    assert response.status_code == 502


def test_stt_passes_file_extension(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.speech_to_text.return_value = "kab barish hogi"

    response = client.post("/api/voice/stt", files={"audio": ("clip.OGG", b"OggS", "audio/ogg")})

    assert response.status_code == 200
    assert response.json() == {"text": "kab barish hogi"}
    speech_gateway.speech_to_text.assert_awaited_once_with(b"OggS", ".ogg")


def test_stt_without_extension_defaults_to_wav(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.speech_to_text.return_value = "hello"

    client.post("/api/voice/stt", files={"audio": ("blob", b"data", "application/octet-stream")})

    assert speech_gateway.speech_to_text.call_args.args[1] == ".wav"


@pytest.mark.parametrize(
    "error, expected_status",
    [
        (EmptyTranscriptError("silence"), 422),
        (JobTimedOutError("job-1", 30, 90), 504),
        (JobFailedError("codec error"), 502),
    ],
)
def test_stt_error_mapping(client, gateways, error, expected_status):
    _, speech_gateway = gateways
    speech_gateway.speech_to_text.side_effect = error

    response = client.post("/api/voice/stt", files={"audio": WAV})

    assert response.status_code == expected_status
    assert "error" in response.json()


def test_stt_empty_transcript_message(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.speech_to_text.side_effect = EmptyTranscriptError("silence")

    response = client.post("/api/voice/stt", files={"audio": WAV})

    assert response.json() == {"error": "Could not understand the audio. Please try again."}


def test_voice_chat_full_payload(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.voice_chat.return_value = VoiceChatResult(
        transcript="paani kab dein", reply="Subah jaldi.", audio_url="/uploads/audio/r.mp3"
    )

    response = client.post("/api/voice/chat", files={"audio": WAV})

    assert response.status_code == 200
    assert response.json() == {
        "userText": "paani kab dein",
        "reply": "Subah jaldi.",
        "audioUrl": "/uploads/audio/r.mp3",
    }


def test_voice_chat_partial_payload_includes_error(client, gateways):
    _, speech_gateway = gateways
    speech_gateway.voice_chat.return_value = VoiceChatResult(
        transcript="paani kab dein", reply="Subah jaldi.", error=AUDIO_UNAVAILABLE_MESSAGE
    )

    response = client.post("/api/voice/chat", files={"audio": WAV})

    body = response.json()
    assert response.status_code == 200
    assert body["audioUrl"] is None
    assert body["error"] == AUDIO_UNAVAILABLE_MESSAGE
    assert body["reply"] == "Subah jaldi."


def test_voice_chat_rejects_empty_audio(client):
    response = client.post("/api/voice/chat", files={"audio": ("empty.wav", b"", "audio/wav")})

    assert response.status_code == 400
