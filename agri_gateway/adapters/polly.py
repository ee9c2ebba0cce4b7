"""
TTS Adapter — Amazon Polly
==========================
Kajal is a neural Indian voice that reads Hindi, English and mixed
Hinglish text fluently, which matches how farmers phrase their questions.
The voice is fixed by configuration and never chosen per call.

Polly returns MP3 as a streaming body that clients can play directly.
"""

import asyncio
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from agri_gateway.adapters.base import SpeechSynthesizer
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import SynthesisError

logger = get_logger(__name__)


class PollySynthesizer(SpeechSynthesizer):
    content_type = "audio/mpeg"
    extension = ".mp3"

    def __init__(self, client: Optional[Any] = None) -> None:
        settings = get_settings()
        self._client = client or boto3.client(
            "polly",
            region_name=settings.polly_region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )
        self._voice_id = settings.polly_voice_id
        self._engine = settings.polly_engine

    async def synthesize(self, text: str) -> bytes:
        logger.debug("Sending text to Polly", extra={"chars": len(text), "voice": self._voice_id})
        try:
            audio_bytes = await asyncio.to_thread(self._synthesize_sync, text)
        except (BotoCoreError, ClientError) as exc:
            raise SynthesisError(f"Failed to synthesize speech: {exc}", cause=exc) from exc

        if not audio_bytes:
            raise SynthesisError("Polly returned an empty audio stream")

        logger.debug("Polly audio received", extra={"bytes": len(audio_bytes)})
        return audio_bytes

    def _synthesize_sync(self, text: str) -> bytes:
        response = self._client.synthesize_speech(
            Text=text,
            OutputFormat="mp3",
            VoiceId=self._voice_id,
            Engine=self._engine,
        )
        stream = response["AudioStream"]
        try:
            return stream.read()
        finally:
            stream.close()
