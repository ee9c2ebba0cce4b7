"""
Speech Gateway
==============
Voice façade over synthesis, transcription and the AI Gateway.

Operations
----------
- text_to_speech : one synthesis attempt, audio saved to storage, URL returned.
- speech_to_text : delegates to the TranscriptionJobController.
- voice_chat     : transcribe → advisory reply → synthesise the reply.

Synthesis is a single call with no retry; failures surface as SynthesisError.
In `voice_chat` a failure of the last stage is not fatal: the transcript and
reply are returned with `audio_url=None` and `error` set. Failures in the
first two stages propagate to the caller unchanged.
"""

import uuid
from typing import Optional

from agri_gateway.adapters.base import SpeechSynthesizer, StorageBackend
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import StorageError, SynthesisError
from agri_gateway.metrics.latency import StageTimings
from agri_gateway.models import SynthesisArtifact, VoiceChatResult
from agri_gateway.prompts import VOICE_CHAT_SYSTEM_PROMPT
from agri_gateway.services.ai_gateway import AIGateway
from agri_gateway.services.transcription import TranscriptionJobController

logger = get_logger(__name__)

AUDIO_SUBDIRECTORY = "audio"
AUDIO_UNAVAILABLE_MESSAGE = "Audio generation failed, but text reply is available."


class SpeechGateway:
    def __init__(
        self,
        transcription: TranscriptionJobController,
        synthesizer: SpeechSynthesizer,
        storage: StorageBackend,
        ai_gateway: AIGateway,
    ) -> None:
        self._transcription = transcription
        self._synthesizer = synthesizer
        self._storage = storage
        self._ai = ai_gateway

    async def text_to_speech(self, text: str) -> str:
        """Voice `text` with the configured neural voice and return the audio URL."""
        audio = await self._synthesizer.synthesize(text)
        artifact = SynthesisArtifact(
            audio_bytes=audio,
            content_type=self._synthesizer.content_type,
            extension=self._synthesizer.extension,
        )
        try:
            artifact.public_url = await self._storage.save(
                artifact.audio_bytes,
                artifact.content_type,
                artifact.extension,
                AUDIO_SUBDIRECTORY,
            )
        except StorageError as exc:
            raise SynthesisError(f"Failed to save synthesized audio: {exc}", cause=exc) from exc

        logger.info("Speech synthesized", extra={"chars": len(text), "audio_url": artifact.public_url})
        return artifact.public_url

    async def speech_to_text(self, audio: bytes, extension: str) -> str:
        return await self._transcription.transcribe(audio, extension)

    async def voice_chat(
        self,
        audio: bytes,
        extension: str,
        request_id: Optional[str] = None,
    ) -> VoiceChatResult:
        """
        Full voice-to-voice turn.

        Returns
        -------
        VoiceChatResult; `is_partial` is True when only the audio reply failed.

        Raises
        ------
        Any transcription or generation GatewayError.
        """
        timings = StageTimings(operation="voice_chat", request_id=request_id or str(uuid.uuid4())[:8])

        async with timings.stage("stt"):
            transcript = await self._transcription.transcribe(audio, extension)
        logger.info("Voice chat transcribed", extra={"request_id": timings.request_id, "text_len": len(transcript)})

        async with timings.stage("llm"):
            reply = await self._ai.generate_text(transcript, system_prompt=VOICE_CHAT_SYSTEM_PROMPT)
        logger.info("Voice chat reply generated", extra={"request_id": timings.request_id, "reply_len": len(reply)})

        audio_url: Optional[str] = None
        error: Optional[str] = None
        try:
            async with timings.stage("tts"):
                audio_url = await self.text_to_speech(reply)
        except SynthesisError as exc:
            error = AUDIO_UNAVAILABLE_MESSAGE
            logger.error(
                "Voice chat synthesis failed; returning text only",
                extra={"request_id": timings.request_id, "error": str(exc)},
            )

        timings.emit()
        return VoiceChatResult(
            transcript=transcript,
            reply=reply,
            audio_url=audio_url,
            error=error,
            latency_ms=dict(timings.elapsed_ms),
        )
