"""
Transcription Job Controller
============================
Speech-to-text through a job-oriented provider.

Flow for one `transcribe` call
------------------------------
1. Infer the media format from the file extension (wav when unknown).
2. Stage the audio through the storage collaborator so the provider can read it.
3. Submit a job under an id from the injected `id_factory`, asking for
   automatic language identification over the configured locales only.
4. Poll every `poll_interval_seconds`, at most `max_polls` times. Each poll
   advances the TranscriptionJob state machine.
5. COMPLETED → download the transcript JSON and return its first transcript.
   FAILED → JobFailedError with the provider's reason.
   Deadline hit → the job is marked TIMED_OUT locally and JobTimedOutError is
   raised; nothing is cancelled provider-side.
6. Whatever the outcome, a submitted job gets one best-effort delete.
   Delete failures are logged and dropped.

The poll wait is `asyncio.sleep`, so cancelling the calling task stops the
loop between polls; cleanup still runs on the way out.
"""

import asyncio
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

from agri_gateway.adapters.base import StorageBackend, TranscriptionBackend
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger, job_context
from agri_gateway.errors import (
    DecodeError,
    EmptyTranscriptError,
    GatewayError,
    JobFailedError,
    JobTimedOutError,
)
from agri_gateway.models import JobStatus, MediaFormat, TranscriptionJob

logger = get_logger(__name__)

STAGING_SUBDIRECTORY = "stt-input"

# Suffix checks run in order; anything unmatched is treated as wav
_SUFFIX_FORMATS = (
    ("mp3", MediaFormat.MP3),
    ("mp4", MediaFormat.MP4),
    ("m4a", MediaFormat.MP4),
    ("ogg", MediaFormat.OGG),
    ("flac", MediaFormat.FLAC),
    ("webm", MediaFormat.WEBM),
)


def infer_media_format(extension: str) -> MediaFormat:
    ext = (extension or "").strip().lower()
    for suffix, media_format in _SUFFIX_FORMATS:
        if ext.endswith(suffix):
            return media_format
    return MediaFormat.WAV


def normalize_extension(extension: str, media_format: MediaFormat) -> str:
    ext = (extension or "").strip().lower()
    if not ext:
        return f".{media_format.value}"
    return ext if ext.startswith(".") else f".{ext}"


def extract_transcript_text(document: Dict[str, Any]) -> str:
    """Return `results.transcripts[0].transcript`, or "" when absent."""
    try:
        transcripts = document["results"]["transcripts"]
    except (KeyError, TypeError):
        return ""
    if not transcripts or not isinstance(transcripts[0], dict):
        return ""
    return (transcripts[0].get("transcript") or "").strip()


def default_job_id_factory(prefix: str) -> Callable[[], str]:
    def factory() -> str:
        return f"{prefix}-{time.time_ns()}-{uuid.uuid4().hex[:8]}"

    return factory


class TranscriptionJobController:
    def __init__(
        self,
        backend: TranscriptionBackend,
        storage: StorageBackend,
        id_factory: Optional[Callable[[], str]] = None,
        poll_interval_seconds: Optional[float] = None,
        max_polls: Optional[int] = None,
        language_options: Optional[List[str]] = None,
    ) -> None:
        settings = get_settings()
        self._backend = backend
        self._storage = storage
        self._id_factory = id_factory or default_job_id_factory(settings.transcribe_job_prefix)
        self._poll_interval = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.transcribe_poll_interval_seconds
        )
        self._max_polls = max_polls if max_polls is not None else settings.transcribe_max_polls
        self._language_options = list(language_options or settings.transcribe_language_options)

    @property
    def deadline_seconds(self) -> float:
        return self._poll_interval * self._max_polls

    async def transcribe(self, audio: bytes, extension: str) -> str:
        """
        Transcribe one audio clip.

        Raises
        ------
        JobFailedError, JobTimedOutError, EmptyTranscriptError, plus
        TransportError / DecodeError / StorageError from the collaborators.
        """
        media_format = infer_media_format(extension)
        media_uri = await self._storage.save(
            audio,
            media_format.content_type,
            normalize_extension(extension, media_format),
            STAGING_SUBDIRECTORY,
        )

        job = TranscriptionJob(
            job_id=self._id_factory(),
            media_uri=media_uri,
            media_format=media_format,
        )
        await self._backend.start_job(job, self._language_options)

        with job_context(job.job_id):
            logger.info(
                "Transcription job submitted",
                extra={
                    "media_format": media_format.value,
                    "audio_bytes": len(audio),
                    "languages": self._language_options,
                },
            )
            try:
                await self._poll_until_terminal(job)
                return await self._collect(job)
            finally:
                await self._cleanup(job)

    # ── Private helpers ────────────────────────────────────────────────────────

    async def _poll_until_terminal(self, job: TranscriptionJob) -> None:
        for _ in range(self._max_polls):
            await asyncio.sleep(self._poll_interval)
            snapshot = await self._backend.get_job(job.job_id)
            job.advance(snapshot)
            if job.is_terminal:
                logger.info(
                    "Transcription job reached terminal state",
                    extra={"job_id": job.job_id, "status": job.status.value, "polls": job.polls},
                )
                return
        job.mark_timed_out()

    async def _collect(self, job: TranscriptionJob) -> str:
        if job.status is JobStatus.FAILED:
            reason = job.failure_reason or "unknown"
            logger.error("Transcription job failed", extra={"job_id": job.job_id, "reason": reason})
            raise JobFailedError(reason, job_id=job.job_id)

        if job.status is JobStatus.TIMED_OUT:
            logger.error(
                "Transcription job timed out",
                extra={"job_id": job.job_id, "polls": job.polls, "deadline_s": self.deadline_seconds},
            )
            raise JobTimedOutError(job.job_id, job.polls, self.deadline_seconds)

        if not job.transcript_uri:
            raise DecodeError(f"Completed job '{job.job_id}' carried no transcript URI")

        document = await self._backend.fetch_transcript(job.transcript_uri)
        text = extract_transcript_text(document)
        if not text:
            raise EmptyTranscriptError(f"Transcription job '{job.job_id}' returned empty text")

        logger.info("Transcription complete", extra={"job_id": job.job_id, "text_len": len(text)})
        return text

    async def _cleanup(self, job: TranscriptionJob) -> None:
        try:
            await self._backend.delete_job(job.job_id)
        except Exception as exc:
            logger.warning(
                "Transcription job cleanup failed",
                extra={"job_id": job.job_id, "error": str(exc)},
                exc_info=not isinstance(exc, GatewayError),
            )
