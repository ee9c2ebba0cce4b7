"""
Transcription Backend — Amazon Transcribe
=========================================
Batch transcription jobs read their media from S3 and publish the result as
a JSON document at a pre-signed HTTPS URI once the job completes. This
adapter only speaks the wire protocol; the polling policy lives in
services.transcription.
"""

import asyncio
from typing import Any, Dict, List, Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from agri_gateway.adapters.base import TranscriptionBackend
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import DecodeError, TransportError
from agri_gateway.models import JobSnapshot, JobStatus, TranscriptionJob

logger = get_logger(__name__)

_STATUS_MAP: Dict[str, JobStatus] = {
    "QUEUED": JobStatus.SUBMITTED,
    "IN_PROGRESS": JobStatus.IN_PROGRESS,
    "COMPLETED": JobStatus.COMPLETED,
    "FAILED": JobStatus.FAILED,
}


class AWSTranscribeBackend(TranscriptionBackend):
    def __init__(
        self,
        client: Optional[Any] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        # Same region as the staging bucket so Transcribe can read the media
        self._client = client or boto3.client(
            "transcribe",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.transcript_download_timeout_seconds
        )

    async def start_job(self, job: TranscriptionJob, language_options: List[str]) -> None:
        try:
            await asyncio.to_thread(
                self._client.start_transcription_job,
                TranscriptionJobName=job.job_id,
                Media={"MediaFileUri": job.media_uri},
                MediaFormat=job.media_format.value,
                IdentifyLanguage=True,
                LanguageOptions=list(language_options),
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"Failed to start transcription job: {exc}", cause=exc) from exc
        logger.debug("Transcribe job started", extra={"job_id": job.job_id, "media_uri": job.media_uri})

    async def get_job(self, job_id: str) -> JobSnapshot:
        try:
            response = await asyncio.to_thread(
                self._client.get_transcription_job,
                TranscriptionJobName=job_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"Failed to get transcription job status: {exc}", cause=exc) from exc

        try:
            details = response["TranscriptionJob"]
            raw_status = details["TranscriptionJobStatus"]
        except (KeyError, TypeError) as exc:
            raise DecodeError("Malformed transcription job status response", cause=exc) from exc

        status = _STATUS_MAP.get(raw_status)
        if status is None:
            raise DecodeError(f"Unknown transcription job status '{raw_status}'")
        logger.debug("Transcribe job status", extra={"job_id": job_id, "provider_status": raw_status})

        return JobSnapshot(
            status=status,
            transcript_uri=(details.get("Transcript") or {}).get("TranscriptFileUri"),
            failure_reason=details.get("FailureReason"),
        )

    async def delete_job(self, job_id: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.delete_transcription_job,
                TranscriptionJobName=job_id,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"Failed to delete transcription job: {exc}", cause=exc) from exc

    async def fetch_transcript(self, transcript_uri: str) -> Dict[str, Any]:
        try:
            response = await self._http.get(transcript_uri)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to download transcript: {exc}", cause=exc) from exc

        try:
            document = response.json()
        except ValueError as exc:
            raise DecodeError("Failed to parse transcript JSON", cause=exc) from exc
        if not isinstance(document, dict):
            raise DecodeError("Transcript document is not a JSON object")
        return document

    async def aclose(self) -> None:
        await self._http.aclose()
