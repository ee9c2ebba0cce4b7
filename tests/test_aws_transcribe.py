"""
Unit tests for the Amazon Transcribe backend.

The boto3 client is a MagicMock; transcript downloads go through an
httpx.MockTransport.
"""

from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from agri_gateway.adapters.aws_transcribe import AWSTranscribeBackend
from agri_gateway.errors import DecodeError, TransportError
from agri_gateway.models import JobStatus, MediaFormat, TranscriptionJob

TRANSCRIPT_URI = "https://s3.ap-south-1.amazonaws.com/aws-transcribe/agri-stt-1.json"


def make_backend(client=None, handler=None):
    handler = handler or (lambda request: httpx.Response(200, json={"results": {"transcripts": []}}))
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AWSTranscribeBackend(client=client or MagicMock(), http_client=http_client)


def job_response(status, **extra):
    return {"TranscriptionJob": {"TranscriptionJobName": "agri-stt-1", "TranscriptionJobStatus": status, **extra}}


@pytest.mark.asyncio
async def test_start_job_requests_language_identification():
    client = MagicMock()
    backend = make_backend(client)
    job = TranscriptionJob(job_id="agri-stt-1", media_uri="https://b.s3.amazonaws.com/k.ogg", media_format=MediaFormat.OGG)

    await backend.start_job(job, ["hi-IN", "en-US", "en-IN"])

    kwargs = client.start_transcription_job.call_args.kwargs
    assert kwargs["TranscriptionJobName"] == "agri-stt-1"
    assert kwargs["Media"] == {"MediaFileUri": "https://b.s3.amazonaws.com/k.ogg"}
    assert kwargs["MediaFormat"] == "ogg"
    assert kwargs["IdentifyLanguage"] is True
    assert kwargs["LanguageOptions"] == ["hi-IN", "en-US", "en-IN"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("QUEUED", JobStatus.SUBMITTED),
        ("IN_PROGRESS", JobStatus.IN_PROGRESS),
        ("COMPLETED", JobStatus.COMPLETED),
        ("FAILED", JobStatus.FAILED),
    ],
)
async def test_get_job_maps_provider_status(raw, expected):
    client = MagicMock()
    client.get_transcription_job.return_value = job_response(raw)

    snapshot = await make_backend(client).get_job("agri-stt-1")

    assert snapshot.status is expected


@pytest.mark.asyncio
async def test_get_job_completed_carries_transcript_uri():
    client = MagicMock()
    client.get_transcription_job.return_value = job_response(
        "COMPLETED", Transcript={"TranscriptFileUri": TRANSCRIPT_URI}
    )

    snapshot = await make_backend(client).get_job("agri-stt-1")

    assert snapshot.transcript_uri == TRANSCRIPT_URI


@pytest.mark.asyncio
async def test_get_job_failed_carries_reason():
    client = MagicMock()
    client.get_transcription_job.return_value = job_response("FAILED", FailureReason="codec error")

    snapshot = await make_backend(client).get_job("agri-stt-1")

    assert snapshot.failure_reason == "codec error"


@pytest.mark.asyncio
async def test_get_job_unknown_status_is_decode_error():
    client = MagicMock()
    client.get_transcription_job.return_value = job_response("PAUSED")

    with pytest.raises(DecodeError):
        await make_backend(client).get_job("agri-stt-1")


@pytest.mark.asyncio
async def test_get_job_client_error_is_transport_error():
    client = MagicMock()
    client.get_transcription_job.side_effect = ClientError(
        {"Error": {"Code": "BadRequestException", "Message": "no such job"}}, "GetTranscriptionJob"
    )

    with pytest.raises(TransportError):
        await make_backend(client).get_job("agri-stt-1")


@pytest.mark.asyncio
async def test_delete_job_calls_provider():
    client = MagicMock()

    await make_backend(client).delete_job("agri-stt-1")

    client.delete_transcription_job.assert_called_once_with(TranscriptionJobName="agri-stt-1")


@pytest.mark.asyncio
async def test_fetch_transcript_returns_document():
    document = {"results": {"transcripts": [{"transcript": "gehun ki fasal"}]}}
    backend = make_backend(handler=lambda request: httpx.Response(200, json=document))

    assert await backend.fetch_transcript(TRANSCRIPT_URI) == document


@pytest.mark.asyncio
async def test_fetch_transcript_http_error_is_transport_error():
    backend = make_backend(handler=lambda request: httpx.Response(403, text="expired"))

    with pytest.raises(TransportError):
        await backend.fetch_transcript(TRANSCRIPT_URI)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"<html>", b"[1, 2]"])
async def test_fetch_transcript_bad_body_is_decode_error(content):
    backend = make_backend(handler=lambda request: httpx.Response(200, content=content))

    with pytest.raises(DecodeError):
        await backend.fetch_transcript(TRANSCRIPT_URI)
