"""
Plain data passed between the HTTP edge, the gateways and the adapters.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional

from agri_gateway.errors import JobStateError


# ── Advisory ───────────────────────────────────────────────────────────────────

WEATHER_UNAVAILABLE = "Weather data unavailable"


@dataclass(frozen=True)
class AdvisoryRequest:
    prompt_text: str
    image: Optional[bytes] = None
    mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.prompt_text or not self.prompt_text.strip():
            raise ValueError("prompt_text must not be empty")
        if self.image is not None and not self.mime_type:
            raise ValueError("mime_type is required when an image is attached")

    @property
    def has_image(self) -> bool:
        return self.image is not None


@dataclass(frozen=True)
class AdvisoryResult:
    text: str

    def __bool__(self) -> bool:
        # Empty content counts as a failed attempt for the retry executor
        return bool(self.text and self.text.strip())


@dataclass(frozen=True)
class FarmerContext:
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    soil_type: str = "Unknown"
    weather: str = WEATHER_UNAVAILABLE


# ── Transcription ──────────────────────────────────────────────────────────────

class MediaFormat(str, Enum):
    WAV = "wav"
    MP3 = "mp3"
    MP4 = "mp4"
    OGG = "ogg"
    FLAC = "flac"
    WEBM = "webm"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]


_CONTENT_TYPES: Dict[MediaFormat, str] = {
    MediaFormat.WAV: "audio/wav",
    MediaFormat.MP3: "audio/mpeg",
    MediaFormat.MP4: "audio/mp4",
    MediaFormat.OGG: "audio/ogg",
    MediaFormat.FLAC: "audio/flac",
    MediaFormat.WEBM: "audio/webm",
}


class JobStatus(str, Enum):
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset(
    {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMED_OUT}
)

# Transitions reachable by polling. TIMED_OUT is only ever set locally.
_POLLED_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.SUBMITTED: frozenset(
        {JobStatus.SUBMITTED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED, JobStatus.FAILED}
    ),
    JobStatus.IN_PROGRESS: frozenset(
        {JobStatus.IN_PROGRESS, JobStatus.COMPLETED, JobStatus.FAILED}
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.TIMED_OUT: frozenset(),
}


@dataclass(frozen=True)
class JobSnapshot:
    """One status poll as reported by the transcription provider."""

    status: JobStatus
    transcript_uri: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass
class TranscriptionJob:
    job_id: str
    media_uri: str
    media_format: MediaFormat
    status: JobStatus = JobStatus.SUBMITTED
    transcript_uri: Optional[str] = None
    failure_reason: Optional[str] = None
    polls: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def advance(self, snapshot: JobSnapshot) -> None:
        """Apply a polled status, enforcing the job state machine."""
        self.polls += 1
        if snapshot.status not in _POLLED_TRANSITIONS[self.status]:
            raise JobStateError(
                f"Job '{self.job_id}' cannot move from {self.status.value} to {snapshot.status.value}"
            )
        self.status = snapshot.status
        if snapshot.status is JobStatus.COMPLETED:
            self.transcript_uri = snapshot.transcript_uri
        elif snapshot.status is JobStatus.FAILED:
            self.failure_reason = snapshot.failure_reason

    def mark_timed_out(self) -> None:
        if self.is_terminal:
            raise JobStateError(
                f"Job '{self.job_id}' is already {self.status.value} and cannot time out"
            )
        self.status = JobStatus.TIMED_OUT


# ── Speech ─────────────────────────────────────────────────────────────────────

@dataclass
class SynthesisArtifact:
    audio_bytes: bytes
    content_type: str = "audio/mpeg"
    extension: str = ".mp3"
    public_url: Optional[str] = None


@dataclass
class VoiceChatResult:
    transcript: str
    reply: str
    audio_url: Optional[str] = None
    # Set when the reply could not be voiced; transcript and reply remain valid
    error: Optional[str] = None
    latency_ms: Dict[str, float] = field(default_factory=dict)

    @property
    def is_partial(self) -> bool:
        return self.error is not None
