"""
Error taxonomy for the advisory and voice core.

Every failure the core surfaces is a GatewayError subclass so the calling
layer can map it to a user-facing message without knowing which provider
raised it. `retryable` marks the kinds the RetryExecutor absorbs.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all typed failures raised by the core."""

    retryable = False

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        self.message = message
        self.cause = cause
        # Set by the RetryExecutor once the retry budget is spent
        self.attempts = 1
        super().__init__(message)

    def __str__(self) -> str:
        if self.attempts > 1:
            return f"{self.message} (after {self.attempts} attempts)"
        return self.message


# ── Provider call failures (retryable) ────────────────────────────────────────

class TransportError(GatewayError):
    """Network, auth, API status or per-attempt timeout failure."""

    retryable = True


class EmptyResponseError(GatewayError):
    """The provider call succeeded but carried no usable content."""

    retryable = True


class DecodeError(GatewayError):
    """The provider response body could not be parsed."""

    retryable = True


# ── Transcription job outcomes ────────────────────────────────────────────────

class JobFailedError(GatewayError):
    def __init__(self, reason: str, job_id: str = "") -> None:
        self.reason = reason
        self.job_id = job_id
        super().__init__(f"Transcription job failed: {reason}")


class JobTimedOutError(GatewayError):
    def __init__(self, job_id: str, polls: int, deadline_seconds: float) -> None:
        self.job_id = job_id
        self.polls = polls
        self.deadline_seconds = deadline_seconds
        super().__init__(
            f"Transcription job '{job_id}' timed out after {deadline_seconds:g} seconds ({polls} polls)"
        )


class EmptyTranscriptError(GatewayError):
    """The job completed but its transcript holds no text."""


class JobStateError(GatewayError):
    """A polled status implies a transition the job state machine forbids."""


# ── Voice and storage ─────────────────────────────────────────────────────────

class SynthesisError(GatewayError):
    """Speech synthesis (or saving its audio) failed."""


class StorageError(GatewayError):
    def __init__(self, key: str, cause: Optional[Exception] = None) -> None:
        self.key = key
        super().__init__(f"Failed to store '{key}'", cause=cause)
