"""
Abstract base classes for provider adapters.
Any concrete adapter must implement these interfaces, making providers
fully replaceable without changing gateway or route code.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from agri_gateway.models import AdvisoryRequest, AdvisoryResult, JobSnapshot, TranscriptionJob


class AIProvider(ABC):
    """Text / vision generation: one request → one attempt → one result."""

    name: str = "unknown"

    @abstractmethod
    async def complete(
        self,
        request: AdvisoryRequest,
        system_prompt: Optional[str] = None,
    ) -> AdvisoryResult:
        """
        Run a single generation attempt.

        Parameters
        ----------
        request       : prompt text plus an optional image
        system_prompt : instruction placed ahead of the user turn

        Returns
        -------
        AdvisoryResult, possibly empty when the provider sent no content.

        Raises
        ------
        TransportError on network/auth/API failures, DecodeError when the
        response body cannot be parsed.
        """
        ...


class TranscriptionBackend(ABC):
    """Job-oriented speech-to-text service."""

    @abstractmethod
    async def start_job(self, job: TranscriptionJob, language_options: List[str]) -> None:
        """Submit `job` with automatic language identification over `language_options`."""
        ...

    @abstractmethod
    async def get_job(self, job_id: str) -> JobSnapshot:
        ...

    @abstractmethod
    async def delete_job(self, job_id: str) -> None:
        ...

    @abstractmethod
    async def fetch_transcript(self, transcript_uri: str) -> Dict[str, Any]:
        """Download and decode the transcript JSON document."""
        ...


class SpeechSynthesizer(ABC):
    """Text-to-Speech: text → audio bytes."""

    content_type: str = "audio/mpeg"
    extension: str = ".mp3"

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        ...


class StorageBackend(ABC):
    """Where staged audio and generated artifacts are written."""

    @abstractmethod
    async def save(self, data: bytes, content_type: str, extension: str, subdirectory: str) -> str:
        """
        Persist `data` and return an address for it.

        Parameters
        ----------
        data         : raw bytes
        content_type : MIME type recorded with the object
        extension    : file extension including the leading dot (e.g. ".mp3")
        subdirectory : logical folder (e.g. "audio", "stt-input")

        Returns
        -------
        URL (or path) the object can be fetched from.
        """
        ...
