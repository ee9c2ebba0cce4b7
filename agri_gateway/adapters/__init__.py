"""
Adapter factory.
Providers are chosen here, once, from configuration; nothing downstream
branches on which concrete class it was given.
"""

from typing import Callable, Dict, Optional

from agri_gateway.adapters.aws_transcribe import AWSTranscribeBackend
from agri_gateway.adapters.base import AIProvider, SpeechSynthesizer, StorageBackend, TranscriptionBackend
from agri_gateway.adapters.bedrock import BedrockNovaProvider
from agri_gateway.adapters.openai_llm import OpenAIChatProvider
from agri_gateway.adapters.polly import PollySynthesizer
from agri_gateway.adapters.storage import LocalStorage, S3Storage
from agri_gateway.config import Settings, get_settings

_AI_PROVIDERS: Dict[str, Callable[[], AIProvider]] = {
    "bedrock": BedrockNovaProvider,
    "openai": OpenAIChatProvider,
}


def build_ai_provider(settings: Optional[Settings] = None) -> AIProvider:
    settings = settings or get_settings()
    try:
        factory = _AI_PROVIDERS[settings.ai_provider]
    except KeyError:
        raise ValueError(f"Unsupported AI provider '{settings.ai_provider}'") from None
    return factory()


def build_storage(settings: Optional[Settings] = None) -> StorageBackend:
    settings = settings or get_settings()
    if settings.s3_bucket_name:
        return S3Storage()
    return LocalStorage()


def build_transcription_backend() -> TranscriptionBackend:
    return AWSTranscribeBackend()


def build_synthesizer() -> SpeechSynthesizer:
    return PollySynthesizer()
