"""
AI Gateway
==========
One interface over whichever generation provider was configured at start.

Every method builds an AdvisoryRequest, hands it to the provider through a
RetryExecutor, and returns plain text. Text-only calls get 30 s attempts,
calls carrying an image get 45 s. The gateway never looks at which provider
it holds.

`analyze_image` returns the provider's label verbatim: the system prompt asks
for one of the SOIL_TYPES or "Unknown", but the answer is not checked against
that list.

`advise` looks up current weather for the farmer's coordinates when a
WeatherService is attached; the lookup never fails the call.
"""

import dataclasses
from typing import Optional

from agri_gateway.adapters.base import AIProvider
from agri_gateway.adapters.openweather import WeatherService
from agri_gateway.adapters.request_shaper import DEFAULT_IMAGE_FORMAT
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.core.retry import RetryExecutor
from agri_gateway.models import AdvisoryRequest, AdvisoryResult, FarmerContext
from agri_gateway.prompts import (
    FARMING_CHAT_SYSTEM_PROMPT,
    SOIL_CLASSIFICATION_SYSTEM_PROMPT,
    SOIL_CLASSIFICATION_USER_PROMPT,
    build_advisory_prompt,
)

logger = get_logger(__name__)


class AIGateway:
    def __init__(
        self,
        provider: AIProvider,
        text_timeout_seconds: Optional[float] = None,
        vision_timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        weather: Optional[WeatherService] = None,
    ) -> None:
        settings = get_settings()
        self._provider = provider
        self._weather = weather
        self._text_retry = RetryExecutor(
            timeout_seconds=text_timeout_seconds or settings.ai_text_timeout_seconds,
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            operation="text generation",
        )
        self._vision_retry = RetryExecutor(
            timeout_seconds=vision_timeout_seconds or settings.ai_vision_timeout_seconds,
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            operation="vision generation",
        )

    @property
    def provider_name(self) -> str:
        return self._provider.name

    # ── Core operations ────────────────────────────────────────────────────────

    async def analyze_image(self, image: bytes, mime_type: str) -> str:
        """Classify a soil photo; returns the provider's label unvalidated."""
        request = AdvisoryRequest(SOIL_CLASSIFICATION_USER_PROMPT, image=image, mime_type=mime_type)
        label = await self._invoke(request, SOIL_CLASSIFICATION_SYSTEM_PROMPT)
        logger.info("Soil image analysed", extra={"label": label, "image_bytes": len(image)})
        return label

    async def generate_text(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        return await self._invoke(AdvisoryRequest(prompt), system_prompt)

    async def generate_text_with_image(
        self,
        prompt: str,
        image: bytes,
        mime_type: str,
        system_prompt: Optional[str] = None,
    ) -> str:
        request = AdvisoryRequest(prompt, image=image, mime_type=mime_type)
        return await self._invoke(request, system_prompt)

    # ── Prompt helpers ─────────────────────────────────────────────────────────

    async def advise(
        self,
        question: str,
        context: Optional[FarmerContext] = None,
        image: Optional[bytes] = None,
        mime_type: Optional[str] = None,
    ) -> str:
        """Answer a farmer's question using their soil/weather/location context."""
        context = await self._with_weather(context or FarmerContext())
        prompt = build_advisory_prompt(question, context)
        if image is not None:
            # Unlabelled images are sent as png, like any unrecognised type
            mime_type = mime_type or f"image/{DEFAULT_IMAGE_FORMAT}"
            return await self.generate_text_with_image(prompt, image, mime_type)
        return await self.generate_text(prompt)

    async def chat(self, message: str) -> str:
        """Farming-only chatbot turn."""
        return await self.generate_text(message, system_prompt=FARMING_CHAT_SYSTEM_PROMPT)

    # ── Private helpers ────────────────────────────────────────────────────────

    async def _invoke(self, request: AdvisoryRequest, system_prompt: Optional[str]) -> str:
        executor = self._vision_retry if request.has_image else self._text_retry

        async def attempt() -> AdvisoryResult:
            return await self._provider.complete(request, system_prompt=system_prompt)

        result = await executor.run(attempt)
        return result.text

    async def _with_weather(self, context: FarmerContext) -> FarmerContext:
        if self._weather is None or context.latitude is None or context.longitude is None:
            return context
        summary = await self._weather.current_summary(context.latitude, context.longitude)
        return dataclasses.replace(context, weather=summary)
