"""
AI Provider — OpenAI chat completions
=====================================
gpt-4o-mini handles both plain text and image+text prompts through the same
chat-completion endpoint, so one adapter covers all three gateway methods.

The SDK's own retry loop is disabled (max_retries=0): the RetryExecutor owns
the retry budget and each `complete` call is exactly one attempt.
"""

from typing import Optional

import openai
from openai import AsyncOpenAI

from agri_gateway.adapters.base import AIProvider
from agri_gateway.adapters.request_shaper import build_openai_messages
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import DecodeError, TransportError
from agri_gateway.models import AdvisoryRequest, AdvisoryResult

logger = get_logger(__name__)


class OpenAIChatProvider(AIProvider):
    name = "openai"

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None) -> None:
        settings = get_settings()
        self._client = client or AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        self._model = model or settings.openai_model
        self._max_tokens = settings.llm_max_tokens
        self._text_temperature = settings.text_temperature
        self._vision_temperature = settings.vision_temperature

    async def complete(
        self,
        request: AdvisoryRequest,
        system_prompt: Optional[str] = None,
    ) -> AdvisoryResult:
        messages = build_openai_messages(request, system_prompt)
        temperature = self._vision_temperature if request.has_image else self._text_temperature

        logger.debug(
            "Sending to OpenAI",
            extra={"model": self._model, "has_image": request.has_image, "prompt_chars": len(request.prompt_text)},
        )

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=self._max_tokens,
                temperature=temperature,
            )
        except openai.APIResponseValidationError as exc:
            raise DecodeError(f"OpenAI response could not be parsed: {exc}", cause=exc) from exc
        except openai.APIError as exc:
            raise TransportError(f"OpenAI API error: {exc}", cause=exc) from exc

        if not response.choices:
            raise DecodeError("OpenAI response carried no choices")

        reply = response.choices[0].message.content or ""
        logger.debug("OpenAI reply received", extra={"chars": len(reply)})
        return AdvisoryResult(text=reply.strip())
