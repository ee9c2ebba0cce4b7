"""
AI Provider — AWS Bedrock (Amazon Nova Lite)
============================================
Nova Lite accepts text and images in one messages-v1 body through
`invoke_model`. boto3 is synchronous, so each call runs in a worker thread;
the clients are thread-safe and shared across requests.

botocore's own retries are switched off so the RetryExecutor owns the
budget and every `complete` call is exactly one attempt. Text and vision
calls use separate clients whose read timeout equals the attempt deadline,
and a cancelled attempt waits for its worker thread before returning, so
at most one `invoke_model` per logical call is ever in flight.
"""

import asyncio
import json
import math
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from agri_gateway.adapters.base import AIProvider
from agri_gateway.adapters.request_shaper import build_nova_request
from agri_gateway.config import get_settings
from agri_gateway.core.logging import get_logger
from agri_gateway.errors import DecodeError, TransportError
from agri_gateway.models import AdvisoryRequest, AdvisoryResult

logger = get_logger(__name__)


def build_bedrock_client(read_timeout_seconds: float) -> Any:
    settings = get_settings()
    return boto3.client(
        "bedrock-runtime",
        region_name=settings.bedrock_region,
        aws_access_key_id=settings.bedrock_access_key_id or None,
        aws_secret_access_key=settings.bedrock_secret_access_key or None,
        aws_session_token=settings.bedrock_session_token or None,
        config=Config(
            connect_timeout=settings.bedrock_connect_timeout_seconds,
            read_timeout=math.ceil(read_timeout_seconds),
            retries={"total_max_attempts": 1},
        ),
    )


class BedrockNovaProvider(AIProvider):
    name = "bedrock"

    def __init__(self, client: Optional[Any] = None, model_id: Optional[str] = None) -> None:
        settings = get_settings()
        # An injected client serves both kinds of call
        self._text_client = client or build_bedrock_client(settings.ai_text_timeout_seconds)
        self._vision_client = client or build_bedrock_client(settings.ai_vision_timeout_seconds)
        self._model_id = model_id or settings.bedrock_model_id
        self._max_tokens = settings.llm_max_tokens
        self._text_temperature = settings.text_temperature
        self._vision_temperature = settings.vision_temperature

    async def complete(
        self,
        request: AdvisoryRequest,
        system_prompt: Optional[str] = None,
    ) -> AdvisoryResult:
        body = build_nova_request(
            request,
            system_prompt=system_prompt,
            temperature=self._vision_temperature if request.has_image else self._text_temperature,
            max_tokens=self._max_tokens,
        )
        client = self._vision_client if request.has_image else self._text_client

        logger.debug(
            "Invoking Bedrock model",
            extra={"model": self._model_id, "has_image": request.has_image, "prompt_chars": len(request.prompt_text)},
        )

        try:
            raw = await self._invoke_in_thread(client, json.dumps(body))
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"Bedrock API error: {exc}", cause=exc) from exc

        try:
            payload = json.loads(raw)
            blocks = payload["output"]["message"]["content"]
        except (ValueError, KeyError, TypeError) as exc:
            raise DecodeError("Failed to decode Bedrock response", cause=exc) from exc

        text = ""
        for block in blocks or []:
            if isinstance(block, dict) and block.get("text"):
                text = block["text"]
                break

        logger.debug("Bedrock reply received", extra={"chars": len(text)})
        return AdvisoryResult(text=text.strip())

    async def _invoke_in_thread(self, client: Any, body: str) -> bytes:
        worker = asyncio.ensure_future(asyncio.to_thread(self._invoke_sync, client, body))
        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            # The thread cannot be interrupted; hold the attempt open until it ends
            await asyncio.wait({worker})
            if not worker.cancelled() and worker.exception() is not None:
                logger.debug(
                    "Abandoned Bedrock call finished with an error",
                    extra={"error": str(worker.exception())},
                )
            raise

    def _invoke_sync(self, client: Any, body: str) -> bytes:
        output = client.invoke_model(
            modelId=self._model_id,
            body=body,
            contentType="application/json",
            accept="application/json",
        )
        return output["body"].read()
