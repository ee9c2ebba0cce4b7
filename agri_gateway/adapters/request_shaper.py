"""
Request Shaper
==============
Translates an AdvisoryRequest into the wire shape each provider expects.
Pure functions only; nothing here touches the network.

Both shapes put the image block before the text block when an image is
attached.
"""

import base64
from typing import Any, Dict, List, Optional

from agri_gateway.models import AdvisoryRequest

DEFAULT_IMAGE_FORMAT = "png"


def image_format_for_mime(mime_type: Optional[str]) -> str:
    """
    Map a MIME type to the short image format tag providers accept.

    Unrecognised or missing types fall back to "png".
    """
    mime = (mime_type or "").lower()
    if "jpeg" in mime or "jpg" in mime:
        return "jpeg"
    if "webp" in mime:
        return "webp"
    if "gif" in mime:
        return "gif"
    return DEFAULT_IMAGE_FORMAT


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


# ── Amazon Nova (Bedrock invoke_model, messages-v1) ────────────────────────────

def build_nova_request(
    request: AdvisoryRequest,
    system_prompt: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> Dict[str, Any]:
    content: List[Dict[str, Any]] = []
    if request.image is not None:
        content.append(
            {
                "image": {
                    "format": image_format_for_mime(request.mime_type),
                    "source": {"bytes": _b64(request.image)},
                }
            }
        )
    content.append({"text": request.prompt_text})

    body: Dict[str, Any] = {
        "schemaVersion": "messages-v1",
        "messages": [{"role": "user", "content": content}],
    }
    if system_prompt:
        body["system"] = [{"text": system_prompt}]

    inference: Dict[str, Any] = {}
    if temperature is not None:
        inference["temperature"] = temperature
    if max_tokens is not None:
        inference["max_new_tokens"] = max_tokens
    if inference:
        body["inferenceConfig"] = inference
    return body


# ── OpenAI chat completions ────────────────────────────────────────────────────

def build_openai_messages(
    request: AdvisoryRequest,
    system_prompt: Optional[str] = None,
) -> List[Dict[str, Any]]:
    content: List[Dict[str, Any]] = []
    if request.image is not None:
        fmt = image_format_for_mime(request.mime_type)
        content.append(
            {
                "type": "image_url",
                "image_url": {"url": f"data:image/{fmt};base64,{_b64(request.image)}"},
            }
        )
    content.append({"type": "text", "text": request.prompt_text})

    messages: List[Dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": content})
    return messages
