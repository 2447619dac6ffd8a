"""Gemini image model client for property staging."""

import asyncio
import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import types

from property_stage.domain.errors import MissingOrInvalidCredential
from property_stage.domain.generation import TransformRequest, TransformResponse
from property_stage.services.generation import CredentialSelector, ImageTransformClient

logger = logging.getLogger(__name__)

_REFUSAL_FINISH_REASONS = {
    "SAFETY",
    "IMAGE_SAFETY",
    "PROHIBITED_CONTENT",
    "IMAGE_PROHIBITED_CONTENT",
    "BLOCKLIST",
    "SPII",
}


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


@dataclass
class GeminiImageClient(ImageTransformClient):
    """Image transform client backed by ``google-genai``.

    The API key is resolved on every call so that a newly selected key takes
    effect without rebuilding the client.
    """

    api_key_provider: Callable[[], str | None]
    timeout_seconds: float = 150.0
    client_factory: Callable[[str], Any] = _default_client_factory

    async def transform(self, request: TransformRequest) -> TransformResponse:
        """Send the photo and instruction to Gemini and return its image."""
        api_key = self.api_key_provider()
        if not api_key:
            raise MissingOrInvalidCredential(detail="GEMINI_API_KEY is not configured")
        client = self.client_factory(api_key)
        contents: list[Any] = [
            types.Part.from_bytes(
                data=base64.b64decode(request.image_base64),
                mime_type=request.mime_type,
            ),
            request.instruction,
        ]
        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(
                aspect_ratio=request.aspect_ratio,
                image_size=request.resolution.value,
            ),
        )
        logger.info(
            "Gemini request: model=%s aspect=%s size=%s room=%s",
            request.model,
            request.aspect_ratio,
            request.resolution.value,
            request.room_context,
        )
        async with asyncio.timeout(self.timeout_seconds):
            response = await asyncio.to_thread(
                client.models.generate_content,
                model=request.model,
                contents=contents,
                config=config,
            )
        return parse_response(response)


def parse_response(response: Any) -> TransformResponse:
    """Normalize a ``GenerateContentResponse`` into a transform response."""
    block_reason = None
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        block_reason = _enum_name(feedback.block_reason)

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return TransformResponse(block_reason=block_reason)

    candidate = candidates[0]
    finish_reason = getattr(candidate, "finish_reason", None)
    if finish_reason is not None and _enum_name(finish_reason) in _REFUSAL_FINISH_REASONS:
        block_reason = block_reason or _enum_name(finish_reason)

    texts: list[str] = []
    content = getattr(candidate, "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return TransformResponse(
                image_base64=base64.b64encode(inline.data).decode("ascii"),
                mime_type=inline.mime_type or "image/png",
            )
        if getattr(part, "text", None):
            texts.append(part.text)
    return TransformResponse(text="\n".join(texts) or None, block_reason=block_reason)


def _enum_name(value: Any) -> str:
    return str(getattr(value, "name", value))


@dataclass
class LoggingCredentialSelector(CredentialSelector):
    """Points the operator at the key configuration when a key is rejected."""

    env_var: str = "GEMINI_API_KEY"

    async def open_selection(self) -> None:
        logger.warning(
            "Gemini rejected the API key. Set %s to a valid key and try again.",
            self.env_var,
        )
