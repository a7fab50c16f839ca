"""
Gemini Backend - Streaming completion via google-generativeai.
"""

from __future__ import annotations
from typing import AsyncIterator, Sequence
import base64
import logging

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from ..config import DEFAULT_MODEL
from .backends import CompletionBackend
from .request import ImagePart, PromptPart, SafetySetting, TextPart

logger = logging.getLogger(__name__)


class GeminiBackend(CompletionBackend):
    """
    Gemini multimodal streaming backend.

    Create once and reuse; the API key is configured globally
    by the SDK.
    """

    def __init__(self, api_key: str | None, model_name: str = DEFAULT_MODEL):
        if not api_key:
            raise ValueError("GEMINI_API_KEY not found in environment variables")
        genai.configure(api_key=api_key)
        self.model_name = model_name

    async def stream(
        self,
        parts: Sequence[PromptPart],
        safety_settings: Sequence[SafetySetting],
    ) -> AsyncIterator[str]:
        model = genai.GenerativeModel(
            self.model_name,
            safety_settings=self._to_safety_settings(safety_settings),
        )
        contents = [{"role": "user", "parts": [self._to_part(p) for p in parts]}]

        logger.debug("Streaming from %s", self.model_name)
        response = await model.generate_content_async(contents, stream=True)
        async for chunk in response:
            # .text raises ValueError when the chunk was blocked
            yield chunk.text

    @staticmethod
    def _to_part(part: PromptPart) -> dict:
        if isinstance(part, ImagePart):
            return {
                "inline_data": {
                    "mime_type": part.mime_type,
                    "data": base64.b64decode(part.data),
                }
            }
        if isinstance(part, TextPart):
            return {"text": part.text}
        raise TypeError(f"Unsupported prompt part: {type(part).__name__}")

    @staticmethod
    def _to_safety_settings(settings: Sequence[SafetySetting]) -> dict:
        return {
            HarmCategory[f"HARM_CATEGORY_{s.category}"]: HarmBlockThreshold[s.threshold]
            for s in settings
        }
