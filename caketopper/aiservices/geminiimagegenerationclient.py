# aiservices/geminiimagegenerationclient.py
from __future__ import annotations
from typing import Any, Optional
import base64
import logging

from google import genai
from google.genai import types

from ..config import Settings, get_settings
from .imagegenerationclient import ImageGenerationClient, InlineImage

logger = logging.getLogger(__name__)


class GeminiImageGenerationClient(ImageGenerationClient):
    """
    Sends prompt + reference image to a Gemini image model and asks for an
    image-only answer. The SDK client is created once and shared by all calls.
    """

    RESPONSE_MODALITIES = ["IMAGE"]

    def __init__(self, settings: Optional[Settings] = None, client: Any = None) -> None:
        self.settings = settings or get_settings()

        if client is not None:
            self._client = client
        else:
            api_key = self.settings.gemini_api_key.get_secret_value()
            # Without an explicit key the SDK reads GEMINI_API_KEY / GOOGLE_API_KEY
            self._client = genai.Client(api_key=api_key) if api_key else genai.Client()

        self._model = self.settings.image_model_id

    @property
    def model_id(self) -> str:
        return self._model

    async def generate(self, prompt: str, image: bytes, mime_type: str) -> Optional[InlineImage]:
        logger.debug(
            "Requesting image from %s (prompt=%s chars, image=%s bytes, mime=%s)",
            self._model,
            len(prompt),
            len(image),
            mime_type,
        )
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=[
                prompt,
                types.Part.from_bytes(data=image, mime_type=mime_type),
            ],
            config=types.GenerateContentConfig(
                response_modalities=self.RESPONSE_MODALITIES,
            ),
        )
        return self.extract_inline_image(response)

    # --- Internals ------------------------------------------------------------

    @staticmethod
    def extract_inline_image(response: Any) -> Optional[InlineImage]:
        """Return the first non-empty inline image of the first candidate."""
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return None

        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        for part in parts:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            return InlineImage(data=bytes(data), mime_type=getattr(inline_data, "mime_type", None) or None)

        finish_reason = getattr(candidates[0], "finish_reason", None)
        logger.debug("No inline image in %s parts (finish_reason=%s)", len(parts), finish_reason)
        return None
