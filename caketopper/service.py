"""Domain logic for turning cake topper requests into image model calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, status

from .config import Settings, get_settings
from .errors import GenerationCancelledError, ImageValidationError, RetryExhaustedError
from .utils import decode_image_payload, sniff_image_mime_type, validate_image_size
from .aiservices.caketoppergenerationclient import CakeTopperGenerationClient
from .aiservices.geminiimagegenerationclient import GeminiImageGenerationClient
from .aiservices.imagegenerationclient import ImageGenerationClient

logger = logging.getLogger(__name__)


@dataclass
class GeneratedImage:
    """Container describing a generated cake topper sheet."""

    image: bytes
    mime_type: str


class CakeTopperService:
    """High-level orchestrator between the HTTP layer and the image model."""

    def __init__(
        self,
        settings: Settings | None = None,
        image_client: ImageGenerationClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._image_client = image_client or GeminiImageGenerationClient(self.settings)
        self._generator = CakeTopperGenerationClient(self._image_client, self.settings)

    @property
    def model_id(self) -> str:
        return self._image_client.model_id

    async def generate_cake_topper(
        self,
        image_base64: str,
        name: Optional[str] = None,
        age: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedImage:
        for field, value in (("name", name), ("age", age)):
            self._check_text_length(field, value)

        max_bytes = self.settings.max_image_bytes
        try:
            image = validate_image_size(decode_image_payload(image_base64, max_bytes), max_bytes)
        except ImageValidationError as exc:
            raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

        mime_type = sniff_image_mime_type(image)
        logger.info(
            "Generating cake topper (image=%s bytes, mime=%s, name=%s, age=%s)",
            len(image),
            mime_type,
            bool(name),
            bool(age),
        )

        try:
            generated = await self._generator.generate_image(
                image,
                name=name,
                age=age,
                mime_type=mime_type,
                cancel_event=cancel_event,
            )
        except RetryExhaustedError as exc:
            logger.exception("Cake topper generation gave up after %s attempts", exc.attempts)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Image generation failed: {exc}",
            ) from exc
        except GenerationCancelledError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Image generation was cancelled.",
            ) from exc

        return GeneratedImage(
            image=generated.data,
            mime_type=generated.mime_type or sniff_image_mime_type(generated.data),
        )

    def _check_text_length(self, field: str, value: Optional[str]) -> None:
        limit = self.settings.max_text_length
        if value is not None and len(value) > limit:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"{field} must be at most {limit} characters.",
            )


@lru_cache
def get_cake_topper_service() -> CakeTopperService:
    return CakeTopperService(get_settings())
