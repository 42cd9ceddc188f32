from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

# Abstract interface for remote image models so the retry loop can run
# against Gemini in production and fakes in tests.


@dataclass
class InlineImage:
    """Image bytes embedded in a model response, with the MIME type the model reported."""

    data: bytes
    mime_type: Optional[str] = None


class ImageGenerationClient(ABC):
    """Abstract interface for an image generation client.

    Implementations send exactly one request per call and do not retry.
    """

    @property
    @abstractmethod
    def model_id(self) -> str:  # pragma: no cover - interface
        """Identifier of the remote model."""

    @abstractmethod
    async def generate(self, prompt: str, image: bytes, mime_type: str) -> Optional[InlineImage]:
        """Generate an image from a prompt and a reference image.

        Returns the inline image of the response, or ``None`` when the
        response carried no image. Transport and upstream errors propagate.
        """
