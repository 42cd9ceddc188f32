from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import Settings, get_settings
from ..errors import (
    GenerationAttemptError,
    GenerationCancelledError,
    ImageValidationError,
    NoImageInResponseError,
    RetryExhaustedError,
    TransportError,
)
from ..prompts import get_cake_topper_prompt
from ..utils import DEFAULT_MIME_TYPE
from .imagegenerationclient import ImageGenerationClient, InlineImage

logger = logging.getLogger(__name__)


class CakeTopperGenerationClient:
    """Turns a reference image (plus optional name and age) into a cake topper sheet.

    Each call builds the prompt, then submits it to the image model up to
    ``max_attempts`` times. Failed attempts are followed by an exponential
    backoff (1s, 2s, 4s, ... with the default base). Attempts never overlap
    and only the final outcome reaches the caller.
    """

    def __init__(
        self,
        image_client: ImageGenerationClient,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self._image_client = image_client
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.settings.max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.settings.backoff_base_seconds * (2 ** (attempt - 1))

    async def generate(
        self,
        image: bytes,
        name: Optional[str] = None,
        age: Optional[str] = None,
        mime_type: str = DEFAULT_MIME_TYPE,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> bytes:
        """Return the generated image bytes.

        Raises:
            ImageValidationError: ``image`` is empty.
            RetryExhaustedError: every attempt failed; carries the last cause.
            GenerationCancelledError: ``cancel_event`` was set before completion.
        """
        result = await self.generate_image(
            image, name=name, age=age, mime_type=mime_type, cancel_event=cancel_event
        )
        return result.data

    async def generate_image(
        self,
        image: bytes,
        name: Optional[str] = None,
        age: Optional[str] = None,
        mime_type: str = DEFAULT_MIME_TYPE,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> InlineImage:
        """Like :meth:`generate` but keeps the MIME type reported by the model."""
        if not image:
            raise ImageValidationError("Image must not be empty.")

        prompt = get_cake_topper_prompt(name, age)
        last_error: Optional[GenerationAttemptError] = None

        for attempt in range(1, self.max_attempts + 1):
            self._raise_if_cancelled(cancel_event)
            try:
                result = await self._until_cancelled(
                    self._attempt(prompt, image, mime_type), cancel_event
                )
            except GenerationAttemptError as exc:
                last_error = exc
            else:
                logger.info("Cake topper generated on attempt %s/%s", attempt, self.max_attempts)
                return result

            logger.warning("Attempt %s/%s failed: %s", attempt, self.max_attempts, last_error)
            if attempt < self.max_attempts:
                delay = self.backoff_delay(attempt)
                logger.debug("Retrying in %ss", delay)
                await self._until_cancelled(self._sleep(delay), cancel_event)

        logger.error("Cake topper generation failed after %s attempts", self.max_attempts)
        raise RetryExhaustedError(self.max_attempts, last_error) from last_error

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _attempt(self, prompt: str, image: bytes, mime_type: str) -> InlineImage:
        timeout = self.settings.request_timeout_seconds
        try:
            # Runs in the current task, so cancelling it reaches the client call directly
            async with asyncio.timeout(timeout):
                result = await self._image_client.generate(prompt, image, mime_type)
        except GenerationAttemptError:
            raise
        except TimeoutError as exc:
            raise TransportError(f"request timed out after {timeout:g}s") from exc
        except Exception as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if result is None or not result.data:
            raise NoImageInResponseError()
        return result

    @staticmethod
    def _raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError()

    @staticmethod
    async def _until_cancelled(awaitable: Awaitable[Any], cancel_event: Optional[asyncio.Event]) -> Any:
        """Await ``awaitable`` unless ``cancel_event`` fires first.

        Whatever is still pending is cancelled and awaited before returning,
        so no work outlives the call.
        """
        if cancel_event is None:
            return await awaitable

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for future in (work, waiter):
                if not future.done():
                    future.cancel()
            await asyncio.gather(work, waiter, return_exceptions=True)

        if work in done:
            return work.result()
        raise GenerationCancelledError()
