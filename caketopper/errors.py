"""Exceptions raised while turning a reference image into a cake topper sheet."""

from __future__ import annotations

from typing import Optional

GENERIC_FAILURE_MESSAGE = "Image generation failed after several attempts."


class CakeTopperError(Exception):
    """Base class for all cake topper errors."""


class ImageValidationError(CakeTopperError):
    """The reference image cannot be sent to the model (empty, undecodable or too large)."""

    def __init__(self, message: str, status_code: int = 422) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationAttemptError(CakeTopperError):
    """A single attempt failed; the retry loop may try again."""


class NoImageInResponseError(GenerationAttemptError):
    def __init__(self, message: str = "no image in response: the model did not return a valid image") -> None:
        super().__init__(message)


class TransportError(GenerationAttemptError):
    """The request itself failed (network, upstream error or timeout)."""


class GenerationCancelledError(CakeTopperError):
    def __init__(self, message: str = "cancelled") -> None:
        super().__init__(message)


class RetryExhaustedError(CakeTopperError):
    """Every attempt failed. ``cause`` is the failure of the last attempt."""

    def __init__(self, attempts: int, cause: Optional[BaseException] = None) -> None:
        message = str(cause) if cause is not None and str(cause) else GENERIC_FAILURE_MESSAGE
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause
