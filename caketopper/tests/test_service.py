"""Tests for :class:`caketopper.service.CakeTopperService`."""

from __future__ import annotations

import asyncio
import base64
import sys
from pathlib import Path

import pytest
from fastapi import HTTPException

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from caketopper.aiservices.imagegenerationclient import ImageGenerationClient, InlineImage
from caketopper.config import Settings
from caketopper.service import CakeTopperService, GeneratedImage

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"reference"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"generated-sheet"


class FakeImageClient(ImageGenerationClient):
    model_id = "fake-image-model"

    def __init__(self, outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []

    async def generate(self, prompt, image, mime_type):
        self.calls.append((prompt, image, mime_type))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome is None or isinstance(outcome, InlineImage):
            return outcome
        return InlineImage(data=outcome)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _make_service(outcomes, **overrides) -> tuple[CakeTopperService, FakeImageClient]:
    settings = Settings(**{"max_attempts": 2, "backoff_base_seconds": 0.0, **overrides})
    image_client = FakeImageClient(outcomes)
    return CakeTopperService(settings, image_client=image_client), image_client


def test_generate_cake_topper_returns_image_and_sniffed_mime_type() -> None:
    service, image_client = _make_service([PNG_BYTES])

    result = asyncio.run(
        service.generate_cake_topper(f"data:image/jpeg;base64,{_b64(JPEG_BYTES)}", "Maria", "5 anos")
    )

    assert result == GeneratedImage(image=PNG_BYTES, mime_type="image/png")
    prompt, image, mime_type = image_client.calls[0]
    assert image == JPEG_BYTES
    assert mime_type == "image/jpeg"
    assert '"Maria"' in prompt and '"5 anos"' in prompt
    assert service.model_id == "fake-image-model"


def test_oversized_image_is_rejected_with_413() -> None:
    service, image_client = _make_service([PNG_BYTES], max_image_bytes=8)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(service.generate_cake_topper(_b64(JPEG_BYTES)))

    assert excinfo.value.status_code == 413
    assert image_client.calls == []


def test_invalid_payload_is_rejected_with_422() -> None:
    service, image_client = _make_service([PNG_BYTES])

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(service.generate_cake_topper("%%%"))

    assert excinfo.value.status_code == 422
    assert image_client.calls == []


def test_exhausted_retries_map_to_bad_gateway_with_cause() -> None:
    service, image_client = _make_service([None, None])

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(service.generate_cake_topper(_b64(JPEG_BYTES)))

    assert excinfo.value.status_code == 502
    assert "no image in response" in excinfo.value.detail
    assert len(image_client.calls) == 2


def test_cancellation_maps_to_service_unavailable() -> None:
    service, image_client = _make_service([PNG_BYTES])

    async def scenario():
        event = asyncio.Event()
        event.set()
        await service.generate_cake_topper(_b64(JPEG_BYTES), cancel_event=event)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.status_code == 503
    assert image_client.calls == []


def test_mime_type_reported_by_model_wins_over_sniffing() -> None:
    service, _ = _make_service([InlineImage(data=PNG_BYTES, mime_type="image/webp")])

    result = asyncio.run(service.generate_cake_topper(_b64(JPEG_BYTES)))

    assert result == GeneratedImage(image=PNG_BYTES, mime_type="image/webp")


@pytest.mark.parametrize("field", ["name", "age"])
def test_overlong_personalization_is_rejected_with_422(field: str) -> None:
    service, image_client = _make_service([PNG_BYTES], max_text_length=5)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(service.generate_cake_topper(_b64(JPEG_BYTES), **{field: "x" * 6}))

    assert excinfo.value.status_code == 422
    assert excinfo.value.detail == f"{field} must be at most 5 characters."
    assert image_client.calls == []


def test_personalization_at_length_limit_is_accepted() -> None:
    service, image_client = _make_service([PNG_BYTES], max_text_length=5)

    asyncio.run(service.generate_cake_topper(_b64(JPEG_BYTES), name="Maria", age="5 ano"))

    assert len(image_client.calls) == 1


def test_huge_payload_is_rejected_with_413_before_decoding() -> None:
    service, image_client = _make_service([PNG_BYTES], max_image_bytes=8)

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(service.generate_cake_topper("!" * 1000))

    assert excinfo.value.status_code == 413
    assert image_client.calls == []
