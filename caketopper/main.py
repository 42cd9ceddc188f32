"""FastAPI entry point exposing the cake topper REST API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .schemas import CakeTopperRequest, CakeTopperResponse, HealthResponse
from .service import CakeTopperService, get_cake_topper_service
from .utils import encode_image_payload

logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5

app = FastAPI(title="Cake Topper Backend", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling cake topper generation")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@app.get("/health", response_model=HealthResponse, summary="Health Check Endpoint")
async def healthcheck():
    settings = get_settings()
    return HealthResponse(
        status="ok",
        imageModel=settings.image_model_id,
        maxAttempts=settings.max_attempts,
    )


@app.post(
    "/cake-topper",
    response_model=CakeTopperResponse,
    summary="Generate a printable A4 cake topper sheet from a reference image",
)
async def cake_topper(
    payload: CakeTopperRequest,
    request: Request,
    service: CakeTopperService = Depends(get_cake_topper_service),
):
    # A client that goes away cancels the remaining attempts and backoff
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        result = await service.generate_cake_topper(
            payload.image, payload.name, payload.age, cancel_event=cancel_event
        )
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    logger.debug("Returning %s bytes of %s", len(result.image), result.mime_type)
    return CakeTopperResponse(
        image=encode_image_payload(result.image),
        mimeType=result.mime_type,
    )


__all__ = ["app"]


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    import uvicorn

    uvicorn.run("caketopper.main:app", host="0.0.0.0", port=8000, reload=True)
