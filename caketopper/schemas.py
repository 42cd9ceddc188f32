"""Pydantic models shared by the FastAPI endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CakeTopperRequest(BaseModel):
    image: str = Field(..., description="Reference image as base64 or a data:image/...;base64 URL")
    name: Optional[str] = Field(
        default=None,
        description="Name to write on the topper (optional; length bounded by settings)",
    )
    age: Optional[str] = Field(
        default=None,
        description="Age text replacing the one in the reference, e.g. '5 anos' (optional)",
    )


class CakeTopperResponse(BaseModel):
    image: str = Field(..., description="Base64-encoded A4 cake topper sheet")
    mimeType: str = Field(..., description="MIME type of the generated image")


class HealthResponse(BaseModel):
    status: str
    imageModel: str
    maxAttempts: int
