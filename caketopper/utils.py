import base64
import binascii
import math
import re

from .errors import ImageValidationError

DEFAULT_MIME_TYPE = "image/png"

# Leading whitespace plus an optional data URL header; matching it never copies the payload
_PAYLOAD_START = re.compile(r"\s*(?:data:[^;,]*(?:;[^;,]*)*;base64,)?", re.IGNORECASE)
_WHITESPACE = (" ", "\t", "\r", "\n")


def max_encoded_length(max_bytes: int) -> int:
    """Longest base64 text that can decode to at most ``max_bytes`` bytes."""
    return 4 * math.ceil(max_bytes / 3)


def _too_large(max_bytes: int, detail: str = "") -> ImageValidationError:
    limit_mb = max_bytes / (1024 * 1024)
    return ImageValidationError(f"Image must be at most {limit_mb:g}MB{detail}.", status_code=413)


def decode_image_payload(data: str, max_bytes: int | None = None) -> bytes:
    """
    Decode a base64 image as sent by the browser.

    Accepts either bare base64 or a ``data:image/...;base64,`` URL. When
    ``max_bytes`` is given, payloads whose base64 text is already too long
    are rejected before anything is copied or decoded.

    Raises:
        ImageValidationError: if the payload is empty, too large or not valid base64.
    """
    start = _PAYLOAD_START.match(data).end()
    if max_bytes is not None:
        encoded_length = len(data) - start - sum(data.count(ch, start) for ch in _WHITESPACE)
        if encoded_length > max_encoded_length(max_bytes):
            raise _too_large(max_bytes)

    payload = re.sub(r"\s+", "", data[start:])
    if not payload:
        raise ImageValidationError("Image payload must not be empty.")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageValidationError("Image payload is not valid base64.") from exc


def encode_image_payload(image: bytes) -> str:
    return base64.b64encode(image).decode("ascii")


def validate_image_size(image: bytes, max_bytes: int) -> bytes:
    if not image:
        raise ImageValidationError("Image must not be empty.")
    if len(image) > max_bytes:
        raise _too_large(max_bytes, f" (got {len(image)} bytes)")
    return image


def sniff_image_mime_type(image: bytes) -> str:
    if image.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image.startswith(b"GIF87a") or image.startswith(b"GIF89a"):
        return "image/gif"
    if image[:4] == b"RIFF" and image[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_MIME_TYPE
