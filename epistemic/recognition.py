from __future__ import annotations

import base64
import binascii
import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_FORMATS = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
}

Recognizer = Callable[[bytes, str], Awaitable[str]]


class ScanError(ValueError):
    pass


def decode_image(data: str) -> bytes:
    # Tolerate data URLs ("data:image/png;base64,....").
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    # Clients often wrap base64 across lines.
    data = "".join(data.split())
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ScanError(f"Image payload is not valid base64: {e}")
    if not raw:
        raise ScanError("Image payload is empty")
    return raw


class ScanSession:
    """
    One scan: hand the image to the recognizer, then deliver the recognized
    text to the completion handler supplied by whoever opened the scan.
    """

    def __init__(self, recognizer: Recognizer, on_recognized: Callable[[str], Any]) -> None:
        self._recognize = recognizer
        self._on_recognized = on_recognized

    async def scan(self, image: bytes, mime_type: str) -> Any:
        mime = (mime_type or "").strip().lower()
        if mime not in SUPPORTED_IMAGE_FORMATS:
            raise ScanError(f"Unsupported image type: {mime_type}")

        text = await self._recognize(image, mime)
        logger.info("Recognized %d characters from %s scan", len(text), mime)

        result = self._on_recognized(text)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def scan_base64(self, data: str, mime_type: str) -> Any:
        return await self.scan(decode_image(data), mime_type)
