"""
Photo ingestion: turn an untrusted upload into a small inline JPEG data URL.

compress() accepts anything shaped like FastAPI's UploadFile (content_type,
size and an awaitable read()). Checks run in order and stop at the first
failure; the size ceiling is enforced before any byte is decoded.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from sanaee.core.config import JPEG_QUALITY, MAX_IMAGE_BYTES, MAX_IMAGE_PX

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/"
OUTPUT_MIME = "image/jpeg"


class ImageError(Exception):
    """Base exception for photo ingestion; the message is shown to the user."""


class NotAnImageError(ImageError):
    def __init__(self) -> None:
        super().__init__("الملف ليس صورة")


class ImageTooLargeError(ImageError):
    def __init__(self, size: int) -> None:
        super().__init__(f"حجم الصورة {size / 1024 / 1024:.1f} ميجا، الحد الأقصى 2 ميجا")
        self.size = size


class UnreadableFileError(ImageError):
    def __init__(self) -> None:
        super().__init__("فشل قراءة الصورة")


class CorruptImageError(ImageError):
    def __init__(self) -> None:
        super().__init__("ملف الصورة تالف")


class ImageUpload(Protocol):
    content_type: Optional[str]
    size: Optional[int]

    async def read(self) -> bytes:
        ...


@dataclass
class InMemoryImageFile:
    """Upload-shaped wrapper around bytes already in memory (scripts, tests)."""

    content_type: str
    data: bytes
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    async def read(self) -> bytes:
        return self.data


def scaled_dimensions(width: int, height: int, max_px: int = MAX_IMAGE_PX) -> tuple[int, int]:
    """Uniform downscale so neither side exceeds max_px; never upscales."""
    ratio = min(max_px / width, max_px / height, 1)
    return max(1, int(width * ratio + 0.5)), max(1, int(height * ratio + 0.5))


def _check_declared(file: ImageUpload) -> None:
    content_type = (getattr(file, "content_type", None) or "").lower()
    if not content_type.startswith("image/"):
        raise NotAnImageError()
    size = getattr(file, "size", None)
    if size is not None and size > MAX_IMAGE_BYTES:
        raise ImageTooLargeError(size)


def _decode(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        logger.info("Rejected undecodable image (%d bytes): %s", len(data), exc)
        raise CorruptImageError() from exc
    try:
        image = ImageOps.exif_transpose(image)
    except Exception as exc:
        logger.debug("Ignoring unusable EXIF orientation: %s", exc)
    return image


def _transcode(data: bytes) -> str:
    return _encode(_decode(data))


def _encode(image: Image.Image) -> str:
    size = scaled_dimensions(image.width, image.height)
    image = image.convert("RGB")
    if size != image.size:
        image = image.resize(size, Image.LANCZOS)
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:{OUTPUT_MIME};base64,{payload}"


async def compress(file: ImageUpload) -> str:
    """Validate, decode, downscale and re-encode an uploaded photo."""
    _check_declared(file)
    try:
        data = await file.read()
    except OSError as exc:
        logger.info("Could not read uploaded image: %s", exc)
        raise UnreadableFileError() from exc
    if not data:
        raise UnreadableFileError()
    if len(data) > MAX_IMAGE_BYTES:
        raise ImageTooLargeError(len(data))
    # Pillow work is CPU bound; keep it off the event loop.
    encoded = await run_in_threadpool(_transcode, data)
    logger.debug("Compressed %d byte upload into %d char data URL", len(data), len(encoded))
    return encoded


def is_safe_embed_source(value: object) -> bool:
    """Only inline image data URLs may be embedded; javascript: and friends are not."""
    if not value or not isinstance(value, str):
        return False
    return value.startswith(DATA_URL_PREFIX)


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Split a base64 image data URL into (mime, bytes)."""
    if not is_safe_embed_source(value):
        raise ValueError("Not an image data URL")
    header, sep, payload = value.partition(",")
    if not sep or not header.endswith(";base64"):
        raise ValueError("Image data URL is not base64 encoded")
    mime = header[len("data:"):-len(";base64")]
    try:
        return mime, base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError("Image data URL payload is not valid base64") from exc
