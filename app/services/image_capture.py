"""
Image capture — turns an uploaded photo into an ImagePayload.

Accepts what the browser sends: a data URI from the camera/file picker,
bare base64, or multipart bytes. Only JPEG and PNG are taken.
"""

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from ..core.config import get_settings
from ..models.listing import ImagePayload, decode_base64

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
_FORMAT_MIME = {"JPEG": "image/jpeg", "PNG": "image/png"}


class InvalidImage(ValueError):
    """Upload is empty, too large, or not a JPEG/PNG."""


def decode_upload(data: str) -> bytes:
    """Decode ``data:image/...;base64,...`` or raw base64 into bytes."""
    raw = data.strip()
    if raw.startswith("data:"):
        try:
            return ImagePayload.from_data_uri(raw).data
        except ValueError as e:
            raise InvalidImage(str(e))
    try:
        return decode_base64(raw)
    except (binascii.Error, ValueError):
        raise InvalidImage("Invalid base64 data")


def validate_extension(filename: Optional[str]) -> None:
    if not filename:
        return
    ext = Path(filename).suffix.lower()
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise InvalidImage(
            f"File type '{ext}' not allowed. Supported: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )


def load_image(file_bytes: bytes, filename: Optional[str] = None) -> ImagePayload:
    """Check size and format, return the payload with its real MIME type."""
    max_bytes = get_settings().max_upload_bytes
    if not file_bytes:
        raise InvalidImage("Empty file")
    if len(file_bytes) > max_bytes:
        raise InvalidImage(f"File too large (max {max_bytes // (1024 * 1024)}MB)")
    validate_extension(filename)

    try:
        with Image.open(BytesIO(file_bytes)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise InvalidImage("Could not read the image. Please upload a JPEG or PNG photo.")

    mime = _FORMAT_MIME.get(fmt or "")
    if mime is None:
        raise InvalidImage(f"Unsupported image format '{fmt}'. Please upload a JPEG or PNG photo.")

    logger.info("Captured image: %s (%d bytes, %s)", filename or "<inline>", len(file_bytes), mime)
    return ImagePayload(data=file_bytes, mime_type=mime)


def capture_from_base64(data: str, filename: Optional[str] = None) -> ImagePayload:
    return load_image(decode_upload(data), filename)


def ensure_data_uri(value: Union[str, bytes]) -> str:
    """
    Return something an <img src> can show.

    An image data URI comes back untouched. Raw bytes and bare base64 are
    wrapped as JPEG.
    """
    if isinstance(value, bytes):
        return f"data:image/jpeg;base64,{base64.b64encode(value).decode('ascii')}"
    if value.startswith("data:image"):
        return value
    return f"data:image/jpeg;base64,{value}"


ImageSource = Union[ImagePayload, str, bytes]


def to_payload(source: ImageSource) -> ImagePayload:
    """Accept a payload, a data URI, bare base64 or raw bytes."""
    if isinstance(source, ImagePayload):
        return source
    return ImagePayload.from_data_uri(ensure_data_uri(source))
