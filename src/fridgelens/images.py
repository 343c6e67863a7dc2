"""Validation of uploaded fridge photos."""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from fridgelens.errors import InvalidInputError

logger = logging.getLogger(__name__)

MISSING_IMAGE_MESSAGE = "Please upload an image"
EMPTY_IMAGE_MESSAGE = "Uploaded image is empty."
UNSUPPORTED_IMAGE_MESSAGE = "Unsupported image format. Please upload a JPEG, PNG or WebP photo."


def too_large_message(max_bytes: int) -> str:
    return (
        f"Image too large. Please use an image smaller than {max_bytes // (1024 * 1024)}MB."
    )


def inspect_image(
    content: Optional[bytes],
    *,
    max_bytes: int,
    declared_type: Optional[str] = None,
) -> str:
    """Validate an upload and return the MIME type to forward to the model.

    The size check runs before any decoding so oversized payloads never reach a backend.
    Formats Pillow cannot identify are accepted only when the client declared an image type.
    """

    if content is None:
        raise InvalidInputError(MISSING_IMAGE_MESSAGE)
    if not content:
        raise InvalidInputError(EMPTY_IMAGE_MESSAGE)
    if len(content) > max_bytes:
        raise InvalidInputError(too_large_message(max_bytes))

    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        if declared_type and declared_type.startswith("image/"):
            logger.debug("Pillow could not identify upload, trusting declared type %s", declared_type)
            return declared_type
        raise InvalidInputError(UNSUPPORTED_IMAGE_MESSAGE, details=str(exc)) from exc

    mime_type = Image.MIME.get(image_format or "", declared_type or "image/jpeg")
    logger.debug("Upload identified as %s (%s bytes)", mime_type, len(content))
    return mime_type


__all__ = [
    "MISSING_IMAGE_MESSAGE",
    "EMPTY_IMAGE_MESSAGE",
    "UNSUPPORTED_IMAGE_MESSAGE",
    "inspect_image",
    "too_large_message",
]
