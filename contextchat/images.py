"""
Image attachment encoding.

Turns an image file into the opaque data: URI handle carried by a user
message, resized so the upload stays small.
"""

from __future__ import annotations

import base64
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .exceptions import ImageProcessingError

logger = logging.getLogger(__name__)

# Images below this on both sides are sent at their original size
MIN_SIZE = 400
# Longest side after resizing
MAX_SIZE = 1024

HIGH_QUALITY = 95
REDUCED_QUALITY = 80
# Above this the image is re-encoded at REDUCED_QUALITY
MAX_ENCODED_BYTES = 2 * 1024 * 1024


def target_size(width: int, height: int) -> tuple[int, int]:
    """
    Compute the resized dimensions, keeping the aspect ratio.

    Args:
        width: Original width in pixels
        height: Original height in pixels

    Returns:
        (width, height) after resizing
    """
    if width < MIN_SIZE and height < MIN_SIZE:
        return width, height
    if width > height and width > MAX_SIZE:
        height = height * MAX_SIZE / width
        width = MAX_SIZE
    elif height > MAX_SIZE:
        width = width * MAX_SIZE / height
        height = MAX_SIZE
    return round(width), round(height)


def _to_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def encode_image(source: str | Path | bytes) -> str:
    """
    Encode an image as a JPEG data: URI.

    Args:
        source: Path to an image file, or its raw bytes

    Returns:
        ``data:image/jpeg;base64,...`` string

    Raises:
        ImageProcessingError: If the file cannot be read or decoded
    """
    label = "<bytes>" if isinstance(source, bytes) else str(source)

    try:
        if isinstance(source, bytes):
            original = Image.open(io.BytesIO(source))
        else:
            original = Image.open(Path(source).expanduser())
        original.load()
    except FileNotFoundError as e:
        raise ImageProcessingError(label, "file not found") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(label, str(e)) from e

    size = target_size(*original.size)

    # Flatten transparency onto white, JPEG has no alpha channel
    canvas = Image.new("RGB", size, (255, 255, 255))
    resized = original.convert("RGBA").resize(size, Image.LANCZOS)
    canvas.paste(resized, mask=resized.getchannel("A"))

    data = _to_jpeg(canvas, HIGH_QUALITY)
    if len(data) > MAX_ENCODED_BYTES:
        data = _to_jpeg(canvas, REDUCED_QUALITY)

    logger.debug(
        "Encoded %s from %sx%s to %sx%s (%d bytes)",
        label, *original.size, *size, len(data),
    )
    return "data:image/jpeg;base64," + base64.b64encode(data).decode("ascii")
