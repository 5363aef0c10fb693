"""
Image decoding helper shared by the fingerprinter and the stamper.

Sets PIL.Image.MAX_IMAGE_PIXELS to prevent decompression-bomb attacks.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from ecotrust.config import settings
from ecotrust.core.errors import MediaDecodeError

Image.MAX_IMAGE_PIXELS = settings.pil_max_image_pixels

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> Image.Image:
    """
    Fully decode image bytes into a PIL image.
    Raises MediaDecodeError for anything Pillow cannot load.
    """
    if not data:
        raise MediaDecodeError("Empty image payload")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        logger.error(f"[DECODE] Could not decode image ({len(data)} bytes): {e}")
        raise MediaDecodeError(f"Could not decode image: {e}") from e
