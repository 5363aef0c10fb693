"""
Gemini-backed `VisionModel`.

One `genai.Client` per instance, created from GEMINI_API_KEY unless a client
is injected. `analyze` downsizes the image, re-encodes it as RGB JPEG and
returns the model's raw text; parsing and timeouts belong to the
authenticity adapter.
"""

import asyncio
import io
import logging
import os
from typing import Optional

from PIL import Image
from google import genai
from google.genai import types

from ecotrust.config import settings
from ecotrust.core.imaging import decode_image

logger = logging.getLogger(__name__)

EXECUTION_QUERY = "Analyze this field photo for authenticity, strictly following the instructions above."


def _resize_if_needed(img: Image.Image) -> Image.Image:
    """
    Resizes image if it exceeds ~4MP (2048x2048) to limit token usage and avoid payload errors.
    Keeps aspect ratio.
    """
    w, h = img.size
    pixels = w * h

    if pixels > settings.gemini_max_pixels:
        scale = (settings.gemini_max_pixels / pixels) ** 0.5
        return img.resize((max(1, int(w * scale)), max(1, int(h * scale))), Image.Resampling.LANCZOS)

    return img


def prepare_upload(image_bytes: bytes) -> bytes:
    """Decode → resize → RGB → JPEG bytes for the upload."""
    img_to_close = []

    img_original = decode_image(image_bytes)
    img_to_close.append(img_original)

    img_working = _resize_if_needed(img_original)
    if img_working is not img_original:
        img_to_close.append(img_working)

    if img_working.mode != "RGB":
        img_rgb = img_working.convert("RGB")
        img_to_close.append(img_rgb)
        img_working = img_rgb

    img_byte_arr = io.BytesIO()
    img_working.save(img_byte_arr, format="JPEG", quality=settings.gemini_jpeg_quality)

    for img_obj in img_to_close:
        img_obj.close()

    return img_byte_arr.getvalue()


class GeminiVisionModel:
    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None):
        self.client = client or genai.Client(
            api_key=api_key or os.getenv("GEMINI_API_KEY"),
            http_options=types.HttpOptions(timeout=settings.gemini_http_timeout_ms),
        )
        self.model = settings.gemini_model

    async def analyze(self, image_bytes: bytes, context_blob: str) -> str:
        upload = await asyncio.to_thread(prepare_upload, image_bytes)

        config = types.GenerateContentConfig(
            temperature=settings.gemini_temperature,
        )

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=upload, mime_type="image/jpeg"),
                context_blob,
                EXECUTION_QUERY,
            ],
            config=config,
        )

        usage = getattr(response, "usage_metadata", None)
        if usage is not None:
            logger.info(
                f"[GEMINI] tokens prompt={usage.prompt_token_count} "
                f"completion={usage.candidates_token_count} total={usage.total_token_count}"
            )

        return response.text or ""
