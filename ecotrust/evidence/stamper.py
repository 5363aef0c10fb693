"""
Provenance stamping: burns a visible annotation into the stored artifact.

The stamp sits in the bottom-right corner, one right-aligned line per
` | `-separated field. The font scales with image width and shrinks until
the widest line fits between the paddings. Text is drawn light and stroked
over a semi-opaque dark box so it stays legible on both bright and dark
scenes. Image dimensions never change.
"""

import io
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, NamedTuple, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from ecotrust.config import settings
from ecotrust.core.errors import MediaDecodeError
from ecotrust.core.imaging import decode_image

logger = logging.getLogger(__name__)

TEXT_FILL = (255, 255, 255, 235)
TEXT_STROKE = (0, 0, 0, 160)
STAMP_SEPARATOR = " | "
# Floor for shrink-to-fit; below this the stamp is drawn at this size anyway
FIT_FLOOR_FONT_PX = 6


class StampLine(NamedTuple):
    text: str
    origin: Tuple[int, int]
    bbox: Tuple[int, int, int, int]


class StampLayout(NamedTuple):
    font: ImageFont.ImageFont
    font_size: int
    stroke_width: int
    padding: int
    lines: List[StampLine]


def build_stamp_text(submission_id: str, project_id: str, at: Optional[datetime] = None) -> str:
    at = at or datetime.now(timezone.utc)
    return STAMP_SEPARATOR.join(
        [f"Submission: {submission_id}", f"Project: {project_id}", at.isoformat(timespec="seconds")]
    )


def split_stamp_lines(text: str) -> List[str]:
    lines = [part.strip() for part in text.split(STAMP_SEPARATOR.strip())]
    return [line for line in lines if line] or [text]


@lru_cache(maxsize=64)
def _load_font(size: int, font_path: Optional[str]):
    if font_path:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError as e:
            logger.warning(f"[STAMP] Font {font_path} unavailable, using default: {e}")
    return ImageFont.load_default(size=size)


def layout_stamp(text: str, width: int, height: int) -> StampLayout:
    """
    Places each stamp line right-aligned in the bottom-right corner.
    Line bboxes are in image coordinates.
    """
    lines = split_stamp_lines(text)
    padding = max(settings.stamp_min_padding_px, int(width * settings.stamp_padding_ratio))
    available = max(1, width - 2 * padding)
    font_size = max(settings.stamp_min_font_px, int(width * settings.stamp_font_ratio))
    measure = ImageDraw.Draw(Image.new("L", (1, 1)))

    while True:
        font = _load_font(font_size, settings.stamp_font_path)
        is_vector = isinstance(font, ImageFont.FreeTypeFont)
        stroke_width = max(1, font_size // 24) if is_vector else 0
        boxes = [measure.textbbox((0, 0), line, font=font, stroke_width=stroke_width) for line in lines]
        widest = max(right - left for left, _, right, _ in boxes)
        if widest <= available or not is_vector or font_size <= FIT_FLOOR_FONT_PX:
            break
        font_size = max(FIT_FLOOR_FONT_PX, min(font_size - 1, font_size * available // widest))

    line_gap = max(1, font_size // 4)
    placed = []
    baseline = height - padding
    for line, (left, top, right, bottom) in reversed(list(zip(lines, boxes))):
        x = width - padding - right
        y = baseline - bottom
        placed.append(StampLine(line, (x, y), (x + left, y + top, x + right, y + bottom)))
        baseline = y + top - line_gap
    placed.reverse()

    if widest > available:
        logger.warning(f"[STAMP] Stamp text wider than {width}px image at {font_size}px font")

    return StampLayout(font, font_size, stroke_width, padding, placed)


def stamp_image(data: bytes, text: str) -> bytes:
    """
    Returns JPEG bytes of the image with `text` rendered in the corner.
    Raises MediaDecodeError when the input cannot be decoded or re-encoded.
    """
    img = decode_image(data)
    try:
        width, height = img.size
        layout = layout_stamp(text, width, height)

        base = img.convert("RGBA")
        overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)

        box_pad = max(2, layout.padding // 3)
        draw.rectangle(
            (
                min(line.bbox[0] for line in layout.lines) - box_pad,
                min(line.bbox[1] for line in layout.lines) - box_pad,
                max(line.bbox[2] for line in layout.lines) + box_pad,
                max(line.bbox[3] for line in layout.lines) + box_pad,
            ),
            fill=(0, 0, 0, settings.stamp_backdrop_alpha),
        )
        text_kwargs = (
            {"stroke_width": layout.stroke_width, "stroke_fill": TEXT_STROKE} if layout.stroke_width else {}
        )
        for line in layout.lines:
            draw.text(line.origin, line.text, font=layout.font, fill=TEXT_FILL, **text_kwargs)

        stamped = Image.alpha_composite(base, overlay).convert("RGB")

        out = io.BytesIO()
        stamped.save(out, format="JPEG", quality=settings.stamp_jpeg_quality)

        for obj in (base, overlay, stamped):
            obj.close()
    except (OSError, ValueError) as e:
        logger.error(f"[STAMP] Failed to stamp image: {e}")
        raise MediaDecodeError(f"Could not stamp image: {e}") from e
    finally:
        img.close()

    logger.info(f"[STAMP] Stamped {width}x{height} image ({len(layout.lines)} line(s), font={layout.font_size}px)")
    return out.getvalue()
