"""
Shared pytest fixtures for all test modules.

Images are real in-memory JPEGs built with Pillow so provenance extraction,
hashing and stamping run against genuine encoder output. No network access.
"""

import io
import os

# GeminiVisionModel builds a genai.Client when no client is injected; a
# non-empty stub keeps the SDK from raising before our mocks are in place.
os.environ.setdefault("GEMINI_API_KEY", "stub-key-for-tests")

import pytest
from PIL import Image, ImageDraw

from ecotrust.schemas.evidence import SubmissionContext
from tests.mocks.firebase_mock import MockFirestore
from tests.mocks.storage_mock import InMemoryStorage
from tests.mocks.vision_mock import StubVisionModel


# ---------------------------------------------------------------------------
# Shared test-data helpers
# ---------------------------------------------------------------------------

# 12°58'0" N, 77°35'0" E → (12.9667, 77.5833)
SITE_GPS = {
    1: "N",
    2: (12.0, 58.0, 0.0),
    3: "E",
    4: (77.0, 35.0, 0.0),
}
SITE_LAT = 12.0 + 58.0 / 60.0
SITE_LON = 77.0 + 35.0 / 60.0

# (lon, lat) square around the site
SITE_SQUARE = ((77.5, 12.9), (77.7, 12.9), (77.7, 13.0), (77.5, 13.0))
FAR_SQUARE = ((10.0, 10.0), (11.0, 10.0), (11.0, 11.0), (10.0, 11.0))

CAPTURE_TIME = "2024:06:15 14:32:00"

VISION_AUTHENTIC = "VERDICT: AUTHENTIC\nCONFIDENCE: 95\nREASONING: consistent outdoor scene"


def make_tiny_jpeg() -> bytes:
    """Create a minimal 10×10 JPEG in memory: fast and valid."""
    buf = io.BytesIO()
    Image.new("RGB", (10, 10), color=(128, 128, 128)).save(buf, format="JPEG")
    return buf.getvalue()


def make_pattern_image(size: int = 256, variant: int = 0) -> Image.Image:
    """Gradient plus shapes: enough structure for a meaningful pHash."""
    img = Image.new("RGB", (size, size))
    px = img.load()
    for x in range(size):
        for y in range(size):
            r, g, b = (x * 255) // size, (y * 255) // size, ((x + y) * 127) // size
            px[x, y] = (r, g, b) if variant == 0 else (255 - g, 255 - r, 255 - b)

    draw = ImageDraw.Draw(img)
    if variant == 0:
        draw.ellipse((size // 8, size // 8, size // 2, size // 2), fill=(240, 240, 240))
        draw.rectangle((size // 2, size // 2, size - size // 8, size - size // 8), fill=(20, 60, 20))
    else:
        draw.rectangle((size // 8, size // 2, size // 2, size - size // 8), fill=(250, 30, 30))
        draw.ellipse((size // 2, size // 8, size - size // 8, size // 2), fill=(10, 10, 10))
    return img


def make_jpeg(
    with_gps: bool = True,
    with_time: bool = True,
    size: int = 256,
    variant: int = 0,
    quality: int = 95,
    gps: dict = None,
    make: str = "Apple",
    model: str = "iPhone 14 Pro",
) -> bytes:
    """JPEG with optional EXIF capture time, GPS fix and device fields."""
    img = make_pattern_image(size, variant)
    exif = Image.Exif()
    if make:
        exif[0x010F] = make
    if model:
        exif[0x0110] = model
    if with_time:
        exif[0x8769] = {0x9003: CAPTURE_TIME}
    if with_gps:
        exif[0x8825] = dict(gps or SITE_GPS)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality, exif=exif)
    return buf.getvalue()


def make_context(**overrides) -> SubmissionContext:
    values = {"project_id": "PRJ-001", "submission_id": "sub-001"}
    values.update(overrides)
    return SubmissionContext(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def full_exif_jpeg() -> bytes:
    return make_jpeg()


@pytest.fixture
def bare_jpeg() -> bytes:
    return make_jpeg(with_gps=False, with_time=False, make=None, model=None)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def authentic_vision() -> StubVisionModel:
    return StubVisionModel(VISION_AUTHENTIC)


@pytest.fixture
def mock_firebase(monkeypatch):
    """Replace firebase.db with an in-memory MockFirestore."""
    from ecotrust.integrations import firebase as fb

    mock_db = MockFirestore()
    monkeypatch.setattr(fb, "db", mock_db)
    return mock_db
