"""
Provenance extraction: capture time, GPS and device from embedded EXIF.

Resolution order (the only place these fallbacks are decided):
  - capture time: Exif IFD DateTimeOriginal → DateTimeDigitized
  - GPS:          GPS IFD GPSLatitude/Ref + GPSLongitude/Ref (DMS → signed degrees)
  - device:       IFD0 Make / Model

Missing or malformed metadata is never an error; the field is simply absent.
"""

import io
import logging
from datetime import datetime
from typing import Optional

from PIL import ExifTags, Image

from ecotrust.schemas.evidence import Provenance

logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y:%m:%d %H:%M")

CAPTURE_TIME_TAGS = (ExifTags.Base.DateTimeOriginal, ExifTags.Base.DateTimeDigitized)


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _parse_exif_datetime(value) -> Optional[datetime]:
    text = _as_text(value)
    if not text:
        return None
    # Drop sub-second / offset suffixes some firmwares append
    text = text[:19]
    for fmt in EXIF_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _dms_to_dd(dms, ref) -> float:
    """Convert EXIF DMS (degrees, minutes, seconds) to decimal degrees."""
    def _as_float(v):
        if hasattr(v, "numerator"):           # IFDRational
            return float(v)
        if isinstance(v, (list, tuple)):
            return float(v[0]) / float(v[1]) if len(v) == 2 else float(v[0])
        return float(v)

    if not isinstance(dms, (list, tuple)):
        dd = _as_float(dms)
    else:
        parts = [_as_float(p) for p in dms] + [0.0, 0.0]
        dd = parts[0] + parts[1] / 60.0 + parts[2] / 3600.0
    if _as_text(ref) in ("S", "W"):
        dd = -dd
    return dd


def _read_gps(gps_ifd: dict) -> tuple[Optional[float], Optional[float]]:
    lat_raw = gps_ifd.get(ExifTags.GPS.GPSLatitude)
    lon_raw = gps_ifd.get(ExifTags.GPS.GPSLongitude)
    if lat_raw is None or lon_raw is None:
        return None, None

    try:
        lat = _dms_to_dd(lat_raw, gps_ifd.get(ExifTags.GPS.GPSLatitudeRef, "N"))
        lon = _dms_to_dd(lon_raw, gps_ifd.get(ExifTags.GPS.GPSLongitudeRef, "E"))
    except (TypeError, ValueError, ZeroDivisionError, IndexError) as e:
        logger.debug(f"[EXIF] Unreadable GPS coordinates: {e}")
        return None, None

    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        logger.info(f"[EXIF] GPS out of range, ignoring: lat={lat}, lon={lon}")
        return None, None
    return lat, lon


def extract_provenance(data: bytes) -> Provenance:
    """
    Pull capture-time facts from image bytes.
    Never raises: undecodable input yields an all-absent record.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            exif = img.getexif()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)

            captured_at = None
            for tag in CAPTURE_TIME_TAGS:
                captured_at = _parse_exif_datetime(exif_ifd.get(tag))
                if captured_at:
                    break

            latitude, longitude = _read_gps(gps_ifd)

            provenance = Provenance(
                captured_at=captured_at,
                latitude=latitude,
                longitude=longitude,
                make=_as_text(exif.get(ExifTags.Base.Make)),
                model=_as_text(exif.get(ExifTags.Base.Model)),
            )
    except Exception as e:
        logger.warning(f"[EXIF] Metadata read failed, treating as absent: {e}")
        return Provenance()

    logger.info(
        f"[EXIF] time={provenance.captured_at}, gps={provenance.has_gps}, "
        f"device={provenance.make or '-'} {provenance.model or '-'}"
    )
    return provenance
