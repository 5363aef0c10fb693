"""
Geofence validation for the primary image's GPS fix.

Polygons are a single outer ring of (lon, lat) vertices with no holes; the
ring is closed implicitly. Points on the boundary count as inside.
"""

import logging
from typing import Optional, Sequence, Tuple

from shapely.geometry import Point, Polygon

from ecotrust.evidence.constants import FLAG_GPS_OUTSIDE_POLYGON, FLAG_NO_GPS
from ecotrust.schemas.evidence import Provenance

logger = logging.getLogger(__name__)


def is_point_in_polygon(lon: float, lat: float, ring: Sequence[Tuple[float, float]]) -> bool:
    return Polygon(ring).covers(Point(lon, lat))


def polygon_from_geojson(geometry) -> Optional[Tuple[Tuple[float, float], ...]]:
    """
    Accepts a GeoJSON Polygon (or Feature wrapping one) or a bare list of
    [lon, lat] pairs and returns the outer ring. Holes are ignored.
    """
    if not geometry:
        return None

    if isinstance(geometry, dict):
        if geometry.get("type") == "Feature":
            geometry = geometry.get("geometry") or {}
        if geometry.get("type") != "Polygon":
            raise ValueError(f"Unsupported geofence geometry: {geometry.get('type')}")
        rings = geometry.get("coordinates") or []
        if not rings:
            return None
        ring = rings[0]
    else:
        ring = geometry

    vertices = tuple((float(v[0]), float(v[1])) for v in ring)
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]
    return vertices


def check_geofence(
    provenance: Provenance,
    ring: Optional[Sequence[Tuple[float, float]]],
) -> Optional[str]:
    """
    Polygon test only. Returns GPS_OUTSIDE_POLYGON or None.

    No polygon → skipped (None) whether or not the image has GPS.
    No GPS → nothing to test (None); check_location reports that case.
    """
    if not ring:
        logger.info("[GEOFENCE] No polygon configured, skipping")
        return None

    if not provenance.has_gps:
        return None

    inside = is_point_in_polygon(provenance.longitude, provenance.latitude, ring)
    logger.info(
        f"[GEOFENCE] Point ({provenance.longitude:.6f}, {provenance.latitude:.6f}) "
        f"{'inside' if inside else 'OUTSIDE'} polygon"
    )
    return None if inside else FLAG_GPS_OUTSIDE_POLYGON


def check_location(
    provenance: Provenance,
    ring: Optional[Sequence[Tuple[float, float]]],
) -> Optional[str]:
    """
    Location flag for one image: NO_GPS when no fix was extractable,
    otherwise the geofence outcome. The two flags are mutually exclusive.
    """
    if not provenance.has_gps:
        logger.info("[GEOFENCE] No GPS fix on primary image")
        return FLAG_NO_GPS
    return check_geofence(provenance, ring)
