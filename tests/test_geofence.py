"""
Unit tests for ecotrust/evidence/geofence.py.
"""

import pytest

from ecotrust.evidence.constants import FLAG_GPS_OUTSIDE_POLYGON, FLAG_NO_GPS
from ecotrust.evidence.geofence import (
    check_geofence,
    check_location,
    is_point_in_polygon,
    polygon_from_geojson,
)
from ecotrust.schemas.evidence import Provenance
from tests.conftest import FAR_SQUARE, SITE_LAT, SITE_LON, SITE_SQUARE

UNIT_SQUARE = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))

INSIDE = Provenance(latitude=SITE_LAT, longitude=SITE_LON)
NO_FIX = Provenance()


# ---------------------------------------------------------------------------
# is_point_in_polygon
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "lon, lat, expected",
    [
        (0.5, 0.5, True),
        (1.5, 0.5, False),
        (-0.1, 0.5, False),
        (0.0, 0.5, True),   # on an edge
        (1.0, 1.0, True),   # on a vertex
    ],
)
def test_point_in_unit_square(lon, lat, expected):
    assert is_point_in_polygon(lon, lat, UNIT_SQUARE) is expected


def test_concave_polygon():
    # U shape: the notch between the arms is outside
    u_shape = ((0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3))
    assert is_point_in_polygon(0.5, 2.5, u_shape) is True
    assert is_point_in_polygon(1.5, 2.5, u_shape) is False


# ---------------------------------------------------------------------------
# check_geofence / check_location
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("prov", [INSIDE, NO_FIX])
def test_no_polygon_skips_geofence(prov):
    assert check_geofence(prov, None) is None


def test_inside_polygon_raises_nothing():
    assert check_geofence(INSIDE, SITE_SQUARE) is None
    assert check_location(INSIDE, SITE_SQUARE) is None


def test_outside_polygon_is_flagged():
    assert check_geofence(INSIDE, FAR_SQUARE) == FLAG_GPS_OUTSIDE_POLYGON
    assert check_location(INSIDE, FAR_SQUARE) == FLAG_GPS_OUTSIDE_POLYGON


@pytest.mark.parametrize("ring", [None, SITE_SQUARE, FAR_SQUARE])
def test_missing_gps_is_its_own_flag(ring):
    assert check_geofence(NO_FIX, ring) is None
    assert check_location(NO_FIX, ring) == FLAG_NO_GPS


@pytest.mark.parametrize("prov", [INSIDE, NO_FIX, Provenance(latitude=0.0, longitude=0.0)])
@pytest.mark.parametrize("ring", [None, SITE_SQUARE, FAR_SQUARE])
def test_location_flags_are_mutually_exclusive(prov, ring):
    assert check_location(prov, ring) in (None, FLAG_NO_GPS, FLAG_GPS_OUTSIDE_POLYGON)


# ---------------------------------------------------------------------------
# polygon_from_geojson
# ---------------------------------------------------------------------------


def test_geojson_polygon_drops_closing_vertex():
    geometry = {
        "type": "Polygon",
        "coordinates": [[[77.5, 12.9], [77.7, 12.9], [77.7, 13.0], [77.5, 13.0], [77.5, 12.9]]],
    }
    assert polygon_from_geojson(geometry) == SITE_SQUARE


def test_geojson_feature_is_unwrapped():
    feature = {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [list(map(list, UNIT_SQUARE))]}}
    assert polygon_from_geojson(feature) == UNIT_SQUARE


def test_bare_ring_is_accepted():
    assert polygon_from_geojson([[0, 0], [1, 0], [1, 1], [0, 1]]) == UNIT_SQUARE


def test_empty_geometry_is_none():
    assert polygon_from_geojson(None) is None
    assert polygon_from_geojson({"type": "Polygon", "coordinates": []}) is None


def test_non_polygon_geometry_is_rejected():
    with pytest.raises(ValueError):
        polygon_from_geojson({"type": "Point", "coordinates": [77.5, 12.9]})
