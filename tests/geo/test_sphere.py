"""Great-circle distance, path length and spherical area."""

from __future__ import annotations

import math

import pytest

from land_claim.geo.models import GeoPoint, PositionFix
from land_claim.geo.sphere import EARTH_RADIUS_M, distance_m, path_length_m, spherical_area

_ORIGIN = GeoPoint(31.2304, 121.4737)
_M_PER_DEG = math.pi * EARTH_RADIUS_M / 180.0


def _pt(north_m: float, east_m: float) -> GeoPoint:
    return GeoPoint(
        _ORIGIN.latitude + north_m / _M_PER_DEG,
        _ORIGIN.longitude + east_m / (_M_PER_DEG * math.cos(math.radians(_ORIGIN.latitude))),
    )


def test_distance_zero_for_same_point():
    assert distance_m(_ORIGIN, _ORIGIN) == 0.0


def test_distance_one_degree_latitude():
    d = distance_m(GeoPoint(0.0, 0.0), GeoPoint(1.0, 0.0))
    assert d == pytest.approx(111_194.9, rel=1e-4)


def test_distance_is_symmetric():
    a, b = _pt(0, 0), _pt(35, 80)
    assert distance_m(a, b) == pytest.approx(distance_m(b, a))


def test_path_length_sums_segments():
    path = [_pt(0, 0), _pt(0, 30), _pt(40, 30)]
    assert path_length_m(path) == pytest.approx(70.0, rel=0.01)


def test_path_length_short_paths():
    assert path_length_m([]) == 0.0
    assert path_length_m([_ORIGIN]) == 0.0


def test_square_area_close_to_planar():
    square = [_pt(0, 0), _pt(0, 60), _pt(60, 60), _pt(60, 0)]
    assert spherical_area(square) == pytest.approx(3600.0, rel=0.10)


def test_area_is_positive_for_either_winding():
    square = [_pt(0, 0), _pt(0, 60), _pt(60, 60), _pt(60, 0)]
    assert spherical_area(square) > 0
    assert spherical_area(list(reversed(square))) == pytest.approx(spherical_area(square))


def test_area_of_fewer_than_three_points_is_zero():
    assert spherical_area([_pt(0, 0), _pt(0, 60)]) == 0.0


def test_position_fix_validity():
    assert PositionFix(_ORIGIN, 5.0, 0.0).is_valid() is True
    assert PositionFix(_ORIGIN, -1.0, 0.0).is_valid() is False
    assert PositionFix(GeoPoint(float("nan"), 0.0), 5.0, 0.0).is_valid() is False


def test_geopoint_dict_round_trip():
    point = GeoPoint(31.5, 121.25)
    assert point.to_dict() == {"lat": 31.5, "lon": 121.25}
    assert GeoPoint.from_dict({"lat": "31.5", "lon": 121.25}) == point
