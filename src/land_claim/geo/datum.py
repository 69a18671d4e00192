"""WGS-84 ↔ GCJ-02 datum conversion.

GPS hardware reports WGS-84 coordinates, while maps published in mainland
China are drawn in the GCJ-02 datum, which is offset by a few hundred metres.
Tracks are recorded and validated in WGS-84; these functions only serve the
display layer.  Points outside the China bounding box are never shifted.
"""

from __future__ import annotations

import math

from land_claim.geo.models import GeoPoint

_KRASOVSKY_RADIUS = 6378245.0
_ECCENTRICITY_SQ = 0.00669342162296594323

# Rough bounding box of the offset jurisdiction: (min_lon, max_lon, min_lat, max_lat)
OFFSET_REGION = (73.66, 135.05, 3.86, 53.55)

_INVERSE_TOLERANCE_DEG = 1e-10
_INVERSE_MAX_ITERATIONS = 30


def in_offset_region(point: GeoPoint) -> bool:
    """Return True if *point* falls inside the offset datum's bounding box."""
    min_lon, max_lon, min_lat, max_lat = OFFSET_REGION
    return min_lon <= point.longitude <= max_lon and min_lat <= point.latitude <= max_lat


def to_display_datum(point: GeoPoint) -> GeoPoint:
    """Convert a WGS-84 *point* to GCJ-02 (identity outside the offset region)."""
    if not in_offset_region(point):
        return point

    dlat, dlon = _delta(point.latitude, point.longitude)
    return GeoPoint(latitude=point.latitude + dlat, longitude=point.longitude + dlon)


def from_display_datum(point: GeoPoint) -> GeoPoint:
    """Convert a GCJ-02 *point* back to WGS-84 (identity outside the offset region).

    The forward delta depends on the unknown WGS-84 position, so the inverse is
    solved by fixed-point iteration starting from the one-step estimate.
    """
    if not in_offset_region(point):
        return point

    lat, lon = point.latitude, point.longitude
    for _ in range(_INVERSE_MAX_ITERATIONS):
        dlat, dlon = _delta(lat, lon)
        next_lat = point.latitude - dlat
        next_lon = point.longitude - dlon
        converged = (
            abs(next_lat - lat) < _INVERSE_TOLERANCE_DEG
            and abs(next_lon - lon) < _INVERSE_TOLERANCE_DEG
        )
        lat, lon = next_lat, next_lon
        if converged:
            break

    return GeoPoint(latitude=lat, longitude=lon)


# ---------------------------------------------------------------------------
# Transform internals
# ---------------------------------------------------------------------------

def _delta(lat: float, lon: float) -> tuple[float, float]:
    """Return the (latitude, longitude) offset in degrees at (lat, lon)."""
    d_lat = _transform_lat(lon - 105.0, lat - 35.0)
    d_lon = _transform_lon(lon - 105.0, lat - 35.0)

    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - _ECCENTRICITY_SQ * magic * magic
    sqrt_magic = math.sqrt(magic)

    d_lat = (d_lat * 180.0) / (
        (_KRASOVSKY_RADIUS * (1 - _ECCENTRICITY_SQ)) / (magic * sqrt_magic) * math.pi
    )
    d_lon = (d_lon * 180.0) / (_KRASOVSKY_RADIUS / sqrt_magic * math.cos(rad_lat) * math.pi)
    return d_lat, d_lon


def _transform_lat(x: float, y: float) -> float:
    pi = math.pi
    ret = -100.0 + 2.0 * x + 3.0 * y + 0.2 * y * y + 0.1 * x * y + 0.2 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * pi) + 20.0 * math.sin(2.0 * x * pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * pi) + 40.0 * math.sin(y / 3.0 * pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * pi) + 320.0 * math.sin(y * pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lon(x: float, y: float) -> float:
    pi = math.pi
    ret = 300.0 + x + 2.0 * y + 0.1 * x * x + 0.1 * x * y + 0.1 * math.sqrt(abs(x))
    ret += (20.0 * math.sin(6.0 * x * pi) + 20.0 * math.sin(2.0 * x * pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * pi) + 40.0 * math.sin(x / 3.0 * pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * pi) + 300.0 * math.sin(x / 30.0 * pi)) * 2.0 / 3.0
    return ret
