"""Flat-plane geometry primitives for walking-scale polygons.

Longitude is treated as the X axis and latitude as the Y axis.  At the scale of
a walked loop (tens to hundreds of metres) the distortion of this projection
does not change any orientation sign, and the checks below only use signs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from land_claim.geo.models import GeoPoint
from land_claim.geo.sphere import distance_m

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Orientation and segment intersection
# ---------------------------------------------------------------------------

def ccw(a: GeoPoint, b: GeoPoint, c: GeoPoint) -> int:
    """Sign of the cross product (B - A) x (C - A).

    Returns ``1`` for a counter-clockwise turn, ``-1`` for clockwise and ``0``
    when the three points are collinear.
    """
    cross = (
        (b.longitude - a.longitude) * (c.latitude - a.latitude)
        - (b.latitude - a.latitude) * (c.longitude - a.longitude)
    )
    if cross > 0:
        return 1
    if cross < 0:
        return -1
    return 0


def segments_intersect(a: GeoPoint, b: GeoPoint, c: GeoPoint, d: GeoPoint) -> bool:
    """Return True if segment AB intersects segment CD.

    Standard CCW test: the endpoints of each segment lie on different sides of
    the other segment.  Collinear, non-overlapping segments do not intersect.
    """
    return ccw(a, c, d) != ccw(b, c, d) and ccw(a, b, c) != ccw(a, b, d)


# ---------------------------------------------------------------------------
# Self-intersection
# ---------------------------------------------------------------------------

def has_self_intersection(
    path: Sequence[GeoPoint],
    skip_head: int = 2,
    skip_tail: int = 2,
) -> bool:
    """Return True if two non-adjacent segments of *path* cross.

    A closing loop necessarily ends near its start, so comparisons between one
    of the first *skip_head* segments and one of the last *skip_tail* segments
    are not flagged.

    Args:
        path: Ordered points.  A tuple snapshot is taken before checking.
        skip_head: Number of leading segments in the closing window.
        skip_tail: Number of trailing segments in the closing window.

    Returns:
        True on the first crossing found.  Paths with fewer than 4 points
        never self-intersect.
    """
    snapshot = tuple(path)
    if len(snapshot) < 4:
        return False

    segment_count = len(snapshot) - 1

    for i in range(segment_count):
        p1 = snapshot[i]
        p2 = snapshot[i + 1]
        for j in range(i + 2, segment_count):
            if i < skip_head and j >= segment_count - skip_tail:
                continue
            if segments_intersect(p1, p2, snapshot[j], snapshot[j + 1]):
                _logger.debug("Segment %d-%d crosses segment %d-%d", i, i + 1, j, j + 1)
                return True

    return False


# ---------------------------------------------------------------------------
# Polygon queries
# ---------------------------------------------------------------------------

def point_in_polygon(point: GeoPoint, polygon: Sequence[GeoPoint]) -> bool:
    """Ray-casting containment test (horizontal ray towards +longitude).

    The polygon is implicitly closed.  Returns False for fewer than 3 vertices.
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].longitude, polygon[i].latitude
        xj, yj = polygon[j].longitude, polygon[j].latitude
        if (yi > point.latitude) != (yj > point.latitude):
            x_cross = (xj - xi) * (point.latitude - yi) / (yj - yi) + xi
            if point.longitude < x_cross:
                inside = not inside
        j = i

    return inside


def point_to_segment_distance_m(point: GeoPoint, start: GeoPoint, end: GeoPoint) -> float:
    """Shortest distance in metres from *point* to segment *start*-*end*.

    The projection parameter is computed in degree space and clamped to
    [0, 1]; the distance to the projected point is great-circle.
    """
    if distance_m(start, end) < 0.001:
        return distance_m(point, start)

    dlat = end.latitude - start.latitude
    dlon = end.longitude - start.longitude
    t = (
        (point.latitude - start.latitude) * dlat
        + (point.longitude - start.longitude) * dlon
    ) / (dlat * dlat + dlon * dlon)
    t = max(0.0, min(1.0, t))

    nearest = GeoPoint(
        latitude=start.latitude + t * dlat,
        longitude=start.longitude + t * dlon,
    )
    return distance_m(point, nearest)


def polygon_edges(polygon: Sequence[GeoPoint]):
    """Yield ``(start, end)`` for every edge of the implicitly closed *polygon*."""
    n = len(polygon)
    for i in range(n):
        yield polygon[i], polygon[(i + 1) % n]
