"""Great-circle distance and spherical polygon area."""

from __future__ import annotations

import math
from collections.abc import Sequence

from land_claim.geo.models import GeoPoint

EARTH_RADIUS_M = 6_371_000.0


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between *a* and *b* in metres."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def path_length_m(points: Sequence[GeoPoint]) -> float:
    """Sum of consecutive great-circle distances along *points* (open path)."""
    if len(points) < 2:
        return 0.0
    return sum(distance_m(points[i], points[i + 1]) for i in range(len(points) - 1))


def spherical_area(points: Sequence[GeoPoint]) -> float:
    """Enclosed area of the implicitly closed polygon *points*, in m².

    Spherical-excess variant of the shoelace formula::

        A = |Σ (λ[i+1] - λ[i]) * (2 + sin φ[i] + sin φ[i+1])| * R² / 2

    Accurate for loops that are small relative to the Earth's radius.
    Returns 0.0 for fewer than 3 points.
    """
    n = len(points)
    if n < 3:
        return 0.0

    total = 0.0
    for i in range(n):
        current = points[i]
        nxt = points[(i + 1) % n]
        lat1 = math.radians(current.latitude)
        lat2 = math.radians(nxt.latitude)
        lon1 = math.radians(current.longitude)
        lon2 = math.radians(nxt.longitude)
        total += (lon2 - lon1) * (2 + math.sin(lat1) + math.sin(lat2))

    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)
