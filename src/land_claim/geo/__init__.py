"""Geographic primitives: points, distances, areas and datum conversion."""

from land_claim.geo.datum import from_display_datum, in_offset_region, to_display_datum
from land_claim.geo.geometry import (
    has_self_intersection,
    point_in_polygon,
    point_to_segment_distance_m,
    segments_intersect,
)
from land_claim.geo.models import GeoPoint, PositionFix
from land_claim.geo.sphere import distance_m, path_length_m, spherical_area

__all__ = [
    "GeoPoint",
    "PositionFix",
    "distance_m",
    "from_display_datum",
    "has_self_intersection",
    "in_offset_region",
    "path_length_m",
    "point_in_polygon",
    "point_to_segment_distance_m",
    "segments_intersect",
    "spherical_area",
    "to_display_datum",
]
