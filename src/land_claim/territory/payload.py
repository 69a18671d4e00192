"""Build the values handed to the upload sink after a successful claim."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from land_claim.geo.models import GeoPoint
from land_claim.territory.models import ClaimPayload


def build_claim_payload(
    path: Sequence[GeoPoint], area_m2: float, started_at: float
) -> ClaimPayload:
    """Serialise *path*, *area_m2* and the epoch start time *started_at*."""
    return ClaimPayload(
        path=[p.to_dict() for p in path],
        area_m2=area_m2,
        started_at=datetime.fromtimestamp(started_at, tz=timezone.utc).isoformat(),
        point_count=len(path),
    )
