"""Replay a walk through the tracking engine without a device.

The walk is either a synthetic square or a JSON file of fixes
(``[{"lat": .., "lon": .., "accuracy": .., "timestamp": ..}, ...]``).
The engine clock follows the fix timestamps, so a replay is deterministic.

Usage:
    uv run python scripts/simulate_claim.py
    uv run python scripts/simulate_claim.py --side 80 --step 15
    uv run python scripts/simulate_claim.py --fixes walk.json --export-log
"""

from __future__ import annotations

import argparse
import json
import logging
import math

from dotenv import load_dotenv

load_dotenv()

from land_claim.config import EngineConfig  # noqa: E402
from land_claim.geo.models import GeoPoint, PositionFix  # noqa: E402
from land_claim.geo.sphere import EARTH_RADIUS_M  # noqa: E402
from land_claim.tracking.claim_log import ClaimLog  # noqa: E402
from land_claim.tracking.engine import TrackingEngine  # noqa: E402
from land_claim.tracking.events import EventKind  # noqa: E402
from land_claim.tracking.source import ReplaySource  # noqa: E402

_M_PER_DEG_LAT = math.pi * EARTH_RADIUS_M / 180.0


def _offset(origin: GeoPoint, north_m: float, east_m: float) -> GeoPoint:
    lat = origin.latitude + north_m / _M_PER_DEG_LAT
    lon = origin.longitude + east_m / (_M_PER_DEG_LAT * math.cos(math.radians(origin.latitude)))
    return GeoPoint(lat, lon)


def _square_walk(
    origin: GeoPoint, side_m: float, step_m: float, interval_s: float, t0: float
) -> list[PositionFix]:
    """Walk the square clockwise: north edge east, east edge south... back to start."""
    steps = max(1, int(side_m // step_m))
    offsets: list[tuple[float, float]] = []
    for i in range(steps):
        offsets.append((0.0, i * step_m))
    for i in range(steps):
        offsets.append((-i * step_m, side_m))
    for i in range(steps):
        offsets.append((-side_m, side_m - i * step_m))
    for i in range(steps + 1):
        offsets.append((-side_m + i * step_m, 0.0))
    return [
        PositionFix(_offset(origin, n, e), horizontal_accuracy=8.0, timestamp=t0 + k * interval_s)
        for k, (n, e) in enumerate(offsets)
    ]


def _load_fixes(path: str) -> list[PositionFix]:
    with open(path, encoding="utf-8") as fh:
        rows = json.load(fh)
    return [
        PositionFix(
            GeoPoint(float(r["lat"]), float(r["lon"])),
            horizontal_accuracy=float(r.get("accuracy", 10.0)),
            timestamp=float(r["timestamp"]),
        )
        for r in rows
    ]


def main() -> None:
    ap = argparse.ArgumentParser(description="Land claim — replay a walk through the engine")
    ap.add_argument("--fixes", default="", help="JSON file of recorded fixes")
    ap.add_argument("--lat", type=float, default=31.2304, help="Synthetic walk origin latitude")
    ap.add_argument("--lon", type=float, default=121.4737, help="Synthetic walk origin longitude")
    ap.add_argument("--side", type=float, default=60.0, help="Synthetic square side in metres")
    ap.add_argument("--step", type=float, default=20.0, help="Metres between synthetic fixes")
    ap.add_argument("--interval", type=float, default=10.0, help="Seconds between synthetic fixes")
    ap.add_argument("--export-log", action="store_true", help="Print the claim log at the end")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    claim_log = ClaimLog.attach() if args.export_log else None

    if args.fixes:
        fixes = _load_fixes(args.fixes)
    else:
        fixes = _square_walk(
            GeoPoint(args.lat, args.lon), args.side, args.step, args.interval, t0=0.0
        )
    if not fixes:
        print("No fixes to replay.")
        return

    source = ReplaySource(fixes)
    clock_now = [fixes[0].timestamp]
    engine = TrackingEngine(
        source, config=EngineConfig.from_env(), clock=lambda: clock_now[0]
    )
    print(f"Replaying {len(fixes)} fix(es).")

    engine.start()
    for fix in fixes:
        clock_now[0] = fix.timestamp
        for event in engine.tick():
            print(f"  [{event.kind.value}] points={event.point_count}", flush=True)
            if event.kind is EventKind.VALIDATION_FAILED and event.validation is not None:
                print(f"    {event.validation.message}")
        state = engine.state
        if not state.is_tracking or state.is_closed:
            break

    state = engine.state
    if state.ready_to_submit:
        payload = engine.submit(lambda p: None)
        print(
            f"Claim ready: {payload.point_count} points, {payload.area_m2:.0f} m², "
            f"started {payload.started_at}"
        )
    else:
        engine.stop()
        print("No territory claimed.")

    if claim_log is not None:
        print()
        print(claim_log.export())


if __name__ == "__main__":
    main()
