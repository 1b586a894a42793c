from __future__ import annotations

import argparse
import json
import random
import sys

from shelterroute.core.geo import GeoPoint, haversine_m


def _interpolate(a: GeoPoint, b: GeoPoint, steps: int) -> list[GeoPoint]:
    # Straight-line lerp in degrees; fine for walking-scale distances.
    return [
        GeoPoint(lat=a.lat + (b.lat - a.lat) * i / steps, lon=a.lon + (b.lon - a.lon) * i / steps)
        for i in range(steps + 1)
    ]


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        description="Emit a JSON-lines position stream for `shelterroute watch` (walk from A to B)."
    )
    p.add_argument("--from-lat", type=float, required=True)
    p.add_argument("--from-lon", type=float, required=True)
    p.add_argument("--to-lat", type=float, required=True)
    p.add_argument("--to-lon", type=float, required=True)
    p.add_argument("--steps", type=int, default=20)
    p.add_argument("--jitter-m", type=float, default=0.0, help="Random GPS noise radius in meters.")
    p.add_argument("--seed", type=int, default=None)
    args = p.parse_args(argv)

    if args.steps <= 0:
        print("--steps must be > 0", file=sys.stderr)
        return 2

    rng = random.Random(args.seed)
    start = GeoPoint(lat=args.from_lat, lon=args.from_lon)
    end = GeoPoint(lat=args.to_lat, lon=args.to_lon)
    jitter_deg = args.jitter_m / 111_320.0

    for point in _interpolate(start, end, args.steps):
        lat = point.lat + rng.uniform(-jitter_deg, jitter_deg) if jitter_deg else point.lat
        lon = point.lon + rng.uniform(-jitter_deg, jitter_deg) if jitter_deg else point.lon
        print(json.dumps({"lat": round(lat, 7), "lon": round(lon, 7)}))

    print(f"walk length ~{haversine_m(start, end):.0f} m", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
