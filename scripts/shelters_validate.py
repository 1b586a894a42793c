from __future__ import annotations

import argparse
from collections import Counter

from shelterroute.catalog.loader import load_shelters
from shelterroute.core.env import resolve_project_path
from shelterroute.core.geo import haversine_m


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate a ShelterRoute shelters file (offline).")
    p.add_argument("path", type=str, help="JSON list of {name, lat, lon} or a GeoJSON FeatureCollection")
    p.add_argument(
        "--min-separation-m",
        type=float,
        default=5.0,
        help="Warn about shelters closer than this to each other (likely duplicates).",
    )
    args = p.parse_args(argv)

    path = resolve_project_path(args.path)
    if not path.exists():
        print("Shelters file not found:", path)
        return 2

    try:
        shelters = load_shelters(path)
    except ValueError as exc:
        print("Invalid shelters file:", exc)
        return 2

    dup_names = [name for name, n in Counter(s.name for s in shelters).items() if n > 1]

    close_pairs = []
    for i, a in enumerate(shelters):
        for b in shelters[i + 1 :]:
            d = haversine_m(a.point, b.point)
            if d < args.min_separation_m:
                close_pairs.append((a.name, b.name, d))

    print(f"shelters={len(shelters)} duplicate_names={len(dup_names)} close_pairs={len(close_pairs)}")
    for name in dup_names:
        print("  duplicate name:", name)
    for a_name, b_name, d in close_pairs:
        print(f"  {a_name!r} and {b_name!r} are {d:.1f} m apart")

    return 1 if (not shelters or dup_names) else 0


if __name__ == "__main__":
    raise SystemExit(main())
