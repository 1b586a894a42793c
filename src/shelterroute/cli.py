"""
ShelterRoute CLI entrypoint.

Subcommands:
- `serve`: run the gateway API with uvicorn.
- `shelters`: list configured shelters.
- `nearest`: offline nearest-shelter lookup for one position.
- `watch`: replay positions (JSON lines) through the live watcher against a running gateway.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import uvicorn

from shelterroute.catalog.loader import shelters_from_settings
from shelterroute.config.settings import get_settings
from shelterroute.core.geo import GeoPoint
from shelterroute.core.logging import configure_logging
from shelterroute.domain.models import feature_collection
from shelterroute.live.client import ShelterApiClient
from shelterroute.live.nearest import find_nearest
from shelterroute.live.sources import JsonLinesSource
from shelterroute.live.watcher import LiveRouteWatcher, WatchSnapshot


def _cmd_serve(args: argparse.Namespace) -> int:
    uvicorn.run("shelterroute.api.app:app", host=args.host, port=int(args.port), reload=bool(args.reload))
    return 0


def _cmd_shelters(args: argparse.Namespace) -> int:
    shelters = shelters_from_settings(get_settings())
    if args.json:
        print(json.dumps(feature_collection(shelters), ensure_ascii=False, indent=2))
        return 0
    for s in shelters:
        print(f"{s.name}  lat={s.location.lat:.5f} lon={s.location.lon:.5f}")
    return 0


def _cmd_nearest(args: argparse.Namespace) -> int:
    shelters = shelters_from_settings(get_settings())
    result = find_nearest(GeoPoint(lat=float(args.lat), lon=float(args.lon)), shelters)
    if result is None:
        print("No shelters configured.", file=sys.stderr)
        return 1
    if args.json:
        payload = {"shelter": result.shelter.to_feature(), "distance_m": round(result.distance_m, 1)}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    print(f"{result.shelter.name}: {result.distance_m:.0f} m")
    return 0


def _format_snapshot(snap: WatchSnapshot) -> str:
    parts = [f"[{snap.status}]"]
    if snap.position is not None:
        parts.append(f"pos={snap.position.lat:.5f},{snap.position.lon:.5f}")
    if snap.nearest is not None:
        parts.append(f"nearest={snap.nearest.shelter.name} ({snap.nearest.distance_m:.0f} m)")
    if snap.route is not None:
        parts.append(f"route={len(snap.route.points)} pts{' (cached)' if snap.route.from_cache else ''}")
    return " ".join(parts)


async def _watch(args: argparse.Namespace) -> int:
    settings = get_settings()
    api_base = args.api_base or settings.live.api_base
    throttle = settings.live.throttle_seconds if args.throttle is None else float(args.throttle)

    last_line = {"text": ""}

    def on_update(snap: WatchSnapshot) -> None:
        line = _format_snapshot(snap)
        if line != last_line["text"]:
            print(line, flush=True)
            last_line["text"] = line

    stream = sys.stdin if args.file == "-" else open(args.file, encoding="utf-8")
    try:
        async with ShelterApiClient.for_base_url(
            api_base, timeout_seconds=settings.live.request_timeout_seconds
        ) as api:
            watcher = LiveRouteWatcher(api, throttle_seconds=throttle, on_update=on_update)
            await watcher.run(JsonLinesSource(stream, delay_seconds=float(args.delay)))
    finally:
        if stream is not sys.stdin:
            stream.close()
    return 0


def _cmd_watch(args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_watch(args))
    except KeyboardInterrupt:
        return 130


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ShelterRoute CLI."""
    parser = argparse.ArgumentParser(prog="shelterroute")
    parser.add_argument("--log-level", default=None, help="Override app.log_level (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    srv = sub.add_parser("serve", help="Run the gateway API (uvicorn).")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=5000)
    srv.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev).")
    srv.set_defaults(func=_cmd_serve)

    sh = sub.add_parser("shelters", help="List configured shelters.")
    sh.add_argument("--json", action="store_true", help="Output a GeoJSON FeatureCollection")
    sh.set_defaults(func=_cmd_shelters)

    near = sub.add_parser("nearest", help="Find the nearest configured shelter to a position (offline).")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lon", required=True, type=float)
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearest)

    w = sub.add_parser("watch", help="Replay JSON-lines positions through the live watcher.")
    w.add_argument("--api-base", default=None, help="Gateway base URL (default: live.api_base)")
    w.add_argument(
        "--file",
        default="-",
        help='File with one {"lat": .., "lon": ..} object per line; "-" reads stdin.',
    )
    w.add_argument("--delay", type=float, default=0.0, help="Seconds to wait between positions.")
    w.add_argument("--throttle", type=float, default=None, help="Minimum seconds between route requests.")
    w.set_defaults(func=_cmd_watch)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m shelterroute.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
