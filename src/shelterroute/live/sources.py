"""
Position sources for the watch loop.

A source is a producer of a lazy, possibly infinite sequence of positions. Each call to
`subscribe()` starts a new iterator, so a source can be watched again after `stop()`
(a `ReplaySource` starts over; a `JsonLinesSource` continues from the stream's position).
Closing the iterator detaches the subscriber without affecting the source itself.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any, Protocol, TextIO

from shelterroute.core.geo import GeoPoint, in_range

logger = logging.getLogger(__name__)


class PositionSource(Protocol):
    def subscribe(self) -> AsyncIterator[GeoPoint]:
        ...


class ReplaySource:
    """Replays a fixed list of positions, optionally pausing between them."""

    def __init__(self, positions: Iterable[GeoPoint], *, delay_seconds: float = 0.0):
        self._positions = list(positions)
        self._delay = float(delay_seconds)

    async def subscribe(self) -> AsyncIterator[GeoPoint]:
        for i, position in enumerate(self._positions):
            if i and self._delay > 0:
                await asyncio.sleep(self._delay)
            yield position


def parse_position(obj: Any) -> GeoPoint:
    """Build a `GeoPoint` from `{"lat", "lon"}` or `{"latitude", "longitude"}`.

    Raises:
        ValueError: Missing keys, non-numeric values or out-of-range coordinates.
    """
    if not isinstance(obj, dict):
        raise ValueError("position must be a JSON object")
    lat = obj.get("lat", obj.get("latitude"))
    lon = obj.get("lon", obj.get("longitude"))
    if lat is None or lon is None:
        raise ValueError("position needs lat/lon (or latitude/longitude)")
    lat, lon = float(lat), float(lon)
    if not in_range(lat, lon):
        raise ValueError(f"position out of range: lat={lat} lon={lon}")
    return GeoPoint(lat=lat, lon=lon)


class JsonLinesSource:
    """Reads one JSON position per line from a text stream (e.g. a file or stdin).

    Blank lines are ignored; malformed lines are logged and skipped. Reads happen in a
    worker thread so an idle stream (a terminal) does not block the event loop.
    """

    def __init__(self, stream: TextIO, *, delay_seconds: float = 0.0):
        self._stream = stream
        self._delay = float(delay_seconds)

    async def subscribe(self) -> AsyncIterator[GeoPoint]:
        first = True
        while True:
            line = await asyncio.to_thread(self._stream.readline)
            if not line:
                return
            line = line.strip()
            if not line:
                continue
            try:
                position = parse_position(json.loads(line))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed position line %r: %s", line, exc)
                continue
            if not first and self._delay > 0:
                await asyncio.sleep(self._delay)
            first = False
            yield position
