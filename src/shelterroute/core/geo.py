from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, isfinite, radians, sin, sqrt

"""
Geospatial helpers.

We keep a tiny geometry layer here so the selector and gateway can do distance
calculations and coordinate parsing without pulling in heavier GIS dependencies.

Coordinate order: `GeoPoint` is (lat, lon). Wire strings follow the routing
provider's "lon,lat" order; `parse_lon_lat` / `format_lon_lat` are the only
places that convert between the two.
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h a hair above 1 for near-antipodal points.
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def in_range(lat: float, lon: float) -> bool:
    return isfinite(lat) and isfinite(lon) and -90 <= lat <= 90 and -180 <= lon <= 180


def parse_lon_lat(text: str) -> GeoPoint:
    """Parse a provider-style "lon,lat" string.

    Raises:
        ValueError: If the string is not two finite numbers within range.
    """
    parts = [p.strip() for p in str(text).split(",")]
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"expected 'lon,lat', got {text!r}")
    lon = float(parts[0])
    lat = float(parts[1])
    if not in_range(lat, lon):
        raise ValueError(f"coordinates out of range: {text!r}")
    return GeoPoint(lat=lat, lon=lon)


def format_lon_lat(point: GeoPoint) -> str:
    """Format a point as "lon,lat" (provider order)."""
    return f"{point.lon},{point.lat}"
