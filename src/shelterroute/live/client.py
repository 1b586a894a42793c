"""
Async client for the gateway's HTTP API, used by the watch loop.

Coordinate order matters here: the API speaks "lon,lat" strings and GeoJSON `[lon, lat]`
pairs; everything returned from this module is `GeoPoint(lat, lon)`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from shelterroute.core.geo import GeoPoint, format_lon_lat
from shelterroute.core.http import build_async_client
from shelterroute.domain.models import Shelter

logger = logging.getLogger(__name__)


class ShelterApiError(Exception):
    """The gateway answered with an error or an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None, details: Any = None) -> None:
        self.status_code = status_code
        self.details = details
        super().__init__(message)


@dataclass(frozen=True)
class Route:
    """A route polyline (start to end) plus the raw gateway response."""

    points: list[GeoPoint] = field(default_factory=list)
    from_cache: bool = False
    raw: Any = None


class ShelterApi(Protocol):
    """What the watch loop needs from the gateway; tests pass simple fakes."""

    async def fetch_shelters(self) -> list[Shelter]:
        ...

    async def fetch_route(self, start: GeoPoint, end: GeoPoint) -> Route:
        ...


def route_points_from_payload(payload: Any) -> list[GeoPoint]:
    """Extract `features[0].geometry.coordinates` ([lon, lat] pairs) as `GeoPoint`s.

    Accepts the gateway envelope (`{"data": ...}`) or a bare provider payload. Missing
    or malformed geometry yields an empty list.
    """
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    try:
        coords = payload["features"][0]["geometry"]["coordinates"]
    except (KeyError, IndexError, TypeError):
        return []
    if not isinstance(coords, list):
        return []
    points: list[GeoPoint] = []
    for pair in coords:
        try:
            lon, lat = float(pair[0]), float(pair[1])
        except (IndexError, TypeError, ValueError):
            return []
        points.append(GeoPoint(lat=lat, lon=lon))
    return points


def shelters_from_feature_collection(payload: Any) -> list[Shelter]:
    if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
        raise ShelterApiError("Unexpected shelters payload; expected a FeatureCollection.", details=payload)
    try:
        return [Shelter.from_feature(f) for f in payload["features"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise ShelterApiError(f"Invalid shelter feature: {exc}", details=payload) from exc


class ShelterApiClient:
    """`ShelterApi` over HTTP (`/api/shelters`, `/api/route`)."""

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    @classmethod
    def for_base_url(cls, base_url: str, *, timeout_seconds: float = 15) -> "ShelterApiClient":
        return cls(build_async_client(base_url, timeout_seconds=timeout_seconds))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ShelterApiClient":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def fetch_shelters(self) -> list[Shelter]:
        resp = await self._http.get("/api/shelters")
        if resp.status_code >= 400:
            raise ShelterApiError("Failed to load shelters", status_code=resp.status_code, details=self._json(resp))
        return shelters_from_feature_collection(self._json(resp))

    async def fetch_route(self, start: GeoPoint, end: GeoPoint) -> Route:
        params = {"start": format_lon_lat(start), "end": format_lon_lat(end)}
        logger.debug("Requesting route start=%s end=%s", params["start"], params["end"])
        resp = await self._http.get("/api/route", params=params)
        body = self._json(resp)
        if resp.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise ShelterApiError(
                message or "Route fetch failed", status_code=resp.status_code, details=body
            )
        if body is None:
            raise ShelterApiError("Route response was not JSON", status_code=resp.status_code)
        from_cache = bool(body.get("fromCache")) if isinstance(body, dict) else False
        return Route(points=route_points_from_payload(body), from_cache=from_cache, raw=body)
