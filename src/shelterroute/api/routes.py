"""
API routes.

Endpoints:
- GET  `/api/health`: liveness + environment name.
- GET  `/api/shelters`: shelters as a GeoJSON FeatureCollection.
- GET  `/api/route`: cached, rate-limited proxy to the routing provider.
- POST `/api/shelters`: append a shelter (non-production only).

Domain errors raised here are rendered by the handlers registered in `shelterroute.api.app`.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from shelterroute.config.settings import get_settings
from shelterroute.core.rate_limit import RateLimitDecision
from shelterroute.domain.models import ShelterCreate, feature_collection
from shelterroute.routing.gateway import RouteGateway

router = APIRouter()


@lru_cache
def _gateway() -> RouteGateway:
    return RouteGateway.from_settings(get_settings())


def get_gateway() -> RouteGateway:
    return _gateway()


def client_key(request: Request) -> str:
    """Best-effort client address used as the rate-limit key."""
    if get_settings().rate_limit.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def set_rate_limit_headers(response: Response, decision: RateLimitDecision) -> None:
    response.headers["RateLimit-Limit"] = str(decision.limit)
    response.headers["RateLimit-Remaining"] = str(decision.remaining)
    response.headers["RateLimit-Reset"] = str(decision.reset_after_seconds)


def enforce_rate_limit(
    request: Request,
    response: Response,
    gateway: RouteGateway = Depends(get_gateway),
) -> None:
    """Count this request against the client's ceiling (raises `RateLimitError` when exceeded)."""
    decision = gateway.check_rate_limit(client_key(request))
    if decision is not None:
        set_rate_limit_headers(response, decision)


@router.get("/api/health")
def get_health() -> dict:
    """Liveness probe (not rate limited)."""
    return {"status": "ok", "env": get_settings().app.env}


@router.get("/api/shelters", dependencies=[Depends(enforce_rate_limit)])
def get_shelters(gateway: RouteGateway = Depends(get_gateway)) -> dict:
    """Return all shelters as a GeoJSON FeatureCollection ([lon, lat] coordinates)."""
    return feature_collection(gateway.list_shelters())


@router.get("/api/route", dependencies=[Depends(enforce_rate_limit)])
def get_route(
    start: str | None = Query(default=None, description="lon,lat"),
    end: str | None = Query(default=None, description="lon,lat"),
    gateway: RouteGateway = Depends(get_gateway),
) -> dict:
    """Return walking directions from `start` to `end`, tagged with `fromCache`."""
    return gateway.request_route(start, end).as_dict()


def require_writes(gateway: RouteGateway = Depends(get_gateway)) -> None:
    """Hide write endpoints in production; runs before the request body is validated."""
    if not gateway.writes_allowed:
        raise HTTPException(status_code=404, detail="Not Found")


@router.post(
    "/api/shelters",
    status_code=201,
    dependencies=[Depends(require_writes), Depends(enforce_rate_limit)],
)
def post_shelter(body: ShelterCreate, gateway: RouteGateway = Depends(get_gateway)) -> dict:
    """Append a shelter and return the updated FeatureCollection (dev only)."""
    return feature_collection(gateway.add_shelter(body))
