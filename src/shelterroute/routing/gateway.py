"""
Shelter/route gateway.

Sits between the HTTP layer and the routing provider:
- serves the in-memory shelter list (and the dev-only append),
- validates `start`/`end` ("lon,lat") before anything else,
- answers repeated identical route requests from a short-TTL cache,
- enforces a per-client request ceiling over a rolling window.

All shared mutable state (route cache, rate-limit hit logs) lives in one `KeyedStore`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from shelterroute.catalog.loader import ShelterRegistry, shelters_from_settings
from shelterroute.config.settings import Settings
from shelterroute.core.cache import KeyedStore, MemoryStore
from shelterroute.core.errors import ConfigurationError, RateLimitError, ValidationError
from shelterroute.core.geo import GeoPoint, parse_lon_lat
from shelterroute.core.rate_limit import RateLimitDecision, SlidingWindowRateLimiter
from shelterroute.domain.models import Shelter, ShelterCreate
from shelterroute.ingestion.ors_client import OpenRouteServiceClient

logger = logging.getLogger(__name__)

ROUTE_NAMESPACE = "route"
MISSING_ENDPOINTS_MESSAGE = "start and end required as query params (lon,lat)"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

# Expired entries are only dropped when their key is read again; sweep periodically.
_PURGE_EVERY_N_CALLS = 256


class DirectionsProvider(Protocol):
    @property
    def configured(self) -> bool:
        ...

    def get_directions(self, start: GeoPoint, end: GeoPoint) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class RouteResult:
    """Provider payload plus whether it was served from the cache."""

    data: Any
    from_cache: bool

    def as_dict(self) -> dict[str, Any]:
        return {"fromCache": self.from_cache, "data": self.data}


def _parse_endpoint(name: str, raw: str) -> GeoPoint:
    try:
        return parse_lon_lat(raw)
    except ValueError as exc:
        raise ValidationError(
            f"{name} must be 'lon,lat' with lon in [-180,180] and lat in [-90,90]"
        ) from exc


class RouteGateway:
    """Shelter list + cached, rate-limited route proxy."""

    def __init__(
        self,
        *,
        provider: DirectionsProvider,
        store: KeyedStore,
        registry: ShelterRegistry,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        route_ttl_seconds: float = 30,
        cache_enabled: bool = True,
        env: str = "development",
    ):
        self._provider = provider
        self._store = store
        self._registry = registry
        self._rate_limiter = rate_limiter
        self._route_ttl_seconds = float(route_ttl_seconds)
        self._cache_enabled = cache_enabled
        self._calls = 0
        self.env = env

    @classmethod
    def from_settings(cls, settings: Settings, *, store: MemoryStore | None = None) -> "RouteGateway":
        store = store or MemoryStore()
        limiter = None
        if settings.rate_limit.enabled:
            limiter = SlidingWindowRateLimiter(
                store,
                max_requests=settings.rate_limit.max_requests,
                window_seconds=settings.rate_limit.window_seconds,
                clock=store.now,
            )
        return cls(
            provider=OpenRouteServiceClient(settings),
            store=store,
            registry=ShelterRegistry(shelters_from_settings(settings)),
            rate_limiter=limiter,
            route_ttl_seconds=settings.cache.route_ttl_seconds,
            cache_enabled=settings.cache.enabled,
            env=settings.app.env,
        )

    def _sweep_periodically(self) -> None:
        self._calls += 1
        if self._calls % _PURGE_EVERY_N_CALLS == 0 and isinstance(self._store, MemoryStore):
            self._store.purge_expired()

    @property
    def writes_allowed(self) -> bool:
        return self.env != "production"

    def list_shelters(self) -> list[Shelter]:
        return self._registry.list()

    def add_shelter(self, body: ShelterCreate) -> list[Shelter]:
        """Append a shelter (non-production only) and return the updated list."""
        if not self.writes_allowed:
            raise ConfigurationError("Adding shelters is disabled in production.")
        shelter = body.to_shelter()
        logger.info("Adding shelter %r at lat=%.5f lon=%.5f", shelter.name, shelter.location.lat, shelter.location.lon)
        return self._registry.add(shelter)

    def request_route(self, start: str | None, end: str | None) -> RouteResult:
        """Return directions from `start` to `end` (both "lon,lat").

        Raises:
            ValidationError: Missing or malformed coordinates.
            ConfigurationError: Provider credential not configured.
            UpstreamError / TransientError: From the provider client.
        """
        if not start or not end:
            raise ValidationError(MISSING_ENDPOINTS_MESSAGE)
        start_point = _parse_endpoint("start", start)
        end_point = _parse_endpoint("end", end)
        self._sweep_periodically()

        if not self._provider.configured:
            raise ConfigurationError("ORS_API_KEY not configured on server.")

        # Keyed by the exact strings the caller sent.
        key = f"{start}|{end}"
        if self._cache_enabled:
            cached = self._store.get(ROUTE_NAMESPACE, key)
            if cached is not None:
                logger.debug("Route cache hit for %s", key)
                return RouteResult(data=cached, from_cache=True)

        data = self._provider.get_directions(start_point, end_point)
        if self._cache_enabled:
            self._store.set(ROUTE_NAMESPACE, key, data, ttl_seconds=self._route_ttl_seconds)
        return RouteResult(data=data, from_cache=False)

    def check_rate_limit(self, client_key: str) -> RateLimitDecision | None:
        """Record one request for `client_key`; raise `RateLimitError` beyond the ceiling.

        Returns None when rate limiting is disabled.
        """
        if self._rate_limiter is None:
            return None
        self._sweep_periodically()
        decision = self._rate_limiter.hit(client_key)
        if not decision.allowed:
            logger.warning("Rate limit exceeded for client %s", client_key)
            raise RateLimitError(
                RATE_LIMIT_MESSAGE,
                retry_after_seconds=decision.reset_after_seconds,
                limit=decision.limit,
            )
        return decision
