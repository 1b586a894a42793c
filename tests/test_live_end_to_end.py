from __future__ import annotations

import httpx
import pytest

from shelterroute.api.app import app
from shelterroute.catalog.loader import ShelterRegistry
from shelterroute.core.cache import MemoryStore
from shelterroute.core.geo import GeoPoint
from shelterroute.core.rate_limit import MinIntervalThrottle
from shelterroute.domain.models import GeoPoint as ModelGeoPoint
from shelterroute.domain.models import Shelter
from shelterroute.live.client import ShelterApiClient
from shelterroute.live.sources import ReplaySource
from shelterroute.live.watcher import LiveRouteWatcher
from shelterroute.routing.gateway import RouteGateway


class _StubProvider:
    configured = True

    def __init__(self):
        self.calls = 0

    def get_directions(self, start, end):
        self.calls += 1
        mid = [(start.lon + end.lon) / 2, (start.lat + end.lat) / 2]
        return {"features": [{"geometry": {"coordinates": [[start.lon, start.lat], mid, [end.lon, end.lat]]}}]}


@pytest.mark.asyncio
async def test_watcher_gets_route_through_gateway(monkeypatch):
    import shelterroute.api.routes as routes

    provider = _StubProvider()
    gw = RouteGateway(
        provider=provider,
        store=MemoryStore(),
        registry=ShelterRegistry(
            [
                Shelter(name="A", location=ModelGeoPoint(lat=12.9721, lon=77.5933)),
                Shelter(name="B", location=ModelGeoPoint(lat=12.9755, lon=77.5980)),
            ]
        ),
        route_ttl_seconds=30,
    )
    monkeypatch.setattr(routes, "_gateway", lambda: gw)

    now = {"t": 0.0}
    transport = httpx.ASGITransport(app=app)
    async with ShelterApiClient(httpx.AsyncClient(transport=transport, base_url="http://gateway.test")) as api:
        watcher = LiveRouteWatcher(api, throttle=MinIntervalThrottle(5.0, clock=lambda: now["t"]))
        await watcher.run(ReplaySource([GeoPoint(lat=12.9730, lon=77.5940)]))
        first = watcher.route

        # Same position again after the throttle interval: the gateway answers from its cache.
        now["t"] = 5.0
        await watcher.run(ReplaySource([GeoPoint(lat=12.9730, lon=77.5940)]))
        second = watcher.route

    assert watcher.nearest is not None and watcher.nearest.shelter.name == "A"
    assert first is not None and first.from_cache is False
    assert first.points[0] == GeoPoint(lat=12.9730, lon=77.5940)
    assert first.points[-1] == GeoPoint(lat=12.9721, lon=77.5933)
    assert len(first.points) == 3
    assert second is not None and second.from_cache is True
    assert provider.calls == 1
