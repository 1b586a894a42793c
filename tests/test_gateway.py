import pytest

from shelterroute.catalog.loader import ShelterRegistry
from shelterroute.core.cache import MemoryStore
from shelterroute.core.errors import ConfigurationError, RateLimitError, TransientError, ValidationError
from shelterroute.core.rate_limit import SlidingWindowRateLimiter
from shelterroute.domain.models import GeoPoint, Shelter, ShelterCreate
from shelterroute.routing.gateway import RouteGateway


class _Clock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


class _StubProvider:
    def __init__(self, configured: bool = True, error: Exception | None = None):
        self.configured = configured
        self.error = error
        self.calls = []

    def get_directions(self, start, end):
        self.calls.append((start, end))
        if self.error is not None:
            raise self.error
        return {"features": [{"geometry": {"coordinates": [[start.lon, start.lat], [end.lon, end.lat]]}}]}


def _gateway(provider, clock, *, max_requests=60, env="development") -> RouteGateway:
    store = MemoryStore(clock=clock)
    return RouteGateway(
        provider=provider,
        store=store,
        registry=ShelterRegistry([Shelter(name="A", location=GeoPoint(lat=12.9721, lon=77.5933))]),
        rate_limiter=SlidingWindowRateLimiter(store, max_requests=max_requests, window_seconds=900, clock=clock),
        route_ttl_seconds=30,
        env=env,
    )


def test_repeated_route_within_ttl_is_served_from_cache():
    clock = _Clock()
    provider = _StubProvider()
    gw = _gateway(provider, clock)

    first = gw.request_route("77.5940,12.9730", "77.5933,12.9721")
    clock.t += 10
    second = gw.request_route("77.5940,12.9730", "77.5933,12.9721")

    assert first.from_cache is False
    assert second.from_cache is True
    assert second.data == first.data
    assert len(provider.calls) == 1


def test_route_after_ttl_expiry_is_fetched_again():
    clock = _Clock()
    provider = _StubProvider()
    gw = _gateway(provider, clock)

    gw.request_route("77.5940,12.9730", "77.5933,12.9721")
    clock.t += 31
    again = gw.request_route("77.5940,12.9730", "77.5933,12.9721")

    assert again.from_cache is False
    assert len(provider.calls) == 2


def test_cache_key_is_the_exact_string_pair():
    provider = _StubProvider()
    gw = _gateway(provider, _Clock())

    gw.request_route("77.5940,12.9730", "77.5933,12.9721")
    other = gw.request_route("77.594,12.973", "77.5933,12.9721")

    assert other.from_cache is False
    assert len(provider.calls) == 2


def test_provider_receives_parsed_points_in_lat_lon():
    provider = _StubProvider()
    gw = _gateway(provider, _Clock())
    gw.request_route("77.5940,12.9730", "77.5933,12.9721")
    start, end = provider.calls[0]
    assert (start.lat, start.lon) == (12.9730, 77.5940)
    assert (end.lat, end.lon) == (12.9721, 77.5933)


def test_failed_provider_calls_are_not_cached():
    provider = _StubProvider(error=TransientError("Failed to fetch route"))
    gw = _gateway(provider, _Clock())

    with pytest.raises(TransientError):
        gw.request_route("77.5940,12.9730", "77.5933,12.9721")
    provider.error = None
    result = gw.request_route("77.5940,12.9730", "77.5933,12.9721")

    assert result.from_cache is False
    assert len(provider.calls) == 2


@pytest.mark.parametrize("start,end", [(None, "1,2"), ("1,2", None), ("", "1,2")])
def test_missing_endpoints_raise_validation_error(start, end):
    gw = _gateway(_StubProvider(configured=False), _Clock())
    with pytest.raises(ValidationError, match="start and end required"):
        gw.request_route(start, end)


def test_malformed_endpoint_names_the_parameter():
    gw = _gateway(_StubProvider(), _Clock())
    with pytest.raises(ValidationError, match="^end must be"):
        gw.request_route("77.5,12.9", "12.9")


def test_missing_credential_raises_configuration_error():
    provider = _StubProvider(configured=False)
    gw = _gateway(provider, _Clock())
    with pytest.raises(ConfigurationError, match="ORS_API_KEY"):
        gw.request_route("77.5,12.9", "77.6,12.8")
    assert provider.calls == []


def test_rate_limit_applies_independent_of_cache():
    gw = _gateway(_StubProvider(), _Clock(), max_requests=3)
    for _ in range(3):
        gw.check_rate_limit("1.2.3.4")
    with pytest.raises(RateLimitError) as exc_info:
        gw.check_rate_limit("1.2.3.4")
    assert exc_info.value.status_code == 429
    assert exc_info.value.limit == 3


def test_add_shelter_only_outside_production():
    dev = _gateway(_StubProvider(), _Clock())
    shelters = dev.add_shelter(ShelterCreate(name="New", lon=77.6, lat=12.97))
    assert [s.name for s in shelters] == ["A", "New"]

    prod = _gateway(_StubProvider(), _Clock(), env="production")
    with pytest.raises(ConfigurationError):
        prod.add_shelter(ShelterCreate(name="New", lon=77.6, lat=12.97))
    assert [s.name for s in prod.list_shelters()] == ["A"]


def test_expired_routes_are_swept_without_a_rate_limiter():
    clock = _Clock()
    store = MemoryStore(clock=clock)
    gw = RouteGateway(
        provider=_StubProvider(),
        store=store,
        registry=ShelterRegistry([]),
        rate_limiter=None,
        route_ttl_seconds=30,
    )
    for i in range(255):
        gw.request_route(f"77.{i:04d},12.9730", "77.5933,12.9721")
    clock.t += 31

    gw.request_route("77.9999,12.9730", "77.5933,12.9721")

    assert store.stats.expired == 255
    assert gw.check_rate_limit("1.2.3.4") is None
