"""
Live route watcher.

Consumes a stream of positions and keeps three "current" values up to date:
- the latest position,
- the nearest shelter (recomputed on every position),
- the latest route to that shelter (requested at most once per throttle interval).

Each position is handled to completion, including its awaited route request, before the
next one is read. Failures only update `status`; the loop keeps watching.

After `stop()`, or once a newer session has started, a route response that arrives late
is dropped instead of overwriting the current route.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from shelterroute.core.geo import GeoPoint
from shelterroute.core.rate_limit import MinIntervalThrottle
from shelterroute.domain.models import Shelter
from shelterroute.live.client import Route, ShelterApi, ShelterApiError
from shelterroute.live.nearest import NearestResult, find_nearest
from shelterroute.live.sources import PositionSource

logger = logging.getLogger(__name__)

# Failures a single reaction may hit; anything else is a bug and propagates.
_REACTION_ERRORS = (ShelterApiError, httpx.HTTPError, ValueError)


@dataclass(frozen=True)
class WatchSnapshot:
    position: GeoPoint | None
    nearest: NearestResult | None
    route: Route | None
    status: str


class LiveRouteWatcher:
    """Position stream → nearest shelter → throttled route requests."""

    def __init__(
        self,
        api: ShelterApi,
        *,
        throttle: MinIntervalThrottle | None = None,
        throttle_seconds: float = 5.0,
        on_update: Callable[[WatchSnapshot], None] | None = None,
    ):
        self._api = api
        self._throttle = throttle or MinIntervalThrottle(throttle_seconds)
        self._on_update = on_update

        self.position: GeoPoint | None = None
        self.nearest: NearestResult | None = None
        self.route: Route | None = None
        self.shelters: list[Shelter] | None = None
        self.status = "idle"

        self._session = 0
        self._active = False
        self._stopped = False
        self._stop_event: asyncio.Event | None = None

    @property
    def active(self) -> bool:
        return self._active

    def snapshot(self) -> WatchSnapshot:
        return WatchSnapshot(position=self.position, nearest=self.nearest, route=self.route, status=self.status)

    def _set_status(self, status: str) -> None:
        self.status = status
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.snapshot())

    async def load_shelters(self) -> list[Shelter]:
        """Fetch shelters once; on failure fall back to an empty list."""
        try:
            self.shelters = await self._api.fetch_shelters()
        except _REACTION_ERRORS as exc:
            logger.error("Failed to fetch shelters: %s", exc)
            self.shelters = []
        return self.shelters

    async def handle_position(self, position: GeoPoint, *, session: int | None = None) -> None:
        """React to one position update (never raises for expected failures)."""
        session = self._session if session is None else session
        self.position = position
        self._notify()
        try:
            shelters = self.shelters
            if shelters is None:
                shelters = await self._api.fetch_shelters()
                self.shelters = shelters
            self.nearest = find_nearest(position, shelters)
            self._notify()
            if self.nearest is None:
                self._set_status("no-shelters")
                return
            if not self._throttle.try_acquire():
                return

            self._set_status("requesting-route")
            route = await self._api.fetch_route(position, self.nearest.shelter.point)
        except _REACTION_ERRORS as exc:
            logger.warning("Route update failed: %s", exc)
            if self._is_current(session):
                self._set_status(f"error: {exc}")
            return

        if not self._is_current(session):
            logger.info("Discarding route that resolved after stop()")
            return
        self.route = route
        self._set_status("route-ready")

    def _is_current(self, session: int) -> bool:
        return not self._stopped and session == self._session

    async def run(self, source: PositionSource) -> None:
        """Watch `source` until it is exhausted or `stop()` is called."""
        self._session += 1
        session = self._session
        self._active = True
        self._stopped = False
        self._stop_event = asyncio.Event()
        self._set_status("watching")

        if self.shelters is None:
            await self.load_shelters()

        iterator = source.subscribe().__aiter__()
        stop_wait = asyncio.ensure_future(self._stop_event.wait())
        try:
            while not self._stop_event.is_set():
                next_position = asyncio.ensure_future(iterator.__anext__())
                done, _ = await asyncio.wait({next_position, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
                if next_position not in done:
                    next_position.cancel()
                    await asyncio.gather(next_position, return_exceptions=True)
                    break
                try:
                    position = next_position.result()
                except StopAsyncIteration:
                    break
                except (OSError, ValueError) as exc:
                    logger.error("Position source failed: %s", exc)
                    self._set_status(f"source-error: {exc}")
                    break
                await self.handle_position(position, session=session)
        finally:
            stop_wait.cancel()
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
            if session == self._session:
                self._active = False

    def stop(self) -> None:
        """Stop delivering positions; a route request already in flight is left to finish."""
        self._stopped = True
        if self._stop_event is not None:
            self._stop_event.set()
        self._set_status("stopped")
