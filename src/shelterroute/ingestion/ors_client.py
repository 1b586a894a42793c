"""
Routing provider client (OpenRouteService directions API).

This module is responsible only for:
- building the directions request (profile, `start`/`end` in "lon,lat" order, auth header),
- translating httpx failures into the gateway's error taxonomy.

Caching and rate limiting happen in `shelterroute.routing.gateway`; there are no retries here.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shelterroute.config.settings import Settings
from shelterroute.core.errors import ConfigurationError, TransientError, UpstreamError
from shelterroute.core.geo import GeoPoint, format_lon_lat
from shelterroute.core.http import get_json

logger = logging.getLogger(__name__)


class OpenRouteServiceClient:
    """Fetches walking directions for a start/end pair."""

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def configured(self) -> bool:
        return bool(self._settings.provider.api_key)

    def _directions_url(self) -> str:
        provider = self._settings.provider
        return f"{provider.base_url.rstrip('/')}/{provider.profile}"

    def get_directions(self, start: GeoPoint, end: GeoPoint) -> dict[str, Any]:
        """Return the provider's raw GeoJSON directions payload.

        Raises:
            ConfigurationError: If `ORS_API_KEY` is not configured.
            UpstreamError: If the provider answers with a non-2xx status.
            TransientError: On network failure or an undecodable body.
        """
        api_key = self._settings.provider.api_key
        if not api_key:
            raise ConfigurationError("ORS_API_KEY not configured on server.")

        params = {"start": format_lon_lat(start), "end": format_lon_lat(end)}
        logger.info("Requesting route start=%s end=%s", params["start"], params["end"])
        try:
            payload = get_json(
                self._directions_url(),
                params=params,
                headers={"Authorization": api_key, "Accept": "application/json"},
                timeout_seconds=self._settings.app.http_timeout_seconds,
            )
        except httpx.HTTPStatusError as exc:
            resp = exc.response
            logger.warning("Provider returned HTTP %s for start=%s end=%s", resp.status_code, params["start"], params["end"])
            raise UpstreamError(
                f"Provider returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
                content_type=resp.headers.get("content-type"),
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Route request failed: %s", exc)
            raise TransientError("Failed to fetch route") from exc
        except ValueError as exc:
            logger.error("Provider returned a non-JSON body: %s", exc)
            raise TransientError("Failed to fetch route") from exc

        if not isinstance(payload, dict):
            raise TransientError("Failed to fetch route")
        return payload
