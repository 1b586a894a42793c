"""
HTTP helpers.

This module centralizes the minimal HTTP client logic:
- `get_json`: blocking GET used by the provider client inside request handlers,
- `build_async_client`: the `httpx.AsyncClient` the live watcher uses to reach the gateway.

Design goals:
- Small surface area.
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (the gateway passes provider errors through).
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "shelterroute/0.1.0 (+https://local)"


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()


def build_async_client(base_url: str, *, timeout_seconds: float = 15) -> httpx.AsyncClient:
    """Async client with the same defaults, used by the live watcher to reach the gateway."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout_seconds,
        headers={"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"},
    )
