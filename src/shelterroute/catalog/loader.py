"""
Shelter catalog loader and in-memory registry.

Shelters come from one of two places:
- a local JSON file (`catalog.path`): either a list of `{name, lat, lon}` objects or a
  GeoJSON FeatureCollection of Point features,
- the `catalog.shelters` list in the settings YAML (default).

They are validated into `Shelter` models and held by a `ShelterRegistry` for the life
of the process. The registry only grows through the dev-only add endpoint.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from shelterroute.config.settings import Settings
from shelterroute.core.env import resolve_project_path
from shelterroute.domain.models import GeoPoint, Shelter


_SHELTERS_ADAPTER = TypeAdapter(list[Shelter])


def _normalize_rows(payload: Any) -> list[dict[str, Any]]:
    """Accept a flat list or a FeatureCollection and return `Shelter`-shaped dicts."""
    if isinstance(payload, dict) and payload.get("type") == "FeatureCollection":
        return [Shelter.from_feature(f).model_dump() for f in payload.get("features") or []]
    if not isinstance(payload, list):
        raise ValueError("Expected a list of shelters or a GeoJSON FeatureCollection.")
    rows: list[dict[str, Any]] = []
    for item in payload:
        if isinstance(item, dict) and "location" not in item:
            rows.append({"name": item.get("name"), "location": {"lat": item.get("lat"), "lon": item.get("lon")}})
        else:
            rows.append(item)
    return rows


def load_shelters(path: str | Path) -> list[Shelter]:
    """Load and validate a shelters JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return _SHELTERS_ADAPTER.validate_python(_normalize_rows(payload))


def shelters_from_settings(settings: Settings) -> list[Shelter]:
    """Return the configured shelters (file wins over the inline YAML list)."""
    if settings.catalog.path:
        return load_shelters(settings.catalog.path)
    return [
        Shelter(name=s.name, location=GeoPoint(lat=s.lat, lon=s.lon))
        for s in settings.catalog.shelters
    ]


class ShelterRegistry:
    """Thread-safe, append-only shelter list."""

    def __init__(self, shelters: list[Shelter] | None = None):
        self._shelters = list(shelters or [])
        self._lock = threading.Lock()

    def list(self) -> list[Shelter]:
        with self._lock:
            return list(self._shelters)

    def add(self, shelter: Shelter) -> list[Shelter]:
        with self._lock:
            self._shelters.append(shelter)
            return list(self._shelters)

    def __len__(self) -> int:
        with self._lock:
            return len(self._shelters)
