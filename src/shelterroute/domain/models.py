"""
Domain models (Pydantic).

These types are the contract between the catalog, the gateway and the HTTP layer:
- `Shelter`: a named point of safety (`GeoPoint` is lat/lon, range-validated),
- `ShelterCreate`: the dev-only `POST /api/shelters` body (provider order: lon, lat),
- GeoJSON helpers for the `GET /api/shelters` FeatureCollection.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from shelterroute.core.geo import GeoPoint as CoreGeoPoint


class GeoPoint(BaseModel):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_core(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lon=self.lon)


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("name must not be blank")
    return name


class Shelter(BaseModel):
    """A named shelter with fixed coordinates."""

    name: str = Field(..., min_length=1)
    location: GeoPoint

    @field_validator("name")
    @classmethod
    def _strip_name(cls, name: str) -> str:
        return _clean_name(name)

    @property
    def point(self) -> CoreGeoPoint:
        return self.location.to_core()

    def to_feature(self) -> dict[str, Any]:
        """GeoJSON Point feature; coordinates are [lon, lat]."""
        return {
            "type": "Feature",
            "properties": {"name": self.name},
            "geometry": {"type": "Point", "coordinates": [self.location.lon, self.location.lat]},
        }

    @classmethod
    def from_feature(cls, feature: dict[str, Any]) -> "Shelter":
        lon, lat = feature["geometry"]["coordinates"][:2]
        name = (feature.get("properties") or {}).get("name")
        return cls(name=name, location=GeoPoint(lat=lat, lon=lon))


class ShelterCreate(BaseModel):
    """Body of `POST /api/shelters`."""

    name: str = Field(..., min_length=1)
    lon: float = Field(..., ge=-180, le=180)
    lat: float = Field(..., ge=-90, le=90)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, name: str) -> str:
        return _clean_name(name)

    def to_shelter(self) -> Shelter:
        return Shelter(name=self.name, location=GeoPoint(lat=self.lat, lon=self.lon))


def feature_collection(shelters: list[Shelter]) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": [s.to_feature() for s in shelters]}
