"""Nearest-shelter selection by great-circle distance."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from shelterroute.core.geo import GeoPoint, haversine_m
from shelterroute.domain.models import Shelter


@dataclass(frozen=True)
class NearestResult:
    """The closest shelter to a position and its distance in meters."""

    shelter: Shelter
    distance_m: float


def find_nearest(position: GeoPoint, shelters: Iterable[Shelter]) -> NearestResult | None:
    """Linear scan; ties keep the first shelter in input order. Empty input returns None."""
    best: NearestResult | None = None
    for shelter in shelters:
        d = haversine_m(position, shelter.point)
        if best is None or d < best.distance_m:
            best = NearestResult(shelter=shelter, distance_m=d)
    return best
