"""WGS84 coordinates and great-circle distance."""

import math
from dataclasses import dataclass
from typing import Optional

from glassquote.exceptions import InvalidCoordinates

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float
    label: Optional[str] = None

    def __post_init__(self) -> None:
        for value, name, bound in (
            (self.latitude, "latitude", 90.0),
            (self.longitude, "longitude", 180.0),
        ):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidCoordinates(f"{name} must be a number", field=name)
            if not math.isfinite(value):
                raise InvalidCoordinates(f"{name} must be finite", field=name)
            if not -bound <= value <= bound:
                raise InvalidCoordinates(
                    f"{name} must be between {-bound:g} and {bound:g}, got {value}",
                    field=name,
                )
        object.__setattr__(self, "latitude", float(self.latitude))
        object.__setattr__(self, "longitude", float(self.longitude))


def haversine_distance_m(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance in meters on a spherical Earth."""
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    delta_lat = lat2 - lat1
    delta_lon = math.radians(destination.longitude - origin.longitude)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push h a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(h, 1.0)))
