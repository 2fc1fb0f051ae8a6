"""
Geospatial helpers: great-circle distance, service-area box, polygon containment.

Polygons are rings of (longitude, latitude) vertices, the same order GeoJSON uses.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from shapely.geometry import Point
from shapely.geometry import Polygon as ShapelyPolygon

EARTH_RADIUS_METERS = 6371000

Polygon = Sequence[Tuple[float, float]]


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance in meters between two points using the Haversine formula."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


@dataclass(frozen=True)
class BoundingBox:
    """Rectangular lat/lon region. Bounds are inclusive."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.min_lat <= latitude <= self.max_lat and self.min_lon <= longitude <= self.max_lon

    def as_polygon(self) -> List[Tuple[float, float]]:
        return [
            (self.min_lon, self.min_lat),  # Southwest
            (self.max_lon, self.min_lat),  # Southeast
            (self.max_lon, self.max_lat),  # Northeast
            (self.min_lon, self.max_lat),  # Northwest
            (self.min_lon, self.min_lat),  # Close ring
        ]


def point_in_polygon(latitude: float, longitude: float, polygon: Polygon) -> bool:
    """
    Polygon containment; points lying exactly on an edge are treated as inside.

    The ring may or may not repeat its first vertex at the end.
    """
    if len(polygon) < 3:
        return False
    return bool(ShapelyPolygon(polygon).covers(Point(longitude, latitude)))
