"""Geographic calculations - Pure functions.

This module provides distance, nearest-city and bounding box calculations
for earthquake locations. All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from quakewatch.core.earthquake import Earthquake


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check if a point is within this bounding box (edges included)."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )


@dataclass(frozen=True)
class ReferencePoint:
    """A named city used to label where an earthquake struck.

    Attributes:
        name: City name (e.g., "Dhaka")
        latitude: City latitude
        longitude: City longitude
    """
    name: str
    latitude: float
    longitude: float


# Bangladesh and surroundings
DEFAULT_REGION = BoundingBox(
    min_latitude=18.0,
    max_latitude=29.0,
    min_longitude=86.0,
    max_longitude=95.0,
)

# Order matters: ties go to the city listed first
BANGLADESH_CITIES: tuple[ReferencePoint, ...] = (
    ReferencePoint("Dhaka", 23.8103, 90.4125),
    ReferencePoint("Chittagong", 22.3569, 91.7832),
    ReferencePoint("Sylhet", 24.8949, 91.8687),
    ReferencePoint("Rajshahi", 24.3745, 88.6042),
    ReferencePoint("Khulna", 22.8456, 89.5403),
    ReferencePoint("Cumilla", 23.4607, 91.1809),
    ReferencePoint("Rangpur", 25.7439, 89.2752),
)


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def find_nearest(
    latitude: float,
    longitude: float,
    reference_points: Sequence[ReferencePoint],
) -> tuple[str, int]:
    """Find the reference point closest to a location.

    Pure function. Scans the table in order and only replaces the current
    best on a strictly smaller distance, so the earliest entry wins ties.

    Args:
        latitude: Location latitude
        longitude: Location longitude
        reference_points: Reference table to scan

    Returns:
        Tuple of (reference name, distance rounded to whole km)

    Raises:
        ValueError: If the reference table is empty
    """
    if not reference_points:
        raise ValueError("Reference point table is empty")

    nearest = reference_points[0]
    min_distance = calculate_distance(
        latitude, longitude, nearest.latitude, nearest.longitude
    )

    for point in reference_points[1:]:
        distance = calculate_distance(
            latitude, longitude, point.latitude, point.longitude
        )
        if distance < min_distance:
            min_distance = distance
            nearest = point

    # math.floor(x + 0.5) rounds halves up, unlike round()
    return nearest.name, int(math.floor(min_distance + 0.5))


def is_within_bounds(earthquake: "Earthquake", bounds: BoundingBox) -> bool:
    """Check if an earthquake is within a bounding box.

    Pure function.
    """
    return bounds.contains(earthquake.latitude, earthquake.longitude)


def filter_by_bounds(
    earthquakes: list["Earthquake"],
    bounds: BoundingBox,
) -> list["Earthquake"]:
    """Filter earthquakes to only those within a bounding box.

    Pure function. Keeps the input order.

    Args:
        earthquakes: List of earthquakes to filter
        bounds: Bounding box to filter by

    Returns:
        Earthquakes within the bounds
    """
    return [e for e in earthquakes if is_within_bounds(e, bounds)]
