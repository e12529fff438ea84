"""Earthquake data models and parsing - Pure functions.

This module turns raw USGS GeoJSON features into typed Earthquake
candidates and builds the SeismicEvent records that get persisted.
All functions are pure with no side effects.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

from quakewatch.core.geo import ReferencePoint, find_nearest


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Earthquake:
    """Immutable candidate parsed from one feed entry.

    Attributes:
        id: Unique USGS event ID
        magnitude: Earthquake magnitude
        place: Human-readable location description
        time: Event timestamp (UTC)
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        depth_km: Raw depth in kilometers as reported, None if missing
        url: USGS event detail URL
    """
    id: str
    magnitude: float
    place: str
    time: datetime
    latitude: float
    longitude: float
    depth_km: float | None = None
    url: str = ""

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class SeismicEvent:
    """A persisted earthquake record. Never changed once stored.

    Attributes:
        external_id: USGS event ID, the deduplication key
        magnitude: Earthquake magnitude
        location_label: Free-text location from the feed
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        depth: Non-negative depth in kilometers
        occurred_at: Event timestamp (UTC)
        distance_from_reference: Whole km to the nearest reference city
        nearest_reference_name: Name of the nearest reference city
    """
    external_id: str
    magnitude: float
    location_label: str
    latitude: float
    longitude: float
    depth: float
    occurred_at: datetime
    distance_from_reference: int
    nearest_reference_name: str


def parse_earthquake(feature: dict[str, Any]) -> Earthquake | None:
    """Parse a single GeoJSON feature into an Earthquake.

    Pure function: takes raw dict, returns typed Earthquake or None if
    a required field (id, coordinates, magnitude, time) is missing or
    not numeric.

    Args:
        feature: GeoJSON feature dict from the USGS feed

    Returns:
        Earthquake object or None if parsing fails
    """
    try:
        event_id = feature.get("id")
        if not event_id:
            return None

        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        if len(coords) < 2 or coords[0] is None or coords[1] is None:
            return None

        magnitude = props.get("mag")
        if magnitude is None:
            return None

        # USGS uses milliseconds since epoch
        time_ms = props.get("time")
        if time_ms is None:
            return None

        depth = None
        if len(coords) >= 3 and coords[2] is not None:
            depth = float(coords[2])

        return Earthquake(
            id=str(event_id),
            magnitude=float(magnitude),
            place=props.get("place") or "Unknown location",
            time=datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc),
            longitude=float(coords[0]),
            latitude=float(coords[1]),
            depth_km=depth,
            url=props.get("url") or "",
        )
    except (AttributeError, KeyError, TypeError, ValueError, OverflowError, OSError):
        return None


def parse_earthquakes(features: list[dict[str, Any]]) -> list[Earthquake]:
    """Parse feed features into Earthquakes, keeping feed order.

    Malformed entries are skipped with a warning; they never abort the batch.

    Args:
        features: GeoJSON features from the USGS feed

    Returns:
        List of valid Earthquake objects in feed order
    """
    earthquakes = []

    for feature in features:
        earthquake = parse_earthquake(feature)
        if earthquake is None:
            feature_id = feature.get("id") if isinstance(feature, dict) else None
            logger.warning("Skipping malformed feed entry: %s", feature_id)
            continue
        earthquakes.append(earthquake)

    return earthquakes


def normalize_depth(depth_km: float | None) -> float:
    """Depth as stored: absolute value, 0 when missing.

    Pure function.
    """
    return abs(depth_km or 0.0)


def build_seismic_event(
    earthquake: Earthquake,
    reference_points: Sequence[ReferencePoint],
) -> SeismicEvent:
    """Derive the persisted record for a candidate.

    Pure function. Distance and nearest city depend only on the
    coordinates and the reference table.

    Args:
        earthquake: Parsed candidate
        reference_points: Reference table used for the nearest-city label

    Returns:
        SeismicEvent ready to insert
    """
    name, distance = find_nearest(
        earthquake.latitude,
        earthquake.longitude,
        reference_points,
    )

    return SeismicEvent(
        external_id=earthquake.id,
        magnitude=earthquake.magnitude,
        location_label=earthquake.place,
        latitude=earthquake.latitude,
        longitude=earthquake.longitude,
        depth=normalize_depth(earthquake.depth_km),
        occurred_at=earthquake.time,
        distance_from_reference=distance,
        nearest_reference_name=name,
    )


def event_to_document(event: SeismicEvent) -> dict[str, Any]:
    """Serialize a SeismicEvent into a store document.

    Pure function.
    """
    return {
        "external_id": event.external_id,
        "magnitude": event.magnitude,
        "location": event.location_label,
        "latitude": event.latitude,
        "longitude": event.longitude,
        "depth": event.depth,
        "occurred_at": event.occurred_at,
        "distance_from_reference": event.distance_from_reference,
        "nearest_reference_name": event.nearest_reference_name,
    }


def event_from_document(data: dict[str, Any]) -> SeismicEvent:
    """Rebuild a SeismicEvent from a store document.

    Pure function.

    Raises:
        KeyError: If a required field is missing
    """
    occurred_at = data["occurred_at"]
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)

    return SeismicEvent(
        external_id=data["external_id"],
        magnitude=float(data["magnitude"]),
        location_label=data.get("location", "Unknown location"),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        depth=float(data.get("depth", 0.0)),
        occurred_at=occurred_at,
        distance_from_reference=int(data.get("distance_from_reference", 0)),
        nearest_reference_name=data.get("nearest_reference_name", ""),
    )
