"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Feed entry parsing and event derivation
- Geo/distance and nearest-city calculations
- Magnitude classification
- Subscriber matching
- Message formatting and read-time reports

All functions here are deterministic and have no I/O.
"""

from quakewatch.core.earthquake import (
    Earthquake,
    SeismicEvent,
    build_seismic_event,
    parse_earthquakes,
)
from quakewatch.core.geo import (
    BoundingBox,
    ReferencePoint,
    calculate_distance,
    filter_by_bounds,
    find_nearest,
)
from quakewatch.core.classifier import get_intensity, get_mercalli_band
from quakewatch.core.subscriber import Subscriber, select_recipients
from quakewatch.core.formatter import (
    format_email_html,
    format_email_subject,
    format_email_text,
)

__all__ = [
    # Earthquake
    "Earthquake",
    "SeismicEvent",
    "build_seismic_event",
    "parse_earthquakes",
    # Geo
    "BoundingBox",
    "ReferencePoint",
    "calculate_distance",
    "filter_by_bounds",
    "find_nearest",
    # Classifier
    "get_intensity",
    "get_mercalli_band",
    # Subscribers
    "Subscriber",
    "select_recipients",
    # Formatter
    "format_email_html",
    "format_email_subject",
    "format_email_text",
]
