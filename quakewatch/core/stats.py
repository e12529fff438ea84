"""Read-time reporting over stored earthquakes - Pure functions.

Used by the read endpoints in quakewatch.api_handler. Nothing here is
persisted; classification happens when a report is built.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, tzinfo
from typing import Any

from quakewatch.core.classifier import get_intensity, get_mercalli_band
from quakewatch.core.earthquake import SeismicEvent


@dataclass(frozen=True)
class MagnitudeSummary:
    """Aggregate magnitudes over a window.

    Attributes:
        count: Number of earthquakes
        average: Mean magnitude rounded to 2 decimals (0.0 when empty)
        largest: Largest magnitude (0.0 when empty)
    """
    count: int
    average: float
    largest: float


def summarize_magnitudes(events: list[SeismicEvent]) -> MagnitudeSummary:
    """Summarize a list of earthquakes.

    Pure function.
    """
    if not events:
        return MagnitudeSummary(count=0, average=0.0, largest=0.0)

    magnitudes = [e.magnitude for e in events]
    return MagnitudeSummary(
        count=len(magnitudes),
        average=round(sum(magnitudes) / len(magnitudes), 2),
        largest=max(magnitudes),
    )


def hours_since(event: SeismicEvent, now: datetime) -> float:
    """Hours elapsed since the event, to one decimal.

    Pure function.
    """
    elapsed = (now - event.occurred_at).total_seconds()
    return round(elapsed / 3600, 1)


def describe_event(event: SeismicEvent, now: datetime) -> dict[str, Any]:
    """Enrich a stored earthquake for display.

    Pure function. Adds intensity, Mercalli band and hours since the event.

    Args:
        event: Stored earthquake
        now: Reference time (timezone-aware)

    Returns:
        Dict of event fields plus derived display fields
    """
    data = asdict(event)
    data["intensity"] = get_intensity(event.magnitude)
    data["mercalli"] = get_mercalli_band(event.magnitude)
    data["hours_since"] = hours_since(event, now)
    return data


def build_timeline(events: list[SeismicEvent]) -> list[dict[str, Any]]:
    """Day-level timeline entries, oldest first.

    Pure function.
    """
    ordered = sorted(events, key=lambda e: e.occurred_at)
    return [
        {
            "date": e.occurred_at.date().isoformat(),
            "magnitude": e.magnitude,
            "location": e.nearest_reference_name,
        }
        for e in ordered
    ]


def start_of_day(now: datetime, tz: tzinfo) -> datetime:
    """Midnight of the current day in the given timezone.

    Pure function.
    """
    local = now.astimezone(tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)
