"""Web API Handler - Serves stored earthquakes and manages subscriptions.

This module provides HTTP endpoints for the web frontend.
Part of the imperative shell - handles HTTP I/O.

Each handler takes the Flask request plus the store or directory it reads,
so the Cloud Function wrappers in quakewatch.main decide how those are built.
"""

import json
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from typing import Any

from flask import Request, Response

from quakewatch.core.earthquake import SeismicEvent
from quakewatch.core.formatter import DHAKA_TZ
from quakewatch.core.stats import (
    build_timeline,
    describe_event,
    start_of_day,
    summarize_magnitudes,
)
from quakewatch.shell.firestore_client import (
    EventStore,
    PersistError,
    SubscriberDirectory,
)


logger = logging.getLogger(__name__)


DEFAULT_TIMELINE_DAYS = 7
MAX_TIMELINE_DAYS = 30

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "3600",
}


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _json_response(data: Any, status: int = 200) -> Response:
    """Create a JSON response with CORS headers."""
    response = Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
    )
    for key, value in CORS_HEADERS.items():
        response.headers[key] = value
    return response


def _preflight() -> Response:
    response = Response("", status=204)
    for key, value in CORS_HEADERS.items():
        response.headers[key] = value
    return response


def _json_body(request: Request) -> dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _event_to_dict(event: SeismicEvent) -> dict[str, Any]:
    data = asdict(event)
    data["occurred_at"] = event.occurred_at.isoformat()
    return data


def _parse_days(raw: str | None) -> int:
    """Timeline window in days; falls back to the default when unusable."""
    try:
        days = int(raw) if raw is not None else DEFAULT_TIMELINE_DAYS
    except ValueError:
        return DEFAULT_TIMELINE_DAYS
    if days <= 0:
        return DEFAULT_TIMELINE_DAYS
    return min(days, MAX_TIMELINE_DAYS)


def get_latest(
    request: Request,
    event_store: EventStore,
    now: datetime | None = None,
) -> Response:
    """API endpoint: Most recent stored earthquake.

    Returns:
        JSON with the earthquake plus intensity, Mercalli band and
        hours since it happened, or a "safe" status when nothing is stored
    """
    if request.method == "OPTIONS":
        return _preflight()

    now = now or datetime.now(timezone.utc)

    try:
        latest = event_store.latest()
    except PersistError as e:
        logger.error("Latest earthquake query failed: %s", e)
        return _json_response({"error": str(e)}, status=500)

    if latest is None:
        return _json_response({"status": "safe", "message": "No recent earthquakes"})

    return _json_response(describe_event(latest, now))


def get_stats(
    request: Request,
    event_store: EventStore,
    directory: SubscriberDirectory,
    now: datetime | None = None,
) -> Response:
    """API endpoint: Weekly, monthly and today's activity.

    "Today" starts at midnight Dhaka time.

    Returns:
        JSON with weekly, monthly and today summaries, the all-time
        count and the number of active subscribers
    """
    if request.method == "OPTIONS":
        return _preflight()

    now = now or datetime.now(timezone.utc)

    try:
        week = event_store.list_since(now - timedelta(days=7))
        month = event_store.list_since(now - timedelta(days=30))
        today = event_store.list_since(start_of_day(now, DHAKA_TZ))
        all_time = event_store.count()
        subscribers = directory.count_active()
    except PersistError as e:
        logger.error("Stats query failed: %s", e)
        return _json_response({"error": str(e)}, status=500)

    weekly = summarize_magnitudes(week)
    monthly = summarize_magnitudes(month)

    return _json_response({
        "weekly": {
            **asdict(weekly),
            "earthquakes": [_event_to_dict(e) for e in week],
        },
        "monthly": asdict(monthly),
        "today": {
            "count": len(today),
            "earthquakes": [_event_to_dict(e) for e in today],
        },
        "all_time": all_time,
        "subscribers": subscribers,
    })


def get_timeline(
    request: Request,
    event_store: EventStore,
    now: datetime | None = None,
) -> Response:
    """API endpoint: Day-level timeline, oldest first.

    Query params:
        days: Window length (default 7, max 30)
    """
    if request.method == "OPTIONS":
        return _preflight()

    now = now or datetime.now(timezone.utc)
    days = _parse_days(request.args.get("days"))

    try:
        events = event_store.list_since(now - timedelta(days=days))
    except PersistError as e:
        logger.error("Timeline query failed: %s", e)
        return _json_response({"error": str(e)}, status=500)

    return _json_response(build_timeline(events))


def subscribe(request: Request, directory: SubscriberDirectory) -> Response:
    """API endpoint: Subscribe, or update an existing subscription.

    JSON body:
        email: Recipient address
        magnitude_threshold: Optional alert threshold (2.5 to 10, default 4.0)

    Returns:
        201 for a new subscriber, 200 for an update, 400 for invalid input
    """
    if request.method == "OPTIONS":
        return _preflight()

    body = _json_body(request)

    try:
        subscriber, created = directory.subscribe(
            body.get("email") or "",
            body.get("magnitude_threshold"),
        )
    except (TypeError, ValueError) as e:
        return _json_response({"error": str(e)}, status=400)
    except PersistError as e:
        logger.error("Subscribe failed: %s", e)
        return _json_response({"error": str(e)}, status=500)

    message = "Successfully subscribed!" if created else "Subscription updated!"
    return _json_response(
        {"message": message, "subscriber": asdict(subscriber)},
        status=201 if created else 200,
    )


def unsubscribe(request: Request, directory: SubscriberDirectory) -> Response:
    """API endpoint: Deactivate a subscription.

    JSON body:
        email: Recipient address

    Returns:
        200 when deactivated, 404 for an unknown address
    """
    if request.method == "OPTIONS":
        return _preflight()

    body = _json_body(request)

    try:
        found = directory.unsubscribe(body.get("email") or "")
    except ValueError as e:
        return _json_response({"error": str(e)}, status=400)
    except PersistError as e:
        logger.error("Unsubscribe failed: %s", e)
        return _json_response({"error": str(e)}, status=500)

    if not found:
        return _json_response({"error": "Email not found"}, status=404)

    return _json_response({"message": "Successfully unsubscribed"})
