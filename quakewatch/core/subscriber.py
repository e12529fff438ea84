"""Subscriber model and matching - Pure functions.

Subscribers are owned by the subscription directory; this module only
describes them and decides who should hear about an earthquake.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable


DEFAULT_THRESHOLD = 4.0
MIN_THRESHOLD = 2.5
MAX_THRESHOLD = 10.0


@dataclass(frozen=True)
class Subscriber:
    """An e-mail recipient with a magnitude threshold.

    Attributes:
        email: Normalized (trimmed, lower-case) e-mail address
        magnitude_threshold: Alert when magnitude is at least this
        is_active: False once the subscriber has opted out
        subscribed_at: When the subscription was first created
    """
    email: str
    magnitude_threshold: float = DEFAULT_THRESHOLD
    is_active: bool = True
    subscribed_at: datetime | None = None


def normalize_email(email: str) -> str:
    """Trim and lower-case an e-mail address.

    Raises:
        ValueError: If the address is empty or has no "@"
    """
    normalized = str(email or "").strip().lower()
    if not normalized or "@" not in normalized:
        raise ValueError(f"Invalid e-mail address: {email!r}")
    return normalized


def validate_threshold(threshold: float | None) -> float:
    """Return a usable threshold, defaulting when unset.

    Raises:
        ValueError: If the threshold is outside [2.5, 10.0]
    """
    if threshold is None:
        return DEFAULT_THRESHOLD

    value = float(threshold)
    if not MIN_THRESHOLD <= value <= MAX_THRESHOLD:
        raise ValueError(
            f"Magnitude threshold {value} out of range "
            f"[{MIN_THRESHOLD}, {MAX_THRESHOLD}]"
        )
    return value


def should_notify(subscriber: Subscriber, magnitude: float) -> bool:
    """Check whether a subscriber wants an alert for this magnitude.

    Pure function.
    """
    return subscriber.is_active and subscriber.magnitude_threshold <= magnitude


def select_recipients(
    subscribers: Iterable[Subscriber],
    magnitude: float,
) -> list[Subscriber]:
    """Keep active subscribers whose threshold is met.

    Pure function.
    """
    return [s for s in subscribers if should_notify(s, magnitude)]


def subscriber_from_document(data: dict[str, Any]) -> Subscriber:
    """Build a Subscriber from a directory document.

    Raises:
        ValueError: If the e-mail or threshold is invalid
    """
    return Subscriber(
        email=normalize_email(data.get("email", "")),
        magnitude_threshold=validate_threshold(data.get("magnitude_threshold")),
        is_active=bool(data.get("is_active", True)),
        subscribed_at=data.get("subscribed_at"),
    )

