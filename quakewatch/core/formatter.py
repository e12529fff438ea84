"""Message formatting - Pure functions.

This module formats stored earthquakes into e-mail alerts.
All functions are pure with no side effects.
"""

from datetime import timedelta, timezone
from html import escape

from quakewatch.core.classifier import get_intensity, get_mercalli_band
from quakewatch.core.earthquake import SeismicEvent

# Bangladesh Standard Time is UTC+6 with no daylight saving
DHAKA_TZ = timezone(timedelta(hours=6), name="BST")


def format_local_time(event: SeismicEvent) -> str:
    """Format the event time in Dhaka local time.

    Pure function.
    """
    local_time = event.occurred_at.astimezone(DHAKA_TZ)
    return local_time.strftime("%Y-%m-%d %H:%M:%S BST")


def format_email_subject(event: SeismicEvent) -> str:
    """Format the subject line of an alert e-mail.

    Pure function.
    """
    return f"🚨 EARTHQUAKE ALERT: Magnitude {event.magnitude}"


def _detail_lines(event: SeismicEvent) -> list[tuple[str, str]]:
    return [
        ("Magnitude", str(event.magnitude)),
        ("Intensity", f"{get_intensity(event.magnitude)} (Mercalli {get_mercalli_band(event.magnitude)})"),
        ("Location", event.location_label),
        (
            "Nearest City",
            f"{event.nearest_reference_name} ({event.distance_from_reference} km)",
        ),
        ("Depth", f"{event.depth:.1f} km"),
        ("Time", format_local_time(event)),
    ]


def format_email_text(event: SeismicEvent) -> str:
    """Format the plain-text body of an alert e-mail.

    Pure function.

    Args:
        event: Newly stored earthquake

    Returns:
        Plain-text message body
    """
    lines = ["Earthquake Alert", ""]
    lines.extend(f"{label}: {value}" for label, value in _detail_lines(event))
    lines.extend([
        "",
        "You are receiving this because you subscribed to earthquake alerts.",
    ])
    return "\n".join(lines)


def format_email_html(event: SeismicEvent) -> str:
    """Format the HTML body of an alert e-mail.

    Pure function. Feed text is escaped.

    Args:
        event: Newly stored earthquake

    Returns:
        HTML message body
    """
    rows = "\n".join(
        f"      <p><strong>{label}:</strong> {escape(value)}</p>"
        for label, value in _detail_lines(event)
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; '
        'margin: 0 auto; background: #292b2c; color: #f0f0f0; '
        'padding: 20px; border-radius: 10px;">\n'
        '  <h2 style="color: #3491ff; text-align: center;">🚨 Earthquake Alert</h2>\n'
        '  <div style="background: #555555; padding: 20px; '
        'border-radius: 8px; margin: 15px 0;">\n'
        f"{rows}\n"
        "  </div>\n"
        "</div>"
    )
