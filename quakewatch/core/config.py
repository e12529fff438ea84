"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from quakewatch.core.geo import (
    BANGLADESH_CITIES,
    DEFAULT_REGION,
    BoundingBox,
    ReferencePoint,
)
from quakewatch.core.subscriber import MAX_THRESHOLD, MIN_THRESHOLD


DEFAULT_FEED_URL = (
    "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_month.geojson"
)


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: USGS summary feed to poll
        fetch_timeout_seconds: Timeout for one feed request
        polling_interval_seconds: How often the scheduler runs a tick
        region: Only earthquakes inside this box are kept
        reference_points: Cities used for the nearest-city label
        notification_floor: Minimum magnitude that triggers e-mail alerts
        firestore_database: Firestore database name (None for default)
        events_collection: Collection holding stored earthquakes
        subscribers_collection: Collection holding subscribers
        smtp_host: SMTP server host
        smtp_port: SMTP server port
        smtp_username: SMTP login (None for no authentication)
        smtp_password: SMTP password
        smtp_use_tls: Upgrade the connection with STARTTLS
        mail_sender: From address for alerts (defaults to smtp_username)
        notify_max_workers: Upper bound on concurrent sends per earthquake
    """
    feed_url: str = DEFAULT_FEED_URL
    fetch_timeout_seconds: float = 10.0
    polling_interval_seconds: int = 120
    region: BoundingBox = DEFAULT_REGION
    reference_points: list[ReferencePoint] = field(
        default_factory=lambda: list(BANGLADESH_CITIES)
    )
    notification_floor: float = 4.0
    firestore_database: str | None = None
    events_collection: str = "earthquakes"
    subscribers_collection: str = "subscribers"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    mail_sender: str | None = None
    notify_max_workers: int = 8

    @property
    def sender_address(self) -> str | None:
        """Address alerts are sent from."""
        return self.mail_sender or self.smtp_username


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ValidationError]:
    """Validate a bounding box.

    Pure function.
    """
    errors = []

    errors.extend(validate_coordinates(
        bounds.min_latitude, bounds.min_longitude,
        f"{field_name}.min",
    ))
    errors.extend(validate_coordinates(
        bounds.max_latitude, bounds.max_longitude,
        f"{field_name}.max",
    ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_bounds(config.region, "region"))

    if not config.reference_points:
        errors.append(ValidationError(
            field="reference_points",
            message="At least one reference point is required",
        ))

    seen_names: set[str] = set()
    for i, point in enumerate(config.reference_points):
        errors.extend(validate_coordinates(
            point.latitude, point.longitude,
            f"reference_points[{i}]",
        ))
        if point.name in seen_names:
            errors.append(ValidationError(
                field=f"reference_points[{i}].name",
                message=f"Duplicate reference point '{point.name}'",
                severity="warning",
            ))
        seen_names.add(point.name)

    if not MIN_THRESHOLD <= config.notification_floor <= MAX_THRESHOLD:
        errors.append(ValidationError(
            field="notification_floor",
            message=(
                f"Notification floor {config.notification_floor} out of range "
                f"[{MIN_THRESHOLD}, {MAX_THRESHOLD}]"
            ),
        ))

    if config.polling_interval_seconds <= 0:
        errors.append(ValidationError(
            field="polling_interval_seconds",
            message=f"Polling interval must be positive, got {config.polling_interval_seconds}",
        ))

    if config.fetch_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="fetch_timeout_seconds",
            message=f"Fetch timeout must be positive, got {config.fetch_timeout_seconds}",
        ))

    if config.notify_max_workers < 1:
        errors.append(ValidationError(
            field="notify_max_workers",
            message=f"notify_max_workers must be at least 1, got {config.notify_max_workers}",
        ))

    if not config.sender_address or config.sender_address.startswith("${"):
        errors.append(ValidationError(
            field="mail_sender",
            message="No sender address configured, alerts cannot be e-mailed",
            severity="warning",
        ))

    if config.smtp_password and config.smtp_password.startswith("${"):
        errors.append(ValidationError(
            field="smtp_password",
            message="SMTP password not resolved (still contains placeholder)",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
