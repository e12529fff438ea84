"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

The Config model is defined in quakewatch/core/config.py.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from quakewatch.core.config import Config
from quakewatch.core.geo import BoundingBox, ReferencePoint
from quakewatch.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client for the current project.

    Returns None if no project is known (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_reference_point(data: dict[str, Any]) -> ReferencePoint:
    """Parse a reference city from config data."""
    return ReferencePoint(
        name=data["name"],
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
    )


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    defaults = Config()
    secret_client = _get_secret_manager_client()

    region = defaults.region
    if "region" in data:
        region = _parse_bounds(data["region"])

    reference_points = defaults.reference_points
    if "reference_points" in data:
        reference_points = [
            _parse_reference_point(p)
            for p in data["reference_points"]
        ]

    smtp = data.get("smtp", {})

    return Config(
        feed_url=data.get("feed_url", defaults.feed_url),
        fetch_timeout_seconds=float(data.get("fetch_timeout_seconds", defaults.fetch_timeout_seconds)),
        polling_interval_seconds=int(data.get("polling_interval_seconds", defaults.polling_interval_seconds)),
        region=region,
        reference_points=reference_points,
        notification_floor=float(data.get("notification_floor", defaults.notification_floor)),
        firestore_database=data.get("firestore_database"),
        events_collection=data.get("events_collection", defaults.events_collection),
        subscribers_collection=data.get("subscribers_collection", defaults.subscribers_collection),
        smtp_host=smtp.get("host", defaults.smtp_host),
        smtp_port=int(smtp.get("port", defaults.smtp_port)),
        smtp_username=_resolve_value(smtp.get("username"), secret_client),
        smtp_password=_resolve_value(smtp.get("password"), secret_client),
        smtp_use_tls=_parse_bool(smtp.get("use_tls", defaults.smtp_use_tls)),
        mail_sender=_resolve_value(smtp.get("sender"), secret_client),
        notify_max_workers=int(data.get("notify_max_workers", defaults.notify_max_workers)),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d reference points, polling every %ds",
        len(config.reference_points),
        config.polling_interval_seconds,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        FEED_URL: USGS feed URL
        FETCH_TIMEOUT_SECONDS: Feed request timeout
        POLLING_INTERVAL_SECONDS: Scheduler period
        MONITORING_BOUNDS: Comma-separated bounds (min_lat,max_lat,min_lon,max_lon)
        NOTIFICATION_FLOOR: Minimum magnitude for e-mail alerts
        FIRESTORE_DATABASE: Firestore database name
        SMTP_HOST, SMTP_PORT, SMTP_USE_TLS: SMTP server
        EMAIL_USER, EMAIL_PASSWORD: SMTP login (password may be ${secret:name})
        EMAIL_FROM: Sender address (defaults to EMAIL_USER)

    Returns:
        Config object from environment
    """
    defaults = Config()
    secret_client = _get_secret_manager_client()

    region = defaults.region
    bounds_str = os.environ.get("MONITORING_BOUNDS")
    if bounds_str:
        parts = [float(p.strip()) for p in bounds_str.split(",")]
        if len(parts) == 4:
            region = BoundingBox(
                min_latitude=parts[0],
                max_latitude=parts[1],
                min_longitude=parts[2],
                max_longitude=parts[3],
            )
        else:
            logger.warning("MONITORING_BOUNDS needs 4 values, got %d", len(parts))

    return Config(
        feed_url=os.environ.get("FEED_URL", defaults.feed_url),
        fetch_timeout_seconds=float(os.environ.get("FETCH_TIMEOUT_SECONDS", defaults.fetch_timeout_seconds)),
        polling_interval_seconds=int(os.environ.get("POLLING_INTERVAL_SECONDS", defaults.polling_interval_seconds)),
        region=region,
        notification_floor=float(os.environ.get("NOTIFICATION_FLOOR", defaults.notification_floor)),
        firestore_database=os.environ.get("FIRESTORE_DATABASE"),
        smtp_host=os.environ.get("SMTP_HOST", defaults.smtp_host),
        smtp_port=int(os.environ.get("SMTP_PORT", defaults.smtp_port)),
        smtp_username=os.environ.get("EMAIL_USER"),
        smtp_password=_resolve_value(os.environ.get("EMAIL_PASSWORD"), secret_client),
        smtp_use_tls=_parse_bool(os.environ.get("SMTP_USE_TLS", "true")),
        mail_sender=os.environ.get("EMAIL_FROM"),
    )
