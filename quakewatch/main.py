"""Service Entry Points.

Ways to run the monitor:
- `python -m quakewatch.main` starts a long-running process that checks
  the USGS feed at startup and then on a fixed interval.
- `earthquake_monitor` is an HTTP function (functions_framework) that runs
  one tick on demand and reports the total number of stored earthquakes.
- `earthquake_latest`, `earthquake_stats`, `earthquake_timeline`,
  `subscribe` and `unsubscribe` serve the web frontend (see api_handler).
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any

import functions_framework
from apscheduler.schedulers.blocking import BlockingScheduler
from flask import Request, Response

from quakewatch import api_handler
from quakewatch.core.config import Config, validate_config
from quakewatch.orchestrator import IngestionPipeline
from quakewatch.scheduler import TickScheduler
from quakewatch.shell.config_loader import load_config, load_config_from_env
from quakewatch.shell.firestore_client import (
    EventStore,
    FirestoreConfig,
    SubscriberDirectory,
)


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# One gate per process so HTTP-triggered ticks never overlap
_scheduler: TickScheduler | None = None
_stores: tuple[EventStore, SubscriberDirectory] | None = None


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        config = load_config(config_path)
    elif os.environ.get("EMAIL_USER"):
        # Simple env-based config
        config = load_config_from_env()
    else:
        # Try default config path
        config = load_config()

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        messages = "; ".join(
            f"{e.field}: {e.message}" for e in validation.critical_errors
        )
        raise ValueError(f"Invalid configuration: {messages}")

    return config


def _get_scheduler() -> TickScheduler:
    """Build the pipeline and its single-flight gate once per process."""
    global _scheduler
    if _scheduler is None:
        config = _get_config()
        _scheduler = TickScheduler(
            IngestionPipeline(config),
            interval_seconds=config.polling_interval_seconds,
        )
    return _scheduler


@functions_framework.http
def earthquake_monitor(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP entry point: run one tick now.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    try:
        total = _get_scheduler().run_once()
    except Exception as e:
        logger.exception("Manual USGS check failed")
        return {
            "status": "error",
            "message": str(e),
        }, 500

    return {
        "status": "success",
        "message": "USGS check completed",
        "total_earthquakes": total,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }, 200


def _get_stores() -> tuple[EventStore, SubscriberDirectory]:
    """Build the Firestore store and directory once per process."""
    global _stores
    if _stores is None:
        config = _get_config()
        firestore_config = FirestoreConfig(
            database=config.firestore_database,
            events_collection=config.events_collection,
            subscribers_collection=config.subscribers_collection,
        )
        _stores = (EventStore(firestore_config), SubscriberDirectory(firestore_config))
    return _stores


@functions_framework.http
def earthquake_latest(request: Request) -> Response:
    """HTTP entry point: most recent stored earthquake."""
    event_store, _ = _get_stores()
    return api_handler.get_latest(request, event_store)


@functions_framework.http
def earthquake_stats(request: Request) -> Response:
    """HTTP entry point: weekly, monthly and today's activity."""
    event_store, directory = _get_stores()
    return api_handler.get_stats(request, event_store, directory)


@functions_framework.http
def earthquake_timeline(request: Request) -> Response:
    """HTTP entry point: day-level timeline."""
    event_store, _ = _get_stores()
    return api_handler.get_timeline(request, event_store)


@functions_framework.http
def subscribe(request: Request) -> Response:
    """HTTP entry point: subscribe to e-mail alerts."""
    _, directory = _get_stores()
    return api_handler.subscribe(request, directory)


@functions_framework.http
def unsubscribe(request: Request) -> Response:
    """HTTP entry point: stop e-mail alerts."""
    _, directory = _get_stores()
    return api_handler.unsubscribe(request, directory)


def main() -> None:
    """Run the monitor until interrupted."""
    config = _get_config()
    scheduler = TickScheduler(
        IngestionPipeline(config),
        interval_seconds=config.polling_interval_seconds,
        scheduler=BlockingScheduler(timezone=timezone.utc),
    )

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
