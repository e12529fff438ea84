"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the quakewatch package.
"""

from quakewatch.main import (
    earthquake_latest,
    earthquake_monitor,
    earthquake_stats,
    earthquake_timeline,
    subscribe,
    unsubscribe,
)

__all__ = [
    "earthquake_latest",
    "earthquake_monitor",
    "earthquake_stats",
    "earthquake_timeline",
    "subscribe",
    "unsubscribe",
]
