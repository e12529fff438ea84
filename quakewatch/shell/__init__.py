"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- USGS feed client (HTTP)
- Firestore event store and subscriber directory (database)
- SMTP mail client
- Configuration loading (environment/files/secrets)

Keep this layer thin and simple. All business logic should be in core.
"""

from quakewatch.shell.usgs_client import FetchError, USGSClient
from quakewatch.shell.firestore_client import (
    DuplicateEventError,
    EventStore,
    PersistError,
    SubscriberDirectory,
)
from quakewatch.shell.mail_client import MailClient, SMTPConfig
from quakewatch.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "FetchError",
    "USGSClient",
    "DuplicateEventError",
    "EventStore",
    "PersistError",
    "SubscriberDirectory",
    "MailClient",
    "SMTPConfig",
    "load_config",
    "load_config_from_env",
]
