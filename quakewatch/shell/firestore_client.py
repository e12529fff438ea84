"""Firestore Client - Imperative Shell.

This module handles persistence of stored earthquakes and subscribers.
Uses Google Cloud Firestore.

Document layout:
    <events_collection>/<usgs id>        one SeismicEvent, never rewritten
    <subscribers_collection>/<email>     one Subscriber per normalized e-mail

All I/O is contained here; serialization and matching logic are in the
core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from quakewatch.core.earthquake import (
    SeismicEvent,
    event_from_document,
    event_to_document,
)
from quakewatch.core.subscriber import (
    Subscriber,
    normalize_email,
    subscriber_from_document,
    validate_threshold,
)


logger = logging.getLogger(__name__)


DEFAULT_EVENTS_COLLECTION = "earthquakes"
DEFAULT_SUBSCRIBERS_COLLECTION = "subscribers"


class PersistError(Exception):
    """A store read or write failed."""


class DuplicateEventError(PersistError):
    """An event with the same external id is already stored."""


@dataclass
class FirestoreConfig:
    """Configuration for Firestore clients.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        events_collection: Collection for stored earthquakes
        subscribers_collection: Collection for subscribers
    """
    project_id: str | None = None
    database: str | None = None
    events_collection: str = DEFAULT_EVENTS_COLLECTION
    subscribers_collection: str = DEFAULT_SUBSCRIBERS_COLLECTION


class _FirestoreBase:
    """Lazily creates the underlying firestore.Client."""

    def __init__(
        self,
        config: FirestoreConfig | None = None,
        client: firestore.Client | None = None,
    ) -> None:
        self.config = config or FirestoreConfig()
        self._client = client

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client


def _read_events(docs: list[Any]) -> list[SeismicEvent]:
    events = []
    for doc in docs:
        try:
            events.append(event_from_document(doc.to_dict()))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping unreadable earthquake %s: %s", doc.id, e)
    return events


class EventStore(_FirestoreBase):
    """Append-only store of earthquakes keyed by USGS id.

    This is part of the imperative shell - it handles database I/O.
    Failures are raised as PersistError so the caller can stop the tick.
    """

    def _collection(self) -> Any:
        return self.client.collection(self.config.events_collection)

    def exists(self, external_id: str) -> bool:
        """Check whether an earthquake is already stored.

        Only the document's presence is checked; its contents are not read.

        Args:
            external_id: USGS event ID

        Raises:
            PersistError: If the lookup fails
        """
        try:
            doc = self._collection().document(external_id).get()
        except Exception as e:
            raise PersistError(f"Lookup of {external_id} failed: {e}") from e

        return bool(doc.exists)

    def insert(self, event: SeismicEvent) -> None:
        """Store a new earthquake. Never overwrites.

        Args:
            event: Earthquake to store

        Raises:
            DuplicateEventError: If a document with this id already exists
            PersistError: If the write fails
        """
        data = event_to_document(event)
        data["created_at"] = firestore.SERVER_TIMESTAMP

        try:
            self._collection().document(event.external_id).create(data)
        except AlreadyExists as e:
            raise DuplicateEventError(
                f"Earthquake {event.external_id} is already stored"
            ) from e
        except Exception as e:
            raise PersistError(f"Insert of {event.external_id} failed: {e}") from e

        logger.debug("Stored earthquake %s", event.external_id)

    def count(self) -> int:
        """Total number of stored earthquakes.

        Raises:
            PersistError: If the aggregation query fails
        """
        try:
            results = self._collection().count(alias="all").get()
        except Exception as e:
            raise PersistError(f"Count query failed: {e}") from e

        return int(results[0][0].value)

    def list_since(
        self,
        start: datetime,
        end: datetime | None = None,
    ) -> list[SeismicEvent]:
        """Stored earthquakes in a time range, newest first.

        Documents that cannot be read are skipped with a warning.

        Args:
            start: Inclusive lower bound on occurrence time
            end: Exclusive upper bound (None for no bound)

        Raises:
            PersistError: If the query fails
        """
        query = self._collection().where(
            filter=FieldFilter("occurred_at", ">=", start)
        )
        if end is not None:
            query = query.where(
                filter=FieldFilter("occurred_at", "<", end)
            )
        query = query.order_by("occurred_at", direction=firestore.Query.DESCENDING)

        try:
            docs = list(query.stream())
        except Exception as e:
            raise PersistError(f"Range query failed: {e}") from e

        return _read_events(docs)

    def latest(self) -> SeismicEvent | None:
        """Most recent stored earthquake, or None when empty.

        Raises:
            PersistError: If the query fails
        """
        query = (
            self._collection()
            .order_by("occurred_at", direction=firestore.Query.DESCENDING)
            .limit(1)
        )

        try:
            docs = list(query.stream())
        except Exception as e:
            raise PersistError(f"Latest query failed: {e}") from e

        events = _read_events(docs)
        return events[0] if events else None


class SubscriberDirectory(_FirestoreBase):
    """Subscribers keyed by normalized e-mail.

    This is part of the imperative shell - it handles database I/O.
    """

    def _collection(self) -> Any:
        return self.client.collection(self.config.subscribers_collection)

    def list_active(self, max_threshold: float | None = None) -> list[Subscriber]:
        """Fetch active subscribers.

        Args:
            max_threshold: Only subscribers whose threshold is at most
                this value (None for all active subscribers)

        Returns:
            Matching subscribers. Documents that fail validation are
            skipped with a warning.

        Raises:
            PersistError: If the query fails
        """
        query = self._collection().where(
            filter=FieldFilter("is_active", "==", True)
        )
        if max_threshold is not None:
            query = query.where(
                filter=FieldFilter("magnitude_threshold", "<=", max_threshold)
            )

        try:
            docs = list(query.stream())
        except Exception as e:
            raise PersistError(f"Subscriber query failed: {e}") from e

        subscribers = []
        for doc in docs:
            try:
                subscribers.append(subscriber_from_document(doc.to_dict()))
            except ValueError as e:
                logger.warning("Skipping invalid subscriber %s: %s", doc.id, e)

        logger.info("Found %d active subscribers", len(subscribers))
        return subscribers

    def count_active(self) -> int:
        """Number of active subscribers.

        Raises:
            PersistError: If the aggregation query fails
        """
        query = self._collection().where(
            filter=FieldFilter("is_active", "==", True)
        )
        try:
            results = query.count(alias="active").get()
        except Exception as e:
            raise PersistError(f"Subscriber count failed: {e}") from e

        return int(results[0][0].value)

    def subscribe(
        self,
        email: str,
        magnitude_threshold: float | None = None,
    ) -> tuple[Subscriber, bool]:
        """Create a subscriber, or update and reactivate an existing one.

        Args:
            email: E-mail address (normalized before use)
            magnitude_threshold: Alert threshold (defaults to 4.0)

        Returns:
            Tuple of (stored subscriber, True if newly created)

        Raises:
            ValueError: If the e-mail or threshold is invalid
            PersistError: If the write fails
        """
        normalized = normalize_email(email)
        threshold = validate_threshold(magnitude_threshold)
        doc_ref = self._collection().document(normalized)

        try:
            snapshot = doc_ref.get()
            if snapshot.exists:
                existing = snapshot.to_dict()
                created = False
                subscribed_at = existing.get("subscribed_at")
                doc_ref.update({
                    "magnitude_threshold": threshold,
                    "is_active": True,
                })
                logger.info("Updated subscription for %s", normalized)
            else:
                created = True
                subscribed_at = datetime.now(timezone.utc)
                doc_ref.create({
                    "email": normalized,
                    "magnitude_threshold": threshold,
                    "is_active": True,
                    "subscribed_at": subscribed_at,
                })
                logger.info("Created subscription for %s", normalized)
        except Exception as e:
            raise PersistError(f"Subscribe of {normalized} failed: {e}") from e

        subscriber = Subscriber(
            email=normalized,
            magnitude_threshold=threshold,
            is_active=True,
            subscribed_at=subscribed_at,
        )
        return subscriber, created

    def unsubscribe(self, email: str) -> bool:
        """Deactivate a subscriber. The record is kept.

        Returns:
            False if no subscriber has this e-mail

        Raises:
            ValueError: If the e-mail is invalid
            PersistError: If the write fails
        """
        normalized = normalize_email(email)
        doc_ref = self._collection().document(normalized)

        try:
            snapshot = doc_ref.get()
            if not snapshot.exists:
                return False
            doc_ref.update({"is_active": False})
        except Exception as e:
            raise PersistError(f"Unsubscribe of {normalized} failed: {e}") from e

        logger.info("Deactivated subscription for %s", normalized)
        return True
