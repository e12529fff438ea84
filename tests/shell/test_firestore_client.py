"""Tests for the Firestore event store and subscriber directory.

The firestore.Client is replaced with mocks; no network access.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

import pytest
from google.api_core.exceptions import AlreadyExists, ServiceUnavailable

from quakewatch.core.earthquake import SeismicEvent, event_to_document
from quakewatch.shell.firestore_client import (
    DuplicateEventError,
    EventStore,
    FirestoreConfig,
    PersistError,
    SubscriberDirectory,
)


@pytest.fixture
def sample_event():
    return SeismicEvent(
        external_id="us7000abcd",
        magnitude=4.6,
        location_label="Near Dhaka",
        latitude=23.9,
        longitude=90.5,
        depth=10.0,
        occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        distance_from_reference=13,
        nearest_reference_name="Dhaka",
    )


@pytest.fixture
def mock_client():
    return MagicMock()


def snapshot(exists: bool, data: dict | None = None, doc_id: str = "doc") -> Mock:
    snap = Mock()
    snap.exists = exists
    snap.id = doc_id
    snap.to_dict.return_value = data
    return snap


class TestEventStoreExists:
    """Tests for EventStore.exists()."""

    def test_false_when_missing(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(False)

        store = EventStore(client=mock_client)

        assert store.exists("us1") is False
        mock_client.collection.assert_called_with("earthquakes")
        mock_client.collection.return_value.document.assert_called_with("us1")

    def test_true_when_stored(self, mock_client, sample_event):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(True, event_to_document(sample_event))

        assert EventStore(client=mock_client).exists("us7000abcd") is True

    def test_unreadable_document_still_counts_as_stored(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        legacy = snapshot(True, {"magnitude": 4.5})
        doc_ref.get.return_value = legacy

        assert EventStore(client=mock_client).exists("legacy") is True
        legacy.to_dict.assert_not_called()

    def test_failure_raises_persist_error(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.side_effect = ServiceUnavailable("down")

        store = EventStore(client=mock_client)

        with pytest.raises(PersistError):
            store.exists("us1")

    def test_uses_configured_collection(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(False)

        store = EventStore(FirestoreConfig(events_collection="quakes"), client=mock_client)
        store.exists("us1")

        mock_client.collection.assert_called_with("quakes")


class TestEventStoreInsert:
    """Tests for EventStore.insert()."""

    def test_creates_document_keyed_by_external_id(self, mock_client, sample_event):
        store = EventStore(client=mock_client)

        store.insert(sample_event)

        mock_client.collection.return_value.document.assert_called_with("us7000abcd")
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.create.assert_called_once()
        data = doc_ref.create.call_args.args[0]
        assert data["external_id"] == "us7000abcd"
        assert data["nearest_reference_name"] == "Dhaka"
        assert "created_at" in data

    def test_existing_document_raises_duplicate(self, mock_client, sample_event):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.create.side_effect = AlreadyExists("exists")

        store = EventStore(client=mock_client)

        with pytest.raises(DuplicateEventError):
            store.insert(sample_event)

    def test_write_failure_raises_persist_error(self, mock_client, sample_event):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.create.side_effect = ServiceUnavailable("down")

        store = EventStore(client=mock_client)

        with pytest.raises(PersistError) as exc_info:
            store.insert(sample_event)
        assert not isinstance(exc_info.value, DuplicateEventError)


class TestEventStoreQueries:
    """Tests for count(), list_since() and latest()."""

    def test_count(self, mock_client):
        aggregation = Mock()
        aggregation.value = 42
        mock_client.collection.return_value.count.return_value.get.return_value = [[aggregation]]

        store = EventStore(client=mock_client)

        assert store.count() == 42

    def test_count_failure_raises(self, mock_client):
        mock_client.collection.return_value.count.return_value.get.side_effect = ServiceUnavailable("down")

        with pytest.raises(PersistError):
            EventStore(client=mock_client).count()

    def test_list_since(self, mock_client, sample_event):
        query = mock_client.collection.return_value.where.return_value
        query.order_by.return_value.stream.return_value = [
            snapshot(True, event_to_document(sample_event)),
        ]

        store = EventStore(client=mock_client)
        events = store.list_since(datetime(2023, 12, 1, tzinfo=timezone.utc))

        assert events == [sample_event]

    def test_list_since_skips_unreadable_documents(self, mock_client, sample_event):
        query = mock_client.collection.return_value.where.return_value
        query.order_by.return_value.stream.return_value = [
            snapshot(True, {"magnitude": 4.5}, doc_id="legacy"),
            snapshot(True, event_to_document(sample_event)),
        ]

        events = EventStore(client=mock_client).list_since(
            datetime(2023, 12, 1, tzinfo=timezone.utc)
        )

        assert events == [sample_event]

    def test_list_since_with_end_bound(self, mock_client, sample_event):
        query = mock_client.collection.return_value.where.return_value.where.return_value
        query.order_by.return_value.stream.return_value = [
            snapshot(True, event_to_document(sample_event)),
        ]

        events = EventStore(client=mock_client).list_since(
            datetime(2023, 12, 1, tzinfo=timezone.utc),
            datetime(2024, 2, 1, tzinfo=timezone.utc),
        )

        assert events == [sample_event]

    def test_list_since_failure_raises(self, mock_client):
        query = mock_client.collection.return_value.where.return_value
        query.order_by.return_value.stream.side_effect = ServiceUnavailable("down")

        with pytest.raises(PersistError):
            EventStore(client=mock_client).list_since(datetime(2023, 12, 1, tzinfo=timezone.utc))

    def test_latest_unreadable_document_gives_none(self, mock_client):
        query = mock_client.collection.return_value.order_by.return_value.limit.return_value
        query.stream.return_value = [snapshot(True, {"external_id": "legacy"}, doc_id="legacy")]

        assert EventStore(client=mock_client).latest() is None

    def test_latest_empty(self, mock_client):
        query = mock_client.collection.return_value.order_by.return_value.limit.return_value
        query.stream.return_value = []

        assert EventStore(client=mock_client).latest() is None

    def test_latest(self, mock_client, sample_event):
        query = mock_client.collection.return_value.order_by.return_value.limit.return_value
        query.stream.return_value = [snapshot(True, event_to_document(sample_event))]

        assert EventStore(client=mock_client).latest() == sample_event


class TestSubscriberDirectory:
    """Tests for SubscriberDirectory."""

    def test_list_active_parses_and_skips_invalid(self, mock_client):
        query = mock_client.collection.return_value.where.return_value.where.return_value
        query.stream.return_value = [
            snapshot(True, {"email": "A@Example.com", "magnitude_threshold": 4.0, "is_active": True}),
            snapshot(True, {"email": "broken", "magnitude_threshold": 4.0, "is_active": True}, doc_id="broken"),
        ]

        directory = SubscriberDirectory(client=mock_client)
        subscribers = directory.list_active(max_threshold=5.0)

        assert [s.email for s in subscribers] == ["a@example.com"]
        mock_client.collection.assert_called_with("subscribers")

    def test_list_active_failure_raises(self, mock_client):
        query = mock_client.collection.return_value.where.return_value
        query.stream.side_effect = ServiceUnavailable("down")

        with pytest.raises(PersistError):
            SubscriberDirectory(client=mock_client).list_active()

    def test_subscribe_new(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(False)

        subscriber, created = SubscriberDirectory(client=mock_client).subscribe(" New@Example.com ", 5.0)

        assert created is True
        assert subscriber.email == "new@example.com"
        assert subscriber.magnitude_threshold == 5.0
        mock_client.collection.return_value.document.assert_called_with("new@example.com")
        doc_ref.create.assert_called_once()

    def test_subscribe_existing_reactivates(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(True, {"email": "a@example.com", "is_active": False})

        subscriber, created = SubscriberDirectory(client=mock_client).subscribe("a@example.com")

        assert created is False
        doc_ref.update.assert_called_once_with({"magnitude_threshold": 4.0, "is_active": True})
        assert subscriber.is_active is True

    def test_subscribe_rejects_bad_threshold(self, mock_client):
        with pytest.raises(ValueError):
            SubscriberDirectory(client=mock_client).subscribe("a@example.com", 11.0)

    def test_unsubscribe_unknown(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(False)

        assert SubscriberDirectory(client=mock_client).unsubscribe("x@example.com") is False
        doc_ref.update.assert_not_called()

    def test_unsubscribe_deactivates(self, mock_client):
        doc_ref = mock_client.collection.return_value.document.return_value
        doc_ref.get.return_value = snapshot(True, {"email": "a@example.com"})

        assert SubscriberDirectory(client=mock_client).unsubscribe("A@example.com") is True
        doc_ref.update.assert_called_once_with({"is_active": False})

    def test_count_active(self, mock_client):
        aggregation = Mock()
        aggregation.value = 3
        query = mock_client.collection.return_value.where.return_value
        query.count.return_value.get.return_value = [[aggregation]]

        assert SubscriberDirectory(client=mock_client).count_active() == 3
