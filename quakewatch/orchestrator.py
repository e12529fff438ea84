"""Orchestrator - Wires Functional Core and Imperative Shell.

This module runs one ingestion tick: fetch the USGS feed, keep the
earthquakes inside the monitored region, store each new one exactly once
with its nearest-city label, and e-mail subscribers about significant ones.
"""

import logging
from dataclasses import dataclass, field

from quakewatch.core.config import Config
from quakewatch.core.earthquake import Earthquake, build_seismic_event, parse_earthquakes
from quakewatch.core.geo import filter_by_bounds
from quakewatch.notifier import Notifier, SubscriberMatcher
from quakewatch.shell.firestore_client import (
    DuplicateEventError,
    EventStore,
    FirestoreConfig,
    PersistError,
    SubscriberDirectory,
)
from quakewatch.shell.mail_client import MailClient, SMTPConfig
from quakewatch.shell.usgs_client import FetchError, USGSClient


logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """Result of one ingestion tick.

    Attributes:
        earthquakes_fetched: Entries returned by the feed
        earthquakes_in_region: Valid entries inside the region
        skipped_malformed: Entries dropped for missing or bad fields
        earthquakes_new: Earthquakes stored during this tick
        earthquakes_known: Earthquakes that were already stored
        notifications_sent: Alert e-mails accepted by the mail server
        notifications_failed: Alert e-mails that failed
        errors: Errors that ended the tick early
    """
    earthquakes_fetched: int = 0
    earthquakes_in_region: int = 0
    skipped_malformed: int = 0
    earthquakes_new: int = 0
    earthquakes_known: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if the tick ran to completion."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the tick."""
        return (
            f"{self.earthquakes_new} new, "
            f"{self.earthquakes_known} already in database "
            f"({self.earthquakes_in_region} in region of "
            f"{self.earthquakes_fetched} fetched), "
            f"{self.notifications_sent} alerts sent, "
            f"{self.notifications_failed} failed"
        )


class IngestionPipeline:
    """Coordinates one fetch-dedup-enrich-store-notify cycle.

    This class wires together:
    - USGS client (fetches the feed)
    - Core functions (parsing, region filter, nearest city)
    - Event store (deduplication and persistence)
    - Notifier (subscriber matching and e-mail)

    Not safe to run concurrently with itself; TickScheduler serializes ticks.
    """

    def __init__(
        self,
        config: Config,
        usgs_client: USGSClient | None = None,
        event_store: EventStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize pipeline with configuration.

        Args:
            config: Application configuration
            usgs_client: Feed client (created if not provided)
            event_store: Event store (created if not provided)
            notifier: Notifier (created if not provided)
        """
        self.config = config
        self.usgs_client = usgs_client or USGSClient(
            feed_url=config.feed_url,
            timeout=config.fetch_timeout_seconds,
        )

        firestore_config = FirestoreConfig(
            database=config.firestore_database,
            events_collection=config.events_collection,
            subscribers_collection=config.subscribers_collection,
        )
        self.event_store = event_store or EventStore(firestore_config)

        if notifier is None:
            mail_client = MailClient(SMTPConfig(
                host=config.smtp_host,
                port=config.smtp_port,
                username=config.smtp_username,
                password=config.smtp_password,
                sender=config.sender_address,
                use_tls=config.smtp_use_tls,
            ))
            matcher = SubscriberMatcher(SubscriberDirectory(firestore_config))
            notifier = Notifier(
                mail_client,
                matcher,
                max_workers=config.notify_max_workers,
            )
        self.notifier = notifier

    def _fetch_candidates(self, result: TickResult) -> list[Earthquake]:
        """Fetch the feed and keep valid earthquakes inside the region.

        Raises:
            FetchError: If the feed cannot be fetched
        """
        features = self.usgs_client.fetch_features()
        result.earthquakes_fetched = len(features)

        earthquakes = parse_earthquakes(features)
        result.skipped_malformed = len(features) - len(earthquakes)

        return filter_by_bounds(earthquakes, self.config.region)

    def _ingest(self, earthquake: Earthquake, result: TickResult) -> None:
        """Store one candidate if it is new, then notify.

        Raises:
            PersistError: If the lookup or insert fails
        """
        if self.event_store.exists(earthquake.id):
            result.earthquakes_known += 1
            return

        event = build_seismic_event(earthquake, self.config.reference_points)

        try:
            self.event_store.insert(event)
        except DuplicateEventError:
            logger.warning("Earthquake %s was stored by another writer", event.external_id)
            result.earthquakes_known += 1
            return

        result.earthquakes_new += 1
        logger.info(
            "NEW: M%.1f near %s (%d km) at %s",
            event.magnitude,
            event.nearest_reference_name,
            event.distance_from_reference,
            event.occurred_at.isoformat(),
        )

        if event.magnitude >= self.config.notification_floor:
            notification = self.notifier.notify_event(event)
            result.notifications_sent += len(notification.sent)
            result.notifications_failed += len(notification.failed)

    def process(self) -> TickResult:
        """Run one ingestion tick.

        This is the main entry point that:
        1. Fetches the USGS feed
        2. Drops malformed entries and those outside the region
        3. Skips earthquakes already stored
        4. Stores new earthquakes with their nearest city
        5. E-mails subscribers about new earthquakes at or above the floor

        A store failure stops the tick. Earthquakes stored before it stay
        stored; the rest are picked up by the next tick.

        Returns:
            TickResult with details of what happened
        """
        result = TickResult()

        # Step 1-2: Fetch and filter
        try:
            candidates = self._fetch_candidates(result)
        except FetchError as e:
            error_msg = f"Failed to fetch earthquakes: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result

        result.earthquakes_in_region = len(candidates)
        logger.info("Found %d earthquakes in monitored region", len(candidates))

        # Step 3-5: Sequential so the lookup-then-insert pair never races
        for earthquake in candidates:
            try:
                self._ingest(earthquake, result)
            except PersistError as e:
                error_msg = (
                    f"Failed to store M{earthquake.magnitude:.1f} {earthquake.id}: {e}"
                )
                logger.error("%s; stopping this tick", error_msg)
                result.errors.append(error_msg)
                break

        logger.info("Summary: %s", result.summary)

        if result.earthquakes_in_region == 0:
            logger.info("No earthquakes in monitored region from USGS (last 30 days)")

        return result

    def run_once(self) -> int:
        """Run one tick and return the total number of stored earthquakes.

        Raises:
            PersistError: If the count query fails
        """
        self.process()
        return self.event_store.count()
