"""Subscriber matching and e-mail fan-out.

Notifications are best-effort: every failure is logged and counted here
and never reaches the ingestion pipeline.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from quakewatch.core.earthquake import SeismicEvent
from quakewatch.core.formatter import (
    format_email_html,
    format_email_subject,
    format_email_text,
)
from quakewatch.core.subscriber import Subscriber, select_recipients
from quakewatch.shell.firestore_client import PersistError, SubscriberDirectory
from quakewatch.shell.mail_client import MailClient, MailResponse


logger = logging.getLogger(__name__)


DEFAULT_MAX_WORKERS = 8


@dataclass
class NotificationResult:
    """Outcome of notifying subscribers about one earthquake.

    Attributes:
        sent: Recipients whose message was accepted
        failed: Failed deliveries with their errors
    """
    sent: list[str] = field(default_factory=list)
    failed: list[MailResponse] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.sent) + len(self.failed)


class SubscriberMatcher:
    """Selects the subscribers who should hear about an earthquake."""

    def __init__(self, directory: SubscriberDirectory) -> None:
        self.directory = directory

    def match(self, event: SeismicEvent) -> list[Subscriber]:
        """Active subscribers whose threshold is at most the magnitude.

        Raises:
            PersistError: If the directory cannot be read
        """
        candidates = self.directory.list_active(max_threshold=event.magnitude)
        return select_recipients(candidates, event.magnitude)


class Notifier:
    """Sends one alert e-mail per subscriber, concurrently."""

    def __init__(
        self,
        mail_client: MailClient,
        matcher: SubscriberMatcher,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.mail_client = mail_client
        self.matcher = matcher
        self.max_workers = max_workers

    def _deliver(
        self,
        subscriber: Subscriber,
        subject: str,
        text_body: str,
        html_body: str,
    ) -> MailResponse:
        try:
            return self.mail_client.send(
                subscriber.email,
                subject,
                text_body,
                html_body=html_body,
            )
        except Exception as e:
            logger.exception("Unexpected error e-mailing %s", subscriber.email)
            return MailResponse(success=False, recipient=subscriber.email, error=str(e))

    def notify(
        self,
        event: SeismicEvent,
        subscribers: list[Subscriber],
    ) -> NotificationResult:
        """Send the alert for an earthquake to every given subscriber.

        Blocks until all sends have finished. Individual failures are
        logged and reported in the result, never raised.

        Args:
            event: Newly stored earthquake
            subscribers: Recipients

        Returns:
            NotificationResult with sent and failed recipients
        """
        result = NotificationResult()
        if not subscribers:
            logger.info("No subscribers to notify for %s", event.external_id)
            return result

        subject = format_email_subject(event)
        text_body = format_email_text(event)
        html_body = format_email_html(event)

        workers = min(self.max_workers, len(subscribers))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            responses = list(pool.map(
                lambda s: self._deliver(s, subject, text_body, html_body),
                subscribers,
            ))

        for response in responses:
            if response.success:
                result.sent.append(response.recipient)
            else:
                logger.error(
                    "Failed to e-mail %s about M%.1f %s: %s",
                    response.recipient,
                    event.magnitude,
                    event.external_id,
                    response.error,
                )
                result.failed.append(response)

        logger.info(
            "Sent %d alerts for M%.1f %s (%d failed)",
            len(result.sent),
            event.magnitude,
            event.external_id,
            len(result.failed),
        )
        return result

    def notify_event(self, event: SeismicEvent) -> NotificationResult:
        """Match subscribers for an earthquake and notify them.

        Never raises: a directory failure or any other error is logged and
        yields an empty result.
        """
        try:
            subscribers = self.matcher.match(event)
            return self.notify(event, subscribers)
        except PersistError as e:
            logger.error(
                "Could not load subscribers for M%.1f %s: %s",
                event.magnitude,
                event.external_id,
                e,
            )
        except Exception:
            logger.exception(
                "Notification for M%.1f %s failed",
                event.magnitude,
                event.external_id,
            )

        return NotificationResult()
