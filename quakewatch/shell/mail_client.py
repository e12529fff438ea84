"""SMTP Mail Client - Imperative Shell.

This module handles delivery of alert e-mails over SMTP.
All I/O is contained here; message formatting is in the core module.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage


logger = logging.getLogger(__name__)


# Default timeout for SMTP connections (seconds)
DEFAULT_TIMEOUT = 30


@dataclass
class MailResponse:
    """Result of one delivery attempt.

    Attributes:
        success: Whether the message was accepted by the server
        recipient: Address the message was sent to
        error: Error message if failed
    """
    success: bool
    recipient: str
    error: str | None = None


@dataclass
class SMTPConfig:
    """SMTP connection settings.

    Attributes:
        host: SMTP server host
        port: SMTP server port
        username: Login (None to skip authentication)
        password: Password for username
        sender: From address
        use_tls: Upgrade with STARTTLS after connecting
        timeout: Socket timeout in seconds
    """
    host: str = "smtp.gmail.com"
    port: int = 587
    username: str | None = None
    password: str | None = None
    sender: str | None = None
    use_tls: bool = True
    timeout: float = DEFAULT_TIMEOUT


class MailClient:
    """Client for sending e-mail via SMTP.

    This is part of the imperative shell - it handles network I/O.
    Each send opens its own connection so sends can run in parallel threads.
    """

    def __init__(self, config: SMTPConfig | None = None) -> None:
        """Initialize mail client.

        Args:
            config: SMTP settings
        """
        self.config = config or SMTPConfig()

    def _build_message(
        self,
        recipient: str,
        subject: str,
        text_body: str,
        html_body: str | None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender or self.config.username or ""
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(text_body)
        if html_body:
            message.add_alternative(html_body, subtype="html")
        return message

    def send(
        self,
        recipient: str,
        subject: str,
        text_body: str,
        html_body: str | None = None,
    ) -> MailResponse:
        """Send one e-mail.

        This method performs network I/O.

        Args:
            recipient: Destination address
            subject: Subject line
            text_body: Plain-text body
            html_body: Optional HTML alternative

        Returns:
            MailResponse indicating success or failure
        """
        if not (self.config.sender or self.config.username):
            return MailResponse(
                success=False,
                recipient=recipient,
                error="No sender address configured",
            )

        message = self._build_message(recipient, subject, text_body, html_body)

        try:
            with smtplib.SMTP(
                self.config.host,
                self.config.port,
                timeout=self.config.timeout,
            ) as smtp:
                if self.config.use_tls:
                    smtp.starttls()
                if self.config.username and self.config.password:
                    smtp.login(self.config.username, self.config.password)
                smtp.send_message(message)

            logger.info("Alert e-mail sent to %s", recipient)
            return MailResponse(success=True, recipient=recipient)

        except smtplib.SMTPException as e:
            logger.error("SMTP error sending to %s: %s", recipient, str(e))
            return MailResponse(
                success=False,
                recipient=recipient,
                error=f"SMTP error: {e}",
            )
        except OSError as e:
            # Connection refused, DNS failure, socket timeout
            logger.error("Mail connection failed for %s: %s", recipient, str(e))
            return MailResponse(
                success=False,
                recipient=recipient,
                error=str(e),
            )
