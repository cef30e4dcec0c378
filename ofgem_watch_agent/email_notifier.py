"""Email notification module for new publication alerts."""

import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from enum import Enum
from html import escape
from typing import Optional, Sequence

from .config import DEFAULT_SUBJECT, SmtpConfig
from .models import UNKNOWN_DATE, Item

logger = logging.getLogger(__name__)


class DeliveryStatus(Enum):
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryResult:
    status: DeliveryStatus
    error: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


def format_plain_text(item: Item) -> str:
    """Render the notification body as plain text."""
    return (
        f"Title: {item.title}\n"
        f"Date: {item.published_date or UNKNOWN_DATE}\n"
        f"Link: {item.link}\n"
        "\n---\n"
        "This is an automated notification."
    )


def format_html(item: Item) -> str:
    """Render the notification body as a small HTML document."""
    title = escape(item.title)
    date = escape(item.published_date or UNKNOWN_DATE)
    link = escape(item.link, quote=True)
    return (
        "<html><body>"
        "<h2>New Ofgem publication</h2>"
        f"<p><strong>{title}</strong></p>"
        f"<p>Published date: {date}</p>"
        f'<p><a href="{link}">{link}</a></p>'
        "<hr><p><small>This is an automated notification.</small></p>"
        "</body></html>"
    )


class EmailTransport(ABC):
    """Abstract delivery capability."""

    @abstractmethod
    def send(
        self,
        sender: str,
        recipients: Sequence[str],
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> None:
        """
        Send one message to all recipients.

        Raises:
            Exception: If the message could not be handed to the transport.
        """
        pass


class SmtpTransport(EmailTransport):
    """Delivers mail over SMTP (SSL on port 465, STARTTLS otherwise)."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def send(
        self,
        sender: str,
        recipients: Sequence[str],
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> None:
        msg = MIMEMultipart("alternative")
        msg["From"] = sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))

        host, port = self.config.host, self.config.port
        logger.debug(f"Connecting to SMTP server: {host}:{port}")
        if port == 465:
            server = smtplib.SMTP_SSL(host, port, timeout=self.config.timeout_seconds)
        else:
            server = smtplib.SMTP(host, port, timeout=self.config.timeout_seconds)

        try:
            if port != 465:
                server.starttls()
            server.login(self.config.username, self.config.password)
            server.send_message(
                msg,
                from_addr=parseaddr(sender)[1] or sender,
                to_addrs=list(recipients),
            )
        except smtplib.SMTPAuthenticationError:
            logger.error(
                f"SMTP authentication failed for {self.config.username}. "
                f"For Gmail, use an App Password and check SMTP_PASSWORD."
            )
            raise
        finally:
            try:
                server.quit()
            except (smtplib.SMTPException, OSError) as e:
                logger.debug(f"SMTP quit failed: {e}")


class NotificationDispatcher:
    """Formats an Item and hands it to the transport in one send."""

    def __init__(self, transport: EmailTransport, sender: str, subject: str = DEFAULT_SUBJECT):
        self.transport = transport
        self.sender = sender
        self.subject = subject

    def notify(self, item: Item, recipients: Sequence[str]) -> DeliveryResult:
        """
        Send a notification for the item.

        Args:
            item: The new publication.
            recipients: Addresses to notify, all in one message.

        Returns:
            DeliveryResult; failures are logged, never raised.
        """
        if item is None or not item.is_valid():
            logger.warning("Cannot send email - incomplete publication data.")
            return DeliveryResult(DeliveryStatus.FAILED, "incomplete item")
        if not recipients:
            logger.warning("Cannot send email - no recipients configured.")
            return DeliveryResult(DeliveryStatus.FAILED, "no recipients")

        logger.info(f"Sending notification email to {', '.join(recipients)}...")
        try:
            self.transport.send(
                sender=self.sender,
                recipients=list(recipients),
                subject=self.subject,
                text=format_plain_text(item),
                html=format_html(item),
            )
        except Exception as e:
            logger.error(f"Failed to send email: {e}")
            return DeliveryResult(DeliveryStatus.FAILED, str(e))

        logger.info("Notification email sent successfully.")
        return DeliveryResult(DeliveryStatus.DELIVERED)
