"""Configuration management."""

import math
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = "https://www.ofgem.gov.uk"
DEFAULT_SEARCH_URL = "https://www.ofgem.gov.uk/search?sort=field_published&direction=desc"
DEFAULT_API_URL = (
    "https://www.ofgem.gov.uk/search?sort=field_published&direction=desc&_format=json"
)
DEFAULT_STATE_FILE = "last_ofgem_pub.json"
DEFAULT_SUBJECT = "New Ofgem Publication Detected"


@dataclass(frozen=True)
class MarkupSelectors:
    """CSS selectors for the publication listing markup."""
    entry: str = "article"
    title: str = "h3 span span"
    link: str = "a[href]"
    date_label: str = "span.font-bold"
    date_label_text: str = "Published date"
    date_value: str = "time"


@dataclass(frozen=True)
class SourceConfig:
    """Where the latest publication is read from."""
    base_url: str
    api_url: str        # primary channel, structured JSON
    search_url: str     # secondary channel, full listing page
    records_key: str = "results"   # dotted path to the record list in the API response
    markup_key: str = "rendered"   # embedded HTML fragment inside each record
    selectors: MarkupSelectors = field(default_factory=MarkupSelectors)


@dataclass(frozen=True)
class FetchConfig:
    """Retry and timeout policy for retrieval."""
    timeout_seconds: float
    max_retries: int
    rate_limit_delay_seconds: float
    retry_delay_seconds: float


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP delivery configuration."""
    host: str
    port: int
    username: str
    password: str   # delivery credential, app password or token
    timeout_seconds: float = 30


@dataclass(frozen=True)
class NotificationConfig:
    """Who gets notified and how the message looks."""
    sender: str
    recipients: Tuple[str, ...]
    subject: str = DEFAULT_SUBJECT
    keywords: Tuple[str, ...] = ()  # empty means every new item is notifiable


@dataclass(frozen=True)
class PollConfig:
    """Scheduling configuration."""
    interval_minutes: float
    state_file: str
    max_runtime_minutes: Optional[float] = None


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    source: SourceConfig
    fetch: FetchConfig
    smtp: SmtpConfig
    notification: NotificationConfig
    poll: PollConfig


def _parse_list_env(key: str, default: List[str]) -> List[str]:
    """Parse comma-separated list from environment variable."""
    value = os.getenv(key, "")
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_number_env(key: str, default: str, cast, errors: List[str], minimum: float = 0):
    """Parse a numeric environment variable, recording a message on bad input."""
    raw = os.getenv(key, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        errors.append(f"{key} must be a number (got {raw!r})")
        return cast(default)
    if not math.isfinite(value):
        errors.append(f"{key} must be a finite number (got {raw!r})")
        return cast(default)
    if value < minimum:
        errors.append(f"{key} must be >= {minimum} (got {raw!r})")
        return cast(default)
    return value


def load_config() -> AppConfig:
    """
    Load configuration from environment variables.

    Raises:
        ValueError: If required configuration values are missing or malformed.
    """
    errors: List[str] = []

    # Source
    base_url = os.getenv("OFGEM_BASE_URL", DEFAULT_BASE_URL)
    api_url = os.getenv("OFGEM_API_URL", DEFAULT_API_URL)
    search_url = os.getenv("OFGEM_SEARCH_URL", DEFAULT_SEARCH_URL)
    records_key = os.getenv("OFGEM_API_RECORDS_KEY", "results")
    markup_key = os.getenv("OFGEM_API_MARKUP_KEY", "rendered")

    # Fetch policy
    timeout_seconds = _parse_number_env("REQUEST_TIMEOUT_SECONDS", "30", float, errors, minimum=1)
    max_retries = _parse_number_env("MAX_RETRIES", "3", int, errors)
    rate_limit_delay = _parse_number_env("RATE_LIMIT_DELAY_SECONDS", "2", float, errors)
    retry_delay = _parse_number_env("RETRY_DELAY_SECONDS", "2", float, errors)

    # Delivery
    smtp_password = os.getenv("SMTP_PASSWORD")
    sender = os.getenv("SENDER_EMAIL")
    recipients = _parse_list_env("NOTIFY_EMAILS", [])
    smtp_host = os.getenv("SMTP_HOST", "smtp.gmail.com")
    smtp_port = _parse_number_env("SMTP_PORT", "587", int, errors, minimum=1)
    smtp_username = os.getenv("SMTP_USERNAME") or sender or ""
    subject = os.getenv("EMAIL_SUBJECT", DEFAULT_SUBJECT)
    keywords = _parse_list_env("TARGET_KEYWORDS", [])

    # Scheduling
    interval_minutes = _parse_number_env("POLL_INTERVAL_MINUTES", "5", float, errors, minimum=0.1)
    state_file = os.getenv("STATE_FILE", DEFAULT_STATE_FILE)
    max_runtime_minutes = None
    if os.getenv("MAX_RUNTIME_MINUTES"):
        max_runtime_minutes = _parse_number_env("MAX_RUNTIME_MINUTES", "0", float, errors)

    # Validate required fields
    missing = []
    if not smtp_password:
        missing.append("SMTP_PASSWORD")
    if not recipients:
        missing.append("NOTIFY_EMAILS")
    if not sender:
        missing.append("SENDER_EMAIL")

    if missing:
        errors.insert(0, f"Missing required environment variables: {', '.join(missing)}")
    if errors:
        raise ValueError("; ".join(errors))

    return AppConfig(
        source=SourceConfig(
            base_url=base_url,
            api_url=api_url,
            search_url=search_url,
            records_key=records_key,
            markup_key=markup_key,
        ),
        fetch=FetchConfig(
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            rate_limit_delay_seconds=rate_limit_delay,
            retry_delay_seconds=retry_delay,
        ),
        smtp=SmtpConfig(
            host=smtp_host,
            port=smtp_port,
            username=smtp_username,
            password=smtp_password,
            timeout_seconds=timeout_seconds,
        ),
        notification=NotificationConfig(
            sender=sender,
            recipients=tuple(recipients),
            subject=subject,
            keywords=tuple(keywords),
        ),
        poll=PollConfig(
            interval_minutes=interval_minutes,
            state_file=state_file,
            max_runtime_minutes=max_runtime_minutes,
        ),
    )
