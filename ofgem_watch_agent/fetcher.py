"""Fetch orchestration: primary channel with retries, then fallback."""

import logging
import time
from typing import Callable, Optional

from .channels import RetrievalChannel
from .config import FetchConfig
from .extractors import ExtractionError
from .models import Item

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
RATE_LIMIT_DELAY = 2  # seconds
RETRY_DELAY = 2  # seconds


class FetchOrchestrator:
    """Drives the retrieval channels until one yields an Item."""

    def __init__(
        self,
        primary: RetrievalChannel,
        secondary: Optional[RetrievalChannel] = None,
        max_retries: int = MAX_RETRIES,
        rate_limit_delay: float = RATE_LIMIT_DELAY,
        retry_delay: float = RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.primary = primary
        self.secondary = secondary
        self.max_retries = max(0, max_retries)
        self.rate_limit_delay = rate_limit_delay
        self.retry_delay = retry_delay
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: FetchConfig,
        primary: RetrievalChannel,
        secondary: Optional[RetrievalChannel] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "FetchOrchestrator":
        return cls(
            primary,
            secondary,
            max_retries=config.max_retries,
            rate_limit_delay=config.rate_limit_delay_seconds,
            retry_delay=config.retry_delay_seconds,
            sleep=sleep,
        )

    def backoff_delay(self, retry_number: int) -> float:
        """
        Delay before the given retry (1-based).

        The first retry waits the fixed rate-limit delay; later retries back
        off linearly with the retry number. No jitter.
        """
        if retry_number <= 1:
            return self.rate_limit_delay
        return self.retry_delay * retry_number

    def fetch_latest(self) -> Optional[Item]:
        """
        Return the latest Item, or None if every channel failed.

        Never raises: every failure is logged and counted as one attempt.
        """
        total_attempts = self.max_retries + 1
        for attempt in range(total_attempts):
            if attempt > 0:
                delay = self.backoff_delay(attempt)
                logger.info(
                    f"Retrying {self.primary.name} channel in {delay}s "
                    f"(retry {attempt}/{self.max_retries})"
                )
                self._sleep(delay)

            item = self._attempt(self.primary, attempt + 1, total_attempts)
            if item is not None:
                return item

        logger.warning(
            f"{self.primary.name} channel failed after {total_attempts} attempts"
        )

        if self.secondary is None:
            logger.warning("No fallback channel configured; giving up this cycle")
            return None

        logger.info(f"Falling back to {self.secondary.name} channel...")
        item = self._attempt(self.secondary, 1, 1)
        if item is None:
            logger.warning("Fallback channel also failed; no publication fetched this cycle")
        return item

    def _attempt(self, channel: RetrievalChannel, attempt: int, total: int) -> Optional[Item]:
        try:
            item = channel.fetch_item()
        except ExtractionError as e:
            logger.warning(
                f"{channel.name} attempt {attempt}/{total}: extraction failed ({e.reason}) {e.detail}".rstrip()
            )
            return None
        except Exception as e:
            logger.warning(f"{channel.name} attempt {attempt}/{total} failed: {e}")
            return None

        if not item.is_valid():
            logger.warning(f"{channel.name} attempt {attempt}/{total} returned an incomplete item")
            return None

        logger.info(f"Fetched latest publication via {channel.name} channel: {item.title}")
        logger.debug(f"Latest publication: {item}")
        return item
