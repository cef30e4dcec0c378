"""Retrieval channels: where raw content comes from and how it is read."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from .extractors import ContentExtractor
from .http_client import DEFAULT_TIMEOUT, get_json, get_text
from .models import Item

logger = logging.getLogger(__name__)


class RetrievalChannel(ABC):
    """A source of raw content paired with the extractor that reads it."""

    name = "channel"

    def __init__(self, extractor: ContentExtractor):
        self.extractor = extractor

    @abstractmethod
    def retrieve(self) -> Any:
        """Fetch raw content. Network failures propagate as exceptions."""
        pass

    def fetch_item(self) -> Item:
        """
        Retrieve and extract in one step.

        Raises:
            requests.RequestException: On transport errors or timeouts.
            ValueError: On undecodable responses.
            ExtractionError: If the content holds no usable item.
        """
        return self.extractor.extract(self.retrieve())


class ApiChannel(RetrievalChannel):
    """Structured search endpoint returning JSON records."""

    name = "api"

    def __init__(
        self,
        session: requests.Session,
        url: str,
        extractor: ContentExtractor,
        timeout: float = DEFAULT_TIMEOUT,
        params: Optional[dict] = None,
    ):
        super().__init__(extractor)
        self.session = session
        self.url = url
        self.timeout = timeout
        self.params = params

    def retrieve(self) -> Any:
        logger.debug(f"Querying search API {self.url}")
        return get_json(self.session, self.url, timeout=self.timeout, params=self.params)


class PageChannel(RetrievalChannel):
    """Full listing page retrieval. More expensive, used as a last resort."""

    name = "page"

    def __init__(
        self,
        session: requests.Session,
        url: str,
        extractor: ContentExtractor,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(extractor)
        self.session = session
        self.url = url
        self.timeout = timeout

    def retrieve(self) -> str:
        logger.debug(f"Downloading listing page {self.url}")
        return get_text(self.session, self.url, timeout=self.timeout)
