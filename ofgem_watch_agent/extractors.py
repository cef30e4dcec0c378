"""Item extraction from structured API responses and listing markup."""

import logging
import re
from abc import ABC, abstractmethod
from html import unescape
from typing import Any, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from .config import MarkupSelectors
from .models import UNKNOWN_DATE, Item

logger = logging.getLogger(__name__)

MALFORMED = "malformed"
MISSING_TITLE = "missing_title"
MISSING_LINK = "missing_link"

TITLE_ALIASES = ("title", "name", "label")
LINK_ALIASES = ("link", "url", "path", "href")
DATE_ALIASES = ("date", "published_date", "published", "field_published")


class ExtractionError(Exception):
    """Raised when raw content cannot be turned into a valid Item."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = reason if not detail else f"{reason}: {detail}"
        super().__init__(message)


def _clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


class ContentExtractor(ABC):
    """Abstract base class for item extractors."""

    @abstractmethod
    def extract(self, raw: Any) -> Item:
        """
        Produce an Item from raw source content.

        Args:
            raw: Content returned by a retrieval channel.

        Returns:
            A valid Item (title and link both non-empty).

        Raises:
            ExtractionError: If the content is malformed or incomplete.
        """
        pass


class MarkupExtractor(ContentExtractor):
    """Extracts the first publication entry from listing markup."""

    def __init__(self, base_url: str, selectors: Optional[MarkupSelectors] = None):
        self.base_url = base_url
        self.selectors = selectors or MarkupSelectors()

    def extract(self, raw: Any) -> Item:
        return self._extract(raw, allow_fragment=False)

    def extract_fragment(self, raw: Any) -> Item:
        """Like extract, but a fragment without an entry element is read whole."""
        return self._extract(raw, allow_fragment=True)

    def _extract(self, raw: Any, allow_fragment: bool) -> Item:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if not isinstance(raw, str) or not raw.strip():
            raise ExtractionError(MALFORMED, "empty or non-text markup")

        soup = BeautifulSoup(raw, "lxml")
        entry = soup.select_one(self.selectors.entry)
        if entry is None:
            # Embedded fragments often arrive without the wrapping entry element
            if not allow_fragment:
                raise ExtractionError(MALFORMED, f"no '{self.selectors.entry}' entry found")
            entry = soup.body or soup

        title = self._find_title(entry)
        link = self._find_link(entry)
        date = self._find_date(entry)

        if not title:
            raise ExtractionError(MISSING_TITLE)
        if not link:
            raise ExtractionError(MISSING_LINK)

        return Item(title=title, link=link, published_date=date)

    def _find_title(self, entry: Tag) -> str:
        node = entry.select_one(self.selectors.title)
        if node is None:
            node = entry.find(["h3", "h2"])
        return _clean_text(node.get_text()) if node is not None else ""

    def _find_link(self, entry: Tag) -> str:
        if entry.name == "a" and entry.get("href"):
            node = entry
        else:
            node = entry.select_one(self.selectors.link)
        if node is None:
            return ""
        href = (node.get("href") or "").strip()
        if not href:
            return ""
        return urljoin(self.base_url, href)

    def _find_date(self, entry: Tag) -> str:
        label_text = self.selectors.date_label_text.lower()
        for label in entry.select(self.selectors.date_label):
            if label_text not in label.get_text().lower():
                continue
            parent = label.parent
            value = parent.select_one(self.selectors.date_value) if parent is not None else None
            if value is not None:
                date = _clean_text(value.get_text())
                if date:
                    return date
            break
        return UNKNOWN_DATE


class StructuredExtractor(ContentExtractor):
    """
    Extracts the top record of a structured search response.

    Records either carry discrete title/link/date fields, or a single
    HTML fragment (entity-escaped) rendering the entry. Fragments are
    decoded and handed to the markup extractor.
    """

    def __init__(
        self,
        base_url: str,
        records_key: str = "results",
        markup_key: str = "rendered",
        markup_extractor: Optional[MarkupExtractor] = None,
    ):
        self.base_url = base_url
        self.records_key = records_key
        self.markup_key = markup_key
        self.markup_extractor = markup_extractor or MarkupExtractor(base_url)

    def extract(self, raw: Any) -> Item:
        record = self._first_record(raw)

        title = _clean_text(self._field(record, TITLE_ALIASES))
        link = self._field(record, LINK_ALIASES).strip()
        if title and link:
            date = _clean_text(self._field(record, DATE_ALIASES)) or UNKNOWN_DATE
            return Item(
                title=title,
                link=urljoin(self.base_url, link),
                published_date=date,
            )

        fragment = record.get(self.markup_key)
        if isinstance(fragment, str) and fragment.strip():
            logger.debug("Record has no discrete fields; extracting from embedded markup")
            return self.markup_extractor.extract_fragment(unescape(fragment))

        if not title:
            raise ExtractionError(MISSING_TITLE, "record has neither title field nor markup")
        raise ExtractionError(MISSING_LINK, "record has neither link field nor markup")

    def _records(self, raw: Any) -> List[Any]:
        if isinstance(raw, list):
            return raw
        if not isinstance(raw, dict):
            raise ExtractionError(MALFORMED, f"unexpected response type {type(raw).__name__}")

        node: Any = raw
        for part in self.records_key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise ExtractionError(MALFORMED, f"response has no '{self.records_key}' records")
            node = node[part]
        if not isinstance(node, list):
            raise ExtractionError(MALFORMED, f"'{self.records_key}' is not a list")
        return node

    def _first_record(self, raw: Any) -> dict:
        records = self._records(raw)
        if not records:
            raise ExtractionError(MALFORMED, "response contains no records")
        record = records[0]
        if not isinstance(record, dict):
            raise ExtractionError(MALFORMED, "top record is not an object")
        return record

    @staticmethod
    def _field(record: dict, aliases) -> str:
        for key in aliases:
            value = record.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return ""
