"""Data models for watched publications."""

from dataclasses import dataclass
from typing import Any, Optional

UNKNOWN_DATE = "Unknown"
IDENTITY_SEPARATOR = "|"


@dataclass(frozen=True)
class Item:
    """Represents the latest publication seen on the source."""
    title: str
    link: str          # absolute URL
    published_date: str = UNKNOWN_DATE  # display text, not parsed

    @property
    def identity_key(self) -> str:
        """Equality fingerprint. The date is left out on purpose."""
        return f"{self.title}{IDENTITY_SEPARATOR}{self.link}"

    def is_valid(self) -> bool:
        return bool(self.title) and bool(self.link)

    def same_as(self, other: Optional["Item"]) -> bool:
        return other is not None and self.identity_key == other.identity_key

    def to_dict(self) -> dict:
        """Serialize to the on-disk state shape."""
        return {
            "title": self.title,
            "link": self.link,
            "date": self.published_date,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Item"]:
        """
        Build an Item from the on-disk state shape.

        Args:
            data: Decoded JSON value.

        Returns:
            The Item, or None if the value is not a usable item record.
        """
        if not isinstance(data, dict):
            return None
        title = data.get("title")
        link = data.get("link")
        if not isinstance(title, str) or not isinstance(link, str):
            return None
        if not title or not link:
            return None
        date = data.get("date")
        if not isinstance(date, str) or not date.strip():
            date = UNKNOWN_DATE
        return cls(title=title, link=link, published_date=date)
