"""Change detection and relevance filtering."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .models import Item


class ChangeKind(Enum):
    FIRST_OBSERVATION = "first_observation"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


def classify(current: Item, previous: Optional[Item]) -> ChangeKind:
    """
    Compare the current item with the last seen one by identity key.

    Pure function: it does not touch the state store.
    """
    if previous is None:
        return ChangeKind.FIRST_OBSERVATION
    if current.same_as(previous):
        return ChangeKind.UNCHANGED
    return ChangeKind.CHANGED


class RelevanceFilter:
    """Case-insensitive keyword match against item titles."""

    def __init__(self, keywords: Iterable[str] = ()):
        self.keywords = tuple(k.strip().lower() for k in keywords if k and k.strip())

    @property
    def enabled(self) -> bool:
        return bool(self.keywords)

    def matches(self, item: Item) -> bool:
        if not self.keywords:
            return True
        title = item.title.lower()
        return any(keyword in title for keyword in self.keywords)


@dataclass(frozen=True)
class Decision:
    """Outcome of comparing a fetched item against the stored one."""
    kind: ChangeKind
    is_new_item: bool      # state should advance
    is_notifiable: bool    # dispatcher should be invoked


def evaluate(
    current: Item,
    previous: Optional[Item],
    relevance_filter: Optional[RelevanceFilter] = None,
) -> Decision:
    kind = classify(current, previous)
    is_new_item = kind is not ChangeKind.UNCHANGED
    is_notifiable = is_new_item and (relevance_filter is None or relevance_filter.matches(current))
    return Decision(kind=kind, is_new_item=is_new_item, is_notifiable=is_notifiable)
