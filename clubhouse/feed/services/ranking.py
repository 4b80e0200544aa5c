"""Merge tier output into the final ordered feed."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Iterable

from clubhouse.core.constants import DEFAULT_FEED_SIZE

if TYPE_CHECKING:
    from ..models import FeedItem


def _timestamp(value: datetime.datetime | None) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.timestamp()


def deduplicate(items: Iterable[FeedItem]) -> list[FeedItem]:
    """Keep one instance per (kind, id), preferring the higher score."""
    best: dict[tuple[str, str], FeedItem] = {}
    for item in items:
        current = best.get(item.identity)
        if current is None or item.relevance_score > current.relevance_score:
            best[item.identity] = item
    return list(best.values())


def rank_feed_items(
    items: Iterable[FeedItem], max_items: int = DEFAULT_FEED_SIZE
) -> list[FeedItem]:
    """Deduplicate, sort by score then recency, and truncate."""
    unique = deduplicate(items)
    unique.sort(
        key=lambda item: (item.relevance_score, _timestamp(item.created_at)),
        reverse=True,
    )
    return unique[: max(max_items, 0)]
