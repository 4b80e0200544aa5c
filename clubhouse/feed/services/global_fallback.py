"""Globally recent content used when the personalized tiers run dry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clubhouse.core.constants import (
    GLOBAL_FALLBACK_MAX_FETCH,
    GLOBAL_FALLBACK_THRESHOLD,
    POSTS_COLLECTION,
    SCORES_COLLECTION,
)

from .. import scoring
from .common import hydrate, recent_documents, run_parallel, score_items

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from ..models import FeedItem, UserContext
    from .common import FeedResources


def needs_global_fallback(current_count: int) -> bool:
    """Return True if the primary tiers produced too little content."""
    return current_count < GLOBAL_FALLBACK_THRESHOLD


def global_fetch_budget(current_count: int, max_items: int) -> int:
    """Return how many global items to fetch to top up the feed."""
    return max(0, min(GLOBAL_FALLBACK_MAX_FETCH, max_items - current_count))


def fetch_global_activity(
    db: Client,
    context: UserContext,
    resources: FeedResources,
    current_count: int,
    max_items: int,
) -> list[FeedItem]:
    """Return recent posts and scores from anyone but the viewer.

    Course records are not checked here, so scores never carry the record flag.
    """
    budget = global_fetch_budget(current_count, max_items)
    if budget == 0:
        return []
    post_limit = (budget + 1) // 2
    score_limit = budget - post_limit

    others = [("userId", "!=", context.viewer_id)]
    calls = [lambda: recent_documents(db, POSTS_COLLECTION, post_limit, others)]
    if score_limit:
        calls.append(
            lambda: recent_documents(db, SCORES_COLLECTION, score_limit, others)
        )
    results = run_parallel(*calls)
    post_docs = results[0]
    score_docs = results[1] if score_limit else []

    posts, scores = hydrate(db, resources, post_docs, score_docs, check_records=False)

    return [
        *score_items(
            posts,
            scoring.GLOBAL_POST_SCORE,
            "Recent post",
            resources.boost,
            context.viewer_category,
        ),
        *score_items(
            scores,
            scoring.GLOBAL_SCORE_SCORE,
            "Recent score",
            resources.boost,
            context.viewer_category,
        ),
    ]
